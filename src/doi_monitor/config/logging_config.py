"""
Logging configuration module for the DOI monitoring system.

Logging is configured from a dictConfig JSON file: one of the two built-in
files shipped next to this module (dev, prod) or a custom file supplied by the
operator. Every record is tagged with the runner's worker id so that the output
of overlapping cycles can be told apart.
"""

import json
import logging.config
import os
from typing import Any, Dict

from doi_monitor.config import MonitoringContext

BUILTIN_CONFIGS = {
    "dev": "logging-config-dev.json",
    "prod": "logging-config-prod.json",
}


def configure_logging(context: MonitoringContext) -> None:
    """
    Configure logging for the application based on the provided configuration.

    Args:
        context: Configuration context containing logging settings.

    Raises:
        ValueError: If the logging type is invalid or if a custom logging
            configuration file is not provided when using the 'custom' type.
        RuntimeError: If the configuration file cannot be loaded.
    """
    logging_type: str = context.logging_type.lower()
    if not logging_type:
        raise ValueError("Logging type must be provided.")
    elif logging_type in BUILTIN_CONFIGS:
        _load_logging_config(_get_local_package_file_path(BUILTIN_CONFIGS[logging_type]))
    elif logging_type == "custom":
        if not context.logging_config_file:
            raise ValueError("Custom logging configuration file must be provided.")
        _load_logging_config(context.logging_config_file)
    else:
        raise ValueError(
            f"Invalid logging type: {context.logging_type}. Allowed values are: dev, prod, custom"
        )

    # Records from child loggers skip the root logger's own filters, so the
    # worker id is injected at handler level as well.
    root_logger = logging.getLogger()
    instance_filter = _WorkerIdFilter(worker_id=context.worker_id)
    root_logger.addFilter(instance_filter)
    for handler in root_logger.handlers:
        handler.addFilter(instance_filter)

    logging.debug("Logging configured and WorkerIdFilter added.")


def _load_logging_config(config_file: str) -> None:
    """
    Load logging configuration from a JSON file and apply it with dictConfig.

    Raises:
        RuntimeError: If the file is not found, contains invalid JSON, or
            if there is any other error loading the configuration.
    """
    try:
        with open(config_file) as f:
            config: Dict[str, Any] = json.load(f)
            logging.config.dictConfig(config)
    except FileNotFoundError as err:
        raise RuntimeError(f"Logging config file not found: {config_file}") from err
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Invalid JSON format in logging config file: {config_file}") from err
    except Exception as err:
        raise RuntimeError(f"Error loading logging config: {str(err)}") from err


def _get_local_package_file_path(config_file: str) -> str:
    """Absolute path of a file shipped in this package directory."""
    return os.path.join(os.path.dirname(__file__), config_file)


class _WorkerIdFilter(logging.Filter):
    """
    A logging filter that injects the worker ID into every log record.

    This filter adds a 'worker_id' attribute to each log record, which can
    be used in log formatters to identify which runner generated the log.
    """

    def __init__(self, worker_id: str) -> None:
        super().__init__()
        self._worker_id: str = worker_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.worker_id = self._worker_id
        return True
