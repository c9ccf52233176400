"""
Configuration module for the DOI monitoring system.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the monitoring system. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
from typing import Any, List, Optional, Tuple
from uuid import uuid4

from doi_monitor.config.constants import (
    DEFAULT_ALERT_AUTH_TOKEN,
    DEFAULT_ALERT_ENABLED,
    DEFAULT_ALERT_ENDPOINT_URL,
    DEFAULT_ALERT_MAX_MESSAGE_LENGTH,
    DEFAULT_ALERT_MAX_RETRIES,
    DEFAULT_ALERT_RETRY_DELAY_MS,
    DEFAULT_ALERT_TIMEOUT_MS,
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_CYCLE_BUDGET,
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_FOLLOW_REDIRECTS,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_MODE,
    DEFAULT_PROBE_MAX_RETRIES,
    DEFAULT_PROBE_RETRY_DELAY_MS,
    DEFAULT_PROBE_TIMEOUT_MS,
    DEFAULT_RESOLVER_BASE_URL,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKER_ID_PREFIX,
    DEFAULT_WORKER_NUMBER,
)
from doi_monitor.config.monitoring_context import (
    AlertConfig,
    CycleConfig,
    MonitoringContext,
    ProbeConfig,
)

__all__ = ["AlertConfig", "CycleConfig", "MonitoringContext", "ProbeConfig", "get_context"]

MODES = ("once", "schedule", "report")


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() == "true"


def _parse_identifiers(value: str) -> Tuple[str, ...]:
    """Splits a comma-separated list, dropping blanks and duplicates while keeping order."""
    identifiers = [item.strip() for item in (value or "").split(",")]
    return tuple(dict.fromkeys(item for item in identifiers if item))


def get_context(argv: Optional[List[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    This function creates an argument parser with options for all configurable aspects
    of the monitoring system. For each option, it first checks for a command-line argument,
    then falls back to an environment variable, and finally uses a default value.

    Args:
        argv: Arguments to parse instead of sys.argv[1:].

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.
    """
    parser = argparse.ArgumentParser(
        description="Periodically verifies that monitored DOIs still resolve and alerts "
        "when one of them breaks."
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=os.getenv("DOI_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database.\n"
        "If not provided, the value is read from the DOI_MONITOR_DSN environment variable.\n"
        "If that is also absent, a default value for a local database is used.",
    )

    parser.add_argument(
        "-wid",
        "--worker-id",
        type=str,
        default=os.getenv("DOI_MONITOR_WORKER_ID", f"{DEFAULT_WORKER_ID_PREFIX}{uuid4()}"),
        help="Specifies the id of this runner, attached to every log line.\n"
        "If not provided, the value is read from the DOI_MONITOR_WORKER_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_WORKER_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(os.getenv("DOI_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        f"Environment variable: DOI_MONITOR_DB_POOL_SIZE. Default: {DEFAULT_DB_POOL_SIZE}.",
    )

    parser.add_argument(
        "-m",
        "--mode",
        type=str,
        choices=MODES,
        default=os.getenv("DOI_MONITOR_MODE", DEFAULT_MODE),
        help="once: run a single check cycle and print its summary.\n"
        "schedule: run a check cycle every --check-interval seconds.\n"
        "report: print the persisted status of every monitored DOI.\n"
        f"Environment variable: DOI_MONITOR_MODE. Default: {DEFAULT_MODE}.",
    )

    parser.add_argument(
        "-ids",
        "--identifiers",
        type=str,
        default=os.getenv("DOI_MONITOR_IDENTIFIERS", ""),
        help="Comma-separated list of DOIs to monitor instead of the database list.\n"
        "Environment variable: DOI_MONITOR_IDENTIFIERS.",
    )

    parser.add_argument(
        "-ci",
        "--check-interval",
        type=int,
        default=int(os.getenv("DOI_MONITOR_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL)),
        help="Seconds between two cycles in schedule mode.\n"
        f"Environment variable: DOI_MONITOR_CHECK_INTERVAL. Default: {DEFAULT_CHECK_INTERVAL}.",
    )

    parser.add_argument(
        "-wn",
        "--worker-number",
        type=int,
        default=int(os.getenv("DOI_MONITOR_WORKER_NUMBER", DEFAULT_WORKER_NUMBER)),
        help="Specifies the maximum number of concurrent probes.\n"
        f"Environment variable: DOI_MONITOR_WORKER_NUMBER. Default: {DEFAULT_WORKER_NUMBER}.",
    )

    parser.add_argument(
        "-cb",
        "--cycle-budget",
        type=float,
        default=float(os.getenv("DOI_MONITOR_CYCLE_BUDGET", DEFAULT_CYCLE_BUDGET)),
        help="Seconds after which checks not yet started are skipped (0 disables).\n"
        f"Environment variable: DOI_MONITOR_CYCLE_BUDGET. Default: {DEFAULT_CYCLE_BUDGET}.",
    )

    parser.add_argument(
        "-rb",
        "--resolver-base-url",
        type=str,
        default=os.getenv("DOI_MONITOR_RESOLVER_BASE_URL", DEFAULT_RESOLVER_BASE_URL),
        help="Prefix used to resolve a DOI into a URL.\n"
        f"Environment variable: DOI_MONITOR_RESOLVER_BASE_URL. Default: {DEFAULT_RESOLVER_BASE_URL}.",
    )

    parser.add_argument(
        "-ua",
        "--user-agent",
        type=str,
        default=os.getenv("DOI_MONITOR_USER_AGENT", DEFAULT_USER_AGENT),
        help="User-Agent header sent with every probe.\n"
        f"Environment variable: DOI_MONITOR_USER_AGENT. Default: {DEFAULT_USER_AGENT}.",
    )

    parser.add_argument(
        "-pt",
        "--probe-timeout",
        type=int,
        default=int(os.getenv("DOI_MONITOR_PROBE_TIMEOUT_MS", DEFAULT_PROBE_TIMEOUT_MS)),
        help="Timeout of a single probe request in milliseconds.\n"
        f"Environment variable: DOI_MONITOR_PROBE_TIMEOUT_MS. Default: {DEFAULT_PROBE_TIMEOUT_MS}.",
    )

    parser.add_argument(
        "-pr",
        "--probe-max-retries",
        type=int,
        default=int(os.getenv("DOI_MONITOR_PROBE_MAX_RETRIES", DEFAULT_PROBE_MAX_RETRIES)),
        help="Additional probe attempts after a network error or timeout.\n"
        f"Environment variable: DOI_MONITOR_PROBE_MAX_RETRIES. Default: {DEFAULT_PROBE_MAX_RETRIES}.",
    )

    parser.add_argument(
        "-pd",
        "--probe-retry-delay",
        type=int,
        default=int(os.getenv("DOI_MONITOR_PROBE_RETRY_DELAY_MS", DEFAULT_PROBE_RETRY_DELAY_MS)),
        help="Pause between probe attempts in milliseconds.\n"
        "Environment variable: DOI_MONITOR_PROBE_RETRY_DELAY_MS. "
        f"Default: {DEFAULT_PROBE_RETRY_DELAY_MS}.",
    )

    parser.add_argument(
        "-fr",
        "--follow-redirects",
        type=str,
        default=os.getenv("DOI_MONITOR_FOLLOW_REDIRECTS", DEFAULT_FOLLOW_REDIRECTS),
        help="Whether probes follow HTTP redirects (true/false).\n"
        f"Environment variable: DOI_MONITOR_FOLLOW_REDIRECTS. Default: {DEFAULT_FOLLOW_REDIRECTS}.",
    )

    parser.add_argument(
        "-ae",
        "--alert-enabled",
        type=str,
        default=os.getenv("DOI_MONITOR_ALERT_ENABLED", DEFAULT_ALERT_ENABLED),
        help="Whether alerts are posted (true) or only logged (false).\n"
        f"Environment variable: DOI_MONITOR_ALERT_ENABLED. Default: {DEFAULT_ALERT_ENABLED}.",
    )

    parser.add_argument(
        "-au",
        "--alert-endpoint-url",
        type=str,
        default=os.getenv("DOI_MONITOR_ALERT_ENDPOINT_URL", DEFAULT_ALERT_ENDPOINT_URL),
        help="URL that receives alert posts.\n"
        "Environment variable: DOI_MONITOR_ALERT_ENDPOINT_URL.",
    )

    parser.add_argument(
        "-at",
        "--alert-auth-token",
        type=str,
        default=os.getenv("DOI_MONITOR_ALERT_AUTH_TOKEN", DEFAULT_ALERT_AUTH_TOKEN),
        help="Bearer token for the alert endpoint.\n"
        "Environment variable: DOI_MONITOR_ALERT_AUTH_TOKEN.",
    )

    parser.add_argument(
        "-al",
        "--alert-max-length",
        type=int,
        default=int(
            os.getenv("DOI_MONITOR_ALERT_MAX_MESSAGE_LENGTH", DEFAULT_ALERT_MAX_MESSAGE_LENGTH)
        ),
        help="Maximum length of an alert message; longer messages are truncated.\n"
        "Environment variable: DOI_MONITOR_ALERT_MAX_MESSAGE_LENGTH. "
        f"Default: {DEFAULT_ALERT_MAX_MESSAGE_LENGTH}.",
    )

    parser.add_argument(
        "-ato",
        "--alert-timeout",
        type=int,
        default=int(os.getenv("DOI_MONITOR_ALERT_TIMEOUT_MS", DEFAULT_ALERT_TIMEOUT_MS)),
        help="Timeout of a single alert post in milliseconds.\n"
        f"Environment variable: DOI_MONITOR_ALERT_TIMEOUT_MS. Default: {DEFAULT_ALERT_TIMEOUT_MS}.",
    )

    parser.add_argument(
        "-ar",
        "--alert-max-retries",
        type=int,
        default=int(os.getenv("DOI_MONITOR_ALERT_MAX_RETRIES", DEFAULT_ALERT_MAX_RETRIES)),
        help="Additional alert attempts after a failed delivery.\n"
        f"Environment variable: DOI_MONITOR_ALERT_MAX_RETRIES. Default: {DEFAULT_ALERT_MAX_RETRIES}.",
    )

    parser.add_argument(
        "-ad",
        "--alert-retry-delay",
        type=int,
        default=int(os.getenv("DOI_MONITOR_ALERT_RETRY_DELAY_MS", DEFAULT_ALERT_RETRY_DELAY_MS)),
        help="Pause between alert attempts in milliseconds.\n"
        "Environment variable: DOI_MONITOR_ALERT_RETRY_DELAY_MS. "
        f"Default: {DEFAULT_ALERT_RETRY_DELAY_MS}.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=os.getenv("DOI_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=os.getenv("DOI_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        dsn=args.dsn,
        worker_id=args.worker_id,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        db_pool_size=args.db_pool_size,
        mode=args.mode,
        identifiers=_parse_identifiers(args.identifiers),
        check_interval=args.check_interval,
        worker_number=args.worker_number,
        cycle_budget=args.cycle_budget,
        resolver_base_url=args.resolver_base_url,
        user_agent=args.user_agent,
        probe_timeout_ms=args.probe_timeout,
        probe_max_retries=args.probe_max_retries,
        probe_retry_delay_ms=args.probe_retry_delay,
        follow_redirects=_parse_bool(args.follow_redirects),
        alert_enabled=_parse_bool(args.alert_enabled),
        alert_endpoint_url=args.alert_endpoint_url,
        alert_auth_token=args.alert_auth_token,
        alert_max_message_length=args.alert_max_length,
        alert_timeout_ms=args.alert_timeout,
        alert_max_retries=args.alert_max_retries,
        alert_retry_delay_ms=args.alert_retry_delay,
    )
