"""
Alert dispatcher for newly broken identifiers.

This module builds a single bounded-length alert listing every identifier that
broke during a cycle and posts it to an HTTP endpoint as {"content": ...} with
bearer-token authorization. Failed deliveries are retried with a fixed delay;
once retries run out an ExternalServiceError is raised for the caller to log.
Delivery is best effort: a missed alert is never re-queued.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

import aiohttp

from doi_monitor.config import AlertConfig
from doi_monitor.domain import resolve_url
from doi_monitor.errors import ExternalServiceError, RetryExhaustedError, describe_error
from doi_monitor.retry import retry_with_fixed_delay

# Module logger
logger = logging.getLogger(__name__)

ELLIPSIS = "..."
MIN_MESSAGE_LENGTH = len(ELLIPSIS) + 1


class AlertRejectedError(Exception):
    """The alert endpoint answered with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Alert endpoint responded with {status}: {body}")
        self.status: int = status
        self.body: str = body


def format_alert_message(identifiers: Iterable[str], resolver_base_url: str) -> str:
    """
    Renders the alert text: a header with the count, then one link per identifier.

    Args:
        identifiers: The newly broken identifiers.
        resolver_base_url: Prefix used to build each identifier's link.

    Returns:
        str: The untruncated message.
    """
    identifiers = list(identifiers)
    lines = [f"DOI Link Check Alert: {len(identifiers)} broken DOI(s) found:"]
    lines.extend(f"• {resolve_url(identifier, resolver_base_url)}" for identifier in identifiers)
    return "\n".join(lines)


def truncate_message(message: str, max_length: int) -> str:
    """
    Bounds a message to max_length characters.

    A message that is too long is cut to max_length - 3 characters and
    suffixed with "...", so its length is then exactly max_length.
    """
    if max_length < MIN_MESSAGE_LENGTH:
        raise ValueError(f"max_length must be at least {MIN_MESSAGE_LENGTH}.")
    if len(message) <= max_length:
        return message
    return message[: max_length - len(ELLIPSIS)] + ELLIPSIS


class AlertDispatcher:
    """
    Posts one alert per cycle for the identifiers that became broken.

    When the configuration disables alerting the message is only logged, which
    lets an operator run the monitor without notifying anyone.
    """

    def __init__(self, session: aiohttp.ClientSession, config: AlertConfig) -> None:
        """
        Initializes the dispatcher.

        Args:
            session: An active aiohttp.ClientSession used for the POST.
            config: Endpoint, credentials, length limit and retry settings.

        Raises:
            ValueError: If the configuration is invalid.
        """
        if config.max_message_length < MIN_MESSAGE_LENGTH:
            raise ValueError(f"max_message_length must be at least {MIN_MESSAGE_LENGTH}.")
        if config.max_retries < 0:
            raise ValueError("max_retries must be a non-negative integer.")
        if config.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be a non-negative integer.")
        if config.timeout_ms <= 0:
            raise ValueError("timeout_ms must be a positive integer.")
        if config.enabled and not (config.endpoint_url and config.auth_token):
            raise ValueError("Alert endpoint URL and auth token are required when alerts are enabled.")

        self._session: aiohttp.ClientSession = session
        self._config: AlertConfig = config
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_ms / 1000)

    def build_message(self, identifiers: Iterable[str]) -> str:
        message = format_alert_message(identifiers, self._config.resolver_base_url)
        return truncate_message(message, self._config.max_message_length)

    async def _post(self, message: str) -> Dict[str, Any]:
        async with self._session.post(
            self._config.endpoint_url,
            json={"content": message},
            headers={"Authorization": f"Bearer {self._config.auth_token}"},
            timeout=self._timeout,
        ) as response:
            if not 200 <= response.status < 300:
                body = await response.text()
                raise AlertRejectedError(response.status, body[:200])
            try:
                return await response.json(content_type=None)
            except ValueError:
                # Delivered; re-posting would duplicate the alert.
                logger.warning("Alert endpoint returned a body that is not JSON.")
                return {}

    async def dispatch(self, newly_broken: Iterable[str]) -> Optional[Dict[str, Any]]:
        """
        Sends one alert listing the newly broken identifiers.

        Args:
            newly_broken: Identifiers that broke during this cycle.

        Returns:
            The endpoint's JSON response, or None when there was nothing to send
            or alerting is disabled.

        Raises:
            ExternalServiceError: If every delivery attempt failed.
        """
        identifiers = list(dict.fromkeys(newly_broken))
        if not identifiers:
            return None

        message = self.build_message(identifiers)
        if not self._config.enabled:
            logger.info(f"Alert dispatch disabled. Would post: {message}")
            return None

        logger.info(f"Posting alert for {len(identifiers)} newly broken identifier(s).")
        try:
            response = await retry_with_fixed_delay(
                lambda: self._post(message),
                self._config.retry_policy,
                retry_on=(aiohttp.ClientError, asyncio.TimeoutError, AlertRejectedError),
                description="Alert delivery",
            )
        except RetryExhaustedError as e:
            last_error = e.last_error
            raise ExternalServiceError(
                f"Alert delivery failed after {e.attempts} attempt(s): {describe_error(last_error)}",
                context={
                    "attempts": e.attempts,
                    "status": getattr(last_error, "status", None),
                    "identifiers": len(identifiers),
                },
            ) from last_error

        logger.info("Alert delivered.")
        return response
