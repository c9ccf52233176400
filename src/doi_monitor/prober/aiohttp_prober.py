"""
Identifier prober implementation using the aiohttp library.

This module provides an implementation of the IdentifierProber interface that
resolves a DOI through its resolver with lightweight HEAD requests. Network
errors and timeouts are retried with a fixed delay; every failure path ends up
in the returned ProbeResult.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import NamedTuple

import aiohttp

from doi_monitor.config import ProbeConfig
from doi_monitor.contracts import IdentifierProber
from doi_monitor.domain import ProbeResult, resolve_url
from doi_monitor.errors import RetryExhaustedError, describe_error
from doi_monitor.retry import retry_with_fixed_delay

# Module logger
logger = logging.getLogger(__name__)

# Errors worth another attempt. An HTTP response of any status is a definitive answer.
RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


def is_healthy_status(status: int) -> bool:
    """A terminal status in [200, 400) means the identifier resolves."""
    return 200 <= status < 400


class _Response(NamedTuple):
    status: int
    url: str


class AiohttpProber(IdentifierProber):
    """
    A concrete implementation of IdentifierProber using the aiohttp library.

    Each attempt issues two HEAD requests: one against the resolver URL and a
    second against the URL the first one ended up at. The status of the second
    request is the one recorded, since the first hop may only report a
    provisional status.
    """

    def __init__(self, session: aiohttp.ClientSession, config: ProbeConfig) -> None:
        """
        Initializes the prober with a shared aiohttp ClientSession.

        Args:
            session: An active aiohttp.ClientSession to be used for requests.
            config: Timeout, retry and redirect settings.

        Raises:
            ValueError: If the configuration is invalid.
        """
        if config.timeout_ms <= 0:
            raise ValueError("timeout_ms must be a positive integer.")
        if config.max_retries < 0:
            raise ValueError("max_retries must be a non-negative integer.")
        if config.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be a non-negative integer.")

        self._session: aiohttp.ClientSession = session
        self._config: ProbeConfig = config
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_ms / 1000)

    async def _head(self, url: str) -> _Response:
        async with self._session.head(
            url,
            allow_redirects=self._config.follow_redirects,
            timeout=self._timeout,
            headers={"User-Agent": self._config.user_agent},
        ) as response:
            return _Response(status=response.status, url=str(response.url))

    async def _attempt(self, url: str) -> _Response:
        first = await self._head(url)
        return await self._head(first.url)

    async def probe(self, identifier: str) -> ProbeResult:
        """
        Checks one identifier, retrying on network errors and timeouts.

        Args:
            identifier: The normalized DOI to check.

        Returns:
            ProbeResult: healthy=True if the terminal status is in [200, 400);
                when every attempt failed, healthy=False with http_status=None
                and the last failure message.
        """
        url = resolve_url(identifier, self._config.resolver_base_url)
        logger.debug(f"Starting probe for {identifier} at {url}")

        try:
            response = await retry_with_fixed_delay(
                lambda: self._attempt(url),
                self._config.retry_policy,
                retry_on=RETRYABLE_ERRORS,
                description=f"Probe of {identifier}",
            )
        except RetryExhaustedError as e:
            logger.warning(f"Probe of {identifier} failed after {e.attempts} attempt(s)")
            return ProbeResult(
                identifier=identifier,
                healthy=False,
                http_status=None,
                final_url=None,
                error=describe_error(e.last_error),
                checked_at=datetime.now(timezone.utc),
            )

        healthy = is_healthy_status(response.status)
        logger.debug(
            f"Probed {identifier}: status {response.status} at {response.url} "
            f"({'healthy' if healthy else 'broken'})"
        )
        return ProbeResult(
            identifier=identifier,
            healthy=healthy,
            http_status=response.status,
            final_url=response.url,
            error=None if healthy else f"HTTP {response.status}",
            checked_at=datetime.now(timezone.utc),
        )
