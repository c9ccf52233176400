"""
HTTP client configuration module for the DOI monitoring system.

A single aiohttp ClientSession is shared by the prober and the alert
dispatcher for the lifetime of the process.
"""

import logging

import aiohttp

from doi_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create an HTTP client session identifying itself with the configured user agent.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: The shared session.
    """
    logger.debug(f"Creating HTTP session with user agent {context.user_agent!r}")
    return aiohttp.ClientSession(headers={"User-Agent": context.user_agent})
