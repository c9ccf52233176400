"""
Domain models for the DOI monitoring system.

This module defines the core data structures used throughout the application:
the result of a single probe, the persisted health history of an identifier,
and the summaries produced by a check cycle. These models serve as the
foundation for the monitoring system's data flow.
"""

from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

DEFAULT_RESOLVER_BASE_URL = "https://doi.org/"


def resolve_url(identifier: str, resolver_base_url: str = DEFAULT_RESOLVER_BASE_URL) -> str:
    """
    Builds the canonical resolvable URL for an identifier.

    Args:
        identifier: A normalized DOI string, e.g. "10.1000/xyz123".
        resolver_base_url: The resolver prefix; a trailing slash is added if missing.

    Returns:
        str: The URL that resolves the identifier.
    """
    if not resolver_base_url.endswith("/"):
        resolver_base_url = f"{resolver_base_url}/"
    return f"{resolver_base_url}{identifier}"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ProbeResult(NamedTuple):
    """
    A data structure holding the result of a single identifier check.

    Produced by the prober, consumed immediately by the status merger and
    the transition detector. It is never persisted as-is.

    Attributes:
        identifier: The DOI that was checked.
        healthy: True if the terminal HTTP status was in [200, 400).
        http_status: The terminal HTTP status, or None if no response was received.
        final_url: The URL the identifier finally resolved to, or None.
        error: A description of the last failure, or None if healthy.
        checked_at: Wall-clock time at which the result was finalized.
        skipped: True if the check never ran because the cycle budget ran out.
    """

    identifier: str
    healthy: bool
    http_status: Optional[int]
    final_url: Optional[str]
    error: Optional[str]
    checked_at: datetime
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "healthy": self.healthy,
            "httpStatus": self.http_status,
            "finalUrl": self.final_url,
            "error": self.error,
            "checkedAt": _isoformat(self.checked_at),
            "skipped": self.skipped,
        }


class StatusRecord(NamedTuple):
    """
    The persisted health history of one identifier.

    The three milestone timestamps (first_checked_at, first_failure_at and
    first_success_at) are written at most once and never change afterwards.
    All other fields reflect the latest check.

    Attributes:
        healthy: Latest health, or None if the identifier was never checked.
        http_status: Latest terminal HTTP status.
        error: Latest failure description, None after a healthy check.
        last_checked_at: Time of the latest check.
        first_checked_at: Time of the first check ever merged.
        first_failure_at: Time of the first unhealthy check, if any.
        first_success_at: Time of the first healthy check, if any.
    """

    healthy: Optional[bool]
    http_status: Optional[int]
    error: Optional[str]
    last_checked_at: Optional[datetime]
    first_checked_at: Optional[datetime]
    first_failure_at: Optional[datetime] = None
    first_success_at: Optional[datetime] = None


class TransitionReport(NamedTuple):
    """
    Classification of one cycle's results against the prior statuses.

    Attributes:
        newly_broken: Identifiers that went from healthy or unknown to broken,
            in result order and without duplicates.
        recovered: Identifiers that went from broken to healthy.
        total: Number of results classified.
        healthy: Number of healthy results.
        broken: Number of unhealthy results.
    """

    newly_broken: Tuple[str, ...]
    recovered: Tuple[str, ...]
    total: int
    healthy: int
    broken: int


class CycleSummary(NamedTuple):
    """
    The outcome of one check cycle, returned to whoever triggered it.

    Attributes:
        checked_count: Number of identifiers actually probed.
        newly_broken_count: Number of identifiers that became broken this cycle.
        results: One ProbeResult per monitored identifier, in list order.
        newly_broken: The newly broken identifiers.
        healthy_count: Number of healthy results.
        broken_count: Number of unhealthy results.
        skipped_count: Number of identifiers skipped because the budget ran out.
        recovered: Identifiers that recovered this cycle.
        corrupt_identifiers: Identifiers whose persisted record could not be decoded.
        notification_sent: True if an alert was delivered to the endpoint.
        notification_error: Why the alert could not be delivered, if it failed.
    """

    checked_count: int
    newly_broken_count: int
    results: List[ProbeResult]
    newly_broken: Tuple[str, ...] = ()
    healthy_count: int = 0
    broken_count: int = 0
    skipped_count: int = 0
    recovered: Tuple[str, ...] = ()
    corrupt_identifiers: Tuple[str, ...] = ()
    notification_sent: bool = False
    notification_error: Optional[str] = None

    @property
    def notification_failed(self) -> bool:
        return self.notification_error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkedCount": self.checked_count,
            "newlyBrokenCount": self.newly_broken_count,
            "newlyBroken": list(self.newly_broken),
            "healthyCount": self.healthy_count,
            "brokenCount": self.broken_count,
            "skippedCount": self.skipped_count,
            "recovered": list(self.recovered),
            "corruptIdentifiers": list(self.corrupt_identifiers),
            "notificationSent": self.notification_sent,
            "notificationError": self.notification_error,
            "results": [result.to_dict() for result in self.results],
        }


class StatusReport(NamedTuple):
    """
    A snapshot of the persisted health of every monitored identifier.

    Attributes:
        statuses: Pairs of (identifier, StatusRecord or None), in list order.
        healthy: Number of identifiers whose latest check was healthy.
        broken: Number of identifiers whose latest check was unhealthy.
        unchecked: Number of identifiers never checked (or with a corrupt record).
        corrupt: Identifiers whose persisted record could not be decoded.
    """

    statuses: List[Tuple[str, Optional[StatusRecord]]]
    healthy: int
    broken: int
    unchecked: int
    corrupt: Tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.statuses)
