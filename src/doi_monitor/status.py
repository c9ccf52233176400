"""
Status merging for the DOI monitoring system.

merge_status folds a fresh ProbeResult into the identifier's persisted
StatusRecord. It is a pure function: the latest-check fields are overwritten
while the milestone timestamps are written once and then carried forward
unchanged, so concurrent cycles can only race on last-write-wins fields.
"""

from typing import Optional

from .domain import ProbeResult, StatusRecord


def merge_status(previous: Optional[StatusRecord], result: ProbeResult) -> StatusRecord:
    """
    Combines the prior record of an identifier with a new probe result.

    Args:
        previous: The record as read before this cycle, or None if never checked.
        result: The probe result for the same identifier.

    Returns:
        StatusRecord: The record to persist.
    """
    if previous is None:
        first_checked_at = result.checked_at
        first_failure_at = None
        first_success_at = None
    else:
        # Records written before milestones existed carry no first_checked_at.
        first_checked_at = previous.first_checked_at or result.checked_at
        first_failure_at = previous.first_failure_at
        first_success_at = previous.first_success_at

    if result.healthy:
        if first_success_at is None:
            first_success_at = result.checked_at
    elif first_failure_at is None:
        first_failure_at = result.checked_at

    return StatusRecord(
        healthy=result.healthy,
        http_status=result.http_status,
        error=None if result.healthy else result.error,
        last_checked_at=result.checked_at,
        first_checked_at=first_checked_at,
        first_failure_at=first_failure_at,
        first_success_at=first_success_at,
    )
