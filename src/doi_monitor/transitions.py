"""
Transition detection for the DOI monitoring system.

An identifier is "newly broken" when its current result is unhealthy and the
record read before this cycle's merge was not unhealthy (healthy, never
checked, or absent). Staying broken does not count again, which is what keeps
alerts deduplicated across cycles.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from .domain import ProbeResult, StatusRecord, TransitionReport


def is_newly_broken(result: ProbeResult, prior: Optional[StatusRecord]) -> bool:
    if result.healthy:
        return False
    return prior is None or prior.healthy is not False


def is_recovered(result: ProbeResult, prior: Optional[StatusRecord]) -> bool:
    return result.healthy and prior is not None and prior.healthy is False


def detect_newly_broken(
    results: Iterable[ProbeResult],
    prior_statuses: Mapping[str, Optional[StatusRecord]],
) -> TransitionReport:
    """
    Classifies each result against the identifier's status before this cycle.

    Skipped results are not checks and are left out of every count.

    Args:
        results: The probe results of this cycle.
        prior_statuses: Status per identifier as read before any merge of this
            cycle was written; missing keys mean never checked.

    Returns:
        TransitionReport: Newly broken and recovered identifiers plus counts.
    """
    newly_broken: Dict[str, None] = {}
    recovered: Dict[str, None] = {}
    checked: List[ProbeResult] = [result for result in results if not result.skipped]

    for result in checked:
        prior = prior_statuses.get(result.identifier)
        if is_newly_broken(result, prior):
            newly_broken[result.identifier] = None
        elif is_recovered(result, prior):
            recovered[result.identifier] = None

    healthy = sum(1 for result in checked if result.healthy)
    return TransitionReport(
        newly_broken=tuple(newly_broken),
        recovered=tuple(recovered),
        total=len(checked),
        healthy=healthy,
        broken=len(checked) - healthy,
    )

