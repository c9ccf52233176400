"""
Status reporting over the monitored identifiers.

Builds a read-only snapshot of the persisted health of every monitored
identifier. Corrupt records are surfaced here, as unchecked entries listed in
the report, instead of failing the report.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .contracts import StatusStore
from .domain import StatusRecord, StatusReport
from .errors import MalformedStatusError, PersistenceError
from .serialization import record_to_dict

# Module logger
logger = logging.getLogger(__name__)


async def build_status_report(identifiers: Sequence[str], status_store: StatusStore) -> StatusReport:
    """
    Reads the status of each identifier and aggregates the counts.

    Raises:
        PersistenceError: If the status store cannot be read.
    """
    statuses: List[Tuple[str, Optional[StatusRecord]]] = []
    corrupt: List[str] = []
    for identifier in dict.fromkeys(identifiers):
        try:
            record = await status_store.get(identifier)
        except MalformedStatusError as e:
            logger.warning(f"Corrupt status record of {identifier}: {e}")
            record = None
            corrupt.append(identifier)
        except Exception as e:
            raise PersistenceError(f"Could not read the status of {identifier}: {e}") from e
        statuses.append((identifier, record))

    healthy = sum(1 for _, record in statuses if record is not None and record.healthy is True)
    broken = sum(1 for _, record in statuses if record is not None and record.healthy is False)
    return StatusReport(
        statuses=statuses,
        healthy=healthy,
        broken=broken,
        unchecked=len(statuses) - healthy - broken,
        corrupt=tuple(corrupt),
    )


def report_to_dict(report: StatusReport) -> Dict[str, Any]:
    dois = []
    for identifier, record in report.statuses:
        entry: Dict[str, Any] = {"doi": identifier}
        if record is None:
            entry.update({"healthy": None, "lastCheckedAt": None})
        else:
            entry.update(record_to_dict(record))
        dois.append(entry)
    return {
        "dois": dois,
        "count": report.count,
        "healthy": report.healthy,
        "broken": report.broken,
        "unchecked": report.unchecked,
        "corrupt": list(report.corrupt),
    }
