"""
Cycle orchestration for the DOI monitoring system.

This module provides the CycleOrchestrator class, which runs one full pass
over the monitored identifiers:

1. Snapshot the prior status of every identifier before anything is written.
2. Probe every identifier through the batch runner.
3. Merge each result with its prior status and persist it.
4. Work out which identifiers are newly broken against the snapshot.
5. Send one alert for them, without letting a delivery failure fail the cycle.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .alerting.dispatcher import AlertDispatcher
from .contracts import MonitoringList, StatusStore
from .domain import CycleSummary, StatusRecord
from .errors import DoiMonitorError, ExternalServiceError, MalformedStatusError, PersistenceError
from .status import merge_status
from .transitions import detect_newly_broken
from .worker import BatchRunner

# Module logger
logger = logging.getLogger(__name__)


class CycleOrchestrator:
    """
    Ties the batch runner, the status merger, the transition detector and the
    alert dispatcher together for one invocation.

    A cycle fails only when persisted state cannot be read or written; probe
    failures are ordinary results and alert failures are reported in the
    summary.
    """

    def __init__(
        self,
        runner: BatchRunner,
        status_store: StatusStore,
        dispatcher: AlertDispatcher,
    ) -> None:
        """
        Args:
            runner: Checks the identifiers of a cycle.
            status_store: Where each identifier's StatusRecord lives.
            dispatcher: Sends the alert for newly broken identifiers.
        """
        self._runner: BatchRunner = runner
        self._status_store: StatusStore = status_store
        self._dispatcher: AlertDispatcher = dispatcher

    async def _read_prior(
        self, identifiers: Sequence[str]
    ) -> Tuple[Dict[str, Optional[StatusRecord]], List[str]]:
        prior: Dict[str, Optional[StatusRecord]] = {}
        corrupt: List[str] = []
        for identifier in identifiers:
            try:
                prior[identifier] = await self._status_store.get(identifier)
            except MalformedStatusError as e:
                logger.warning(f"Ignoring corrupt status record of {identifier}: {e}")
                prior[identifier] = None
                corrupt.append(identifier)
            except Exception as e:
                raise PersistenceError(
                    f"Could not read the status of {identifier}: {e}",
                    context={"identifier": identifier},
                ) from e
        return prior, corrupt

    async def _persist(self, identifier: str, record: StatusRecord) -> None:
        try:
            await self._status_store.put(identifier, record)
        except Exception as e:
            raise PersistenceError(
                f"Could not persist the status of {identifier}: {e}",
                context={"identifier": identifier},
            ) from e

    async def _notify(self, newly_broken: Tuple[str, ...]) -> Tuple[bool, Optional[str]]:
        try:
            response = await self._dispatcher.dispatch(newly_broken)
        except ExternalServiceError as e:
            logger.error(f"Notification failed: {e}")
            return False, str(e)
        except Exception as e:
            logger.exception(f"Unexpected error while notifying: {e}")
            return False, f"internal error: {e}"
        return response is not None, None

    async def run_cycle(self, identifiers: Sequence[str]) -> CycleSummary:
        """
        Runs one check cycle over the monitored identifiers.

        Args:
            identifiers: The monitoring list, in order; duplicates are ignored.

        Returns:
            CycleSummary: Counts, the per-identifier results and the notification outcome.

        Raises:
            PersistenceError: If the status store cannot be read or written.
        """
        identifiers = list(dict.fromkeys(identifiers))
        if not identifiers:
            logger.info("No DOIs to check")
            return CycleSummary(checked_count=0, newly_broken_count=0, results=[])

        # The snapshot must be complete before any merge of this cycle is written.
        prior, corrupt = await self._read_prior(identifiers)

        results = await self._runner.run_batch(identifiers)
        checked = [result for result in results if not result.skipped]

        for result in checked:
            record = merge_status(prior.get(result.identifier), result)
            await self._persist(result.identifier, record)

        report = detect_newly_broken(checked, prior)

        notification_sent, notification_error = False, None
        if report.newly_broken:
            notification_sent, notification_error = await self._notify(report.newly_broken)

        summary = CycleSummary(
            checked_count=len(checked),
            newly_broken_count=len(report.newly_broken),
            results=results,
            newly_broken=report.newly_broken,
            healthy_count=report.healthy,
            broken_count=report.broken,
            skipped_count=len(results) - len(checked),
            recovered=report.recovered,
            corrupt_identifiers=tuple(corrupt),
            notification_sent=notification_sent,
            notification_error=notification_error,
        )
        logger.info(
            f"Checked {summary.checked_count} DOIs, {summary.newly_broken_count} newly broken"
        )
        return summary

    async def run(self, monitoring_list: MonitoringList) -> CycleSummary:
        """
        Reads the monitoring list and runs one cycle over it.

        Raises:
            PersistenceError: If the monitoring list or the status store fails.
        """
        try:
            identifiers = await monitoring_list.list_identifiers()
        except DoiMonitorError:
            raise
        except Exception as e:
            raise PersistenceError(f"Could not read the monitoring list: {e}") from e
        return await self.run_cycle(identifiers)
