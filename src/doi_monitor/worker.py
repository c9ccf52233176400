"""
Batch runner for the DOI monitoring system.

This module provides the BatchRunner class, which checks every identifier of a
cycle through a fixed-size pool of worker tasks fed from a queue. Results are
returned in input order regardless of completion order, and a failure while
checking one identifier never aborts the batch.
"""

import asyncio
import logging
from asyncio import Queue, Task
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from .config import CycleConfig
from .contracts import IdentifierProber
from .domain import ProbeResult
from .errors import describe_error

SKIPPED_ERROR = "skipped: cycle budget exhausted"


def internal_error_result(identifier: str, error: BaseException) -> ProbeResult:
    """Converts an unexpected exception raised while probing into an unhealthy result."""
    return ProbeResult(
        identifier=identifier,
        healthy=False,
        http_status=None,
        final_url=None,
        error=f"internal error: {describe_error(error)}",
        checked_at=datetime.now(timezone.utc),
    )


def skipped_result(identifier: str) -> ProbeResult:
    """A placeholder for an identifier that was never checked because time ran out."""
    return ProbeResult(
        identifier=identifier,
        healthy=False,
        http_status=None,
        final_url=None,
        error=SKIPPED_ERROR,
        checked_at=datetime.now(timezone.utc),
        skipped=True,
    )


class BatchRunner:
    """
    Runs the prober over a list of identifiers with bounded concurrency.

    With a concurrency of 1 (the default) identifiers are checked strictly one
    at a time, which keeps a single outbound connection open to the resolver.
    """

    def __init__(self, prober: IdentifierProber, config: CycleConfig) -> None:
        """
        Initializes a new BatchRunner instance.

        Args:
            prober: Component that checks a single identifier.
            config: Concurrency and cycle budget settings.

        Raises:
            ValueError: If the configuration is invalid.
        """
        if not isinstance(config.concurrency, int) or config.concurrency < 1:
            raise ValueError("concurrency must be a positive integer.")
        if config.cycle_budget_seconds < 0:
            raise ValueError("cycle_budget_seconds must not be negative.")

        self._prober: IdentifierProber = prober
        self._concurrency: int = config.concurrency
        self._cycle_budget: float = config.cycle_budget_seconds
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def _check(self, identifier: str, deadline: Optional[float]) -> ProbeResult:
        if deadline is not None and asyncio.get_running_loop().time() >= deadline:
            self._logger.warning(f"Cycle budget exhausted, skipping {identifier}")
            return skipped_result(identifier)

        try:
            return await self._prober.probe(identifier)
        except Exception as e:
            self._logger.exception(f"Probe failed for {identifier} with error: {e}")
            return internal_error_result(identifier, e)

    async def _executor(
        self,
        worker_num: int,
        queue: "Queue[Tuple[int, str]]",
        results: List[Optional[ProbeResult]],
        deadline: Optional[float],
        stopping: asyncio.Event,
    ) -> None:
        """
        Consumer task that checks identifiers taken from the queue.

        A CancelledError raised by the prober while the batch is still running
        is recorded as an internal error for that identifier; only a cancellation
        issued after `stopping` is set ends the worker.

        Args:
            worker_num: The identifier number of this worker task.
            queue: Pending (position, identifier) pairs.
            results: Output slots, filled by position.
            deadline: Event-loop time after which checks are skipped, or None.
            stopping: Set by run_batch before it cancels the workers.
        """
        worker_logger: logging.Logger = logging.getLogger(f"executor-{worker_num}")

        while True:
            try:
                index, identifier = await queue.get()
                try:
                    results[index] = await self._check(identifier, deadline)
                except asyncio.CancelledError as e:
                    if stopping.is_set():
                        raise
                    worker_logger.error(f"Probe for {identifier} was cancelled.")
                    results[index] = internal_error_result(identifier, e)
                finally:
                    queue.task_done()
            except asyncio.CancelledError:
                worker_logger.debug("Stopping.")
                break

    async def run_batch(self, identifiers: Sequence[str]) -> List[ProbeResult]:
        """
        Checks every identifier and returns one result per identifier, in the same order.

        Args:
            identifiers: The identifiers to check.

        Returns:
            List[ProbeResult]: Results aligned with the input sequence.
        """
        if not identifiers:
            return []

        queue: "Queue[Tuple[int, str]]" = Queue()
        for item in enumerate(identifiers):
            queue.put_nowait(item)

        results: List[Optional[ProbeResult]] = [None] * len(identifiers)
        deadline: Optional[float] = None
        if self._cycle_budget > 0:
            deadline = asyncio.get_running_loop().time() + self._cycle_budget

        num_workers = min(self._concurrency, len(identifiers))
        self._logger.info(f"Checking {len(identifiers)} identifiers with {num_workers} workers.")
        stopping = asyncio.Event()
        worker_tasks: List[Task] = [
            asyncio.create_task(self._executor(i + 1, queue, results, deadline, stopping))
            for i in range(num_workers)
        ]

        try:
            await queue.join()
        finally:
            stopping.set()
            for task in worker_tasks:
                task.cancel()
            await asyncio.gather(*worker_tasks, return_exceptions=True)

        return [
            result if result is not None else skipped_result(identifier)
            for identifier, result in zip(identifiers, results)
        ]
