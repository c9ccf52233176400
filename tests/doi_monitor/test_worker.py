"""
Unit tests for the BatchRunner class.

These tests verify that the runner returns one result per identifier in input
order, bounds the number of concurrent probes, turns unexpected probe failures
into unhealthy results, and skips identifiers once the cycle budget is spent.

The tests follow the Arrange-Act-Assert (AAA) pattern.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List

import pytest

from doi_monitor.config import CycleConfig
from doi_monitor.contracts import IdentifierProber
from doi_monitor.domain import ProbeResult
from doi_monitor.worker import SKIPPED_ERROR, BatchRunner

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


class _FakeProber(IdentifierProber):
    """Answers healthy after an optional per-identifier delay and records concurrency."""

    def __init__(self, delays: Dict[str, float] = None, failing: Iterable[str] = ()) -> None:
        self.delays = delays or {}
        self.failing = set(failing)
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, identifier: str) -> ProbeResult:
        self.calls.append(identifier)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(identifier, 0))
            if identifier in self.failing:
                raise RuntimeError("kaboom")
            return ProbeResult(identifier, True, 200, f"https://publisher.example/{identifier}", None, NOW)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_run_batch_should_return_results_in_input_order() -> None:
    """
    Tests that results line up with the input even when later probes finish first.
    """
    # Arrange
    prober = _FakeProber(delays={"10.1/a": 0.05, "10.1/b": 0.02, "10.1/c": 0.0})
    runner = BatchRunner(prober, CycleConfig(concurrency=3))

    # Act
    results = await runner.run_batch(["10.1/a", "10.1/b", "10.1/c"])

    # Assert
    assert [result.identifier for result in results] == ["10.1/a", "10.1/b", "10.1/c"]
    assert all(result.healthy for result in results)


@pytest.mark.asyncio
async def test_run_batch_with_no_identifiers_should_not_probe() -> None:
    prober = _FakeProber()
    runner = BatchRunner(prober, CycleConfig())

    results = await runner.run_batch([])

    assert results == []
    assert prober.calls == []


@pytest.mark.asyncio
async def test_run_batch_should_check_one_at_a_time_by_default() -> None:
    """
    Tests the default concurrency of 1.
    """
    # Arrange
    identifiers = [f"10.1/{i}" for i in range(5)]
    prober = _FakeProber(delays={identifier: 0.01 for identifier in identifiers})
    runner = BatchRunner(prober, CycleConfig())

    # Act
    await runner.run_batch(identifiers)

    # Assert
    assert prober.calls == identifiers
    assert prober.max_in_flight == 1


@pytest.mark.asyncio
async def test_run_batch_should_not_exceed_configured_concurrency() -> None:
    """
    Tests that at most `concurrency` probes run at the same time.
    """
    # Arrange
    identifiers = [f"10.1/{i}" for i in range(8)]
    prober = _FakeProber(delays={identifier: 0.02 for identifier in identifiers})
    runner = BatchRunner(prober, CycleConfig(concurrency=3))

    # Act
    results = await runner.run_batch(identifiers)

    # Assert
    assert len(results) == 8
    assert prober.max_in_flight == 3


@pytest.mark.asyncio
async def test_unexpected_probe_failure_becomes_an_unhealthy_result() -> None:
    """
    Tests that an exception from one probe does not abort the batch.
    """
    # Arrange
    prober = _FakeProber(failing={"10.1/b"})
    runner = BatchRunner(prober, CycleConfig(concurrency=2))

    # Act
    results = await runner.run_batch(["10.1/a", "10.1/b", "10.1/c"])

    # Assert
    broken = results[1]
    assert broken.identifier == "10.1/b"
    assert broken.healthy is False
    assert broken.http_status is None
    assert broken.error == "internal error: kaboom"
    assert broken.skipped is False
    assert results[0].healthy and results[2].healthy


class _CancellingProber(_FakeProber):
    """Raises CancelledError from inside the probe for the listed identifiers."""

    def __init__(self, cancelling: Iterable[str]) -> None:
        super().__init__()
        self.cancelling = set(cancelling)

    async def probe(self, identifier: str) -> ProbeResult:
        if identifier in self.cancelling:
            self.calls.append(identifier)
            raise asyncio.CancelledError()
        return await super().probe(identifier)


@pytest.mark.asyncio
async def test_cancelled_probe_should_not_stop_the_remaining_checks() -> None:
    """
    Tests that a CancelledError raised by one probe is recorded and the batch carries on.
    """
    # Arrange
    prober = _CancellingProber(cancelling={"10.1/bad"})
    runner = BatchRunner(prober, CycleConfig(concurrency=1))

    # Act
    results = await asyncio.wait_for(runner.run_batch(["10.1/bad", "10.1/good"]), timeout=2)

    # Assert
    assert prober.calls == ["10.1/bad", "10.1/good"]
    assert results[0].healthy is False
    assert results[0].skipped is False
    assert results[0].error == "internal error: CancelledError"
    assert results[1].healthy is True


@pytest.mark.asyncio
async def test_cancelling_run_batch_should_stop_its_workers() -> None:
    # Arrange
    prober = _FakeProber(delays={"10.1/a": 10})
    runner = BatchRunner(prober, CycleConfig(concurrency=1))
    batch = asyncio.create_task(runner.run_batch(["10.1/a", "10.1/b"]))
    await asyncio.sleep(0.05)

    # Act
    batch.cancel()

    # Assert
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(batch, timeout=2)
    assert prober.calls == ["10.1/a"]
    assert prober.in_flight == 0


@pytest.mark.asyncio
async def test_identifiers_left_when_budget_runs_out_are_skipped() -> None:
    """
    Tests that once the cycle budget is spent the remaining identifiers are not probed.
    """
    # Arrange
    identifiers = ["10.1/a", "10.1/b", "10.1/c"]
    prober = _FakeProber(delays={identifier: 0.2 for identifier in identifiers})
    runner = BatchRunner(prober, CycleConfig(concurrency=1, cycle_budget_seconds=0.05))

    # Act
    results = await runner.run_batch(identifiers)

    # Assert
    assert prober.calls == ["10.1/a"]
    assert results[0].healthy is True
    for result in results[1:]:
        assert result.skipped is True
        assert result.healthy is False
        assert result.error == SKIPPED_ERROR
    assert [result.identifier for result in results] == identifiers


@pytest.mark.parametrize(
    "config",
    [CycleConfig(concurrency=0), CycleConfig(concurrency=-2), CycleConfig(cycle_budget_seconds=-1)],
)
def test_runner_should_reject_invalid_configuration(config: CycleConfig) -> None:
    with pytest.raises(ValueError):
        BatchRunner(_FakeProber(), config)
