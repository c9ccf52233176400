"""
Main entry point for the DOI monitoring application.

This module sets up logging, creates the HTTP session and the database pool,
wires the check-cycle components together and then, depending on the mode,
runs a single cycle (on-demand trigger), runs cycles on a fixed interval
(scheduled trigger), or prints the persisted status of every monitored DOI.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import aiohttp
import asyncpg

from doi_monitor.alerting.dispatcher import AlertDispatcher
from doi_monitor.config import MonitoringContext, get_context
from doi_monitor.config.db_config import initiate_db_pool
from doi_monitor.config.http_config import get_http_session
from doi_monitor.config.logging_config import configure_logging
from doi_monitor.contracts import MonitoringList
from doi_monitor.cycle import CycleOrchestrator
from doi_monitor.errors import DoiMonitorError, PersistenceError
from doi_monitor.prober.aiohttp_prober import AiohttpProber
from doi_monitor.reporting import build_status_report, report_to_dict
from doi_monitor.store.asyncpg_store import PostgresMonitoringList, PostgresStatusStore
from doi_monitor.store.memory_store import StaticMonitoringList
from doi_monitor.worker import BatchRunner

logger: logging.Logger = logging.getLogger(__name__)


def build_orchestrator(
    context: MonitoringContext,
    http_session: aiohttp.ClientSession,
    status_store: PostgresStatusStore,
) -> CycleOrchestrator:
    """Creates the prober, batch runner and dispatcher from the context."""
    prober = AiohttpProber(session=http_session, config=context.probe_config())
    return CycleOrchestrator(
        runner=BatchRunner(prober=prober, config=context.cycle_config()),
        status_store=status_store,
        dispatcher=AlertDispatcher(session=http_session, config=context.alert_config()),
    )


async def run_schedule(
    orchestrator: CycleOrchestrator, monitoring_list: MonitoringList, interval: int
) -> None:
    """
    Runs a cycle every `interval` seconds until cancelled.

    A failed cycle is logged and the next one still runs on time.
    """
    while True:
        try:
            await orchestrator.run(monitoring_list)
        except PersistenceError as e:
            logger.error(f"Cycle failed: {e}")
        except Exception as e:
            logger.exception(f"Cycle failed with unexpected error: {e}")
        logger.info(f"Next cycle in {interval} seconds.")
        await asyncio.sleep(interval)


async def main(context: MonitoringContext) -> int:
    """
    Set up and run the DOI monitoring application.

    Args:
        context: Configuration context containing all application settings.

    Returns:
        int: The process exit code; non-zero when a cycle failed fatally.
    """
    logger.info(f"Starting application in {context.mode} mode...")

    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")
    db_pool: Optional[asyncpg.pool.Pool] = None

    try:
        db_pool = await initiate_db_pool(context)
        logger.info("initialized: db_pool")

        status_store = PostgresStatusStore(db_pool)
        monitoring_list: MonitoringList = (
            StaticMonitoringList(context.identifiers)
            if context.identifiers
            else PostgresMonitoringList(db_pool)
        )

        if context.mode == "report":
            try:
                identifiers = await monitoring_list.list_identifiers()
            except DoiMonitorError:
                raise
            except Exception as e:
                raise PersistenceError(f"Could not read the monitoring list: {e}") from e
            report = await build_status_report(identifiers, status_store)
            print(json.dumps(report_to_dict(report), indent=2))
            return 0

        orchestrator = build_orchestrator(context, http_session, status_store)
        if context.mode == "schedule":
            await run_schedule(orchestrator, monitoring_list, context.check_interval)
            return 0

        summary = await orchestrator.run(monitoring_list)
        print(json.dumps(summary.to_dict(), indent=2))
        return 0

    except PersistenceError as e:
        logger.error(f"Cycle failed: {e}")
        return 1
    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
        return 0
    finally:
        logger.info("Shutting down resources...")
        await http_session.close()
        if db_pool:
            await db_pool.close()
        logger.info("Shutdown complete.")


def run() -> None:
    try:
        # Parse command-line arguments and environment variables
        doi_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(doi_monitor_context)

        sys.exit(asyncio.run(main(doi_monitor_context)))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")


if __name__ == "__main__":
    run()
