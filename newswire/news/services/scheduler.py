"""
Ingestion scheduler
Runs the ingestion job once at startup, then at minute 0 of every hour,
and spawns fire-and-forget runs for the manual trigger.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional, Set

import structlog

from .ingestion_service import IngestionRunResult, IngestionService

logger = structlog.get_logger(__name__)


def seconds_until_next_hour(now: datetime) -> float:
    next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (next_hour - now).total_seconds()


class IngestionScheduler:

    def __init__(self, service: IngestionService):
        self.service = service
        self.last_result: Optional[IngestionRunResult] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._triggered: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self, run_immediately: bool = True) -> None:
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self._run_forever(run_immediately))
        logger.info("ingestion_schedule_started", run_immediately=run_immediately, cron="0 * * * *")

    async def stop(self) -> None:
        tasks = list(self._triggered)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._triggered.clear()
        logger.info("ingestion_schedule_stopped")

    def trigger(self) -> bool:
        """Start an ingestion run in the background. Returns False if one is already active."""
        # A triggered task only takes the service lock once it starts running
        pending = any(not task.done() for task in self._triggered)
        if self.service.is_running or pending:
            logger.info("ingestion_trigger_ignored", reason="run already in progress")
            return False

        task = asyncio.create_task(self._run_once(source="manual"))
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
        return True

    async def _run_forever(self, run_immediately: bool) -> None:
        if run_immediately:
            await self._run_once(source="startup")

        while True:
            delay = seconds_until_next_hour(datetime.now())
            await asyncio.sleep(delay)
            await self._run_once(source="schedule")

    async def _run_once(self, source: str) -> Optional[IngestionRunResult]:
        try:
            result = await self.service.run()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("ingestion_run_crashed", source=source, error=str(e), exc_info=e)
            return None

        if not result.skipped:
            self.last_result = result
        return result
