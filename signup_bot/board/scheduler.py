"""
Periodic board refresh using APScheduler.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..data.base import TrainingRepository
from ..exceptions import ConfigurationError, create_error_context
from ..flow_logging import FlowInfo, FlowKind, LogTrace, OperatorLog, run_flow
from ..gateway.base import ChatGateway
from .reconciler import BoardReconciler

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "board_refresh"


def status_text(open_count: int) -> str:
    noun = "training" if open_count == 1 else "trainings"
    return f"{open_count} {noun} available"


class BoardScheduler:
    """Runs a board refresh and a presence update on a fixed interval."""

    def __init__(self,
                 reconciler: BoardReconciler,
                 gateway: ChatGateway,
                 trainings: TrainingRepository,
                 oplog: Optional[OperatorLog] = None,
                 interval_seconds: int = 300):
        self.reconciler = reconciler
        self.gateway = gateway
        self.trainings = trainings
        self.oplog = oplog
        self.interval_seconds = interval_seconds

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler and register the refresh job."""
        if self._running:
            logger.warning("Board scheduler already running")
            return

        try:
            self.scheduler.add_job(
                func=self.run_once,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=REFRESH_JOB_ID,
                name="Board refresh",
                replace_existing=True,
                coalesce=True,
                max_instances=1
            )
            self.scheduler.start()
            self._running = True
        except Exception as e:
            logger.error(f"Failed to start board scheduler: {e}")
            raise ConfigurationError(
                message=f"Failed to start board scheduler: {str(e)}",
                error_code="SCHEDULER_START_FAILED",
                context=create_error_context(operation="board_scheduler_start"),
                cause=e
            )

        logger.info(f"Board scheduler started, refreshing every {self.interval_seconds}s")

    async def stop(self, wait: bool = True) -> None:
        if not self._running:
            return
        self.scheduler.shutdown(wait=wait)
        self._running = False
        logger.info("Board scheduler stopped")

    async def run_once(self) -> None:
        """One refresh pass, also used at startup."""
        await run_flow(
            FlowInfo(FlowKind.AUTOMATIC, "Board refresh"),
            self._refresh,
            oplog=self.oplog,
            report_success=False
        )

    async def _refresh(self, trace: LogTrace) -> None:
        report = await self.reconciler.refresh()
        trace.step(f"Board refreshed: {report.summary()}")

        trainings = await self.trainings.list_active_trainings()
        text = status_text(sum(1 for t in trainings if t.is_open))
        await self.gateway.set_status(text)
        trace.step(f"Status set to '{text}'")
