"""
Push Scheduler

Background worker that pushes the merged tracker list into the daemon on a
fixed interval.

Features:
- Async loop started and stopped from the FastAPI lifespan
- Optional immediate run on startup
- Graceful shutdown support
- Every run recorded (success or failure) for the health endpoint
- Failures logged and recorded, never raised out of the loop
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from trackarr.processors.pipeline import TrackerPipeline
from trackarr.services.exceptions import TrackarrError
from trackarr.services.structured_logging import CorrelationContext, generate_request_id

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds').replace("+00:00", "Z")


@dataclass
class ScheduledRunRecord:
    """Outcome of one scheduled push."""
    run_id: str
    started_at: str
    finished_at: Optional[str] = None
    success: bool = False
    tracker_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class PushScheduler:
    """
    Periodic push worker.

    Args:
        pipeline: Pipeline used for every run
        interval: Seconds between runs
        run_on_startup: Run once immediately when started
        enabled: Whether the scheduler is enabled
    """

    def __init__(
        self,
        pipeline: TrackerPipeline,
        interval: float = 86400.0,
        run_on_startup: bool = False,
        enabled: bool = True
    ):
        self.pipeline = pipeline
        self.interval = interval
        self.run_on_startup = run_on_startup
        self.enabled = enabled and interval > 0
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._run_count = 0
        self.last_run: Optional[ScheduledRunRecord] = None

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            logger.warning("Push scheduler already running")
            return

        if not self.enabled:
            logger.info("Push scheduler is disabled")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Push scheduler started (interval={self.interval:.0f}s)")

    async def stop(self) -> None:
        """Stop the scheduler loop gracefully."""
        if not self._running:
            return

        logger.info("Stopping push scheduler...")
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Push scheduler stopped")

    async def _loop(self) -> None:
        """Main scheduler loop."""
        if self.run_on_startup:
            await self.run_once()

        while self._running:
            try:
                await asyncio.sleep(self.interval)
                await self.run_once()
            except asyncio.CancelledError:
                break

    async def run_once(self) -> ScheduledRunRecord:
        """
        Execute one scheduled push and record its outcome.

        Returns:
            The ScheduledRunRecord for this run
        """
        record = ScheduledRunRecord(run_id=generate_request_id(), started_at=_utcnow())
        self._run_count += 1

        with CorrelationContext(request_id=record.run_id, trigger="scheduled"):
            logger.info(f"⏰ Scheduled push {record.run_id} started")
            try:
                outcome = await self.pipeline.push(scheduled=True)
                record.success = True
                record.tracker_count = outcome.tracker_count
                logger.info(
                    f"✓ Scheduled push {record.run_id} done: "
                    f"{outcome.tracker_count} tracker(s) delivered"
                )
            except TrackarrError as e:
                record.error = str(e)
                logger.error(f"✗ Scheduled push {record.run_id} failed: {e}")
            except Exception as e:
                record.error = f"{type(e).__name__}: {e}"
                logger.exception(f"✗ Scheduled push {record.run_id} crashed: {record.error}")
            finally:
                record.finished_at = _utcnow()

        self.last_run = record
        return record

    @property
    def is_running(self) -> bool:
        """Check if the scheduler loop is running."""
        return self._running

    def get_status(self) -> dict:
        """Get scheduler status."""
        return {
            "running": self._running,
            "enabled": self.enabled,
            "interval": self.interval,
            "run_on_startup": self.run_on_startup,
            "run_count": self._run_count,
            "last_run": self.last_run.to_dict() if self.last_run else None,
        }
