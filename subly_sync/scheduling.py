"""
Background jobs for the sync core using APScheduler.

Two jobs at most exist at any time: the repeating remote check and the
single debounced auto-upload slot. Re-arming either replaces the existing
job instead of adding another.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

POLL_JOB_ID = "sync-poll"
UPLOAD_JOB_ID = "sync-auto-upload"

JobFunc = Callable[[], Awaitable[object]]


class SyncScheduler:
    """Owns the poll timer and the pending-upload slot."""

    def __init__(self, poll_interval_seconds: int = 120, upload_debounce_seconds: float = 5.0):
        """
        Args:
            poll_interval_seconds: Interval between remote checks
            upload_debounce_seconds: Quiet period before an automatic upload
        """
        self.poll_interval_seconds = poll_interval_seconds
        self.upload_debounce_seconds = upload_debounce_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    def _ensure_started(self) -> AsyncIOScheduler:
        # Created lazily so it binds to the event loop that is running now
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(timezone="UTC")
        if not self._scheduler.running:
            self._scheduler.start()
            logger.debug("Sync scheduler started")
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start_polling(self, func: JobFunc) -> None:
        """(Re)arm the repeating remote check."""
        scheduler = self._ensure_started()
        scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(seconds=self.poll_interval_seconds, timezone="UTC"),
            id=POLL_JOB_ID,
            name="Remote sync check",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info(f"Background sync check every {self.poll_interval_seconds}s")

    def stop_polling(self) -> None:
        self._remove(POLL_JOB_ID)

    def is_polling(self) -> bool:
        return self._get(POLL_JOB_ID) is not None

    def schedule_upload(self, func: JobFunc, delay: Optional[float] = None) -> None:
        """Arm the upload slot, pushing back any upload that is already waiting."""
        scheduler = self._ensure_started()
        delay = self.upload_debounce_seconds if delay is None else delay
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        scheduler.add_job(
            func=func,
            trigger=DateTrigger(run_date=run_date, timezone="UTC"),
            id=UPLOAD_JOB_ID,
            name="Debounced sync upload",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=60,
        )
        logger.debug(f"Auto-upload scheduled in {delay}s")

    def cancel_upload(self) -> None:
        self._remove(UPLOAD_JOB_ID)

    def has_pending_upload(self) -> bool:
        return self._get(UPLOAD_JOB_ID) is not None

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.debug("Sync scheduler stopped")
        self._scheduler = None

    def _get(self, job_id: str):
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(job_id)

    def _remove(self, job_id: str) -> None:
        if self._scheduler is None:
            return
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            pass
