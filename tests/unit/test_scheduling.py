"""
Tests for the sync scheduler.
"""

import asyncio

import pytest

from subly_sync.scheduling import POLL_JOB_ID, UPLOAD_JOB_ID, SyncScheduler


async def noop():
    return None


class TestSyncScheduler:
    """Tests for SyncScheduler job management."""

    @pytest.mark.asyncio
    async def test_not_started_until_needed(self):
        scheduler = SyncScheduler()

        assert scheduler.running is False
        assert scheduler.is_polling() is False
        scheduler.stop_polling()
        scheduler.cancel_upload()
        scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_polling_replaces_existing_job(self):
        scheduler = SyncScheduler(poll_interval_seconds=120)
        try:
            scheduler.start_polling(noop)
            scheduler.start_polling(noop)

            jobs = scheduler._scheduler.get_jobs()
            assert [job.id for job in jobs] == [POLL_JOB_ID]
            assert jobs[0].trigger.interval.total_seconds() == 120
            assert jobs[0].max_instances == 1
            assert jobs[0].coalesce is True
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_stop_polling(self):
        scheduler = SyncScheduler()
        try:
            scheduler.start_polling(noop)
            scheduler.stop_polling()
            scheduler.stop_polling()

            assert scheduler.is_polling() is False
            assert scheduler.running is True
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_upload_slot_is_single(self):
        scheduler = SyncScheduler(upload_debounce_seconds=60)
        try:
            scheduler.schedule_upload(noop)
            first_run = scheduler._scheduler.get_job(UPLOAD_JOB_ID).next_run_time
            await asyncio.sleep(0.01)
            scheduler.schedule_upload(noop)

            jobs = [job for job in scheduler._scheduler.get_jobs() if job.id == UPLOAD_JOB_ID]
            assert len(jobs) == 1
            assert jobs[0].next_run_time > first_run
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_cancel_upload(self):
        scheduler = SyncScheduler()
        try:
            scheduler.schedule_upload(noop)
            assert scheduler.has_pending_upload() is True

            scheduler.cancel_upload()
            assert scheduler.has_pending_upload() is False
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_debounced_upload_fires_once(self):
        calls = []

        async def upload():
            calls.append(1)

        scheduler = SyncScheduler()
        try:
            scheduler.schedule_upload(upload, delay=0.05)
            scheduler.schedule_upload(upload, delay=0.05)

            for _ in range(100):
                if calls:
                    break
                await asyncio.sleep(0.02)
            await asyncio.sleep(0.05)

            assert calls == [1]
            assert scheduler.has_pending_upload() is False
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_allows_restart(self):
        scheduler = SyncScheduler()
        scheduler.start_polling(noop)
        scheduler.shutdown()

        assert scheduler.running is False
        assert scheduler.is_polling() is False

        try:
            scheduler.start_polling(noop)
            assert scheduler.is_polling() is True
        finally:
            scheduler.shutdown()
