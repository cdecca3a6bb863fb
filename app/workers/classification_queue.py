"""In-process job queue feeding waste photos to the classification pipeline."""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.database import AsyncSessionLocal
from app.models.enums import WastePhotoStatus
from app.models.waste_photo import WastePhoto
from app.services.waste_classification_service import WasteClassificationService

logger = logging.getLogger(__name__)

JobHandler = Callable[[AsyncSession, uuid.UUID], Awaitable[object]]


async def _classify(db: AsyncSession, photo_id: uuid.UUID) -> object:
    return await WasteClassificationService(db).process_waste_photo(photo_id)


@dataclass
class ClassificationJob:
    waste_photo_id: uuid.UUID
    attempts: int = 0
    last_error: str | None = None
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ClassificationQueue:
    """Completed jobs are dropped; jobs out of attempts stay in ``failed_jobs``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        *,
        handler: JobHandler | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._session_factory = session_factory or AsyncSessionLocal
        self._handler = handler or _classify
        self.max_attempts = max_attempts or settings.CLASSIFICATION_MAX_ATTEMPTS
        self._queue: asyncio.Queue[ClassificationJob] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self.failed_jobs: list[ClassificationJob] = []

    def enqueue(self, waste_photo_id: uuid.UUID) -> ClassificationJob:
        job = ClassificationJob(waste_photo_id=waste_photo_id)
        self._queue.put_nowait(job)
        logger.debug("Queued waste photo %s for classification", waste_photo_id)
        return job

    def pending(self) -> int:
        return self._queue.qsize()

    async def recover_pending(self) -> int:
        """Re-queue photos a previous process accepted but never finished."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(WastePhoto.id)
                .where(WastePhoto.status == WastePhotoStatus.PENDING)
                .order_by(WastePhoto.created_at)
            )
            photo_ids = list(result.scalars().all())

        for photo_id in photo_ids:
            self.enqueue(photo_id)
        if photo_ids:
            logger.info("Re-queued %s pending waste photo(s)", len(photo_ids))
        return len(photo_ids)

    def clear(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self.failed_jobs.clear()

    async def run_job(self, job: ClassificationJob) -> bool:
        """Run one attempt. Returns True when the job is finished, either way."""
        job.attempts += 1
        try:
            async with self._session_factory() as db:
                await self._handler(db, job.waste_photo_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            job.last_error = str(exc)
            if job.attempts < self.max_attempts:
                logger.warning(
                    "Classification of %s failed (attempt %s/%s); retrying",
                    job.waste_photo_id, job.attempts, self.max_attempts,
                )
                self._queue.put_nowait(job)
                return False
            logger.exception("Classification of %s failed permanently", job.waste_photo_id)
            self.failed_jobs.append(job)
        return True

    async def drain(self) -> None:
        """Process everything currently queued, including retries, in this task."""
        while not self._queue.empty():
            job = self._queue.get_nowait()
            try:
                await self.run_job(job)
            finally:
                self._queue.task_done()

    async def _worker_loop(self, name: str) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.run_job(job)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Classification worker %s iteration failed", name)
            finally:
                self._queue.task_done()

    def start(self, concurrency: int | None = None) -> None:
        if self._workers:
            return
        count = max(1, concurrency or settings.CLASSIFICATION_WORKER_CONCURRENCY)
        self._workers = [
            asyncio.create_task(self._worker_loop(f"classifier-{i}")) for i in range(count)
        ]
        logger.info("Classification queue started with %s worker(s)", count)

    async def stop(self) -> None:
        for task in self._workers:
            task.cancel()
        for task in self._workers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._workers = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._workers)


classification_queue = ClassificationQueue()
