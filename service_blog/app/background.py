"""
Background view count recording for the Blog service.

A post detail read schedules a view count increment and returns without
waiting for it. Increments go through a bounded queue drained by a single
worker task: at-most-once, best-effort, never visible to the read.
"""

import asyncio
from typing import Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .domain.repositories import PostRepository


class ViewCountRecorder:
    """Queue-backed fire-and-forget view count increments."""

    def __init__(self, repository: PostRepository, queue_size: int = 1000,
                 metrics: Optional[MetricsCollector] = None):
        self.repository = repository
        self.metrics = metrics
        self.logger = get_logger("blog.background.view_count")

        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.worker_task: Optional[asyncio.Task] = None
        self.running = False
        self.stats = {"processed": 0, "failed": 0, "dropped": 0}

    async def start(self):
        """Start the worker."""
        self.running = True
        self.worker_task = asyncio.create_task(self._process_queue())
        self.logger.info("View count recorder started")

    async def stop(self):
        """Stop the worker. Increments still queued are discarded."""
        self.running = False
        if self.worker_task:
            self.worker_task.cancel()
            try:
                await self.worker_task
            except asyncio.CancelledError:
                pass
            self.worker_task = None

        self.logger.info("View count recorder stopped", pending=self.queue.qsize(), **self.stats)

    def schedule(self, post_id: int) -> bool:
        """Queue an increment for ``post_id``; never blocks, never raises."""
        try:
            self.queue.put_nowait(post_id)
            return True
        except asyncio.QueueFull:
            self.stats["dropped"] += 1
            self._count("dropped")
            self.logger.warning("View count queue full, dropping increment", post_id=post_id)
            return False

    async def _process_queue(self):
        while self.running:
            post_id = await self.queue.get()
            try:
                await self.record(post_id)
            finally:
                self.queue.task_done()

    async def record(self, post_id: int):
        """Apply one increment, logging instead of raising on failure."""
        try:
            await self.repository.increment_view_count(post_id)
            self.stats["processed"] += 1
            self._count("ok")
        except Exception as e:
            self.stats["failed"] += 1
            self._count("error")
            self.logger.warning("View count increment failed", post_id=post_id, error=str(e))

    def _count(self, result: str):
        if self.metrics:
            self.metrics.increment_counter("view_count_increments_total", result=result)
