"""
Platform Ingestion Workers

One worker per platform, each an independent set of asyncio tasks:
- a consumer draining the worker's queue into the ingestion pipeline
- an optional poller fetching payloads from a pull source on an interval

Push delivery goes through `submit`. Webhook deliveries that came back
retryable are handed over with `retry_later`. Retryable outcomes are
re-queued with exponential backoff; after the last attempt the payload is
kept as a dead letter instead of being dropped.
"""

import asyncio
import logging
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Set

from app.config import get_settings
from app.models.message import Platform
from app.services.pipeline import IngestionPipeline, IngestResult, IngestStatus
from app.utils.retry import backoff_delay

logger = logging.getLogger(__name__)

PullSource = Callable[[], Awaitable[Iterable[Dict[str, Any]]]]


@dataclass
class IngestJob:
    """A raw payload waiting for (another) ingestion attempt."""

    payload: Dict[str, Any]
    attempt: int = 1


@dataclass
class DeadLetter:
    """A payload that exhausted its retries."""

    payload: Dict[str, Any]
    attempts: int
    reason: Optional[str]


class PlatformWorker:
    """Drives ingestion for a single platform."""

    def __init__(
        self,
        platform: Platform,
        pipeline: IngestionPipeline,
        pull_source: Optional[PullSource] = None,
        poll_interval: Optional[float] = None,
        queue_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff_start: Optional[float] = None,
        backoff_max: Optional[float] = None,
        dead_letter_limit: Optional[int] = None,
    ):
        settings = get_settings()
        self.platform = platform
        self.pipeline = pipeline
        self.pull_source = pull_source
        self.poll_interval = (
            settings.poll_interval_seconds if poll_interval is None else poll_interval
        )
        self.max_attempts = (
            settings.max_ingest_attempts if max_attempts is None else max_attempts
        )
        self.backoff_start = (
            settings.retry_backoff_start_seconds if backoff_start is None else backoff_start
        )
        self.backoff_max = (
            settings.retry_backoff_max_seconds if backoff_max is None else backoff_max
        )

        self.queue: asyncio.Queue = asyncio.Queue(
            maxsize=settings.worker_queue_size if queue_size is None else queue_size
        )
        # Oldest dead letters are evicted once the limit is reached
        self.dead_letters: Deque[DeadLetter] = deque(
            maxlen=settings.dead_letter_limit
            if dead_letter_limit is None
            else dead_letter_limit
        )
        self.outcomes: Counter = Counter()

        self._tasks: List[asyncio.Task] = []
        self._pending_retries: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def submit(self, payload: Dict[str, Any]) -> None:
        """Queue a pushed payload, waiting if the queue is full."""
        await self.queue.put(IngestJob(payload=payload))

    def retry_later(
        self,
        payload: Dict[str, Any],
        attempt: int = 1,
        reason: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> bool:
        """
        Take over a payload whose ingestion attempt came back retryable.

        Args:
            payload: Raw platform payload
            attempt: Number of attempts already made
            reason: Why the last attempt failed
            message_id: Canonical id, for logging

        Returns:
            True if a retry was scheduled; False if the worker is not running,
            is saturated, or the payload has used up its attempts (it is then
            kept as a dead letter)
        """
        if not self.running:
            return False
        if self.queue.full() or len(self._pending_retries) >= self.queue.maxsize > 0:
            logger.warning(f"{self.platform.value} worker saturated, cannot retry {message_id}")
            return False
        return self._schedule_retry(
            IngestJob(payload=payload, attempt=attempt), reason, message_id
        )

    async def start(self) -> None:
        if self.running:
            return
        name = self.platform.value
        self._tasks = [asyncio.create_task(self._consume(), name=f"{name}-consumer")]
        if self.pull_source is not None:
            self._tasks.append(asyncio.create_task(self._poll(), name=f"{name}-poller"))
        logger.info(
            f"Started {name} worker "
            f"({'push + pull' if self.pull_source else 'push only'})"
        )

    async def stop(self) -> None:
        """Cancel consumer, poller and pending retries. Unprocessed payloads are dropped."""
        dropped = self.queue.qsize() + len(self._pending_retries)
        tasks = self._tasks + list(self._pending_retries)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._pending_retries.clear()
        if dropped:
            logger.warning(
                f"Dropped {dropped} unprocessed {self.platform.value} payloads on shutdown"
            )
        logger.info(f"Stopped {self.platform.value} worker: {dict(self.outcomes)}")

    async def drain(self) -> None:
        """Wait until the queue is empty and no retry is waiting to be re-queued."""
        while True:
            await self.queue.join()
            if not self._pending_retries:
                return
            await asyncio.gather(*list(self._pending_retries), return_exceptions=True)

    def health_status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "queued": self.queue.qsize(),
            "pending_retries": len(self._pending_retries),
            "dead_letters": len(self.dead_letters),
            "outcomes": dict(self.outcomes),
        }

    async def _consume(self) -> None:
        while True:
            job = await self.queue.get()
            try:
                await self._process(job)
            except Exception as e:
                logger.error(
                    f"Unexpected error ingesting {self.platform.value} payload: {e}",
                    exc_info=True,
                )
                self.dead_letters.append(
                    DeadLetter(payload=job.payload, attempts=job.attempt, reason=str(e))
                )
            finally:
                self.queue.task_done()

    async def _process(self, job: IngestJob) -> IngestResult:
        result = await self.pipeline.ingest(self.platform, job.payload)
        self.outcomes[result.status.value] += 1

        if result.status != IngestStatus.RETRYABLE:
            return result

        self._schedule_retry(job, result.reason, result.message_id)
        return result

    def _schedule_retry(
        self, job: IngestJob, reason: Optional[str], message_id: Optional[str]
    ) -> bool:
        if job.attempt >= self.max_attempts:
            logger.error(
                f"Giving up on {message_id} after {job.attempt} attempts: {reason}"
            )
            self.dead_letters.append(
                DeadLetter(payload=job.payload, attempts=job.attempt, reason=reason)
            )
            return False

        delay = backoff_delay(job.attempt, self.backoff_start, self.backoff_max)
        logger.info(f"Retrying {message_id} in {delay:.1f}s (attempt {job.attempt + 1})")
        retry = asyncio.create_task(
            self._requeue(IngestJob(payload=job.payload, attempt=job.attempt + 1), delay)
        )
        self._pending_retries.add(retry)
        retry.add_done_callback(self._pending_retries.discard)
        return True

    async def _requeue(self, job: IngestJob, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.queue.put(job)

    async def _poll(self) -> None:
        while True:
            try:
                payloads = list(await self.pull_source())
            except Exception as e:
                logger.error(f"Failed to fetch {self.platform.value} messages: {e}")
            else:
                logger.debug(f"Fetched {len(payloads)} {self.platform.value} messages")
                for payload in payloads:
                    await self.submit(payload)
            await asyncio.sleep(self.poll_interval)


class WorkerManager:
    """Owns one PlatformWorker per platform for the application's lifetime."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        pull_sources: Optional[Dict[Platform, PullSource]] = None,
        **worker_options: Any,
    ):
        pull_sources = pull_sources or {}
        self.workers: Dict[Platform, PlatformWorker] = {
            platform: PlatformWorker(
                platform,
                pipeline,
                pull_source=pull_sources.get(platform),
                **worker_options,
            )
            for platform in Platform
        }

    def get(self, platform: Platform) -> PlatformWorker:
        return self.workers[platform]

    async def start_all(self) -> None:
        for worker in self.workers.values():
            await worker.start()

    async def stop_all(self) -> None:
        await asyncio.gather(*(worker.stop() for worker in self.workers.values()))

    def health_status(self) -> Dict[str, Any]:
        return {p.value: w.health_status() for p, w in self.workers.items()}
