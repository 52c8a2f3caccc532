"""
Ingestion Pipeline

Full intake path for one raw platform message:
Raw payload -> Normalize -> Intake filters -> Dedup check -> Score -> Commit

Transport-agnostic: webhook handlers (push) and platform workers (pull or
queued push) call the same `ingest` entry point.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

from app.ai_core.scoring import SentimentScorer
from app.config import get_settings
from app.exceptions import (
    DuplicateId,
    MalformedPayload,
    NotIngestible,
    ScoringUnavailable,
    StorageFailure,
)
from app.models.message import Message, Platform
from app.services.aggregate_store import AggregateStore
from app.services.intake_filters import IntakeFilters
from app.services.normalizer import normalize
from app.utils.locks import AsyncKeyedLocks

logger = logging.getLogger(__name__)


class IngestStatus(str, Enum):
    """Outcome of one ingestion attempt."""

    ACCEPTED = "accepted"  # Stored and counted
    DUPLICATE = "duplicate"  # Already stored; no-op
    REJECTED = "rejected"  # Malformed payload; never retry
    RETRYABLE = "retryable"  # Scorer unavailable; retry with backoff
    SKIPPED = "skipped"  # Filtered out by intake settings
    FAILED = "failed"  # Storage failure; nothing was written


@dataclass
class IngestResult:
    """Result of ingesting one raw message."""

    status: IngestStatus
    message_id: Optional[str] = None
    message: Optional[Message] = None  # Committed message when accepted
    reason: Optional[str] = None

    @property
    def is_retryable(self) -> bool:
        return self.status == IngestStatus.RETRYABLE


class IngestionPipeline:
    """
    Turns raw platform payloads into committed, scored messages.

    Pipeline steps:
    1. Normalize the payload (reject malformed input without side effects)
    2. Apply intake filters (content length, excluded users, monitored channels)
    3. Dedup check against the store
    4. Score the content
    5. Commit the message and its day's aggregate in one step

    Steps 3-5 are serialized per message id; different ids run concurrently.
    The commit is synchronous and follows the last await, so a cancelled
    ingestion never leaves partial state.
    """

    def __init__(
        self,
        store: AggregateStore,
        scorer: SentimentScorer,
        min_content_length: Optional[int] = None,
        excluded_user_ids: Optional[Iterable[str]] = None,
        monitored_channel_ids: Optional[Iterable[str]] = None,
        filters: Optional[IntakeFilters] = None,
        score_timeout: Optional[float] = None,
    ):
        """
        Args:
            store: Aggregate store to commit into
            scorer: Sentiment scorer
            min_content_length, excluded_user_ids, monitored_channel_ids:
                Seed values for a new IntakeFilters when `filters` is omitted
            filters: Shared, runtime-editable intake filters
            score_timeout: Upper bound on one scorer call, in seconds
        """
        settings = get_settings()
        self.store = store
        self.scorer = scorer
        self.filters = filters or IntakeFilters(
            min_content_length=min_content_length,
            excluded_user_ids=excluded_user_ids,
            monitored_channel_ids=monitored_channel_ids,
        )
        self.score_timeout = score_timeout or settings.scorer_timeout_seconds
        self._id_locks = AsyncKeyedLocks()

    async def ingest(
        self, platform: Union[Platform, str], raw_payload: Dict[str, Any]
    ) -> IngestResult:
        """
        Ingest one raw platform message.

        Args:
            platform: Source platform tag
            raw_payload: Message as handed off by the platform adapter

        Returns:
            IngestResult describing what happened; never raises for
            malformed input, duplicates, scorer failures or storage failures
        """
        # Step 1: Normalize
        try:
            message = normalize(platform, raw_payload)
        except NotIngestible as e:
            logger.debug(f"Skipping event: {e}")
            return IngestResult(status=IngestStatus.SKIPPED, reason=str(e))
        except MalformedPayload as e:
            logger.warning(f"Rejected payload: {e}")
            return IngestResult(status=IngestStatus.REJECTED, reason=str(e))

        # Step 2: Intake filters
        skip_reason = self.filters.skip_reason(message)
        if skip_reason:
            logger.debug(f"Skipping {message.id}: {skip_reason}")
            return IngestResult(
                status=IngestStatus.SKIPPED, message_id=message.id, reason=skip_reason
            )

        async with self._id_locks.hold(message.id):
            # Step 3: Dedup check
            if self.store.get_message(message.id) is not None:
                logger.debug(f"Duplicate delivery of {message.id}, ignoring")
                return IngestResult(status=IngestStatus.DUPLICATE, message_id=message.id)

            # Step 4: Score
            try:
                score = await self._score(message)
                scored = message.with_score(score)
            except ValueError as e:
                # Scorer answered outside [0, 4]
                logger.warning(f"Scorer returned an invalid score for {message.id}: {e}")
                return IngestResult(
                    status=IngestStatus.RETRYABLE,
                    message_id=message.id,
                    reason=f"Invalid score from scorer: {e}",
                )
            except ScoringUnavailable as e:
                logger.warning(f"Scoring unavailable for {message.id}: {e}")
                return IngestResult(
                    status=IngestStatus.RETRYABLE, message_id=message.id, reason=str(e)
                )

            # Step 5: Commit
            try:
                self.store.put_message(scored)
            except DuplicateId:
                logger.debug(f"Store already holds {message.id}, ignoring")
                return IngestResult(status=IngestStatus.DUPLICATE, message_id=message.id)
            except StorageFailure as e:
                logger.error(f"Storage failure for {message.id}: {e}")
                return IngestResult(
                    status=IngestStatus.FAILED, message_id=message.id, reason=str(e)
                )

        logger.info(
            f"Ingested {scored.id} ({scored.platform.value}): "
            f"{scored.sentiment.value} ({score:.2f})"
        )
        return IngestResult(
            status=IngestStatus.ACCEPTED, message_id=scored.id, message=scored
        )

    async def _score(self, message: Message) -> float:
        """
        Call the scorer under a timeout.

        Raises:
            ScoringUnavailable: On timeout or any scorer failure
            ValueError: Passed through for non-numeric answers
        """
        try:
            score = await asyncio.wait_for(
                self.scorer.score(message.content), timeout=self.score_timeout
            )
        except ScoringUnavailable:
            raise
        except asyncio.TimeoutError as e:
            raise ScoringUnavailable(
                f"Scorer timed out after {self.score_timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"Scorer failed for {message.id}: {str(e)}", exc_info=True)
            raise ScoringUnavailable(f"Scorer failed: {str(e)}") from e

        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError(f"non-numeric score {score!r}")
        return float(score)
