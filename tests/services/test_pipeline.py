"""
Integration Tests for the Ingestion Pipeline

Runs the full intake path: normalize -> filter -> dedup -> score -> commit.
Requires no external services; the scorer is a scripted double.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import asyncio

import pytest

from conftest import TODAY, FakeScorer, discord_payload, telegram_payload
from app.exceptions import StorageFailure
from app.models.message import Platform
from app.models.sentiment import SentimentClass
from app.services.intake_filters import IntakeFilters
from app.services.pipeline import IngestionPipeline, IngestStatus


class TestIngest:
    """Test suite for IngestionPipeline.ingest."""

    @pytest.mark.asyncio
    async def test_accepts_discord_message(self, pipeline, store, scorer):
        """Test the happy path for one Discord message."""
        scorer.scores["Loving the new release"] = 3.8

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.ACCEPTED
        assert result.message_id == "discord:1001"
        assert result.message.sentiment == SentimentClass.VERY_POSITIVE
        assert store.get_message("discord:1001").sentiment_score == 3.8

    @pytest.mark.asyncio
    async def test_two_platforms_same_day(self, store):
        """Test that two platforms feed the same daily bucket."""
        scorer = FakeScorer(scores={"Loving the new release": 3.8, "Works great now": 1.2})
        pipeline = IngestionPipeline(store, scorer, min_content_length=3)

        discord_result = await pipeline.ingest(Platform.DISCORD, discord_payload())
        telegram_result = await pipeline.ingest(Platform.TELEGRAM, telegram_payload())

        assert discord_result.status == IngestStatus.ACCEPTED
        assert telegram_result.status == IngestStatus.ACCEPTED

        aggregate = store.trend_range(1)[0]
        assert aggregate.date == TODAY
        assert aggregate.message_count == 2
        assert aggregate.average_sentiment == pytest.approx(2.5)
        assert aggregate.sentiment_counts[SentimentClass.VERY_POSITIVE] == 1
        assert aggregate.sentiment_counts[SentimentClass.NEGATIVE] == 1

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, pipeline, store, scorer):
        """Test that redelivery is neither stored nor scored twice."""
        first = await pipeline.ingest("discord", discord_payload())
        second = await pipeline.ingest("discord", discord_payload())

        assert first.status == IngestStatus.ACCEPTED
        assert second.status == IngestStatus.DUPLICATE
        assert store.message_count() == 1
        assert store.trend_range(1)[0].message_count == 1
        assert len(scorer.calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_payload_rejected_without_side_effects(self, pipeline, store, scorer):
        """Test that malformed input never reaches the scorer."""
        payload = discord_payload()
        del payload["author"]

        result = await pipeline.ingest("discord", payload)

        assert result.status == IngestStatus.REJECTED
        assert result.reason
        assert scorer.calls == []
        assert store.message_count() == 0

    @pytest.mark.asyncio
    async def test_unknown_platform_rejected(self, pipeline):
        """Test that an unknown platform tag is rejected."""
        result = await pipeline.ingest("irc", discord_payload())
        assert result.status == IngestStatus.REJECTED

    @pytest.mark.asyncio
    async def test_scorer_outage_is_retryable_and_writes_nothing(self, store):
        """Test that a scorer outage leaves the store untouched."""
        scorer = FakeScorer(unavailable={"Loving the new release"})
        pipeline = IngestionPipeline(store, scorer, min_content_length=3)

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.RETRYABLE
        assert result.is_retryable
        assert store.message_count() == 0
        assert store.trend_range(1)[0].is_empty

        # Once the scorer recovers the same payload goes through
        scorer.unavailable.clear()
        retried = await pipeline.ingest("discord", discord_payload())
        assert retried.status == IngestStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_retryable(self, store):
        """Test that an out-of-range score is never stored."""
        pipeline = IngestionPipeline(store, FakeScorer(default=7.5), min_content_length=3)

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.RETRYABLE
        assert store.message_count() == 0

    @pytest.mark.asyncio
    async def test_storage_failure_reported(self, pipeline, store, monkeypatch):
        """Test that a failed commit is reported as failed."""
        def broken_put(message):
            raise StorageFailure("aggregate write failed")

        monkeypatch.setattr(store, "put_message", broken_put)

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.FAILED
        assert store.get_message("discord:1001") is None


class FailingScorer:
    """Scorer whose backend raises an arbitrary error."""

    def __init__(self, error: Exception):
        self.error = error

    async def score(self, text: str) -> float:
        raise self.error


class HangingScorer:
    async def score(self, text: str) -> float:
        await asyncio.sleep(60)
        return 2.0


class TestScorerFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError("scorer backend timed out"),
            RuntimeError("model crashed"),
            ConnectionError("proxy unreachable"),
        ],
    )
    async def test_any_scorer_error_is_retryable(self, store, error):
        """Test that unexpected scorer errors become retryable outcomes."""
        pipeline = IngestionPipeline(store, FailingScorer(error), min_content_length=3)

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.RETRYABLE
        assert result.reason
        assert store.message_count() == 0

    @pytest.mark.asyncio
    async def test_hanging_scorer_times_out(self, store):
        """Test that a scorer call is bounded and releases the message lock."""
        pipeline = IngestionPipeline(
            store, HangingScorer(), min_content_length=3, score_timeout=0.05
        )

        result = await asyncio.wait_for(pipeline.ingest("discord", discord_payload()), timeout=2)

        assert result.status == IngestStatus.RETRYABLE
        assert "timed out" in result.reason

        pipeline.scorer = FakeScorer()
        retried = await pipeline.ingest("discord", discord_payload())
        assert retried.status == IngestStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_non_numeric_score_is_retryable(self, store):
        """Test that a scorer answering with a non-number is retried."""
        pipeline = IngestionPipeline(store, FakeScorer(default="high"), min_content_length=3)

        result = await pipeline.ingest("discord", discord_payload())

        assert result.status == IngestStatus.RETRYABLE


class TestIntakeFilters:
    @pytest.mark.asyncio
    async def test_short_content_skipped(self, pipeline, scorer):
        """Test the minimum content length filter."""
        result = await pipeline.ingest("discord", discord_payload(content=" ok "))
        assert result.status == IngestStatus.SKIPPED
        assert scorer.calls == []

    @pytest.mark.asyncio
    async def test_excluded_author_skipped(self, store, scorer):
        """Test the excluded author filter."""
        pipeline = IngestionPipeline(store, scorer, min_content_length=0, excluded_user_ids=["BOT"])

        result = await pipeline.ingest("discord", discord_payload(user_id="BOT"))

        assert result.status == IngestStatus.SKIPPED
        assert store.message_count() == 0

    @pytest.mark.asyncio
    async def test_telegram_edit_is_skipped(self, pipeline, store, scorer):
        """Test that an edited_message update is acknowledged, not rejected."""
        result = await pipeline.ingest(
            "telegram", {"update_id": 5, "edited_message": telegram_payload()}
        )

        assert result.status == IngestStatus.SKIPPED
        assert scorer.calls == []
        assert store.message_count() == 0

    @pytest.mark.asyncio
    async def test_filter_changes_apply_to_next_message(self, store, scorer):
        """Test that runtime filter edits take effect without a restart."""
        filters = IntakeFilters(
            min_content_length=3, excluded_user_ids=[], monitored_channel_ids=[]
        )
        pipeline = IngestionPipeline(store, scorer, filters=filters)

        filters.set_user_excluded("U1", True)
        excluded = await pipeline.ingest("discord", discord_payload(message_id="1"))

        filters.set_user_excluded("U1", False)
        filters.set_monitor_all_channels(False)
        filters.set_channel_monitored("C100", True)
        kept = await pipeline.ingest("discord", discord_payload(message_id="2"))
        dropped = await pipeline.ingest(
            "discord", discord_payload(message_id="3", channel_id="C200")
        )

        assert excluded.status == IngestStatus.SKIPPED
        assert kept.status == IngestStatus.ACCEPTED
        assert dropped.status == IngestStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_unmonitored_channel_skipped(self, store, scorer):
        """Test the monitored channel filter."""
        pipeline = IngestionPipeline(
            store, scorer, min_content_length=0, monitored_channel_ids=["C100"]
        )

        kept = await pipeline.ingest("discord", discord_payload(channel_id="C100"))
        dropped = await pipeline.ingest(
            "discord", discord_payload(message_id="1002", channel_id="C999")
        )

        assert kept.status == IngestStatus.ACCEPTED
        assert dropped.status == IngestStatus.SKIPPED


class TestConcurrentIngest:
    @pytest.mark.asyncio
    async def test_distinct_messages_all_counted(self, store):
        """Test that concurrent distinct messages are all counted."""
        scorer = FakeScorer(delay=0.001)
        pipeline = IngestionPipeline(store, scorer, min_content_length=3)
        count = 50

        payloads = [
            ("discord", discord_payload(message_id=str(i), content=f"message number {i}"))
            for i in range(count)
        ] + [
            ("telegram", telegram_payload(message_id=i, text=f"telegram text {i}"))
            for i in range(count)
        ]

        results = await asyncio.gather(*(pipeline.ingest(p, body) for p, body in payloads))

        assert all(r.status == IngestStatus.ACCEPTED for r in results)
        aggregate = store.trend_range(1)[0]
        assert aggregate.message_count == 2 * count
        assert store.message_count() == 2 * count

    @pytest.mark.asyncio
    async def test_same_id_scored_once(self, store):
        """Test that concurrent deliveries of one id score it once."""
        scorer = FakeScorer(delay=0.01)
        pipeline = IngestionPipeline(store, scorer, min_content_length=3)

        results = await asyncio.gather(
            *(pipeline.ingest("discord", discord_payload()) for _ in range(10))
        )

        statuses = [r.status for r in results]
        assert statuses.count(IngestStatus.ACCEPTED) == 1
        assert statuses.count(IngestStatus.DUPLICATE) == 9
        assert len(scorer.calls) == 1
        assert store.trend_range(1)[0].message_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_ingest_leaves_no_partial_state(self, store):
        """Test that cancelling mid-score writes nothing."""
        scorer = FakeScorer(delay=1.0)
        pipeline = IngestionPipeline(store, scorer, min_content_length=3)

        task = asyncio.create_task(pipeline.ingest("discord", discord_payload()))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert store.message_count() == 0
        assert store.trend_range(1)[0].is_empty
