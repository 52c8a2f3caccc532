"""
Canonical Message and Daily Aggregate Models

Unified message structure regardless of source platform (Discord, Telegram).
Platform-specific shapes never get past the normalizer; everything downstream
works with these records.
"""

import datetime as dt
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from app.models.sentiment import (
    MAX_SCORE,
    MIN_SCORE,
    SentimentClass,
    classify,
    empty_sentiment_counts,
)


class Platform(str, Enum):
    """Source platform type."""

    DISCORD = "discord"
    TELEGRAM = "telegram"


class Message(BaseModel):
    """
    Platform-agnostic message.

    sentiment_score is the source of truth; sentiment is derived from it on
    every read, so the two can never disagree.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str  # Dedup key, unique per (platform, native id)
    platform: Platform
    channel_id: Optional[str] = None
    channel_name: Optional[str] = None  # Telegram chat title lands here
    user_id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    content: str
    sentiment_score: Optional[float] = Field(None, ge=MIN_SCORE, le=MAX_SCORE)
    created_at: dt.datetime  # Platform send time, not ingestion time

    @field_validator("created_at")
    @classmethod
    def _ensure_timezone(cls, value: dt.datetime) -> dt.datetime:
        # Naive timestamps from platforms are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value

    @computed_field
    @property
    def sentiment(self) -> Optional[SentimentClass]:
        if self.sentiment_score is None:
            return None
        return classify(self.sentiment_score)

    @property
    def is_scored(self) -> bool:
        return self.sentiment_score is not None

    def with_score(self, score: float) -> "Message":
        """Return a validated copy carrying the given sentiment score."""
        data = self.model_dump(exclude={"sentiment"})
        data["sentiment_score"] = score
        return Message.model_validate(data)

    def local_date(self, tz: dt.tzinfo) -> dt.date:
        """Calendar day of created_at in the given reference timezone."""
        return self.created_at.astimezone(tz).date()


class DailyAggregate(BaseModel):
    """
    Per-calendar-day sentiment rollup.

    A performance cache only: every field can be rebuilt by replaying the
    day's messages. Instances are immutable; applying a score returns a new one.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    date: dt.date
    message_count: int = 0
    sentiment_counts: Dict[SentimentClass, int] = Field(
        default_factory=empty_sentiment_counts
    )
    average_sentiment: float = 0.0  # Meaningless while message_count == 0

    @field_validator("sentiment_counts")
    @classmethod
    def _fill_missing_classes(
        cls, value: Dict[SentimentClass, int]
    ) -> Dict[SentimentClass, int]:
        counts = empty_sentiment_counts()
        counts.update(value)
        return counts

    @property
    def is_empty(self) -> bool:
        return self.message_count == 0

    def applied(self, score: float, sentiment: SentimentClass) -> "DailyAggregate":
        """
        Return the aggregate with one more message folded in.

        Uses the streaming mean update so no per-day score history is kept.
        """
        new_count = self.message_count + 1
        counts = dict(self.sentiment_counts)
        counts[sentiment] = counts.get(sentiment, 0) + 1
        if self.message_count == 0:
            new_average = score
        else:
            new_average = self.average_sentiment + (
                score - self.average_sentiment
            ) / new_count
        return DailyAggregate(
            date=self.date,
            message_count=new_count,
            sentiment_counts=counts,
            average_sentiment=new_average,
        )
