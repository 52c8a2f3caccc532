"""
API Response Models

Pydantic models for consistent API response structures.
All of them serialize with camelCase keys for the dashboard.
"""

import datetime as dt
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict

from app.models.message import Platform
from app.models.sentiment import SentimentClass


class CamelModel(BaseModel):
    """Base for response models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CombinedMessage(CamelModel):
    """
    Presentation-ready message from any platform.
    Carries the canonical fields plus denormalized display fields.
    """

    id: str = Field(..., description="Dedup key: platform-qualified message id")
    platform: Platform = Field(..., description="Source platform")
    channel_id: Optional[str] = Field(None, description="Source channel or chat id")
    channel_name: Optional[str] = Field(
        None, description="Channel name (Telegram chat title)"
    )
    channel_display: Optional[str] = Field(
        None, description="Channel name if known, otherwise #channelId"
    )
    user_id: str = Field(..., description="Author id on the source platform")
    username: str = Field(..., description="Author username")
    first_name: Optional[str] = Field(None, description="Author first name")
    last_name: Optional[str] = Field(None, description="Author last name")
    author_display: str = Field(
        ..., description="Username, with full name appended when available"
    )
    content: str = Field(..., description="Message text")
    sentiment: SentimentClass = Field(..., description="Sentiment class token")
    sentiment_label: str = Field(..., description="Human-readable sentiment class")
    sentiment_score: float = Field(..., description="Sentiment score (0.0-4.0)")
    created_at: dt.datetime = Field(..., description="Platform send time")


class SentimentDataPoint(CamelModel):
    """One day of the sentiment trend."""

    date: dt.date = Field(..., description="Calendar day in the reference timezone")
    average_sentiment: Optional[float] = Field(
        None, description="Mean score for the day, null when there were no messages"
    )
    message_count: int = Field(0, description="Messages bucketed to this day")
    sentiment_counts: Dict[SentimentClass, int] = Field(
        default_factory=dict, description="Message count per sentiment class"
    )


class SentimentDistribution(CamelModel):
    """Sentiment class breakdown over a trailing window."""

    very_positive: int = 0
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    very_negative: int = 0
    total: int = 0


class StatsResponse(CamelModel):
    """Headline numbers for the dashboard, current vs. previous period."""

    total_messages: int = Field(..., description="All stored messages")
    average_sentiment: float = Field(
        ..., description="Mean score over the current period (neutral when empty)"
    )
    average_sentiment_label: str = Field(
        ..., description="Display label of the current period mean"
    )
    active_users: int = Field(..., description="Distinct authors in the current period")
    message_growth: float = Field(0.0, description="Message count change in percent")
    sentiment_growth: float = Field(0.0, description="Mean score change in percent")
    user_growth: float = Field(0.0, description="Active user change in percent")


class ChannelPermissions(CamelModel):
    """Result of a platform permission check for one channel."""

    has_permissions: bool = Field(..., description="Bot can read the channel")
    missing_permissions: List[str] = Field(
        default_factory=list, description="Permissions the bot is missing"
    )


class IngestResponse(CamelModel):
    """Response model for webhook intake endpoints."""

    status: str = Field(..., description="Ingestion outcome")
    message_id: Optional[str] = Field(None, description="Canonical message id")
    sentiment: Optional[SentimentClass] = Field(
        None, description="Assigned sentiment class when accepted"
    )
    reason: Optional[str] = Field(None, description="Why the message was not accepted")


class IntakeFilterSettings(CamelModel):
    """Current intake filters, as shown on the channel settings page."""

    monitor_all_channels: bool = Field(
        ..., description="Ingest every channel, ignoring the monitored list"
    )
    monitored_channels: List[str] = Field(
        default_factory=list, description="Channels ingested when monitor-all is off"
    )
    excluded_users: List[str] = Field(
        default_factory=list, description="Authors whose messages are never scored"
    )
    min_content_length: int = Field(..., description="Shortest content that gets scored")
