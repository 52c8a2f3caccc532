"""
Query Service

Read side of the dashboard. Delegates to the Aggregate Store and shapes
results for presentation. Platform-specific display rules live here so the
store stays platform-agnostic.
"""

import datetime as dt
import logging
from typing import Dict, List, Optional

from app.integrations.discord.client import PermissionChecker
from app.models.api_responses import (
    ChannelPermissions,
    CombinedMessage,
    SentimentDataPoint,
    SentimentDistribution,
    StatsResponse,
)
from app.models.message import DailyAggregate, Message, Platform
from app.models.sentiment import NEUTRAL_SCORE, SentimentClass, classify, empty_sentiment_counts
from app.services.aggregate_store import AggregateStore

logger = logging.getLogger(__name__)

STATS_PERIOD_DAYS = 30


def channel_display(message: Message) -> Optional[str]:
    """Channel name (Telegram chat title) when known, otherwise #channelId."""
    if message.channel_name:
        return message.channel_name
    if message.channel_id:
        return f"#{message.channel_id}"
    return None


def author_display(message: Message) -> str:
    """Username, with the full name appended when both parts are known."""
    if message.first_name and message.last_name:
        return f"{message.username} ({message.first_name} {message.last_name})"
    return message.username


def to_combined_message(message: Message) -> CombinedMessage:
    return CombinedMessage(
        id=message.id,
        platform=message.platform,
        channel_id=message.channel_id,
        channel_name=message.channel_name,
        channel_display=channel_display(message),
        user_id=message.user_id,
        username=message.username,
        first_name=message.first_name,
        last_name=message.last_name,
        author_display=author_display(message),
        content=message.content,
        sentiment=message.sentiment,
        sentiment_label=message.sentiment.label,
        sentiment_score=message.sentiment_score,
        created_at=message.created_at,
    )


def to_data_point(aggregate: DailyAggregate) -> SentimentDataPoint:
    return SentimentDataPoint(
        date=aggregate.date,
        average_sentiment=None if aggregate.is_empty else aggregate.average_sentiment,
        message_count=aggregate.message_count,
        sentiment_counts=dict(aggregate.sentiment_counts),
    )


def _growth(current: float, previous: float) -> float:
    """Percent change; zero when there is no previous value to compare with."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


class QueryService:
    """Answers dashboard queries against the Aggregate Store."""

    def __init__(
        self,
        store: AggregateStore,
        permission_checker: Optional[PermissionChecker] = None,
    ):
        self.store = store
        self.permission_checker = permission_checker

    def get_recent_messages(
        self,
        limit: int,
        sentiment: Optional[SentimentClass] = None,
        platform: Optional[Platform] = None,
        channel_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[CombinedMessage]:
        """
        Most recent messages across all platforms, newest first.

        Args:
            limit: Maximum number of messages
            sentiment, platform, channel_id, search: Optional filters

        Returns:
            Presentation-ready messages (empty list for an empty store)
        """
        messages = self.store.recent_messages(
            limit,
            sentiment=sentiment,
            platform=platform,
            channel_id=channel_id,
            search=search,
        )
        return [to_combined_message(m) for m in messages]

    def get_sentiment_trend(self, days: int) -> List[SentimentDataPoint]:
        """
        Daily sentiment for the trailing `days` days ending today.

        Always returns exactly `days` points in ascending date order; days
        without messages have messageCount 0 and a null average.
        """
        return [to_data_point(a) for a in self.store.trend_range(days)]

    def get_messages_for_day(self, day: dt.date) -> List[Message]:
        """Messages for one calendar day in the reference timezone (trend drill-down)."""
        return self.store.messages_for_day(day)

    def get_sentiment_distribution(self, days: int) -> SentimentDistribution:
        """Per-class message counts over the trailing `days` days."""
        counts: Dict[SentimentClass, int] = empty_sentiment_counts()
        total = 0
        for aggregate in self.store.trend_range(days):
            total += aggregate.message_count
            for sentiment, count in aggregate.sentiment_counts.items():
                counts[sentiment] += count

        return SentimentDistribution(
            very_positive=counts[SentimentClass.VERY_POSITIVE],
            positive=counts[SentimentClass.POSITIVE],
            neutral=counts[SentimentClass.NEUTRAL],
            negative=counts[SentimentClass.NEGATIVE],
            very_negative=counts[SentimentClass.VERY_NEGATIVE],
            total=total,
        )

    def get_stats(self) -> StatsResponse:
        """
        Headline numbers: the last 30 days against the 30 days before them.

        The average falls back to neutral when a period has no messages.
        """
        today = self.store.today()
        current_start = today - dt.timedelta(days=STATS_PERIOD_DAYS - 1)
        previous_end = current_start - dt.timedelta(days=1)
        previous_start = previous_end - dt.timedelta(days=STATS_PERIOD_DAYS - 1)

        current = self.store.trend_range(STATS_PERIOD_DAYS, end=today)
        previous = self.store.trend_range(STATS_PERIOD_DAYS, end=previous_end)

        current_count, current_avg = self._period_totals(current)
        previous_count, previous_avg = self._period_totals(previous)

        current_users = {m.user_id for m in self.store.messages_between(current_start, today)}
        previous_users = {
            m.user_id for m in self.store.messages_between(previous_start, previous_end)
        }

        return StatsResponse(
            total_messages=self.store.message_count(),
            average_sentiment=current_avg,
            average_sentiment_label=classify(current_avg).label,
            active_users=len(current_users),
            message_growth=_growth(current_count, previous_count),
            sentiment_growth=_growth(current_avg, previous_avg),
            user_growth=_growth(len(current_users), len(previous_users)),
        )

    async def check_channel_permissions(self, channel_id: str) -> ChannelPermissions:
        """Pass-through to the configured platform permission checker."""
        if self.permission_checker is None:
            logger.warning("No permission checker configured")
            return ChannelPermissions(
                has_permissions=False, missing_permissions=["PERMISSION_CHECK_UNAVAILABLE"]
            )
        return await self.permission_checker.check_channel(channel_id)

    @staticmethod
    def _period_totals(aggregates: List[DailyAggregate]) -> tuple:
        """Message count and count-weighted mean score over a run of days."""
        count = sum(a.message_count for a in aggregates)
        if count == 0:
            return 0, NEUTRAL_SCORE
        weighted = sum(a.average_sentiment * a.message_count for a in aggregates)
        return count, weighted / count
