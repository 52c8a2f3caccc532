"""
Dashboard Query Routes

Read-only endpoints behind the dashboard:
1. GET /api/recent-messages - Recent feed across platforms
2. GET /api/sentiment - Daily sentiment trend
3. GET /api/messages - Drill-down into one day
4. GET /api/distribution - Sentiment class breakdown
5. GET /api/stats - Headline numbers
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from typing import List, Optional
import datetime as dt
import logging

from app.config import get_settings
from app.api.dependencies import get_query_service
from app.models.api_responses import (
    CombinedMessage,
    SentimentDataPoint,
    SentimentDistribution,
    StatsResponse,
)
from app.models.message import Message, Platform
from app.models.sentiment import SentimentClass
from app.services.query_service import QueryService

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()


def _query_failed(what: str, error: Exception) -> HTTPException:
    logger.error(f"Failed to fetch {what}: {error}", exc_info=True)
    return HTTPException(
        status_code=500,
        detail={"success": False, "message": f"Failed to fetch {what}"},
    )


@router.get("/recent-messages", response_model=List[CombinedMessage])
async def recent_messages(
    limit: int = Query(
        settings.default_recent_limit, ge=1, le=500, description="Maximum messages to return"
    ),
    sentiment: Optional[SentimentClass] = Query(None, description="Only this sentiment class"),
    platform: Optional[Platform] = Query(None, description="Only this platform"),
    channel_id: Optional[str] = Query(None, alias="channelId", description="Only this channel"),
    search: Optional[str] = Query(None, description="Case-insensitive text or username match"),
    queries: QueryService = Depends(get_query_service),
):
    """
    Most recent messages from every platform, newest first.

    Examples:
    - GET /api/recent-messages?limit=5
    - GET /api/recent-messages?platform=telegram&sentiment=negative
    """
    try:
        return queries.get_recent_messages(
            limit,
            sentiment=sentiment,
            platform=platform,
            channel_id=channel_id,
            search=search,
        )
    except Exception as e:
        raise _query_failed("recent messages", e)


@router.get("/sentiment", response_model=List[SentimentDataPoint])
async def sentiment_trend(
    days: int = Query(
        settings.default_trend_days,
        ge=1,
        le=settings.max_trend_days,
        description="Trailing window in days, ending today",
    ),
    queries: QueryService = Depends(get_query_service),
):
    """Exactly `days` daily points in ascending order, zero-filled."""
    try:
        return queries.get_sentiment_trend(days)
    except Exception as e:
        raise _query_failed("sentiment data", e)


@router.get("/messages", response_model=List[Message])
async def messages_for_day(
    date: dt.date = Query(..., description="Calendar day (YYYY-MM-DD)"),
    queries: QueryService = Depends(get_query_service),
):
    """Messages for one day, for trend-chart drill-down."""
    try:
        return queries.get_messages_for_day(date)
    except Exception as e:
        raise _query_failed(f"messages for {date}", e)


@router.get("/messages/{date}", response_model=List[Message])
async def messages_for_day_path(
    date: dt.date = Path(..., description="Calendar day (YYYY-MM-DD)"),
    queries: QueryService = Depends(get_query_service),
):
    """Same as GET /api/messages?date=..., with the day in the path."""
    try:
        return queries.get_messages_for_day(date)
    except Exception as e:
        raise _query_failed(f"messages for {date}", e)


@router.get("/distribution", response_model=SentimentDistribution)
async def sentiment_distribution(
    days: int = Query(
        settings.default_trend_days, ge=1, le=settings.max_trend_days,
        description="Trailing window in days, ending today",
    ),
    queries: QueryService = Depends(get_query_service),
):
    try:
        return queries.get_sentiment_distribution(days)
    except Exception as e:
        raise _query_failed("sentiment distribution", e)


@router.get("/stats", response_model=StatsResponse)
async def stats(queries: QueryService = Depends(get_query_service)):
    try:
        return queries.get_stats()
    except Exception as e:
        raise _query_failed("stats", e)
