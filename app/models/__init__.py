# Shared data models
from app.models.sentiment import SentimentClass, classify
from app.models.message import Message, DailyAggregate, Platform
from app.models.api_responses import (
    CombinedMessage,
    SentimentDataPoint,
    SentimentDistribution,
    StatsResponse,
    ChannelPermissions,
    IngestResponse,
    IntakeFilterSettings,
)

__all__ = [
    "SentimentClass",
    "classify",
    "Message",
    "DailyAggregate",
    "Platform",
    "CombinedMessage",
    "SentimentDataPoint",
    "SentimentDistribution",
    "StatsResponse",
    "ChannelPermissions",
    "IngestResponse",
    "IntakeFilterSettings",
]
