"""
Sentiment Classes

Five-point ordinal scale backed by a continuous score in [0, 4].
classify() is the only place the score thresholds live.
"""

from enum import Enum
from typing import Dict, Tuple


MIN_SCORE = 0.0
MAX_SCORE = 4.0
NEUTRAL_SCORE = 2.0


class SentimentClass(str, Enum):
    """Sentiment bucket. The value is the machine token, `label` the display text."""

    VERY_NEGATIVE = "very_negative"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    VERY_POSITIVE = "very_positive"

    @property
    def label(self) -> str:
        return _DISPLAY_LABELS[self]

    @property
    def ordinal(self) -> int:
        """Position on the scale, 0 (very negative) to 4 (very positive)."""
        return _ORDER.index(self)


_ORDER = (
    SentimentClass.VERY_NEGATIVE,
    SentimentClass.NEGATIVE,
    SentimentClass.NEUTRAL,
    SentimentClass.POSITIVE,
    SentimentClass.VERY_POSITIVE,
)

_DISPLAY_LABELS: Dict[SentimentClass, str] = {
    SentimentClass.VERY_NEGATIVE: "Very Negative",
    SentimentClass.NEGATIVE: "Negative",
    SentimentClass.NEUTRAL: "Neutral",
    SentimentClass.POSITIVE: "Positive",
    SentimentClass.VERY_POSITIVE: "Very Positive",
}

# Inclusive lower bounds, checked from the top of the scale down
SENTIMENT_THRESHOLDS: Tuple[Tuple[float, SentimentClass], ...] = (
    (3.5, SentimentClass.VERY_POSITIVE),
    (2.5, SentimentClass.POSITIVE),
    (1.5, SentimentClass.NEUTRAL),
    (0.5, SentimentClass.NEGATIVE),
)


def classify(score: float) -> SentimentClass:
    """
    Map a sentiment score to its class.

    Total over floats: anything below 0.5 (including NaN) is very negative.

    Args:
        score: Continuous sentiment score, nominally in [0, 4]

    Returns:
        The SentimentClass whose lower bound the score reaches
    """
    for lower_bound, sentiment in SENTIMENT_THRESHOLDS:
        if score >= lower_bound:
            return sentiment
    return SentimentClass.VERY_NEGATIVE


def empty_sentiment_counts() -> Dict[SentimentClass, int]:
    """Zeroed counter with every class present."""
    return {sentiment: 0 for sentiment in _ORDER}
