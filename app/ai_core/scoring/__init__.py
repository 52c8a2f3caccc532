from app.ai_core.scoring.sentiment_scorer import (
    SentimentScorer,
    LLMSentimentScorer,
    parse_score,
)

__all__ = ["SentimentScorer", "LLMSentimentScorer", "parse_score"]
