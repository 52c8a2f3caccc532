"""
Sentiment Scoring Module

Responsibilities:
- Define the scorer contract the ingestion pipeline depends on
- Default LLM-backed scorer via SAP gen_ai_hub proxy
- Bound every scoring call with a timeout

A scorer returns a float in [0, 4]. When it cannot answer it raises
ScoringUnavailable; it never substitutes a neutral default.
"""

import asyncio
import json
import logging
import math
import re
from typing import Any, Optional, Protocol

from langchain_core.messages import SystemMessage, HumanMessage

from app.ai_core.prompts.sentiment import (
    SENTIMENT_SYSTEM_PROMPT,
    SENTIMENT_USER_PROMPT_TEMPLATE,
)
from app.config import get_settings
from app.exceptions import ScoringUnavailable
from app.models.sentiment import MAX_SCORE, MIN_SCORE

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class SentimentScorer(Protocol):
    """Anything that turns message text into a score in [0, 4]."""

    async def score(self, text: str) -> float: ...


class LLMSentimentScorer:
    """
    Scores message sentiment with a chat model.

    The model is asked for {"score", "confidence"} JSON. Timeouts, transport
    errors and unusable answers all surface as ScoringUnavailable.
    """

    def __init__(self, llm: Optional[Any] = None, timeout: Optional[float] = None):
        """
        Initialize the scorer.

        Args:
            llm: Chat model exposing `ainvoke`; built from settings when omitted
            timeout: Seconds to wait for the model before giving up
        """
        settings = get_settings()
        self.timeout = timeout or settings.scorer_timeout_seconds
        self.llm = llm if llm is not None else self._build_llm()

    @staticmethod
    def _build_llm() -> Any:
        from gen_ai_hub.proxy.langchain.openai import ChatOpenAI
        from gen_ai_hub.proxy.core.proxy_clients import get_proxy_client

        settings = get_settings()
        return ChatOpenAI(
            proxy_model_name=settings.openai_model,
            proxy_client=get_proxy_client("gen-ai-hub"),
            temperature=settings.temperature,
        )

    async def score(self, text: str) -> float:
        """
        Score a message.

        Args:
            text: Raw message content

        Returns:
            Sentiment score in [0, 4]

        Raises:
            ScoringUnavailable: If the model times out, fails, or answers badly
        """
        messages = [
            SystemMessage(content=SENTIMENT_SYSTEM_PROMPT),
            HumanMessage(content=SENTIMENT_USER_PROMPT_TEMPLATE.format(content=text)),
        ]

        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke(messages), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Sentiment model timed out after {self.timeout}s")
            raise ScoringUnavailable(
                f"Sentiment model timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"Sentiment model call failed: {str(e)}", exc_info=True)
            raise ScoringUnavailable(f"Sentiment model call failed: {str(e)}") from e

        score = parse_score(getattr(response, "content", response))
        logger.debug(f"Scored message ({len(text)} chars): {score:.2f}")
        return score


def parse_score(raw: Any) -> float:
    """
    Extract the score from a model answer.

    Accepts bare JSON or JSON wrapped in a markdown code fence.

    Raises:
        ScoringUnavailable: If the answer is not JSON with a numeric score in range
    """
    if not isinstance(raw, str):
        raise ScoringUnavailable(f"Sentiment model returned non-text content: {raw!r}")

    cleaned = _CODE_FENCE.sub("", raw.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ScoringUnavailable(
            f"Sentiment model returned invalid JSON: {raw[:200]!r}"
        ) from e

    value = payload.get("score") if isinstance(payload, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScoringUnavailable(f"Sentiment model response missing numeric score: {payload!r}")

    score = float(value)
    if math.isnan(score) or not MIN_SCORE <= score <= MAX_SCORE:
        raise ScoringUnavailable(f"Sentiment score out of range: {score}")
    return score
