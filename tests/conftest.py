"""
Shared test fixtures: a scripted scorer, a fixed clock and payload builders.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import asyncio
import datetime as dt
from typing import Dict, Optional

import pytest

from app.exceptions import ScoringUnavailable
from app.services.aggregate_store import InMemoryAggregateStore
from app.services.pipeline import IngestionPipeline

UTC = dt.timezone.utc
NOW = dt.datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
TODAY = NOW.date()


class FakeScorer:
    """
    Scorer double. Scores come from `scores` by exact content, else `default`.
    Content listed in `unavailable` raises ScoringUnavailable.
    """

    def __init__(
        self,
        scores: Optional[Dict[str, float]] = None,
        default: float = 2.0,
        unavailable: Optional[set] = None,
        delay: float = 0.0,
    ):
        self.scores = scores or {}
        self.default = default
        self.unavailable = unavailable or set()
        self.delay = delay
        self.calls = []

    async def score(self, text: str) -> float:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if text in self.unavailable:
            raise ScoringUnavailable(f"scorer down for {text!r}")
        return self.scores.get(text, self.default)


def discord_payload(
    message_id="1001",
    content="Loving the new release",
    timestamp=None,
    channel_id="C100",
    user_id="U1",
    username="ana",
    **extra,
) -> dict:
    payload = {
        "id": message_id,
        "channel_id": channel_id,
        "author": {"id": user_id, "username": username},
        "content": content,
        "timestamp": (timestamp or NOW - dt.timedelta(hours=1)).isoformat(),
    }
    payload.update(extra)
    return payload


def telegram_payload(
    message_id=7,
    chat_id=-100200,
    text="Works great now",
    date=None,
    chat_title="Release Chat",
    sender=None,
) -> dict:
    sent = date or NOW - dt.timedelta(hours=2)
    payload = {
        "message_id": message_id,
        "chat": {"id": chat_id, "type": "supergroup", "title": chat_title},
        "from": sender
        if sender is not None
        else {"id": 42, "username": "bo", "first_name": "Bo", "last_name": "Lind"},
        "date": int(sent.timestamp()),
        "text": text,
    }
    if chat_title is None:
        del payload["chat"]["title"]
    return payload


@pytest.fixture
def store():
    return InMemoryAggregateStore(tz=UTC, clock=lambda: NOW)


@pytest.fixture
def scorer():
    return FakeScorer()


@pytest.fixture
def pipeline(store, scorer):
    return IngestionPipeline(
        store,
        scorer,
        min_content_length=3,
        excluded_user_ids=[],
        monitored_channel_ids=[],
    )
