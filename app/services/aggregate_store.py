"""
Aggregate Store

Holds ingested messages (for feeds and drill-downs) and per-day sentiment
aggregates (for trends).

Concurrency model:
- Aggregate read-modify-write for a day runs under that day's lock, so
  increments from independent platform feeds are linearizable without a
  global write lock.
- Aggregates are immutable; a writer builds the next bucket and then
  publishes the message and the bucket together under a short snapshot
  lock. Readers copy under the same lock, so nobody sees a message without
  its aggregate or the reverse.
- The id check happens at publish time, making the insert conditional even
  for same-id racers that land on different days.
"""

import datetime as dt
import heapq
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from app.config import get_settings
from app.exceptions import DuplicateId, StorageFailure
from app.models.message import DailyAggregate, Message, Platform
from app.models.sentiment import SentimentClass, classify
from app.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AggregateStore(ABC):
    """Storage contract for messages and daily aggregates."""

    tz: dt.tzinfo

    @abstractmethod
    def get_message(self, message_id: str) -> Optional[Message]:
        """Return the stored message with this id, if any."""

    @abstractmethod
    def put_message(self, message: Message) -> DailyAggregate:
        """Insert a scored message and fold it into its day's aggregate, atomically."""

    @abstractmethod
    def recent_messages(
        self,
        limit: int,
        sentiment: Optional[SentimentClass] = None,
        platform: Optional[Platform] = None,
        channel_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Message]:
        """Newest messages first, ties broken by id."""

    @abstractmethod
    def upsert_daily_aggregate(
        self,
        day: dt.date,
        score_delta: float,
        class_delta: Optional[SentimentClass] = None,
    ) -> DailyAggregate:
        """Atomically fold one score into a day's aggregate."""

    @abstractmethod
    def trend_range(
        self, days: int, end: Optional[dt.date] = None
    ) -> List[DailyAggregate]:
        """One aggregate per day for the trailing window, ascending, zero-filled."""

    @abstractmethod
    def messages_for_day(self, day: dt.date) -> List[Message]:
        """Messages bucketed to a calendar day, oldest first."""

    @abstractmethod
    def messages_between(self, start: dt.date, end: dt.date) -> List[Message]:
        """Messages bucketed to any day in [start, end]."""

    @abstractmethod
    def message_count(self) -> int:
        """Total stored messages."""

    def today(self) -> dt.date:
        """Current calendar day in the reference timezone."""
        return _utc_now().astimezone(self.tz).date()

    def replay_aggregates(self) -> Dict[dt.date, DailyAggregate]:
        """
        Rebuild every aggregate from the stored messages.

        Used to verify the cache; does not modify the store.
        """
        rebuilt: Dict[dt.date, DailyAggregate] = {}
        for message in sorted(self._all_messages(), key=lambda m: (m.created_at, m.id)):
            day = message.local_date(self.tz)
            current = rebuilt.get(day) or DailyAggregate(date=day)
            rebuilt[day] = current.applied(message.sentiment_score, message.sentiment)
        return rebuilt

    @abstractmethod
    def _all_messages(self) -> Iterable[Message]:
        """Snapshot of every stored message."""


class InMemoryAggregateStore(AggregateStore):
    """Process-local store. State lives as long as the application."""

    def __init__(
        self,
        tz: Optional[dt.tzinfo] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ):
        """
        Args:
            tz: Reference timezone for day bucketing (defaults to settings)
            clock: Returns the current aware datetime; injectable for tests
        """
        self.tz = tz or ZoneInfo(get_settings().reference_timezone)
        self._clock = clock or _utc_now

        self._messages: Dict[str, Message] = {}
        self._day_index: Dict[dt.date, List[str]] = {}
        self._aggregates: Dict[dt.date, DailyAggregate] = {}

        self._snapshot_lock = threading.Lock()
        self._day_locks = KeyedLocks()

    def today(self) -> dt.date:
        return self._clock().astimezone(self.tz).date()

    # Point lookups

    def get_message(self, message_id: str) -> Optional[Message]:
        with self._snapshot_lock:
            return self._messages.get(message_id)

    def message_count(self) -> int:
        with self._snapshot_lock:
            return len(self._messages)

    # Writes

    def put_message(self, message: Message) -> DailyAggregate:
        """
        Insert a scored message and fold it into its day's aggregate.

        Args:
            message: Scored canonical message

        Returns:
            The day's aggregate after this message

        Raises:
            DuplicateId: If the id is already stored (nothing changes)
            StorageFailure: If the aggregate update fails (nothing changes)
        """
        if not message.is_scored:
            raise ValueError(f"Refusing to store unscored message {message.id}")

        day = message.local_date(self.tz)
        with self._day_locks.hold(day):
            if self.get_message(message.id) is not None:
                raise DuplicateId(message.id)

            current = self._aggregates.get(day) or DailyAggregate(date=day)
            try:
                updated = self._next_aggregate(current, message)
            except Exception as e:
                logger.error(f"Aggregate update failed for {message.id} on {day}: {e}")
                raise StorageFailure(
                    f"Could not update aggregate for {day}: {e}"
                ) from e

            with self._snapshot_lock:
                if message.id in self._messages:
                    raise DuplicateId(message.id)
                self._messages[message.id] = message
                self._day_index.setdefault(day, []).append(message.id)
                self._aggregates[day] = updated

        logger.debug(
            f"Stored {message.id} on {day}: count={updated.message_count}, "
            f"avg={updated.average_sentiment:.3f}"
        )
        return updated

    def upsert_daily_aggregate(
        self,
        day: dt.date,
        score_delta: float,
        class_delta: Optional[SentimentClass] = None,
    ) -> DailyAggregate:
        """
        Fold one score into a day's aggregate, creating the day if needed.

        Args:
            day: Calendar day in the reference timezone
            score_delta: Score of the message being counted
            class_delta: Its sentiment class; derived from the score when omitted

        Raises:
            ValueError: If class_delta disagrees with the score
        """
        sentiment = classify(score_delta)
        if class_delta is not None and class_delta != sentiment:
            raise ValueError(
                f"Class {class_delta.value} does not match score {score_delta}"
            )

        with self._day_locks.hold(day):
            current = self._aggregates.get(day) or DailyAggregate(date=day)
            updated = current.applied(score_delta, sentiment)
            with self._snapshot_lock:
                self._aggregates[day] = updated
        return updated

    def _next_aggregate(self, current: DailyAggregate, message: Message) -> DailyAggregate:
        return current.applied(message.sentiment_score, message.sentiment)

    # Range reads

    def recent_messages(
        self,
        limit: int,
        sentiment: Optional[SentimentClass] = None,
        platform: Optional[Platform] = None,
        channel_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Message]:
        if limit <= 0:
            return []

        needle = search.strip().lower() if search else ""

        def matches(message: Message) -> bool:
            if sentiment is not None and message.sentiment != sentiment:
                return False
            if platform is not None and message.platform != platform:
                return False
            if channel_id is not None and message.channel_id != channel_id:
                return False
            if needle and needle not in message.content.lower() and needle not in message.username.lower():
                return False
            return True

        candidates = [m for m in self._all_messages() if matches(m)]
        # Newest first; ascending id among equal timestamps
        return heapq.nsmallest(
            limit, candidates, key=lambda m: (-m.created_at.timestamp(), m.id)
        )

    def trend_range(
        self, days: int, end: Optional[dt.date] = None
    ) -> List[DailyAggregate]:
        if days <= 0:
            return []

        end = end or self.today()
        window = [end - dt.timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        with self._snapshot_lock:
            found = {day: self._aggregates.get(day) for day in window}
        return [found[day] or DailyAggregate(date=day) for day in window]

    def messages_for_day(self, day: dt.date) -> List[Message]:
        with self._snapshot_lock:
            messages = [self._messages[mid] for mid in self._day_index.get(day, ())]
        return sorted(messages, key=lambda m: (m.created_at, m.id))

    def messages_between(self, start: dt.date, end: dt.date) -> List[Message]:
        if end < start:
            return []
        with self._snapshot_lock:
            messages = [
                self._messages[mid]
                for day, ids in self._day_index.items()
                if start <= day <= end
                for mid in ids
            ]
        return sorted(messages, key=lambda m: (m.created_at, m.id))

    def _all_messages(self) -> List[Message]:
        with self._snapshot_lock:
            return list(self._messages.values())
