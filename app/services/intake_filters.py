"""
Intake Filters

Runtime-editable rules deciding which messages are worth scoring:
- minimum content length
- excluded authors (bots, test accounts)
- monitored channels, or every channel when monitor-all is on

Seeded from settings at startup and changed through the channels API while
the service runs. The pipeline consults it once per message.
"""

import logging
import threading
from typing import Iterable, List, Optional

from app.config import get_settings
from app.models.message import Message

logger = logging.getLogger(__name__)


class IntakeFilters:
    """Thread-safe registry of intake rules."""

    def __init__(
        self,
        min_content_length: Optional[int] = None,
        excluded_user_ids: Optional[Iterable[str]] = None,
        monitored_channel_ids: Optional[Iterable[str]] = None,
        monitor_all_channels: Optional[bool] = None,
    ):
        """
        Args:
            min_content_length: Shortest stripped content that gets scored
            excluded_user_ids: Authors whose messages are skipped
            monitored_channel_ids: Channels to ingest when monitor-all is off
            monitor_all_channels: Ingest every channel; defaults to on
                unless specific channels are listed
        """
        settings = get_settings()
        self._lock = threading.Lock()
        self.min_content_length = (
            settings.min_content_length if min_content_length is None else min_content_length
        )
        self._excluded_users = set(
            settings.excluded_user_ids if excluded_user_ids is None else excluded_user_ids
        )
        self._monitored_channels = set(
            settings.monitored_channel_ids
            if monitored_channel_ids is None
            else monitored_channel_ids
        )
        if monitor_all_channels is None:
            monitor_all_channels = settings.monitor_all_channels
        if monitor_all_channels is None:
            monitor_all_channels = not self._monitored_channels
        self._monitor_all = monitor_all_channels

    def skip_reason(self, message: Message) -> Optional[str]:
        """Why the message should not be ingested, or None to ingest it."""
        if len(message.content.strip()) < self.min_content_length:
            return f"content shorter than {self.min_content_length} characters"
        with self._lock:
            if message.user_id in self._excluded_users:
                return f"author {message.user_id} is excluded"
            if not self._monitor_all and message.channel_id not in self._monitored_channels:
                return f"channel {message.channel_id} is not monitored"
        return None

    # Channels

    @property
    def monitor_all_channels(self) -> bool:
        with self._lock:
            return self._monitor_all

    def set_monitor_all_channels(self, enabled: bool) -> None:
        with self._lock:
            self._monitor_all = enabled
        logger.info(f"Monitor all channels {'enabled' if enabled else 'disabled'}")

    def monitored_channels(self) -> List[str]:
        with self._lock:
            return sorted(self._monitored_channels)

    def set_channel_monitored(self, channel_id: str, monitor: bool) -> bool:
        """
        Add or remove a monitored channel.

        Returns:
            True if the set changed
        """
        with self._lock:
            changed = (channel_id in self._monitored_channels) != monitor
            if monitor:
                self._monitored_channels.add(channel_id)
            else:
                self._monitored_channels.discard(channel_id)
        if changed:
            logger.info(f"Channel {channel_id} {'now' if monitor else 'no longer'} monitored")
        return changed

    # Authors

    def excluded_users(self) -> List[str]:
        with self._lock:
            return sorted(self._excluded_users)

    def set_user_excluded(self, user_id: str, exclude: bool) -> bool:
        """
        Add or remove an excluded author.

        Returns:
            True if the set changed
        """
        with self._lock:
            changed = (user_id in self._excluded_users) != exclude
            if exclude:
                self._excluded_users.add(user_id)
            else:
                self._excluded_users.discard(user_id)
        if changed:
            logger.info(f"User {user_id} {'excluded from' if exclude else 'included in'} analysis")
        return changed
