"""
Discord REST Client

Responsibilities:
- Channel permission checks for the dashboard's channel settings view
- Checks read access with the bot token; never ingests messages

The ingestion core does not depend on this module. The query layer passes
permission requests straight through to whatever checker is configured.
"""

import asyncio
import logging
from typing import List, Optional, Protocol

import requests

from app.config import get_settings
from app.models.api_responses import ChannelPermissions

logger = logging.getLogger(__name__)

VIEW_CHANNEL = "VIEW_CHANNEL"
READ_MESSAGE_HISTORY = "READ_MESSAGE_HISTORY"
BOT_TOKEN_NOT_CONFIGURED = "BOT_TOKEN_NOT_CONFIGURED"


class PermissionChecker(Protocol):
    """Anything that can tell whether the bot can read a channel."""

    async def check_channel(self, channel_id: str) -> ChannelPermissions: ...


class DiscordPermissionChecker:
    """Checks bot access to a Discord channel through the REST API."""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.bot_token = bot_token if bot_token is not None else settings.discord_bot_token
        self.base_url = (base_url or settings.discord_api_base_url).rstrip("/")
        self.timeout = timeout or settings.permission_check_timeout_seconds
        self.session = session or requests.Session()

    async def check_channel(self, channel_id: str) -> ChannelPermissions:
        """
        Check whether the bot can view the channel and read its history.

        Args:
            channel_id: Discord channel id

        Returns:
            ChannelPermissions listing whatever is missing
        """
        if not self.bot_token:
            logger.warning("Discord permission check requested without a bot token")
            return ChannelPermissions(
                has_permissions=False, missing_permissions=[BOT_TOKEN_NOT_CONFIGURED]
            )

        missing: List[str] = []

        status = await asyncio.to_thread(self._request_status, f"/channels/{channel_id}")
        if status != 200:
            # Without view access the history check is meaningless
            missing.extend([VIEW_CHANNEL, READ_MESSAGE_HISTORY])
        else:
            status = await asyncio.to_thread(
                self._request_status, f"/channels/{channel_id}/messages?limit=1"
            )
            if status != 200:
                missing.append(READ_MESSAGE_HISTORY)

        logger.info(
            f"Permission check for channel {channel_id}: "
            f"{'ok' if not missing else 'missing ' + ', '.join(missing)}"
        )
        return ChannelPermissions(
            has_permissions=not missing, missing_permissions=missing
        )

    def _request_status(self, path: str) -> int:
        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bot {self.bot_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Discord API request failed for {path}: {e}")
            return 0
        if response.status_code not in (200, 403, 404):
            logger.warning(f"Unexpected Discord API status {response.status_code} for {path}")
        return response.status_code
