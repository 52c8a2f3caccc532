"""
Discord Integration Module

Payload parsing for the ingestion core and REST permission checks.
"""

from app.integrations.discord.parser import parse_message
from app.integrations.discord.models import DiscordMessagePayload, DiscordAuthor
from app.integrations.discord.client import DiscordPermissionChecker

__all__ = [
    "parse_message",
    "DiscordMessagePayload",
    "DiscordAuthor",
    "DiscordPermissionChecker",
]
