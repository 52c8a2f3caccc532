"""
Discord Message Parser

Maps a raw Discord message payload onto the canonical Message.
Pure structural mapping: no I/O, no scoring.
"""

from typing import Any, Dict

from pydantic import ValidationError

from app.exceptions import MalformedPayload
from app.integrations.discord.models import DiscordMessagePayload
from app.models.message import Message, Platform


def message_key(native_id: Any) -> str:
    """Canonical dedup key for a Discord message (snowflakes are globally unique)."""
    return f"{Platform.DISCORD.value}:{native_id}"


def parse_message(payload: Dict[str, Any]) -> Message:
    """
    Parse a Discord message payload.

    Examples:
        {"id": "1122", "channel_id": "C1", "author": {"id": "U1", "username": "ana"},
         "content": "great release", "timestamp": "2026-10-18T09:30:00+00:00"}
        -> Message(id="discord:1122", platform=discord, channel_id="C1", ...)

    Args:
        payload: Raw message dict from the gateway listener or webhook relay

    Returns:
        Unscored canonical Message

    Raises:
        MalformedPayload: If a required field is missing or has the wrong type
    """
    if not isinstance(payload, dict):
        raise MalformedPayload(Platform.DISCORD.value, "payload is not an object")

    try:
        raw = DiscordMessagePayload.model_validate(payload)
    except ValidationError as e:
        raise MalformedPayload(Platform.DISCORD.value, _describe(e)) from e

    return Message(
        id=message_key(raw.id),
        platform=Platform.DISCORD,
        channel_id=str(raw.channel_id),
        channel_name=raw.channel_name or None,
        user_id=str(raw.author.id),
        username=raw.author.username,
        first_name=raw.author.global_name or None,
        content=raw.content,
        created_at=raw.timestamp,
    )


def _describe(error: ValidationError) -> str:
    fields = [".".join(str(part) for part in err["loc"]) for err in error.errors()]
    return "invalid or missing fields: " + ", ".join(fields)
