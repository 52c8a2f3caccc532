"""
Message Normalizer

Single translation boundary between platform payloads and the canonical
Message. Dispatches to the per-platform parsers.
"""

from typing import Any, Callable, Dict, Union

from app.exceptions import MalformedPayload
from app.integrations import discord, telegram
from app.models.message import Message, Platform

_PARSERS: Dict[Platform, Callable[[Dict[str, Any]], Message]] = {
    Platform.DISCORD: discord.parse_message,
    Platform.TELEGRAM: telegram.parse_message,
}


def resolve_platform(platform: Union[Platform, str]) -> Platform:
    """Coerce a platform tag into the Platform enum."""
    if isinstance(platform, Platform):
        return platform
    try:
        return Platform(str(platform).lower())
    except ValueError as e:
        raise MalformedPayload(str(platform), "unknown platform") from e


def normalize(platform: Union[Platform, str], raw_payload: Dict[str, Any]) -> Message:
    """
    Map a raw platform payload onto an unscored canonical Message.

    Raises:
        MalformedPayload: Unknown platform, or a required field is missing/mistyped
        NotIngestible: The payload is a platform event with no new message
    """
    resolved = resolve_platform(platform)
    return _PARSERS[resolved](raw_payload)
