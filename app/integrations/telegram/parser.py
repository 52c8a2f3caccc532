"""
Telegram Message Parser

Maps a raw Telegram Bot API message (or an Update wrapping one) onto the
canonical Message. Pure structural mapping: no I/O, no scoring.
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from app.exceptions import MalformedPayload, NotIngestible
from app.integrations.telegram.models import TelegramMessagePayload
from app.models.message import Message, Platform

# Update fields that carry a new message; edits are not ingested
UPDATE_MESSAGE_KEYS = ("message", "channel_post")


def message_key(chat_id: Any, native_id: Any) -> str:
    """Canonical dedup key. Telegram message ids are only unique within a chat."""
    return f"{Platform.TELEGRAM.value}:{chat_id}:{native_id}"


def unwrap_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the message object from an Update, or the payload itself.

    Raises:
        MalformedPayload: If a message field is present but is not an object
        NotIngestible: If the update is some other event (edit, member change, ...)
    """
    if "update_id" not in payload:
        return payload

    for key in UPDATE_MESSAGE_KEYS:
        if key in payload:
            inner = payload[key]
            if not isinstance(inner, dict):
                raise MalformedPayload(Platform.TELEGRAM.value, f"{key} is not an object")
            return inner

    kinds = sorted(k for k in payload if k != "update_id")
    raise NotIngestible(
        Platform.TELEGRAM.value,
        f"update {payload['update_id']} carries no new message ({', '.join(kinds) or 'empty'})",
    )


def parse_message(payload: Dict[str, Any]) -> Message:
    """
    Parse a Telegram message payload.

    Examples:
        {"message_id": 7, "chat": {"id": -100, "title": "Release Chat"},
         "from": {"id": 42, "username": "ana"}, "text": "works now", "date": 1792230000}
        -> Message(id="telegram:-100:7", channel_name="Release Chat", ...)

    Args:
        payload: Raw Bot API Message or Update dict

    Returns:
        Unscored canonical Message

    Raises:
        MalformedPayload: If id, author, text or date is missing or mistyped
        NotIngestible: If the Update carries no new message
    """
    if not isinstance(payload, dict):
        raise MalformedPayload(Platform.TELEGRAM.value, "payload is not an object")

    try:
        raw = TelegramMessagePayload.model_validate(unwrap_update(payload))
    except ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise MalformedPayload(
            Platform.TELEGRAM.value, "invalid or missing fields: " + ", ".join(fields)
        ) from e

    if raw.content is None:
        raise MalformedPayload(Platform.TELEGRAM.value, "message has no text")

    user_id, username, first_name, last_name = _resolve_author(raw)

    return Message(
        id=message_key(raw.chat.id, raw.message_id),
        platform=Platform.TELEGRAM,
        channel_id=str(raw.chat.id),
        channel_name=raw.chat.title or None,
        user_id=user_id,
        username=username,
        first_name=first_name,
        last_name=last_name,
        content=raw.content,
        created_at=raw.date,
    )


def _resolve_author(
    raw: TelegramMessagePayload,
) -> Tuple[str, str, Optional[str], Optional[str]]:
    """Author identity from `from`, or from `sender_chat` for channel posts."""
    if raw.sender is not None:
        username = raw.sender.username or raw.sender.first_name
        if not username:
            raise MalformedPayload(
                Platform.TELEGRAM.value, "sender has neither username nor first_name"
            )
        return (
            str(raw.sender.id),
            username,
            raw.sender.first_name or None,
            raw.sender.last_name or None,
        )

    if raw.sender_chat is not None:
        username = raw.sender_chat.username or raw.sender_chat.title
        if not username:
            raise MalformedPayload(
                Platform.TELEGRAM.value, "sender_chat has neither username nor title"
            )
        return str(raw.sender_chat.id), username, None, None

    raise MalformedPayload(Platform.TELEGRAM.value, "message has no author")
