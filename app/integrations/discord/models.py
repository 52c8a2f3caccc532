"""
Discord Payload Models

Raw message shapes as handed off by the Discord gateway listener or the
webhook relay. Only the fields the normalizer reads are declared.
"""

from pydantic import BaseModel, ConfigDict, model_validator
from datetime import datetime
from typing import Any, Optional, Union


class DiscordAuthor(BaseModel):
    """Message author as sent by Discord."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    username: str
    global_name: Optional[str] = None  # Display name, if the user set one


class DiscordMessagePayload(BaseModel):
    """
    Discord message.

    The gateway calls the native id `id`; the webhook relay calls it
    `message_id`. Both are accepted.
    """

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    channel_id: Union[int, str]
    channel_name: Optional[str] = None
    guild_id: Optional[Union[int, str]] = None
    author: DiscordAuthor
    content: str
    timestamp: datetime  # ISO-8601 string or epoch seconds

    @model_validator(mode="before")
    @classmethod
    def _accept_webhook_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data and "message_id" in data:
            data = dict(data)
            data["id"] = data["message_id"]
        return data
