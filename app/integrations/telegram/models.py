"""
Telegram Payload Models

Subset of the Bot API `Message` object used by the normalizer.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Union


class TelegramUser(BaseModel):
    """Message sender (`from`)."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TelegramChat(BaseModel):
    """Chat the message belongs to. Also used for `sender_chat` on channel posts."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    type: Optional[str] = None
    title: Optional[str] = None
    username: Optional[str] = None


class TelegramMessagePayload(BaseModel):
    """Telegram message. Text messages carry `text`, media messages a `caption`."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: Union[int, str]
    chat: TelegramChat
    sender: Optional[TelegramUser] = Field(None, alias="from")
    sender_chat: Optional[TelegramChat] = None
    text: Optional[str] = None
    caption: Optional[str] = None
    date: datetime  # Unix seconds

    @property
    def content(self) -> Optional[str]:
        return self.text if self.text is not None else self.caption
