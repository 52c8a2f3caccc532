# Telegram integration module
from app.integrations.telegram.parser import parse_message
from app.integrations.telegram.models import TelegramMessagePayload

__all__ = ["parse_message", "TelegramMessagePayload"]
