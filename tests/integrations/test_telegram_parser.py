"""
Tests for Telegram payload normalization.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest

from app.exceptions import MalformedPayload, NotIngestible
from app.integrations.telegram.parser import parse_message
from app.models.message import Platform


def _payload(**overrides):
    payload = {
        "message_id": 7,
        "chat": {"id": -1001234, "type": "supergroup", "title": "Release Chat"},
        "from": {"id": 42, "username": "bo", "first_name": "Bo", "last_name": "Lind"},
        "date": 1792230000,
        "text": "works now, thanks",
    }
    payload.update(overrides)
    return payload


class TestParseTelegramMessage:
    """Test suite for Telegram message parsing."""

    def test_group_message(self):
        """Test mapping a group message onto the canonical record."""
        message = parse_message(_payload())

        assert message.id == "telegram:-1001234:7"
        assert message.platform == Platform.TELEGRAM
        assert message.channel_id == "-1001234"
        assert message.channel_name == "Release Chat"
        assert message.user_id == "42"
        assert message.username == "bo"
        assert message.first_name == "Bo"
        assert message.last_name == "Lind"
        assert message.content == "works now, thanks"
        assert int(message.created_at.timestamp()) == 1792230000

    def test_same_message_id_in_different_chats_is_distinct(self):
        """Test that ids are scoped by chat."""
        first = parse_message(_payload())
        second = parse_message(_payload(chat={"id": -1005678, "title": "Other"}))
        assert first.id != second.id

    def test_private_chat_has_no_channel_name(self):
        """Test a private chat without a title."""
        message = parse_message(_payload(chat={"id": 42, "type": "private"}))
        assert message.channel_name is None

    def test_username_falls_back_to_first_name(self):
        """Test the username fallback for senders without one."""
        message = parse_message(_payload(**{"from": {"id": 42, "first_name": "Bo"}}))
        assert message.username == "Bo"
        assert message.last_name is None

    def test_update_wrapper(self):
        """Test unwrapping a message from an Update."""
        update = {"update_id": 555, "message": _payload()}
        assert parse_message(update).id == "telegram:-1001234:7"

    def test_channel_post_uses_sender_chat(self):
        """Test channel posts authored by the channel itself."""
        post = _payload()
        del post["from"]
        post["sender_chat"] = {"id": -1009999, "title": "Announcements"}
        message = parse_message({"update_id": 556, "channel_post": post})
        assert message.user_id == "-1009999"
        assert message.username == "Announcements"

    def test_caption_used_for_media(self):
        """Test that a media caption is used as content."""
        payload = _payload(caption="look at this")
        del payload["text"]
        assert parse_message(payload).content == "look at this"

    def test_edited_message_is_not_ingestible(self):
        """Test that edits are acknowledged but not ingested."""
        with pytest.raises(NotIngestible):
            parse_message({"update_id": 557, "edited_message": _payload()})

    def test_membership_update_is_not_ingestible(self):
        """Test that non-message updates are not ingested."""
        with pytest.raises(NotIngestible):
            parse_message({"update_id": 558, "my_chat_member": {"chat": {"id": 1}}})

    def test_update_with_non_object_message(self):
        """Test that a non-object message field is malformed."""
        with pytest.raises(MalformedPayload):
            parse_message({"update_id": 559, "message": "hello"})

    @pytest.mark.parametrize("missing", ["message_id", "chat", "date", "text", "from"])
    def test_missing_required_field(self, missing):
        """Test that each required field is enforced."""
        payload = _payload()
        del payload[missing]
        with pytest.raises(MalformedPayload):
            parse_message(payload)

    def test_sender_without_any_name(self):
        """Test that a sender needs a username or first name."""
        with pytest.raises(MalformedPayload):
            parse_message(_payload(**{"from": {"id": 42}}))

    def test_wrong_shapes(self):
        """Test that mistyped fields raise MalformedPayload."""
        invalid_payloads = [
            _payload(text=["not", "text"]),
            _payload(date="soon"),
            _payload(chat="Release Chat"),
        ]
        for payload in invalid_payloads:
            with pytest.raises(MalformedPayload):
                parse_message(payload)
