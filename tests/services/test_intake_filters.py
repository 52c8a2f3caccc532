"""
Tests for the runtime intake filter registry.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest

from conftest import NOW
from app.models.message import Message, Platform
from app.services.intake_filters import IntakeFilters


def _message(content="great release", user_id="U1", channel_id="C1") -> Message:
    return Message(
        id="discord:1",
        platform=Platform.DISCORD,
        channel_id=channel_id,
        user_id=user_id,
        username="ana",
        content=content,
        created_at=NOW,
    )


@pytest.fixture
def filters():
    return IntakeFilters(min_content_length=3, excluded_user_ids=[], monitored_channel_ids=[])


class TestSeeding:
    def test_monitor_all_when_no_channels_listed(self, filters):
        """Test that an empty channel list means every channel is monitored."""
        assert filters.monitor_all_channels is True
        assert filters.skip_reason(_message(channel_id="anything")) is None

    def test_listed_channels_turn_monitor_all_off(self):
        """Test that listing channels restricts intake to them."""
        filters = IntakeFilters(min_content_length=0, excluded_user_ids=[], monitored_channel_ids=["C2", "C1"])

        assert filters.monitor_all_channels is False
        assert filters.monitored_channels() == ["C1", "C2"]

    def test_explicit_monitor_all_wins(self):
        """Test that an explicit monitor-all flag overrides the channel list."""
        filters = IntakeFilters(
            min_content_length=0,
            excluded_user_ids=[],
            monitored_channel_ids=["C1"],
            monitor_all_channels=True,
        )
        assert filters.skip_reason(_message(channel_id="C9")) is None


class TestSkipReason:
    def test_short_content(self, filters):
        """Test that whitespace does not count toward the minimum length."""
        assert "shorter" in filters.skip_reason(_message(content="  ok  "))

    def test_excluded_author(self):
        """Test that an excluded author is skipped."""
        filters = IntakeFilters(min_content_length=0, excluded_user_ids=["BOT"], monitored_channel_ids=[])
        assert "excluded" in filters.skip_reason(_message(user_id="BOT"))
        assert filters.skip_reason(_message(user_id="U1")) is None

    def test_unmonitored_channel(self, filters):
        """Test that only monitored channels pass once monitor-all is off."""
        filters.set_monitor_all_channels(False)
        filters.set_channel_monitored("C1", True)

        assert filters.skip_reason(_message(channel_id="C1")) is None
        assert "not monitored" in filters.skip_reason(_message(channel_id="C2"))


class TestRuntimeChanges:
    def test_channel_add_and_remove(self, filters):
        """Test that channel changes report whether the set changed."""
        assert filters.set_channel_monitored("C1", True) is True
        assert filters.set_channel_monitored("C1", True) is False
        assert filters.monitored_channels() == ["C1"]

        assert filters.set_channel_monitored("C1", False) is True
        assert filters.set_channel_monitored("C1", False) is False
        assert filters.monitored_channels() == []

    def test_user_exclude_and_include(self, filters):
        """Test that author changes report whether the set changed."""
        assert filters.set_user_excluded("U9", True) is True
        assert filters.set_user_excluded("U9", True) is False
        assert filters.excluded_users() == ["U9"]

        assert filters.set_user_excluded("U9", False) is True
        assert filters.excluded_users() == []

    def test_changes_are_logged(self, filters, caplog):
        """Test that filter edits leave an audit line."""
        with caplog.at_level("INFO", logger="app.services.intake_filters"):
            filters.set_user_excluded("U9", True)
            filters.set_monitor_all_channels(False)

        assert "User U9 excluded from analysis" in caplog.text
        assert "Monitor all channels disabled" in caplog.text
