from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cogs.debate_lifecycle import DebateController


class FakeClock:
    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(clock):
    return DebateController(clock=clock)


def make_user(user_id, bot=False):
    user = MagicMock()
    user.id = user_id
    user.bot = bot
    user.display_name = f"user{user_id}"
    user.mention = f"<@{user_id}>"
    user.display_avatar.url = "https://cdn.example.com/avatar.png"
    return user


def make_interaction(user, guild_id=100, channel_id=200):
    interaction = MagicMock()
    interaction.user = user
    interaction.guild.id = guild_id
    interaction.channel.id = channel_id
    interaction.response.send_message = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    message = MagicMock()
    message.edit = AsyncMock()
    interaction.original_response = AsyncMock(return_value=message)
    return interaction


def assert_counters_consistent(controller):
    for profile in controller.users:
        assert profile.active_debates == len(controller.list_active(profile.user_id))
        assert profile.wins + profile.losses == profile.total_debates
        assert profile.rating >= 100
