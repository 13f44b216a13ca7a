"""Pytest configuration and fixtures."""

from datetime import datetime
from unittest.mock import Mock, AsyncMock, patch
from zoneinfo import ZoneInfo

import pytest

from domains.reminders.models import ReminderPreference, ReminderType, RepetitionMode
from domains.reminders.notifications import NotificationPresenter
from domains.reminders.scheduler import AlarmScheduler
from domains.reminders.store import InMemoryPreferenceStore
from domains.reminders.timers import TimerService

UTC = ZoneInfo("UTC")
USER = "user-1"

# 2026-10-17 is a Saturday
SATURDAY_8AM = datetime(2026, 10, 17, 8, 0, tzinfo=UTC)


class FakeTimers(TimerService):
    """In-memory timer table keyed like the platform's."""

    def __init__(self, exact_allowed=True, refuse_exact=False, refuse_all=False):
        self.exact_allowed = exact_allowed
        self.refuse_exact = refuse_exact
        self.refuse_all = refuse_all
        self.timers: dict[int, tuple] = {}  # key -> (when, payload, kind)
        self.calls: list[tuple] = []

    def can_schedule_exact(self) -> bool:
        return self.exact_allowed

    def register_exact(self, key, when, payload):
        self.calls.append(("exact", key, when))
        if self.refuse_exact or self.refuse_all:
            raise PermissionError("SCHEDULE_EXACT_ALARM not granted")
        self.timers[key] = (when, payload, "exact")

    def register_inexact(self, key, when, payload):
        self.calls.append(("inexact", key, when))
        if self.refuse_all:
            raise PermissionError("alarms blocked")
        self.timers[key] = (when, payload, "inexact")

    def cancel(self, key):
        self.calls.append(("cancel", key, None))
        return self.timers.pop(key, None) is not None


class RecordingPresenter(NotificationPresenter):
    """Presenter that remembers what it showed."""

    def __init__(self, fail=False):
        super().__init__()
        self.fail = fail
        self.shown: list[dict] = []

    async def show(self, notification_id, channel_id, title, body, deep_link):
        if self.fail:
            raise RuntimeError("notification service unavailable")
        if channel_id not in self.channels:
            raise KeyError(channel_id)
        self.shown.append({
            "notification_id": notification_id,
            "channel_id": channel_id,
            "title": title,
            "body": body,
            "deep_link": deep_link,
        })


class MockMessage:
    """Mock Discord message."""

    def __init__(self, channel, embed=None, content=None):
        self.channel = channel
        self.embed = embed
        self.content = content
        self.deleted = False

    async def delete(self):
        self.deleted = True


class MockChannel:
    """Mock Discord channel for testing."""

    def __init__(self, bot):
        self.bot = bot

    async def send(self, content=None, embed=None):
        message = MockMessage(self, embed=embed, content=content)
        self.bot.sent_messages.append(message)
        return message


class MockBot:
    """Mock Discord bot for testing."""

    def __init__(self, cached=True):
        self.sent_messages = []
        self._channel = MockChannel(self)
        self._cached = cached
        self.fetch_calls = 0

    def get_channel(self, channel_id):
        return self._channel if self._cached else None

    async def fetch_channel(self, channel_id):
        self.fetch_calls += 1
        return self._channel


def make_pref(**overrides) -> ReminderPreference:
    values = dict(
        id="pref-1",
        hour=8,
        minute=0,
        repetition=RepetitionMode.DAILY,
        message="Log breakfast",
        type=ReminderType.MEAL,
        is_enabled=True,
    )
    values.update(overrides)
    return ReminderPreference(**values)


@pytest.fixture
def fake_timers():
    return FakeTimers()


@pytest.fixture
def clock():
    """Mutable clock; set clock.now to move time."""
    holder = Mock()
    holder.now = SATURDAY_8AM
    return holder


@pytest.fixture
def alarm_scheduler(fake_timers, clock):
    return AlarmScheduler(fake_timers, tz=UTC, clock=lambda: clock.now)


@pytest.fixture
def memory_store():
    return InMemoryPreferenceStore()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def mock_discord_bot():
    return MockBot()


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx client."""
    with patch('httpx.AsyncClient') as mock:
        client = AsyncMock()
        mock.return_value.__aenter__.return_value = client
        yield client


@pytest.fixture
def supabase_rows(mock_httpx_client):
    """Make the mocked Supabase client answer every request with the given rows."""
    def respond(rows):
        response = Mock()
        response.content = b"[...]"
        response.json.return_value = rows
        mock_httpx_client.request.return_value = response
        return response
    return respond
