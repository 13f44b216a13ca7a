"""Tests for reminder preference persistence."""

import asyncio
from unittest.mock import Mock, patch

import httpx
import pytest

from conftest import USER, make_pref
from domains.reminders.models import ReminderType, RepetitionMode
from domains.reminders.store import (
    InMemoryPreferenceStore,
    PreferenceStoreError,
    SupabasePreferenceStore,
    create_store,
)

ROW = {
    "id": "row-1",
    "user_id": USER,
    "hour": 8,
    "minute": 0,
    "repetition": "DAILY",
    "days_of_week": [2, 3, 4, 5, 6],
    "message": "Log breakfast",
    "type": "MEAL",
    "is_enabled": True,
    "updated_at": "2026-10-18T20:00:00+00:00",
}


def make_response(rows):
    response = Mock()
    response.content = b"[...]" if rows is not None else b""
    response.json.return_value = rows
    response.raise_for_status = Mock()
    return response


@pytest.fixture
def supabase_store():
    return SupabasePreferenceStore("https://example.supabase.co/", "test-key")


class TestSupabasePreferenceStore:
    """SupabasePreferenceStore over a mocked httpx client."""

    def test_endpoint(self, supabase_store):
        assert supabase_store.endpoint == "https://example.supabase.co/rest/v1/reminder_preferences"

    @pytest.mark.asyncio
    async def test_get_preferences(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response([ROW])

        prefs = await supabase_store.get_preferences(USER)

        assert len(prefs) == 1
        assert prefs[0].id == "row-1"
        assert prefs[0].days_of_week == frozenset({2, 3, 4, 5, 6})

        args, kwargs = mock_httpx_client.request.call_args
        assert args == ("GET", supabase_store.endpoint)
        assert kwargs["params"]["user_id"] == f"eq.{USER}"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_save_new_posts(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response([ROW])

        saved = await supabase_store.save(USER, make_pref(id=""))

        assert saved.id == "row-1"
        args, kwargs = mock_httpx_client.request.call_args
        assert args[0] == "POST"
        assert "id" not in kwargs["json"]
        assert kwargs["json"]["user_id"] == USER

    @pytest.mark.asyncio
    async def test_save_existing_patches(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response([dict(ROW, hour=9)])

        saved = await supabase_store.save(USER, make_pref(id="row-1", hour=9))

        assert saved.hour == 9
        args, kwargs = mock_httpx_client.request.call_args
        assert args[0] == "PATCH"
        assert kwargs["params"] == {"id": "eq.row-1", "user_id": f"eq.{USER}"}

    @pytest.mark.asyncio
    async def test_save_with_no_row_returned_raises(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response([])

        with pytest.raises(PreferenceStoreError):
            await supabase_store.save(USER, make_pref(id=""))

    @pytest.mark.asyncio
    async def test_delete(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response(None)

        await supabase_store.delete(USER, make_pref(id="row-1"))

        args, kwargs = mock_httpx_client.request.call_args
        assert args[0] == "DELETE"
        assert kwargs["params"]["id"] == "eq.row-1"

    @pytest.mark.asyncio
    async def test_set_enabled(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.return_value = make_response([dict(ROW, is_enabled=False)])

        await supabase_store.set_enabled(USER, "row-1", False)

        args, kwargs = mock_httpx_client.request.call_args
        assert args[0] == "PATCH"
        assert kwargs["json"] == {"is_enabled": False}

    @pytest.mark.asyncio
    async def test_http_error_becomes_store_error(self, supabase_store, mock_httpx_client):
        mock_httpx_client.request.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(PreferenceStoreError):
            await supabase_store.get_preferences(USER)

    @pytest.mark.asyncio
    async def test_bad_status_becomes_store_error(self, supabase_store, mock_httpx_client):
        response = make_response([])
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "401 Unauthorized", request=Mock(), response=Mock()
        )
        mock_httpx_client.request.return_value = response

        with pytest.raises(PreferenceStoreError):
            await supabase_store.set_enabled(USER, "row-1", True)

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, supabase_store, supabase_rows):
        supabase_rows([
            ROW,
            dict(ROW, id="bad-hour", hour=24),
            dict(ROW, id="bad-day", days_of_week=[0]),
            dict(ROW, id="bad-minute", minute=None),
            dict(ROW, id="row-2", hour=9),
        ])

        prefs = await supabase_store.get_preferences(USER)

        assert [p.id for p in prefs] == ["row-1", "row-2"]


class TestInMemoryPreferenceStore:
    """InMemoryPreferenceStore."""

    @pytest.mark.asyncio
    async def test_save_assigns_id(self, memory_store):
        saved = await memory_store.save(USER, make_pref(id=""))
        assert saved.id
        assert await memory_store.get_preferences(USER) == [saved]

    @pytest.mark.asyncio
    async def test_save_existing_overwrites(self, memory_store):
        await memory_store.save(USER, make_pref(id="a"))
        await memory_store.save(USER, make_pref(id="a", type=ReminderType.WEIGHT))

        prefs = await memory_store.get_preferences(USER)
        assert len(prefs) == 1
        assert prefs[0].type == ReminderType.WEIGHT

    @pytest.mark.asyncio
    async def test_users_are_separate(self, memory_store):
        await memory_store.save(USER, make_pref(id="a"))
        assert await memory_store.get_preferences("someone-else") == []

    @pytest.mark.asyncio
    async def test_set_enabled(self, memory_store):
        await memory_store.save(USER, make_pref(id="a", repetition=RepetitionMode.ONCE))
        await memory_store.set_enabled(USER, "a", False)

        prefs = await memory_store.get_preferences(USER)
        assert prefs[0].is_enabled is False

    @pytest.mark.asyncio
    async def test_set_enabled_unknown_raises(self, memory_store):
        with pytest.raises(PreferenceStoreError):
            await memory_store.set_enabled(USER, "missing", False)

    @pytest.mark.asyncio
    async def test_delete(self, memory_store):
        pref = await memory_store.save(USER, make_pref(id="a"))
        await memory_store.delete(USER, pref)
        await memory_store.delete(USER, pref)
        assert await memory_store.get_preferences(USER) == []


class TestObserve:
    """Polling change stream."""

    @pytest.mark.asyncio
    async def test_emits_initial_and_changes_only(self, memory_store):
        await memory_store.save(USER, make_pref(id="a"))
        stream = memory_store.observe(USER, interval=0)

        first = await stream.__anext__()
        assert [p.id for p in first] == ["a"]

        await memory_store.set_enabled(USER, "a", False)
        second = await asyncio.wait_for(stream.__anext__(), timeout=1)
        assert second[0].is_enabled is False

        await stream.aclose()

    @pytest.mark.asyncio
    async def test_poll_failure_is_retried(self):
        store = InMemoryPreferenceStore()
        calls = {"n": 0}
        real = store.get_preferences

        async def flaky(user_id):
            calls["n"] += 1
            if calls["n"] == 1:
                raise PreferenceStoreError("offline")
            return await real(user_id)

        store.get_preferences = flaky
        stream = store.observe(USER, interval=0)

        assert await asyncio.wait_for(stream.__anext__(), timeout=1) == []
        assert calls["n"] == 2
        await stream.aclose()


    @pytest.mark.asyncio
    async def test_survives_malformed_row(self, supabase_store, supabase_rows):
        supabase_rows([ROW, dict(ROW, id="bad", hour=24)])
        stream = supabase_store.observe(USER, interval=0)

        first = await asyncio.wait_for(stream.__anext__(), timeout=1)
        assert [p.id for p in first] == ["row-1"]

        supabase_rows([ROW, dict(ROW, id="bad", hour=24), dict(ROW, id="row-2", hour=9)])
        second = await asyncio.wait_for(stream.__anext__(), timeout=1)
        assert [p.id for p in second] == ["row-1", "row-2"]

        await stream.aclose()


class TestCreateStore:
    """create_store() selection."""

    def test_in_memory_without_supabase(self):
        with patch("domains.reminders.store.SUPABASE_URL", ""):
            assert isinstance(create_store(), InMemoryPreferenceStore)

    def test_supabase_when_configured(self):
        with patch("domains.reminders.store.SUPABASE_URL", "https://x.supabase.co"), \
                patch("domains.reminders.store.SUPABASE_KEY", "k"):
            assert isinstance(create_store(), SupabasePreferenceStore)
