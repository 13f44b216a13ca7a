"""Persistence for reminder preferences.

Supabase over its REST API when configured, otherwise an in-memory
store (preferences then only live as long as the process).
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import AsyncIterator, Optional

import httpx

from config import SUPABASE_URL, SUPABASE_KEY
from logger import logger
from . import config
from .models import ReminderPreference


class PreferenceStoreError(Exception):
    """A preference store read or write failed."""


class PreferenceStore(ABC):
    """Per-user reminder preference storage."""

    @abstractmethod
    async def get_preferences(self, user_id: str) -> list[ReminderPreference]:
        """All preferences for a user."""

    @abstractmethod
    async def save(self, user_id: str, pref: ReminderPreference) -> ReminderPreference:
        """Insert or update. Returns the stored preference with its id set."""

    @abstractmethod
    async def delete(self, user_id: str, pref: ReminderPreference) -> None:
        """Remove a preference."""

    @abstractmethod
    async def set_enabled(self, user_id: str, preference_id: str, enabled: bool) -> None:
        """Flip the enabled flag of one preference."""

    async def observe(
        self,
        user_id: str,
        interval: float = config.POLL_INTERVAL_SECONDS,
    ) -> AsyncIterator[list[ReminderPreference]]:
        """Yield the user's preferences now and whenever they change.

        Polls get_preferences() every `interval` seconds. Failed polls are logged
        and retried on the next tick.
        """
        last = None
        while True:
            try:
                current = await self.get_preferences(user_id)
            except PreferenceStoreError as e:
                logger.warning(f"Preference poll failed: {e}")
            else:
                if current != last:
                    last = current
                    yield current
            await asyncio.sleep(interval)


class InMemoryPreferenceStore(PreferenceStore):
    """Dict-backed store."""

    def __init__(self):
        self._rows: dict[str, dict[str, ReminderPreference]] = {}

    async def get_preferences(self, user_id: str) -> list[ReminderPreference]:
        return list(self._rows.get(user_id, {}).values())

    async def save(self, user_id: str, pref: ReminderPreference) -> ReminderPreference:
        if not pref.id:
            pref = replace(pref, id=uuid.uuid4().hex)
        self._rows.setdefault(user_id, {})[pref.id] = pref
        return pref

    async def delete(self, user_id: str, pref: ReminderPreference) -> None:
        self._rows.get(user_id, {}).pop(pref.id, None)

    async def set_enabled(self, user_id: str, preference_id: str, enabled: bool) -> None:
        rows = self._rows.get(user_id, {})
        if preference_id not in rows:
            raise PreferenceStoreError(f"No preference {preference_id} for user {user_id}")
        rows[preference_id] = rows[preference_id].with_enabled(enabled)


def _to_preferences(rows: list[dict]) -> list[ReminderPreference]:
    """Convert store rows, skipping any that do not form a valid preference."""
    preferences = []
    for row in rows:
        try:
            preferences.append(ReminderPreference.from_record(row))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed reminder row {row.get('id')}: {e}")
    return preferences


class SupabasePreferenceStore(PreferenceStore):
    """Store backed by a Supabase table."""

    def __init__(self, url: str, key: str, table: str = config.TABLE, timeout: float = config.STORE_TIMEOUT):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.key = key
        self.timeout = timeout

    def _headers(self) -> dict:
        """Get headers for Supabase API calls."""
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }

    async def _request(self, method: str, params: dict, json: Optional[dict] = None) -> list[dict]:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    self.endpoint,
                    headers=self._headers(),
                    params=params,
                    json=json,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json() if response.content else []
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} {self.endpoint} failed: {e}")
            raise PreferenceStoreError(str(e)) from e

    async def get_preferences(self, user_id: str) -> list[ReminderPreference]:
        rows = await self._request("GET", {
            "user_id": f"eq.{user_id}",
            "select": "*",
            "order": "hour,minute",
        })
        return _to_preferences(rows)

    async def save(self, user_id: str, pref: ReminderPreference) -> ReminderPreference:
        record = pref.to_record(user_id)
        if pref.id:
            rows = await self._request("PATCH", {
                "id": f"eq.{pref.id}",
                "user_id": f"eq.{user_id}",
            }, json=record)
        else:
            rows = await self._request("POST", {}, json=record)

        if not rows:
            raise PreferenceStoreError(f"Supabase returned no row for saved preference {pref.id or '(new)'}")
        saved = ReminderPreference.from_record(rows[0])
        logger.info(f"Saved reminder preference {saved.id}")
        return saved

    async def delete(self, user_id: str, pref: ReminderPreference) -> None:
        await self._request("DELETE", {
            "id": f"eq.{pref.id}",
            "user_id": f"eq.{user_id}",
        })
        logger.info(f"Deleted reminder preference {pref.id}")

    async def set_enabled(self, user_id: str, preference_id: str, enabled: bool) -> None:
        await self._request("PATCH", {
            "id": f"eq.{preference_id}",
            "user_id": f"eq.{user_id}",
        }, json={"is_enabled": enabled})
        logger.debug(f"Set preference {preference_id} enabled={enabled}")


def create_store() -> PreferenceStore:
    """Supabase store if configured, in-memory otherwise."""
    if not SUPABASE_URL or not SUPABASE_KEY:
        logger.warning("Supabase not configured, reminder preferences will not be persisted")
        return InMemoryPreferenceStore()
    return SupabasePreferenceStore(SUPABASE_URL, SUPABASE_KEY)
