"""Type definitions for reminder preferences and timer payloads."""

import hashlib
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from dateutil.parser import parse as parse_datetime

from . import config


class RepetitionMode(str, Enum):
    """How often a reminder fires."""
    ONCE = "ONCE"    # Fires one time, then disables itself
    DAILY = "DAILY"  # Fires every day, optionally gated by day of week

    @classmethod
    def parse(cls, value) -> "RepetitionMode":
        """Read a stored value, falling back to DAILY."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.DAILY


class ReminderType(str, Enum):
    """What the reminder asks the user to log."""
    MEAL = "MEAL"
    WEIGHT = "WEIGHT"

    @classmethod
    def parse(cls, value) -> "ReminderType":
        """Read a stored value, falling back to MEAL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.MEAL


# Calendar weekday numbering: Sunday=1 ... Saturday=7
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(1, 8)
ALL_DAYS = frozenset(range(1, 8))


def calendar_weekday(moment: datetime) -> int:
    """Weekday of a datetime as Sunday=1 ... Saturday=7."""
    return (moment.weekday() + 1) % 7 + 1


def unique_id_for(preference_id: str) -> int:
    """Stable integer key for a preference id.

    Used to address timers and notifications. The empty id maps to 0,
    which is never scheduled.
    """
    if not preference_id:
        return 0
    digest = hashlib.sha256(preference_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") >> 1


def _clean_days(days) -> frozenset:
    if not days:
        return frozenset()
    out = frozenset(int(d) for d in days)
    invalid = out - ALL_DAYS
    if invalid:
        raise ValueError(f"Invalid weekday(s) {sorted(invalid)}; expected 1 (Sunday) to 7 (Saturday)")
    return out


@dataclass
class ReminderPreference:
    """A user-configured reminder rule."""
    id: str = ""  # "" until the store assigns one
    hour: int = 12
    minute: int = 0
    repetition: RepetitionMode = RepetitionMode.DAILY
    days_of_week: frozenset = field(default_factory=frozenset)  # empty = every day
    message: str = config.DEFAULT_MEAL_MESSAGE
    type: ReminderType = ReminderType.MEAL
    is_enabled: bool = True
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be 0-23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute must be 0-59, got {self.minute}")
        self.repetition = RepetitionMode.parse(self.repetition)
        self.type = ReminderType.parse(self.type)
        self.days_of_week = _clean_days(self.days_of_week)

    @property
    def unique_id(self) -> int:
        return unique_id_for(self.id)

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    def with_enabled(self, is_enabled: bool) -> "ReminderPreference":
        return replace(self, is_enabled=is_enabled)

    def to_record(self, user_id: str) -> dict:
        """Row shape for the preference store (id omitted when unset)."""
        record = {
            "user_id": user_id,
            "hour": self.hour,
            "minute": self.minute,
            "repetition": self.repetition.value,
            "days_of_week": sorted(self.days_of_week),
            "message": self.message,
            "type": self.type.value,
            "is_enabled": self.is_enabled,
        }
        if self.id:
            record["id"] = self.id
        return record

    @classmethod
    def from_record(cls, record: dict) -> "ReminderPreference":
        updated_at = record.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = parse_datetime(updated_at)
        return cls(
            id=str(record.get("id") or ""),
            hour=int(record.get("hour", 12)),
            minute=int(record.get("minute", 0)),
            repetition=RepetitionMode.parse(record.get("repetition", "DAILY")),
            days_of_week=record.get("days_of_week") or (),
            message=record.get("message") or config.DEFAULT_MEAL_MESSAGE,
            type=ReminderType.parse(record.get("type", "MEAL")),
            is_enabled=bool(record.get("is_enabled", True)),
            updated_at=updated_at,
        )


@dataclass(frozen=True)
class ReminderPayload:
    """Everything a timer needs to carry to the dispatcher."""
    unique_id: int
    message: str
    repetition: RepetitionMode
    type: ReminderType
    preference_id: str = ""
    days_of_week: frozenset = frozenset()
    hour: Optional[int] = None
    minute: Optional[int] = None

    @classmethod
    def from_preference(cls, pref: ReminderPreference) -> "ReminderPayload":
        return cls(
            unique_id=pref.unique_id,
            message=pref.message,
            repetition=pref.repetition,
            type=pref.type,
            preference_id=pref.id,
            days_of_week=pref.days_of_week,
            hour=pref.hour,
            minute=pref.minute,
        )

    def to_dict(self) -> dict:
        """JSON-safe form, passed as the APScheduler job argument."""
        return {
            "unique_id": self.unique_id,
            "message": self.message,
            "repetition": self.repetition.value,
            "type": self.type.value,
            "preference_id": self.preference_id,
            "days_of_week": sorted(self.days_of_week),
            "hour": self.hour,
            "minute": self.minute,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReminderPayload":
        """Read a fired payload. Missing fields get defaults, never raise."""
        data = data or {}

        def _int_or_none(value):
            try:
                return int(value)
            except (TypeError, ValueError):
                return None

        days = frozenset()
        try:
            days = frozenset(int(d) for d in data.get("days_of_week") or ()) & ALL_DAYS
        except (TypeError, ValueError):
            pass

        hour = _int_or_none(data.get("hour"))
        minute = _int_or_none(data.get("minute"))
        if hour is not None and not 0 <= hour <= 23:
            hour = None
        if minute is not None and not 0 <= minute <= 59:
            minute = None

        return cls(
            unique_id=_int_or_none(data.get("unique_id")) or 0,
            message=data.get("message") or config.DEFAULT_PAYLOAD_MESSAGE,
            repetition=RepetitionMode.parse(data.get("repetition", "DAILY")),
            type=ReminderType.parse(data.get("type", "MEAL")),
            preference_id=data.get("preference_id") or "",
            days_of_week=days,
            hour=hour,
            minute=minute,
        )
