"""Parse reminder requests into preferences."""

import re
from typing import Optional

from . import config
from .models import (
    ReminderPreference,
    ReminderType,
    RepetitionMode,
    SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY,
)

# Time patterns - HH:MM, HH.MM, or H am/pm (a bare number needs am/pm)
TIME_PATTERN = r'\b(\d{1,2}[:.]\d{2}\s*(?:am|pm)?|\d{1,2}\s*(?:am|pm))\b'

DAY_NAMES = {
    'sun': SUNDAY, 'mon': MONDAY, 'tue': TUESDAY, 'wed': WEDNESDAY,
    'thu': THURSDAY, 'fri': FRIDAY, 'sat': SATURDAY,
}
DAY_PATTERN = r'\b(sunday|saturday|mon|tue|tues|wed|thu|thur|thurs|fri)(?:day|nesday|sday)?s?\b'

# Relative dates; preferences carry a time of day only
DATE_PATTERN = r'\b(today|tonight|tomorrow)\b'

WEEKDAYS = frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY})
WEEKENDS = frozenset({SATURDAY, SUNDAY})


def parse_reminder_preference(text: str) -> Optional[ReminderPreference]:
    """Parse a reminder request into an unsaved preference.

    Examples:
    - "remind me to log breakfast at 8am on weekdays"
    - "weight reminder 7:30 every monday and thursday"
    - "remind me once at 13:00 to log lunch"

    Args:
        text: Message text

    Returns:
        ReminderPreference with an empty id, or None if no time was found
    """
    text_lower = text.lower()

    time_match = re.search(TIME_PATTERN, text_lower)
    if not time_match:
        return None

    hour, minute = _parse_time(time_match.group(1))
    if hour is None:
        return None

    reminder_type = ReminderType.WEIGHT if re.search(r'\bweigh(t|ing)?\b', text_lower) else ReminderType.MEAL

    repetition = RepetitionMode.DAILY
    if re.search(r'\b(once|one[- ]off|one[- ]time)\b', text_lower):
        repetition = RepetitionMode.ONCE

    days = _parse_days(text_lower) if repetition == RepetitionMode.DAILY else frozenset()

    message = _extract_message(text)
    if not message:
        message = config.DEFAULT_WEIGHT_MESSAGE if reminder_type == ReminderType.WEIGHT else config.DEFAULT_MEAL_MESSAGE

    return ReminderPreference(
        hour=hour,
        minute=minute,
        repetition=repetition,
        days_of_week=days,
        message=message,
        type=reminder_type,
    )


def _parse_time(time_str: str) -> tuple[Optional[int], int]:
    """Parse time string to (hour, minute).

    Args:
        time_str: Time string like "9am", "9:30pm", "14:00", "8.45"

    Returns:
        Tuple of (hour, minute), or (None, 0) if invalid
    """
    time_str = time_str.lower().strip()

    is_pm = 'pm' in time_str
    is_am = 'am' in time_str
    time_str = re.sub(r'[ap]m', '', time_str).strip()

    try:
        if ':' in time_str or '.' in time_str:
            parts = re.split(r'[:.]', time_str)
            hour = int(parts[0])
            minute = int(parts[1]) if len(parts) > 1 else 0
        else:
            hour = int(time_str)
            minute = 0
    except ValueError:
        return None, 0

    # 12-hour clock values above 12 make no sense
    if (is_am or is_pm) and hour > 12:
        return None, 0

    if is_pm and hour < 12:
        hour += 12
    elif is_am and hour == 12:
        hour = 0

    if hour < 0 or hour > 23 or minute < 0 or minute > 59:
        return None, 0

    return hour, minute


def _parse_days(text_lower: str) -> frozenset:
    """Day-of-week filter from the text. Empty means every day."""
    if re.search(r'\b(every day|everyday|daily)\b', text_lower):
        return frozenset()

    days = set()
    if re.search(r'\bweekdays?\b', text_lower):
        days |= WEEKDAYS
    if re.search(r'\bweekends?\b', text_lower):
        days |= WEEKENDS
    for match in re.finditer(DAY_PATTERN, text_lower):
        days.add(DAY_NAMES[match.group(1)[:3]])

    # All seven days is the same as no filter
    if len(days) == 7:
        return frozenset()
    return frozenset(days)


def _extract_message(text: str) -> str:
    """Leftover text once time, day and keyword phrases are removed."""
    message = text
    message = re.sub(TIME_PATTERN, '', message, flags=re.IGNORECASE)
    message = re.sub(DAY_PATTERN, '', message, flags=re.IGNORECASE)
    message = re.sub(r'\b(weekdays?|weekends?|every day|everyday|daily|once|one[- ]off|one[- ]time)\b', '', message, flags=re.IGNORECASE)
    message = re.sub(r'\b(meal|weight)\s+reminders?\b', '', message, flags=re.IGNORECASE)
    message = re.sub(r'\b(remind me|reminders?|remind|set a reminder|can you remind me)\b', '', message, flags=re.IGNORECASE)
    message = re.sub(r'\b(at|on|every|and|please)\b', '', message, flags=re.IGNORECASE)
    message = re.sub(r'\s+', ' ', message).strip()
    message = message.strip('.,;:!-–—')
    message = re.sub(r'^(to|for)\s+', '', message, flags=re.IGNORECASE).strip()
    if not message or message.lower() in ('to', 'for'):
        return ""
    return message[0].upper() + message[1:]


def mentions_date(text: str) -> bool:
    """Whether the text asks for a specific day like "tomorrow"."""
    return re.search(DATE_PATTERN, text.lower()) is not None
