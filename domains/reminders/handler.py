"""Reminder commands posted in the reminders channel."""

import re
from typing import Optional

from logger import logger
from .models import ReminderPreference, RepetitionMode
from .parser import mentions_date, parse_reminder_preference
from .service import ReminderService

LIST_COMMANDS = ['list reminders', 'show reminders', 'my reminders', 'reminders']
DAY_ABBREVIATIONS = {1: 'Sun', 2: 'Mon', 3: 'Tue', 4: 'Wed', 5: 'Thu', 6: 'Fri', 7: 'Sat'}

ACTION_PATTERN = re.compile(r'^(enable|disable|delete|cancel|remove)\s+reminder\s+(\S+)$', re.IGNORECASE)


async def handle_reminder_intent(
    content: str,
    user_id: str,
    service: ReminderService,
) -> Optional[str]:
    """Handle reminder-related messages.

    Args:
        content: Message content
        user_id: Preference store user id
        service: Reminder service

    Returns:
        Response string if handled, None if not a reminder request
    """
    content_lower = content.lower().strip()

    if content_lower in LIST_COMMANDS:
        return await _list_reminders(user_id, service)

    action = ACTION_PATTERN.match(content.strip())
    if action:
        verb, partial_id = action.group(1).lower(), action.group(2)
        return await _act_on_reminder(user_id, verb, partial_id, service)

    if 'remind' not in content_lower:
        return None

    if mentions_date(content):
        return (
            "Reminders are set for a time of day, not a date. "
            "Use `once` for a one-off at the next occurrence, e.g. `remind me once at 9pm to log dinner`."
        )

    pref = parse_reminder_preference(content)
    if not pref:
        return "Couldn't find a time in that. Try `remind me to log breakfast at 8am on weekdays`."

    try:
        saved = await service.save(user_id, pref)
    except Exception as e:
        logger.error(f"Failed to add reminder: {e}")
        return f"Failed to set reminder: {e}"

    return f"**Reminder set: {describe(saved)}**\n\n> {saved.message}"


def describe(pref: ReminderPreference) -> str:
    """One-line summary like `08:00 daily (Mon, Tue) - meal`."""
    when = f"{pref.hour:02d}:{pref.minute:02d}"
    if pref.repetition == RepetitionMode.ONCE:
        repeat = "once"
    elif pref.days_of_week:
        repeat = "daily (" + ", ".join(DAY_ABBREVIATIONS[d] for d in sorted(pref.days_of_week)) + ")"
    else:
        repeat = "daily"
    return f"{when} {repeat} - {pref.type.value.lower()}"


async def _list_reminders(user_id: str, service: ReminderService) -> str:
    """List a user's reminders."""
    try:
        preferences = await service.get_preferences(user_id)
    except Exception as e:
        logger.error(f"Failed to list reminders: {e}")
        return "Couldn't load reminders right now."

    if not preferences:
        return "No reminders set."

    lines = ["**Your reminders:**\n"]
    for pref in sorted(preferences, key=lambda p: (p.hour, p.minute)):
        state = "" if pref.is_enabled else " *(off)*"
        lines.append(f"- {describe(pref)}{state}: {pref.message}")
        lines.append(f"  `{pref.id[:8]}`")

    return "\n".join(lines)


async def _act_on_reminder(user_id: str, verb: str, partial_id: str, service: ReminderService) -> str:
    """Enable, disable or delete a reminder by partial id."""
    try:
        preferences = await service.get_preferences(user_id)
    except Exception as e:
        logger.error(f"Failed to load reminders: {e}")
        return "Couldn't load reminders right now."

    matches = [p for p in preferences if p.id.startswith(partial_id)]
    if not matches:
        return "Reminder not found. Use `list reminders` to see your reminders."
    if len(matches) > 1:
        return f"`{partial_id}` matches {len(matches)} reminders. Use more of the id."

    pref = matches[0]
    if verb in ('enable', 'disable'):
        enabled = verb == 'enable'
        if await service.toggle(user_id, pref, enabled):
            return f"{'Enabled' if enabled else 'Disabled'} reminder: {describe(pref)}"
        return f"Failed to {verb} reminder."

    try:
        await service.delete(user_id, pref)
    except Exception as e:
        logger.error(f"Failed to delete reminder {pref.id}: {e}")
        return "Failed to delete reminder."
    return f"Deleted reminder: {describe(pref)}"
