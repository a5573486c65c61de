"""Helpers for loosely formatted event times."""
import re
from typing import Iterable, Optional

TIME_PATTERN = re.compile(r'(\d{1,2})(?::(\d{2}))?\s*(AM|PM|HRS|H)?', re.IGNORECASE)

MINUTES_PER_DAY = 24 * 60
DEFAULT_REMINDER_MINUTES = 9 * 60
EARLY_REMINDER_MINUTES = 5


def parse_time(time_str: Optional[str]) -> Optional[int]:
    """
    Parse a time label into minutes since midnight.

    Accepts "18:00", "6:00 PM", "9 AM", "18 hrs" and "6 p.m.". A number
    without AM/PM is read as a 24-hour value, so "6" is 6:00 AM.

    Args:
        time_str: Free text time label from the sheet

    Returns:
        Minutes since midnight (0-1439) or None if no valid time is found
    """
    if not time_str:
        return None

    # Drop the dots of "p.m." and collapse whitespace
    normalized = re.sub(r'\s+', ' ', str(time_str).strip().upper().replace('.', ''))

    match = TIME_PATTERN.search(normalized)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    modifier = match.group(3).upper() if match.group(3) else None

    if hours > 23 or minutes > 59:
        return None

    if modifier == 'PM' and hours < 12:
        hours += 12
    elif modifier == 'AM' and hours == 12:
        hours = 0

    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """
    Render minutes since midnight as "H:MM AM/PM".

    Args:
        minutes: Minutes since midnight

    Returns:
        Formatted time, or "Invalid Time" when out of range
    """
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        return "Invalid Time"

    hours, mins = divmod(minutes, 60)
    suffix = 'PM' if hours >= 12 else 'AM'

    if hours > 12:
        hours -= 12
    if hours == 0:
        hours = 12

    return f"{hours}:{mins:02d} {suffix}"


def earliest_time(labels: Iterable[Optional[str]]) -> Optional[int]:
    """Return the earliest parseable time among the labels."""
    parsed = [m for m in (parse_time(label) for label in labels) if m is not None]
    return min(parsed) if parsed else None


def reminder_minutes(
    labels: Iterable[Optional[str]],
    lead_minutes: int = 60,
    default_minutes: int = DEFAULT_REMINDER_MINUTES
) -> int:
    """
    Pick the time of day for the daily reminder.

    The reminder goes out one hour before the earliest event of the day,
    at 9:00 AM when no label has a time, and at 00:05 when the earliest
    event is too close to midnight.

    Args:
        labels: Time labels of today's events
        lead_minutes: How long before the first event to notify
        default_minutes: Fallback when no time can be parsed

    Returns:
        Minutes since midnight for the reminder
    """
    first = earliest_time(labels)
    if first is None:
        return default_minutes

    target = first - lead_minutes
    if target < 0:
        return EARLY_REMINDER_MINUTES
    return target
