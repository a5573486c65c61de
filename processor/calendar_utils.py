"""Calendar helpers: Spanish month names, week windows and date math."""
import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from processor.models import WeekRange

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre"
]

# es-MX short labels, capitalized and without the trailing dot
MONTH_ABBREVS = [
    "Ene", "Feb", "Mar", "Abr", "May", "Jun",
    "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"
]

WEEKDAY_ABBREVS = ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"]

WEEKDAY_NAMES = [
    "lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"
]

END_OF_DAY = time(23, 59, 59, 999999)


def get_month_number(month_name: str) -> int:
    """Return the 1-based number of a Spanish month name, or 0 if unknown."""
    name = (month_name or '').strip().lower()
    for index, candidate in enumerate(MONTH_NAMES):
        if candidate.lower() == name:
            return index + 1
    return 0


def month_name(month_number: int) -> str:
    """Return the Spanish name of a 1-based month number."""
    if 1 <= month_number <= 12:
        return MONTH_NAMES[month_number - 1]
    return "Mes"


def month_from_title(title: Optional[str]) -> int:
    """
    Find the month a sheet title refers to.

    Args:
        title: Sheet title such as "AGENDA ENERO 2025"

    Returns:
        1-based month number of the first month name contained in the title,
        or 0 when the title names no month
    """
    if not title:
        return 0
    upper = title.upper()
    for index, candidate in enumerate(MONTH_NAMES):
        if candidate.upper() in upper:
            return index + 1
    return 0


def weekday_abbrev(day: date) -> str:
    return WEEKDAY_ABBREVS[day.weekday()]


def month_abbrev(day: date) -> str:
    return MONTH_ABBREVS[day.month - 1]


def long_date_label(day: date) -> str:
    """Render a date as "Viernes, 11 de julio"."""
    label = f"{WEEKDAY_NAMES[day.weekday()]}, {day.day} de {MONTH_NAMES[day.month - 1].lower()}"
    return label[0].upper() + label[1:]


def add_months(day: date, months: int) -> date:
    """
    Move a date forward by whole months.

    Days past the end of the target month overflow into the following
    month, so January 31 plus one month is March 3 (or March 2 in a leap
    year).
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=day.day - 1)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def compute_week_range(year: int, month_index: int, week_number: int) -> Optional[WeekRange]:
    """
    Compute the Monday to Sunday window for week N of a month.

    Week 1 is the calendar week holding the 1st of the month, so it may
    start in the previous month. The end is never clamped to the month.

    Args:
        year: Calendar year
        month_index: Zero-based month (0 = January)
        week_number: 1-based week of the month

    Returns:
        WeekRange, or None when the week starts after the month's last day
    """
    first_day = date(year, month_index + 1, 1)
    last_day = last_day_of_month(year, month_index + 1)

    # weekday(): Monday is 0, so this also sends a Sunday back 6 days
    start_day = first_day - timedelta(days=first_day.weekday())
    start_day += timedelta(days=(week_number - 1) * 7)
    end_day = start_day + timedelta(days=6)

    if start_day > last_day:
        return None

    return WeekRange(
        start=datetime.combine(start_day, time.min),
        end=datetime.combine(end_day, END_OF_DAY),
        is_last_week_of_month=end_day >= last_day
    )


def current_week_range(today: date) -> WeekRange:
    """
    Compute the Monday to Sunday window containing a given day.

    Args:
        today: Any day of the week

    Returns:
        WeekRange flagged as last week when its Sunday closes the month
    """
    start_day = today - timedelta(days=today.weekday())
    end_day = start_day + timedelta(days=6)
    return WeekRange(
        start=datetime.combine(start_day, time.min),
        end=datetime.combine(end_day, END_OF_DAY),
        is_last_week_of_month=end_day == last_day_of_month(end_day.year, end_day.month)
    )


def today_in_timezone(tz_name: str) -> date:
    """Return today's date in the configured timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()
