"""Event processor for normalizing spreadsheet rows into events."""
import logging
import re
import unicodedata
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Tuple

from processor.calendar_utils import add_months, get_month_number, month_from_title, weekday_abbrev
from processor.models import Event

logger = logging.getLogger(__name__)

# Canonical field -> accepted sheet headers, first populated alias wins
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    'name': ('Evento',),
    'month': ('Mes',),
    'day': ('Día', 'Dia'),
    'weekday': ('Día de la semana', 'Dia de la semana'),
    'place': ('Lugar',),
    'status': ('Estado',),
    'time': ('Hora',),
    'description': ('Descripción', 'Descripcion'),
    'highlight': ('Destacado', 'Importancia', 'Estelar', 'estelar'),
}

HIGHLIGHT_TOKENS = {'SI', 'X', 'ESTELAR'}

LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def _parse_int(value) -> Optional[int]:
    """Read the leading integer of a cell value ("11", "11 ", "3a")."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize('NFD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


class EventProcessor:
    """Processor for turning raw sheet rows into canonical events."""

    ROLLOVER_HIGH_DAY = 20
    ROLLOVER_LOW_DAY = 10

    def __init__(self, target_year: Optional[int] = None):
        """
        Initialize the processor.

        Args:
            target_year: Year used to resolve month/day pairs (default: current year)
        """
        self.target_year = target_year or datetime.now().year

    def process_rows(
        self,
        rows: List[Mapping[str, str]],
        month_name_context: Optional[str] = None
    ) -> List[Event]:
        """
        Normalize a batch of sheet rows, keeping their original order.

        Args:
            rows: Rows keyed by sheet header
            month_name_context: Month name or sheet title the rows were read under

        Returns:
            List of Event objects for the rows that could be normalized
        """
        events = []

        for index, row in enumerate(rows):
            try:
                event = self.normalize_row(row, month_name_context)
            except Exception as e:
                logger.warning(f"Failed to normalize row {index}: {e}")
                continue
            if event:
                events.append(event)

        logger.debug(
            f"Normalized {len(events)} events out of {len(rows)} rows "
            f"for '{month_name_context}'"
        )
        return events

    def normalize_row(
        self,
        row: Mapping[str, str],
        month_name_context: Optional[str] = None
    ) -> Optional[Event]:
        """
        Normalize a single sheet row.

        Args:
            row: Row keyed by sheet header
            month_name_context: Month name or sheet title the row was read under

        Returns:
            Event object, or None when the row has no name or no usable date
        """
        fields = self._resolve_fields(row)

        name = fields['name'].strip()
        if not name or name == 'undefined':
            return None

        event_date = self._build_date(fields['month'], fields['day'], month_name_context)
        if event_date is None:
            logger.debug(f"Skipping '{name}': unresolvable date")
            return None

        return Event(
            day=event_date.day,
            weekday_abbrev=self._weekday_label(fields['weekday'], event_date),
            name=name,
            place=fields['place'],
            status=fields['status'],
            time=fields['time'],
            description=fields['description'],
            date=event_date,
            source_month_name=month_name_context,
            highlighted=self.is_highlighted(fields['highlight'])
        )

    def parse_sheet_date(
        self,
        row: Mapping[str, str],
        month_name_context: Optional[str] = None
    ) -> Optional[date]:
        """Resolve only the date of a row, as used for exact-day lookups."""
        fields = self._resolve_fields(row)
        return self._build_date(fields['month'], fields['day'], month_name_context)

    def apply_month_rollover(self, events: List[Event]) -> List[Event]:
        """
        Move rows that continue into the next month onto that month.

        Sheets often append the first days of the next month below the
        last days of the current one without a month column. Once the day
        drops from above 20 to below 10, that event and all later ones are
        moved one month ahead. The flag never resets within one sequence.

        Args:
            events: Events in original row order

        Returns:
            New list with corrected dates; input events are not modified
        """
        corrected = []
        last_day = -1
        rolled = False

        for event in events:
            if last_day > self.ROLLOVER_HIGH_DAY and event.day < self.ROLLOVER_LOW_DAY:
                rolled = True

            if rolled:
                corrected.append(replace(event, date=add_months(event.date, 1)))
            else:
                corrected.append(event)

            last_day = event.day

        return corrected

    def is_highlighted(self, raw_value: str) -> bool:
        """
        Check whether a highlight cell marks an estelar event.

        Args:
            raw_value: Cell value ("Sí", "x", "Estelar", ...)

        Returns:
            True for SI, X or ESTELAR after trimming, upper-casing and
            removing accents
        """
        if not raw_value:
            return False
        value = _strip_accents(str(raw_value).strip().upper())
        return value in HIGHLIGHT_TOKENS

    def _resolve_fields(self, row: Mapping[str, str]) -> Dict[str, str]:
        fields = {}
        for field_name, aliases in COLUMN_ALIASES.items():
            value = ''
            for alias in aliases:
                candidate = row.get(alias)
                if candidate not in (None, ''):
                    value = candidate if isinstance(candidate, str) else str(candidate)
                    break
            fields[field_name] = value
        return fields

    def _build_date(
        self,
        month_value: str,
        day_value: str,
        month_name_context: Optional[str]
    ) -> Optional[date]:
        """
        Build the event date from the month and day cells.

        Args:
            month_value: Month cell, a number or a Spanish month name
            day_value: Day cell
            month_name_context: Used when the month cell is empty

        Returns:
            date in the target year, or None if it cannot be resolved
        """
        month = None
        if month_value:
            month = _parse_int(month_value)
            if month is None:
                month = get_month_number(month_value) or None
        elif month_name_context:
            month = month_from_title(month_name_context) or None

        day = _parse_int(day_value) if day_value else None

        if not month or not day:
            return None

        try:
            return date(self.target_year, month, day)
        except ValueError:
            logger.debug(f"Invalid calendar date {self.target_year}-{month}-{day}")
            return None

    def _weekday_label(self, raw_weekday: str, event_date: date) -> str:
        label = raw_weekday.strip() if raw_weekday else ''
        if not label:
            label = weekday_abbrev(event_date)
        label = label[:3]
        return label[0].upper() + label[1:].lower()
