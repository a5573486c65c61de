"""Digest formatter for monthly, weekly and daily agenda messages."""
import logging
from datetime import date, datetime, timedelta
from typing import List, Mapping, Optional, Set, Union

from processor.calendar_utils import long_date_label, month_abbrev, month_name
from processor.categories import tag_category
from processor.event_processor import EventProcessor
from processor.greetings import get_greeting
from processor.models import Event, MonthMetadata

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

NO_EVENTS_MONTH = "No hay eventos registrados para este mes."
NO_EVENTS_WEEK = "No hay eventos programados para esta semana."
MONTHLY_CLOSING = '_"Preparemos nuestro corazón para lo que Dios hará."_'
CANCELLED_TAG = "❌ (CANCELADO)"
LAST_WEEK_LEGEND = " (última semana del mes)"


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


class DigestFormatter:
    """Formatter that renders normalized events as chat-ready digests."""

    # (label, first day, last day)
    WEEK_BUCKETS = [
        ("Semana 1", 1, 7),
        ("Semana 2", 8, 14),
        ("Semana 3", 15, 21),
        ("Semana 4", 22, 28),
        ("Semana 5", 29, 31),
    ]

    def __init__(
        self,
        processor: Optional[EventProcessor] = None,
        home_venue: str = "Tierra Prometida Atizapán",
        community_name: str = "TIERRA PROMETIDA"
    ):
        """
        Initialize the formatter.

        Args:
            processor: EventProcessor used to normalize monthly rows
            home_venue: Venue left out of event lines since it is the default
            community_name: Name shown in the daily reminder header
        """
        self.processor = processor or EventProcessor()
        self.home_venue = home_venue
        self.community_name = community_name

    def format_monthly(
        self,
        rows: List[Mapping[str, str]],
        metadata: MonthMetadata,
        target_month: int
    ) -> str:
        """
        Build the monthly digest from the raw rows of a month sheet.

        Args:
            rows: Sheet rows in their original order
            metadata: Custom title, description and month name
            target_month: 1-based month the digest is for

        Returns:
            Header, week sections and closing line, or the header plus the
            no-events line when nothing falls in the month
        """
        header = self._monthly_header(metadata, target_month)

        try:
            events = self._monthly_events(rows, metadata.month_name, target_month)
        except Exception as e:
            logger.error(f"Failed to prepare monthly events: {e}", exc_info=True)
            events = []

        if not events:
            return header + NO_EVENTS_MONTH

        buckets = [[] for _ in self.WEEK_BUCKETS]
        for index, event in enumerate(events):
            # Events rolled into the next month only take part in merging
            if event.date.month != target_month:
                continue
            for bucket, (_, first, last) in zip(buckets, self.WEEK_BUCKETS):
                if first <= event.day <= last:
                    bucket.append(index)
                    break

        seen: Set[int] = set()
        message = header

        for (label, _, _), bucket in zip(self.WEEK_BUCKETS, buckets):
            if all(index in seen for index in bucket):
                continue

            message += f"*{label}*\n"
            for index in bucket:
                if index in seen:
                    continue
                run = self._collect_run(events, index, seen)
                seen.update(run)
                run_events = [events[i] for i in run]
                annotate = run_events[-1].date.month != target_month
                message += self._render_line(run_events, annotate) + "\n"
            message += "\n"

        return message + MONTHLY_CLOSING

    def format_weekly(
        self,
        events: List[Event],
        start: DateLike,
        end: DateLike,
        month_index: int,
        header_month_label: Optional[str] = None,
        is_last_week: bool = False
    ) -> str:
        """
        Build the weekly digest for a Monday to Sunday window.

        Args:
            events: Normalized events, possibly from two month sheets
            start: First day of the window
            end: Last day of the window
            month_index: Zero-based month used for the greeting rotation
            header_month_label: Month label shown in the week line
            is_last_week: Adds the last-week legend to the header

        Returns:
            Formatted digest text
        """
        start_day = _as_date(start)
        end_day = _as_date(end)

        message = f"{get_greeting('weekly', month_index, header_month_label)}\n\n"
        month_header = f" ({header_month_label.upper()})" if header_month_label else ""
        legend = LAST_WEEK_LEGEND if is_last_week else ""
        message += f"📅 *Semana del {start_day.day} al {end_day.day}{month_header}*{legend}\n\n"

        try:
            window = sorted(
                (event for event in events if start_day <= event.date <= end_day),
                key=lambda event: event.date
            )
        except Exception as e:
            logger.error(f"Failed to filter weekly events: {e}", exc_info=True)
            window = []

        if not window:
            return message + NO_EVENTS_WEEK

        seen: Set[int] = set()
        for index in range(len(window)):
            if index in seen:
                continue
            run = self._collect_run(window, index, seen)
            seen.update(run)
            run_events = [window[i] for i in run]
            annotate = run_events[-1].date.month != run_events[0].date.month
            message += self._render_line(run_events, annotate) + "\n"

        return message

    def format_daily(
        self,
        events: List[Event],
        today: date,
        greeting: str,
        time_greeting: str
    ) -> str:
        """Build the reminder for today's events."""
        message = f"☀️ *{time_greeting} HOY EN {self.community_name}:*\n\n"
        message += f"{greeting}\n\n"
        message += f"📅 *{today.day} de {month_name(today.month)}*\n\n"

        for event in events:
            message += f"{tag_category(event.name)} *{event.name}*\n"
            if event.time:
                message += f"   ⏰ Hora: {event.time}\n"
            if event.place:
                message += f"   📍 Lugar: {event.place}\n"
            if event.description:
                message += f"   {event.description}\n"
            message += "\n"

        return message.rstrip("\n")

    def format_highlight_alert(self, event: Event, days_ahead: int = 5) -> str:
        """Build the advance notice for an estelar event."""
        time_label = event.time.strip() if event.time else "Hora no especificada"
        return (
            f"🚀 ¡Atención! Faltan {days_ahead} días para:\n\n"
            f"✨ *{event.name}*\n"
            f"🕒 {time_label}\n"
            f"📅 {long_date_label(event.date)}\n\n"
            f"¡Prepárate! 🙌"
        )

    def _monthly_header(self, metadata: MonthMetadata, target_month: int) -> str:
        if metadata.title:
            header = f"🗓 *{metadata.title}*\n\n"
        else:
            header = f"🗓 *AGENDA DE {metadata.month_name.upper()}*\n\n"

        if metadata.description:
            header += f"_{metadata.description}_\n\n"

        header += f"{get_greeting('monthly', target_month - 1, metadata.month_name)}\n\n"
        return header

    def _monthly_events(
        self,
        rows: List[Mapping[str, str]],
        month_name_context: str,
        target_month: int
    ) -> List[Event]:
        """Normalize, roll over, filter to this month or the next, and sort."""
        raw_events = self.processor.process_rows(rows, month_name_context)
        corrected = self.processor.apply_month_rollover(raw_events)

        next_month = target_month % 12 + 1
        kept = [
            event for event in corrected
            if event.date.month in (target_month, next_month)
        ]
        kept.sort(key=lambda event: event.date)

        logger.info(
            f"Monthly digest: {len(kept)} of {len(raw_events)} events kept "
            f"for month {target_month}"
        )
        return kept

    def _collect_run(self, events: List[Event], index: int, seen: Set[int]) -> List[int]:
        """
        Extend a run of the same event over consecutive days.

        Args:
            events: Date-sorted events to search
            index: Position of the first event of the run
            seen: Positions already rendered

        Returns:
            Positions of the run in date order, starting with index
        """
        run = [index]
        current = events[index]

        while True:
            next_date = current.date + timedelta(days=1)
            match = None
            for candidate_index, candidate in enumerate(events):
                if candidate_index in seen or candidate_index in run:
                    continue
                if (candidate.date == next_date
                        and candidate.name == current.name
                        and candidate.status == current.status):
                    match = candidate_index
                    break
            if match is None:
                break
            run.append(match)
            current = events[match]

        return run

    def _render_line(self, run: List[Event], annotate_end_month: bool) -> str:
        """
        Render one event or one run of consecutive days.

        Args:
            run: Events of the run in date order
            annotate_end_month: Append the short month to the end date

        Returns:
            Single formatted line without trailing newline
        """
        first, last = run[0], run[-1]
        end_label = f"{last.weekday_abbrev} {last.day}"
        if annotate_end_month:
            end_label += f" ({month_abbrev(last.date)})"

        if len(run) == 1:
            when = end_label
        elif len(run) == 2:
            when = f"{first.weekday_abbrev} {first.day} y {end_label}"
        else:
            when = f"Del {first.weekday_abbrev} {first.day} al {end_label}"

        place = self._place_label(first.place)

        if first.is_cancelled:
            return f"{CANCELLED_TAG} {when}: {first.name}{place}"

        line = f"{tag_category(first.name)} {when}: *{first.name}*{place}"
        if len(run) == 1 and first.time:
            line += f" - {first.time}"
        return line

    def _place_label(self, place: Optional[str]) -> str:
        if place and self.home_venue.lower() not in place.lower():
            return f" ({place})"
        return ""
