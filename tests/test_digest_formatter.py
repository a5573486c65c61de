"""Unit tests for DigestFormatter."""
from datetime import date, datetime
from unittest.mock import Mock

import pytest

from digest.digest_formatter import (
    MONTHLY_CLOSING,
    NO_EVENTS_MONTH,
    NO_EVENTS_WEEK,
    DigestFormatter,
)
from processor.event_processor import EventProcessor
from processor.models import MonthMetadata

JANUARY_HEADER = (
    "🗓 *AGENDA DE ENERO*\n\n"
    "📅 *¡NUEVO MES, NUEVAS BENDICIONES! (ENERO)*\n\n"
)

WEEK_START = datetime(2025, 7, 7)
WEEK_END = datetime(2025, 7, 13, 23, 59, 59, 999999)


@pytest.fixture
def processor():
    return EventProcessor(target_year=2025)


@pytest.fixture
def formatter(processor):
    return DigestFormatter(processor=processor)


@pytest.fixture
def january():
    return MonthMetadata(month_name='Enero')


def july_events(processor, *rows):
    """Normalize (day, name, status, extra) tuples as July rows."""
    sheet_rows = []
    for day, name, status, extra in rows:
        row = {'Evento': name, 'Mes': '7', 'Día': str(day), 'Estado': status}
        row.update(extra)
        sheet_rows.append(row)
    return processor.process_rows(sheet_rows, 'Julio')


class TestFormatMonthly:
    """Test cases for the monthly digest."""

    def test_full_digest(self, formatter, january):
        """Test buckets, cross-week merging, hidden home venue and time."""
        rows = [
            {'Evento': 'Retiro', 'Día': '6', 'Estado': 'Activo'},
            {'Evento': 'Retiro', 'Día': '7', 'Estado': 'Activo'},
            {'Evento': 'Retiro', 'Día': '8', 'Estado': 'Activo'},
            {'Evento': 'Noche de oración', 'Día': '17', 'Hora': '7:00 PM',
             'Lugar': 'Tierra Prometida Atizapán'},
        ]

        message = formatter.format_monthly(rows, january, 1)

        assert message == (
            JANUARY_HEADER
            + "*Semana 1*\n"
            + "🔹 Del Lun 6 al Mié 8: *Retiro*\n\n"
            + "*Semana 3*\n"
            + "🙏 Vie 17: *Noche de oración* - 7:00 PM\n\n"
            + MONTHLY_CLOSING
        )

    def test_run_is_rendered_once_across_buckets(self, formatter, january):
        rows = [{'Evento': 'Retiro', 'Día': str(day)} for day in (6, 7, 8)]

        message = formatter.format_monthly(rows, january, 1)

        assert message.count('Retiro') == 1
        assert '*Semana 2*' not in message

    def test_custom_title_and_description(self, formatter):
        metadata = MonthMetadata(title='Mes de la Fe', description='Salmo 23', month_name='Enero')

        message = formatter.format_monthly([], metadata, 1)

        assert message.startswith(
            "🗓 *Mes de la Fe*\n\n_Salmo 23_\n\n📅 *¡NUEVO MES, NUEVAS BENDICIONES! (ENERO)*\n\n"
        )

    def test_no_events(self, formatter, january):
        """Test the empty digest: header plus the fixed line, no buckets."""
        message = formatter.format_monthly([], january, 1)

        assert message == JANUARY_HEADER + NO_EVENTS_MONTH
        assert 'Semana' not in message

    def test_events_of_other_months_are_dropped(self, formatter, january):
        rows = [{'Evento': 'Culto', 'Mes': '5', 'Día': '4'}]

        assert formatter.format_monthly(rows, january, 1) == JANUARY_HEADER + NO_EVENTS_MONTH

    def test_rollover_rows_are_not_bucketed(self, formatter, january):
        """Days 28, 29, 2, 3: the last two belong to February."""
        rows = [
            {'Evento': 'Ensayo', 'Día': '28'},
            {'Evento': 'Culto', 'Día': '29'},
            {'Evento': 'Taller', 'Día': '2'},
            {'Evento': 'Taller', 'Día': '3'},
        ]

        message = formatter.format_monthly(rows, january, 1)

        assert "🔹 Mar 28: *Ensayo*" in message
        assert "🔹 Mié 29: *Culto*" in message
        assert 'Taller' not in message
        assert '*Semana 1*' not in message

    def test_run_continues_into_next_month(self, formatter, january):
        """Test merging against rolled-over rows with a month annotation."""
        rows = [
            {'Evento': 'Campamento', 'Día': '30', 'Día de la semana': 'Jueves'},
            {'Evento': 'Campamento', 'Día': '31', 'Día de la semana': 'Viernes'},
            {'Evento': 'Campamento', 'Día': '1', 'Día de la semana': 'Sábado'},
            {'Evento': 'Ayuno', 'Día': '2'},
        ]

        message = formatter.format_monthly(rows, january, 1)

        assert "*Semana 5*\n🔹 Del Jue 30 al Sáb 1 (Feb): *Campamento*\n" in message
        assert 'Ayuno' not in message

    def test_cancelled_rows_do_not_merge_with_active(self, formatter, january):
        rows = [
            {'Evento': 'Congreso', 'Día': '11', 'Estado': 'Cancelado', 'Hora': '18:00'},
            {'Evento': 'Congreso', 'Día': '12', 'Estado': 'Activo', 'Hora': '18:00'},
        ]

        message = formatter.format_monthly(rows, january, 1)

        assert "❌ (CANCELADO) Sáb 11: Congreso\n" in message
        assert "🔥 Dom 12: *Congreso* - 18:00\n" in message

    def test_processing_failure_degrades_to_no_events(self, january):
        broken = Mock()
        broken.process_rows.side_effect = RuntimeError("boom")
        formatter = DigestFormatter(processor=broken)

        assert formatter.format_monthly([{'Evento': 'X'}], january, 1) == JANUARY_HEADER + NO_EVENTS_MONTH


class TestFormatWeekly:
    """Test cases for the weekly digest."""

    def test_header_and_empty_week(self, formatter):
        message = formatter.format_weekly([], WEEK_START, WEEK_END, 6, 'Julio', True)

        assert message == (
            "📅 *AGENDA DE LA SEMANA*\n\n"
            "📅 *Semana del 7 al 13 (JULIO)* (última semana del mes)\n\n"
            + NO_EVENTS_WEEK
        )

    def test_header_without_label(self, formatter):
        message = formatter.format_weekly([], WEEK_START, WEEK_END, 1)

        assert "📅 *Semana del 7 al 13*\n\n" in message
        assert "última semana" not in message

    def test_three_day_run(self, formatter, processor):
        events = july_events(
            processor,
            (11, 'Congreso', 'Activo', {}),
            (12, 'Congreso', 'Activo', {}),
            (13, 'Congreso', 'Activo', {}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6, 'Julio')

        assert "🔥 Del Vie 11 al Dom 13: *Congreso*\n" in message
        assert message.count('Congreso') == 1

    def test_two_day_run(self, formatter, processor):
        events = july_events(
            processor,
            (11, 'Congreso', 'Activo', {}),
            (12, 'Congreso', 'Activo', {}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6, 'Julio')

        assert "🔥 Vie 11 y Sáb 12: *Congreso*\n" in message

    def test_unsorted_input_is_sorted(self, formatter, processor):
        events = july_events(
            processor,
            (13, 'Congreso', 'Activo', {}),
            (11, 'Congreso', 'Activo', {}),
            (12, 'Congreso', 'Activo', {}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert "Del Vie 11 al Dom 13" in message

    def test_cancelled_never_merges_and_hides_time(self, formatter, processor):
        events = july_events(
            processor,
            (11, 'Congreso', 'Cancelado', {'Hora': '18:00'}),
            (12, 'Congreso', 'Activo', {'Hora': '18:00'}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert "❌ (CANCELADO) Vie 11: Congreso\n" in message
        assert "🔥 Sáb 12: *Congreso* - 18:00\n" in message

    def test_cancelled_run(self, formatter, processor):
        events = july_events(
            processor,
            (11, 'Congreso', 'Cancelado', {}),
            (12, 'Congreso', 'Cancelado', {}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert "❌ (CANCELADO) Vie 11 y Sáb 12: Congreso\n" in message

    def test_runs_never_show_time(self, formatter, processor):
        events = july_events(
            processor,
            (11, 'Congreso', 'Activo', {'Hora': '18:00'}),
            (12, 'Congreso', 'Activo', {'Hora': '18:00'}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert '18:00' not in message

    def test_place_shown_unless_home_venue(self, formatter, processor):
        events = july_events(
            processor,
            (8, 'Santa Cena', 'Activo', {'Lugar': 'Salón Azul'}),
            (9, 'Culto', 'Activo', {'Lugar': 'TIERRA PROMETIDA ATIZAPÁN'}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert "🍞 Mar 8: *Santa Cena* (Salón Azul)\n" in message
        assert "🔹 Mié 9: *Culto*\n" in message

    def test_merging_is_limited_to_window(self, formatter, processor):
        events = july_events(
            processor,
            (13, 'Congreso', 'Activo', {}),
            (14, 'Congreso', 'Activo', {}),
        )

        message = formatter.format_weekly(events, WEEK_START, WEEK_END, 6)

        assert "🔥 Dom 13: *Congreso*\n" in message
        assert '14' not in message

    def test_run_across_months_is_annotated(self, formatter, processor):
        rows = [
            {'Evento': 'Congreso', 'Mes': '6', 'Día': '30'},
            {'Evento': 'Congreso', 'Mes': '7', 'Día': '1'},
        ]
        events = processor.process_rows(rows, 'Junio')

        message = formatter.format_weekly(
            events, datetime(2025, 6, 30), datetime(2025, 7, 6, 23, 59), 5, 'Junio/Julio'
        )

        assert "🔥 Lun 30 y Mar 1 (Jul): *Congreso*\n" in message

    def test_accepts_plain_dates(self, formatter, processor):
        events = july_events(processor, (7, 'Culto', 'Activo', {}))

        message = formatter.format_weekly(events, date(2025, 7, 7), date(2025, 7, 13), 6)

        assert "🔹 Lun 7: *Culto*" in message


class TestDailyAndHighlights:
    """Test cases for the daily reminder and estelar alert."""

    def test_daily_reminder(self, formatter, processor):
        events = processor.process_rows([
            {'Evento': 'Noche de oración', 'Día': '6', 'Hora': '7:00 PM',
             'Lugar': 'Auditorio', 'Descripción': 'Trae tu Biblia'},
        ], 'Enero')

        message = formatter.format_daily(events, date(2025, 1, 6), "✨ ¡Buen día!", "BUENOS DÍAS")

        assert message.startswith(
            "☀️ *BUENOS DÍAS HOY EN TIERRA PROMETIDA:*\n\n✨ ¡Buen día!\n\n📅 *6 de Enero*\n\n"
        )
        assert "🙏 *Noche de oración*\n" in message
        assert "⏰ Hora: 7:00 PM" in message
        assert "📍 Lugar: Auditorio" in message
        assert "Trae tu Biblia" in message

    def test_highlight_alert(self, formatter, processor):
        event = july_events(processor, (11, 'Congreso', 'Activo', {'Destacado': 'Sí'}))[0]

        message = formatter.format_highlight_alert(event)

        assert message == (
            "🚀 ¡Atención! Faltan 5 días para:\n\n"
            "✨ *Congreso*\n"
            "🕒 Hora no especificada\n"
            "📅 Viernes, 11 de julio\n\n"
            "¡Prepárate! 🙌"
        )
