"""AWS Lambda handler for the community agenda bot."""
import json
import logging
import os
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from digest.digest_formatter import NO_EVENTS_WEEK, DigestFormatter
from notifier.telegram_client import TelegramClient, rsvp_keyboard
from processor.calendar_utils import (
    compute_week_range,
    current_week_range,
    get_month_number,
    month_name,
    today_in_timezone,
)
from processor.event_processor import EventProcessor
from processor.greetings import static_daily_greeting, time_of_day_greeting
from processor.models import Event
from processor.time_utils import format_time, reminder_minutes
from scraper.sheets_client import GoogleSheetsClient
from storage.rsvp_store import RsvpStore

ACTIONS = ('monthly', 'weekly', 'daily', 'highlights', 'rsvp')
HIGHLIGHT_DAYS_AHEAD = 5

GreetingGenerator = Callable[[List[str]], str]


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    RESERVED = set(vars(logging.makeLogRecord({})))

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including any extra fields."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in self.RESERVED and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _response(status_code: int, body: Dict[str, Any], start_time: float) -> Dict[str, Any]:
    body['duration_seconds'] = round(time.time() - start_time, 2)
    return {
        'statusCode': status_code,
        'body': json.dumps(body, ensure_ascii=False)
    }


def _error_response(message: str, error: Exception, start_time: float, status_code: int = 500) -> Dict[str, Any]:
    return _response(status_code, {
        'message': message,
        'error': str(error),
        'error_type': type(error).__name__
    }, start_time)


def _resolve_today(event: Dict[str, Any], tz_name: str) -> date:
    """Use the simulated date of the event payload, or today in the bot's timezone."""
    if event.get('date'):
        return date.fromisoformat(str(event['date']))
    return today_in_timezone(tz_name)


def _resolve_month(value: Any, today: date) -> int:
    """Accept a month number or Spanish month name, defaulting to today's month."""
    if value in (None, ''):
        return today.month
    if isinstance(value, int) or str(value).strip().isdigit():
        number = int(value)
    else:
        number = get_month_number(str(value))
    if not 1 <= number <= 12:
        raise ValueError(f"Unknown month: {value}")
    return number


def _events_on(events: List[Event], day: date) -> List[Event]:
    return [e for e in events if e.date == day]


def lambda_handler(
    event: Dict[str, Any],
    context: Any,
    greeting_generator: Optional[GreetingGenerator] = None
) -> Dict[str, Any]:
    """
    Main Lambda handler for scheduled agenda deliveries.

    Args:
        event: EventBridge payload with "action" and optional "date",
            "month", "week", "message_id" and "user_id"
        context: Lambda context object
        greeting_generator: Optional callable turning today's event names
            into the daily greeting; the static pool is used when it fails

    Returns:
        Response dict with statusCode and a JSON body
    """
    # Read configuration from environment variables
    spreadsheet_id = os.environ.get('SPREADSHEET_ID', '')
    sheets_api_key = os.environ.get('SHEETS_API_KEY', '')
    bot_token = os.environ.get('TELEGRAM_BOT_TOKEN', '')
    chat_id = os.environ.get('TELEGRAM_CHAT_ID', '')
    rsvp_table_name = os.environ.get('RSVP_TABLE_NAME', 'agenda-rsvp')
    tz_name = os.environ.get('TIMEZONE', 'America/Mexico_City')
    home_venue = os.environ.get('HOME_VENUE', 'Tierra Prometida Atizapán')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    action = event.get('action', '')

    logger.info(
        "Lambda execution started",
        extra={'action': action, 'timeout_seconds': timeout_seconds}
    )

    if action not in ACTIONS:
        return _response(400, {
            'message': f"Unknown action '{action}'",
            'allowed_actions': list(ACTIONS)
        }, start_time)

    try:
        today = _resolve_today(event, tz_name)
    except ValueError as e:
        return _error_response('Invalid date', e, start_time, status_code=400)

    try:
        target_year = int(os.environ.get('TARGET_YEAR') or today.year)
        telegram = TelegramClient(bot_token=bot_token, chat_id=chat_id, timeout=timeout_seconds)

        if action == 'rsvp':
            return _handle_rsvp(event, telegram, RsvpStore(table_name=rsvp_table_name), start_time)

        sheets = GoogleSheetsClient(spreadsheet_id=spreadsheet_id, api_key=sheets_api_key, timeout=timeout_seconds)
        processor = EventProcessor(target_year=target_year)
        formatter = DigestFormatter(processor=processor, home_venue=home_venue)

        if action == 'monthly':
            return _handle_monthly(event, today, sheets, formatter, telegram, start_time)
        if action == 'weekly':
            return _handle_weekly(event, today, target_year, sheets, processor, formatter, telegram, start_time)
        if action == 'daily':
            now_local = datetime.now(ZoneInfo(tz_name))
            return _handle_daily(
                today, now_local, sheets, processor, formatter, telegram, start_time, greeting_generator
            )
        return _handle_highlights(today, sheets, processor, formatter, telegram, start_time)

    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'action': action, 'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(f"{action} delivery failed", e, start_time)


def _handle_monthly(event, today, sheets, formatter, telegram, start_time):
    logger = logging.getLogger(__name__)

    try:
        month_number = _resolve_month(event.get('month'), today)
    except ValueError as e:
        return _error_response('Invalid month', e, start_time, status_code=400)

    name = month_name(month_number)
    sheet = sheets.fetch_month(name)
    if sheet is None:
        return _response(404, {'message': f"No sheet found for {name}"}, start_time)

    message = formatter.format_monthly(sheet.rows, sheet.metadata, month_number)
    message_id = telegram.send_message(message)

    logger.info("Monthly digest delivered", extra={'month': name, 'message_id': message_id})
    return _response(200, {
        'message': 'Monthly digest sent',
        'month': name,
        'rows': len(sheet.rows),
        'message_id': message_id
    }, start_time)


def _handle_weekly(event, today, target_year, sheets, processor, formatter, telegram, start_time):
    logger = logging.getLogger(__name__)

    if event.get('week') not in (None, ''):
        try:
            month_number = _resolve_month(event.get('month'), today)
            week_number = int(event['week'])
        except ValueError as e:
            return _error_response('Invalid week request', e, start_time, status_code=400)

        week = None
        if week_number >= 1:
            week = compute_week_range(target_year, month_number - 1, week_number)
        if week is None:
            return _response(400, {
                'message': f"La semana {week_number} no existe en {month_name(month_number)}."
            }, start_time)
    else:
        week = current_week_range(today)

    start_month = week.start.month
    end_month = week.end.month

    events: List[Event] = []
    for number in sorted({start_month, end_month}, key=lambda m: (m - start_month) % 12):
        sheet = sheets.fetch_month(month_name(number))
        if sheet is not None:
            events.extend(processor.process_rows(sheet.rows, month_name(number)))

    if start_month != end_month:
        header_label = f"{month_name(start_month)}/{month_name(end_month)}"
    else:
        header_label = month_name(start_month)

    message = formatter.format_weekly(
        events,
        week.start,
        week.end,
        start_month - 1,
        header_label,
        week.is_last_week_of_month
    )

    if message.endswith(NO_EVENTS_WEEK):
        logger.info("No events this week, nothing sent")
        return _response(200, {'message': 'No events this week', 'sent': False}, start_time)

    message_id = telegram.send_message(message)
    logger.info("Weekly digest delivered", extra={'week_start': week.start.date(), 'message_id': message_id})
    return _response(200, {
        'message': 'Weekly digest sent',
        'sent': True,
        'week_start': week.start.date().isoformat(),
        'week_end': week.end.date().isoformat(),
        'events': len(events),
        'message_id': message_id
    }, start_time)


def _daily_greeting(events: List[Event], today: date, greeting_generator: Optional[GreetingGenerator]) -> str:
    """Ask the generator for a greeting, falling back to the static pool."""
    logger = logging.getLogger(__name__)

    if greeting_generator is not None:
        try:
            greeting = greeting_generator([e.name for e in events])
            if greeting:
                return greeting
            logger.warning("Greeting generator returned an empty greeting")
        except Exception as e:
            logger.warning(f"Greeting generator failed, using static greeting: {e}")

    return static_daily_greeting(today.toordinal())


def _handle_daily(today, now_local, sheets, processor, formatter, telegram, start_time, greeting_generator=None):
    logger = logging.getLogger(__name__)

    sheet = sheets.fetch_month(month_name(today.month), fallback_to_first=True)
    if sheet is None:
        return _response(404, {'message': 'Workbook has no sheets'}, start_time)

    todays_events = _events_on(processor.process_rows(sheet.rows, sheet.title), today)
    if not todays_events:
        logger.info("No events today, nothing sent")
        return _response(200, {'message': 'No events today', 'sent': False}, start_time)

    greeting = _daily_greeting(todays_events, today, greeting_generator)
    message = formatter.format_daily(
        todays_events,
        today,
        greeting,
        time_of_day_greeting(now_local)
    )
    message_id = telegram.send_message(message, reply_markup=rsvp_keyboard(0))

    reminder = reminder_minutes(e.time for e in todays_events)
    logger.info("Daily reminder delivered", extra={'events': len(todays_events), 'message_id': message_id})
    return _response(200, {
        'message': 'Daily reminder sent',
        'sent': True,
        'events': len(todays_events),
        'suggested_reminder_time': format_time(reminder),
        'message_id': message_id
    }, start_time)


def _handle_highlights(today, sheets, processor, formatter, telegram, start_time):
    logger = logging.getLogger(__name__)

    target_day = today + timedelta(days=HIGHLIGHT_DAYS_AHEAD)
    sheet = sheets.fetch_month(month_name(target_day.month))
    if sheet is None:
        return _response(200, {'message': f"No sheet for {month_name(target_day.month)}", 'sent': 0}, start_time)

    highlighted = [
        e for e in _events_on(processor.process_rows(sheet.rows, sheet.title), target_day)
        if e.highlighted
    ]

    sent = 0
    for item in highlighted:
        telegram.send_message(formatter.format_highlight_alert(item, HIGHLIGHT_DAYS_AHEAD))
        sent += 1
        logger.info(f"Highlight alert sent for: {item.name}")

    return _response(200, {
        'message': 'Highlight check completed',
        'target_date': target_day.isoformat(),
        'sent': sent
    }, start_time)


def _handle_rsvp(event, telegram, store, start_time):
    logger = logging.getLogger(__name__)

    try:
        message_id = int(event['message_id'])
        user_id = int(event['user_id'])
    except (KeyError, TypeError, ValueError) as e:
        return _error_response('Invalid RSVP payload', e, start_time, status_code=400)

    result = store.toggle_vote(message_id, user_id)
    telegram.edit_reply_markup(message_id, rsvp_keyboard(result.count))

    logger.info("RSVP updated", extra={'message_id': message_id, 'count': result.count})
    return _response(200, {
        'message': 'RSVP updated',
        'count': result.count,
        'added': result.added,
        'answer': "✅ ¡Te esperamos!" if result.added else "❌ Asistencia cancelada"
    }, start_time)
