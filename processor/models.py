"""Data models for agenda processing."""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional


CANCELLED_STATUS = "Cancelado"


@dataclass(frozen=True)
class Event:
    """Normalized event read from one spreadsheet row."""
    day: int
    weekday_abbrev: str
    name: str
    place: str
    status: str
    time: str
    description: str
    date: date
    source_month_name: Optional[str] = None
    highlighted: bool = False

    @property
    def is_cancelled(self) -> bool:
        return self.status == CANCELLED_STATUS


@dataclass
class WeekRange:
    """Monday to Sunday window, possibly spilling into the next month."""
    start: datetime
    end: datetime
    is_last_week_of_month: bool


@dataclass
class MonthMetadata:
    """Custom header values stored in row 2 of a month sheet."""
    title: str = ""
    description: str = ""
    month_name: str = ""


@dataclass
class MonthSheet:
    """Rows and metadata of one month tab."""
    title: str
    month_number: int
    rows: List[Dict[str, str]]
    metadata: MonthMetadata


@dataclass
class RsvpResult:
    """Result of toggling an attendance vote."""
    count: int
    added: bool

