"""Google Sheets client for the monthly agenda workbook."""
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from processor.calendar_utils import get_month_number, month_from_title
from processor.models import MonthMetadata, MonthSheet

logger = logging.getLogger(__name__)


class GoogleSheetsClient:
    """Read-only client for the agenda spreadsheet (one tab per month)."""

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    # Row 2 holds title/description, row 3 the headers, events start on row 4
    DATA_RANGE = "A2:Z"

    def __init__(self, spreadsheet_id: str, api_key: str, timeout: int = 30):
        """
        Initialize the sheets client.

        Args:
            spreadsheet_id: ID of the agenda workbook
            api_key: Google API key with Sheets read access
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.spreadsheet_id = spreadsheet_id
        self.api_key = api_key
        self.timeout = timeout

    def list_sheet_titles(self) -> List[str]:
        """
        Fetch the titles of all tabs in workbook order.

        Returns:
            List of sheet titles
        """
        data = self._get_json(
            f"{self.BASE_URL}/{self.spreadsheet_id}",
            {'fields': 'sheets.properties.title'}
        )
        titles = [
            sheet.get('properties', {}).get('title', '')
            for sheet in data.get('sheets', [])
        ]
        logger.info(f"Workbook has {len(titles)} sheets")
        return titles

    def find_sheet_title(self, month_name: str, titles: Optional[List[str]] = None) -> Optional[str]:
        """
        Find the tab whose title contains a month name.

        Args:
            month_name: Spanish month name, e.g. "Enero"
            titles: Already fetched titles (fetched when omitted)

        Returns:
            Matching title or None
        """
        if titles is None:
            titles = self.list_sheet_titles()
        needle = month_name.upper()
        for title in titles:
            if needle in title.upper():
                return title
        return None

    def fetch_month(self, month_name: str, fallback_to_first: bool = False) -> Optional[MonthSheet]:
        """
        Fetch the rows and metadata of a month tab.

        Args:
            month_name: Spanish month name, e.g. "Enero"
            fallback_to_first: Use the first tab when no title matches

        Returns:
            MonthSheet, or None when the workbook has no matching tab
        """
        titles = self.list_sheet_titles()
        title = self.find_sheet_title(month_name, titles)

        if title is None and fallback_to_first and titles:
            logger.warning(f"No sheet found for {month_name}, using '{titles[0]}'")
            title = titles[0]

        if title is None:
            logger.warning(f"No sheet found for {month_name}")
            return None

        values = self._fetch_values(title)
        metadata_row = values[0] if values else []
        header_row = values[1] if len(values) > 1 else []

        headers = [str(h).strip() for h in header_row]
        rows = [self._row_to_dict(headers, raw) for raw in values[2:]]

        month_number = get_month_number(month_name) or month_from_title(title)
        metadata = MonthMetadata(
            title=str(metadata_row[0]).strip() if len(metadata_row) > 0 else '',
            description=str(metadata_row[1]).strip() if len(metadata_row) > 1 else '',
            month_name=month_name
        )

        logger.info(f"Fetched {len(rows)} rows from sheet '{title}'")
        return MonthSheet(title=title, month_number=month_number, rows=rows, metadata=metadata)

    def _fetch_values(self, title: str) -> List[List[Any]]:
        # Sheet titles are quoted so names with spaces form a valid A1 range
        a1_range = quote(f"'{title}'!{self.DATA_RANGE}", safe='')
        data = self._get_json(
            f"{self.BASE_URL}/{self.spreadsheet_id}/values/{a1_range}",
            {'majorDimension': 'ROWS'}
        )
        return data.get('values', [])

    def _row_to_dict(self, headers: List[str], raw: List[Any]) -> Dict[str, str]:
        """Key a row by header; the API drops empty trailing cells."""
        row = {}
        for index, header in enumerate(headers):
            if not header:
                continue
            row[header] = str(raw[index]) if index < len(raw) else ''
        return row

    def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        """
        GET a Sheets API resource with retry logic.

        Args:
            url: Resource URL
            params: Query parameters (the API key is added here)

        Returns:
            Decoded JSON body

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        params = dict(params, key=self.api_key)

        max_retries = 3
        base_delay = 1  # seconds

        for attempt in range(max_retries):
            try:
                logger.info(f"Requesting Sheets API (attempt {attempt + 1}/{max_retries})")
                response = requests.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise
