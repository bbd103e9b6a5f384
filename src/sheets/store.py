"""
Tabular Store Adapter
Read / write / append / batch-write primitives over Google Sheets, addressed by
spreadsheet id and A1 range. Every other component talks to the store only
through this class.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import google.auth
import google.auth.exceptions
import gspread
import requests
from google.oauth2.service_account import Credentials

import config
from orders.errors import StoreUnavailable
from utils.logger import get_logger

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

logger = get_logger()

_TRANSPORT_ERRORS = (
    gspread.exceptions.GSpreadException,
    requests.exceptions.RequestException,
    google.auth.exceptions.GoogleAuthError,
)


def get_column_letter(col_num):
    """
    Convert column number to Excel-style column letter
    1 -> A, 26 -> Z, 27 -> AA, etc.

    Args:
        col_num: Column number (1-indexed)

    Returns:
        Column letter(s)
    """
    result = ""
    while col_num > 0:
        col_num -= 1
        result = chr(col_num % 26 + 65) + result
        col_num //= 26
    return result


def a1_range(sheet_name: str, cells: Optional[str] = None) -> str:
    """Quoted A1 reference: 'Final Orders'!A2:K10."""
    quoted = "'" + sheet_name.replace("'", "''") + "'"
    return f"{quoted}!{cells}" if cells else quoted


def _get_client():
    """Create a gspread client from the configured service account or ADC."""
    creds_path = config.get_credentials_path()
    if creds_path:
        credentials = Credentials.from_service_account_file(creds_path, scopes=SCOPES)
    else:
        credentials, _ = google.auth.default(scopes=SCOPES)
    return gspread.authorize(credentials)


def _cell_value(value: Any) -> Any:
    if value is None:
        return ''
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class TabularStore:
    """
    Thin stateless wrapper around the Sheets values API.

    For tests, inject a fake client via ``from_client(client)``; the client
    only needs ``open_by_key`` returning an object with ``values_get``,
    ``values_update``, ``values_batch_update`` and ``worksheets``.
    """

    def __init__(self, client: Optional[object] = None):
        self.client = client if client is not None else _get_client()
        # Opened spreadsheet handles, keyed by id (no cell data is cached)
        self._spreadsheets: Dict[str, object] = {}

    @classmethod
    def from_client(cls, client: object) -> "TabularStore":
        """Helper for unit tests to inject a fake gspread client."""
        return cls(client=client)

    # ─────────────────────────────────────────────────────────────
    # Internal helpers
    # ─────────────────────────────────────────────────────────────

    def _open(self, store_id: str):
        if not store_id:
            raise StoreUnavailable("Store id is empty")
        spreadsheet = self._spreadsheets.get(store_id)
        if spreadsheet is None:
            try:
                spreadsheet = self.client.open_by_key(store_id)
            except _TRANSPORT_ERRORS as e:
                raise StoreUnavailable(f"Failed to open spreadsheet {store_id}: {e}") from e
            self._spreadsheets[store_id] = spreadsheet
        return spreadsheet

    # ─────────────────────────────────────────────────────────────
    # Public methods
    # ─────────────────────────────────────────────────────────────

    def list_tabs(self, store_id: str) -> List[str]:
        """Tab titles in spreadsheet order."""
        spreadsheet = self._open(store_id)
        try:
            return [ws.title for ws in spreadsheet.worksheets()]
        except _TRANSPORT_ERRORS as e:
            raise StoreUnavailable(f"Failed to list tabs of {store_id}: {e}") from e

    def read_range(self, store_id: str, range_spec: str) -> List[List[Any]]:
        """
        Read a range as rows of cell values.

        Trailing empty rows and cells are not returned; a range without data
        yields an empty list.
        """
        spreadsheet = self._open(store_id)
        try:
            response = spreadsheet.values_get(
                range_spec,
                params={'valueRenderOption': config.SHEETS_VALUE_RENDER_OPTION},
            )
        except _TRANSPORT_ERRORS as e:
            raise StoreUnavailable(f"Failed to read {range_spec}: {e}") from e
        return response.get('values', []) or []

    def read_cell(self, store_id: str, range_spec: str) -> Any:
        """Value of a single cell, '' when blank."""
        rows = self.read_range(store_id, range_spec)
        if rows and rows[0]:
            return rows[0][0]
        return ''

    def write_range(self, store_id: str, range_spec: str, rows: Sequence[Sequence[Any]]) -> None:
        """Overwrite exactly the addressed cells."""
        spreadsheet = self._open(store_id)
        values = [[_cell_value(v) for v in row] for row in rows]
        try:
            spreadsheet.values_update(
                range_spec,
                params={'valueInputOption': config.SHEETS_VALUE_INPUT_OPTION},
                body={'values': values},
            )
        except _TRANSPORT_ERRORS as e:
            raise StoreUnavailable(f"Failed to write {range_spec}: {e}") from e

    def append_below_last_non_empty(
        self,
        store_id: str,
        sheet_name: str,
        rows: Sequence[Sequence[Any]],
        width: int = 11,
    ) -> Optional[int]:
        """
        Write rows immediately below the last row whose column A is not blank.

        Rows are padded or truncated to ``width`` columns starting at A. The
        scan and the write are two separate calls; a concurrent append landing
        between them can be overwritten.

        Returns:
            1-based first row written, or None when there was nothing to write.
        """
        if not rows:
            return None

        column_a = self.read_range(store_id, a1_range(sheet_name, 'A:A'))
        last_row = 0
        for i in range(len(column_a) - 1, -1, -1):
            cell = column_a[i][0] if column_a[i] else None
            if cell is not None and str(cell).strip() != '':
                last_row = i + 1
                break

        start_row = last_row + 1
        end_row = start_row + len(rows) - 1
        last_col = get_column_letter(width)

        values = []
        for row in rows:
            cells = list(row)[:width]
            values.append(cells + [''] * (width - len(cells)))

        self.write_range(store_id, a1_range(sheet_name, f'A{start_row}:{last_col}{end_row}'), values)
        logger.log_rows_appended(sheet_name, start_row, end_row, len(values))
        return start_row

    def batch_write(self, store_id: str, updates: Sequence[Tuple[str, Sequence[Sequence[Any]]]]) -> None:
        """
        Write several disjoint ranges in one API call.

        The call is one request, but the store gives no atomicity across ranges.
        """
        if not updates:
            return
        spreadsheet = self._open(store_id)
        data = [
            {'range': range_spec, 'values': [[_cell_value(v) for v in row] for row in rows]}
            for range_spec, rows in updates
        ]
        try:
            spreadsheet.values_batch_update(
                body={'valueInputOption': config.SHEETS_VALUE_INPUT_OPTION, 'data': data}
            )
        except _TRANSPORT_ERRORS as e:
            raise StoreUnavailable(f"Failed batch write of {len(data)} range(s): {e}") from e
