"""
In-memory stand-ins for the gspread client used by the store adapter.

FakeSpreadsheet implements the values API subset TabularStore calls
(values_get, values_update, values_batch_update, worksheets) over plain
lists, with A1 range parsing. No network, no credentials.
"""
import os
import re
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# Ensure src/ is on path and logs stay out of the project tree
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='order_portal_test_logs_'))
os.environ.setdefault('GOOGLE_CREDENTIALS_SHEET_ID', 'master')

import gspread
import requests

MASTER_ID = 'master'
DATA_ID = 'data-a'
OTHER_DATA_ID = 'data-b'

CAIRO = ZoneInfo('Africa/Cairo')
FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=CAIRO)
NOW_TEXT = '2026-03-15 12:00:00'
LAST_MONTH_TEXT = '2026-02-27 09:30:00'

ORDER_HEADER = ['Date', 'Branch', 'Requested_By', 'Product_Code', 'Product_Name', 'Unit_Price',
                'Subtotal', 'Category', 'Quantity', 'Reserved', 'Serial']

_CELL = re.compile(r'^([A-Z]*)(\d*)$')


def fixed_clock():
    return FIXED_NOW


def column_index(letters):
    """'A' -> 1, 'K' -> 11, 'AA' -> 27."""
    n = 0
    for ch in letters:
        n = n * 26 + (ord(ch) - 64)
    return n


def split_range(range_spec):
    """"'Final Orders'!A2:K" -> ('Final Orders', 'A2:K'); a bare name has no cells."""
    if range_spec.startswith("'"):
        i = 1
        name = []
        while i < len(range_spec):
            ch = range_spec[i]
            if ch == "'":
                if i + 1 < len(range_spec) and range_spec[i + 1] == "'":
                    name.append("'")
                    i += 2
                    continue
                break
            name.append(ch)
            i += 1
        rest = range_spec[i + 1:]
        return ''.join(name), rest[1:] if rest.startswith('!') else ''
    title, _, cells = range_spec.partition('!')
    return title, cells


def parse_cells(cells):
    """
    A1 cells -> (first_row, first_col, last_row, last_col), 1-based, None = open.
    """
    if not cells:
        return 1, 1, None, None
    start, _, end = cells.partition(':')
    m1 = _CELL.match(start)
    c1 = column_index(m1.group(1)) if m1.group(1) else 1
    r1 = int(m1.group(2)) if m1.group(2) else 1
    if not end:
        return r1, c1, r1, c1
    m2 = _CELL.match(end)
    c2 = column_index(m2.group(1)) if m2.group(1) else None
    r2 = int(m2.group(2)) if m2.group(2) else None
    return r1, c1, r2, c2


def _is_blank(value):
    return value is None or value == ''


class FakeWorksheet:
    def __init__(self, title, rows=None):
        self.title = title
        self.rows = [list(r) for r in (rows or [])]

    def cell(self, row, col):
        if row - 1 < len(self.rows) and col - 1 < len(self.rows[row - 1]):
            return self.rows[row - 1][col - 1]
        return ''

    def set_cell(self, row, col, value):
        while len(self.rows) < row:
            self.rows.append([])
        line = self.rows[row - 1]
        while len(line) < col:
            line.append('')
        line[col - 1] = value

    def read(self, cells):
        r1, c1, r2, c2 = parse_cells(cells)
        last_row = r2 if r2 is not None else len(self.rows)
        out = []
        for r in range(r1, last_row + 1):
            if r - 1 >= len(self.rows):
                break
            source = self.rows[r - 1]
            last_col = c2 if c2 is not None else len(source)
            values = [self.cell(r, c) for c in range(c1, last_col + 1)]
            while values and _is_blank(values[-1]):
                values.pop()
            out.append(values)
        while out and not out[-1]:
            out.pop()
        return out

    def write(self, cells, values):
        r1, c1, _, _ = parse_cells(cells)
        for dr, row in enumerate(values):
            for dc, value in enumerate(row):
                self.set_cell(r1 + dr, c1 + dc, value)


class FakeSpreadsheet:
    def __init__(self, sheets=None):
        self.sheets = {}
        self.failing = set()
        self.calls = []
        self.read_params = []
        for title, rows in (sheets or {}).items():
            self.add(title, rows)

    def add(self, title, rows=None):
        ws = FakeWorksheet(title, rows)
        self.sheets[title] = ws
        return ws

    def _sheet(self, title):
        if title in self.failing:
            raise requests.exceptions.ConnectionError(f"connection reset reading {title}")
        if title not in self.sheets:
            raise requests.exceptions.HTTPError(f"Unable to parse range: {title}")
        return self.sheets[title]

    def worksheets(self):
        return list(self.sheets.values())

    def values_get(self, range_spec, params=None):
        self.calls.append(('get', range_spec))
        self.read_params.append(params)
        title, cells = split_range(range_spec)
        values = self._sheet(title).read(cells)
        return {'range': range_spec, 'values': values} if values else {'range': range_spec}

    def values_update(self, range_spec, params=None, body=None):
        self.calls.append(('update', range_spec))
        title, cells = split_range(range_spec)
        self._sheet(title).write(cells, body['values'])
        return {'updatedRange': range_spec}

    def values_batch_update(self, body=None):
        self.calls.append(('batch', [d['range'] for d in body['data']]))
        for data in body['data']:
            title, cells = split_range(data['range'])
            self._sheet(title).write(cells, data['values'])
        return {'totalUpdatedCells': sum(len(r) for d in body['data'] for r in d['values'])}


class FakeClient:
    def __init__(self, spreadsheets=None):
        self.spreadsheets = dict(spreadsheets or {})

    def open_by_key(self, key):
        if key not in self.spreadsheets:
            raise gspread.exceptions.SpreadsheetNotFound(key)
        return self.spreadsheets[key]


def build_master():
    """Credential store with a reserved tab and two client partitions."""
    header = ['Username', 'Password', 'Branch', 'Restricted', 'Level', 'BudgetSheetId']
    client_a = [
        header,
        ['amr', 'pass1', 'Maadi', 'N', 'L1', DATA_ID],
        ['boss', 'pass2', '', 'N', 'l2'],
        ['rana', 1234, ' Zamalek ', 'y', ''] + [''] * 20 + ['Y'],
        ['', '', 'Heliopolis'],
        ['nobranch', 'pass4', '', 'N', 'L1'],
        ['amr2', 'pass5', 'Maadi', 'N', 'L1'],
    ]
    client_b = [
        header,
        ['amr', 'other', 'Giza', 'N', 'L2', OTHER_DATA_ID],
        ['omar', 'pass9', 'Giza', 'N', 'L1'],
        ['kiosk', '', 'Giza', 'N', 'L1'],
    ]
    return FakeSpreadsheet({
        'Config': [['key', 'value'], ['amr', 'ignored', 'X', 'N', 'L2', 'config-id']],
        'ClientA': client_a,
        'ClientB': client_b,
    })


def build_data_store():
    """Client data store with catalog, empty order sheets and no serial yet."""
    return FakeSpreadsheet({
        'Product Catalog': [
            ['Code', 'Name', 'Category', 'Price', 'Image'],
            ['P1', 'Juice', 'Drinks', 10, 'https://img/p1.png'],
            ['P2', 'Chips', 'Snacks', '5.5', 'https://img/p2.png'],
            ['P3', 'Water', 'Drinks', 3],
        ],
        'Waiting for Approval': [list(ORDER_HEADER)],
        'Final Orders': [list(ORDER_HEADER)],
        'Cancelled Orders': [list(ORDER_HEADER)],
        'Serial Numbers': [['Name', 'Last Serial']],
    })


def build_client():
    """(FakeClient, master spreadsheet, client A data spreadsheet)."""
    master = build_master()
    data = build_data_store()
    client = FakeClient({MASTER_ID: master, DATA_ID: data, OTHER_DATA_ID: build_data_store()})
    return client, master, data


def order_row(date, branch, user, code, name, price, subtotal, category, qty, serial):
    return [date, branch, user, code, name, price, subtotal, category, qty, '', serial]
