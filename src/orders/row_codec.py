"""
Row Codec
Converts between untyped order-sheet rows (columns A-K) and OrderLine records.

Cells arrive as formatted text by default (FORMATTED_VALUE reads) or as typed
values (UNFORMATTED_VALUE reads: numbers, day serials), so every field parser
accepts both.
"""
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional
from zoneinfo import ZoneInfo

import config
from orders.models import OrderLine, as_number

ROW_WIDTH = 11

# Column positions (0-based) and letters
COL_DATE = 0
COL_BRANCH = 1
COL_REQUESTED_BY = 2
COL_PRODUCT_CODE = 3
COL_PRODUCT_NAME = 4
COL_UNIT_PRICE = 5
COL_SUBTOTAL = 6
COL_CATEGORY = 7
COL_QUANTITY = 8
COL_RESERVED = 9
COL_SERIAL = 10

FIRST_COLUMN = 'A'
LAST_COLUMN = 'K'
SUBTOTAL_COLUMN = 'G'
QUANTITY_COLUMN = 'I'

BLANK_ROW = [''] * ROW_WIDTH

# Spreadsheet day-serial epoch; numbers above the threshold are day serials
SPREADSHEET_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
DAY_SERIAL_THRESHOLD = 30000

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

_TEXT_DATE_FORMATS = [
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d',
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%m/%d/%Y',
    '%d/%m/%Y %H:%M:%S',
    '%d/%m/%Y %H:%M',
    '%d/%m/%Y',
]

_LEADING_NUMBER = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_GROUPING = re.compile(r'(?<=\d),(?=\d{3}(?!\d))')


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

def business_timezone() -> ZoneInfo:
    return ZoneInfo(config.BUSINESS_TIMEZONE)


def business_now() -> datetime:
    """Current time in the reference calendar."""
    return datetime.now(business_timezone())


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp the way rows and API payloads show it."""
    if value is None:
        return ''
    return value.astimezone(business_timezone()).strftime(TIMESTAMP_FORMAT)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _parse_text_timestamp(text: str) -> Optional[datetime]:
    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _TEXT_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=business_timezone())
    return parsed


def decode_date(cell: Any) -> Optional[datetime]:
    """
    Decode column A into an aware timestamp.

    Empty cells and anything unparseable yield None, which keeps the row out
    of every current-month scan. Numbers above the day-serial threshold are
    spreadsheet day serials and map to UTC midnight of that day; smaller
    numbers are tried as text.
    """
    if cell is None or isinstance(cell, bool):
        return None

    if _is_number(cell):
        number = float(cell)
    else:
        text = str(cell).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return _parse_text_timestamp(text)

    if number != number:
        return None
    if number > DAY_SERIAL_THRESHOLD:
        try:
            return SPREADSHEET_EPOCH + timedelta(days=int(number))
        except OverflowError:
            return None
    return _parse_text_timestamp(cell_text(cell).strip())


def is_current_month(timestamp: Optional[datetime], reference_now: datetime) -> bool:
    """True when the timestamp falls in the reference calendar month."""
    if timestamp is None:
        return False
    if reference_now.tzinfo is not None:
        timestamp = timestamp.astimezone(reference_now.tzinfo)
    return (timestamp.year, timestamp.month) == (reference_now.year, reference_now.month)


# ---------------------------------------------------------------------------
# Cell parsers
# ---------------------------------------------------------------------------

def cell_text(value: Any) -> str:
    """Text of a cell; integral floats lose their '.0'."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number_text(value: Any) -> str:
    # Formatted reads group thousands: '1,234.50'
    return _GROUPING.sub('', str(value))


def parse_decimal(value: Any) -> Decimal:
    """Leading decimal number of a cell, 0 when there is none."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(0)
    if isinstance(value, (int, float)):
        if value != value or value in (float('inf'), float('-inf')):
            return Decimal(0)
        return Decimal(str(value))
    match = _LEADING_NUMBER.match(_number_text(value))
    if not match:
        return Decimal(0)
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return Decimal(0)


def parse_int(value: Any) -> int:
    """Leading integer of a cell (fractions truncated), 0 when there is none."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError, InvalidOperation):
            return 0
    match = _LEADING_INT.match(_number_text(value))
    return int(match.group(1)) if match else 0


def line_subtotal(unit_price: Decimal, quantity: int, stored: Optional[Decimal] = None) -> Decimal:
    """Stored subtotal when given (0 included), else price x quantity; always 0 for zero quantity."""
    if quantity == 0:
        return Decimal(0)
    if stored is not None:
        return stored
    return unit_price * quantity


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

_ROW_FIELDS = (
    'date',
    'branch',
    'requested_by',
    'product_code',
    'product_name',
    'unit_price',
    'subtotal',
    'category',
    'quantity',
    'reserved',
    'serial',
)


def pad_row(raw: List[Any]) -> List[Any]:
    """Exactly eleven cells, missing or null cells as empty strings."""
    cells = [('' if cell is None else cell) for cell in list(raw or [])[:ROW_WIDTH]]
    return cells + [''] * (ROW_WIDTH - len(cells))


def decode_row(raw: List[Any]) -> OrderLine:
    """Positional mapping of a sheet row onto an OrderLine."""
    cells = pad_row(raw)
    unit_price = parse_decimal(cells[COL_UNIT_PRICE])
    quantity = max(0, parse_int(cells[COL_QUANTITY]))
    # A blank or zero stored subtotal is recomputed on read
    stored = parse_decimal(cells[COL_SUBTOTAL]) or None
    return OrderLine(
        date=cells[COL_DATE],
        branch=cell_text(cells[COL_BRANCH]).strip(),
        requested_by=cell_text(cells[COL_REQUESTED_BY]).strip(),
        product_code=cell_text(cells[COL_PRODUCT_CODE]),
        product_name=cell_text(cells[COL_PRODUCT_NAME]),
        unit_price=unit_price,
        subtotal=line_subtotal(unit_price, quantity, stored),
        category=cell_text(cells[COL_CATEGORY]),
        quantity=quantity,
        reserved=cells[COL_RESERVED],
        serial=cell_text(cells[COL_SERIAL]).strip(),
        cells=cells,
    )


def encode_row(line: OrderLine) -> List[Any]:
    """
    Inverse of decode_row; always eleven values.

    A line decoded from a row writes back the original cell for every field
    still equal to its decoded value, so numeric codes stay numbers.
    """
    values = [
        line.date,
        line.branch,
        line.requested_by,
        line.product_code,
        line.product_name,
        as_number(line.unit_price),
        as_number(line.subtotal),
        line.category,
        line.quantity,
        line.reserved,
        line.serial,
    ]
    if line.cells is None:
        return values

    original = decode_row(line.cells)
    return [
        cell if getattr(original, name) == getattr(line, name) else value
        for name, cell, value in zip(_ROW_FIELDS, pad_row(line.cells), values)
    ]
