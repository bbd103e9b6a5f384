"""
Serial Generator
Issues human-readable order serials (AA1, AA2, ...) from the counter cell of a
client's order data store.

The read-increment-write cycle is not guarded: two submissions that read the
counter before either writes it back receive the same serial.
"""
import re

import config
from orders.errors import StoreUnavailable
from sheets.store import a1_range
from utils.logger import get_logger

logger = get_logger()

_LEADING_DIGITS = re.compile(r'^\s*([+-]?\d+)')


def parse_serial_number(value, prefix: str = None) -> int:
    """
    Numeric suffix of a stored serial.

    'AA12' -> 12, '12' -> 12, 'AA' -> 0, 'XX9' -> 0, '' -> 0. Negative values
    are treated as 0.
    """
    prefix = (prefix if prefix is not None else config.SERIAL_PREFIX).upper()
    text = str(value if value is not None else '').strip().upper()
    if prefix and text.startswith(prefix):
        text = text[len(prefix):]
    match = _LEADING_DIGITS.match(text)
    if not match:
        return 0
    number = int(match.group(1))
    return number if number >= 0 else 0


class SerialGenerator:
    """Counter cell backed serial source, one counter per client store."""

    def __init__(self, store, fail_on_read_error: bool = None):
        self.store = store
        if fail_on_read_error is None:
            fail_on_read_error = config.SERIAL_FAIL_ON_READ_ERROR
        self.fail_on_read_error = fail_on_read_error

    def _counter_range(self) -> str:
        return a1_range(config.SERIAL_NUMBERS_SHEET, config.SERIAL_COUNTER_CELL)

    def next_serial(self, store_id: str) -> str:
        """
        Read the counter, write back prefix + (n + 1) and return it.

        A failed read restarts the sequence at 1 unless SERIAL_FAIL_ON_READ_ERROR
        is set, in which case StoreUnavailable propagates. A failed write always
        propagates.
        """
        counter_range = self._counter_range()
        try:
            current = self.store.read_cell(store_id, counter_range)
        except StoreUnavailable as e:
            if self.fail_on_read_error:
                raise
            logger.warning(f"Could not read serial counter, restarting sequence: {e}", component="Serial")
            current = ''

        new_serial = f"{config.SERIAL_PREFIX}{parse_serial_number(current) + 1}"
        self.store.write_range(store_id, counter_range, [[new_serial]])
        logger.log_serial_issued(current, new_serial)
        return new_serial
