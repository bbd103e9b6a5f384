"""
Order Ledger
Current-month scans and state transitions over the three order sheets of a
client's data store.

Status is sheet membership. A transition is a move-and-clear: the source rows
are appended verbatim to the target sheet, then overwritten in place with
blank cells so unrelated rows keep their positions. The append and the clear
are separate store calls with nothing tying them together; a failure between
them, or a concurrent move of the same serial, leaves the lines in both sheets.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import config
from orders import messages
from orders.errors import NoMatchingRows, StoreUnavailable, ValidationFailure
from orders.models import ORDER_ID_SEPARATOR, LogicalSheet, OrderLine, Product, SheetRow, UserInfo, as_number
from orders.row_codec import (
    BLANK_ROW,
    COL_DATE,
    FIRST_COLUMN,
    LAST_COLUMN,
    QUANTITY_COLUMN,
    ROW_WIDTH,
    SUBTOTAL_COLUMN,
    business_now,
    cell_text,
    decode_date,
    decode_row,
    encode_row,
    format_timestamp,
    is_current_month,
    pad_row,
    parse_decimal,
    parse_int,
    line_subtotal,
)
from orders.serials import SerialGenerator
from sheets.store import a1_range
from utils.logger import get_logger

logger = get_logger()


def parse_order_id(order_id: Any) -> Tuple[str, str]:
    """
    Split a composite order id into (serial, status).

    'AA7__approved' -> ('AA7', 'approved'); a bare serial means waiting.
    """
    serial, _, status = str(order_id if order_id is not None else '').partition(ORDER_ID_SEPARATOR)
    status = status.partition(ORDER_ID_SEPARATOR)[0].strip().lower()
    return serial.strip(), status or LogicalSheet.WAITING.value


class OrderLedger:
    """Reads and mutates order lines of one or more client data stores."""

    def __init__(self, store, serials: Optional[SerialGenerator] = None,
                 clock: Optional[Callable] = None):
        """
        Args:
            store: TabularStore (or compatible)
            serials: serial source for submissions; built over the same store by default
            clock: returns the aware "now" that defines the current month
        """
        self.store = store
        self.serials = serials or SerialGenerator(store)
        self.clock = clock or business_now

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    def load_catalog(self, store_id: str) -> List[Product]:
        """Product Catalog rows below the header (code, name, category, price, image URL)."""
        rows = self.store.read_range(store_id, a1_range(config.PRODUCT_CATALOG_SHEET))
        products = []
        for raw in rows[1:]:
            cells = list(raw) + [''] * (5 - len(raw))
            code = cell_text(cells[0]).strip()
            if not code:
                continue
            products.append(Product(
                code=code,
                name=cell_text(cells[1]),
                category=cell_text(cells[2]),
                price=parse_decimal(cells[3]),
                image_url=cell_text(cells[4]),
            ))
        return products

    def catalog_index(self, store_id: str) -> Dict[str, Product]:
        """Products keyed by code; a duplicated code keeps its last row."""
        return {product.code: product for product in self.load_catalog(store_id)}

    def _read_sheet(self, store_id: str, sheet: LogicalSheet) -> List[List[Any]]:
        return self.store.read_range(store_id, a1_range(sheet.title))

    def _current_rows(self, values: List[List[Any]]) -> List[SheetRow]:
        now = self.clock()
        rows = []
        # Row 1 is the header
        for index in range(1, len(values)):
            raw = values[index] or []
            created_at = decode_date(raw[COL_DATE] if raw else None)
            if not is_current_month(created_at, now):
                continue
            rows.append(SheetRow(index=index, raw=raw, line=decode_row(raw), created_at=created_at))
        return rows

    def scan(self, store_id: str, sheet: LogicalSheet, tolerate_missing: bool = False) -> List[SheetRow]:
        """
        All current-month rows of a logical sheet, in sheet order.

        Rows with an empty or unparseable date are never returned. With
        ``tolerate_missing`` a failed read (e.g. a store without that tab)
        yields no rows instead of raising.
        """
        try:
            values = self._read_sheet(store_id, sheet)
        except StoreUnavailable as e:
            if not tolerate_missing:
                raise
            logger.warning(f"Skipping unreadable sheet '{sheet.title}': {e}", component="Ledger")
            return []
        return self._current_rows(values)

    def rows_for_branch(self, store_id: str, sheet: LogicalSheet, branch_name: str) -> List[SheetRow]:
        branch_name = (branch_name or '').strip()
        return [row for row in self.scan(store_id, sheet) if row.line.branch == branch_name]

    def rows_for_serial(self, store_id: str, sheet: LogicalSheet, serial: str) -> List[SheetRow]:
        serial = (serial or '').strip()
        return [row for row in self.scan(store_id, sheet) if row.line.serial == serial]

    def latest_by_code(self, rows: Iterable[SheetRow]) -> Dict[str, SheetRow]:
        """Index rows by product code; the last row of a duplicated code wins."""
        index = {}
        for row in rows:
            if row.line.product_code:
                index[row.line.product_code] = row
        return index

    # ─────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────

    def submit_order(self, user: UserInfo, branch_name: str, items: List[Dict[str, Any]]) -> str:
        """
        Append a new order under a fresh serial.

        L1 submissions land in Waiting for Approval, L2 submissions go
        straight to Final Orders.

        Returns:
            The issued serial.
        """
        target = LogicalSheet.APPROVED if user.is_l2 else LogicalSheet.WAITING
        store_id = user.budget_sheet_id
        serial = self.serials.next_serial(store_id)
        date_text = format_timestamp(self.clock())

        rows = []
        for item in items:
            unit_price = parse_decimal(item.get('unitPrice'))
            quantity = max(0, parse_int(item.get('quantity')))
            given = item.get('subtotal')
            stored = parse_decimal(given) if isinstance(given, (int, float)) and not isinstance(given, bool) else None
            line = OrderLine(
                date=date_text,
                branch=branch_name,
                requested_by=user.username,
                product_code=cell_text(item.get('productCode')),
                product_name=cell_text(item.get('productName')),
                unit_price=unit_price,
                subtotal=line_subtotal(unit_price, quantity, stored),
                category=cell_text(item.get('category')),
                quantity=quantity,
                reserved='',
                serial=serial,
            )
            rows.append(encode_row(line))

        self.store.append_below_last_non_empty(store_id, target.title, rows, width=ROW_WIDTH)
        logger.log_transition('Submitted', serial, len(rows), target=target.title)
        return serial

    def _move(self, store_id: str, rows: List[SheetRow], source: LogicalSheet,
              target: LogicalSheet) -> None:
        self.store.append_below_last_non_empty(
            store_id, target.title, [pad_row(row.raw) for row in rows], width=ROW_WIDTH
        )
        self.store.batch_write(store_id, [
            (a1_range(source.title, f'{FIRST_COLUMN}{row.sheet_row}:{LAST_COLUMN}{row.sheet_row}'),
             [list(BLANK_ROW)])
            for row in rows
        ])

    def move_serial(self, store_id: str, serial: str, target: LogicalSheet,
                    empty_message: str = messages.NO_PENDING_FOR_SERIAL) -> int:
        """
        Move every current-month Waiting line of a serial to the target sheet.

        Raises:
            NoMatchingRows: no current-month Waiting line carries the serial
        """
        rows = self.rows_for_serial(store_id, LogicalSheet.WAITING, serial)
        if not rows:
            raise NoMatchingRows(empty_message)
        self._move(store_id, rows, LogicalSheet.WAITING, target)
        logger.log_transition('Moved serial', serial, len(rows), target=target.title)
        return len(rows)

    def approve_order(self, store_id: str, serial: str) -> int:
        return self.move_serial(store_id, serial, LogicalSheet.APPROVED)

    def cancel_order(self, store_id: str, serial: str) -> int:
        return self.move_serial(store_id, serial, LogicalSheet.CANCELLED)

    def approve_branch(self, store_id: str, branch_name: str) -> int:
        """
        Approve every current-month Waiting line of a branch, whatever its serial.

        Raises:
            NoMatchingRows: the branch has nothing waiting this month
        """
        rows = self.rows_for_branch(store_id, LogicalSheet.WAITING, branch_name)
        if not rows:
            raise NoMatchingRows(messages.NO_PENDING_FOR_BRANCH)
        self._move(store_id, rows, LogicalSheet.WAITING, LogicalSheet.APPROVED)
        logger.log_transition('Approved branch', branch_name, len(rows), target=LogicalSheet.APPROVED.title)
        return len(rows)

    def _quantity_updates(self, sheet: LogicalSheet, row: SheetRow, quantity: Any) -> List[Tuple[str, List[List[Any]]]]:
        qty = max(0, parse_int(quantity))
        subtotal = row.line.unit_price * qty
        r = row.sheet_row
        return [
            (a1_range(sheet.title, f'{QUANTITY_COLUMN}{r}'), [[qty]]),
            (a1_range(sheet.title, f'{SUBTOTAL_COLUMN}{r}'), [[as_number(subtotal)]]),
        ]

    def update_waiting_order(self, store_id: str, serial: str, items: List[Dict[str, Any]]) -> int:
        """
        Overwrite quantity (I) and subtotal (G) of a waiting order's lines.

        Items are matched by product code within the serial's current-month
        Waiting lines; unknown codes are ignored.

        Raises:
            NoMatchingRows: no item matched a line
        """
        index = self.latest_by_code(self.rows_for_serial(store_id, LogicalSheet.WAITING, serial))
        updates = []
        for item in items:
            row = index.get(cell_text(item.get('productCode')))
            if row is None:
                continue
            updates.extend(self._quantity_updates(LogicalSheet.WAITING, row, item.get('quantity')))

        if not updates:
            raise NoMatchingRows(messages.NO_LINES_TO_EDIT)
        self.store.batch_write(store_id, updates)
        logger.log_transition('Edited serial', serial, len(updates) // 2)
        return len(updates) // 2

    def update_previous_orders(self, store_id: str, branch_name: str, updates: List[Dict[str, Any]]) -> int:
        """
        Record returns against approved lines of a branch.

        Each update addresses a line by ``rowIndex`` (0-based, header is 0)
        when it points at a current-month Final Orders line of the branch,
        else by product code, where the last matching line wins.

        Raises:
            NoMatchingRows: no update matched a line
        """
        rows = self.rows_for_branch(store_id, LogicalSheet.APPROVED, branch_name)
        by_index = {row.index: row for row in rows}
        by_code = self.latest_by_code(rows)

        batch = []
        for update in updates:
            row_index = update.get('rowIndex')
            row = None
            if isinstance(row_index, int) and not isinstance(row_index, bool):
                row = by_index.get(row_index)
            if row is None:
                row = by_code.get(cell_text(update.get('productCode')))
            if row is None:
                continue
            batch.extend(self._quantity_updates(LogicalSheet.APPROVED, row, update.get('quantity')))

        if not batch:
            raise NoMatchingRows(messages.NO_RETURN_ROWS)
        self.store.batch_write(store_id, batch)
        logger.log_transition('Returns for', branch_name, len(batch) // 2)
        return len(batch) // 2


def require_waiting(status: str, message: str) -> None:
    """Transitions only start from Waiting."""
    if status != LogicalSheet.WAITING.value:
        raise ValidationFailure(message)
