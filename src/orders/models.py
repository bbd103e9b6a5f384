"""
Order Portal Data Models
Dataclasses passed between the store codec, the ledger and the reporting layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import config
from orders.messages import MULTIPLE_USERS

ORDER_ID_SEPARATOR = '__'


def as_number(value: Decimal):
    """Render a Decimal as the int/float a sheet cell or JSON payload expects."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ---------------------------------------------------------------------------
# Logical sheets
# ---------------------------------------------------------------------------

class LogicalSheet(Enum):
    """The three partitions an order line can live in. Membership is the status."""
    WAITING = 'waiting'
    APPROVED = 'approved'
    CANCELLED = 'cancelled'

    @property
    def title(self) -> str:
        """Tab name in the client's data store."""
        return {
            LogicalSheet.WAITING: config.WAITING_SHEET,
            LogicalSheet.APPROVED: config.FINAL_ORDERS_SHEET,
            LogicalSheet.CANCELLED: config.CANCELLED_ORDERS_SHEET,
        }[self]

    @property
    def label(self) -> str:
        """Status label shown in summaries and exports."""
        return self.value.capitalize()

    @classmethod
    def from_status(cls, status: Optional[str]) -> 'LogicalSheet':
        """Map a client-supplied status to a sheet; anything unknown is Waiting."""
        status = (status or '').strip().lower()
        for sheet in cls:
            if sheet.value == status:
                return sheet
        return cls.WAITING


# ---------------------------------------------------------------------------
# Order lines
# ---------------------------------------------------------------------------

@dataclass
class OrderLine:
    """One row (columns A-K) of an order sheet."""
    date: Any = ""
    branch: str = ""
    requested_by: str = ""
    product_code: str = ""
    product_name: str = ""
    unit_price: Decimal = Decimal(0)
    subtotal: Decimal = Decimal(0)
    category: str = ""
    quantity: int = 0
    reserved: Any = ""
    serial: str = ""
    # Cells the line was decoded from, written back where a field is unchanged
    cells: Optional[List[Any]] = field(default=None, repr=False, compare=False)

    def to_item(self, image_url: Optional[str] = None) -> Dict[str, Any]:
        item = {
            'productCode': self.product_code,
            'productName': self.product_name,
            'unitPrice': as_number(self.unit_price),
            'quantity': self.quantity,
            'subtotal': as_number(self.subtotal),
            'category': self.category,
        }
        if image_url is not None:
            item['imageUrl'] = image_url
        return item


@dataclass
class SheetRow:
    """A decoded line plus where it was found, for in-place updates."""
    index: int              # 0-based position in the values read from row 1
    raw: List[Any]
    line: OrderLine
    created_at: datetime

    @property
    def sheet_row(self) -> int:
        """1-based row number in the sheet."""
        return self.index + 1


# ---------------------------------------------------------------------------
# Order aggregate
# ---------------------------------------------------------------------------

@dataclass
class Order:
    """All lines of one order as read from a single logical sheet."""
    serial: str = ""
    branch_name: str = ""
    status: LogicalSheet = LogicalSheet.WAITING
    created_at: Optional[datetime] = None
    requestors: Set[str] = field(default_factory=set)
    items: List[OrderLine] = field(default_factory=list)

    def add(self, row: SheetRow) -> None:
        self.items.append(row.line)
        if row.line.requested_by:
            self.requestors.add(row.line.requested_by)
        if self.created_at is None or row.created_at < self.created_at:
            self.created_at = row.created_at

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.items), Decimal(0))

    @property
    def requested_by(self) -> str:
        if not self.requestors:
            return ''
        if len(self.requestors) == 1:
            return next(iter(self.requestors))
        return MULTIPLE_USERS

    @property
    def order_id(self) -> str:
        return f"{self.serial}{ORDER_ID_SEPARATOR}{self.status.value}"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass
class UserInfo:
    """A user row resolved from a client partition of the credential store."""
    username: str = ""
    tab: str = ""
    branch: str = ""
    restricted: bool = False
    level: str = "L1"
    paper_mode: bool = False
    budget_sheet_id: str = ""

    @property
    def is_l2(self) -> bool:
        return self.level == 'L2'

    def to_session(self) -> Dict[str, Any]:
        """Payload returned by the login endpoint."""
        return {
            'username': self.username,
            'branch': self.branch,
            'userType': 'tasa',
            'restricted': self.restricted,
            'paperMode': self.paper_mode,
            'level': self.level,
        }


@dataclass
class Product:
    """A Product Catalog row."""
    code: str = ""
    name: str = ""
    category: str = ""
    price: Decimal = Decimal(0)
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'name': self.name,
            'category': self.category,
            'price': as_number(self.price),
            'imageUrl': self.image_url,
        }
