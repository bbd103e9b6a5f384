"""
Aggregation / Reporting
Groups scanned order lines into Order aggregates and renders the payloads of
the approval dashboard, the L2 order list and the exports.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from orders.models import LogicalSheet, Order, OrderLine, Product, SheetRow, as_number
from orders.row_codec import format_timestamp

# (sheet, current-month rows read from it), in scan order
SheetScan = Tuple[LogicalSheet, List[SheetRow]]


def image_index(catalog: Dict[str, Product]) -> Dict[str, str]:
    return {code: product.image_url for code, product in catalog.items()}


def line_item(line: OrderLine, images: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Item payload; carries imageUrl only when an image index is given."""
    if images is None:
        return line.to_item()
    return line.to_item(image_url=images.get(line.product_code, ''))


def group_orders(
    scans: Iterable[SheetScan],
    key: Callable[[LogicalSheet, SheetRow], Optional[Hashable]],
    restatus: bool = False,
) -> List[Order]:
    """
    Fold scanned rows into orders, one per distinct key, first-seen order.

    Rows without a branch are skipped, as are rows whose key is None. With
    ``restatus`` an order keyed across sheets takes the status of the last
    sheet it was seen in.
    """
    orders: "OrderedDict[Hashable, Order]" = OrderedDict()
    for sheet, rows in scans:
        for row in rows:
            if not row.line.branch:
                continue
            k = key(sheet, row)
            if k is None:
                continue
            order = orders.get(k)
            if order is None:
                order = Order(serial=row.line.serial, branch_name=row.line.branch, status=sheet)
                orders[k] = order
            elif restatus:
                order.status = sheet
            order.add(row)
    return list(orders.values())


# ─────────────────────────────────────────────────────────────
# Groupings
# ─────────────────────────────────────────────────────────────

def orders_by_status(scans: Iterable[SheetScan]) -> List[Order]:
    """One order per (serial, sheet); lines without a serial are left out."""
    return group_orders(scans, lambda sheet, row: (row.line.serial, sheet) if row.line.serial else None)


def pending_by_branch(rows: Iterable[SheetRow]) -> List[Order]:
    """Waiting lines folded into one pseudo-order per branch, serial ignored."""
    return group_orders([(LogicalSheet.WAITING, list(rows))], lambda sheet, row: row.line.branch)


def orders_for_export(scans: Iterable[SheetScan], serials: Sequence[str]) -> List[Order]:
    """Selected serials, one order each; a serial found in several sheets keeps the last status."""
    selected = set(serials)
    return group_orders(
        scans,
        lambda sheet, row: row.line.serial if row.line.serial in selected else None,
        restatus=True,
    )


def order_for_export(scans: Iterable[SheetScan], serial: str) -> List[Order]:
    """Every (status, branch) slice of a single serial."""
    return group_orders(
        scans,
        lambda sheet, row: (row.line.serial, sheet, row.line.branch) if row.line.serial == serial else None,
    )


def branch_summary(rows: Iterable[SheetRow]) -> List[Dict[str, Any]]:
    """Per-branch totals of Waiting lines for the approvals dashboard."""
    summary: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for row in rows:
        branch = row.line.branch
        if not branch:
            continue
        entry = summary.setdefault(branch, {'amount': Decimal(0), 'qty': 0, 'lines': 0})
        entry['amount'] += row.line.subtotal
        entry['qty'] += row.line.quantity
        entry['lines'] += 1
    return [
        {
            'branchName': branch,
            'totalAmount': as_number(entry['amount']),
            'totalQty': entry['qty'],
            'lines': entry['lines'],
        }
        for branch, entry in summary.items()
    ]


# ─────────────────────────────────────────────────────────────
# Payloads
# ─────────────────────────────────────────────────────────────

def order_summary(order: Order, images: Dict[str, str]) -> Dict[str, Any]:
    return {
        'orderId': order.order_id,
        'serial': order.serial,
        'branchName': order.branch_name,
        'status': order.status.label,
        'requestedBy': order.requested_by,
        'createdAt': format_timestamp(order.created_at),
        'total': as_number(order.total),
        'items': [line_item(line, images) for line in order.items],
    }


def pending_order(order: Order) -> Dict[str, Any]:
    return {
        'orderId': order.branch_name,
        'branchName': order.branch_name,
        'requestedBy': order.requested_by,
        'createdAt': format_timestamp(order.created_at),
        'total': as_number(order.total),
        'items': [line_item(line) for line in order.items],
    }


def previous_orders(latest: Dict[str, SheetRow], catalog: Dict[str, Product]) -> List[Dict[str, Any]]:
    """One entry per product code, named from the catalog when it knows the code."""
    result = []
    for code, row in latest.items():
        product = catalog.get(code)
        result.append({
            'productCode': code,
            'productName': product.name if product else code,
            'imageUrl': product.image_url if product else '',
            'quantity': row.line.quantity,
            'rowIndex': row.index,
        })
    return result


def order_details(rows: Iterable[SheetRow], images: Dict[str, str],
                  branch_name: str = '', serial: str = '') -> Tuple[str, List[Dict[str, Any]]]:
    """
    Lines of one sheet selected by serial, or by branch when no serial is given.

    Returns:
        (effective branch name, items). Selecting by serial without a branch
        takes the branch of the first matching line.
    """
    effective_branch = branch_name
    items = []
    for row in rows:
        if serial:
            if row.line.serial != serial:
                continue
            if not effective_branch and row.line.branch:
                effective_branch = row.line.branch
        elif row.line.branch != branch_name:
            continue
        items.append(line_item(row.line, images))
    return effective_branch or '', items


def export_records(orders: Iterable[Order]) -> List[Optional[Dict[str, Any]]]:
    """
    Flatten orders into export records, a None separator after each order.
    """
    records: List[Optional[Dict[str, Any]]] = []
    for order in orders:
        created_at = format_timestamp(order.created_at)
        for line in order.items:
            records.append({
                'serial': order.serial,
                'status': order.status.label,
                'branch': order.branch_name,
                'requestedBy': order.requested_by,
                'createdAt': created_at,
                'productCode': line.product_code,
                'productName': line.product_name,
                'category': line.category,
                'quantity': line.quantity,
                'unitPrice': as_number(line.unit_price),
                'subtotal': as_number(line.subtotal),
            })
        records.append(None)
    return records
