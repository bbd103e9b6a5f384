"""
L2 dashboard routes - order list across all statuses and per-order details.
Each endpoint is also served under the older paths the frontend has used.
"""
from typing import Optional

from fastapi import APIRouter, Query

from api.dependencies import get_identity, get_ledger
from api.helpers import query_text, run_guarded
from orders import messages
from orders.errors import ValidationFailure
from orders.identity import require_l2
from orders.models import LogicalSheet
from orders.reporting import image_index, order_details, order_summary, orders_by_status

router = APIRouter()


def scan_all_sheets(ledger, store_id: str):
    """Waiting, Approved and Cancelled rows of this month; a missing Cancelled tab reads as empty."""
    return [
        (LogicalSheet.WAITING, ledger.scan(store_id, LogicalSheet.WAITING)),
        (LogicalSheet.APPROVED, ledger.scan(store_id, LogicalSheet.APPROVED)),
        (LogicalSheet.CANCELLED, ledger.scan(store_id, LogicalSheet.CANCELLED, tolerate_missing=True)),
    ]


@router.get("/ordersSummaryForL2", summary="This month's orders by serial and status")
@router.get("/ordersSummary", include_in_schema=False)
@router.get("/ordersSummaryByStatus", include_in_schema=False)
async def orders_summary(username: Optional[str] = Query(None)):
    """One entry per (serial, status) with totals, requestor and items."""
    def work():
        name = query_text(username)
        if not name:
            raise ValidationFailure(messages.MISSING_USERNAME)
        user = get_identity().resolve_by_username(name)
        require_l2(user, messages.SUMMARY_FORBIDDEN)
        ledger = get_ledger()
        store_id = user.budget_sheet_id
        images = image_index(ledger.catalog_index(store_id))
        orders = orders_by_status(scan_all_sheets(ledger, store_id))
        return {"success": True, "orders": [order_summary(o, images) for o in orders]}

    return await run_guarded("ordersSummaryForL2", messages.SUMMARY_FAILED, work)


@router.get("/orderDetailsForL2", summary="Lines of one order by serial or branch")
@router.get("/orderDetailsByStatus", include_in_schema=False)
async def order_details_for_l2(
    username: Optional[str] = Query(None),
    branchName: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    serial: Optional[str] = Query(None),
):
    """
    Lines from the sheet of ``status`` (waiting, approved, cancelled; default
    waiting), selected by ``serial`` when given, else by ``branchName``.
    """
    def work():
        name, branch, serial_query = query_text(username), query_text(branchName), query_text(serial)
        if not name or (not branch and not serial_query):
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        sheet = LogicalSheet.from_status(status)
        user = get_identity().resolve_by_username(name)
        require_l2(user, messages.DETAILS_FORBIDDEN)
        ledger = get_ledger()
        store_id = user.budget_sheet_id
        images = image_index(ledger.catalog_index(store_id))
        effective_branch, items = order_details(
            ledger.scan(store_id, sheet), images, branch_name=branch, serial=serial_query
        )
        return {
            "success": True,
            "branchName": effective_branch,
            "serial": serial_query or None,
            "status": sheet.value,
            "items": items,
        }

    return await run_guarded("orderDetailsForL2", messages.APPROVAL_DETAILS_FAILED, work)
