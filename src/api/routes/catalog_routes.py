"""
Branch-side routes - branch lists, product catalog, previous orders,
order submission and returns against approved orders.
"""
from typing import Optional

from fastapi import APIRouter, Query

from api.dependencies import get_identity, get_ledger
from api.helpers import query_text, run_guarded
from api.models import SubmitOrderRequest, UpdatePreviousOrdersRequest
from orders import messages
from orders.errors import ValidationFailure
from orders.identity import require_branch
from orders.models import LogicalSheet
from orders.reporting import previous_orders

router = APIRouter()


def _branches(username: Optional[str]):
    username = query_text(username)
    if not username:
        raise ValidationFailure(messages.MISSING_USERNAME)
    identity = get_identity()
    user = identity.resolve_by_username(username)
    return {"success": True, "branches": identity.branches_for(user)}


@router.get(
    "/branchesForL2",
    summary="Branches of the caller's client",
)
async def branches_for_l2(username: Optional[str] = Query(None)):
    """Distinct branch names listed in the caller's client partition."""
    return await run_guarded(
        "branchesForL2", messages.BRANCHES_LOAD_FAILED, lambda: _branches(username), branches=[]
    )


@router.get(
    "/clientBranches",
    summary="Branches of the caller's client (legacy path)",
)
async def client_branches(username: Optional[str] = Query(None)):
    return await run_guarded("clientBranches", messages.BRANCHES_LOAD_FAILED, lambda: _branches(username))


@router.get(
    "/loadOrderDataWithSpending",
    summary="Product catalog for the order form",
)
async def load_order_data(
    username: Optional[str] = Query(None),
    branchName: Optional[str] = Query(None),
    userType: Optional[str] = Query(None),
):
    """Product catalog of the caller's client data store."""
    def work():
        user = get_identity().resolve_by_username(query_text(username))
        products = get_ledger().load_catalog(user.budget_sheet_id)
        return {"success": True, "products": [p.to_dict() for p in products]}

    return await run_guarded("loadOrderDataWithSpending", messages.DATA_LOAD_FAILED, work)


@router.get(
    "/previousOrders",
    summary="This month's approved lines for a branch",
)
async def get_previous_orders(
    username: Optional[str] = Query(None),
    branchName: Optional[str] = Query(None),
    userType: Optional[str] = Query(None),
):
    """
    Approved lines of the branch in the current month, one per product code.

    Each entry carries the sheet ``rowIndex`` it was read from so a return can
    address that exact line.
    """
    def work():
        user = get_identity().resolve_by_username(query_text(username))
        ledger = get_ledger()
        store_id = user.budget_sheet_id
        rows = ledger.rows_for_branch(store_id, LogicalSheet.APPROVED, query_text(branchName))
        catalog = ledger.catalog_index(store_id)
        return {"success": True, "orders": previous_orders(ledger.latest_by_code(rows), catalog)}

    return await run_guarded("previousOrders", messages.PREVIOUS_ORDERS_FAILED, work)


@router.post(
    "/submitOrder",
    summary="Submit a new order",
)
async def submit_order(body: SubmitOrderRequest):
    """
    Create an order under a fresh serial.

    L1 users may only order for their own branch and their orders wait for
    approval; L2 orders are approved on submission.
    """
    def work():
        if not body.branchName or not body.orderItems:
            raise ValidationFailure(messages.ORDER_INCOMPLETE)
        user = get_identity().resolve_by_username(query_text(body.username), messages.INVALID_USER)
        require_branch(user, body.branchName)
        items = [item.model_dump() for item in body.orderItems]
        serial = get_ledger().submit_order(user, body.branchName, items)
        return {"success": True, "orderSerial": serial}

    return await run_guarded("submitOrder", messages.SUBMIT_FAILED, work)


@router.post(
    "/updatePreviousOrders",
    summary="Record returns against approved lines",
)
async def update_previous_orders(body: UpdatePreviousOrdersRequest):
    """Overwrite quantity and subtotal of this month's approved lines of a branch."""
    def work():
        if not body.branchName or not body.updatedOrders:
            raise ValidationFailure(messages.RETURNS_INCOMPLETE)
        user = get_identity().resolve_by_username(query_text(body.username))
        updates = [update.model_dump() for update in body.updatedOrders]
        get_ledger().update_previous_orders(user.budget_sheet_id, body.branchName, updates)
        return {"success": True}

    return await run_guarded("updatePreviousOrders", messages.RETURNS_FAILED, work)
