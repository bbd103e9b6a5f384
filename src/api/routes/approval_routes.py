"""
Approver (L2) routes - pending work, approvals, edits and cancellations of
waiting orders.
"""
from typing import Optional

from fastapi import APIRouter, Query

from api.dependencies import get_identity, get_ledger
from api.helpers import query_text, run_guarded
from api.models import BranchActionRequest, OrderActionRequest, UpdateWaitingOrderRequest
from orders import messages
from orders.errors import ValidationFailure
from orders.identity import require_l2
from orders.ledger import parse_order_id, require_waiting
from orders.models import LogicalSheet
from orders.reporting import branch_summary, image_index, order_details, pending_by_branch, pending_order

router = APIRouter()


def _approver(username: str, forbidden_message: str = messages.APPROVAL_FORBIDDEN):
    user = get_identity().resolve_by_username(username)
    require_l2(user, forbidden_message)
    return user


@router.get(
    "/approvalsSummary",
    summary="Per-branch totals of this month's waiting lines",
)
async def approvals_summary(username: Optional[str] = Query(None)):
    def work():
        name = query_text(username)
        if not name:
            raise ValidationFailure(messages.MISSING_USERNAME)
        user = _approver(name)
        rows = get_ledger().scan(user.budget_sheet_id, LogicalSheet.WAITING)
        return {"success": True, "branches": branch_summary(rows)}

    return await run_guarded("approvalsSummary", messages.APPROVALS_LOAD_FAILED, work)


@router.get(
    "/approvalDetails",
    summary="Waiting lines of one branch",
)
async def approval_details(
    username: Optional[str] = Query(None),
    branchName: Optional[str] = Query(None),
):
    def work():
        name, branch = query_text(username), query_text(branchName)
        if not name or not branch:
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        user = _approver(name)
        ledger = get_ledger()
        rows = ledger.scan(user.budget_sheet_id, LogicalSheet.WAITING)
        images = image_index(ledger.catalog_index(user.budget_sheet_id))
        _, items = order_details(rows, images, branch_name=branch)
        return {"success": True, "branchName": branch, "items": items}

    return await run_guarded("approvalDetails", messages.APPROVAL_DETAILS_FAILED, work)


@router.post(
    "/approveBranchOrder",
    summary="Approve every waiting line of a branch",
)
async def approve_branch_order(body: BranchActionRequest):
    def work():
        name, branch = query_text(body.username), query_text(body.branchName)
        if not name or not branch:
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        user = _approver(name)
        get_ledger().approve_branch(user.budget_sheet_id, branch)
        return {"success": True}

    return await run_guarded("approveBranchOrder", messages.BRANCH_APPROVE_FAILED, work)


@router.get(
    "/pendingOrders",
    summary="Waiting lines grouped per branch",
)
async def pending_orders(username: Optional[str] = Query(None)):
    def work():
        name = query_text(username)
        if not name:
            raise ValidationFailure(messages.MISSING_USERNAME)
        user = _approver(name)
        rows = get_ledger().scan(user.budget_sheet_id, LogicalSheet.WAITING)
        return {"success": True, "orders": [pending_order(o) for o in pending_by_branch(rows)]}

    return await run_guarded("pendingOrders", messages.PENDING_LOAD_FAILED, work)


def _order_action(body: OrderActionRequest, status_message: str, forbidden_message: str):
    serial, status = parse_order_id(body.orderId or body.serial)
    name = query_text(body.username)
    if not name or not serial:
        raise ValidationFailure(messages.INCOMPLETE_DATA)
    require_waiting(status, status_message)
    return _approver(name, forbidden_message), serial


@router.post(
    "/approveOrder",
    summary="Approve one waiting order by serial",
)
async def approve_order(body: OrderActionRequest):
    """Moves the serial's waiting lines to Final Orders. ``orderId`` may be "AA13__waiting" or "AA13"."""
    def work():
        user, serial = _order_action(body, messages.CANNOT_APPROVE_STATUS, messages.APPROVAL_FORBIDDEN)
        get_ledger().approve_order(user.budget_sheet_id, serial)
        return {"success": True}

    return await run_guarded("approveOrder", messages.APPROVE_FAILED, work)


@router.post(
    "/cancelOrder",
    summary="Cancel one waiting order by serial",
)
async def cancel_order(body: OrderActionRequest):
    """Moves the serial's waiting lines to Cancelled Orders."""
    def work():
        user, serial = _order_action(body, messages.CANNOT_CANCEL_STATUS, messages.CANCEL_FORBIDDEN)
        get_ledger().cancel_order(user.budget_sheet_id, serial)
        return {"success": True}

    return await run_guarded("cancelOrder", messages.CANCEL_FAILED, work)


@router.post(
    "/updateWaitingOrder",
    summary="Edit quantities of a waiting order",
)
async def update_waiting_order(body: UpdateWaitingOrderRequest):
    def work():
        serial, status = parse_order_id(body.orderId)
        name = query_text(body.username)
        if not name or not serial or not body.items:
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        require_waiting(status, messages.CANNOT_EDIT_STATUS)
        user = _approver(name, messages.EDIT_FORBIDDEN)
        items = [item.model_dump() for item in body.items]
        get_ledger().update_waiting_order(user.budget_sheet_id, serial, items)
        return {"success": True}

    return await run_guarded("updateWaitingOrder", messages.EDIT_FAILED, work)
