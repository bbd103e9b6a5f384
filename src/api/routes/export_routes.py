"""
Export routes - download selected orders as .xlsx (L2 only).
"""
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response

from api.dependencies import get_identity, get_ledger
from api.helpers import query_text, run_guarded
from api.routes.report_routes import scan_all_sheets
from exports import OrderExcelExporter, XLSX_MEDIA_TYPE
from orders import messages
from orders.errors import NoMatchingRows, ValidationFailure
from orders.identity import require_l2
from orders.reporting import export_records, order_for_export, orders_for_export
from utils.logger import get_logger

router = APIRouter()

logger = get_logger()


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _exporter_store(username: str):
    user = get_identity().resolve_by_username(username)
    require_l2(user, messages.EXPORT_FORBIDDEN)
    return user.budget_sheet_id


@router.get(
    "/exportOrdersExcel",
    summary="Download several orders as one workbook",
)
async def export_orders_excel(
    username: Optional[str] = Query(None),
    serials: Optional[str] = Query(None, description="Comma-separated, e.g. AA10,AA9"),
):
    """One block per serial, the status being that of the last sheet the serial was found in."""
    def work():
        name = query_text(username)
        selected = [s.strip() for s in query_text(serials).split(',') if s.strip()]
        if not name or not selected:
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        store_id = _exporter_store(name)
        orders = orders_for_export(scan_all_sheets(get_ledger(), store_id), selected)
        if not orders:
            raise NoMatchingRows(messages.NO_EXPORT_DATA)
        content = OrderExcelExporter('Orders').render(export_records(orders))
        logger.info(f"Exported {len(orders)} order(s) for {name}", component="Export")
        return _xlsx_response(content, "orders.xlsx")

    return await run_guarded("exportOrdersExcel", messages.EXPORT_FAILED, work)


@router.get(
    "/exportOrderExcel",
    summary="Download one order, all statuses",
)
async def export_order_excel(
    username: Optional[str] = Query(None),
    serial: Optional[str] = Query(None),
):
    """One block per (status, branch) the serial appears under."""
    def work():
        name, serial_query = query_text(username), query_text(serial)
        if not name or not serial_query:
            raise ValidationFailure(messages.INCOMPLETE_DATA)
        store_id = _exporter_store(name)
        orders = order_for_export(scan_all_sheets(get_ledger(), store_id), serial_query)
        if not orders:
            raise NoMatchingRows(messages.NO_ORDER_DATA)
        content = OrderExcelExporter('Order').render(export_records(orders))
        logger.info(f"Exported serial {serial_query} ({len(orders)} block(s)) for {name}", component="Export")
        return _xlsx_response(content, f"order_{serial_query}.xlsx")

    return await run_guarded("exportOrderExcel", messages.EXPORT_FAILED, work)
