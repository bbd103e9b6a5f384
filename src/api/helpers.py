"""
API helper functions shared across route modules.
Provides the failure boundary every handler runs its work inside.
"""
import asyncio
from typing import Any, Callable

from fastapi.responses import JSONResponse

from orders.errors import PortalError
from utils.logger import get_logger

logger = get_logger()


def failure_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """``{success: false, message}`` with the given status."""
    content = {"success": False, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def query_text(value: Any) -> str:
    """Trimmed text of an optional query/body value."""
    return str(value).strip() if value is not None else ''


async def run_guarded(context: str, failure_message: str, work: Callable[[], Any], **extra: Any) -> Any:
    """
    Run blocking handler work in a worker thread behind one failure boundary.

    Business failures below 500 are answered with their own message and
    status. Everything else is logged with its stack and answered with the
    endpoint's generic ``failure_message``; no internal detail reaches the
    caller.

    Args:
        context: endpoint name used in the log line
        failure_message: localized message for unexpected failures
        work: zero-argument callable doing the store I/O
        extra: additional keys added to every failure body
    """
    try:
        return await asyncio.to_thread(work)
    except PortalError as e:
        if e.status_code < 500:
            return failure_response(e.status_code, e.message, **extra)
        logger.log_failure(context, e)
        return failure_response(500, failure_message, **extra)
    except Exception as e:
        logger.log_failure(context, e)
        return failure_response(500, failure_message, **extra)
