"""
Authentication route - validate a username/password against the credential store.
"""
from fastapi import APIRouter

from api.dependencies import get_identity
from api.helpers import run_guarded
from api.models import LoginRequest
from orders import messages
from orders.errors import AuthFailure

router = APIRouter()


@router.post(
    "/validateLogin",
    summary="Check credentials and return the session profile",
)
async def validate_login(body: LoginRequest):
    """
    Authenticate with username and password.

    Returns the user's branch, level (L1/L2), restricted and paperMode flags.
    No token is issued; later calls identify the caller by username.
    """
    def work():
        if not body.username:
            raise AuthFailure(messages.LOGIN_FAILED)
        user = get_identity().authenticate(body.username, body.password or '')
        return {"success": True, "user": user.to_session()}

    return await run_guarded("validateLogin", messages.SYSTEM_ERROR, work)
