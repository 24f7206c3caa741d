from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from ..auth import block, bounce_redirect, get_cas, get_cas_attributes, get_session
from ..core.authenticator import CASAuthenticator
from ..core.session import MappingSession

router = APIRouter()


@router.get("/login")
async def sso_login(
    user: str = Depends(bounce_redirect),
    cas: CASAuthenticator = Depends(get_cas),
    session: MappingSession = Depends(get_session),
):
    """
    Entry point for CAS login. Unauthenticated users are sent to CAS (pass
    ?returnTo=/somewhere to choose where they land afterwards); CAS sends
    them back here with a ticket, and once validated they are redirected on.
    """
    # Only reached in dev mode, which signs the user in without a round trip
    return RedirectResponse(cas.return_target(session), status_code=302)


@router.get("/logout")
async def sso_logout(
    cas: CASAuthenticator = Depends(get_cas),
    session: MappingSession = Depends(get_session),
):
    """
    Logout locally and from CAS.
    """
    action = cas.logout(session)
    return RedirectResponse(action.location, status_code=action.status_code)


@router.get("/me")
async def me(
    user: str = Depends(block),
    attributes: Dict[str, Any] = Depends(get_cas_attributes),
):
    return {"user": user, "attributes": attributes}
