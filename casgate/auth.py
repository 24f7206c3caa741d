from typing import Any, Dict

from fastapi import Depends, HTTPException, Request, status

from .core.authenticator import CASAuthenticator
from .core.session import MappingSession
from .models import ActionKind, AuthType


def get_cas(request: Request) -> CASAuthenticator:
    return request.app.state.cas


def get_session(request: Request) -> MappingSession:
    return MappingSession(request.session)


class CASGuard:
    """
    FastAPI dependency protecting a route with CAS.
    Returns the principal when the request may proceed; otherwise raises an
    HTTPException carrying the redirect or the 401.
    """

    def __init__(self, auth_type: AuthType):
        self.auth_type = auth_type

    async def __call__(
        self,
        request: Request,
        cas: CASAuthenticator = Depends(get_cas),
        session: MappingSession = Depends(get_session),
    ) -> str:
        action = await cas.handle(
            request.url.path,
            request.query_params,
            session,
            self.auth_type,
        )
        if action.kind == ActionKind.ALLOW:
            return session.get(cas.session_name)
        if action.kind == ActionKind.REDIRECT:
            raise HTTPException(
                status_code=status.HTTP_302_FOUND,
                detail="Redirecting to CAS",
                headers={"Location": action.location},
            )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


block = CASGuard(AuthType.BLOCK)
bounce = CASGuard(AuthType.BOUNCE)
bounce_redirect = CASGuard(AuthType.BOUNCE_REDIRECT)


def get_cas_attributes(
    cas: CASAuthenticator = Depends(get_cas),
    session: MappingSession = Depends(get_session),
) -> Dict[str, Any]:
    if not cas.attribute_slot:
        return {}
    return session.get(cas.attribute_slot) or {}
