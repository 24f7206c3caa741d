import logging
import os
from typing import Optional

import httpx
from fastapi import Depends, FastAPI
from starlette.middleware.sessions import SessionMiddleware

from .auth import bounce
from .config import CASSettings
from .core.authenticator import CASAuthenticator
from .core.exceptions import ConfigurationError


def create_app(
    settings: Optional[CASSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    session_secret: Optional[str] = None,
) -> FastAPI:
    settings = settings or CASSettings.from_env()
    session_secret = session_secret or os.environ.get("CAS_SESSION_SECRET")
    if not session_secret:
        raise ConfigurationError("CAS_SESSION_SECRET must be set to sign session cookies")

    app = FastAPI(title="CAS protected application", version="1.0")
    app.state.cas = CASAuthenticator(settings, transport=transport)
    app.add_middleware(SessionMiddleware, secret_key=session_secret)

    # Register Routers
    from .routers import sso

    app.include_router(sso.router)

    @app.get("/")
    async def root(user: str = Depends(bounce)):
        return {"message": f"Welcome, {user}"}

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.environ.get("CAS_LOG_LEVEL", "INFO").upper())
    uvicorn.run("casgate.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
