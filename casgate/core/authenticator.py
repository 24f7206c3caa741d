from typing import Mapping, Optional
from urllib.parse import urlsplit

import httpx

from ..config import CASSettings
from ..log import log
from ..models import Action, AuthType, Success
from .cas_client import CASClient
from .session import SessionProjection

RETURN_TO_KEY = "cas_return_to"


def is_local_path(target: str) -> bool:
    """True for same-site paths like /reports; false for //host or scheme://host."""
    if not target.startswith("/") or target.startswith("//") or "\\" in target:
        return False
    parts = urlsplit(target)
    return not parts.scheme and not parts.netloc


class CASAuthenticator:
    """
    Decides, per request, whether to let it through, send the browser to the
    CAS login page, reject it, or exchange the ticket it carries.
    """

    def __init__(
        self,
        settings: CASSettings,
        client: Optional[CASClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.client = client or CASClient(settings, transport=transport)
        self.session_name = settings.session_name
        self.attribute_slot = settings.attribute_slot

    def return_target(self, session: SessionProjection) -> str:
        return session.get(RETURN_TO_KEY) or self.settings.return_to or "/"

    async def handle(
        self,
        path: str,
        query: Mapping[str, str],
        session: SessionProjection,
        auth_type: AuthType,
    ) -> Action:
        # Already validated with CAS
        if session.get(self.session_name):
            if auth_type == AuthType.BOUNCE_REDIRECT:
                return Action.redirect(self.return_target(session))
            return Action.allow()

        if self.settings.dev_mode_active:
            log.debug("Dev mode: signing in as %r", self.settings.dev_mode_user)
            session.set(self.session_name, self.settings.dev_mode_user)
            if self.attribute_slot:
                session.set(self.attribute_slot, dict(self.settings.dev_mode_info))
            return Action.allow()

        if auth_type == AuthType.BLOCK:
            return Action.reject()

        ticket = query.get("ticket")
        if ticket:
            return await self.complete_login(ticket, path, session)

        return self.start_login(path, query, session)

    def start_login(self, path: str, query: Mapping[str, str], session: SessionProjection) -> Action:
        """Remember where the user was going and send them to the CAS login."""
        return_to = query.get("returnTo")
        if return_to and not is_local_path(return_to):
            log.warning("Ignoring off-site returnTo %r", return_to)
            return_to = None
        return_to = return_to or self.settings.return_to or path
        session.set(RETURN_TO_KEY, return_to)
        log.debug("Redirecting to CAS login, returning to %s", return_to)
        return Action.redirect(self.client.get_login_url(path))

    async def complete_login(self, ticket: str, path: str, session: SessionProjection) -> Action:
        outcome = await self.client.validate_ticket(ticket, path)
        if not isinstance(outcome, Success):
            log.warning("CAS ticket validation failed: %s", outcome)
            return Action.reject()

        session.set(self.session_name, outcome.principal)
        if self.attribute_slot:
            session.set(self.attribute_slot, dict(outcome.attributes))

        return_to = self.return_target(session)
        session.delete(RETURN_TO_KEY)
        log.info("CAS login for %r", outcome.principal)
        return Action.redirect(return_to)

    def logout(self, session: SessionProjection) -> Action:
        if self.settings.destroy_session:
            try:
                session.destroy()
            except NotImplementedError:
                session.set(self.session_name, None)
        else:
            session.delete(self.session_name)
            if self.attribute_slot:
                session.delete(self.attribute_slot)

        return Action.redirect(self.client.get_logout_url())
