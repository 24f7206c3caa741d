from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode
from uuid import uuid4
from xml.sax.saxutils import escape

import httpx

from ..config import CASSettings
from ..log import log
from ..models import Failure, FailureReason, Outcome
from .protocols import Profile

SAML_REQUEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/">
  <SOAP-ENV:Header/>
  <SOAP-ENV:Body>
    <samlp:Request xmlns:samlp="urn:oasis:names:tc:SAML:1.0:protocol" MajorVersion="1" MinorVersion="1" RequestID="{request_id}" IssueInstant="{issue_instant}">
      <samlp:AssertionArtifact>{ticket}</samlp:AssertionArtifact>
    </samlp:Request>
  </SOAP-ENV:Body>
</SOAP-ENV:Envelope>
"""


def saml_request(ticket: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return SAML_REQUEST_TEMPLATE.format(
        request_id=f"_{uuid4().hex}",
        issue_instant=now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
        ticket=escape(ticket),
    )


class CASClient:
    def __init__(
        self,
        settings: CASSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.settings = settings
        self.server_url = settings.cas_server_url
        self.profile: Profile = settings.profile
        self.transport = transport
        self.timeout = timeout

    def service_url(self, request_path: str = "") -> str:
        return f"{self.settings.service}{request_path}"

    def get_login_url(self, request_path: str = "") -> str:
        """
        Generate the CAS login URL with the service and renew parameters.
        """
        params = {
            'service': self.service_url(request_path),
            'renew': 'true' if self.settings.renew else 'false',
        }
        return f"{self.server_url}/login?{urlencode(params)}"

    def get_logout_url(self) -> str:
        return f"{self.server_url}/logout"

    def build_request(self, client: httpx.AsyncClient, ticket: str, request_path: str) -> httpx.Request:
        validate_url = f"{self.server_url}{self.profile.path}"
        service = self.service_url(request_path)

        if self.profile.method == "POST":
            body = saml_request(ticket).encode("utf-8")
            return client.build_request(
                "POST",
                validate_url,
                params={'TARGET': service, 'ticket': ''},
                content=body,
                headers={
                    'Content-Type': 'text/xml',
                    'Content-Length': str(len(body)),
                },
            )

        return client.build_request(
            "GET",
            validate_url,
            params={'service': service, 'ticket': ticket},
        )

    async def validate_ticket(self, ticket: str, request_path: str = "") -> Outcome:
        """
        Exchange a service ticket for the authenticated principal.

        The request is sent once. Network and stream errors come back as
        ``Failure(TRANSPORT_ERROR)``; anything the server answers goes to the
        parser for the configured protocol version.
        """
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            request = self.build_request(client, ticket, request_path)
            log.info("Validating CAS ticket against %s%s", self.server_url, self.profile.path)
            try:
                response = await client.send(request)
            except httpx.HTTPError as e:
                log.warning("CAS validation request failed: %r", e)
                return Failure(FailureReason.TRANSPORT_ERROR, detail=str(e))

        if response.status_code != 200:
            log.warning("CAS validation returned HTTP %s", response.status_code)
        return self.profile.parse(response.text)
