import httpx
import pytest
from fastapi.testclient import TestClient

from casgate.config import CASSettings
from casgate.main import create_app

CAS_SERVER_URL = "https://cas.example.com/cas"
SERVICE_URL = "http://testserver"

CAS3_SUCCESS = """<cas:serviceResponse xmlns:cas='http://www.yale.edu/tp/cas'>
    <cas:authenticationSuccess>
        <cas:user>testuser</cas:user>
        <cas:attributes>
            <cas:email>test@example.com</cas:email>
            <cas:memberOf>staff</cas:memberOf>
            <cas:memberOf>faculty</cas:memberOf>
        </cas:attributes>
    </cas:authenticationSuccess>
</cas:serviceResponse>"""


class FakeCASServer:
    """Answers every validation request with ``body`` and remembers the requests."""

    def __init__(self, body: str = CAS3_SUCCESS, status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_settings(**overrides) -> CASSettings:
    options = {
        "cas_server_url": CAS_SERVER_URL,
        "service": SERVICE_URL,
        "session_info": "cas_info",
    }
    options.update(overrides)
    return CASSettings(**options)


@pytest.fixture(name="cas_server")
def cas_server_fixture():
    return FakeCASServer()


@pytest.fixture(name="make_settings")
def make_settings_fixture():
    return make_settings


@pytest.fixture(name="settings")
def settings_fixture():
    return make_settings()


@pytest.fixture(name="fake_cas")
def fake_cas_fixture():
    return FakeCASServer


@pytest.fixture(name="client")
def client_fixture(settings, cas_server):
    app = create_app(settings, transport=cas_server.transport, session_secret="test-secret")
    with TestClient(app) as client:
        yield client
