"""Pytest configuration and fixtures."""

import json
import os

os.environ.setdefault("SPAPI_APP_ID", "amzn1.sp.solution.test-app")
os.environ.setdefault("LWA_CLIENT_ID", "amzn1.application-oa2-client.test")
os.environ.setdefault("LWA_CLIENT_SECRET", "test-client-secret")
os.environ["DEBUG"] = "false"
os.environ["SECRETS_MANAGER_ENABLED"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient

from spapi_oauth.api.routes import get_authorization_service
from spapi_oauth.auth.lwa_client import LWAClient
from spapi_oauth.auth.service import AuthorizationService
from spapi_oauth.auth.state import InMemoryFlowStore
from spapi_oauth.config import settings
from spapi_oauth.main import app
from spapi_oauth.spapi.client import SellersClient


TOKEN_URL = "https://api.amazon.com/auth/o2/token"
SPAPI_ENDPOINT = "https://sellingpartnerapi-na.amazon.com"


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeLWAEndpoint:
    """Mock transport handler for the LWA token endpoint, keyed by grant type."""

    def __init__(self, token_payload):
        self.requests = []
        self.responses = {
            "authorization_code": (200, token_payload),
            "refresh_token": (200, {"access_token": "Atza|refreshed", "token_type": "bearer", "expires_in": 3600}),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append({"url": str(request.url), "body": body})
        status_code, payload = self.responses[body["grant_type"]]
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)


class FakeSPAPIEndpoint:
    """Mock transport handler for the SP-API Sellers endpoint."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.headers = {}
        self.payload = {
            "payload": [
                {
                    "marketplace": {"id": "ATVPDKIKX0DER", "countryCode": "US", "name": "Amazon.com"},
                    "participation": {"isParticipating": True, "hasSuspendedListings": False},
                }
            ]
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload, headers=self.headers)


@pytest.fixture
def mock_lwa_token_response():
    """Mock LWA token response."""
    return {
        "access_token": "Atza|test_access_token",
        "refresh_token": "Atzr|test_refresh_token",
        "token_type": "bearer",
        "expires_in": 3600,
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def flow_store(clock):
    return InMemoryFlowStore(ttl_seconds=1800, clock=clock)


@pytest.fixture
def lwa_endpoint(mock_lwa_token_response):
    return FakeLWAEndpoint(mock_lwa_token_response)


@pytest.fixture
def spapi_endpoint():
    return FakeSPAPIEndpoint()


@pytest.fixture
def lwa(lwa_endpoint):
    """LWA client talking to the fake token endpoint."""
    return LWAClient(
        client_id="amzn1.application-oa2-client.test",
        client_secret="test-client-secret",
        token_url=TOKEN_URL,
        transport=httpx.MockTransport(lwa_endpoint),
    )


@pytest.fixture
def sellers(spapi_endpoint):
    """SP-API client talking to the fake Sellers endpoint."""
    return SellersClient(endpoint=SPAPI_ENDPOINT, transport=httpx.MockTransport(spapi_endpoint))


@pytest.fixture
def test_settings():
    return settings.model_copy(
        update={
            "spapi_app_id": "amzn1.sp.solution.test-app",
            "sp_oauth_endpoint": "https://sellercentral.amazon.com",
            "debug": False,
            "state_ttl_seconds": 1800,
            "verify_credentials": True,
            "cookie_secure": False,
        }
    )


@pytest.fixture
def service(flow_store, lwa, sellers, test_settings, clock):
    return AuthorizationService(
        store=flow_store,
        lwa_client=lwa,
        settings=test_settings,
        sellers_client=sellers,
        clock=clock,
    )


@pytest.fixture(scope="function")
def client(service):
    """Create test client with the authorization service overridden."""
    app.dependency_overrides[get_authorization_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
