# tests/conftest.py
import pytest
from httpx import ASGITransport

from fleettrack.core.guards import RouteGuard
from fleettrack.core.session import SessionStore
from fleettrack.core.storage import MemoryStorage
from fleettrack.services.api_client import ApiClient
from fleettrack.services.fleet_api import FleetApi
from tests.fake_backend import FakeBackend

BASE_URL = "http://test/api"


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def navigations():
    return []


@pytest.fixture
async def client(backend, storage):
    transport = ASGITransport(app=backend.app, raise_app_exceptions=True)
    c = ApiClient(BASE_URL, storage, transport=transport)
    yield c
    await c.aclose()


@pytest.fixture
def api(client):
    return FleetApi(client)


@pytest.fixture
def store(client, api, storage, notices, navigations):
    s = SessionStore(storage, api.verify_token, navigate=navigations.append, notify=notices.append)
    client.on_auth_failure = s.handle_auth_failure
    return s


@pytest.fixture
def guard(store, notices):
    return RouteGuard(store, max_age=60.0, notify=notices.append)


@pytest.fixture
def sign_in(api, store):
    async def _sign_in(username: str, password: str):
        result = await api.login(username, password)
        assert result.success, result.message
        return store.login(result.token, result.identity())

    return _sign_in
