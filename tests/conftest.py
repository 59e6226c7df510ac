import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

sys.path.append(str(Path(__file__).resolve().parents[1]))

from config import Settings  # noqa: E402
from pos.app.db import create_all, create_test_engine, get_sessionmaker  # noqa: E402
from pos.app.main import create_app  # noqa: E402
from pos.app.repos import MemoryStorage, seed_if_empty  # noqa: E402
from pos.app.repos_sqlalchemy import SQLStorage  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def sql_storage(anyio_backend):
    engine = create_test_engine()
    await create_all(engine)
    storage = SQLStorage(get_sessionmaker(engine))
    await seed_if_empty(storage)
    yield storage
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def storage(request, anyio_backend):
    if request.param == "memory":
        store = MemoryStorage()
        await seed_if_empty(store)
        yield store
        return
    engine = create_test_engine()
    await create_all(engine)
    store = SQLStorage(get_sessionmaker(engine))
    await seed_if_empty(store)
    yield store
    await engine.dispose()


def make_settings(**overrides) -> Settings:
    values = {
        "storage_backend": "memory",
        "database_url": "sqlite+aiosqlite://",
        "housekeeping_enabled": False,
        "secret_key": "s" * 32,
        "admin_password": "letmein",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=["memory", "sql"])
def client(request):
    app = create_app(make_settings(storage_backend=request.param))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def memory_client():
    app = create_app(make_settings())
    with TestClient(app) as test_client:
        yield test_client


class FakeSocket:
    """Stands in for a Starlette ``WebSocket`` in hub tests."""

    def __init__(self, fail: bool = False, state=WebSocketState.CONNECTED):
        self.sent: list[dict] = []
        self.fail = fail
        self.application_state = state
        self.client_state = state

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    def of_type(self, kind: str) -> list[dict]:
        return [m for m in self.sent if m["type"] == kind]


@pytest.fixture
def fake_socket_factory():
    return FakeSocket
