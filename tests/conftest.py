# tests/conftest.py

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import init_storage
from main import create_app

UPSTREAM_URL = "https://quotes.test/json/last/USD-BRL"

USDBRL = {
    "code": "USD",
    "codein": "BRL",
    "name": "Dólar Americano/Real Brasileiro",
    "high": "5.4612",
    "low": "5.3987",
    "varBid": "0.0123",
    "pctChange": "0.23",
    "bid": "5.42",
    "ask": "5.4215",
    "timestamp": "1718900000",
    "create_date": "2024-06-20 13:13:20",
}


def upstream_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=json.dumps({"USDBRL": USDBRL}))


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'exchange.db'}"


@pytest.fixture
def test_settings(db_url):
    settings = Settings()
    settings.DATABASE_URL = db_url
    settings.QUOTE_API_URL = UPSTREAM_URL
    settings.FETCH_TIMEOUT_SECONDS = 0.2
    # folga para disco lento; os testes de prazo baixam isto explicitamente
    settings.PERSIST_TIMEOUT_SECONDS = 1.0
    settings.REQUEST_TIMEOUT_SECONDS = None
    return settings


@pytest.fixture
def storage(db_url):
    storage = init_storage(db_url)
    yield storage
    storage.dispose()


@pytest.fixture
def db(storage):
    session = storage.session_factory()
    yield session
    session.close()


@pytest.fixture
def make_client(test_settings):
    """
    Sobe o app com um upstream falso. Devolve (client, app) já com o
    lifespan rodando; fecha tudo no final do teste.
    """
    clients = []

    def _make(handler=upstream_ok, **overrides):
        for key, value in overrides.items():
            setattr(test_settings, key, value)
        app = create_app(test_settings, http_transport=httpx.MockTransport(handler))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client, app

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
