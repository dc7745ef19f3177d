# tests/test_disconnect.py

import asyncio
import sqlite3
import time

import httpx
import pytest
from sqlalchemy.engine import make_url

from app.services.rates import count_rates
from main import create_app
from tests.conftest import upstream_ok


def _scope(path="/cotacao"):
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver")],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }


def _disconnect_after(delay):
    """receive() de um GET cujo cliente desconecta depois de `delay` segundos."""
    request_sent = False

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await asyncio.sleep(delay)
        return {"type": "http.disconnect"}

    return receive


async def _call(app, receive):
    messages = []

    async def send(message):
        messages.append(message)

    await app(_scope(), receive, send)
    status = next(m["status"] for m in messages if m["type"] == "http.response.start")
    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
    return status, body


def _count(app):
    with app.state.storage.session_factory() as session:
        return count_rates(session)


@pytest.mark.asyncio
async def test_disconnect_while_fetching_aborts_request(test_settings):
    async def hanging(request):
        await asyncio.sleep(5)
        return upstream_ok(request)

    test_settings.FETCH_TIMEOUT_SECONDS = 10
    app = create_app(test_settings, http_transport=httpx.MockTransport(hanging))

    async with app.router.lifespan_context(app):
        started = time.monotonic()
        status, body = await _call(app, _disconnect_after(0.1))
        elapsed = time.monotonic() - started

        assert status == 500
        assert body == b""
        assert elapsed < 1
        assert _count(app) == 0


@pytest.mark.asyncio
async def test_disconnect_while_storing_waits_for_insert_to_abort(test_settings):
    test_settings.PERSIST_TIMEOUT_SECONDS = 2
    app = create_app(test_settings, http_transport=httpx.MockTransport(upstream_ok))

    async with app.router.lifespan_context(app):
        # outra conexão segura o banco: o INSERT fica esperando o lock
        blocker = sqlite3.connect(make_url(test_settings.DATABASE_URL).database, isolation_level=None)
        blocker.execute("BEGIN EXCLUSIVE")
        try:
            status, body = await _call(app, _disconnect_after(0.1))
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()

        assert status == 500
        assert body == b""
        assert _count(app) == 0


@pytest.mark.asyncio
async def test_request_without_disconnect_still_succeeds(test_settings):
    app = create_app(test_settings, http_transport=httpx.MockTransport(upstream_ok))

    async with app.router.lifespan_context(app):
        status, body = await _call(app, _disconnect_after(5))

        assert status == 200
        assert body == b'{"bid":"5.42"}'
        assert _count(app) == 1
