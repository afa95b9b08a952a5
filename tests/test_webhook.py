"""Tests for src.bot.webhook — signature check and HTTP handling.

The dispatcher is mocked; requests go through a real aiohttp test server.
"""

import base64
import hashlib
import hmac
import json

import pytest
from aiohttp import test_utils
from unittest.mock import AsyncMock, MagicMock

from src.bot.webhook import SIGNATURE_HEADER, create_app, verify_signature

SECRET = "s3cret"
PATH = "/api/webhook"


def _sign(body: bytes, secret: str = SECRET) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def _make_dispatcher():
    dispatcher = MagicMock()
    dispatcher.dispatch = AsyncMock()
    return dispatcher


def _client(dispatcher):
    app = create_app(dispatcher, channel_secret=SECRET, path=PATH)
    return test_utils.TestClient(test_utils.TestServer(app))


class TestVerifySignature:
    def test_valid(self):
        body = b'{"events":[]}'
        assert verify_signature(SECRET, body, _sign(body)) is True

    def test_tampered_body(self):
        assert verify_signature(SECRET, b'{"events":[1]}', _sign(b'{"events":[]}')) is False

    def test_wrong_secret(self):
        body = b"{}"
        assert verify_signature(SECRET, body, _sign(body, "other")) is False

    def test_missing_signature(self):
        assert verify_signature(SECRET, b"{}", "") is False

    def test_non_ascii_signature(self):
        assert verify_signature(SECRET, b"{}", "é") is False


class TestWebhookEndpoint:
    @pytest.mark.asyncio
    async def test_health_check(self):
        async with _client(_make_dispatcher()) as client:
            resp = await client.get("/")
            assert resp.status == 200
            assert await resp.text() == "ok"
            resp = await client.get(PATH)
            assert resp.status == 200

    @pytest.mark.asyncio
    async def test_valid_batch_is_dispatched(self):
        dispatcher = _make_dispatcher()
        events = [{"type": "message", "source": {"type": "group", "groupId": "C1"}}]
        body = json.dumps({"destination": "U0", "events": events}).encode()

        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=body, headers={SIGNATURE_HEADER: _sign(body)})
            assert resp.status == 200
            assert await resp.json() == {"ok": True}

        dispatcher.dispatch.assert_awaited_once_with(events)

    @pytest.mark.asyncio
    async def test_invalid_signature_is_forbidden(self):
        dispatcher = _make_dispatcher()
        body = b'{"events": []}'
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=body, headers={SIGNATURE_HEADER: "bogus"})
            assert resp.status == 403
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_signature_is_forbidden(self):
        dispatcher = _make_dispatcher()
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=b'{"events": []}')
            assert resp.status == 403
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_ascii_signature_is_forbidden(self):
        dispatcher = _make_dispatcher()
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=b'{"events": []}', headers={SIGNATURE_HEADER: "é"})
            assert resp.status == 403
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_json_is_rejected(self):
        dispatcher = _make_dispatcher()
        body = b"not json"
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=body, headers={SIGNATURE_HEADER: _sign(body)})
            assert resp.status == 400
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_events_dispatches_empty_batch(self):
        dispatcher = _make_dispatcher()
        body = b"{}"
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=body, headers={SIGNATURE_HEADER: _sign(body)})
            assert resp.status == 200
        dispatcher.dispatch.assert_awaited_once_with([])

    @pytest.mark.asyncio
    async def test_dispatch_failure_still_returns_ok(self):
        dispatcher = _make_dispatcher()
        dispatcher.dispatch.side_effect = RuntimeError("boom")
        body = b'{"events": []}'
        async with _client(dispatcher) as client:
            resp = await client.post(PATH, data=body, headers={SIGNATURE_HEADER: _sign(body)})
            assert resp.status == 200

    @pytest.mark.asyncio
    async def test_other_methods_not_allowed(self):
        async with _client(_make_dispatcher()) as client:
            resp = await client.put(PATH, data=b"{}")
            assert resp.status == 405
