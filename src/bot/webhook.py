"""
DailyRoll — LINE Webhook Endpoint.

LINE is the only user interface. Every webhook POST is authenticated with
the X-Line-Signature header before any event reaches the dispatcher;
unsigned or tampered requests are rejected with 403.

Once authenticated, the batch always gets 200 back, even if events fail:
a non-2xx answer makes LINE redeliver the batch and duplicate the work.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging

from aiohttp import web

from src.config import settings
from src.core.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Line-Signature"
_DISPATCHER_KEY = web.AppKey("dispatcher", EventDispatcher)
_SECRET_KEY = web.AppKey("channel_secret", str)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def verify_signature(channel_secret: str, body: bytes, signature: str) -> bool:
    """True if `signature` is base64(HMAC-SHA256(channel_secret, body))."""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8", "surrogateescape"))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_health(request: web.Request) -> web.Response:
    """GET — lets the LINE console "Verify" button and health checks pass."""
    return web.Response(text="ok")


async def _handle_webhook(request: web.Request) -> web.Response:
    """POST — authenticate, parse and dispatch one event batch."""
    try:
        raw = await request.read()
    except Exception as exc:
        logger.warning("Unreadable webhook body: %s", exc)
        return web.Response(status=400, text="Bad Request")

    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not verify_signature(request.app[_SECRET_KEY], raw, signature):
        logger.warning("Rejected webhook with invalid signature")
        return web.Response(status=403, text="Forbidden")

    try:
        body = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Malformed webhook JSON: %s", exc)
        return web.Response(status=400, text="Bad Request")

    events = body.get("events") if isinstance(body, dict) else None
    if not isinstance(events, list):
        events = []

    dispatcher = request.app[_DISPATCHER_KEY]
    try:
        await dispatcher.dispatch([e for e in events if isinstance(e, dict)])
    except Exception:
        # Still 200, to avoid LINE redelivering the batch
        logger.exception("Webhook batch dispatch failed")

    return web.json_response({"ok": True})


# ---------------------------------------------------------------------------
# Application wiring
# ---------------------------------------------------------------------------


def create_app(
    dispatcher: EventDispatcher,
    channel_secret: str | None = None,
    path: str | None = None,
) -> web.Application:
    """Build the aiohttp application around an already wired dispatcher."""
    app = web.Application()
    app[_DISPATCHER_KEY] = dispatcher
    app[_SECRET_KEY] = channel_secret if channel_secret is not None else settings.LINE_CHANNEL_SECRET

    path = path or settings.WEBHOOK_PATH
    app.router.add_get("/", _handle_health)
    if path != "/":
        app.router.add_get(path, _handle_health)
    app.router.add_post(path, _handle_webhook)

    logger.info("Webhook listening on %s", path)
    return app


async def build_app() -> web.Application:
    """Wire the configured store and LINE adapter into a webhook app."""
    from src.adapters.line_messaging import LineMessagingAdapter
    from src.adapters.store_factory import create_attendance_store

    store = await create_attendance_store()
    messaging = LineMessagingAdapter(
        settings.LINE_CHANNEL_ACCESS_TOKEN,
        base_url=settings.LINE_API_BASE_URL,
        timeout=settings.LINE_TIMEOUT_SECONDS,
    )
    dispatcher = EventDispatcher(
        store,
        messaging,
        timezone=settings.TIMEZONE,
        chunk_limit=settings.MESSAGE_CHUNK_LIMIT,
        default_days=settings.STATS_DEFAULT_DAYS,
        max_days=settings.STATS_MAX_DAYS,
        vacuous_full=settings.VACUOUS_FULL_ATTENDANCE,
    )
    app = create_app(dispatcher)

    close = getattr(store, "close", None)
    if close is not None:
        async def _close_store(app: web.Application) -> None:
            await close()

        app.on_cleanup.append(_close_store)

    return app


def main() -> None:
    """Entry point: build the app and serve the webhook."""
    logger.info("Starting DailyRoll webhook server...")
    web.run_app(build_app(), host=settings.WEBHOOK_HOST, port=settings.WEBHOOK_PORT)


if __name__ == "__main__":
    main()
