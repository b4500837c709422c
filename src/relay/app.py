from __future__ import annotations

import asyncio
import time
from typing import Any

from config.settings import PUSH_BATCH_SIZE, PUSH_CRON_SECRET, RELAY_ADMIN_TOKEN, RELAY_USER_TOKENS
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from logger import logger
from metrics import runtime_metrics
from pydantic import ValidationError

import storage.db_config as db_config
from storage import push_subscriptions

from .auth import require_admin_auth, require_cron_secret, require_user
from .dispatch import SendPush, default_sender, dispatch_due
from .schemas import PushSubscriptionAction, RuntimeControl, sanitize_reminders
from .webpush import is_subscription_gone


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _test_payload(app_base_url: str) -> dict[str, Any]:
    return {
        "title": "Peggy test notification",
        "body": "Push is connected on this device.",
        "tag": f"peggy-test-{int(time.time() * 1000)}",
        "url": (app_base_url or "/peggy/").strip() or "/",
        "renotify": True,
        "requireInteraction": True,
    }


def create_app(
    control: RuntimeControl | None = None,
    send_push: SendPush | None = None,
    *,
    user_tokens: dict[str, str] | None = None,
    cron_secret: str | None = None,
    admin_token: str | None = None,
    batch_size: int = PUSH_BATCH_SIZE,
    status_providers: dict[str, Any] | None = None,
) -> FastAPI:
    app = FastAPI(title="Peggy Push Relay", version="1.0.0")
    app.state.user_tokens = RELAY_USER_TOKENS if user_tokens is None else user_tokens
    app.state.cron_secret = PUSH_CRON_SECRET if cron_secret is None else cron_secret
    app.state.admin_token = RELAY_ADMIN_TOKEN if admin_token is None else admin_token
    started_at = control.started_at if control else time.time()
    sender: SendPush = send_push or default_sender()
    status_providers = status_providers or {}

    def health_payload() -> dict[str, Any]:
        return {
            "status": "ok",
            "now_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "uptime_seconds": max(0.0, time.time() - started_at),
            "db_connected": db_config.conn is not None,
            "shutdown_requested": control.shutdown_event.is_set() if control else False,
        }

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/api/v1/health")
    async def api_health() -> dict[str, Any]:
        return health_payload()

    @app.get("/api/v1/metrics")
    async def get_metrics(request: Request) -> dict[str, Any]:
        await require_admin_auth(request)
        components: dict[str, Any] = {"db": {"connected": db_config.conn is not None}}
        for name, provider in status_providers.items():
            try:
                components[name] = provider()
            except Exception as e:
                logger.warning(f"读取 {name} 状态失败: {e}")
        return {
            "runtime": runtime_metrics.snapshot(),
            "components": components,
            "active_tasks": len(asyncio.all_tasks()),
        }

    async def _upsert(user_id: str, body: PushSubscriptionAction) -> JSONResponse:
        subscription = body.subscription
        endpoint = (body.endpoint or (subscription.endpoint if subscription else "")).strip()
        p256dh = (body.p256dh or (subscription.keys.p256dh if subscription else "")).strip()
        auth = (body.auth or (subscription.keys.auth if subscription else "")).strip()
        if not endpoint or not p256dh or not auth:
            return _error(400, "Invalid subscription payload.")

        raw_subscription = (
            subscription.model_dump() if subscription else {"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}}
        )
        row = await push_subscriptions.upsert_subscription(
            user_id,
            body.device_id.strip() or "unknown-device",
            endpoint,
            p256dh,
            auth,
            raw_subscription,
            notif_enabled=body.notif_enabled,
            user_agent=body.user_agent.strip() or None,
            platform=body.platform.strip() or None,
            app_base_url=body.app_base_url.strip() or "/",
        )
        return JSONResponse({
            "ok": True,
            "subscription": {
                "id": row.id,
                "endpoint": row.endpoint,
                "enabled": row.enabled,
                "notif_enabled": row.notif_enabled,
            },
        })

    async def _disable(user_id: str, body: PushSubscriptionAction) -> JSONResponse:
        updated = await push_subscriptions.disable_subscriptions(
            user_id, endpoint=body.endpoint.strip(), device_id=body.device_id.strip()
        )
        return JSONResponse({"ok": True, "updated": updated})

    async def _sync_reminders(user_id: str, body: PushSubscriptionAction) -> JSONResponse:
        device_id = body.device_id.strip()
        if not device_id:
            return _error(400, "Missing deviceId.")
        sanitized = sanitize_reminders(body.reminders)
        updated = await push_subscriptions.replace_pending_reminders(user_id, device_id, sanitized)
        logger.debug(f"设备 {device_id} 同步未来提醒 {len(sanitized)} 条")
        return JSONResponse({"ok": True, "synced": len(sanitized), "updated": updated})

    async def _send_test(user_id: str, body: PushSubscriptionAction) -> JSONResponse:
        device_id = body.device_id.strip()
        rows, fallback_used = await push_subscriptions.list_test_targets(user_id, device_id)
        sent = failed = 0
        stale_ids: list[str] = []
        errors: list[str] = []
        for row in rows:
            result = await sender(row.subscription, _test_payload(row.app_base_url))
            if result.ok:
                sent += 1
                continue
            failed += 1
            if len(errors) < 5:
                errors.append(f"status={result.status_code or 'n/a'} {(result.message or 'push-send-failed')[:180]}")
            if is_subscription_gone(result.status_code):
                stale_ids.append(row.id)
        await push_subscriptions.disable_by_ids(stale_ids)
        return JSONResponse({
            "ok": True,
            "sent": sent,
            "total": len(rows),
            "stale": len(stale_ids),
            "failed": failed,
            "errors": errors,
            "targetDeviceId": device_id or None,
            "fallbackUsed": fallback_used,
        })

    handlers = {
        "upsert": _upsert,
        "disable": _disable,
        "sync_reminders": _sync_reminders,
        "send_test": _send_test,
    }

    @app.post("/functions/v1/push-subscriptions")
    async def push_subscriptions_action(request: Request, user_id: str = Depends(require_user)) -> JSONResponse:
        try:
            raw = await request.json()
        except ValueError:
            raw = {}
        try:
            body = PushSubscriptionAction.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as e:
            return _error(400, f"Invalid payload: {e.errors()[0].get('msg', 'invalid')}")

        handler = handlers.get(body.action.strip().lower())
        if handler is None:
            return _error(400, "Unsupported action.")
        try:
            return await handler(user_id, body)
        except Exception as e:
            logger.opt(exception=e).error(f"处理推送订阅请求失败: action={body.action}, error={e}")
            return _error(400, str(e))

    @app.post("/functions/v1/push-dispatch", dependencies=[Depends(require_cron_secret)])
    async def push_dispatch() -> dict[str, Any]:
        return await dispatch_due(send_push=sender, batch_size=batch_size)

    return app
