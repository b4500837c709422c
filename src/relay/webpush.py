"""Web Push 发送(pywebpush + VAPID)"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from pywebpush import WebPushException, webpush

from logger import logger

__all__ = ["PushResult", "send_web_push", "is_subscription_gone"]

GONE_STATUS = (404, 410)


@dataclass(frozen=True)
class PushResult:
    ok: bool
    status_code: int = 0
    message: str = ""


def is_subscription_gone(status_code: int) -> bool:
    """推送服务返回 404/410 表示订阅已失效"""
    return status_code in GONE_STATUS


def _send_blocking(subscription: dict[str, Any], data: str, private_key: str, contact: str) -> PushResult:
    try:
        response = webpush(
            subscription_info=subscription,
            data=data,
            vapid_private_key=private_key,
            vapid_claims={"sub": contact},
        )
    except WebPushException as exc:
        status = exc.response.status_code if exc.response is not None else 0
        return PushResult(ok=False, status_code=status, message=str(exc)[:180])
    except Exception as exc:
        return PushResult(ok=False, status_code=0, message=str(exc)[:180] or "push-send-failed")
    return PushResult(ok=True, status_code=getattr(response, "status_code", 201) or 201)


async def send_web_push(
    subscription: dict[str, Any],
    payload: dict[str, Any],
    private_key: str,
    contact: str,
) -> PushResult:
    """在线程里调用 pywebpush，避免阻塞事件循环；失败不抛异常，返回 PushResult"""
    if not private_key:
        return PushResult(ok=False, message="缺少 WEB_PUSH_PRIVATE_KEY")
    if not subscription.get("endpoint"):
        return PushResult(ok=False, message="订阅缺少 endpoint")

    data = json.dumps(payload, ensure_ascii=False)
    result = await asyncio.to_thread(_send_blocking, subscription, data, private_key, contact)
    if not result.ok:
        logger.debug(f"Web Push 失败: status={result.status_code} {result.message}")
    return result
