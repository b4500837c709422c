from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MAX_SYNCED_REMINDERS = 12


@dataclass
class RuntimeControl:
    shutdown_event: asyncio.Event
    started_at: float


class SubscriptionKeys(BaseModel):
    model_config = ConfigDict(extra="ignore")

    p256dh: str = ""
    auth: str = ""


class WebPushSubscription(BaseModel):
    model_config = ConfigDict(extra="allow")

    endpoint: str = ""
    keys: SubscriptionKeys = Field(default_factory=SubscriptionKeys)


class PushSubscriptionAction(BaseModel):
    """POST /functions/v1/push-subscriptions 的请求体，各 action 共用"""

    model_config = ConfigDict(extra="ignore")

    action: str = "upsert"
    device_id: str = Field(default="", alias="deviceId")
    endpoint: str = ""
    p256dh: str = ""
    auth: str = ""
    subscription: WebPushSubscription | None = None
    notif_enabled: bool = Field(default=True, alias="notifEnabled")
    user_agent: str = Field(default="", alias="userAgent")
    platform: str = ""
    app_base_url: str = Field(default="/peggy/", alias="appBaseUrl")
    reminders: list[Any] = Field(default_factory=list)


def _clip(value: Any, limit: int, default: str = "") -> str:
    return str(value or default)[:limit]


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def sanitize_reminders(raw: list[Any]) -> list[dict[str, Any]]:
    """截断字段长度，最多保留 12 条；非对象条目按空对象处理"""
    sanitized: list[dict[str, Any]] = []
    for item in raw[:MAX_SYNCED_REMINDERS]:
        r = item if isinstance(item, dict) else {}
        sanitized.append({
            "type": _clip(r.get("type"), 30, "general"),
            "level": _clip(r.get("level"), 20, "gentle"),
            "title": _clip(r.get("notificationTitle") or r.get("title"), 120),
            "body": _clip(r.get("notificationBody") or r.get("body"), 300),
            "tag": _clip(r.get("tag"), 80),
            "fireAt": _clip(r.get("fireAt"), 30),
            "priorityScore": _score(r.get("priorityScore")),
        })
    return sanitized
