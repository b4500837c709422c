"""本地通知的组装与投递

build_payload 把提醒候选转成平台通知(标题前缀、正文前缀、振动、tag、跳转地址、快捷按钮)。
Notifier 是平台接口：先走 show_reliable，不可用或失败时回退到 show；任何异常都不往外抛。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from functools import partial
from typing import Any, Awaitable, Callable, Sequence
from urllib.parse import quote

from datamodel import NotificationPayload, QuickMoodAction, ReminderCandidate, ReminderLevel, ReminderType
from logger import logger
from relay.webpush import PushResult, send_web_push
from utils import epoch_ms

__all__ = [
    "Tone", "get_tone", "build_payload", "payload_for_candidate",
    "Notifier", "LogNotifier", "WebPushNotifier", "NotificationError", "deliver",
]

MAX_ACTIONS = 8


@dataclass(frozen=True)
class Tone:
    title_prefix: str
    body_prefix: str
    vibrate: tuple[int, ...]


def get_tone(reminder_type: str, level: str = ReminderLevel.GENTLE.value) -> Tone:
    urgent = level == ReminderLevel.URGENT.value
    if reminder_type == ReminderType.SUPP.value:
        return Tone("💊", "Supplement check:", (140, 70, 140) if urgent else (100, 60, 100))
    if reminder_type == ReminderType.WORK.value:
        return Tone("🧾", "Work log:", (120, 50, 120, 50, 120) if urgent else (90, 50, 90))
    if reminder_type == ReminderType.TIP.value:
        return Tone("💡", "Daily tip:", (70,))
    if reminder_type == ReminderType.NAME.value:
        return Tone("🍼", "Name spotlight:", (50, 35, 50))
    if reminder_type == ReminderType.PLAN.value:
        return Tone("📅", "Plan:", (110, 60, 110) if urgent else (70, 40, 70))
    return Tone("", "", (80,))


def build_payload(
    *,
    title: str,
    body: str,
    slot_key: str,
    reminder_type: str,
    level: str,
    now: datetime,
    app_base_url: str = "/",
    urgent: bool = False,
    url: str | None = None,
    actions: Sequence[dict[str, str]] = (),
    action_urls: dict[str, str] | None = None,
) -> NotificationPayload:
    tone = get_tone(reminder_type, level)
    safe_title = f"{tone.title_prefix} {str(title or '').strip()}".strip()
    base_body = str(body or "").strip()
    safe_body = f"{tone.body_prefix} {base_body}".strip() if tone.body_prefix else base_body
    icon = f"{app_base_url.rstrip('/')}/icon-192.png"

    return NotificationPayload(
        title=safe_title,
        body=safe_body,
        icon=icon,
        badge=icon,
        tag=f"{reminder_type}:{slot_key}",
        renotify=urgent,
        require_interaction=urgent or level == ReminderLevel.URGENT.value,
        vibrate=tone.vibrate,
        timestamp=epoch_ms(now),
        data={
            "type": reminder_type,
            "level": level,
            "url": url or app_base_url,
            "actionUrls": dict(action_urls or {}),
        },
        actions=list(actions)[:MAX_ACTIONS],
    )


def _mood_actions(actions: Sequence[QuickMoodAction], app_base_url: str) -> tuple[list[dict[str, str]], dict[str, str]]:
    buttons: list[dict[str, str]] = []
    urls: dict[str, str] = {}
    for item in actions:
        code = item.code.strip()
        label = (item.label or item.emoji).strip()
        if not code or not label:
            continue
        action_id = f"quick_mood_{code}"
        buttons.append({"action": action_id, "title": label})
        urls[action_id] = f"{app_base_url}?openMood=1&quickMood={quote(code, safe='')}"
    return buttons, urls


def payload_for_candidate(candidate: ReminderCandidate, now: datetime, app_base_url: str = "/") -> NotificationPayload:
    """心情提醒带快捷心情按钮，点击通知本身打开心情面板"""
    is_mood = candidate.type == ReminderType.MOOD
    buttons, urls = _mood_actions(candidate.mood_quick_actions, app_base_url) if is_mood else ([], {})
    return build_payload(
        title=candidate.notification_title,
        body=candidate.notification_body,
        slot_key=candidate.slot_key,
        reminder_type=candidate.type.value,
        level=candidate.level.value,
        now=now,
        app_base_url=app_base_url,
        urgent=candidate.level == ReminderLevel.URGENT,
        url=f"{app_base_url}?openMood=1" if is_mood else app_base_url,
        actions=buttons,
        action_urls=urls,
    )


class Notifier(ABC):
    @abstractmethod
    async def show(self, payload: NotificationPayload) -> None:
        """最简单的通知路径"""

    async def show_reliable(self, payload: NotificationPayload) -> bool:
        """可靠投递路径；返回 False 表示当前平台不支持，由调用方回退到 show"""
        return False

    async def set_badge(self, count: int) -> None:
        return None


class LogNotifier(Notifier):
    """没有通知平台时把通知写进日志，同时保留最近的通知供查看"""

    def __init__(self, keep: int = 50) -> None:
        self.keep = keep
        self.shown: list[NotificationPayload] = []
        self.badge: int | None = None

    async def show(self, payload: NotificationPayload) -> None:
        self.shown.append(payload)
        del self.shown[: -self.keep]
        logger.info(f"[通知] {payload.title} | {payload.body} (tag={payload.tag})")

    async def set_badge(self, count: int) -> None:
        self.badge = max(0, int(count))


class NotificationError(Exception):
    """通知平台明确拒绝了本次投递"""


class WebPushNotifier(Notifier):
    """本机持有一份 Web Push 订阅时，直接用 VAPID 推到该订阅；推送失败时 show 抛 NotificationError"""

    def __init__(
        self,
        subscription: dict[str, Any],
        private_key: str = "",
        contact: str = "",
        send_push: Callable[[dict[str, Any], dict[str, Any]], Awaitable[PushResult]] | None = None,
    ) -> None:
        self.subscription = subscription
        self.send_push = send_push or partial(send_web_push, private_key=private_key, contact=contact)

    async def show(self, payload: NotificationPayload) -> None:
        data = asdict(payload)
        data["requireInteraction"] = data.pop("require_interaction")
        data["url"] = payload.data.get("url")
        result = await self.send_push(self.subscription, data)
        if not result.ok:
            raise NotificationError(f"Web Push 投递失败: status={result.status_code} {result.message}")
        logger.debug(f"Web Push 已投递: {payload.tag}")


async def deliver(notifier: Notifier, payload: NotificationPayload) -> bool:
    """先可靠路径再简单路径；返回是否有任一路径成功"""
    try:
        if await notifier.show_reliable(payload):
            return True
    except Exception as e:
        logger.warning(f"可靠通知路径失败, 回退到普通通知: {e}")
    try:
        await notifier.show(payload)
        return True
    except Exception as e:
        logger.warning(f"通知发送失败: {e}")
        return False
