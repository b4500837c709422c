"""推送派发

扫描所有启用的订阅，把 fireAt 已到的待发提醒合并成推送发出去：
- 每个推送最多合并 batch_size 条，超出的拆成多个推送
- 已发出的提醒从 pending_reminders 移除，未到点的保留
- 推送服务返回 404/410 时停用该订阅
- 其他失败保留到期提醒等下次重试，但超过 stale_hours 的直接丢弃
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Awaitable, Callable

from config.settings import WEB_PUSH_CONTACT_EMAIL, WEB_PUSH_PRIVATE_KEY
from datamodel import PushSubscriptionRow
from logger import logger
from metrics import runtime_metrics
from relay.webpush import PushResult, is_subscription_gone, send_web_push
from storage import push_subscriptions
from utils import now_utc, parse_timestamp

__all__ = ["SendPush", "default_sender", "build_dispatch_payload", "dispatch_due", "main_loop"]

SendPush = Callable[[dict[str, Any], dict[str, Any]], Awaitable[PushResult]]

DEFAULT_BATCH_SIZE = 6
DEFAULT_STALE_HOURS = 2


def default_sender() -> SendPush:
    return partial(send_web_push, private_key=WEB_PUSH_PRIVATE_KEY, contact=WEB_PUSH_CONTACT_EMAIL)


def _fire_at(item: dict[str, Any]) -> datetime | None:
    parsed = parse_timestamp(item.get("fireAt"))
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_dispatch_payload(items: list[dict[str, Any]], app_base_url: str) -> dict[str, Any]:
    urgent = any(item.get("level") == "urgent" for item in items)
    if len(items) == 1:
        item = items[0]
        return {
            "title": item.get("title") or "Peggy reminder",
            "body": item.get("body") or "Quick check-in: open Peggy for your reminders.",
            "tag": item.get("tag") or f"peggy-{item.get('type') or 'general'}",
            "url": app_base_url or "/peggy/",
            "renotify": urgent,
            "requireInteraction": urgent,
        }
    titles = [str(item.get("title") or "").strip() for item in items]
    return {
        "title": f"Peggy: {len(items)} reminders",
        "body": "\n".join(t for t in titles if t) or "Quick check-in: open Peggy for your reminders.",
        "tag": f"peggy-batch-{items[0].get('tag') or 'general'}",
        "url": app_base_url or "/peggy/",
        "renotify": urgent,
        "requireInteraction": urgent,
    }


async def _dispatch_row(
    row: PushSubscriptionRow, now: datetime, send_push: SendPush, batch_size: int, stale_before: datetime
) -> tuple[bool, int, bool]:
    """返回 (是否有到期提醒, 成功推送数, 订阅是否失效)"""
    due: list[tuple[datetime, dict[str, Any]]] = []
    # 无法解析的条目随本次派发一并清掉
    broken: list[Any] = []
    for item in row.pending_reminders:
        fire_at = _fire_at(item) if isinstance(item, dict) else None
        if fire_at is None:
            broken.append(item)
        elif fire_at <= now:
            due.append((fire_at, item))
    if not due:
        return False, 0, False

    due.sort(key=lambda pair: pair[0])
    sent = 0
    retry: list[dict[str, Any]] = []
    for start in range(0, len(due), batch_size):
        batch = due[start:start + batch_size]
        result = await send_push(row.subscription, build_dispatch_payload([item for _, item in batch], row.app_base_url))
        if result.ok:
            sent += 1
            continue
        if is_subscription_gone(result.status_code):
            logger.info(f"订阅已失效(status={result.status_code}), 停用: {row.id}")
            return True, sent, True
        logger.warning(f"推送失败, 下次重试: row={row.id} status={result.status_code} {result.message}")
        retry.extend(item for fire_at, item in batch if fire_at >= stale_before)

    consumed = [item for _, item in due if item not in retry] + broken
    await push_subscriptions.record_dispatch(row.id, consumed, pushed=sent > 0)
    return True, sent, False


async def dispatch_due(
    now: datetime | None = None,
    send_push: SendPush | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    stale_hours: int = DEFAULT_STALE_HOURS,
) -> dict[str, Any]:
    now = now or now_utc()
    send_push = send_push or default_sender()
    batch_size = max(1, batch_size)
    stale_before = now - timedelta(hours=stale_hours)

    rows = await push_subscriptions.list_enabled()
    due_rows = 0
    sent = 0
    stale_ids: list[str] = []
    for row in rows:
        try:
            had_due, row_sent, gone = await _dispatch_row(row, now, send_push, batch_size, stale_before)
        except Exception as e:
            logger.opt(exception=e).error(f"派发订阅 {row.id} 时出错: {e}")
            continue
        due_rows += int(had_due)
        sent += row_sent
        if gone:
            stale_ids.append(row.id)

    await push_subscriptions.disable_by_ids(stale_ids)
    runtime_metrics.record_push(sent=sent, stale=len(stale_ids))
    if due_rows:
        logger.info(f"推送派发完成: scanned={len(rows)} due={due_rows} sent={sent} stale={len(stale_ids)}")
    return {"ok": True, "scanned": len(rows), "due": due_rows, "sent": sent, "stale": len(stale_ids)}


async def main_loop(
    shutdown_event: asyncio.Event,
    interval_seconds: int,
    send_push: SendPush | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> None:
    if interval_seconds <= 0:
        logger.info("PUSH_DISPATCH_INTERVAL_SECONDS=0, 内部派发循环不启动, 仅响应 HTTP 触发")
        return
    logger.info("推送派发循环已启动")
    while not shutdown_event.is_set():
        try:
            await dispatch_due(send_push=send_push, batch_size=batch_size)
        except Exception as e:
            logger.opt(exception=e).error(f"推送派发失败: {e}")
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
    logger.info("推送派发循环已关闭")
