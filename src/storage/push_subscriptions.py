"""推送中继的 push_subscriptions 表

每台设备一行(user_id + device_id 唯一)。pending_reminders 由设备整体覆盖写入，
由派发循环在提醒触发后裁剪。
"""

import json

from ulid import ULID

import storage.db_config as db_config
from datamodel import PushSubscriptionRow
from logger import logger
from utils import now_utc, to_utc_iso

_COLUMNS = (
    "id, user_id, device_id, endpoint, subscription, enabled, notif_enabled, "
    "app_base_url, pending_reminders, last_push_at, last_seen_at"
)


def _ensure_conn():
    if db_config.conn is None:
        raise RuntimeError("数据库未初始化，请先调用 init_db()")


def _now_iso() -> str:
    return to_utc_iso(now_utc())


def _loads(raw, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


def _row_to_model(row) -> PushSubscriptionRow:
    pending = _loads(row[8], [])
    return PushSubscriptionRow(
        id=row[0],
        user_id=row[1],
        device_id=row[2],
        endpoint=row[3],
        subscription=_loads(row[4], {}),
        enabled=bool(row[5]),
        notif_enabled=bool(row[6]),
        app_base_url=row[7] or "/peggy/",
        pending_reminders=pending if isinstance(pending, list) else [],
        last_push_at=row[9],
        last_seen_at=row[10],
    )


async def upsert_subscription(
    user_id: str,
    device_id: str,
    endpoint: str,
    p256dh: str,
    auth: str,
    subscription: dict,
    notif_enabled: bool = True,
    user_agent: str | None = None,
    platform: str | None = None,
    app_base_url: str = "/peggy/",
) -> PushSubscriptionRow:
    """按 (user_id, device_id) 插入或更新订阅"""
    _ensure_conn()
    now_iso = _now_iso()
    await db_config.conn.execute(
        "INSERT INTO push_subscriptions (id, user_id, device_id, endpoint, p256dh, auth, subscription, enabled, "
        "notif_enabled, user_agent, platform, app_base_url, last_seen_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(user_id, device_id) DO UPDATE SET endpoint = excluded.endpoint, p256dh = excluded.p256dh, "
        "auth = excluded.auth, subscription = excluded.subscription, enabled = excluded.enabled, "
        "notif_enabled = excluded.notif_enabled, user_agent = excluded.user_agent, platform = excluded.platform, "
        "app_base_url = excluded.app_base_url, last_seen_at = excluded.last_seen_at, updated_at = excluded.updated_at",
        (
            str(ULID()), user_id, device_id, endpoint, p256dh, auth, json.dumps(subscription),
            int(notif_enabled), int(notif_enabled), user_agent, platform, app_base_url, now_iso, now_iso,
        ),
    )
    await db_config.conn.commit()
    async with db_config.conn.execute(
        f"SELECT {_COLUMNS} FROM push_subscriptions WHERE user_id = ? AND device_id = ?", (user_id, device_id)
    ) as cursor:
        row = await cursor.fetchone()
    logger.debug(f"推送订阅已登记: user_id={user_id}, device_id={device_id}")
    return _row_to_model(row)


async def disable_subscriptions(user_id: str, endpoint: str = "", device_id: str = "") -> int:
    """按 endpoint 或 device_id 停用；两者都没给时停用该用户的全部订阅"""
    _ensure_conn()
    sql = "UPDATE push_subscriptions SET enabled = 0, notif_enabled = 0, updated_at = ? WHERE user_id = ?"
    params: list = [_now_iso(), user_id]
    if endpoint:
        sql += " AND endpoint = ?"
        params.append(endpoint)
    elif device_id:
        sql += " AND device_id = ?"
        params.append(device_id)
    async with db_config.conn.execute(sql, params) as cursor:
        updated = cursor.rowcount
    await db_config.conn.commit()
    logger.debug(f"推送订阅已停用: user_id={user_id}, updated={updated}")
    return updated


async def disable_by_ids(ids: list[str]) -> None:
    if not ids:
        return
    _ensure_conn()
    now_iso = _now_iso()
    await db_config.conn.executemany(
        "UPDATE push_subscriptions SET enabled = 0, notif_enabled = 0, updated_at = ? WHERE id = ?",
        [(now_iso, row_id) for row_id in ids],
    )
    await db_config.conn.commit()
    logger.info(f"已停用失效订阅 {len(ids)} 个")


async def replace_pending_reminders(user_id: str, device_id: str, reminders: list[dict]) -> int:
    """整体覆盖设备的待发提醒，空列表存为 NULL"""
    _ensure_conn()
    now_iso = _now_iso()
    payload = json.dumps(reminders, ensure_ascii=False) if reminders else None
    async with db_config.conn.execute(
        "UPDATE push_subscriptions SET pending_reminders = ?, reminders_synced_at = ?, last_seen_at = ?, "
        "reminders_version = reminders_version + 1 WHERE user_id = ? AND device_id = ?",
        (payload, now_iso, now_iso, user_id, device_id),
    ) as cursor:
        updated = cursor.rowcount
    await db_config.conn.commit()
    return updated


async def list_test_targets(user_id: str, device_id: str = "") -> tuple[list[PushSubscriptionRow], bool]:
    """测试推送的目标设备；指定设备不存在时回退到最近活跃的 3 个已启用设备

    返回 (rows, fallback_used)。
    """
    _ensure_conn()
    if device_id:
        # 指定设备时不看开关状态，用来验证通道本身
        sql = f"SELECT {_COLUMNS} FROM push_subscriptions WHERE user_id = ? AND device_id = ?"
        params: tuple = (user_id, device_id)
    else:
        sql = f"SELECT {_COLUMNS} FROM push_subscriptions WHERE user_id = ? AND enabled = 1 AND notif_enabled = 1"
        params = (user_id,)
    async with db_config.conn.execute(sql, params) as cursor:
        rows = [_row_to_model(row) for row in await cursor.fetchall()]
    if rows or not device_id:
        return rows, False

    async with db_config.conn.execute(
        f"SELECT {_COLUMNS} FROM push_subscriptions WHERE user_id = ? AND enabled = 1 AND notif_enabled = 1 "
        "ORDER BY last_seen_at DESC LIMIT 3",
        (user_id,),
    ) as cursor:
        fallback = [_row_to_model(row) for row in await cursor.fetchall()]
    return fallback, bool(fallback)


async def list_enabled(limit: int = 2000) -> list[PushSubscriptionRow]:
    _ensure_conn()
    async with db_config.conn.execute(
        f"SELECT {_COLUMNS} FROM push_subscriptions WHERE enabled = 1 AND notif_enabled = 1 LIMIT ?", (limit,)
    ) as cursor:
        return [_row_to_model(row) for row in await cursor.fetchall()]


async def record_dispatch(row_id: str, consumed: list[dict], pushed: bool, attempts: int = 3) -> bool:
    """派发后从待发提醒中移除已处理的条目；推送成功时更新 last_push_at

    写回基于 reminders_version 比较，发送期间设备重新同步过的列表不会被旧快照覆盖。
    """
    _ensure_conn()
    for _ in range(attempts):
        async with db_config.conn.execute(
            "SELECT pending_reminders, reminders_version FROM push_subscriptions WHERE id = ?", (row_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return False
        current, version = _loads(row[0], []), row[1]
        remaining = [item for item in current if item not in consumed]
        payload = json.dumps(remaining, ensure_ascii=False) if remaining else None
        now_iso = _now_iso()
        sql = "UPDATE push_subscriptions SET pending_reminders = ?, updated_at = ?"
        params: list = [payload, now_iso]
        if pushed:
            sql += ", last_push_at = ?"
            params.append(now_iso)
        sql += " WHERE id = ? AND reminders_version = ?"
        params.extend([row_id, version])
        async with db_config.conn.execute(sql, params) as cursor:
            updated = cursor.rowcount
        await db_config.conn.commit()
        if updated:
            return True
        logger.debug(f"待发提醒已被并发同步，重新读取: id={row_id}")
    logger.warning(f"派发写回多次冲突，放弃本次写回: id={row_id}")
    return False


async def get_subscription(user_id: str, device_id: str) -> PushSubscriptionRow | None:
    _ensure_conn()
    async with db_config.conn.execute(
        f"SELECT {_COLUMNS} FROM push_subscriptions WHERE user_id = ? AND device_id = ?", (user_id, device_id)
    ) as cursor:
        row = await cursor.fetchone()
    return _row_to_model(row) if row else None


__all__ = [
    "upsert_subscription", "disable_subscriptions", "disable_by_ids", "replace_pending_reminders",
    "list_test_targets", "list_enabled", "record_dispatch", "get_subscription",
]
