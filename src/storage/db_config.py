import aiosqlite
import os


conn: aiosqlite.Connection | None = None


_SCHEMA_V1 = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS push_subscriptions (
    id                   TEXT PRIMARY KEY,
    user_id              TEXT NOT NULL,
    device_id            TEXT NOT NULL,
    endpoint             TEXT NOT NULL,
    p256dh               TEXT NOT NULL,
    auth                 TEXT NOT NULL,
    subscription         TEXT NOT NULL,
    enabled              INTEGER NOT NULL DEFAULT 1,
    notif_enabled        INTEGER NOT NULL DEFAULT 1,
    user_agent           TEXT,
    platform             TEXT,
    app_base_url         TEXT,
    pending_reminders    TEXT,
    reminders_synced_at  TEXT,
    last_push_at         TEXT,
    last_seen_at         TEXT,
    created_at           TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at           TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, device_id)
);

CREATE INDEX IF NOT EXISTS idx_push_subscriptions_enabled ON push_subscriptions (enabled, notif_enabled);
"""


async def init_db(db_path: str) -> None:
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)
    global conn
    conn = await aiosqlite.connect(db_path)

    async with conn.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        user_version = row[0]

    if user_version == 0:
        await conn.executescript(_SCHEMA_V1)
        await conn.execute("PRAGMA user_version = 1")

    if user_version < 2:
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_push_subscriptions_endpoint ON push_subscriptions (user_id, endpoint)"
        )
        await conn.execute("PRAGMA user_version = 2")

    if user_version < 3:
        # 待发提醒的版本号，派发写回时做乐观锁
        await conn.execute(
            "ALTER TABLE push_subscriptions ADD COLUMN reminders_version INTEGER NOT NULL DEFAULT 0"
        )
        await conn.execute("PRAGMA user_version = 3")

    # 数据库升级逻辑可以在这里继续添加
    await conn.commit()


async def close_db() -> None:
    global conn
    if conn is not None:
        await conn.close()
        conn = None


__all__ = ["conn", "init_db", "close_db"]
