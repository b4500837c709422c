"""键值存储

提醒引擎的所有持久化状态(偏好、去重账本、收件箱、追踪数据)都是 "键 -> JSON 文本"。
SqliteKeyValueStore 落到 kv_store 表；MemoryKeyValueStore 用于测试和临时运行。
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import storage.db_config as db_config
from logger import logger

__all__ = ["KeyValueStore", "SqliteKeyValueStore", "MemoryKeyValueStore"]


def _ensure_conn():
    if db_config.conn is None:
        raise RuntimeError("数据库未初始化，请先调用 init_db()")


class KeyValueStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    async def get_json(self, key: str, default: Any = None) -> Any:
        """读取并解析 JSON；不存在或无法解析时返回 default"""
        raw = await self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"键 {key} 的值不是合法 JSON, 按默认值处理")
            return default

    async def set_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value, ensure_ascii=False))


class SqliteKeyValueStore(KeyValueStore):
    async def get(self, key: str) -> str | None:
        _ensure_conn()
        async with db_config.conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        _ensure_conn()
        await db_config.conn.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (key, value),
        )
        await db_config.conn.commit()
        logger.trace(f"写入键值: {key}")

    async def delete(self, key: str) -> None:
        _ensure_conn()
        await db_config.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await db_config.conn.commit()


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
