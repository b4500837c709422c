"""追踪数据(补剂打卡、服药日程、出勤、心情、计划)的读取与写回

数据由应用其他部分维护，这里只按键读出快照；类型不对的值一律按空处理。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ulid import ULID

from datamodel import QuickMoodAction, TrackedState
from events import E, bus
from logger import logger
from storage.kv import KeyValueStore
from utils import to_utc_iso

__all__ = ["TrackedStateStore", "STATE_KEYS"]

STATE_KEYS = {
    "daily_supp": "baby-prep-daily",
    "supp_schedule": "baby-prep-supp-schedule",
    "attendance": "baby-prep-attendance",
    "moods": "baby-prep-moods",
    "planner": "baby-prep-planner",
}


class TrackedStateStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def _read_part(self, field: str) -> Any:
        expected = list if field == "moods" else dict
        value = await self._store.get_json(STATE_KEYS[field], expected())
        if not isinstance(value, expected):
            logger.warning(f"追踪数据 {STATE_KEYS[field]} 类型异常, 按空处理")
            return expected()
        return value

    async def load(self) -> TrackedState:
        return TrackedState(**{field: await self._read_part(field) for field in STATE_KEYS})

    async def update(self, **parts: Any) -> None:
        unknown = set(parts) - set(STATE_KEYS)
        if unknown:
            raise ValueError(f"未知的追踪数据字段: {', '.join(sorted(unknown))}")
        for field, value in parts.items():
            await self._store.set_json(STATE_KEYS[field], value)
        bus.emit(E.STATE_CHANGED, fields=sorted(parts))

    async def log_quick_mood(self, action: QuickMoodAction, now: datetime) -> dict[str, Any]:
        """通知上的快捷心情按钮：直接记一条心情，最新的在前"""
        entry = {
            "id": str(ULID()),
            "date": to_utc_iso(now),
            "mood": action.code,
            "emoji": action.emoji,
            "energy": None,
            "cravings": "",
            "notes": "",
        }
        moods = await self._read_part("moods")
        await self.update(moods=[entry, *moods])
        logger.info(f"已通过快捷按钮记录心情: {action.code}")
        return entry
