"""通知去重账本

持久化的 slot_key -> 发送时间(epoch 毫秒)。每次读取都先裁掉保留窗口外的记录，
所以过期记录即使还躺在存储里，也不会被 has_sent 看到。
并发读写不加事务，后写覆盖即可：同一个槽位键只会被写入同一个含义。
"""

from __future__ import annotations

from datetime import datetime, timedelta

from logger import logger
from storage.kv import KeyValueStore
from utils import epoch_ms

__all__ = ["NotificationLedger", "LEDGER_KEY"]

LEDGER_KEY = "peggy-smart-notifs-log-v1"


class NotificationLedger:
    def __init__(self, store: KeyValueStore, retention_days: int = 5) -> None:
        self._store = store
        self.retention_days = retention_days

    def _prune(self, entries: dict, now: datetime) -> dict[str, int]:
        cutoff = epoch_ms(now - timedelta(days=self.retention_days))
        kept: dict[str, int] = {}
        for slot_key, sent_at in entries.items():
            try:
                sent_ms = int(sent_at)
            except (TypeError, ValueError):
                continue
            if sent_ms >= cutoff:
                kept[str(slot_key)] = sent_ms
        return kept

    async def read(self, now: datetime) -> dict[str, int]:
        """裁剪后的账本；无法解析时当作空账本"""
        raw = await self._store.get_json(LEDGER_KEY, {})
        if not isinstance(raw, dict):
            return {}
        return self._prune(raw, now)

    async def _write(self, entries: dict[str, int]) -> None:
        try:
            await self._store.set_json(LEDGER_KEY, entries)
        except Exception as e:
            logger.warning(f"写入通知账本失败: {e}")

    async def has_sent(self, slot_key: str, now: datetime) -> bool:
        if not slot_key:
            return False
        entries = await self.read(now)
        return slot_key in entries

    async def mark_sent(self, slot_key: str, now: datetime) -> None:
        if not slot_key:
            return
        entries = await self.read(now)
        entries[slot_key] = epoch_ms(now)
        await self._write(entries)
        logger.trace(f"槽位已记为已发送: {slot_key}")
