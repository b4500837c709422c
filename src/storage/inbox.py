"""通知收件箱

每次发送或错过都会留一条记录，应用内的收件箱就是提醒的审计记录(角标不用于未读数)。
按 dedupe_key 去重，新的在前，超过上限的旧记录直接丢弃。
"""

from __future__ import annotations

from ulid import ULID

from datamodel import InboxEntry
from events import E, bus
from logger import logger
from storage.kv import KeyValueStore

__all__ = ["NotificationInbox", "INBOX_KEY"]

INBOX_KEY = "peggy-smart-notif-inbox-v1"


class NotificationInbox:
    def __init__(self, store: KeyValueStore, max_entries: int = 200) -> None:
        self._store = store
        self.max_entries = max_entries

    async def read(self) -> list[InboxEntry]:
        raw = await self._store.get_json(INBOX_KEY, [])
        if not isinstance(raw, list):
            return []
        return [InboxEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    async def _write(self, entries: list[InboxEntry]) -> None:
        await self._store.set_json(INBOX_KEY, [entry.to_dict() for entry in entries[: self.max_entries]])
        bus.emit(E.INBOX_CHANGED, unread=sum(1 for entry in entries if not entry.read))

    async def append(self, entry: InboxEntry) -> bool:
        """返回 False 表示同一 dedupe_key 的记录已经存在"""
        entries = await self.read()
        if entry.dedupe_key and any(e.dedupe_key == entry.dedupe_key for e in entries):
            logger.trace(f"收件箱已存在相同记录, 跳过: {entry.dedupe_key}")
            return False
        if not entry.id:
            entry.id = str(ULID())
        entries.insert(0, entry)
        await self._write(entries)
        logger.debug(f"收件箱新增记录: [{entry.status}] {entry.title}")
        return True

    async def mark_read(self, entry_id: str) -> bool:
        entries = await self.read()
        found = False
        for entry in entries:
            if entry.id == entry_id and not entry.read:
                entry.read = True
                found = True
        if found:
            await self._write(entries)
        return found

    async def mark_all_read(self) -> int:
        entries = await self.read()
        changed = 0
        for entry in entries:
            if not entry.read:
                entry.read = True
                changed += 1
        if changed:
            await self._write(entries)
        return changed

    async def clear(self) -> None:
        await self._store.delete(INBOX_KEY)
        bus.emit(E.INBOX_CHANGED, unread=0)

    async def unread_count(self) -> int:
        return sum(1 for entry in await self.read() if not entry.read)
