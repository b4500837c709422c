"""未来提醒日程的差量同步

只有在日程内容变化、存在云端会话、距上次同步至少 min_interval 秒、且没有同步在进行时才推送。
推送在后台任务里跑，不阻塞当前 tick；只有成功后才记下已同步的哈希，失败由下一次 tick 自动重试。
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Sequence

from datamodel import CloudSession, UpcomingScheduleItem
from events import E, bus
from logger import logger
from metrics import runtime_metrics
from reminders.schedule import schedule_hash
from sync.cloud_client import CloudClient

__all__ = ["ScheduleSync"]


class ScheduleSync:
    def __init__(
        self,
        client: CloudClient,
        device_id_provider: Callable[[], Awaitable[str]],
        min_interval_seconds: int = 120,
    ) -> None:
        self._client = client
        self._device_id_provider = device_id_provider
        self.min_interval_seconds = min_interval_seconds
        self.busy = False
        self.last_synced_hash: str | None = None
        self.last_attempt_at: datetime | None = None
        self._task: asyncio.Task | None = None

    def _should_sync(self, digest: str, now: datetime, session: CloudSession | None) -> str | None:
        """返回跳过原因；None 表示可以同步"""
        if self.busy:
            return "busy"
        if session is None or not session.access_token or not session.user_id:
            return "no-session"
        if not self._client.is_configured():
            return "cloud-not-configured"
        if digest == self.last_synced_hash:
            return "unchanged"
        if self.last_attempt_at is not None:
            elapsed = (now - self.last_attempt_at).total_seconds()
            if elapsed < self.min_interval_seconds:
                return "rate-limited"
        return None

    def maybe_sync(self, items: Sequence[UpcomingScheduleItem], now: datetime, session: CloudSession | None) -> bool:
        """满足条件时启动后台同步，返回是否启动"""
        digest = schedule_hash(items)
        reason = self._should_sync(digest, now, session)
        if reason:
            logger.trace(f"跳过日程同步: {reason}")
            return False

        self.busy = True
        self.last_attempt_at = now
        self._task = asyncio.create_task(self._push(list(items), digest, session))
        return True

    async def _push(self, items: list[UpcomingScheduleItem], digest: str, session: CloudSession) -> None:
        try:
            device_id = await self._device_id_provider()
            result = await self._client.sync_reminders(device_id, items, session)
            self.last_synced_hash = digest
            runtime_metrics.record_sync()
            logger.debug(f"未来提醒已同步: {len(items)} 条, 中继返回 {result}")
            bus.emit(E.SCHEDULE_SYNCED, count=len(items), digest=digest)
        except Exception as e:
            runtime_metrics.record_sync(error=True)
            logger.warning(f"未来提醒同步失败, 下次 tick 重试: {e}")
        finally:
            self.busy = False

    async def wait(self) -> None:
        """等待进行中的同步结束"""
        if self._task is not None:
            await self._task
