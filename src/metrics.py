"""
简单的运行时指标收集类，统计 tick 次数、通知发送/错过、云端同步、推送投递等信息，方便后续扩展和监控。
"""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class RuntimeMetrics:
    tick_count: int = 0
    fired_count: int = 0
    ambient_fired_count: int = 0
    missed_count: int = 0
    fire_error_count: int = 0
    sync_ok_count: int = 0
    sync_error_count: int = 0
    push_sent_count: int = 0
    push_stale_count: int = 0
    last_tick_at: float | None = None

    def record_tick(self) -> None:
        self.tick_count += 1
        self.last_tick_at = time.time()

    def record_fired(self, ambient: bool = False) -> None:
        if ambient:
            self.ambient_fired_count += 1
        else:
            self.fired_count += 1

    def record_missed(self) -> None:
        self.missed_count += 1

    def record_fire_error(self) -> None:
        self.fire_error_count += 1

    def record_sync(self, error: bool = False) -> None:
        if error:
            self.sync_error_count += 1
        else:
            self.sync_ok_count += 1

    def record_push(self, sent: int = 0, stale: int = 0) -> None:
        self.push_sent_count += max(0, sent)
        self.push_stale_count += max(0, stale)

    def snapshot(self) -> dict:
        return {
            "tick_count": self.tick_count,
            "fired_count": self.fired_count,
            "ambient_fired_count": self.ambient_fired_count,
            "missed_count": self.missed_count,
            "fire_error_count": self.fire_error_count,
            "sync_ok_count": self.sync_ok_count,
            "sync_error_count": self.sync_error_count,
            "push_sent_count": self.push_sent_count,
            "push_stale_count": self.push_stale_count,
            "last_tick_at_epoch": self.last_tick_at,
            "last_tick_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_tick_at))
                if self.last_tick_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()


__all__ = ["RuntimeMetrics", "runtime_metrics"]
