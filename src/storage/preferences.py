"""通知偏好：总开关、分类频道、免打扰时段"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from datamodel import NotificationPreferences, QuietHours
from events import E, bus
from logger import logger
from storage.kv import KeyValueStore
from utils import minutes_since_midnight, normalize_clock_value, parse_clock_minutes

__all__ = [
    "PreferenceStore", "CHANNEL_KEYS", "DEFAULT_QUIET_HOURS",
    "sanitize_channels", "sanitize_quiet_hours", "is_now_in_quiet_hours",
    "format_quiet_hours_label", "is_channel_enabled",
]

ENABLED_KEY = "peggy-smart-notifs-enabled"
QUIET_HOURS_KEY = "peggy-smart-notif-quiet-hours"
CHANNELS_KEY = "peggy-smart-notif-channels"

# 旧版本遗留的键，读取时顺手删掉；旧的总开关值不继承，新设备必须手动开启
DEPRECATED_ENABLED_KEY = "baby-prep-smart-notifs-enabled"
DEPRECATED_QUIET_HOURS_KEY = "baby-prep-smart-notif-quiet-hours"
DEPRECATED_CHANNELS_KEY = "baby-prep-smart-notif-channels"

CHANNEL_KEYS = ("reminders", "calendar", "dailyTip", "names")
DEFAULT_QUIET_HOURS = QuietHours()


def sanitize_channels(value: Any) -> dict[str, bool]:
    """只保留已知频道；除了显式 False，其余都视为开启"""
    source = value if isinstance(value, Mapping) else {}
    return {key: source.get(key) is not False for key in CHANNEL_KEYS}


def sanitize_quiet_hours(value: Any) -> QuietHours:
    if isinstance(value, QuietHours):
        source = {"enabled": value.enabled, "start": value.start, "end": value.end}
    else:
        source = value if isinstance(value, Mapping) else {}
    return QuietHours(
        enabled=source.get("enabled") is not False,
        start=normalize_clock_value(source.get("start"), DEFAULT_QUIET_HOURS.start),
        end=normalize_clock_value(source.get("end"), DEFAULT_QUIET_HOURS.end),
    )


def is_now_in_quiet_hours(now: datetime, quiet_hours: Any) -> bool:
    """支持跨午夜的时段；开始等于结束视为不设免打扰"""
    safe = sanitize_quiet_hours(quiet_hours)
    if not safe.enabled:
        return False
    start, end = parse_clock_minutes(safe.start), parse_clock_minutes(safe.end)
    current = minutes_since_midnight(now)
    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


def format_quiet_hours_label(quiet_hours: Any) -> str:
    safe = sanitize_quiet_hours(quiet_hours)
    return f"{safe.start} - {safe.end}" if safe.enabled else "Off"


def is_channel_enabled(channel: str, channels: Any) -> bool:
    key = str(channel or "").strip()
    return sanitize_channels(channels).get(key, False)


class PreferenceStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def _drop_deprecated(self, key: str) -> None:
        if await self._store.get(key) is not None:
            await self._store.delete(key)
            logger.debug(f"已移除旧版偏好键: {key}")

    async def read_enabled(self) -> bool:
        await self._drop_deprecated(DEPRECATED_ENABLED_KEY)
        value = await self._store.get(ENABLED_KEY)
        return value == "1"

    async def write_enabled(self, enabled: bool) -> None:
        await self._store.set(ENABLED_KEY, "1" if enabled else "0")
        await self._store.delete(DEPRECATED_ENABLED_KEY)
        logger.info(f"智能提醒已{'开启' if enabled else '关闭'}")
        bus.emit(E.PREFERENCE_CHANGED, enabled=bool(enabled))

    async def read_channels(self) -> dict[str, bool]:
        await self._drop_deprecated(DEPRECATED_CHANNELS_KEY)
        return sanitize_channels(await self._store.get_json(CHANNELS_KEY, {}))

    async def write_channels(self, channels: Any) -> dict[str, bool]:
        safe = sanitize_channels(channels)
        await self._store.set_json(CHANNELS_KEY, safe)
        await self._store.delete(DEPRECATED_CHANNELS_KEY)
        bus.emit(E.CHANNELS_CHANGED, channels=safe)
        return safe

    async def read_quiet_hours(self) -> QuietHours:
        await self._drop_deprecated(DEPRECATED_QUIET_HOURS_KEY)
        raw = await self._store.get_json(QUIET_HOURS_KEY)
        if raw is None:
            return DEFAULT_QUIET_HOURS
        return sanitize_quiet_hours(raw)

    async def write_quiet_hours(self, quiet_hours: Any) -> QuietHours:
        safe = sanitize_quiet_hours(quiet_hours)
        await self._store.set_json(QUIET_HOURS_KEY, {"enabled": safe.enabled, "start": safe.start, "end": safe.end})
        await self._store.delete(DEPRECATED_QUIET_HOURS_KEY)
        bus.emit(E.QUIET_HOURS_CHANGED, quiet_hours=safe)
        return safe

    async def snapshot(self) -> NotificationPreferences:
        return NotificationPreferences(
            enabled=await self.read_enabled(),
            channels=await self.read_channels(),
            quiet_hours=await self.read_quiet_hours(),
        )
