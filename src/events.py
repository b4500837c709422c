"""事件总线模块，定义了事件总线类 Bus 及事件名集合 E

偏好变更、备份恢复、登录状态变化等跨组件通知都走这里，
核心逻辑同时提供普通函数调用入口(例如 ReminderScheduler.on_preference_changed)，
总线只负责把外部变化转发给这些入口。
"""

from __future__ import annotations

from typing import Awaitable, Callable, Union

from pyee.asyncio import AsyncIOEventEmitter

from logger import logger

Handler = Callable[..., Union[Awaitable[None], None]]


# 事件名集中定义
class E:
    PREFERENCE_CHANGED = "pref.enabled_changed"
    CHANNELS_CHANGED = "pref.channels_changed"
    QUIET_HOURS_CHANGED = "pref.quiet_hours_changed"
    STATE_CHANGED = "state.changed"
    BACKUP_RESTORED = "state.backup_restored"
    SESSION_CHANGED = "cloud.session_changed"
    REMINDER_FIRED = "reminder.fired"
    REMINDER_MISSED = "reminder.missed"
    INBOX_CHANGED = "inbox.changed"
    SCHEDULE_SYNCED = "schedule.synced"


class Bus(AsyncIOEventEmitter):
    def on(self, event: str, f: Handler | None = None):
        """注册事件处理器，既可以当装饰器用，也可以直接传入处理函数"""
        def decorator(handler: Handler) -> Handler:
            logger.debug(f"注册事件处理器: {event} -> {getattr(handler, '__name__', handler)}")
            super(Bus, self).on(event, handler)
            return handler

        if f is not None:
            return decorator(f)
        return decorator


bus = Bus()

__all__ = ["bus", "Bus", "E"]
