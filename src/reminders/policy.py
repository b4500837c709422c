"""提醒等级与重发间隔

每类提醒一张独立的决策表，按上下文类型分派(functools.singledispatch)。
没有注册的上下文类型直接抛 NotImplementedError，新增类别时漏写分支会立刻暴露。

优先级分数是手工调的常量，当作配置处理，可以用 PRIORITY_SCORES_JSON 覆盖。
"""

from __future__ import annotations

from datetime import datetime
from functools import singledispatch
from typing import Mapping

from datamodel import (
    MoodContext,
    PlannerContext,
    ReminderLevel,
    ReminderType,
    SupplementContext,
    WorkContext,
)

__all__ = ["resolve_level", "resolve_interval", "priority_score", "DEFAULT_PRIORITY_SCORES", "configure_priority_scores"]

GENTLE, NUDGE, URGENT = ReminderLevel.GENTLE, ReminderLevel.NUDGE, ReminderLevel.URGENT

DEFAULT_PRIORITY_SCORES: dict[str, dict[str, float]] = {
    ReminderType.SUPP.value: {"urgent": 5.0, "nudge": 3.6, "gentle": 2.4},
    ReminderType.MOOD.value: {"urgent": 4.6, "nudge": 3.7, "gentle": 2.7},
    ReminderType.WORK.value: {"urgent": 4.4, "nudge": 3.1, "gentle": 1.9},
    ReminderType.PLAN.value: {"urgent": 3.9, "nudge": 2.8, "gentle": 1.6},
    # 每日小贴士按语气取分
    ReminderType.TIP.value: {"serious": 1.6, "witty": 1.2},
    ReminderType.NAME.value: {"gentle": 1.0},
}

_priority_scores: dict[str, dict[str, float]] = {k: dict(v) for k, v in DEFAULT_PRIORITY_SCORES.items()}


def configure_priority_scores(overrides: Mapping[str, Mapping[str, float]] | None) -> None:
    """在默认表上叠加覆盖值；传 None 恢复默认"""
    global _priority_scores
    merged = {k: dict(v) for k, v in DEFAULT_PRIORITY_SCORES.items()}
    for reminder_type, levels in (overrides or {}).items():
        merged.setdefault(str(reminder_type), {}).update({str(k): float(v) for k, v in levels.items()})
    _priority_scores = merged


def priority_score(reminder_type: ReminderType | str, level: ReminderLevel | str) -> float:
    type_key = reminder_type.value if isinstance(reminder_type, ReminderType) else str(reminder_type)
    level_key = level.value if isinstance(level, ReminderLevel) else str(level)
    return _priority_scores.get(type_key, {}).get(level_key, 0.0)


# ----------------- 等级 ----------------
@singledispatch
def resolve_level(ctx, now: datetime) -> ReminderLevel:
    raise NotImplementedError(f"未知的提醒上下文类型: {type(ctx).__name__}")


@resolve_level.register
def _(ctx: SupplementContext, now: datetime) -> ReminderLevel:
    hour = now.hour
    if ctx.overdue_doses >= 2:
        return URGENT
    if ctx.overdue_doses >= 1 and hour >= 16:
        return URGENT
    if ctx.overdue_doses >= 1:
        return NUDGE
    if ctx.remaining_doses >= 3 and hour >= 14:
        return NUDGE
    if ctx.remaining_doses >= 1 and hour >= 20:
        return URGENT
    return GENTLE


@resolve_level.register
def _(ctx: WorkContext, now: datetime) -> ReminderLevel:
    if ctx.hour >= 17:
        return URGENT
    if ctx.hour >= 11:
        return NUDGE
    return GENTLE


@resolve_level.register
def _(ctx: MoodContext, now: datetime) -> ReminderLevel:
    window_id = ctx.active_window.id if ctx.active_window else None
    if window_id == "night":
        return URGENT
    if window_id == "late_afternoon":
        return NUDGE
    return GENTLE


@resolve_level.register
def _(ctx: PlannerContext, now: datetime) -> ReminderLevel:
    candidate = ctx.candidate
    if candidate is None:
        return GENTLE
    if candidate.is_overdue_day:
        return URGENT
    if candidate.minutes_until is not None and candidate.minutes_until <= 0:
        return URGENT if now.hour >= 18 else NUDGE
    if ctx.pending_today_count >= 3 and now.hour >= 12:
        return NUDGE
    if ctx.pending_today_count >= 1 and now.hour >= 17:
        return NUDGE
    return GENTLE


# ----------------- 间隔(分钟) ----------------
@singledispatch
def resolve_interval(ctx, now: datetime, level: ReminderLevel) -> int:
    raise NotImplementedError(f"未知的提醒上下文类型: {type(ctx).__name__}")


@resolve_interval.register
def _(ctx: SupplementContext, now: datetime, level: ReminderLevel) -> int:
    if level == URGENT:
        if ctx.overdue_doses >= 3:
            return 6
        if ctx.overdue_doses >= 2:
            return 8
        return 10
    if level == NUDGE:
        if ctx.overdue_doses >= 1:
            return 12
        if ctx.remaining_doses >= 4:
            return 14
        return 18
    if now.hour >= 18 and ctx.remaining_doses >= 1:
        return 20
    return 28


@resolve_interval.register
def _(ctx: WorkContext, now: datetime, level: ReminderLevel) -> int:
    if level == URGENT:
        return 8 if ctx.hour >= 20 else 12
    if level == NUDGE:
        return 18 if ctx.hour >= 15 else 24
    return 40


@resolve_interval.register
def _(ctx: MoodContext, now: datetime, level: ReminderLevel) -> int:
    # 心情提醒靠窗口 id 去重，间隔只是名义值
    return 1


@resolve_interval.register
def _(ctx: PlannerContext, now: datetime, level: ReminderLevel) -> int:
    if level == URGENT:
        return 18
    if level == NUDGE:
        return 30
    return 45
