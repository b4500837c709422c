"""未来提醒日程

把追踪数据换算成今天和明天的定时提醒列表，同步给推送中继，由服务端在准点推送。
这里的规则与 tick 调度各自独立：日程要覆盖更长的前瞻窗口，不依赖"此刻"的状态。
"""

from __future__ import annotations

import hashlib
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable

from content.repository import ContentRepository
from datamodel import ReminderLevel, ReminderType, TrackedState, UpcomingScheduleItem
from reminders.contexts import dose_key, has_mood_logged_for_date, pending_plans, supplement_times
from reminders.policy import priority_score
from utils import at_clock, parse_clock_minutes, parse_optional_clock_minutes, to_iso_date, to_utc_iso

__all__ = ["build_upcoming_schedule", "schedule_hash", "PLAN_LEAD_MINUTES", "WORK_REMINDER_HOURS"]

WORK_REMINDER_HOURS = ((11, ReminderLevel.NUDGE), (17, ReminderLevel.URGENT))
PLAN_LEAD_MINUTES = 15


def _supp_level(minute_of_day: int) -> ReminderLevel:
    hour = minute_of_day // 60
    if hour >= 20:
        return ReminderLevel.URGENT
    if hour >= 14:
        return ReminderLevel.NUDGE
    return ReminderLevel.GENTLE


def _mood_level(window_id: str) -> ReminderLevel:
    if window_id == "night":
        return ReminderLevel.URGENT
    if window_id == "late_afternoon":
        return ReminderLevel.NUDGE
    return ReminderLevel.GENTLE


def _item(
    reminder_type: ReminderType, level: ReminderLevel, title: str, body: str, tag: str, moment: datetime
) -> tuple[datetime, UpcomingScheduleItem]:
    return moment, UpcomingScheduleItem(
        type=reminder_type,
        level=level,
        notification_title=title,
        notification_body=body,
        tag=tag,
        fire_at=to_utc_iso(moment),
        priority_score=priority_score(reminder_type, level),
    )


def _supplement_items(state: TrackedState, day: date, now: datetime, content: ContentRepository):
    day_start = at_clock(day, 0, now.tzinfo)
    grouped: dict[int, list[str]] = defaultdict(list)
    for supp_id, times in supplement_times(state.supp_schedule, content.supplements):
        for idx, clock in enumerate(times):
            if state.daily_supp.get(dose_key(supp_id, idx, day_start)):
                continue
            name = content.supplement_name(supp_id)
            minute = parse_clock_minutes(clock)
            if name not in grouped[minute]:
                grouped[minute].append(name)

    iso = to_iso_date(day)
    for minute, names in sorted(grouped.items()):
        hhmm = f"{minute // 60:02d}{minute % 60:02d}"
        yield _item(
            ReminderType.SUPP,
            _supp_level(minute),
            "Peggy reminder: Supplements",
            f"Time for {', '.join(names)}.",
            f"supp-{iso}-{hhmm}",
            at_clock(day, minute, now.tzinfo),
        )


def _work_items(state: TrackedState, day: date, now: datetime):
    iso = to_iso_date(day)
    if day.weekday() >= 5 or state.attendance.get(iso):
        return
    for hour, level in WORK_REMINDER_HOURS:
        yield _item(
            ReminderType.WORK,
            level,
            "Peggy reminder: Attendance",
            "Please log today attendance before day rollover.",
            f"work-{iso}-{hour:02d}",
            at_clock(day, hour * 60, now.tzinfo),
        )


def _mood_items(state: TrackedState, day: date, now: datetime, content: ContentRepository):
    iso = to_iso_date(day)
    if has_mood_logged_for_date(state.moods, iso, now):
        return
    for window in content.mood_windows:
        yield _item(
            ReminderType.MOOD,
            _mood_level(window.id),
            "Peggy check-in: Mood",
            f"No mood log yet for today. Quick check-in window: {window.label}.",
            f"mood-{iso}-{window.id}",
            at_clock(day, window.minute_of_day, now.tzinfo),
        )


def _plan_items(state: TrackedState, day: date, now: datetime):
    iso = to_iso_date(day)
    for plan in pending_plans(state.planner.get(iso)):
        minute = parse_optional_clock_minutes(plan.get("time"))
        plan_id = str(plan.get("id") or "").strip()
        title = str(plan.get("title") or "").strip()
        if minute is None or not plan_id or not title:
            continue
        time = f"{minute // 60:02d}:{minute % 60:02d}"
        yield _item(
            ReminderType.PLAN,
            ReminderLevel.NUDGE,
            "Peggy reminder: Planner",
            f"{title} at {time}.",
            f"plan-{iso}-{plan_id}",
            at_clock(day, minute, now.tzinfo) - timedelta(minutes=PLAN_LEAD_MINUTES),
        )


def build_upcoming_schedule(
    state: TrackedState,
    now: datetime,
    content: ContentRepository,
    lookahead_days: int = 2,
    stale_hours: int = 2,
    max_items: int = 12,
) -> list[UpcomingScheduleItem]:
    floor = now - timedelta(hours=stale_hours)
    today = now.date()

    timed: list[tuple[datetime, UpcomingScheduleItem]] = []
    for offset in range(max(1, lookahead_days)):
        day = today + timedelta(days=offset)
        timed.extend(_supplement_items(state, day, now, content))
        timed.extend(_work_items(state, day, now))
        timed.extend(_mood_items(state, day, now, content))
        timed.extend(_plan_items(state, day, now))

    fresh = [pair for pair in timed if pair[0] >= floor]
    fresh.sort(key=lambda pair: (pair[0], -pair[1].priority_score, pair[1].tag))
    return [item for _, item in fresh[:max_items]]


def schedule_hash(items: Iterable[UpcomingScheduleItem]) -> str:
    lines = "\n".join(f"{i.type.value}|{i.tag}|{i.fire_at}|{i.notification_title}" for i in items)
    return hashlib.sha256(lines.encode("utf-8")).hexdigest()
