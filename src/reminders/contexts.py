"""提醒上下文计算

四个互相独立的纯函数：补剂、出勤、心情、计划。
输入是追踪数据的快照和当前本地时间，输出当前时刻的归一化上下文。
不修改输入，缺失或格式错误的记录一律按空处理，一条坏数据不能拖垮整个 tick。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from datamodel import (
    MoodContext,
    MoodWindow,
    PlannerCandidate,
    PlannerContext,
    Supplement,
    SupplementContext,
    WorkContext,
)
from utils import (
    iso_day_diff,
    minutes_since_midnight,
    parse_clock_minutes,
    parse_iso_date,
    parse_optional_clock_minutes,
    parse_timestamp,
    to_dose_date_key,
    to_iso_date,
)

__all__ = [
    "supplement_times", "dose_key",
    "get_supplement_context", "get_work_context", "get_mood_context", "get_planner_context",
    "has_mood_logged_for_date", "sort_planner_items", "pending_plans",
]


def _as_mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def dose_key(supp_id: str, idx: int, now: datetime) -> str:
    return f"{supp_id}-{idx}-{to_dose_date_key(now)}"


def supplement_times(
    supp_schedule: Mapping[str, Any] | None,
    catalog: Sequence[Supplement] = (),
) -> list[tuple[str, list[str]]]:
    """[(补剂 id, 服药时间列表)]，目录里的补剂在前，日程里多出的 id 在后

    日程里的 times 非空时覆盖目录默认时间；enabled 为 False 的条目跳过。
    """
    schedule = _as_mapping(supp_schedule)
    out: list[tuple[str, list[str]]] = []
    seen: set[str] = set()

    def _append(supp_id: str, defaults: Iterable[str]) -> None:
        entry = _as_mapping(schedule.get(supp_id))
        if entry.get("enabled") is False:
            return
        times = [str(t) for t in _as_list(entry.get("times")) if t]
        out.append((supp_id, times or list(defaults)))

    for supp in catalog:
        seen.add(supp.id)
        _append(supp.id, supp.default_times)
    for supp_id in schedule:
        if supp_id in seen:
            continue
        seen.add(supp_id)
        _append(str(supp_id), ())
    return out


def get_supplement_context(
    daily_supp: Mapping[str, Any] | None,
    supp_schedule: Mapping[str, Any] | None,
    now: datetime,
    catalog: Sequence[Supplement] = (),
) -> SupplementContext:
    taken_flags = _as_mapping(daily_supp)
    now_minutes = minutes_since_midnight(now)

    total = taken = remaining = overdue = 0
    next_dose: int | None = None

    for supp_id, times in supplement_times(supp_schedule, catalog):
        for idx, clock in enumerate(times):
            total += 1
            if taken_flags.get(dose_key(supp_id, idx, now)):
                taken += 1
                continue
            remaining += 1
            due = parse_clock_minutes(clock)
            if due <= now_minutes:
                overdue += 1
            else:
                wait = due - now_minutes
                next_dose = wait if next_dose is None else min(next_dose, wait)

    return SupplementContext(
        date_key=to_iso_date(now),
        total_doses=total,
        taken_doses=taken,
        remaining_doses=remaining,
        overdue_doses=overdue,
        next_dose_minutes=next_dose,
    )


def get_work_context(attendance: Mapping[str, Any] | None, now: datetime) -> WorkContext:
    date_key = to_iso_date(now)
    is_weekday = now.weekday() < 5
    has_attendance = bool(_as_mapping(attendance).get(date_key))
    return WorkContext(
        date_key=date_key,
        hour=now.hour,
        is_weekday=is_weekday,
        has_attendance=has_attendance,
        needs_reminder=is_weekday and not has_attendance,
    )


def has_mood_logged_for_date(moods: Any, date_key: str, now: datetime | None = None) -> bool:
    local_tz = now.tzinfo if now is not None else None
    for entry in _as_list(moods):
        if not isinstance(entry, Mapping):
            continue
        parsed = parse_timestamp(entry.get("date"), local_tz)
        if parsed is not None and to_iso_date(parsed) == date_key:
            return True
    return False


def get_mood_context(moods: Any, now: datetime, windows: Sequence[MoodWindow]) -> MoodContext:
    date_key = to_iso_date(now)
    now_minutes = minutes_since_midnight(now)
    has_mood = has_mood_logged_for_date(moods, date_key, now)

    active: MoodWindow | None = None
    for window in sorted(windows, key=lambda w: w.minute_of_day):
        if now_minutes >= window.minute_of_day:
            active = window

    return MoodContext(
        date_key=date_key,
        now_minutes=now_minutes,
        has_mood_today=has_mood,
        needs_reminder=not has_mood and active is not None,
        active_window=active,
    )


def _plan_sort_key(item: Mapping) -> tuple:
    minutes = parse_optional_clock_minutes(item.get("time"))
    title = str(item.get("title") or "").casefold()
    # 有时间的在前，按时间升序；没时间的在后；再按标题
    return (minutes is None, minutes or 0, title)


def sort_planner_items(items: Any) -> list[Mapping]:
    return sorted((p for p in _as_list(items) if isinstance(p, Mapping)), key=_plan_sort_key)


def pending_plans(items: Any) -> list[Mapping]:
    return sort_planner_items([p for p in _as_list(items) if isinstance(p, Mapping) and not p.get("done")])


def get_planner_context(planner: Mapping[str, Any] | None, now: datetime) -> PlannerContext:
    date_key = to_iso_date(now)
    now_minutes = minutes_since_midnight(now)
    buckets = _as_mapping(planner)

    pending_today = pending_plans(buckets.get(date_key))

    overdue: list[tuple[str, list[Mapping]]] = []
    for iso, plans in buckets.items():
        # 只认合法的 ISO 日期键，且严格早于今天
        if parse_iso_date(iso) is None or str(iso) >= date_key:
            continue
        pending = pending_plans(plans)
        if pending:
            overdue.append((str(iso), pending))
    # 最早的逾期日期优先
    overdue.sort(key=lambda bucket: bucket[0])
    overdue_count = sum(len(plans) for _, plans in overdue)

    if overdue:
        candidate_date, candidate_plan = overdue[0][0], overdue[0][1][0]
    elif pending_today:
        candidate_date, candidate_plan = date_key, pending_today[0]
    else:
        return PlannerContext(
            date_key=date_key,
            now_minutes=now_minutes,
            pending_today_count=len(pending_today),
            pending_overdue_count=overdue_count,
        )

    time_minutes = parse_optional_clock_minutes(candidate_plan.get("time"))
    is_overdue_day = candidate_date < date_key
    candidate = PlannerCandidate(
        date_iso=candidate_date,
        plan_id=str(candidate_plan.get("id") or "").strip(),
        title=str(candidate_plan.get("title") or "").strip(),
        time=str(candidate_plan.get("time") or "").strip(),
        minutes_until=None if time_minutes is None else time_minutes - now_minutes,
        is_overdue_day=is_overdue_day,
        overdue_days=iso_day_diff(candidate_date, date_key) if is_overdue_day else 0,
    )
    return PlannerContext(
        date_key=date_key,
        now_minutes=now_minutes,
        pending_today_count=len(pending_today),
        pending_overdue_count=overdue_count,
        candidate=candidate,
    )
