"""提醒候选构建

上下文 + 当前时间 -> 完整的 ReminderCandidate(标题、正文、槽位键、优先级)。
文案全部用种子挑选，种子里带时间桶，同一个提醒时机内内容稳定。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from content.repository import DEFAULT_STYLE, ContentRepository
from content.selector import hash_string, pick_by_seed, pick_unique_by_seed, time_bucket, weighted_pick
from datamodel import (
    BabyName,
    DailyTip,
    MoodContext,
    NameSpotlight,
    PlannerContext,
    ReminderCandidate,
    ReminderLevel,
    ReminderType,
    SupplementContext,
    WorkContext,
)
from reminders.policy import priority_score, resolve_interval, resolve_level
from utils import epoch_ms, parse_iso_date, to_iso_date

__all__ = [
    "build_supplement_reminder", "build_work_reminder", "build_mood_reminder", "build_planner_reminder",
    "build_daily_tip", "build_daily_tip_reminder", "build_name_spotlight", "build_companion_subtitle",
    "resolve_quick_mood_emoji", "build_supplement_subtitle",
]

TIP_INTERVAL_MINUTES = 180
TIP_ROTATION_MINUTES = 240
NAME_ROTATION_MINUTES = 240
WITTY_TIP_PERCENT = 18


def _pick_style(content: ContentRepository, seed_root: str) -> str:
    return weighted_pick(content.style_weights, f"{seed_root}|style") or DEFAULT_STYLE


def _pick(pool: Mapping[str, Sequence[str]], level: ReminderLevel, seed: str) -> str:
    return pick_by_seed(pool.get(level.value) or pool.get(ReminderLevel.GENTLE.value), seed) or ""


def build_supplement_subtitle(ctx: SupplementContext, style_line: str, push_line: str, joke_line: str) -> str:
    pieces = [
        f"{ctx.taken_doses}/{ctx.total_doses} doses done.",
        f"{ctx.remaining_doses} left today.",
        f"{ctx.overdue_doses} overdue." if ctx.overdue_doses > 0 else "Still recoverable.",
        f"Next window in ~{ctx.next_dose_minutes} min." if ctx.next_dose_minutes and ctx.overdue_doses == 0 else "",
        style_line,
        push_line,
        joke_line,
    ]
    return " ".join(piece for piece in pieces if piece)


def build_supplement_reminder(
    ctx: SupplementContext, now: datetime, content: ContentRepository, seed_salt: str = "home"
) -> ReminderCandidate:
    level = resolve_level(ctx, now)
    interval = resolve_interval(ctx, now, level)
    slot = time_bucket(now, interval)
    seed_root = f"{seed_salt}|supp|{ctx.date_key}|{ctx.remaining_doses}|{ctx.overdue_doses}|{slot}|{level.value}"

    style = _pick_style(content, seed_root)
    style_pool = content.style_pool(content.supp_styles, style)
    subtitle = build_supplement_subtitle(
        ctx,
        style_line=_pick(style_pool, level, f"{seed_root}|line"),
        push_line=_pick(content.supp_push_lines, level, f"{seed_root}|push"),
        joke_line=_pick(content.supp_jokes, level, f"{seed_root}|joke"),
    )
    overdue_note = f", {ctx.overdue_doses} overdue" if ctx.overdue_doses else ""

    return ReminderCandidate(
        type=ReminderType.SUPP,
        level=level,
        interval_minutes=interval,
        slot_key=f"{ctx.date_key}|supp|{interval}|{slot}",
        priority_score=priority_score(ReminderType.SUPP, level),
        title=_pick(content.supp_titles, level, f"{seed_root}|title"),
        subtitle=subtitle,
        notification_title="Peggy reminder: Supplements",
        notification_body=f"{ctx.remaining_doses} doses left today{overdue_note}.",
    )


def build_work_reminder(
    ctx: WorkContext, now: datetime, content: ContentRepository, seed_salt: str = "home"
) -> ReminderCandidate:
    level = resolve_level(ctx, now)
    interval = resolve_interval(ctx, now, level)
    slot = time_bucket(now, interval)
    seed_root = f"{seed_salt}|work|{ctx.date_key}|{ctx.hour}|{slot}|{level.value}"

    style = _pick_style(content, seed_root)
    style_line = _pick(content.style_pool(content.work_styles, style), level, f"{seed_root}|line")
    joke_line = _pick(content.work_jokes, level, f"{seed_root}|joke")

    return ReminderCandidate(
        type=ReminderType.WORK,
        level=level,
        interval_minutes=interval,
        slot_key=f"{ctx.date_key}|work|{interval}|{slot}",
        priority_score=priority_score(ReminderType.WORK, level),
        title=_pick(content.work_titles, level, f"{seed_root}|title"),
        subtitle=f"{style_line} {joke_line}".strip(),
        notification_title="Peggy reminder: Attendance",
        notification_body="Please log today attendance before day rollover.",
    )


def build_mood_reminder(
    ctx: MoodContext, now: datetime, content: ContentRepository, seed_salt: str = "home"
) -> ReminderCandidate | None:
    if not ctx.needs_reminder or ctx.active_window is None:
        return None
    level = resolve_level(ctx, now)
    window = ctx.active_window
    seed_root = f"{seed_salt}|mood|{ctx.date_key}|{window.id}|{level.value}"

    return ReminderCandidate(
        type=ReminderType.MOOD,
        level=level,
        interval_minutes=resolve_interval(ctx, now, level),
        slot_key=f"{ctx.date_key}|mood|{window.id}",
        priority_score=priority_score(ReminderType.MOOD, level),
        title=_pick(content.mood_titles, level, f"{seed_root}|title"),
        subtitle=_pick(content.mood_subtitles, level, f"{seed_root}|subtitle"),
        notification_title="Peggy check-in: Mood",
        notification_body=f"No mood log yet for today. Quick check-in window: {window.label}.",
        mood_quick_actions=tuple(content.quick_mood_actions),
    )


def _short_date(iso: str) -> str:
    parsed = parse_iso_date(iso)
    if parsed is None:
        return iso
    return f"{parsed.strftime('%b')} {parsed.day}"


def _planner_status_line(ctx: PlannerContext) -> str:
    candidate = ctx.candidate
    time = candidate.time
    if candidate.is_overdue_day:
        ago = f" ({candidate.overdue_days}d ago)" if candidate.overdue_days else ""
        return f"Missed from {_short_date(candidate.date_iso)}{ago}."
    if candidate.minutes_until is None:
        return "All day."
    if candidate.minutes_until <= 0:
        return f"Due now ({time})." if time else "Due now."
    at = f" at {time}" if time else ""
    soon = f" (~{candidate.minutes_until}m)" if candidate.minutes_until <= 180 else ""
    return f"Today{at}{soon}."


def build_planner_reminder(
    ctx: PlannerContext, now: datetime, content: ContentRepository, seed_salt: str = "home"
) -> ReminderCandidate | None:
    candidate = ctx.candidate
    if candidate is None or not candidate.plan_id or not candidate.title:
        return None

    level = resolve_level(ctx, now)
    interval = resolve_interval(ctx, now, level)
    slot = time_bucket(now, interval)
    seed_root = f"{seed_salt}|plan|{ctx.date_key}|{candidate.date_iso}|{candidate.plan_id}|{slot}|{level.value}"

    status_line = _planner_status_line(ctx)
    extra_line = _pick(content.planner_lines, level, f"{seed_root}|line")

    return ReminderCandidate(
        type=ReminderType.PLAN,
        level=level,
        interval_minutes=interval,
        slot_key=f"{ctx.date_key}|plan|{interval}|{slot}|{candidate.date_iso}|{candidate.plan_id}",
        priority_score=priority_score(ReminderType.PLAN, level),
        title=candidate.title,
        subtitle=f"{status_line} {extra_line}".strip(),
        notification_title="Peggy reminder: Planner",
        notification_body=f"{candidate.title} {status_line}".strip(),
        plan_date_iso=candidate.date_iso,
        plan_id=candidate.plan_id,
    )


# ----------------- 环境内容：小贴士、名字 ----------------
def build_daily_tip(
    now: datetime,
    content: ContentRepository,
    supp_ctx: SupplementContext | None = None,
    weeks_pregnant: int | None = None,
    completed_checkups: int = 0,
) -> DailyTip:
    """每 4 小时换一条；约 18% 的时段换成轻松向的贴士"""
    slot = time_bucket(now, TIP_ROTATION_MINUTES)
    remaining = supp_ctx.remaining_doses if supp_ctx else 0
    overdue = supp_ctx.overdue_doses if supp_ctx else 0
    weeks = "na" if weeks_pregnant is None else weeks_pregnant
    seed_root = f"{to_iso_date(now)}|{slot}|{weeks}|{completed_checkups}|{remaining}|{overdue}"

    use_witty = hash_string(f"{seed_root}|tone") % 100 < WITTY_TIP_PERCENT
    tip = pick_by_seed(content.witty_tips if use_witty else content.serious_tips, f"{seed_root}|tip") or {}
    return DailyTip(
        category=tip.get("category") or "General",
        tone="witty" if use_witty else "serious",
        mode_label="Witty break" if use_witty else "Deep info mode",
        text=tip.get("text") or content.default_tip_text,
    )


def build_daily_tip_reminder(
    now: datetime, tip: DailyTip, content: ContentRepository, seed_salt: str = "notify"
) -> ReminderCandidate:
    slot = time_bucket(now, TIP_INTERVAL_MINUTES)
    serious = tip.tone == "serious"
    text = tip.text.strip()
    return ReminderCandidate(
        type=ReminderType.TIP,
        level=ReminderLevel.NUDGE if serious else ReminderLevel.GENTLE,
        interval_minutes=TIP_INTERVAL_MINUTES,
        slot_key=f"{to_iso_date(now)}|tip|{TIP_INTERVAL_MINUTES}|{slot}|{seed_salt}",
        priority_score=priority_score(ReminderType.TIP, "serious" if serious else "witty"),
        title="Daily Tip: Deep info" if serious else "Daily Tip: Light break",
        subtitle=text,
        notification_title=f"Peggy tip: {tip.category or 'General'}",
        notification_body=text or content.default_tip_text,
    )


def build_name_spotlight(now: datetime, content: ContentRepository, seed_salt: str = "home") -> NameSpotlight:
    date_key = to_iso_date(now)
    slot = time_bucket(now, NAME_ROTATION_MINUTES)
    gender = "boy" if hash_string(f"{seed_salt}|{date_key}|gender") % 2 == 0 else "girl"
    names = list(content.boy_names if gender == "boy" else content.girl_names)
    top_picks = [n for n in names if n.tier == 1]

    pinned = pick_unique_by_seed(
        top_picks if len(top_picks) >= 3 else names,
        f"{seed_salt}|{date_key}|{slot}|pinned",
        min(3, len(names)),
    )
    rotating = next(iter(pick_unique_by_seed(names, f"{seed_salt}|{date_key}|{slot}|rotating", 1)), None)
    spotlight = rotating or (pinned[0] if pinned else None) or content.fallback_name

    return NameSpotlight(
        date_key=date_key,
        gender=gender,
        companion=spotlight,
        spotlight=spotlight,
        pinned_top_picks=tuple(pinned),
        spotlight_line=pick_by_seed(content.name_style_lines, f"{seed_salt}|{date_key}|{slot}|style") or "",
        joke_line=pick_by_seed(content.name_joke_lines, f"{seed_salt}|{date_key}|{slot}|joke") or "",
        slot_key=f"{date_key}|name|{slot}|{gender}",
        notification_title=f"New name spotlight: {spotlight.name}",
        notification_body=f"{spotlight.kanji.strip()} {spotlight.meaning}".strip(),
    )


def build_companion_subtitle(now: datetime, content: ContentRepository, seed_salt: str = "home") -> dict[str, str]:
    """标题下方的轮播副标题：句式 18 秒一换，名字 6 秒一换"""
    ms = epoch_ms(now)
    phrase_slot, name_slot = ms // 18000, ms // 6000
    names: list[BabyName] = [n for n in (*content.boy_names, *content.girl_names) if n.name]

    phrase = (
        pick_by_seed(content.companion_templates, f"{seed_salt}|subtitle|{phrase_slot}|phrase")
        or "Pregnancy Planning, Made Simple for @placeholder"
    )
    picked = pick_by_seed(names, f"{seed_salt}|subtitle|{name_slot}|name")
    baby_name = picked.name if picked else "Baby"
    return {
        "text": phrase.replace("@placeholder", baby_name),
        "baby_name": baby_name,
        "slot_key": f"{to_iso_date(now)}|subtitle|{phrase_slot}|{name_slot}",
    }


def resolve_quick_mood_emoji(code: Any, content: ContentRepository) -> str:
    action = content.resolve_quick_mood(code)
    return action.emoji if action else ""
