from dataclasses import replace

from conftest import local
from content.repository import ContentRepository
from datamodel import ReminderLevel, ReminderType
from reminders.builders import (
    build_companion_subtitle,
    build_daily_tip,
    build_daily_tip_reminder,
    build_mood_reminder,
    build_name_spotlight,
    build_planner_reminder,
    build_supplement_reminder,
    build_work_reminder,
    resolve_quick_mood_emoji,
)
from reminders.contexts import get_mood_context, get_planner_context, get_supplement_context, get_work_context


class TestSupplementReminder:
    def test_slot_key_and_body(self, content):
        now = local(2024, 1, 8, 12, 5)
        ctx = get_supplement_context({}, {}, now, content.supplements)
        candidate = build_supplement_reminder(ctx, now, content)
        # 两剂 08:00 逾期 -> urgent，间隔 8 分钟
        assert candidate.level == ReminderLevel.URGENT
        assert candidate.interval_minutes == 8
        assert candidate.slot_key == f"2024-01-08|supp|8|{(12 * 60 + 5) // 8}"
        assert candidate.notification_body == "3 doses left today, 2 overdue."
        assert candidate.priority_score == 5.0
        assert "0/3 doses done." in candidate.subtitle

    def test_deterministic_within_slot(self, content):
        now = local(2024, 1, 8, 12, 5)
        ctx = get_supplement_context({}, {}, now, content.supplements)
        first = build_supplement_reminder(ctx, now, content)
        again = build_supplement_reminder(ctx, local(2024, 1, 8, 12, 6), content)
        assert first == again
        assert first.title


def test_work_reminder(content):
    now = local(2024, 1, 8, 17, 30)
    candidate = build_work_reminder(get_work_context({}, now), now, content, "notify")
    assert candidate.type == ReminderType.WORK
    assert candidate.level == ReminderLevel.URGENT
    assert candidate.slot_key == f"2024-01-08|work|12|{(17 * 60 + 30) // 12}"
    assert candidate.notification_title == "Peggy reminder: Attendance"


class TestMoodReminder:
    def test_none_without_window(self, content):
        now = local(2024, 1, 8, 9)
        assert build_mood_reminder(get_mood_context([], now, content.mood_windows), now, content) is None

    def test_window_slot_and_actions(self, content):
        now = local(2024, 1, 8, 20, 10)
        candidate = build_mood_reminder(get_mood_context([], now, content.mood_windows), now, content)
        assert candidate.slot_key == "2024-01-08|mood|night"
        assert candidate.level == ReminderLevel.URGENT
        assert len(candidate.mood_quick_actions) == 8
        assert candidate.notification_body.endswith("20:00.")


class TestPlannerReminder:
    def test_overdue_plan(self, content):
        now = local(2024, 1, 8, 9)
        ctx = get_planner_context({"2024-01-05": [{"id": "p1", "title": "Buy vitamins"}]}, now)
        candidate = build_planner_reminder(ctx, now, content)
        assert candidate.level == ReminderLevel.URGENT
        assert candidate.plan_id == "p1"
        assert candidate.slot_key.endswith("|2024-01-05|p1")
        assert candidate.notification_body == "Buy vitamins Missed from Jan 5 (3d ago)."

    def test_requires_id_and_title(self, content):
        now = local(2024, 1, 8, 9)
        ctx = get_planner_context({"2024-01-08": [{"title": "No id", "time": "10:00"}]}, now)
        assert build_planner_reminder(ctx, now, content) is None

    def test_due_soon_status(self, content):
        now = local(2024, 1, 8, 14)
        ctx = get_planner_context({"2024-01-08": [{"id": "p", "title": "Checkup", "time": "15:00"}]}, now)
        candidate = build_planner_reminder(ctx, now, content)
        assert candidate.notification_body == "Checkup Today at 15:00 (~60m)."


class TestDailyTip:
    def test_tip_reminder_slot(self, content):
        now = local(2024, 1, 8, 10, 0)
        tip = build_daily_tip(now, content)
        reminder = build_daily_tip_reminder(now, tip, content)
        assert reminder.slot_key == f"2024-01-08|tip|180|{600 // 180}|notify"
        assert reminder.type == ReminderType.TIP
        assert reminder.notification_title.startswith("Peggy tip: ")
        assert tip.tone in ("serious", "witty")
        assert reminder.level == (ReminderLevel.NUDGE if tip.tone == "serious" else ReminderLevel.GENTLE)

    def test_same_rotation_window_gives_same_tip(self, content):
        assert build_daily_tip(local(2024, 1, 8, 8, 0), content) == build_daily_tip(local(2024, 1, 8, 11, 59), content)

    def test_empty_pools_fall_back(self, content):
        empty = replace(content, serious_tips=(), witty_tips=())
        tip = build_daily_tip(local(2024, 1, 8, 9), empty)
        assert tip.text == empty.default_tip_text
        assert tip.category == "General"


class TestNameSpotlight:
    def test_slot_key_and_picks(self, content):
        spotlight = build_name_spotlight(local(2024, 1, 8, 9), content, "notify")
        assert spotlight.slot_key == f"2024-01-08|name|2|{spotlight.gender}"
        assert spotlight.gender in ("boy", "girl")
        assert len(spotlight.pinned_top_picks) == 3
        assert spotlight.notification_title == f"New name spotlight: {spotlight.spotlight.name}"

    def test_fallback_name_when_no_names(self):
        spotlight = build_name_spotlight(local(2024, 1, 8, 9), ContentRepository.default())
        assert spotlight.spotlight.name == "Kaizen"
        assert spotlight.pinned_top_picks == ()


def test_companion_subtitle(content):
    subtitle = build_companion_subtitle(local(2024, 1, 8, 9), content)
    assert "@placeholder" not in subtitle["text"]
    assert subtitle["baby_name"] in subtitle["text"]
    assert subtitle["slot_key"].startswith("2024-01-08|subtitle|")


def test_resolve_quick_mood_emoji(content):
    assert resolve_quick_mood_emoji("HAPPY", content) == "😊"
    assert resolve_quick_mood_emoji("unknown", content) == ""
