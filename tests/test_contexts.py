from conftest import local
from reminders.contexts import (
    dose_key,
    get_mood_context,
    get_planner_context,
    get_supplement_context,
    get_work_context,
    has_mood_logged_for_date,
    sort_planner_items,
    supplement_times,
)


class TestSupplementContext:
    def test_dose_key_format(self):
        assert dose_key("folic", 0, local(2024, 1, 8, 9)) == "folic-0-Mon Jan 08 2024"

    def test_counts_taken_remaining_and_next(self, content):
        now = local(2024, 1, 8, 12)
        daily = {dose_key("folic", 0, now): True, dose_key("iron", 0, now): True}
        ctx = get_supplement_context(daily, {}, now, content.supplements)
        assert ctx.total_doses == 3
        assert ctx.taken_doses == 2
        assert ctx.remaining_doses == 1
        assert ctx.overdue_doses == 0
        assert ctx.next_dose_minutes == 8 * 60

    def test_overdue_doses(self, content):
        ctx = get_supplement_context({}, {}, local(2024, 1, 8, 21), content.supplements)
        assert ctx.remaining_doses == 3
        assert ctx.overdue_doses == 3
        assert ctx.next_dose_minutes is None

    def test_yesterday_flags_do_not_count(self, content):
        now = local(2024, 1, 8, 9)
        daily = {dose_key("iron", 0, local(2024, 1, 7, 9)): True}
        ctx = get_supplement_context(daily, {}, now, content.supplements)
        assert ctx.taken_doses == 0

    def test_schedule_overrides_and_extra_ids(self, content):
        schedule = {
            "folic": {"times": ["09:00"]},
            "iron": {"enabled": False},
            "dha": {"times": ["07:00", "19:00"]},
        }
        assert supplement_times(schedule, content.supplements) == [
            ("folic", ["09:00"]),
            ("dha", ["07:00", "19:00"]),
        ]
        ctx = get_supplement_context({}, schedule, local(2024, 1, 8, 10), content.supplements)
        assert ctx.total_doses == 3
        assert ctx.overdue_doses == 2

    def test_malformed_input_is_treated_as_empty(self, content):
        ctx = get_supplement_context("oops", ["bad"], local(2024, 1, 8, 10), content.supplements)
        assert ctx.total_doses == 3
        assert ctx.taken_doses == 0


class TestWorkContext:
    def test_weekday_without_attendance(self):
        ctx = get_work_context({}, local(2024, 1, 8, 11))
        assert ctx.is_weekday and ctx.needs_reminder
        assert ctx.hour == 11

    def test_weekend(self):
        assert not get_work_context({}, local(2024, 1, 6, 11)).needs_reminder

    def test_logged_attendance(self):
        ctx = get_work_context({"2024-01-08": {"status": "office"}}, local(2024, 1, 8, 18))
        assert ctx.has_attendance
        assert not ctx.needs_reminder


class TestMoodContext:
    def test_before_first_window(self, content):
        ctx = get_mood_context([], local(2024, 1, 8, 11, 59), content.mood_windows)
        assert ctx.active_window is None
        assert not ctx.needs_reminder

    def test_latest_passed_window_is_active(self, content):
        ctx = get_mood_context([], local(2024, 1, 8, 17, 30), content.mood_windows)
        assert ctx.active_window.id == "late_afternoon"
        assert ctx.needs_reminder

    def test_logged_mood_suppresses(self, content):
        # 03:00Z 是东京时间 12:00
        moods = [{"date": "2024-01-08T03:00:00.000Z", "mood": "happy"}]
        now = local(2024, 1, 8, 20, 30)
        assert has_mood_logged_for_date(moods, "2024-01-08", now)
        ctx = get_mood_context(moods, now, content.mood_windows)
        assert ctx.has_mood_today
        assert not ctx.needs_reminder

    def test_utc_date_converted_to_local_day(self):
        # UTC 1 月 7 日 16:00 = 东京 1 月 8 日 01:00
        moods = [{"date": "2024-01-07T16:00:00Z"}]
        assert has_mood_logged_for_date(moods, "2024-01-08", local(2024, 1, 8, 12))

    def test_garbage_entries_ignored(self, content):
        moods = ["x", {"date": "not-a-date"}, None]
        ctx = get_mood_context(moods, local(2024, 1, 8, 12, 5), content.mood_windows)
        assert ctx.needs_reminder


class TestPlannerContext:
    def test_sort_timed_first_then_title(self):
        items = [
            {"id": "c", "title": "zeta"},
            {"id": "b", "title": "Beta", "time": "15:00"},
            {"id": "a", "title": "alpha", "time": "09:30"},
            {"id": "d", "title": "Alpha"},
        ]
        assert [p["id"] for p in sort_planner_items(items)] == ["a", "b", "d", "c"]

    def test_oldest_overdue_date_wins(self):
        planner = {
            "2024-01-07": [{"id": "b", "title": "Call clinic"}],
            "2024-01-05": [{"id": "a", "title": "Buy vitamins"}, {"id": "x", "title": "Done", "done": True}],
            "2024-01-08": [{"id": "t", "title": "Today task", "time": "18:00"}],
            "garbage": [{"id": "g", "title": "Ignored"}],
        }
        ctx = get_planner_context(planner, local(2024, 1, 8, 10))
        assert ctx.candidate.plan_id == "a"
        assert ctx.candidate.is_overdue_day
        assert ctx.candidate.overdue_days == 3
        assert ctx.pending_overdue_count == 2
        assert ctx.pending_today_count == 1

    def test_today_candidate_minutes_until(self):
        planner = {"2024-01-08": [{"id": "t", "title": "Checkup", "time": "15:00"}]}
        ctx = get_planner_context(planner, local(2024, 1, 8, 14))
        assert ctx.candidate.date_iso == "2024-01-08"
        assert ctx.candidate.minutes_until == 60
        assert not ctx.candidate.is_overdue_day

    def test_untimed_plan(self):
        ctx = get_planner_context({"2024-01-08": [{"id": "t", "title": "Walk"}]}, local(2024, 1, 8, 9))
        assert ctx.candidate.minutes_until is None

    def test_nothing_pending(self):
        planner = {"2024-01-08": [{"id": "t", "title": "Walk", "done": True}], "2024-01-09": [{"id": "f", "title": "Future"}]}
        ctx = get_planner_context(planner, local(2024, 1, 8, 9))
        assert ctx.candidate is None
        assert ctx.pending_today_count == 0
