import asyncio

import pytest

from content.repository import ContentRepository
from conftest import local, run
from core.notify import LogNotifier, WebPushNotifier
from core.scheduler import ReminderScheduler
from datamodel import ReminderLevel, ReminderType
from metrics import runtime_metrics
from reminders.contexts import get_supplement_context
from relay.webpush import PushResult
from storage.inbox import NotificationInbox
from storage.kv import KeyValueStore
from storage.ledger import NotificationLedger
from storage.preferences import PreferenceStore
from storage.tracked_state import TrackedStateStore
from utils import FixedClock

ONLY_REMINDERS = {"reminders": True, "calendar": False, "dailyTip": False, "names": False}
QUIET_OFF = {"enabled": False}


class FailingNotifier(LogNotifier):
    async def show(self, payload):
        raise RuntimeError("notification permission revoked")


class BrokenStore(KeyValueStore):
    async def get(self, key):
        raise RuntimeError("storage unavailable")

    async def set(self, key, value):
        raise RuntimeError("storage unavailable")

    async def delete(self, key):
        raise RuntimeError("storage unavailable")


def make_scheduler(store, content, now, notifier=None, permission="granted", **kwargs):
    return ReminderScheduler(
        preferences=PreferenceStore(store),
        ledger=NotificationLedger(store),
        inbox=NotificationInbox(store),
        state_store=TrackedStateStore(store),
        notifier=notifier or LogNotifier(),
        clock=FixedClock(now),
        content=content,
        permission_provider=lambda: permission,
        app_base_url="/peggy/",
        **kwargs,
    )


async def configure(store, channels=None, quiet=QUIET_OFF, enabled=True, **state):
    preferences = PreferenceStore(store)
    await preferences.write_enabled(enabled)
    await preferences.write_channels(channels or ONLY_REMINDERS)
    await preferences.write_quiet_hours(quiet)
    if state:
        await TrackedStateStore(store).update(**state)


def mood_logged(day):
    # 当天东京时间 09:00
    return [{"date": f"{day}T00:00:00.000Z", "mood": "okay"}]


def test_disabled_only_clears_badge(store, content):
    now = local(2024, 1, 6, 12, 5)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, now, notifier)

    async def scenario():
        await configure(store, enabled=False)
        return await scheduler.tick()

    outcome = run(scenario())
    assert outcome.status == "disabled"
    assert notifier.shown == []
    assert notifier.badge == 0


def test_fires_once_per_slot(store, content):
    now = local(2024, 1, 6, 12, 5)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, now, notifier)

    async def scenario():
        await configure(store, moods=mood_logged("2024-01-06"))
        first = await scheduler.tick()
        second = await scheduler.tick()
        inbox = await scheduler.inbox.read()
        return first, second, inbox

    first, second, inbox = run(scenario())
    assert first.status == "fired"
    assert first.candidate.type == ReminderType.SUPP
    assert second.status == "idle"
    assert len(notifier.shown) == 1
    assert notifier.shown[0].tag == f"supp:{first.candidate.slot_key}"
    assert [(e.status, e.dedupe_key) for e in inbox] == [("sent", f"{first.candidate.slot_key}|sent")]


def test_highest_priority_wins(store, content):
    # 周一 12:05：补剂逾期(nudge 以上)、出勤 nudge、心情 noon gentle
    now = local(2024, 1, 8, 12, 5)
    scheduler = make_scheduler(store, content, now)

    async def scenario():
        await configure(store)
        return await scheduler.tick()

    outcome = run(scenario())
    types = {c.type for c in outcome.candidates}
    assert types == {ReminderType.SUPP, ReminderType.WORK, ReminderType.MOOD}
    assert outcome.candidate.type == ReminderType.SUPP
    assert outcome.candidate.priority_score == max(c.priority_score for c in outcome.candidates)


def test_next_candidate_after_winner_is_sent(store, content):
    now = local(2024, 1, 8, 12, 5)
    scheduler = make_scheduler(store, content, now)

    async def scenario():
        await configure(store)
        first = await scheduler.tick()
        second = await scheduler.tick()
        return first, second

    first, second = run(scenario())
    assert first.candidate.type == ReminderType.SUPP
    assert second.status == "fired"
    assert second.candidate.type == ReminderType.WORK


@pytest.mark.parametrize(
    "quiet, permission, reason",
    [
        ({"enabled": True, "start": "22:00", "end": "07:00"}, "granted", "quiet-hours"),
        (QUIET_OFF, "denied", "permission-not-granted"),
    ],
)
def test_missed_when_suppressed(store, content, quiet, permission, reason):
    now = local(2024, 1, 6, 23, 0)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, now, notifier, permission=permission)

    async def scenario():
        await configure(store, quiet=quiet, moods=mood_logged("2024-01-06"))
        first = await scheduler.tick()
        await scheduler.tick()
        sent = await scheduler.ledger.has_sent(first.candidate.slot_key, now)
        return first, await scheduler.inbox.read(), sent

    outcome, inbox, sent = run(scenario())
    assert outcome.status == "missed"
    assert outcome.reason == reason
    assert notifier.shown == []
    assert not sent
    assert len(inbox) == 1
    assert inbox[0].status == "missed"
    assert inbox[0].reason == reason
    assert inbox[0].dedupe_key == f"{outcome.candidate.slot_key}|missed|{reason}"


def test_suppressed_without_candidates_skips_ambient(store, content):
    now = local(2024, 1, 6, 23, 0)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, now, notifier, permission="denied")

    async def scenario():
        await configure(store, channels={"reminders": False, "calendar": False, "dailyTip": True, "names": True})
        return await scheduler.tick()

    assert run(scenario()).status == "suppressed"
    assert notifier.shown == []


def test_daily_tip_when_nothing_else(store, content):
    now = local(2024, 1, 6, 12, 5)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, now, notifier)

    async def scenario():
        await configure(store, channels={"reminders": False, "calendar": False, "dailyTip": True, "names": False})
        first = await scheduler.tick()
        second = await scheduler.tick()
        return first, second

    first, second = run(scenario())
    assert first.status == "ambient"
    assert first.candidate.type == ReminderType.TIP
    assert first.candidate.slot_key == f"2024-01-06|tip|180|{(12 * 60 + 5) // 180}|notify"
    assert second.status == "idle"
    assert notifier.shown[0].title.startswith("💡 Peggy tip: ")


def test_name_spotlight_only_on_even_minutes(store, content):
    notifier = LogNotifier()
    clock_now = local(2024, 1, 6, 12, 7)
    scheduler = make_scheduler(store, content, clock_now, notifier)

    async def scenario():
        await configure(store, channels={"reminders": False, "calendar": False, "dailyTip": False, "names": True})
        odd = await scheduler.tick()
        even = await scheduler.tick(local(2024, 1, 6, 12, 8))
        again = await scheduler.tick(local(2024, 1, 6, 12, 10))
        return odd, even, again

    odd, even, again = run(scenario())
    assert odd.status == "idle"
    assert even.status == "ambient"
    assert even.reason == "name-spotlight"
    assert again.status == "idle"
    assert len(notifier.shown) == 1
    assert notifier.shown[0].tag.endswith("|name-notif")


def test_planner_candidate_from_calendar_channel(store, content):
    now = local(2024, 1, 6, 14, 0)
    scheduler = make_scheduler(store, content, now)

    async def scenario():
        await configure(
            store,
            channels={"reminders": False, "calendar": True, "dailyTip": False, "names": False},
            planner={"2024-01-06": [{"id": "p1", "title": "Checkup", "time": "15:00"}]},
        )
        return await scheduler.tick()

    outcome = run(scenario())
    assert outcome.status == "fired"
    assert outcome.candidate.type == ReminderType.PLAN
    assert outcome.candidate.plan_id == "p1"


@pytest.mark.parametrize("mark_on_failure", [True, False])
def test_delivery_failure(store, content, mark_on_failure):
    now = local(2024, 1, 6, 12, 5)
    scheduler = make_scheduler(store, content, now, FailingNotifier(), mark_sent_on_failure=mark_on_failure)

    async def scenario():
        await configure(store, moods=mood_logged("2024-01-06"))
        outcome = await scheduler.tick()
        sent = await scheduler.ledger.has_sent(outcome.candidate.slot_key, now)
        return outcome, sent, await scheduler.inbox.read()

    outcome, sent, inbox = run(scenario())
    assert outcome.status == "fired"
    assert sent is mark_on_failure
    assert inbox[0].status == "missed"
    assert inbox[0].reason == "delivery-failed"



def test_rejected_web_push_is_recorded_as_missed(store, content):
    now = local(2024, 1, 6, 12, 5)
    pushed = []

    async def rejecting_sender(subscription, payload):
        pushed.append(payload)
        return PushResult(ok=False, status_code=500, message="Server error")

    notifier = WebPushNotifier({"endpoint": "https://push.example.com/me"}, send_push=rejecting_sender)
    scheduler = make_scheduler(store, content, now, notifier, mark_sent_on_failure=False)
    errors_before = runtime_metrics.fire_error_count

    async def scenario():
        await configure(store, moods=mood_logged("2024-01-06"))
        outcome = await scheduler.tick()
        sent = await scheduler.ledger.has_sent(outcome.candidate.slot_key, now)
        return outcome, sent, await scheduler.inbox.read()

    outcome, sent, inbox = run(scenario())
    assert len(pushed) == 1
    assert pushed[0]["tag"] == f"supp:{outcome.candidate.slot_key}"
    assert sent is False
    assert [(e.status, e.reason) for e in inbox] == [("missed", "delivery-failed")]
    assert runtime_metrics.fire_error_count == errors_before + 1


def test_second_tick_in_same_bucket_does_not_refire(store):
    # 周三 08:00 的一次剂量，08:05 和 08:06 都落在 12 分钟间隔的第 40 个桶
    content = ContentRepository.default(supplements=[{"id": "prenatal", "name": "Prenatal", "defaultTimes": ["08:00"]}])
    notifier = LogNotifier()
    scheduler = make_scheduler(store, content, local(2024, 1, 10, 8, 5), notifier)

    ctx = get_supplement_context(None, None, local(2024, 1, 10, 8, 5), content.supplements)
    assert (ctx.remaining_doses, ctx.overdue_doses) == (1, 1)

    async def scenario():
        await configure(store)
        first = await scheduler.tick(local(2024, 1, 10, 8, 5))
        second = await scheduler.tick(local(2024, 1, 10, 8, 6))
        return first, second

    first, second = run(scenario())
    assert first.status == "fired"
    assert first.candidate.type == ReminderType.SUPP
    assert first.candidate.level == ReminderLevel.NUDGE
    assert first.candidate.slot_key == "2024-01-10|supp|12|40"
    assert second.candidate is None or second.candidate.type != ReminderType.SUPP
    assert [p.tag for p in notifier.shown if p.tag.startswith("supp:")] == ["supp:2024-01-10|supp|12|40"]

def test_mood_notification_carries_quick_actions(store, content):
    now = local(2024, 1, 6, 17, 5)
    notifier = LogNotifier()
    scheduler = make_scheduler(store, ContentRepository.default(), now, notifier)

    async def scenario():
        await configure(store)
        return await scheduler.tick()

    outcome = run(scenario())
    assert outcome.candidate.type == ReminderType.MOOD
    payload = notifier.shown[0]
    assert payload.data["url"] == "/peggy/?openMood=1"
    assert len(payload.actions) == 8


def test_quick_mood_action_logs_mood(store, content):
    now = local(2024, 1, 6, 17, 5)
    scheduler = make_scheduler(store, content, now)

    async def scenario():
        handled = await scheduler.handle_notification_action("quick_mood_sleepy")
        ignored = await scheduler.handle_notification_action("open")
        unknown = await scheduler.handle_notification_action("quick_mood_bogus")
        return handled, ignored, unknown, await scheduler.state_store.load()

    handled, ignored, unknown, state = run(scenario())
    assert (handled, ignored, unknown) == (True, False, False)
    assert state.moods[0]["mood"] == "sleepy"


def test_tick_never_raises(content):
    scheduler = make_scheduler(BrokenStore(), content, local(2024, 1, 6, 12))
    outcome = run(scheduler.tick())
    assert outcome.status == "error"
    assert scheduler.get_status()["last_outcome"] == "error"


def test_run_loop_stops_on_shutdown(store, content):
    scheduler = make_scheduler(store, content, local(2024, 1, 6, 12), tick_interval_seconds=60)

    async def scenario():
        shutdown = asyncio.Event()
        task = asyncio.create_task(scheduler.run_loop(shutdown))
        await asyncio.sleep(0.05)
        running = scheduler.get_status()["running"]
        shutdown.set()
        await asyncio.wait_for(task, timeout=2)
        return running

    assert run(scenario()) is True
    assert scheduler.get_status()["running"] is False
    assert scheduler.last_outcome.status == "disabled"
