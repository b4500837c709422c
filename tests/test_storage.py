import json

import pytest

import storage.db_config as db_config
from conftest import local, run
from datamodel import InboxEntry, QuickMoodAction, QuietHours
from storage.inbox import INBOX_KEY, NotificationInbox
from storage.kv import MemoryKeyValueStore, SqliteKeyValueStore
from storage.ledger import LEDGER_KEY, NotificationLedger
from storage.preferences import (
    ENABLED_KEY,
    PreferenceStore,
    format_quiet_hours_label,
    is_channel_enabled,
    is_now_in_quiet_hours,
    sanitize_channels,
    sanitize_quiet_hours,
)
from storage.tracked_state import STATE_KEYS, TrackedStateStore


class TestLedger:
    def test_mark_and_check(self, store):
        ledger = NotificationLedger(store)
        now = local(2024, 1, 8, 9)

        async def scenario():
            assert not await ledger.has_sent("2024-01-08|supp|8|67", now)
            await ledger.mark_sent("2024-01-08|supp|8|67", now)
            return await ledger.has_sent("2024-01-08|supp|8|67", now)

        assert run(scenario())

    def test_entries_expire_after_retention(self, store):
        ledger = NotificationLedger(store, retention_days=5)

        async def scenario():
            await ledger.mark_sent("old", local(2024, 1, 1, 9))
            return await ledger.has_sent("old", local(2024, 1, 5, 9)), await ledger.has_sent("old", local(2024, 1, 7, 9))

        assert run(scenario()) == (True, False)

    def test_empty_slot_key_is_never_recorded(self, store):
        ledger = NotificationLedger(store)
        now = local(2024, 1, 8, 9)

        async def scenario():
            await ledger.mark_sent("", now)
            return await ledger.has_sent("", now)

        assert run(scenario()) is False
        assert LEDGER_KEY not in store.data

    def test_corrupt_ledger_reads_as_empty(self):
        store = MemoryKeyValueStore({LEDGER_KEY: "{not json"})
        assert run(NotificationLedger(store).read(local(2024, 1, 8))) == {}


class TestQuietHours:
    @pytest.mark.parametrize(
        "hour, minute, expected",
        [(23, 0, True), (6, 59, True), (7, 0, False), (21, 59, False), (22, 0, True)],
    )
    def test_window_crossing_midnight(self, hour, minute, expected):
        quiet = {"enabled": True, "start": "22:00", "end": "07:00"}
        assert is_now_in_quiet_hours(local(2024, 1, 8, hour, minute), quiet) is expected

    def test_same_day_window(self):
        quiet = QuietHours(enabled=True, start="13:00", end="14:00")
        assert is_now_in_quiet_hours(local(2024, 1, 8, 13, 30), quiet)
        assert not is_now_in_quiet_hours(local(2024, 1, 8, 14, 0), quiet)

    def test_equal_bounds_or_disabled(self):
        assert not is_now_in_quiet_hours(local(2024, 1, 8, 23), {"start": "22:00", "end": "22:00"})
        assert not is_now_in_quiet_hours(local(2024, 1, 8, 23), {"enabled": False})

    def test_sanitize(self):
        safe = sanitize_quiet_hours({"start": "7:5", "end": "25:00"})
        assert safe == QuietHours(enabled=True, start="07:05", end="07:00")
        assert sanitize_quiet_hours("junk") == QuietHours()
        assert format_quiet_hours_label(safe) == "07:05 - 07:00"
        assert format_quiet_hours_label({"enabled": False}) == "Off"


def test_sanitize_channels():
    assert sanitize_channels(None) == {"reminders": True, "calendar": True, "dailyTip": True, "names": True}
    channels = sanitize_channels({"names": False, "dailyTip": 0, "bogus": False})
    assert channels == {"reminders": True, "calendar": True, "dailyTip": True, "names": False}
    assert not is_channel_enabled("bogus", channels)
    assert not is_channel_enabled("names", channels)


class TestPreferenceStore:
    def test_defaults_and_deprecated_keys(self):
        store = MemoryKeyValueStore({"baby-prep-smart-notifs-enabled": "1"})
        prefs = run(PreferenceStore(store).snapshot())
        assert prefs.enabled is False
        assert prefs.quiet_hours == QuietHours()
        assert all(prefs.channels.values())
        assert "baby-prep-smart-notifs-enabled" not in store.data

    def test_writes_round_trip(self, store):
        preferences = PreferenceStore(store)

        async def scenario():
            await preferences.write_enabled(True)
            await preferences.write_channels({"names": False})
            await preferences.write_quiet_hours({"enabled": True, "start": "21:30", "end": "06:00"})
            return await preferences.snapshot()

        prefs = run(scenario())
        assert store.data[ENABLED_KEY] == "1"
        assert prefs.enabled
        assert prefs.channels["names"] is False
        assert prefs.quiet_hours == QuietHours(enabled=True, start="21:30", end="06:00")


def _entry(dedupe_key, title="Title"):
    return InboxEntry(
        title=title, body="Body", type="supp", level="nudge", status="sent",
        slot_key="slot", dedupe_key=dedupe_key, created_at="2024-01-08T00:00:00.000Z",
    )


class TestInbox:
    def test_append_dedupes_and_orders_newest_first(self, store):
        inbox = NotificationInbox(store)

        async def scenario():
            assert await inbox.append(_entry("a|sent", "first"))
            assert await inbox.append(_entry("b|sent", "second"))
            assert not await inbox.append(_entry("a|sent", "dup"))
            return await inbox.read()

        entries = run(scenario())
        assert [e.title for e in entries] == ["second", "first"]
        assert all(e.id for e in entries)

    def test_cap_and_read_flags(self, store):
        inbox = NotificationInbox(store, max_entries=3)

        async def scenario():
            for i in range(5):
                await inbox.append(_entry(f"k{i}"))
            entries = await inbox.read()
            assert len(entries) == 3
            assert await inbox.unread_count() == 3
            assert await inbox.mark_read(entries[0].id)
            assert not await inbox.mark_read("missing")
            assert await inbox.unread_count() == 2
            assert await inbox.mark_all_read() == 2
            assert await inbox.unread_count() == 0
            await inbox.clear()
            return await inbox.read()

        assert run(scenario()) == []
        assert INBOX_KEY not in store.data


class TestTrackedState:
    def test_malformed_parts_load_as_empty(self):
        store = MemoryKeyValueStore({
            STATE_KEYS["moods"]: json.dumps({"not": "a list"}),
            STATE_KEYS["planner"]: "broken",
            STATE_KEYS["attendance"]: json.dumps({"2024-01-08": {"status": "office"}}),
        })
        state = run(TrackedStateStore(store).load())
        assert state.moods == []
        assert state.planner == {}
        assert state.attendance == {"2024-01-08": {"status": "office"}}

    def test_update_rejects_unknown_fields(self, store):
        with pytest.raises(ValueError):
            run(TrackedStateStore(store).update(weather={}))

    def test_log_quick_mood_prepends(self, store):
        tracked = TrackedStateStore(store)

        async def scenario():
            await tracked.update(moods=[{"id": "old", "date": "2024-01-07T00:00:00.000Z", "mood": "okay"}])
            entry = await tracked.log_quick_mood(QuickMoodAction("happy", "😊", "😊 Great"), local(2024, 1, 8, 12))
            return entry, await tracked.load()

        entry, state = run(scenario())
        assert entry["date"] == "2024-01-08T03:00:00.000Z"
        assert [m["mood"] for m in state.moods] == ["happy", "okay"]


class TestSqliteStore:
    def test_requires_init(self):
        assert db_config.conn is None
        with pytest.raises(RuntimeError):
            run(SqliteKeyValueStore().get("x"))

    def test_round_trip_and_migrations(self, tmp_path):
        async def scenario():
            await db_config.init_db(str(tmp_path / "data" / "peggy.db"))
            try:
                kv = SqliteKeyValueStore()
                await kv.set_json("k", {"a": 1})
                await kv.set_json("k", {"a": 2})
                value = await kv.get_json("k")
                await kv.delete("k")
                missing = await kv.get("k")
                async with db_config.conn.execute("PRAGMA user_version") as cursor:
                    version = (await cursor.fetchone())[0]
                return value, missing, version
            finally:
                await db_config.close_db()

        assert run(scenario()) == ({"a": 2}, None, 3)
