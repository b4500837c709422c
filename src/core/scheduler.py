"""前台提醒调度

每个 tick 把"此刻"变成最多一条通知：
1. 总开关关闭时清角标后直接返回
2. 计算四类上下文
3. 生成未来日程并按需同步到推送中继
4. 为开启的频道生成候选
5. 去掉账本里已发送的槽位，取优先级最高的一条
6. 免打扰或没有通知权限时，把它作为 missed 记进收件箱，不发送
7. 否则发送，记账本，记收件箱
8. 没有需要处理的提醒时，再考虑每日小贴士和名字推荐

每一步出错只跳过这一步，tick 本身不向外抛异常。所有判断都从当前状态重新计算，
错过的 tick 不会漏发(条件还在就会被下一个 tick 捡起)，重复的 tick 不会重发(账本)。
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from content.repository import ContentRepository
from core.notify import Notifier, build_payload, deliver, payload_for_candidate
from datamodel import (
    CloudSession,
    InboxEntry,
    InboxStatus,
    NotificationPayload,
    NotificationPreferences,
    ReminderCandidate,
    ReminderLevel,
    ReminderType,
    TrackedState,
)
from events import E, bus
from logger import get_logger
from metrics import runtime_metrics
from reminders.builders import (
    build_daily_tip,
    build_daily_tip_reminder,
    build_mood_reminder,
    build_name_spotlight,
    build_planner_reminder,
    build_supplement_reminder,
    build_work_reminder,
)
from reminders.contexts import get_mood_context, get_planner_context, get_supplement_context, get_work_context
from reminders.schedule import build_upcoming_schedule
from storage.inbox import NotificationInbox
from storage.ledger import NotificationLedger
from storage.preferences import PreferenceStore, is_channel_enabled, is_now_in_quiet_hours
from storage.tracked_state import TrackedStateStore
from sync.schedule_sync import ScheduleSync
from utils import Clock, to_utc_iso

__all__ = ["ReminderScheduler", "TickOutcome"]

logger = get_logger("scheduler")

SEED_SALT = "notify"
QUICK_MOOD_PREFIX = "quick_mood_"


@dataclass
class TickOutcome:
    # disabled / fired / missed / ambient / suppressed / idle / error
    status: str
    candidate: ReminderCandidate | None = None
    reason: str = ""
    synced: bool = False
    candidates: list[ReminderCandidate] = field(default_factory=list)


class ReminderScheduler:
    def __init__(
        self,
        *,
        preferences: PreferenceStore,
        ledger: NotificationLedger,
        inbox: NotificationInbox,
        state_store: TrackedStateStore,
        notifier: Notifier,
        clock: Clock,
        content: ContentRepository,
        schedule_sync: ScheduleSync | None = None,
        session_provider: Callable[[], CloudSession | None] = lambda: None,
        permission_provider: Callable[[], str] = lambda: "granted",
        tick_interval_seconds: float = 45,
        app_base_url: str = "/",
        mark_sent_on_failure: bool = True,
        schedule_stale_hours: int = 2,
        schedule_max_items: int = 12,
    ) -> None:
        self.preferences = preferences
        self.ledger = ledger
        self.inbox = inbox
        self.state_store = state_store
        self.notifier = notifier
        self.clock = clock
        self.content = content
        self.schedule_sync = schedule_sync
        self.session_provider = session_provider
        self.permission_provider = permission_provider
        self.tick_interval_seconds = tick_interval_seconds
        self.app_base_url = app_base_url
        self.mark_sent_on_failure = mark_sent_on_failure
        self.schedule_stale_hours = schedule_stale_hours
        self.schedule_max_items = schedule_max_items

        self.last_tick_at_epoch: float | None = None
        self.last_outcome: TickOutcome | None = None
        self._wake = asyncio.Event()
        self._shutdown_event: asyncio.Event | None = None
        self._task: asyncio.Task | None = None
        self._tick_lock = asyncio.Lock()

    # ----------------- 生命周期 ----------------
    def register_events(self) -> None:
        for event in (E.PREFERENCE_CHANGED, E.CHANNELS_CHANGED, E.QUIET_HOURS_CHANGED,
                      E.STATE_CHANGED, E.BACKUP_RESTORED):
            bus.on(event, self._on_external_change)

    def _on_external_change(self, *args, **kwargs) -> None:
        self._wake.set()

    def on_preference_changed(self, prefs: NotificationPreferences | None = None) -> None:
        """偏好变化后立即重新评估，而不是等下一个周期"""
        if prefs is not None:
            logger.debug(f"通知偏好变化: enabled={prefs.enabled}, channels={prefs.channels}")
        self._wake.set()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_loop(asyncio.Event()))
        return self._task

    async def stop(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()
        self._wake.set()
        if self._task is not None:
            await self._task
            self._task = None

    def get_status(self) -> dict[str, object]:
        running = self._shutdown_event is not None and not self._shutdown_event.is_set()
        return {
            "running": running,
            "tick_interval_seconds": self.tick_interval_seconds,
            "last_tick_at_epoch": self.last_tick_at_epoch,
            "last_outcome": self.last_outcome.status if self.last_outcome else None,
        }

    async def run_loop(self, shutdown_event: asyncio.Event) -> None:
        self._shutdown_event = shutdown_event
        logger.info("提醒调度主循环已启动")
        while not shutdown_event.is_set():
            self._wake.clear()
            await self.tick()
            waiters = [asyncio.create_task(shutdown_event.wait()), asyncio.create_task(self._wake.wait())]
            try:
                await asyncio.wait(waiters, timeout=self.tick_interval_seconds, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()
        logger.info("提醒调度主循环已关闭")

    # ----------------- tick ----------------
    async def tick(self, now: datetime | None = None) -> TickOutcome:
        async with self._tick_lock:
            now = now or self.clock.now()
            self.last_tick_at_epoch = time.time()
            runtime_metrics.record_tick()
            try:
                outcome = await self._tick(now)
            except Exception as e:
                logger.opt(exception=e).error(f"提醒 tick 异常: {e}")
                outcome = TickOutcome(status="error", reason=str(e))
            self.last_outcome = outcome
            return outcome

    async def _clear_badge(self) -> None:
        try:
            await self.notifier.set_badge(0)
        except Exception as e:
            logger.debug(f"清除角标失败: {e}")

    async def _load_state(self) -> TrackedState:
        try:
            return await self.state_store.load()
        except Exception as e:
            logger.warning(f"读取追踪数据失败, 按空数据处理: {e}")
            return TrackedState()

    def _sync_schedule(self, state: TrackedState, now: datetime) -> bool:
        if self.schedule_sync is None:
            return False
        try:
            items = build_upcoming_schedule(
                state, now, self.content,
                stale_hours=self.schedule_stale_hours,
                max_items=self.schedule_max_items,
            )
            return self.schedule_sync.maybe_sync(items, now, self.session_provider())
        except Exception as e:
            logger.warning(f"生成或同步未来日程失败: {e}")
            return False

    def _build_candidates(self, state: TrackedState, now: datetime, channels: dict[str, bool]):
        supp_ctx = get_supplement_context(state.daily_supp, state.supp_schedule, now, self.content.supplements)
        candidates: list[ReminderCandidate] = []
        builders = []
        if is_channel_enabled("reminders", channels):
            if supp_ctx.remaining_doses > 0:
                builders.append(lambda: build_supplement_reminder(supp_ctx, now, self.content, SEED_SALT))
            work_ctx = get_work_context(state.attendance, now)
            if work_ctx.needs_reminder:
                builders.append(lambda: build_work_reminder(work_ctx, now, self.content, SEED_SALT))
            mood_ctx = get_mood_context(state.moods, now, self.content.mood_windows)
            if mood_ctx.needs_reminder:
                builders.append(lambda: build_mood_reminder(mood_ctx, now, self.content, SEED_SALT))
        if is_channel_enabled("calendar", channels):
            plan_ctx = get_planner_context(state.planner, now)
            if plan_ctx.candidate is not None and plan_ctx.candidate.plan_id:
                builders.append(lambda: build_planner_reminder(plan_ctx, now, self.content, SEED_SALT))

        for build in builders:
            try:
                candidate = build()
            except Exception as e:
                logger.warning(f"生成提醒候选失败, 跳过: {e}")
                continue
            if candidate is not None:
                candidates.append(candidate)
        return supp_ctx, candidates

    async def _pick_winner(self, candidates: list[ReminderCandidate], now: datetime) -> ReminderCandidate | None:
        winner: ReminderCandidate | None = None
        for candidate in candidates:
            try:
                if await self.ledger.has_sent(candidate.slot_key, now):
                    continue
            except Exception as e:
                logger.warning(f"读取通知账本失败: {e}")
            if winner is None or candidate.priority_score > winner.priority_score:
                winner = candidate
        return winner

    async def _record(self, *, title: str, body: str, reminder_type: str, level: str, status: InboxStatus,
                      slot_key: str, now: datetime, reason: str = "") -> None:
        suffix = f"{status.value}|{reason}" if reason else status.value
        entry = InboxEntry(
            title=title,
            body=body,
            type=reminder_type,
            level=level,
            status=status.value,
            reason=reason,
            source="local",
            slot_key=slot_key,
            dedupe_key=f"{slot_key}|{suffix}",
            created_at=to_utc_iso(now),
        )
        try:
            await self.inbox.append(entry)
        except Exception as e:
            logger.warning(f"写入收件箱失败: {e}")

    async def _fire(self, *, title: str, body: str, reminder_type: str, level: str, slot_key: str,
                    payload: NotificationPayload, now: datetime, ambient: bool = False) -> bool:
        delivered = await deliver(self.notifier, payload)
        if delivered:
            runtime_metrics.record_fired(ambient=ambient)
        else:
            runtime_metrics.record_fire_error()

        if delivered or self.mark_sent_on_failure:
            try:
                await self.ledger.mark_sent(slot_key, now)
            except Exception as e:
                logger.warning(f"写入通知账本失败: {e}")

        await self._record(
            title=title, body=body, reminder_type=reminder_type, level=level, slot_key=slot_key, now=now,
            status=InboxStatus.SENT if delivered else InboxStatus.MISSED,
            reason="" if delivered else "delivery-failed",
        )
        bus.emit(E.REMINDER_FIRED, slot_key=slot_key, type=reminder_type, level=level, delivered=delivered)
        logger.info(f"已发送提醒: [{reminder_type}/{level}] {title} ({slot_key})")
        return delivered

    async def _fire_ambient(self, state: TrackedState, supp_ctx, channels: dict[str, bool], now: datetime) -> TickOutcome:
        if is_channel_enabled("dailyTip", channels):
            tip = build_daily_tip(now, self.content, supp_ctx)
            reminder = build_daily_tip_reminder(now, tip, self.content, SEED_SALT)
            if not await self.ledger.has_sent(reminder.slot_key, now):
                payload = payload_for_candidate(reminder, now, self.app_base_url)
                await self._fire(
                    title=reminder.notification_title, body=reminder.notification_body,
                    reminder_type=reminder.type.value, level=reminder.level.value,
                    slot_key=reminder.slot_key, payload=payload, now=now, ambient=True,
                )
                return TickOutcome(status="ambient", candidate=reminder)

        if is_channel_enabled("names", channels):
            spotlight = build_name_spotlight(now, self.content, SEED_SALT)
            slot_key = f"{spotlight.slot_key}|name-notif"
            # 名字推荐不赶时间，只在偶数分钟检查
            if now.minute % 2 == 0 and not await self.ledger.has_sent(slot_key, now):
                payload = build_payload(
                    title=spotlight.notification_title,
                    body=spotlight.notification_body,
                    slot_key=slot_key,
                    reminder_type=ReminderType.NAME.value,
                    level=ReminderLevel.GENTLE.value,
                    now=now,
                    app_base_url=self.app_base_url,
                )
                await self._fire(
                    title=spotlight.notification_title, body=spotlight.notification_body,
                    reminder_type=ReminderType.NAME.value, level=ReminderLevel.GENTLE.value,
                    slot_key=slot_key, payload=payload, now=now, ambient=True,
                )
                return TickOutcome(status="ambient", reason="name-spotlight")

        return TickOutcome(status="idle")

    async def _tick(self, now: datetime) -> TickOutcome:
        prefs = await self.preferences.snapshot()
        await self._clear_badge()
        if not prefs.enabled:
            logger.trace("智能提醒未开启, 跳过本次 tick")
            return TickOutcome(status="disabled")

        state = await self._load_state()
        synced = self._sync_schedule(state, now)
        supp_ctx, candidates = self._build_candidates(state, now, prefs.channels)
        winner = await self._pick_winner(candidates, now)

        quiet = is_now_in_quiet_hours(now, prefs.quiet_hours)
        permission_granted = self.permission_provider() == "granted"
        if quiet or not permission_granted:
            if winner is None:
                return TickOutcome(status="suppressed", synced=synced, candidates=candidates)
            reason = "quiet-hours" if quiet else "permission-not-granted"
            await self._record(
                title=winner.notification_title, body=winner.notification_body,
                reminder_type=winner.type.value, level=winner.level.value,
                status=InboxStatus.MISSED, slot_key=winner.slot_key, now=now, reason=reason,
            )
            runtime_metrics.record_missed()
            bus.emit(E.REMINDER_MISSED, slot_key=winner.slot_key, reason=reason)
            logger.debug(f"提醒未发送({reason}): {winner.slot_key}")
            return TickOutcome(status="missed", candidate=winner, reason=reason, synced=synced, candidates=candidates)

        if winner is not None:
            await self._fire(
                title=winner.notification_title, body=winner.notification_body,
                reminder_type=winner.type.value, level=winner.level.value, slot_key=winner.slot_key,
                payload=payload_for_candidate(winner, now, self.app_base_url), now=now,
            )
            return TickOutcome(status="fired", candidate=winner, synced=synced, candidates=candidates)

        outcome = await self._fire_ambient(state, supp_ctx, prefs.channels, now)
        outcome.synced = synced
        outcome.candidates = candidates
        return outcome

    # ----------------- 通知上的按钮 ----------------
    async def handle_notification_action(self, action: str, now: datetime | None = None) -> bool:
        """处理通知按钮回调；目前只有快捷心情"""
        if not action.startswith(QUICK_MOOD_PREFIX):
            return False
        mood = self.content.resolve_quick_mood(action[len(QUICK_MOOD_PREFIX):])
        if mood is None:
            logger.warning(f"未知的快捷心情: {action}")
            return False
        await self.state_store.log_quick_mood(mood, now or self.clock.now())
        return True
