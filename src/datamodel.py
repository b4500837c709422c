from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum

__all__ = [
    "ReminderType", "ReminderLevel", "InboxStatus",
    "SupplementContext", "WorkContext", "MoodWindow", "MoodContext", "PlannerCandidate", "PlannerContext",
    "QuickMoodAction", "ReminderCandidate", "DailyTip", "NameSpotlight", "BabyName", "Supplement",
    "UpcomingScheduleItem", "InboxEntry",
    "QuietHours", "NotificationPreferences", "TrackedState", "CloudSession",
    "NotificationPayload", "PushSubscriptionRow",
]


# ----------------- 提醒分类 ----------------
class ReminderType(str, Enum):
    SUPP = "supp"
    WORK = "work"
    MOOD = "mood"
    PLAN = "plan"
    TIP = "tip"
    NAME = "name"


class ReminderLevel(str, Enum):
    GENTLE = "gentle"
    NUDGE = "nudge"
    URGENT = "urgent"


class InboxStatus(str, Enum):
    SENT = "sent"
    MISSED = "missed"
    DELIVERED = "delivered"
    OPENED = "opened"


# ----------------- 提醒上下文(每个 tick 重新计算，不持久化) ----------------
@dataclass(frozen=True)
class SupplementContext:
    date_key: str
    total_doses: int
    taken_doses: int
    remaining_doses: int
    overdue_doses: int
    next_dose_minutes: Optional[int] = None  # 最近一次未到点服药还差几分钟


@dataclass(frozen=True)
class WorkContext:
    date_key: str
    hour: int
    is_weekday: bool
    has_attendance: bool
    needs_reminder: bool


@dataclass(frozen=True)
class MoodWindow:
    id: str  # 'noon', 'late_afternoon', 'night'
    minute_of_day: int
    label: str


@dataclass(frozen=True)
class MoodContext:
    date_key: str
    now_minutes: int
    has_mood_today: bool
    needs_reminder: bool
    active_window: Optional[MoodWindow] = None


@dataclass(frozen=True)
class PlannerCandidate:
    date_iso: str
    plan_id: str
    title: str
    time: str
    minutes_until: Optional[int]  # 负数表示今天已过点；未设时间为 None
    is_overdue_day: bool
    overdue_days: int


@dataclass(frozen=True)
class PlannerContext:
    date_key: str
    now_minutes: int
    pending_today_count: int
    pending_overdue_count: int
    candidate: Optional[PlannerCandidate] = None


# ----------------- 提醒候选 ----------------
@dataclass(frozen=True)
class QuickMoodAction:
    code: str
    emoji: str
    label: str


@dataclass(frozen=True)
class ReminderCandidate:
    type: ReminderType
    level: ReminderLevel
    interval_minutes: int
    slot_key: str  # 同一个提醒时机的去重键
    priority_score: float
    title: str
    subtitle: str
    notification_title: str
    notification_body: str
    mood_quick_actions: Tuple[QuickMoodAction, ...] = ()
    plan_date_iso: Optional[str] = None
    plan_id: Optional[str] = None


@dataclass(frozen=True)
class DailyTip:
    category: str
    tone: str  # 'serious' | 'witty'
    mode_label: str
    text: str


@dataclass(frozen=True)
class BabyName:
    name: str
    kanji: str = ""
    meaning: str = ""
    tier: int = 2


@dataclass(frozen=True)
class NameSpotlight:
    date_key: str
    gender: str
    companion: BabyName
    spotlight: BabyName
    pinned_top_picks: Tuple[BabyName, ...]
    spotlight_line: str
    joke_line: str
    slot_key: str
    notification_title: str
    notification_body: str

    @property
    def companion_label(self) -> str:
        if self.companion.kanji:
            return f"{self.companion.name} ({self.companion.kanji})"
        return self.companion.name


@dataclass(frozen=True)
class Supplement:
    id: str
    name: str
    default_times: Tuple[str, ...] = ()


# ----------------- 同步到推送中继的未来提醒 ----------------
@dataclass(frozen=True)
class UpcomingScheduleItem:
    type: ReminderType
    level: ReminderLevel
    notification_title: str
    notification_body: str
    tag: str
    fire_at: str  # ISO 8601 UTC
    priority_score: float

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "level": self.level.value,
            "notificationTitle": self.notification_title,
            "notificationBody": self.notification_body,
            "tag": self.tag,
            "fireAt": self.fire_at,
            "priorityScore": self.priority_score,
        }


# ----------------- 通知收件箱 ----------------
@dataclass
class InboxEntry:
    title: str
    body: str
    type: str
    level: str
    status: str
    slot_key: str
    dedupe_key: str
    created_at: str
    source: str = "local"
    reason: str = ""
    read: bool = False
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "type": self.type,
            "level": self.level,
            "status": self.status,
            "reason": self.reason,
            "source": self.source,
            "slotKey": self.slot_key,
            "dedupeKey": self.dedupe_key,
            "createdAt": self.created_at,
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "InboxEntry":
        return cls(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or ""),
            body=str(raw.get("body") or ""),
            type=str(raw.get("type") or "general"),
            level=str(raw.get("level") or ReminderLevel.GENTLE.value),
            status=str(raw.get("status") or InboxStatus.SENT.value),
            reason=str(raw.get("reason") or ""),
            source=str(raw.get("source") or "local"),
            slot_key=str(raw.get("slotKey") or ""),
            dedupe_key=str(raw.get("dedupeKey") or ""),
            created_at=str(raw.get("createdAt") or ""),
            read=bool(raw.get("read")),
        )


# ----------------- 用户偏好 ----------------
@dataclass(frozen=True)
class QuietHours:
    enabled: bool = True
    start: str = "22:00"
    end: str = "07:00"


@dataclass(frozen=True)
class NotificationPreferences:
    enabled: bool = False
    channels: Dict[str, bool] = field(default_factory=dict)  # reminders / calendar / dailyTip / names
    quiet_hours: QuietHours = field(default_factory=QuietHours)


# ----------------- 外部输入 ----------------
@dataclass
class TrackedState:
    daily_supp: Dict[str, bool] = field(default_factory=dict)
    supp_schedule: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    attendance: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    moods: List[Dict[str, Any]] = field(default_factory=list)
    planner: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


@dataclass(frozen=True)
class CloudSession:
    access_token: str
    user_id: str


@dataclass
class NotificationPayload:
    """交给平台通知接口的完整通知"""
    title: str
    body: str
    icon: str
    badge: str
    tag: str
    renotify: bool = False
    require_interaction: bool = False
    vibrate: Tuple[int, ...] = ()
    timestamp: int = 0
    data: Dict[str, Any] = field(default_factory=dict)
    actions: List[Dict[str, str]] = field(default_factory=list)


# ----------------- 推送中继 ----------------
@dataclass
class PushSubscriptionRow:
    id: str
    user_id: str
    device_id: str
    endpoint: str
    subscription: Dict[str, Any]
    enabled: bool = True
    notif_enabled: bool = True
    app_base_url: str = "/peggy/"
    pending_reminders: List[Dict[str, Any]] = field(default_factory=list)
    last_push_at: Optional[str] = None
    last_seen_at: Optional[str] = None
