"""时间工具

提醒引擎里所有"现在"都是用户本地时间(datetime)，时钟由 Clock 注入，
这里只放纯函数，不读取系统时间(SystemClock 除外)。
"""

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

__all__ = ["Clock", "SystemClock", "FixedClock",
           "now_utc", "to_iso_date", "to_dose_date_key", "minutes_since_midnight",
           "parse_clock_minutes", "parse_optional_clock_minutes", "normalize_clock_value",
           "parse_iso_date", "parse_timestamp", "iso_day_diff", "at_clock", "to_utc_iso",
           "epoch_ms"]

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{1,2})$")


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """按用户时区返回当前时间"""

    def __init__(self, user_tz: str) -> None:
        self._tz = ZoneInfo(user_tz)

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """可手动拨动的时钟，测试和回放用"""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def now_utc() -> datetime:
    """获取当前 UTC 时间"""
    return datetime.now(timezone.utc)


def to_iso_date(now: datetime | date) -> str:
    """本地日期，格式: 'YYYY-MM-DD'"""
    return now.strftime("%Y-%m-%d")


def to_dose_date_key(now: datetime | date) -> str:
    """服药打卡的日期键，格式: 'Wed Jan 03 2024' (与前端 Date.toDateString 一致)"""
    return now.strftime("%a %b %d %Y")


def minutes_since_midnight(now: datetime) -> int:
    return now.hour * 60 + now.minute


def parse_clock_minutes(value) -> int:
    """'HH:MM' -> 当天分钟数，无法解析时按 0 点处理"""
    text = str(value or "00:00")
    hh, _, mm = text.partition(":")
    try:
        return int(hh) * 60 + int(mm)
    except ValueError:
        return 0


def parse_optional_clock_minutes(value) -> int | None:
    """'HH:MM' -> 当天分钟数，空值或越界返回 None"""
    raw = str(value or "").strip()
    if not raw:
        return None
    hh, _, mm = raw.partition(":")
    try:
        h, m = int(hh), int(mm)
    except ValueError:
        return None
    if h < 0 or h > 23 or m < 0 or m > 59:
        return None
    return h * 60 + m


def normalize_clock_value(value, fallback: str = "00:00") -> str:
    match = _CLOCK_RE.match(str(value or "").strip())
    if not match:
        return fallback
    hh, mm = int(match.group(1)), int(match.group(2))
    if hh > 23 or mm > 59:
        return fallback
    return f"{hh:02d}:{mm:02d}"


def parse_iso_date(value) -> date | None:
    try:
        return date.fromisoformat(str(value or "").strip())
    except ValueError:
        return None


def parse_timestamp(value, local_tz: tzinfo | None = None) -> datetime | None:
    """解析 ISO 时间戳；带时区的结果会换算到 local_tz"""
    raw = str(value or "").strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is not None and local_tz is not None:
        parsed = parsed.astimezone(local_tz)
    return parsed


def iso_day_diff(from_iso: str, to_iso: str) -> int:
    start, end = parse_iso_date(from_iso), parse_iso_date(to_iso)
    if start is None or end is None:
        return 0
    return (end - start).days


def at_clock(day: date, minute_of_day: int, tz: tzinfo | None) -> datetime:
    """某天某分钟对应的本地时间"""
    base = datetime(day.year, day.month, day.day, tzinfo=tz)
    return base + timedelta(minutes=minute_of_day)


def to_utc_iso(moment: datetime) -> str:
    """ISO 8601 UTC 字符串，毫秒精度，'Z' 结尾"""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
