import json
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from logger import logger
load_dotenv()

__all__ = [
    "USER_TIMEZONE", "APP_BASE_URL",
    "ENABLE_REMINDER_AGENT", "ENABLE_PUSH_RELAY",
    "TICK_INTERVAL_SECONDS", "SYNC_MIN_INTERVAL_SECONDS", "PUSH_SUBSCRIPTION_SYNC_SECONDS",
    "LEDGER_RETENTION_DAYS", "SCHEDULE_STALE_HOURS", "SCHEDULE_MAX_ITEMS", "INBOX_MAX_ENTRIES",
    "MARK_SENT_ON_FIRE_FAILURE", "PRIORITY_SCORE_OVERRIDES",
    "DB_FILE", "LOG_FILE", "LOG_LEVEL",
    "CLOUD_URL", "CLOUD_ANON_KEY", "CLOUD_ACCESS_TOKEN", "CLOUD_USER_ID",
    "PUSH_SUBSCRIPTION_JSON", "NOTIFICATION_PERMISSION",
    "RELAY_HTTP_HOST", "RELAY_HTTP_PORT", "RELAY_USER_TOKENS", "RELAY_ADMIN_TOKEN",
    "PUSH_CRON_SECRET", "PUSH_DISPATCH_INTERVAL_SECONDS", "PUSH_BATCH_SIZE",
    "WEB_PUSH_PUBLIC_KEY", "WEB_PUSH_PRIVATE_KEY", "WEB_PUSH_CONTACT_EMAIL",
]


def _parse_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on", "y")


def _parse_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name} 非法: {raw}, 已回退到 {default}")
        return default
    if value < minimum:
        logger.warning(f"{name} 不能小于 {minimum}, 已回退到 {default}")
        return default
    return value


def _parse_user_tokens(raw: str) -> dict[str, str]:
    """解析 "token:user_id,token2:user_id2" 形式的令牌表"""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        token, sep, user_id = pair.strip().partition(":")
        if not sep or not token.strip() or not user_id.strip():
            continue
        tokens[token.strip()] = user_id.strip()
    return tokens


def _parse_priority_overrides(raw: str) -> dict[str, dict[str, float]]:
    if not raw.strip():
        return {}
    try:
        loaded = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("PRIORITY_SCORES_JSON 不是合法 JSON, 已忽略")
        return {}
    if not isinstance(loaded, dict):
        logger.warning("PRIORITY_SCORES_JSON 必须是对象, 已忽略")
        return {}
    overrides: dict[str, dict[str, float]] = {}
    for reminder_type, levels in loaded.items():
        if not isinstance(levels, dict):
            continue
        for level, score in levels.items():
            try:
                overrides.setdefault(str(reminder_type), {})[str(level)] = float(score)
            except (TypeError, ValueError):
                logger.warning(f"PRIORITY_SCORES_JSON 中 {reminder_type}.{level} 非数字, 已忽略")
    return overrides


# 用户与应用
USER_TIMEZONE = os.getenv("USER_TIMEZONE", "Asia/Tokyo")
try:
    ZoneInfo(USER_TIMEZONE)
except (ZoneInfoNotFoundError, ValueError):
    logger.critical(f"USER_TIMEZONE 非法: {USER_TIMEZONE}")
    exit(0)

APP_BASE_URL = os.getenv("APP_BASE_URL", "/peggy/")

# 组件开关
ENABLE_REMINDER_AGENT = _parse_bool("ENABLE_REMINDER_AGENT", True)
ENABLE_PUSH_RELAY = _parse_bool("ENABLE_PUSH_RELAY", False)

# 提醒引擎节奏
TICK_INTERVAL_SECONDS = _parse_int("TICK_INTERVAL_SECONDS", 45, minimum=1)
SYNC_MIN_INTERVAL_SECONDS = _parse_int("SYNC_MIN_INTERVAL_SECONDS", 120)
PUSH_SUBSCRIPTION_SYNC_SECONDS = _parse_int("PUSH_SUBSCRIPTION_SYNC_SECONDS", 300, minimum=1)
LEDGER_RETENTION_DAYS = _parse_int("LEDGER_RETENTION_DAYS", 5, minimum=1)
SCHEDULE_STALE_HOURS = _parse_int("SCHEDULE_STALE_HOURS", 2)
SCHEDULE_MAX_ITEMS = _parse_int("SCHEDULE_MAX_ITEMS", 12, minimum=1)
INBOX_MAX_ENTRIES = _parse_int("INBOX_MAX_ENTRIES", 200, minimum=1)

# 发送失败也记为已发送，避免权限异常时每个 tick 都重试
MARK_SENT_ON_FIRE_FAILURE = _parse_bool("MARK_SENT_ON_FIRE_FAILURE", True)
PRIORITY_SCORE_OVERRIDES = _parse_priority_overrides(os.getenv("PRIORITY_SCORES_JSON", ""))

# 存储与日志
DB_FILE = os.getenv("DB_FILE", "data/peggy.db")
LOG_FILE = os.getenv("LOG_FILE", "logs/peggy.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").strip().upper()

# 云端(推送中继)
CLOUD_URL = os.getenv("CLOUD_URL", "").rstrip("/")
CLOUD_ANON_KEY = os.getenv("CLOUD_ANON_KEY", "")
CLOUD_ACCESS_TOKEN = os.getenv("CLOUD_ACCESS_TOKEN", "")
CLOUD_USER_ID = os.getenv("CLOUD_USER_ID", "")
if ENABLE_REMINDER_AGENT and CLOUD_URL and not CLOUD_ACCESS_TOKEN:
    logger.warning("已配置 CLOUD_URL, 但 CLOUD_ACCESS_TOKEN 未设置, 云端同步不会启动")

# 本机平台能力
PUSH_SUBSCRIPTION_JSON = os.getenv("PUSH_SUBSCRIPTION_JSON", "")
NOTIFICATION_PERMISSION = os.getenv("NOTIFICATION_PERMISSION", "granted").strip().lower()
if NOTIFICATION_PERMISSION not in ("granted", "denied", "default"):
    logger.warning(f"NOTIFICATION_PERMISSION 非法: {NOTIFICATION_PERMISSION}, 已回退到 default")
    NOTIFICATION_PERMISSION = "default"

# 推送中继服务
RELAY_HTTP_HOST = os.getenv("RELAY_HTTP_HOST", "127.0.0.1")
RELAY_HTTP_PORT = _parse_int("RELAY_HTTP_PORT", 18080, minimum=1)
RELAY_USER_TOKENS = _parse_user_tokens(os.getenv("RELAY_USER_TOKENS", ""))
RELAY_ADMIN_TOKEN = os.getenv("RELAY_ADMIN_TOKEN", "")
PUSH_CRON_SECRET = os.getenv("PUSH_CRON_SECRET", "")
PUSH_DISPATCH_INTERVAL_SECONDS = _parse_int("PUSH_DISPATCH_INTERVAL_SECONDS", 60)
PUSH_BATCH_SIZE = _parse_int("PUSH_BATCH_SIZE", 6, minimum=1)

WEB_PUSH_PUBLIC_KEY = os.getenv("WEB_PUSH_PUBLIC_KEY", "")
WEB_PUSH_PRIVATE_KEY = os.getenv("WEB_PUSH_PRIVATE_KEY", "")
WEB_PUSH_CONTACT_EMAIL = os.getenv("WEB_PUSH_CONTACT_EMAIL", "mailto:admin@example.com")

if ENABLE_PUSH_RELAY and not RELAY_USER_TOKENS:
    logger.warning("已启用推送中继, 但 RELAY_USER_TOKENS 未设置, 设备无法登记订阅")
if ENABLE_PUSH_RELAY and not (WEB_PUSH_PUBLIC_KEY and WEB_PUSH_PRIVATE_KEY):
    logger.warning("已启用推送中继, 但 WEB_PUSH_PUBLIC_KEY/WEB_PUSH_PRIVATE_KEY 未设置, 推送会失败")
