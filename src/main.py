from logger import setup_logging, logger
from config.settings import *
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    console_level="INFO",
)

import asyncio
import json
import signal
from typing import Any, Callable

from content.repository import ContentRepository
from core.notify import LogNotifier, Notifier, WebPushNotifier
from core.scheduler import ReminderScheduler
from reminders.policy import configure_priority_scores
from relay.dispatch import main_loop as dispatch_main
from relay.http_server import main_loop as relay_http_main
import storage.db_config as db_config
from storage.inbox import NotificationInbox
from storage.kv import SqliteKeyValueStore
from storage.ledger import NotificationLedger
from storage.preferences import PreferenceStore
from storage.tracked_state import TrackedStateStore
from sync.cloud_client import CloudClient
from sync.push_agent import DeviceIdentity, PushSubscriptionAgent
from sync.schedule_sync import ScheduleSync
from sync.session import SessionHolder
from utils import SystemClock

shutdown_event = asyncio.Event()


def signal_handler(sig, frame):
    """处理 SIGINT (Ctrl+C) / SIGTERM 信号"""
    logger.info("收到中断信号,正在依次关闭组件...")
    shutdown_event.set()


def _load_push_subscription() -> dict[str, Any] | None:
    """本机的 Web Push 订阅；未配置或格式错误时视为平台不支持推送"""
    if not PUSH_SUBSCRIPTION_JSON.strip():
        return None
    try:
        subscription = json.loads(PUSH_SUBSCRIPTION_JSON)
    except json.JSONDecodeError:
        logger.warning("PUSH_SUBSCRIPTION_JSON 不是合法 JSON, 按不支持推送处理")
        return None
    if not isinstance(subscription, dict) or not subscription.get("endpoint"):
        logger.warning("PUSH_SUBSCRIPTION_JSON 缺少 endpoint, 按不支持推送处理")
        return None
    return subscription


def _create_notifier(subscription: dict[str, Any] | None) -> Notifier:
    if subscription and WEB_PUSH_PRIVATE_KEY:
        return WebPushNotifier(subscription, WEB_PUSH_PRIVATE_KEY, WEB_PUSH_CONTACT_EMAIL)
    logger.warning("未配置本机推送订阅或 VAPID 私钥, 通知只写入日志")
    return LogNotifier()


async def main():
    # 注册信号处理器
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    configure_priority_scores(PRIORITY_SCORE_OVERRIDES)
    await db_config.init_db(DB_FILE)

    cloud_client = CloudClient(CLOUD_URL, CLOUD_ANON_KEY)
    status_providers: dict[str, Callable[[], dict]] = {}
    try:
        tasks = []

        if ENABLE_REMINDER_AGENT:
            store = SqliteKeyValueStore()
            preferences = PreferenceStore(store)
            session = SessionHolder.from_settings(CLOUD_ACCESS_TOKEN, CLOUD_USER_ID)
            device = DeviceIdentity(store)
            subscription = _load_push_subscription()

            scheduler = ReminderScheduler(
                preferences=preferences,
                ledger=NotificationLedger(store, retention_days=LEDGER_RETENTION_DAYS),
                inbox=NotificationInbox(store, max_entries=INBOX_MAX_ENTRIES),
                state_store=TrackedStateStore(store),
                notifier=_create_notifier(subscription),
                clock=SystemClock(USER_TIMEZONE),
                content=ContentRepository.default(),
                schedule_sync=ScheduleSync(cloud_client, device.get, min_interval_seconds=SYNC_MIN_INTERVAL_SECONDS),
                session_provider=session.get,
                permission_provider=lambda: NOTIFICATION_PERMISSION,
                tick_interval_seconds=TICK_INTERVAL_SECONDS,
                app_base_url=APP_BASE_URL,
                mark_sent_on_failure=MARK_SENT_ON_FIRE_FAILURE,
                schedule_stale_hours=SCHEDULE_STALE_HOURS,
                schedule_max_items=SCHEDULE_MAX_ITEMS,
            )
            scheduler.register_events()
            tasks.append(scheduler.run_loop(shutdown_event))
            status_providers["scheduler"] = scheduler.get_status

            if cloud_client.is_configured():
                push_agent = PushSubscriptionAgent(
                    client=cloud_client,
                    store=store,
                    preferences=preferences,
                    device=device,
                    session_provider=session.get,
                    subscription_provider=lambda: subscription,
                    permission_provider=lambda: NOTIFICATION_PERMISSION,
                    app_base_url=APP_BASE_URL,
                    interval_seconds=PUSH_SUBSCRIPTION_SYNC_SECONDS,
                )
                tasks.append(push_agent.main_loop(shutdown_event))
                status_providers["push_agent"] = push_agent.get_status
            else:
                logger.warning("云端同步已禁用(未配置 CLOUD_URL)")
        else:
            logger.warning("提醒引擎已禁用")

        if ENABLE_PUSH_RELAY:
            tasks.append(relay_http_main(shutdown_event, status_providers=status_providers))
            tasks.append(dispatch_main(shutdown_event, PUSH_DISPATCH_INTERVAL_SECONDS, batch_size=PUSH_BATCH_SIZE))
        else:
            logger.warning("推送中继已禁用")

        if not tasks:
            logger.warning("没有启用任何组件, 直接退出")
            return
        await asyncio.gather(*tasks)
    finally:
        logger.info("关闭 Peggy...")
        await cloud_client.close()

        logger.info("关闭数据库连接...")
        await db_config.close_db()
        logger.info("Peggy 已关闭")


def run():
    logger.info("启动 Peggy...")
    asyncio.run(main())


if __name__ == "__main__":
    run()
