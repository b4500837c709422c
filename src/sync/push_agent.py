"""推送订阅生命周期

把本机的 Web Push 订阅登记到推送中继，或在通知关闭、权限缺失、平台不支持时停用。
偏好变化、会话变化、备份恢复时立即同步一次，另外每 5 分钟兜底同步。
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from ulid import ULID

from datamodel import CloudSession
from events import E, bus
from logger import logger
from storage.kv import KeyValueStore
from storage.preferences import PreferenceStore
from sync.cloud_client import CloudClient

__all__ = ["DeviceIdentity", "PushSubscriptionAgent"]

DEVICE_ID_KEY = "peggy-push-device-id"
ENDPOINT_CACHE_KEY = "peggy-push-endpoint"


class DeviceIdentity:
    """设备 id 首次使用时生成，之后一直沿用"""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._cached: str | None = None

    async def get(self) -> str:
        if self._cached:
            return self._cached
        existing = await self._store.get(DEVICE_ID_KEY)
        if existing:
            self._cached = existing
            return existing
        device_id = str(ULID())
        await self._store.set(DEVICE_ID_KEY, device_id)
        self._cached = device_id
        logger.info(f"已生成推送设备 id: {device_id}")
        return device_id


class PushSubscriptionAgent:
    def __init__(
        self,
        client: CloudClient,
        store: KeyValueStore,
        preferences: PreferenceStore,
        device: DeviceIdentity,
        session_provider: Callable[[], CloudSession | None],
        subscription_provider: Callable[[], dict[str, Any] | None],
        permission_provider: Callable[[], str],
        app_base_url: str = "/peggy/",
        interval_seconds: int = 300,
    ) -> None:
        self._client = client
        self._store = store
        self._preferences = preferences
        self._device = device
        self._session_provider = session_provider
        self._subscription_provider = subscription_provider
        self._permission_provider = permission_provider
        self.app_base_url = app_base_url
        self.interval_seconds = interval_seconds
        self.busy = False
        self.last_result: str | None = None
        self.last_sync_at_epoch: float | None = None
        self._shutdown_event: asyncio.Event | None = None

    def register_events(self) -> None:
        bus.on(E.PREFERENCE_CHANGED, self._on_change)
        bus.on(E.SESSION_CHANGED, self._on_change)
        bus.on(E.BACKUP_RESTORED, self._on_change)

    async def _on_change(self, *args, **kwargs) -> None:
        await self.sync_state()

    async def sync_state(self) -> str:
        """返回本次同步的结果标记，失败只记日志"""
        if not self._client.is_configured():
            return "cloud-not-configured"
        if self.busy:
            return "busy"
        session = self._session_provider()
        if session is None:
            return "no-session"

        self.busy = True
        try:
            subscription = self._subscription_provider()
            if subscription is None:
                result = await self._disable(session)
            else:
                enabled = await self._preferences.read_enabled()
                if not enabled or self._permission_provider() != "granted":
                    result = await self._disable(session)
                else:
                    result = await self._upsert(session, subscription, enabled)
        except Exception as e:
            logger.warning(f"推送订阅同步失败: {e}")
            result = "error"
        finally:
            self.busy = False

        self.last_result = result
        self.last_sync_at_epoch = time.time()
        return result

    async def _upsert(self, session: CloudSession, subscription: dict[str, Any], enabled: bool) -> str:
        keys = subscription.get("keys") or {}
        endpoint = str(subscription.get("endpoint") or "").strip()
        p256dh = str(keys.get("p256dh") or "").strip()
        auth = str(keys.get("auth") or "").strip()
        if not endpoint or not p256dh or not auth:
            logger.warning("本机推送订阅不完整, 跳过登记")
            return "invalid-subscription"

        await self._store.set(ENDPOINT_CACHE_KEY, endpoint)
        await self._client.upsert_push_subscription(
            {
                "deviceId": await self._device.get(),
                "notifEnabled": enabled,
                "endpoint": endpoint,
                "p256dh": p256dh,
                "auth": auth,
                "subscription": subscription,
                "userAgent": "peggy-agent",
                "platform": "python",
                "appBaseUrl": self.app_base_url,
            },
            session,
        )
        logger.debug("推送订阅已登记到中继")
        return "upserted"

    async def _disable(self, session: CloudSession) -> str:
        subscription = self._subscription_provider() or {}
        endpoint = str(subscription.get("endpoint") or "") or (await self._store.get(ENDPOINT_CACHE_KEY) or "")
        await self._client.disable_push_subscription(session, endpoint=endpoint, device_id=await self._device.get())
        await self._store.delete(ENDPOINT_CACHE_KEY)
        logger.debug("推送订阅已在中继停用")
        return "disabled"

    def get_status(self) -> dict[str, object]:
        running = self._shutdown_event is not None and not self._shutdown_event.is_set()
        return {
            "running": running,
            "busy": self.busy,
            "last_result": self.last_result,
            "last_sync_at_epoch": self.last_sync_at_epoch,
        }

    async def main_loop(self, shutdown_event: asyncio.Event) -> None:
        self._shutdown_event = shutdown_event
        self.register_events()
        logger.info("推送订阅同步循环已启动")
        while not shutdown_event.is_set():
            await self.sync_state()
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("推送订阅同步循环已关闭")
