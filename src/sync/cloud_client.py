"""推送中继客户端

所有操作都是 POST /functions/v1/push-subscriptions，用 action 字段区分。
非 2xx 响应抛出 CloudError，错误信息取服务端返回的 error 字段。
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from datamodel import CloudSession, UpcomingScheduleItem
from logger import logger

__all__ = ["CloudError", "CloudClient"]

SUBSCRIPTIONS_PATH = "/functions/v1/push-subscriptions"


class CloudError(Exception):
    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class CloudClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str = "",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.anon_key:
                headers["apikey"] = self.anon_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("error") or data.get("message") or data)
        return str(data)

    async def _post_action(self, action: str, session: CloudSession, payload: dict[str, Any] | None = None) -> dict:
        if not self.is_configured():
            raise CloudError("云端未配置 CLOUD_URL")
        client = await self._get_client()
        body = {"action": action, **(payload or {})}
        try:
            response = await client.post(
                SUBSCRIPTIONS_PATH,
                json=body,
                headers={"Authorization": f"Bearer {session.access_token}"},
            )
        except httpx.HTTPError as e:
            raise CloudError(f"请求推送中继失败: {e}") from e

        if response.status_code >= 400:
            raise CloudError(self._error_text(response), status_code=response.status_code)
        logger.trace(f"推送中继 {action} 返回 {response.status_code}")
        if response.status_code == 204:
            return {}
        return response.json()

    async def upsert_push_subscription(self, payload: dict[str, Any], session: CloudSession) -> dict:
        return await self._post_action("upsert", session, payload)

    async def disable_push_subscription(self, session: CloudSession, endpoint: str = "", device_id: str = "") -> dict:
        return await self._post_action("disable", session, {"endpoint": endpoint, "deviceId": device_id})

    async def sync_reminders(
        self, device_id: str, reminders: Sequence[UpcomingScheduleItem], session: CloudSession
    ) -> dict:
        return await self._post_action(
            "sync_reminders",
            session,
            {"deviceId": device_id, "reminders": [item.to_payload() for item in reminders]},
        )

    async def send_push_test(self, session: CloudSession, device_id: str = "") -> dict:
        return await self._post_action("send_test", session, {"deviceId": device_id} if device_id else None)
