import asyncio

import pytest
from fastapi.testclient import TestClient

import storage.db_config as db_config
from conftest import run
from relay.app import create_app
from relay.http_server import build_server, main_loop
from relay.schemas import sanitize_reminders
from relay.webpush import PushResult
from storage import push_subscriptions

USER = {"Authorization": "Bearer tok-1"}
ENDPOINT_A = "https://push.example.com/a"
ENDPOINT_B = "https://push.example.com/b"


class FakeSender:
    def __init__(self):
        self.calls = []
        self.results = {}

    async def __call__(self, subscription, payload):
        self.calls.append((subscription, payload))
        return self.results.get(subscription.get("endpoint"), PushResult(ok=True, status_code=201))


@pytest.fixture
def relay(tmp_path):
    sender = FakeSender()
    app = create_app(
        send_push=sender,
        user_tokens={"tok-1": "user-1", "tok-2": "user-2"},
        cron_secret="cron-secret",
        admin_token="admin-token",
    )
    with TestClient(app) as client:
        client.portal.call(db_config.init_db, str(tmp_path / "relay.db"))
        try:
            yield client, sender
        finally:
            client.portal.call(db_config.close_db)


def action(client, body, headers=USER):
    return client.post("/functions/v1/push-subscriptions", json=body, headers=headers)


def register(client, device_id, endpoint, headers=USER):
    return action(client, {
        "action": "upsert",
        "deviceId": device_id,
        "subscription": {"endpoint": endpoint, "keys": {"p256dh": "pk", "auth": "ak"}, "expirationTime": None},
        "userAgent": "pytest",
        "platform": "python",
        "appBaseUrl": "/peggy/",
    }, headers)


def test_health_endpoints(relay):
    client, _ = relay
    assert client.get("/healthz").text == "ok"
    health = client.get("/api/v1/health").json()
    assert health["status"] == "ok"
    assert health["db_connected"] is True


def test_metrics_requires_admin_token(relay):
    client, _ = relay
    assert client.get("/api/v1/metrics").status_code == 401
    response = client.get("/api/v1/metrics", headers={"Authorization": "Bearer admin-token"})
    assert response.status_code == 200
    assert response.json()["components"]["db"]["connected"] is True


def test_metrics_unavailable_without_admin_token():
    app = create_app(send_push=FakeSender(), user_tokens={}, cron_secret="", admin_token="")
    with TestClient(app) as client:
        assert client.get("/api/v1/metrics", headers={"Authorization": "Bearer x"}).status_code == 503


def test_rejects_unknown_user(relay):
    client, _ = relay
    assert action(client, {"action": "upsert"}, headers={}).status_code == 401
    assert action(client, {"action": "upsert"}, headers={"Authorization": "Bearer nope"}).status_code == 401


def test_upsert_and_reupsert_same_device(relay):
    client, _ = relay
    first = register(client, "dev-1", ENDPOINT_A)
    assert first.status_code == 200
    body = first.json()
    assert body["ok"] is True
    assert body["subscription"]["endpoint"] == ENDPOINT_A
    assert body["subscription"]["enabled"] is True

    second = register(client, "dev-1", ENDPOINT_B)
    assert second.json()["subscription"]["id"] == body["subscription"]["id"]
    row = client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-1")
    assert row.endpoint == ENDPOINT_B
    assert row.subscription["keys"] == {"p256dh": "pk", "auth": "ak"}


def test_upsert_with_flat_fields_and_invalid_payload(relay):
    client, _ = relay
    flat = action(client, {"action": "upsert", "deviceId": "dev-2", "endpoint": ENDPOINT_A, "p256dh": "pk", "auth": "ak"})
    assert flat.status_code == 200

    invalid = action(client, {"action": "upsert", "deviceId": "dev-3", "endpoint": ENDPOINT_A})
    assert invalid.status_code == 400
    assert invalid.json() == {"error": "Invalid subscription payload."}


def test_unsupported_action(relay):
    client, _ = relay
    response = action(client, {"action": "explode"})
    assert response.status_code == 400
    assert response.json() == {"error": "Unsupported action."}


def test_sync_reminders_sanitizes_and_caps(relay):
    client, _ = relay
    register(client, "dev-1", ENDPOINT_A)
    assert action(client, {"action": "sync_reminders", "reminders": []}).json() == {"error": "Missing deviceId."}

    reminders = [
        {"type": "supp", "level": "urgent", "notificationTitle": "T" * 200, "notificationBody": "Body",
         "tag": f"supp-{i}", "fireAt": "2024-01-08T23:00:00.000Z", "priorityScore": "5"}
        for i in range(14)
    ]
    response = action(client, {"action": "sync_reminders", "deviceId": "dev-1", "reminders": reminders})
    assert response.json() == {"ok": True, "synced": 12, "updated": 1}

    row = client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-1")
    assert len(row.pending_reminders) == 12
    assert len(row.pending_reminders[0]["title"]) == 120
    assert row.pending_reminders[0]["priorityScore"] == 5.0

    cleared = action(client, {"action": "sync_reminders", "deviceId": "dev-1", "reminders": []})
    assert cleared.json()["synced"] == 0
    assert client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-1").pending_reminders == []


def test_sanitize_reminders_defaults():
    [item] = sanitize_reminders(["not-an-object"])
    assert item == {
        "type": "general", "level": "gentle", "title": "", "body": "", "tag": "", "fireAt": "", "priorityScore": 0.0,
    }


def test_disable_by_endpoint(relay):
    client, _ = relay
    register(client, "dev-1", ENDPOINT_A)
    register(client, "dev-2", ENDPOINT_B)
    assert action(client, {"action": "disable", "endpoint": ENDPOINT_A}).json() == {"ok": True, "updated": 1}
    row = client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-1")
    assert row.enabled is False
    other = client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-2")
    assert other.enabled is True


def test_send_test_disables_gone_subscriptions(relay):
    client, sender = relay
    register(client, "dev-1", ENDPOINT_A)
    register(client, "dev-2", ENDPOINT_B)
    sender.results[ENDPOINT_B] = PushResult(ok=False, status_code=410, message="Gone")

    body = action(client, {"action": "send_test"}).json()
    assert body["sent"] == 1
    assert body["total"] == 2
    assert body["stale"] == 1
    assert body["failed"] == 1
    assert body["errors"] == ["status=410 Gone"]
    assert body["targetDeviceId"] is None
    assert body["fallbackUsed"] is False
    assert sender.calls[0][1]["title"] == "Peggy test notification"
    assert client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-2").enabled is False


def test_send_test_falls_back_when_device_unknown(relay):
    client, sender = relay
    register(client, "dev-1", ENDPOINT_A)
    body = action(client, {"action": "send_test", "deviceId": "missing"}).json()
    assert body["fallbackUsed"] is True
    assert body["targetDeviceId"] == "missing"
    assert body["sent"] == 1

    # 其他用户的设备不会被选中
    other = action(client, {"action": "send_test"}, headers={"Authorization": "Bearer tok-2"}).json()
    assert other["total"] == 0


def test_dispatch_requires_cron_secret(relay):
    client, sender = relay
    register(client, "dev-1", ENDPOINT_A)
    action(client, {
        "action": "sync_reminders",
        "deviceId": "dev-1",
        "reminders": [
            {"type": "work", "level": "nudge", "notificationTitle": "Attendance", "tag": "work-1",
             "fireAt": "2020-01-01T00:00:00.000Z"},
        ],
    })

    assert client.post("/functions/v1/push-dispatch").status_code == 401
    assert client.post("/functions/v1/push-dispatch", headers={"x-push-cron-secret": "wrong"}).status_code == 401

    response = client.post("/functions/v1/push-dispatch", headers={"x-push-cron-secret": "cron-secret"})
    assert response.status_code == 200
    result = response.json()
    assert result["ok"] is True
    assert result["scanned"] == 1
    assert result["sent"] == 1
    assert sender.calls[-1][1]["title"] == "Attendance"
    assert client.portal.call(push_subscriptions.get_subscription, "user-1", "dev-1").pending_reminders == []


def test_embedded_server_leaves_signals_to_host():
    app = create_app(send_push=FakeSender(), user_tokens={}, cron_secret="", admin_token="")
    server = build_server(app, "127.0.0.1", 8799)
    assert server.config.host == "127.0.0.1"
    assert server.config.port == 8799
    assert server.config.access_log is False
    assert server.install_signal_handlers() is None


def test_main_loop_returns_after_shutdown():
    async def scenario():
        shutdown = asyncio.Event()
        shutdown.set()
        await asyncio.wait_for(main_loop(shutdown, send_push=FakeSender(), host="127.0.0.1", port=0), timeout=5)

    run(scenario())
