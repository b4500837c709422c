from __future__ import annotations

import hmac

from config.settings import PUSH_CRON_SECRET, RELAY_ADMIN_TOKEN, RELAY_USER_TOKENS
from fastapi import HTTPException, Request
from logger import logger

if not RELAY_ADMIN_TOKEN:
    logger.warning("未配置 RELAY_ADMIN_TOKEN，中继指标 API 将不可访问")


def extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header[:7].lower() == "bearer ":
        return auth_header[7:].strip() or None
    return None


def resolve_user(token: str | None, user_tokens: dict[str, str]) -> str | None:
    if not token:
        return None
    for known, user_id in user_tokens.items():
        if hmac.compare_digest(token, known):
            return user_id
    return None


async def require_user(request: Request) -> str:
    """设备请求：Bearer 令牌换成 user_id"""
    user_tokens = getattr(request.app.state, "user_tokens", RELAY_USER_TOKENS)
    user_id = resolve_user(extract_token(request), user_tokens)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


async def require_cron_secret(request: Request) -> None:
    secret = getattr(request.app.state, "cron_secret", PUSH_CRON_SECRET)
    incoming = request.headers.get("x-push-cron-secret", "")
    if not secret or not hmac.compare_digest(incoming, secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_admin_auth(request: Request) -> dict[str, str]:
    admin_token = getattr(request.app.state, "admin_token", RELAY_ADMIN_TOKEN)
    if not admin_token:
        raise HTTPException(status_code=503, detail="RELAY_ADMIN_TOKEN 未配置")

    token = extract_token(request)
    if token and hmac.compare_digest(token, admin_token):
        return {"auth": "token", "user": "admin-token"}

    raise HTTPException(status_code=401, detail="未授权")
