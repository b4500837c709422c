"""推送中继的嵌入式 HTTP 服务

uvicorn 跑在主进程的事件循环里，信号统一交给 main.py；
shutdown_event 置位后让 uvicorn 走正常退出流程。
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import uvicorn
from fastapi import FastAPI

from config.settings import RELAY_HTTP_HOST, RELAY_HTTP_PORT
from logger import logger

from .app import create_app
from .dispatch import SendPush
from .schemas import RuntimeControl


def build_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning", access_log=False))
    server.install_signal_handlers = lambda: None
    return server


async def main_loop(
    shutdown_event: asyncio.Event,
    send_push: SendPush | None = None,
    status_providers: dict[str, Any] | None = None,
    host: str = RELAY_HTTP_HOST,
    port: int = RELAY_HTTP_PORT,
) -> None:
    control = RuntimeControl(shutdown_event=shutdown_event, started_at=time.time())
    server = build_server(create_app(control, send_push, status_providers=status_providers), host, port)

    serving = asyncio.create_task(server.serve())
    stopping = asyncio.create_task(shutdown_event.wait())
    logger.info(f"推送中继监听 http://{host}:{port}")
    try:
        await asyncio.wait({serving, stopping}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        server.should_exit = True
        stopping.cancel()
        await serving
        logger.info(f"推送中继已停止 ({host}:{port})")
