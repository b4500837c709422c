"""日志模块

级别支持: TRACE/DEBUG/INFO/WARNING/ERROR/CRITICAL (兼容别名 FATAL -> CRITICAL)

使用：进程入口先调用 setup_logging 配置日志，之后各模块直接 `from logger import logger`。
需要区分组件时使用 get_logger("scheduler")，日志行会带上组件名。
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal, Union

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FATAL"]

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<magenta>{extra[component]:<9}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[component]} | "
    "{name}:{function}:{line} - {message}"
)

_LEVEL_ALIAS = {"FATAL": "CRITICAL"}
_DEFAULT_COMPONENT = "peggy"

# 未调用 setup_logging 时(例如测试)，格式串里的 extra[component] 也要有值
logger.configure(extra={"component": _DEFAULT_COMPONENT})


def _normalize_level(level: Union[str, LogLevel]) -> str:
    return _LEVEL_ALIAS.get(str(level).upper(), str(level).upper())


def _file_sink(path: Path, *, level: str, retention: str) -> dict:
    return {
        "sink": path,
        "level": level,
        "format": FILE_FORMAT,
        "rotation": "10 MB",
        "retention": retention,
        "compression": "zip",
        "encoding": "utf-8",
    }


def setup_logging(
    log_level: LogLevel,
    log_file: Union[str, Path],
    console_level: LogLevel = "INFO",
) -> None:
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    error_log_file = log_file.with_name(f"{log_file.stem}_error{log_file.suffix}")

    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": _normalize_level(console_level),
                "format": CONSOLE_FORMAT,
                "colorize": True,
            },
            _file_sink(log_file, level=_normalize_level(log_level), retention="30 days"),
            _file_sink(error_log_file, level="ERROR", retention="90 days"),
        ],
        extra={"component": _DEFAULT_COMPONENT},
    )


def get_logger(component: str | None = None):
    """返回全局 logger；传入 component 时返回绑定了组件名的 logger。"""
    if not component:
        return logger
    return logger.bind(component=component)


__all__ = ["setup_logging", "get_logger", "logger"]
