import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("USER_TIMEZONE", "Asia/Tokyo")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from content.repository import ContentRepository  # noqa: E402
from reminders.policy import configure_priority_scores  # noqa: E402
from storage.kv import MemoryKeyValueStore  # noqa: E402

TZ = ZoneInfo("Asia/Tokyo")

SUPPLEMENTS = [
    {"id": "folic", "name": "Folic Acid", "defaultTimes": ["08:00", "20:00"]},
    {"id": "iron", "name": "Iron", "defaultTimes": ["08:00"]},
]
BOY_NAMES = [
    {"name": "Haruto", "kanji": "陽翔", "meaning": "Sun flight", "tier": 1},
    {"name": "Sora", "kanji": "空", "meaning": "Sky", "tier": 1},
    {"name": "Ren", "kanji": "蓮", "meaning": "Lotus", "tier": 1},
    "Kenji",
]
GIRL_NAMES = [
    {"name": "Hana", "kanji": "花", "meaning": "Flower", "tier": 1},
    {"name": "Yui", "kanji": "結衣", "meaning": "Binding clothes", "tier": 1},
    {"name": "Mio", "kanji": "美桜", "meaning": "Beautiful cherry blossom", "tier": 1},
]


def run(coro):
    return asyncio.run(coro)


def local(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


# 2024-01-06 是周六，2024-01-08 是周一
SATURDAY = (2024, 1, 6)
MONDAY = (2024, 1, 8)


@pytest.fixture
def content():
    return ContentRepository.default(supplements=SUPPLEMENTS, boy_names=BOY_NAMES, girl_names=GIRL_NAMES)


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture(autouse=True)
def _reset_priority_scores():
    yield
    configure_priority_scores(None)
