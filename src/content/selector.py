"""基于种子的确定性内容选择

同一个种子在任何设备、任何进程里都选出同一条内容，不保存任何随机状态。
种子里带上粗粒度的时间桶(见 time_bucket)，同一个提醒时机内标题不会来回跳，
时机一过，内容按确定的方式换掉。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from utils import minutes_since_midnight

__all__ = [
    "hash_string", "pick_by_seed", "weighted_pick", "pick_unique_by_seed", "time_bucket",
    "ensure_sentence", "expand_by_four", "expand_level_map_by_four",
    "expand_nested_level_map_by_four", "expand_tips_by_four",
]

T = TypeVar("T")

_DEFAULT_TAILS = ("Rotation variant A.", "Rotation variant B.", "Rotation variant C.")
_DEFAULT_TIP_TAILS = (
    "Keep this in your notes.",
    "Action step: do one tiny step now.",
    "Review this in your next checkup.",
)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def hash_string(value: Any) -> int:
    """32 位多项式滚动哈希 (h = h*31 + code)，按 UTF-16 码元计算，与前端实现结果一致"""
    text = "" if value is None else str(value)
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32(h * 31 + code)
    return abs(h)


def pick_by_seed(pool: Sequence[T] | None, seed: Any) -> T | None:
    if not pool:
        return None
    return pool[hash_string(seed) % len(pool)]


def weighted_pick(options: Iterable[Mapping[str, Any]] | None, seed: Any) -> str | None:
    """options: [{"id": ..., "weight": ...}]，返回命中的 id；没有有效选项时返回 None"""
    safe = []
    for option in options or ():
        try:
            weight = int(option.get("weight", 0))
        except (AttributeError, TypeError, ValueError):
            continue
        if weight > 0:
            safe.append((option.get("id"), weight))
    if not safe:
        return None

    total = sum(weight for _, weight in safe)
    roll = hash_string(seed) % total
    cursor = 0
    for option_id, weight in safe:
        cursor += weight
        if roll < cursor:
            return option_id
    return safe[0][0]


def pick_unique_by_seed(pool: Sequence[T] | None, seed: Any, count: int = 1) -> list[T]:
    remaining = list(pool or ())
    out: list[T] = []
    cursor_seed = str(seed)
    while remaining and len(out) < count:
        idx = hash_string(cursor_seed) % len(remaining)
        out.append(remaining.pop(idx))
        cursor_seed = f"{cursor_seed}|{len(out)}"
    return out


def time_bucket(now: datetime, interval_minutes: int) -> int:
    """当天第几个间隔桶"""
    return minutes_since_midnight(now) // max(1, int(interval_minutes))


def ensure_sentence(text: Any) -> str:
    safe = str(text or "").strip()
    if not safe:
        return ""
    return safe if safe[-1] in ".!?" else f"{safe}."


def _tails(variant_tails: Sequence[str] | None, default: Sequence[str]) -> Sequence[str]:
    if variant_tails and len(variant_tails) >= 3:
        return tuple(variant_tails[:3])
    return default


def expand_by_four(lines: Iterable[str] | None, variant_tails: Sequence[str] | None = None) -> list[str]:
    """每条原句展开成 4 条: 原句 + 3 个固定尾巴"""
    tails = _tails(variant_tails, _DEFAULT_TAILS)
    out: list[str] = []
    for item in lines or ():
        base = str(item or "").strip()
        if not base:
            continue
        sentence = ensure_sentence(base)
        out.append(base)
        out.extend(f"{sentence} {tail}" for tail in tails)
    return out


def expand_level_map_by_four(
    level_map: Mapping[str, Iterable[str]] | None,
    variant_tails: Sequence[str] | None = None,
) -> dict[str, list[str]]:
    return {level: expand_by_four(lines, variant_tails) for level, lines in (level_map or {}).items()}


def expand_nested_level_map_by_four(
    style_map: Mapping[str, Mapping[str, Iterable[str]]] | None,
    variant_tails: Sequence[str] | None = None,
) -> dict[str, dict[str, list[str]]]:
    return {style: expand_level_map_by_four(level_map, variant_tails) for style, level_map in (style_map or {}).items()}


def expand_tips_by_four(
    tips: Iterable[Mapping[str, str]] | None,
    variant_tails: Sequence[str] | None = None,
) -> list[dict[str, str]]:
    tails = _tails(variant_tails, _DEFAULT_TIP_TAILS)
    out: list[dict[str, str]] = []
    for item in tips or ():
        category = str(item.get("category") or "General").strip() or "General"
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        sentence = ensure_sentence(text)
        out.append({"category": category, "text": text})
        out.extend({"category": category, "text": f"{sentence} {tail}"} for tail in tails)
    return out
