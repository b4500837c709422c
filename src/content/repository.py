"""文案仓库

把 phrases.py 里的原始文案展开成选择池，连同补剂目录、宝宝名字、心情窗口一起
作为显式依赖注入到提醒构建器，避免模块级全局状态。测试可以传入更小的池子。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from datamodel import BabyName, MoodWindow, QuickMoodAction, Supplement

from . import phrases
from .selector import (
    expand_by_four,
    expand_level_map_by_four,
    expand_nested_level_map_by_four,
    expand_tips_by_four,
)

__all__ = ["ContentRepository", "coerce_baby_names", "coerce_supplements"]

DEFAULT_STYLE = "taglish"


def coerce_baby_names(entries: Iterable[Any] | None) -> tuple[BabyName, ...]:
    """接受字符串或 {name, kanji, meaning, tier} 字典，丢掉没有名字的条目"""
    out: list[BabyName] = []
    for entry in entries or ():
        if isinstance(entry, BabyName):
            out.append(entry)
            continue
        if isinstance(entry, str):
            if entry.strip():
                out.append(BabyName(name=entry.strip()))
            continue
        if not isinstance(entry, Mapping):
            continue
        name = str(entry.get("name") or "").strip()
        if not name:
            continue
        try:
            tier = int(entry.get("tier") or 2)
        except (TypeError, ValueError):
            tier = 2
        out.append(BabyName(
            name=name,
            kanji=str(entry.get("kanji") or "").strip(),
            meaning=str(entry.get("meaning") or "").strip(),
            tier=tier,
        ))
    return tuple(out)


def coerce_supplements(entries: Iterable[Any] | None) -> tuple[Supplement, ...]:
    out: list[Supplement] = []
    for entry in entries or ():
        if isinstance(entry, Supplement):
            out.append(entry)
            continue
        if not isinstance(entry, Mapping):
            continue
        supp_id = str(entry.get("id") or "").strip()
        if not supp_id:
            continue
        times = entry.get("defaultTimes") or entry.get("default_times") or ()
        out.append(Supplement(
            id=supp_id,
            name=str(entry.get("name") or supp_id).strip(),
            default_times=tuple(str(t) for t in times if t),
        ))
    return tuple(out)


@dataclass
class ContentRepository:
    style_weights: Sequence[Mapping[str, Any]]
    supp_titles: Mapping[str, Sequence[str]]
    supp_styles: Mapping[str, Mapping[str, Sequence[str]]]
    supp_push_lines: Mapping[str, Sequence[str]]
    supp_jokes: Mapping[str, Sequence[str]]
    work_titles: Mapping[str, Sequence[str]]
    work_styles: Mapping[str, Mapping[str, Sequence[str]]]
    work_jokes: Mapping[str, Sequence[str]]
    mood_titles: Mapping[str, Sequence[str]]
    mood_subtitles: Mapping[str, Sequence[str]]
    planner_lines: Mapping[str, Sequence[str]]
    serious_tips: Sequence[Mapping[str, str]]
    witty_tips: Sequence[Mapping[str, str]]
    name_style_lines: Sequence[str]
    name_joke_lines: Sequence[str]
    companion_templates: Sequence[str]
    quick_mood_actions: tuple[QuickMoodAction, ...]
    mood_windows: tuple[MoodWindow, ...]
    supplements: tuple[Supplement, ...] = ()
    boy_names: tuple[BabyName, ...] = ()
    girl_names: tuple[BabyName, ...] = ()
    fallback_name: BabyName = field(default_factory=lambda: BabyName(**phrases.FALLBACK_BABY_NAME))
    default_tip_text: str = phrases.DEFAULT_TIP_TEXT

    @classmethod
    def default(
        cls,
        supplements: Iterable[Any] | None = None,
        boy_names: Iterable[Any] | None = None,
        girl_names: Iterable[Any] | None = None,
    ) -> "ContentRepository":
        tails = phrases.VARIANT_TAILS
        return cls(
            style_weights=tuple(phrases.LANGUAGE_STYLE_WEIGHTS),
            supp_titles=expand_level_map_by_four(phrases.SUPP_TITLE_DATABASE, tails["supp_title"]),
            supp_styles=expand_nested_level_map_by_four(phrases.SUPP_STYLE_LINES, tails["supp_style"]),
            supp_push_lines=expand_level_map_by_four(phrases.SUPP_PUSH_LINES, tails["supp_push"]),
            supp_jokes=expand_level_map_by_four(phrases.SUPP_JOKE_LINES, tails["supp_joke"]),
            work_titles=expand_level_map_by_four(phrases.WORK_TITLE_DATABASE, tails["work_title"]),
            work_styles=expand_nested_level_map_by_four(phrases.WORK_STYLE_LINES, tails["work_style"]),
            work_jokes=expand_level_map_by_four(phrases.WORK_JOKE_LINES, tails["work_joke"]),
            mood_titles=phrases.MOOD_TITLES,
            mood_subtitles=phrases.MOOD_SUBTITLES,
            planner_lines=phrases.PLANNER_EXTRA_LINES,
            serious_tips=expand_tips_by_four(phrases.SERIOUS_TIP_DATABASE, tails["serious_tip"]),
            witty_tips=expand_tips_by_four(phrases.WITTY_TIP_DATABASE, tails["witty_tip"]),
            name_style_lines=expand_by_four(phrases.NAME_STYLE_LINES, tails["name_style"]),
            name_joke_lines=expand_by_four(phrases.NAME_JOKE_LINES, tails["name_joke"]),
            companion_templates=tuple(phrases.COMPANION_SUBTITLE_TEMPLATES),
            quick_mood_actions=tuple(QuickMoodAction(**item) for item in phrases.QUICK_MOOD_ACTIONS),
            mood_windows=tuple(MoodWindow(**item) for item in phrases.MOOD_REMINDER_WINDOWS),
            supplements=coerce_supplements(supplements),
            boy_names=coerce_baby_names(boy_names),
            girl_names=coerce_baby_names(girl_names),
        )

    def style_pool(self, styles: Mapping[str, Mapping[str, Sequence[str]]], style: str | None) -> Mapping[str, Sequence[str]]:
        """某语言风格的分级文案，未知风格回退到 taglish"""
        return styles.get(style or DEFAULT_STYLE) or styles.get(DEFAULT_STYLE) or {}

    def supplement_name(self, supp_id: str) -> str:
        for supp in self.supplements:
            if supp.id == supp_id:
                return supp.name
        return supp_id.replace("_", " ").replace("-", " ").title()

    def resolve_quick_mood(self, code: Any) -> QuickMoodAction | None:
        key = str(code or "").strip().lower()
        for action in self.quick_mood_actions:
            if action.code == key:
                return action
        return None
