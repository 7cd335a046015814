"""Fixed choice lists shown on the registration and search forms."""

from __future__ import annotations

from typing import Iterable, Sequence

Choice = tuple[str, str]

AGE_GROUPS: tuple[Choice, ...] = (
    ("toddler", "幼児（0-6歳）"),
    ("elementary", "小学生"),
    ("junior_high", "中学生"),
    ("high_school", "高校生"),
    ("adult", "大人"),
    ("senior", "シニア"),
)

LESSON_TYPES: tuple[Choice, ...] = (
    ("piano", "ピアノ"),
    ("eurythmics", "リトミック"),
    ("solfege", "ソルフェージュ"),
    ("ensemble", "アンサンブル"),
    ("composition", "作曲"),
)

FEATURES: tuple[Choice, ...] = (
    ("beginner", "初心者歓迎"),
    ("advanced", "上級者向け"),
    ("online", "オンラインレッスン"),
    ("recital", "発表会あり"),
    ("group", "グループレッスン"),
    ("individual", "個人レッスン"),
)

WEEKDAYS: tuple[Choice, ...] = (
    ("monday", "月曜日"),
    ("tuesday", "火曜日"),
    ("wednesday", "水曜日"),
    ("thursday", "木曜日"),
    ("friday", "金曜日"),
    ("saturday", "土曜日"),
    ("sunday", "日曜日"),
)

AGE_GROUPS_MAP = dict(AGE_GROUPS)
LESSON_TYPES_MAP = dict(LESSON_TYPES)
FEATURES_MAP = dict(FEATURES)
WEEKDAYS_MAP = dict(WEEKDAYS)


def normalize_choice(choices: Sequence[Choice], value: str) -> str:
    """Return the choice id for ``value`` given either as an id or a label."""

    candidate = value.strip()
    for choice_id, label in choices:
        if candidate.lower() == choice_id or candidate == label:
            return choice_id
    raise ValueError(f"Unknown choice: {value!r}")


def normalize_choices(choices: Sequence[Choice], values: Iterable[str]) -> list[str]:
    normalized: list[str] = []
    for value in values:
        choice_id = normalize_choice(choices, value)
        if choice_id not in normalized:
            normalized.append(choice_id)
    return normalized


def translate_age_range(age_range: str) -> str:
    tokens = [token.strip() for token in age_range.split(",")]
    return ", ".join(AGE_GROUPS_MAP.get(token, token) for token in tokens)


def translate_lesson_type(lesson_type: str) -> str:
    return LESSON_TYPES_MAP.get(lesson_type, lesson_type)


def translate_day(day: str) -> str:
    return WEEKDAYS_MAP.get(day, day)


def options() -> dict[str, list[dict[str, str]]]:
    def _as_dicts(choices: Sequence[Choice]) -> list[dict[str, str]]:
        return [{"id": choice_id, "label": label} for choice_id, label in choices]

    return {
        "age_groups": _as_dicts(AGE_GROUPS),
        "lesson_types": _as_dicts(LESSON_TYPES),
        "features": _as_dicts(FEATURES),
        "weekdays": _as_dicts(WEEKDAYS),
    }


__all__ = [
    "AGE_GROUPS",
    "LESSON_TYPES",
    "FEATURES",
    "WEEKDAYS",
    "normalize_choice",
    "normalize_choices",
    "translate_age_range",
    "translate_lesson_type",
    "translate_day",
    "options",
]
