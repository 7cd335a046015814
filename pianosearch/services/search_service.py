"""Public classroom search.

Text filters run in SQL; the list-valued filters (lesson type, age groups and
features) are evaluated in Python against the already visible rows because
``lesson_types`` is stored as JSON and ``age_range`` as free text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..core import catalog
from ..db import models
from . import visibility

logger = logging.getLogger(__name__)

AGE_GROUP_KEYWORDS: dict[str, tuple[str, ...]] = {
    "toddler": ("未就学", "幼児"),
    "elementary": ("小学", "子供"),
    "junior_high": ("中学",),
    "high_school": ("高校",),
    "adult": ("大人", "成人"),
    "senior": ("シニア",),
}
AGE_GROUP_ALIASES = {"junior": "junior_high", "high": "high_school"}

LIKE_ESCAPE = "\\"


FEATURE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "beginner": ("初心者", "はじめて"),
    "advanced": ("上級", "専門"),
    "online": ("オンライン", "リモート"),
    "recital": ("発表会",),
    "group": ("グループ", "集団"),
    "individual": ("個人", "マンツーマン"),
    "eurythmics": ("リトミック",),
}


@dataclass(slots=True)
class SearchFilters:
    area: str | None = None
    prefecture: str | None = None
    keyword: str | None = None
    lesson_type: str | None = None
    age_groups: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0


def _age_tokens(age_range: str | None) -> list[str]:
    if not age_range:
        return []
    return [token.strip() for token in age_range.split(",") if token.strip()]


def matches_age_group(age_range: str | None, group: str) -> bool:
    group = AGE_GROUP_ALIASES.get(group, group)
    keywords = AGE_GROUP_KEYWORDS.get(group)
    if keywords is None or not age_range:
        return False
    if group in _age_tokens(age_range):
        return True
    return any(keyword in age_range for keyword in keywords)


def matches_feature(classroom: models.Classroom, feature: str) -> bool:
    keywords = FEATURE_KEYWORDS.get(feature)
    if keywords is None:
        return False
    description = classroom.description or ""
    if feature == "recital" and classroom.trial_lesson_available:
        return True
    if feature == "eurythmics":
        lesson_types = classroom.lesson_types or []
        if "eurythmics" in lesson_types or "リトミック" in lesson_types:
            return True
    return any(keyword in description for keyword in keywords)


def _contains_pattern(text: str) -> str:
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _normalize_lesson_type(value: str) -> str:
    try:
        return catalog.normalize_choice(catalog.LESSON_TYPES, value)
    except ValueError:
        return value.strip()


def matches_filters(classroom: models.Classroom, filters: SearchFilters) -> bool:
    if filters.lesson_type:
        wanted = _normalize_lesson_type(filters.lesson_type)
        if wanted not in (classroom.lesson_types or []):
            return False
    if filters.age_groups and not any(
        matches_age_group(classroom.age_range, group) for group in filters.age_groups
    ):
        return False
    if filters.features and not any(
        matches_feature(classroom, feature) for feature in filters.features
    ):
        return False
    return True


def search_classrooms(
    db: Session, filters: SearchFilters, now: datetime | None = None
) -> list[models.Classroom]:
    query = visibility.visible_classrooms(
        db.query(models.Classroom).options(selectinload(models.Classroom.images)), now
    )
    if filters.area:
        query = query.filter(
            models.Classroom.area.ilike(_contains_pattern(filters.area), escape=LIKE_ESCAPE)
        )
    if filters.prefecture:
        query = query.filter(models.Classroom.prefecture == filters.prefecture)
    keyword = (filters.keyword or "").strip()
    if keyword:
        pattern = _contains_pattern(keyword)
        query = query.filter(
            or_(
                models.Classroom.name.ilike(pattern, escape=LIKE_ESCAPE),
                models.Classroom.description.ilike(pattern, escape=LIKE_ESCAPE),
                models.Classroom.area.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    rows = query.order_by(models.Classroom.created_at.desc(), models.Classroom.id.desc()).all()
    results = [classroom for classroom in rows if matches_filters(classroom, filters)]
    end = filters.offset + filters.limit if filters.limit is not None else None
    page = results[filters.offset:end]
    logger.debug(
        "Classroom search",
        extra={"matched": len(results), "returned": len(page)},
    )
    return page


__all__ = [
    "SearchFilters",
    "matches_age_group",
    "matches_feature",
    "matches_filters",
    "search_classrooms",
]
