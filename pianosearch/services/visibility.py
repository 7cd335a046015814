"""Publication rules combining the publish flag with subscription validity.

A classroom is publicly visible only while it is published *and* its owner
holds at least one subscription whose status is ``active`` and whose current
billing period has not ended yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import exists
from sqlalchemy.orm import Query, Session

from ..core import constants
from ..db import models
from ..db.models.subscription import SubscriptionStatus


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_subscription(subscription: models.Subscription, now: datetime | None = None) -> bool:
    now = _as_utc(now or _utc_now())
    if subscription.status != SubscriptionStatus.active:
        return False
    if subscription.current_period_end is None:
        return False
    return _as_utc(subscription.current_period_end) > now


def should_show_classroom(
    classroom: models.Classroom,
    subscriptions: Iterable[models.Subscription] | None,
    now: datetime | None = None,
) -> bool:
    if classroom.published is not True:
        return False
    if not subscriptions:
        return False
    return any(is_valid_subscription(subscription, now) for subscription in subscriptions)


def valid_subscription_clause(now: datetime):
    """SQL counterpart of :func:`is_valid_subscription` correlated to ``Classroom``."""

    return exists().where(
        models.Subscription.user_id == models.Classroom.user_id,
        models.Subscription.status == SubscriptionStatus.active,
        models.Subscription.current_period_end.is_not(None),
        models.Subscription.current_period_end > now,
    )


def visible_classrooms(query: Query, now: datetime | None = None) -> Query:
    now = now or _utc_now()
    return query.filter(models.Classroom.published.is_(True)).filter(
        valid_subscription_clause(now)
    )


def user_subscriptions(db: Session, user_id: int) -> list[models.Subscription]:
    return (
        db.query(models.Subscription)
        .filter(models.Subscription.user_id == user_id)
        .order_by(models.Subscription.created_at.desc(), models.Subscription.id.desc())
        .all()
    )


def publish_block_reason(
    subscriptions: Iterable[models.Subscription] | None,
    now: datetime | None = None,
) -> str | None:
    items = list(subscriptions or [])
    if not items:
        return constants.NO_SUBSCRIPTION
    if any(is_valid_subscription(subscription, now) for subscription in items):
        return None
    if any(subscription.status == SubscriptionStatus.active for subscription in items):
        return constants.EXPIRED_SUBSCRIPTION
    return constants.INACTIVE_SUBSCRIPTION


@dataclass(slots=True)
class SubscriptionSummary:
    has_active_subscription: bool
    subscription_end_date: datetime | None
    can_publish: bool
    plan_type: str | None


def subscription_status(
    db: Session, user: models.User, now: datetime | None = None
) -> SubscriptionSummary:
    valid = [
        subscription
        for subscription in user_subscriptions(db, user.id)
        if is_valid_subscription(subscription, now)
    ]
    if not valid:
        return SubscriptionSummary(
            has_active_subscription=False,
            subscription_end_date=None,
            can_publish=False,
            plan_type=None,
        )
    latest = max(valid, key=lambda subscription: _as_utc(subscription.current_period_end))
    return SubscriptionSummary(
        has_active_subscription=True,
        subscription_end_date=_as_utc(latest.current_period_end),
        can_publish=True,
        plan_type=latest.plan_type,
    )


def listing_status(
    classroom: models.Classroom | None,
    subscriptions: Iterable[models.Subscription] | None,
    now: datetime | None = None,
) -> str:
    if classroom is None:
        return constants.LISTING_UNREGISTERED
    items = list(subscriptions or [])
    if should_show_classroom(classroom, items, now):
        return constants.LISTING_ACTIVE
    if publish_block_reason(items, now) is not None:
        return constants.LISTING_UNPAID
    return constants.LISTING_SUSPENDED


__all__ = [
    "is_valid_subscription",
    "should_show_classroom",
    "valid_subscription_clause",
    "visible_classrooms",
    "user_subscriptions",
    "publish_block_reason",
    "SubscriptionSummary",
    "subscription_status",
    "listing_status",
]
