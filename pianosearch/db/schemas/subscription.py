from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ..models.subscription import SubscriptionStatus as SubscriptionState
from .classroom import Classroom


class Subscription(BaseModel):
    id: int
    status: SubscriptionState
    plan_type: str
    amount: int
    currency: str
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class SubscriptionStatus(BaseModel):
    has_active_subscription: bool
    subscription_end_date: datetime | None = None
    can_publish: bool
    plan_type: str | None = None

    class Config:
        from_attributes = True


class Dashboard(BaseModel):
    listing_status: str
    classroom: Classroom | None = None
    subscription: SubscriptionStatus
