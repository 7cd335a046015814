"""Subscription checkout, customer portal and Stripe webhook processing."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core import constants
from ..db import models
from ..db.models.payment_history import PaymentStatus
from ..db.models.subscription import SubscriptionStatus
from .payments import BasePaymentGateway, PaymentGatewayError, get_gateway

logger = logging.getLogger(__name__)

DUPLICATE = "duplicate"
IGNORED = "ignored"
PROCESSED = "processed"


class BillingError(Exception):
    pass


class UnknownPlan(BillingError):
    pass


class SubscriptionNotFound(BillingError):
    pass


class MissingCustomer(BillingError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _first_item(stripe_subscription: dict[str, Any]) -> dict[str, Any]:
    items = (stripe_subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _period(stripe_subscription: dict[str, Any]) -> tuple[datetime | None, datetime | None]:
    item = _first_item(stripe_subscription)
    start = stripe_subscription.get("current_period_start") or item.get("current_period_start")
    end = stripe_subscription.get("current_period_end") or item.get("current_period_end")
    return _timestamp(start), _timestamp(end)


def _status(value: str | None) -> SubscriptionStatus | None:
    try:
        return SubscriptionStatus(value)
    except ValueError:
        return None


def _resolve_gateway(gateway: BasePaymentGateway | None) -> BasePaymentGateway:
    return gateway or get_gateway(get_settings())


def create_checkout(
    db: Session,
    user: models.User,
    plan: str,
    origin: str,
    gateway: BasePaymentGateway | None = None,
) -> str:
    if plan != constants.MONTHLY_PLAN:
        raise UnknownPlan(f"Unknown plan {plan}")
    settings = get_settings()
    client = _resolve_gateway(gateway)
    origin = origin.rstrip("/")
    customer_id = client.find_customer_id(user.email)
    session = client.create_checkout_session(
        amount=settings.plan_monthly_amount,
        currency=settings.plan_currency,
        product_name=settings.plan_product_name,
        success_url=f"{origin}/dashboard?success=true",
        cancel_url=f"{origin}/dashboard?canceled=true",
        metadata={"user_id": str(user.id), "plan_type": plan},
        customer_id=customer_id,
        customer_email=user.email,
    )
    logger.info(
        "Checkout session created",
        extra={"user_id": user.id, "session_id": session.get("id")},
    )
    return session["url"]


def create_portal(
    db: Session,
    user: models.User,
    origin: str,
    gateway: BasePaymentGateway | None = None,
) -> str:
    subscription = (
        db.query(models.Subscription)
        .filter(
            models.Subscription.user_id == user.id,
            models.Subscription.status == SubscriptionStatus.active,
        )
        .order_by(models.Subscription.created_at.desc(), models.Subscription.id.desc())
        .first()
    )
    if subscription is None:
        raise SubscriptionNotFound("No active subscription")
    if not subscription.stripe_customer_id:
        raise MissingCustomer("Subscription has no Stripe customer")
    client = _resolve_gateway(gateway)
    session = client.create_portal_session(
        subscription.stripe_customer_id, f"{origin.rstrip('/')}/dashboard"
    )
    return session["url"]


def _find_subscription(db: Session, stripe_subscription_id: str) -> models.Subscription | None:
    return (
        db.query(models.Subscription)
        .filter(models.Subscription.stripe_subscription_id == stripe_subscription_id)
        .first()
    )


def _on_checkout_completed(
    db: Session, session: dict[str, Any], client: BasePaymentGateway
) -> None:
    metadata = session.get("metadata") or {}
    stripe_subscription_id = session.get("subscription")
    user_id = metadata.get("user_id")
    if not stripe_subscription_id or not user_id:
        logger.warning("Checkout session without subscription metadata", extra={"session_id": session.get("id")})
        return
    try:
        user_key = int(user_id)
    except (TypeError, ValueError):
        logger.warning("Checkout session with invalid user id", extra={"user_id": user_id})
        return
    user = db.get(models.User, user_key)
    if user is None:
        logger.warning("Checkout session for unknown user", extra={"user_id": user_id})
        return
    stripe_subscription = client.retrieve_subscription(stripe_subscription_id)
    period_start, period_end = _period(stripe_subscription)
    price = _first_item(stripe_subscription).get("price") or {}
    plan_type = metadata.get("plan_type") or constants.MONTHLY_PLAN
    currency = (session.get("currency") or price.get("currency") or get_settings().plan_currency).lower()

    subscription = _find_subscription(db, stripe_subscription["id"])
    if subscription is None:
        subscription = models.Subscription(
            user_id=user.id, stripe_subscription_id=stripe_subscription["id"]
        )
        db.add(subscription)
    subscription.status = SubscriptionStatus.active
    subscription.stripe_customer_id = session.get("customer")
    subscription.stripe_payment_intent_id = session.get("payment_intent")
    subscription.plan_type = plan_type
    subscription.amount = price.get("unit_amount") or 0
    subscription.currency = currency
    subscription.current_period_start = period_start
    subscription.current_period_end = period_end
    subscription.canceled_at = None
    db.flush()

    db.add(
        models.PaymentHistory(
            user_id=user.id,
            subscription_id=subscription.id,
            amount=session.get("amount_total") or 0,
            currency=currency,
            status=PaymentStatus.succeeded,
            stripe_payment_intent_id=session.get("payment_intent"),
            description=f"{plan_type}プランの決済完了",
        )
    )
    logger.info(
        "Subscription activated",
        extra={"user_id": user.id, "stripe_subscription_id": stripe_subscription["id"]},
    )


def _invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    if invoice.get("subscription"):
        return invoice["subscription"]
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


def _on_invoice_paid(db: Session, invoice: dict[str, Any], client: BasePaymentGateway) -> None:
    stripe_subscription_id = _invoice_subscription_id(invoice)
    if not stripe_subscription_id:
        return
    stripe_subscription = client.retrieve_subscription(stripe_subscription_id)
    subscription = _find_subscription(db, stripe_subscription["id"])
    if subscription is None:
        logger.warning(
            "Invoice for unknown subscription",
            extra={"stripe_subscription_id": stripe_subscription_id},
        )
        return
    subscription.status = SubscriptionStatus.active
    subscription.current_period_start, subscription.current_period_end = _period(
        stripe_subscription
    )
    subscription.updated_at = _now()


def _on_subscription_updated(db: Session, stripe_subscription: dict[str, Any]) -> None:
    subscription = _find_subscription(db, stripe_subscription.get("id", ""))
    if subscription is None:
        return
    status = _status(stripe_subscription.get("status"))
    if status is not None:
        subscription.status = status
    start, end = _period(stripe_subscription)
    if start is not None:
        subscription.current_period_start = start
    if end is not None:
        subscription.current_period_end = end
    canceled_at = _timestamp(stripe_subscription.get("canceled_at"))
    if canceled_at is not None:
        subscription.canceled_at = canceled_at
    subscription.updated_at = _now()


def _on_subscription_deleted(db: Session, stripe_subscription: dict[str, Any]) -> None:
    subscription = _find_subscription(db, stripe_subscription.get("id", ""))
    if subscription is None:
        return
    now = _now()
    subscription.status = SubscriptionStatus.canceled
    subscription.canceled_at = now
    subscription.updated_at = now
    unpublished = (
        db.query(models.Classroom)
        .filter(
            models.Classroom.user_id == subscription.user_id,
            models.Classroom.published.is_(True),
        )
        .update({models.Classroom.published: False}, synchronize_session=False)
    )
    logger.info(
        "Subscription canceled",
        extra={"user_id": subscription.user_id, "unpublished": unpublished},
    )


def handle_webhook(
    db: Session,
    payload: bytes,
    signature: str | None,
    gateway: BasePaymentGateway | None = None,
) -> str:
    """Verify and apply a webhook event; return how it was handled.

    Raises :class:`WebhookSignatureError` for unverifiable payloads and
    :class:`BillingError` when Stripe cannot be reached while processing.
    """

    client = _resolve_gateway(gateway)
    event = client.construct_event(payload, signature)
    event_id = event.get("id")
    event_type = event["type"]
    if event_id and (
        db.query(models.ProcessedStripeEvent).filter_by(stripe_event_id=event_id).first()
    ):
        logger.info("Duplicate webhook event", extra={"event_id": event_id})
        return DUPLICATE

    data = (event.get("data") or {}).get("object") or {}
    result = PROCESSED
    try:
        if event_type == "checkout.session.completed":
            _on_checkout_completed(db, data, client)
        elif event_type == "invoice.payment_succeeded":
            _on_invoice_paid(db, data, client)
        elif event_type == "customer.subscription.updated":
            _on_subscription_updated(db, data)
        elif event_type == "customer.subscription.deleted":
            _on_subscription_deleted(db, data)
        else:
            result = IGNORED
    except PaymentGatewayError as exc:
        db.rollback()
        raise BillingError(f"Could not process {event_type}") from exc

    if event_id:
        db.add(models.ProcessedStripeEvent(stripe_event_id=event_id, event_type=event_type))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Webhook event processed concurrently", extra={"event_id": event_id})
        return DUPLICATE
    return result


__all__ = [
    "BillingError",
    "UnknownPlan",
    "SubscriptionNotFound",
    "MissingCustomer",
    "create_checkout",
    "create_portal",
    "handle_webhook",
    "DUPLICATE",
    "IGNORED",
    "PROCESSED",
]
