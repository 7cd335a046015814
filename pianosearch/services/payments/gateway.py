from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import stripe

from ...config import Settings
from ...core.constants import STRIPE_SIGNATURE_TOLERANCE


class PaymentGatewayError(Exception):
    pass


class WebhookSignatureError(PaymentGatewayError):
    pass


def parse_event(payload: bytes) -> dict[str, Any]:
    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise WebhookSignatureError("Invalid payload") from exc
    if not isinstance(event, dict) or "type" not in event:
        raise WebhookSignatureError("Invalid payload")
    return event


def verify_webhook(
    payload: bytes,
    signature: str | None,
    secret: str,
    tolerance: int = STRIPE_SIGNATURE_TOLERANCE,
) -> dict[str, Any]:
    """Check a ``Stripe-Signature`` header and return the event as a plain dict."""

    if not signature:
        raise WebhookSignatureError("Missing signature header")
    try:
        stripe.Webhook.construct_event(payload, signature, secret, tolerance=tolerance)
    except stripe.SignatureVerificationError as exc:
        raise WebhookSignatureError("Signature verification failed") from exc
    except ValueError as exc:
        raise WebhookSignatureError("Malformed webhook payload or signature") from exc
    return parse_event(payload)


class BasePaymentGateway(ABC):
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def find_customer_id(self, email: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, Any],
        customer_id: str | None = None,
        customer_email: str | None = None,
        interval: str = "month",
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def create_portal_session(self, customer_id: str, return_url: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        raise NotImplementedError


def get_gateway(settings: Settings) -> BasePaymentGateway:
    if settings.payment_provider == "stub":
        from .stub import StubGateway

        return StubGateway(settings)
    if settings.payment_provider == "stripe":
        from .stripe_gateway import StripeGateway

        return StripeGateway(settings)
    raise ValueError(f"Unsupported payment provider {settings.payment_provider}")
