from __future__ import annotations

import logging
from typing import Any

import stripe

from .gateway import (
    BasePaymentGateway,
    PaymentGatewayError,
    WebhookSignatureError,
    verify_webhook,
)

logger = logging.getLogger(__name__)

API_VERSION = "2023-10-16"


def _as_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()


class StripeGateway(BasePaymentGateway):
    """Stripe Checkout, Billing Portal and subscriptions through the Stripe SDK.

    Every call passes the API key explicitly so the module-level
    ``stripe.api_key`` is never touched.
    """

    def _options(self) -> dict[str, Any]:
        secret_key = self.settings.resolve_stripe_key()
        if not secret_key:
            raise PaymentGatewayError("Stripe secret key is not configured")
        return {"api_key": secret_key, "stripe_version": API_VERSION}

    def _call(self, action: str, method, *args: Any, **params: Any) -> dict[str, Any]:
        options = self._options()
        try:
            result = method(*args, **params, **options)
        except stripe.StripeError as exc:
            logger.exception("Stripe request failed", extra={"action": action})
            raise PaymentGatewayError(f"Stripe {action} failed") from exc
        return _as_dict(result)

    def find_customer_id(self, email: str) -> str | None:
        customers = self._call("customer lookup", stripe.Customer.list, email=email, limit=1)
        items = customers.get("data") or []
        if not items:
            return None
        return items[0].get("id")

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
        params: dict[str, Any] = {
            "mode": "subscription",
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": product_name},
                        "unit_amount": amount,
                        "recurring": {"interval": interval},
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email
        logger.info("Creating Stripe checkout session", extra={"metadata": metadata})
        return self._call("checkout session", stripe.checkout.Session.create, **params)

    def create_portal_session(self, customer_id: str, return_url: str) -> dict[str, Any]:
        return self._call(
            "portal session",
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )

    def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        return self._call("subscription lookup", stripe.Subscription.retrieve, subscription_id)

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        secret = self.settings.stripe_webhook_secret
        if not secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        return verify_webhook(payload, signature, secret)
