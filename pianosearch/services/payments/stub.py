from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any

from .gateway import BasePaymentGateway, parse_event, verify_webhook


class StubGateway(BasePaymentGateway):
    """Offline gateway for local development.

    Checkout and portal sessions point straight back at the success URLs,
    subscriptions are always active for thirty days and webhook payloads are
    accepted unsigned unless a webhook secret is configured.
    """

    def find_customer_id(self, email: str) -> str | None:
        return None

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
        digest = hashlib.sha1(f"{metadata}{customer_email}".encode()).hexdigest()[:16]
        return {
            "id": f"cs_stub_{digest}",
            "url": success_url,
            "amount_total": amount,
            "currency": currency,
            "customer": customer_id,
            "customer_email": customer_email,
            "metadata": metadata,
        }

    def create_portal_session(self, customer_id: str, return_url: str) -> dict[str, Any]:
        return {"id": f"bps_stub_{customer_id}", "url": return_url}

    def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        start = datetime.now(timezone.utc)
        end = start + timedelta(days=30)
        return {
            "id": subscription_id,
            "status": "active",
            "current_period_start": int(start.timestamp()),
            "current_period_end": int(end.timestamp()),
            "items": {
                "data": [
                    {
                        "price": {
                            "unit_amount": self.settings.plan_monthly_amount,
                            "currency": self.settings.plan_currency,
                        }
                    }
                ]
            },
        }

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        if self.settings.stripe_webhook_secret:
            return verify_webhook(payload, signature, self.settings.stripe_webhook_secret)
        return parse_event(payload)
