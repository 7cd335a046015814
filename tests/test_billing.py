import json
from datetime import datetime, timedelta, timezone

import pytest

from pianosearch.config import Settings, get_settings
from pianosearch.db import models
from pianosearch.db.models.payment_history import PaymentStatus
from pianosearch.db.models.subscription import SubscriptionStatus
from pianosearch.services import billing_service, visibility
from pianosearch.services.payments import (
    PaymentGatewayError,
    StubGateway,
    WebhookSignatureError,
    get_gateway,
)


class RecordingGateway(StubGateway):
    def __init__(self, customer_id=None, fail=False):
        super().__init__(Settings())
        self.customer_id = customer_id
        self.fail = fail
        self.checkouts = []
        self.portals = []

    def find_customer_id(self, email):
        return self.customer_id

    def create_checkout_session(self, **kwargs):
        self.checkouts.append(kwargs)
        return {"id": "cs_test", "url": "https://checkout.stripe.test/cs_test"}

    def create_portal_session(self, customer_id, return_url):
        self.portals.append((customer_id, return_url))
        return {"id": "bps_test", "url": "https://billing.stripe.test/session"}

    def retrieve_subscription(self, subscription_id):
        if self.fail:
            raise PaymentGatewayError("unreachable")
        return super().retrieve_subscription(subscription_id)


def _event(event_type, obj, event_id="evt_1"):
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode()


def _checkout_completed(user_id, event_id="evt_checkout", subscription_id="sub_123"):
    return _event(
        "checkout.session.completed",
        {
            "id": "cs_123",
            "customer": "cus_123",
            "subscription": subscription_id,
            "payment_intent": "pi_123",
            "amount_total": 500,
            "currency": "jpy",
            "metadata": {"user_id": str(user_id), "plan_type": "monthly"},
        },
        event_id,
    )


def test_checkout_uses_existing_customer_and_dashboard_urls(db_session, make_user):
    user = make_user(email="pay@example.com")
    gateway = RecordingGateway(customer_id="cus_existing")

    url = billing_service.create_checkout(
        db_session, user, "monthly", "https://piano.example/", gateway=gateway
    )

    assert url == "https://checkout.stripe.test/cs_test"
    call = gateway.checkouts[0]
    assert call["customer_id"] == "cus_existing"
    assert call["amount"] == 500
    assert call["currency"] == "jpy"
    assert call["success_url"] == "https://piano.example/dashboard?success=true"
    assert call["cancel_url"] == "https://piano.example/dashboard?canceled=true"
    assert call["metadata"] == {"user_id": str(user.id), "plan_type": "monthly"}


def test_checkout_rejects_unknown_plan(db_session, make_user):
    with pytest.raises(billing_service.UnknownPlan):
        billing_service.create_checkout(
            db_session, make_user(), "yearly", "https://piano.example", gateway=RecordingGateway()
        )


def test_checkout_endpoint_with_stub_gateway(api_client, auth_headers):
    headers = auth_headers()
    response = api_client.post(
        "/api/v1/billing/checkout",
        json={"plan": "monthly"},
        headers={**headers, "Origin": "https://piano.example"},
    )
    assert response.status_code == 200
    assert response.json()["url"] == "https://piano.example/dashboard?success=true"

    invalid = api_client.post("/api/v1/billing/checkout", json={"plan": "weekly"}, headers=headers)
    assert invalid.status_code == 422


def test_portal_requires_active_subscription(db_session, make_user, make_subscription):
    user = make_user()
    gateway = RecordingGateway()
    with pytest.raises(billing_service.SubscriptionNotFound):
        billing_service.create_portal(db_session, user, "https://piano.example", gateway=gateway)

    make_subscription(user)
    with pytest.raises(billing_service.MissingCustomer):
        billing_service.create_portal(db_session, user, "https://piano.example", gateway=gateway)


def test_portal_returns_session_url(db_session, make_user, make_subscription):
    user = make_user()
    make_subscription(user, stripe_customer_id="cus_portal")
    gateway = RecordingGateway()

    url = billing_service.create_portal(db_session, user, "https://piano.example", gateway=gateway)

    assert url == "https://billing.stripe.test/session"
    assert gateway.portals == [("cus_portal", "https://piano.example/dashboard")]


def test_portal_endpoint_without_subscription(api_client, auth_headers):
    response = api_client.post("/api/v1/billing/portal", headers=auth_headers())
    assert response.status_code == 404


def test_checkout_completed_creates_subscription_and_payment(db_session, make_user):
    user = make_user()

    result = billing_service.handle_webhook(
        db_session, _checkout_completed(user.id), None, gateway=RecordingGateway()
    )

    assert result == billing_service.PROCESSED
    subscription = db_session.query(models.Subscription).one()
    assert subscription.user_id == user.id
    assert subscription.status == SubscriptionStatus.active
    assert subscription.stripe_customer_id == "cus_123"
    assert subscription.stripe_subscription_id == "sub_123"
    assert subscription.amount == 500
    assert subscription.plan_type == "monthly"
    assert visibility.is_valid_subscription(subscription)

    payment = db_session.query(models.PaymentHistory).one()
    assert payment.status == PaymentStatus.succeeded
    assert payment.amount == 500
    assert payment.subscription_id == subscription.id
    assert payment.stripe_payment_intent_id == "pi_123"


def test_duplicate_events_are_acknowledged_once(db_session, make_user):
    user = make_user()
    gateway = RecordingGateway()
    payload = _checkout_completed(user.id)

    assert billing_service.handle_webhook(db_session, payload, None, gateway=gateway) == billing_service.PROCESSED
    assert billing_service.handle_webhook(db_session, payload, None, gateway=gateway) == billing_service.DUPLICATE

    assert db_session.query(models.PaymentHistory).count() == 1
    assert db_session.query(models.ProcessedStripeEvent).count() == 1


def test_repeated_checkout_upserts_subscription(db_session, make_user):
    user = make_user()
    gateway = RecordingGateway()
    billing_service.handle_webhook(db_session, _checkout_completed(user.id, "evt_a"), None, gateway=gateway)
    billing_service.handle_webhook(db_session, _checkout_completed(user.id, "evt_b"), None, gateway=gateway)

    assert db_session.query(models.Subscription).count() == 1
    assert db_session.query(models.PaymentHistory).count() == 2


def test_invoice_paid_refreshes_period(db_session, make_user, make_subscription):
    user = make_user()
    subscription = make_subscription(
        user, status=SubscriptionStatus.past_due, days_left=-1, stripe_subscription_id="sub_inv"
    )

    billing_service.handle_webhook(
        db_session,
        _event("invoice.payment_succeeded", {"id": "in_1", "subscription": "sub_inv"}, "evt_inv"),
        None,
        gateway=RecordingGateway(),
    )

    db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.active
    assert visibility.is_valid_subscription(subscription)


def test_subscription_updated_syncs_status(db_session, make_user, make_subscription):
    user = make_user()
    subscription = make_subscription(user, stripe_subscription_id="sub_upd")
    period_end = int((datetime.now(timezone.utc) + timedelta(days=40)).timestamp())

    billing_service.handle_webhook(
        db_session,
        _event(
            "customer.subscription.updated",
            {"id": "sub_upd", "status": "past_due", "current_period_end": period_end},
            "evt_upd",
        ),
        None,
        gateway=RecordingGateway(),
    )

    db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.past_due
    assert not visibility.is_valid_subscription(subscription)


def test_subscription_deleted_cancels_and_unpublishes(
    db_session, make_user, make_subscription, make_classroom
):
    user = make_user()
    subscription = make_subscription(user, stripe_subscription_id="sub_del")
    classroom = make_classroom(user, published=True)

    billing_service.handle_webhook(
        db_session,
        _event("customer.subscription.deleted", {"id": "sub_del"}, "evt_del"),
        None,
        gateway=RecordingGateway(),
    )

    db_session.refresh(subscription)
    db_session.refresh(classroom)
    assert subscription.status == SubscriptionStatus.canceled
    assert subscription.canceled_at is not None
    assert classroom.published is False


def test_unhandled_event_is_ignored(db_session):
    result = billing_service.handle_webhook(
        db_session,
        _event("charge.refunded", {"id": "ch_1"}, "evt_ignored"),
        None,
        gateway=RecordingGateway(),
    )
    assert result == billing_service.IGNORED
    assert db_session.query(models.ProcessedStripeEvent).count() == 1


def test_gateway_failure_is_reported_and_not_recorded(db_session, make_user):
    user = make_user()
    with pytest.raises(billing_service.BillingError):
        billing_service.handle_webhook(
            db_session, _checkout_completed(user.id), None, gateway=RecordingGateway(fail=True)
        )
    assert db_session.query(models.ProcessedStripeEvent).count() == 0


def test_webhook_endpoint_verifies_signature(api_client, make_user, monkeypatch, sign_webhook):
    monkeypatch.setattr(get_settings(), "stripe_webhook_secret", "whsec_test")
    user = make_user()
    payload = _checkout_completed(user.id, "evt_signed")
    signature = sign_webhook(payload, "whsec_test")

    bad = api_client.post(
        "/api/v1/billing/webhook",
        content=payload,
        headers={"Stripe-Signature": sign_webhook(payload, "whsec_other")},
    )
    assert bad.status_code == 400

    missing = api_client.post("/api/v1/billing/webhook", content=payload)
    assert missing.status_code == 400

    good = api_client.post(
        "/api/v1/billing/webhook",
        content=payload,
        headers={"Stripe-Signature": signature},
    )
    assert good.status_code == 200
    assert good.json() == {"status": "processed"}


def test_get_gateway_selects_provider():
    assert isinstance(get_gateway(Settings(PAYMENT_PROVIDER="stub")), StubGateway)
    with pytest.raises(ValueError):
        get_gateway(Settings(PAYMENT_PROVIDER="paypal"))


def test_stub_gateway_rejects_malformed_payload():
    with pytest.raises(WebhookSignatureError):
        StubGateway(Settings()).construct_event(b"not json", None)


def test_checkout_with_invalid_user_metadata_is_skipped(db_session):
    payload = _event(
        "checkout.session.completed",
        {
            "id": "cs_bad",
            "customer": "cus_bad",
            "subscription": "sub_bad",
            "metadata": {"user_id": "not-a-number", "plan_type": "monthly"},
        },
        "evt_bad_user",
    )

    result = billing_service.handle_webhook(db_session, payload, None, gateway=RecordingGateway())

    assert result == billing_service.PROCESSED
    assert db_session.query(models.Subscription).count() == 0
    assert db_session.query(models.ProcessedStripeEvent).count() == 1
