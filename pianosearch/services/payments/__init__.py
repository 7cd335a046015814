from .gateway import (
    BasePaymentGateway,
    PaymentGatewayError,
    WebhookSignatureError,
    get_gateway,
    verify_webhook,
)
from .stripe_gateway import StripeGateway
from .stub import StubGateway

__all__ = [
    "BasePaymentGateway",
    "PaymentGatewayError",
    "WebhookSignatureError",
    "get_gateway",
    "verify_webhook",
    "StripeGateway",
    "StubGateway",
]
