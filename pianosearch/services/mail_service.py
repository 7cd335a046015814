from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..config import get_settings
from ..core.constants import MAIL_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailConfigurationError(Exception):
    pass


class EmailDeliveryError(Exception):
    def __init__(self, message: str, result: "DeliveryResult | None" = None) -> None:
        super().__init__(message)
        self.result = result


@dataclass(slots=True)
class DeliveryResult:
    status_code: int | None
    ok: bool
    response_text: str | None = None


def send_email(
    *,
    to: str,
    subject: str,
    html: str,
    sender: str | None = None,
    reply_to: str | None = None,
) -> DeliveryResult:
    """Send one HTML mail through Resend and report the outcome.

    Non-2xx answers are returned with ``ok=False``; transport failures are
    reported with ``status_code=None``.
    """

    settings = get_settings()
    api_key = settings.resend_api_key
    if not api_key:
        logger.warning("Resend API key is not configured; mail not sent")
        raise EmailConfigurationError("RESEND_API_KEY is not configured")

    body: dict[str, object] = {
        "from": sender or settings.mail_from,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if reply_to:
        body["reply_to"] = reply_to

    with httpx.Client(timeout=MAIL_TIMEOUT_SECONDS) as client:
        try:
            response = client.post(
                RESEND_API_URL,
                json=body,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.exception("Failed to reach mail provider", extra={"subject": subject})
            return DeliveryResult(status_code=None, ok=False, response_text=str(exc))

    if response.is_success:
        return DeliveryResult(status_code=response.status_code, ok=True)
    logger.error(
        "Mail provider rejected message",
        extra={"status_code": response.status_code, "subject": subject},
    )
    return DeliveryResult(
        status_code=response.status_code, ok=False, response_text=response.text
    )
