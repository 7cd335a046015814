from . import (
    account_service,
    billing_service,
    classroom_service,
    contact_service,
    mail_service,
    search_service,
    sitemap_service,
    visibility,
)
__all__ = [
    "account_service",
    "billing_service",
    "classroom_service",
    "contact_service",
    "mail_service",
    "search_service",
    "sitemap_service",
    "visibility",
]
