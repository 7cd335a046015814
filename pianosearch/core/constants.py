"""Common application-wide constants."""

MONTHLY_PLAN = "monthly"

# Reasons a classroom cannot be published, mapped to owner-facing messages
NO_SUBSCRIPTION = "no_subscription"
EXPIRED_SUBSCRIPTION = "expired_subscription"
INACTIVE_SUBSCRIPTION = "inactive_subscription"

SUBSCRIPTION_ERROR_MESSAGES = {
    NO_SUBSCRIPTION: "この機能を利用するには有料プランの契約が必要です。",
    EXPIRED_SUBSCRIPTION: "サブスクリプションの有効期限が切れています。有料プランを更新してください。",
    INACTIVE_SUBSCRIPTION: "サブスクリプションがアクティブではありません。サポートまでお問い合わせください。",
}

# Dashboard listing states
LISTING_ACTIVE = "active"
LISTING_UNPAID = "unpaid"
LISTING_SUSPENDED = "suspended"
LISTING_UNREGISTERED = "unregistered"

# Seconds a Stripe webhook signature timestamp stays acceptable
STRIPE_SIGNATURE_TOLERANCE = 300

MAIL_TIMEOUT_SECONDS = 10

SITEMAP_STATIC_PAGES = (
    ("/", "1.0", "daily"),
    ("/search", "0.9", "daily"),
    ("/about", "0.5", "monthly"),
    ("/contact", "0.5", "monthly"),
    ("/terms", "0.3", "yearly"),
    ("/privacy", "0.3", "yearly"),
)

SITEMAP_SEARCH_PAGES = (
    ("/search?prefecture=東京都", "0.8", "weekly"),
    ("/search?prefecture=神奈川県", "0.8", "weekly"),
    ("/search?prefecture=大阪府", "0.8", "weekly"),
    ("/search?prefecture=愛知県", "0.8", "weekly"),
    ("/search?prefecture=埼玉県", "0.7", "weekly"),
    ("/search?prefecture=千葉県", "0.7", "weekly"),
    ("/search?prefecture=兵庫県", "0.7", "weekly"),
    ("/search?prefecture=北海道", "0.7", "weekly"),
    ("/search?prefecture=福岡県", "0.7", "weekly"),
    ("/search?lesson_type=piano", "0.8", "weekly"),
    ("/search?lesson_type=eurythmics", "0.8", "weekly"),
    ("/search?prefecture=東京都&lesson_type=piano", "0.9", "weekly"),
    ("/search?prefecture=東京都&lesson_type=eurythmics", "0.9", "weekly"),
    ("/search?prefecture=神奈川県&lesson_type=piano", "0.8", "weekly"),
    ("/search?prefecture=大阪府&lesson_type=piano", "0.8", "weekly"),
)


__all__ = [
    "MONTHLY_PLAN",
    "NO_SUBSCRIPTION",
    "EXPIRED_SUBSCRIPTION",
    "INACTIVE_SUBSCRIPTION",
    "SUBSCRIPTION_ERROR_MESSAGES",
    "LISTING_ACTIVE",
    "LISTING_UNPAID",
    "LISTING_SUSPENDED",
    "LISTING_UNREGISTERED",
    "STRIPE_SIGNATURE_TOLERANCE",
    "MAIL_TIMEOUT_SECONDS",
    "SITEMAP_STATIC_PAGES",
    "SITEMAP_SEARCH_PAGES",
]
