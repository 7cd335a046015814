from .user import User
from .classroom import Classroom
from .classroom_image import ClassroomImage
from .subscription import Subscription, SubscriptionStatus
from .payment_history import PaymentHistory, PaymentStatus
from .processed_stripe_event import ProcessedStripeEvent
from .mail_log import MailLog
