from .user import User, UserCreate, UserUpdate
from .classroom import (
    Classroom,
    ClassroomCreate,
    ClassroomDraft,
    ClassroomImage,
    ClassroomUpdate,
)
from .subscription import Dashboard, Subscription, SubscriptionStatus
from .billing import CheckoutRequest, RedirectUrl
from .contact import ClassroomContact, ContactResult, GeneralContact
