import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..core import security
from ..core.auth import authenticate_user, normalize_email
from ..db import models, schemas

logger = logging.getLogger(__name__)


class AccountError(Exception):
    pass


class EmailAlreadyRegistered(AccountError):
    pass


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter_by(email=normalize_email(email)).first()


def sign_up(db: Session, payload: schemas.UserCreate) -> models.User:
    email = normalize_email(payload.email)
    if get_user_by_email(db, email) is not None:
        raise EmailAlreadyRegistered("Email is already registered")
    user = models.User(
        email=email,
        password_hash=security.get_password_hash(payload.password),
        name=payload.name,
        classroom_name=payload.classroom_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered classroom owner %s", user.id)
    return user


def log_in(db: Session, email: str, password: str) -> tuple[models.User, str] | None:
    user = authenticate_user(db, email, password)
    if user is None:
        return None
    token = security.create_access_token({"sub": str(user.id)})
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return user, token


def update_profile(db: Session, user: models.User, payload: schemas.UserUpdate) -> models.User:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user
