from sqlalchemy.orm import Session
from ..db import models
from . import security


def normalize_email(email: str) -> str:
    return email.strip().lower()


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    user = db.query(models.User).filter_by(email=normalize_email(email)).first()
    if not user:
        return None
    if not security.verify_password(password, user.password_hash):
        return None
    return user
