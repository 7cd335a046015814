import hashlib
import hmac
import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pianosearch.api.routes import auth, billing, classrooms, contact, me, misc
from pianosearch.core import security
from pianosearch.db import models
from pianosearch.db.models.subscription import SubscriptionStatus
from pianosearch.db.session import Base, get_db
from pianosearch.services import storage


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def media_root(monkeypatch, tmp_path):
    root = tmp_path / "media"
    root.mkdir()
    monkeypatch.setattr(storage, "BASE_MEDIA_DIR", root)
    return root


@pytest.fixture()
def api_client(session_factory, media_root):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    test_app = FastAPI()
    for module in (auth, classrooms, me, billing, contact, misc):
        test_app.include_router(module.router, prefix="/api/v1")
    test_app.include_router(misc.seo_router)
    test_app.dependency_overrides[get_db] = override_get_db

    with TestClient(test_app) as client:
        yield client

    test_app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    counter = {"value": 0}

    def factory(email: str | None = None, password: str = "password123", **kwargs):
        counter["value"] += 1
        user = models.User(
            email=email or f"owner{counter['value']}@example.com",
            password_hash=security.get_password_hash(password),
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def make_classroom(db_session):
    def factory(user, **kwargs):
        values = {
            "name": "さくらピアノ教室",
            "description": "初心者から上級者まで丁寧に指導します。",
            "prefecture": "東京都",
            "city": "世田谷区",
            "area": "東京都世田谷区",
            "address": "三軒茶屋1-2-3",
            "email": "sakura@example.com",
            "lesson_types": ["piano"],
            "age_range": "elementary,adult",
            "available_days": ["monday"],
            "price_range": "月4回 8,000円",
            "published": True,
        }
        values.update(kwargs)
        classroom = models.Classroom(user_id=user.id, **values)
        db_session.add(classroom)
        db_session.commit()
        db_session.refresh(classroom)
        return classroom

    return factory


@pytest.fixture()
def make_subscription(db_session):
    def factory(user, status=SubscriptionStatus.active, days_left: float | None = 30, **kwargs):
        now = datetime.now(timezone.utc)
        period_end = now + timedelta(days=days_left) if days_left is not None else None
        subscription = models.Subscription(
            user_id=user.id,
            status=status,
            current_period_start=now - timedelta(days=1),
            current_period_end=period_end,
            plan_type="monthly",
            amount=500,
            currency="jpy",
            **kwargs,
        )
        db_session.add(subscription)
        db_session.commit()
        db_session.refresh(subscription)
        return subscription

    return factory


@pytest.fixture()
def auth_headers(api_client):
    def login(email: str = "owner@example.com", password: str = "password123", name: str = "Owner"):
        response = api_client.post(
            "/api/v1/auth/signup",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        token = response.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return login


@pytest.fixture()
def sign_webhook():
    def sign(payload: bytes, secret: str, timestamp: int | None = None) -> str:
        timestamp = int(time.time()) if timestamp is None else timestamp
        signed = f"{timestamp}.".encode() + payload
        digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    return sign
