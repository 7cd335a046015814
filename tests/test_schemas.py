import pytest
from pydantic import ValidationError

from pianosearch.db import schemas


def _registration(**overrides):
    payload = {
        "name": " さくらピアノ教室 ",
        "description": "初心者から上級者まで丁寧に指導します。",
        "prefecture": "東京都",
        "city": "世田谷区",
        "address": "三軒茶屋1-2-3",
        "email": "sakura@example.com",
        "lesson_types": ["ピアノ", "eurythmics"],
        "target_ages": ["elementary", "大人"],
        "available_days": ["monday", "土曜日"],
        "price_range": "月4回 8,000円",
        "monthly_fee_min": 6000,
        "monthly_fee_max": 9000,
    }
    payload.update(overrides)
    return payload


def test_registration_normalizes_choices_and_strips_text():
    classroom = schemas.ClassroomCreate(**_registration())

    assert classroom.name == "さくらピアノ教室"
    assert classroom.lesson_types == ["piano", "eurythmics"]
    assert classroom.target_ages == ["elementary", "adult"]
    assert classroom.available_days == ["monday", "saturday"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"description": "短い説明"},
        {"address": ""},
        {"email": "not-an-email"},
        {"lesson_types": []},
        {"target_ages": ["infant"]},
        {"available_days": []},
        {"website_url": "ftp://example.com"},
        {"monthly_fee_min": 10000, "monthly_fee_max": 5000},
    ],
)
def test_registration_rejects_invalid_values(overrides):
    with pytest.raises(ValidationError):
        schemas.ClassroomCreate(**_registration(**overrides))


def test_registration_accepts_https_website():
    classroom = schemas.ClassroomCreate(**_registration(website_url="https://sakura.example.com"))
    assert classroom.website_url == "https://sakura.example.com"


def test_draft_only_requires_name():
    draft = schemas.ClassroomDraft(name="下書き教室")
    assert draft.model_dump(exclude_unset=True) == {"name": "下書き教室"}

    with pytest.raises(ValidationError):
        schemas.ClassroomDraft(description="名前がありません")


def test_update_keeps_unset_flags_out():
    update = schemas.ClassroomUpdate(city="目黒区")
    assert update.model_dump(exclude_unset=True) == {"city": "目黒区"}


def test_update_rejects_null_name():
    with pytest.raises(ValidationError):
        schemas.ClassroomUpdate(name=None)
    with pytest.raises(ValidationError):
        schemas.ClassroomUpdate(name="   ")


def test_user_create_lowercases_email_and_checks_password():
    user = schemas.UserCreate(email=" Owner@Example.COM ", password="password123", name="山田")
    assert user.email == "owner@example.com"

    with pytest.raises(ValidationError):
        schemas.UserCreate(email="owner@example.com", password="short", name="山田")


def test_contact_requires_message():
    with pytest.raises(ValidationError):
        schemas.ClassroomContact(sender_name="山田", sender_email="a@example.com", message="   ")

    contact = schemas.GeneralContact(
        sender_name=" 山田 ",
        sender_email="a@example.com",
        subject="掲載について",
        message="質問があります",
    )
    assert contact.sender_name == "山田"
