from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ...core import catalog


_TEXT_FIELDS = (
    "name",
    "description",
    "prefecture",
    "city",
    "address",
    "phone",
    "email",
    "website_url",
    "thumbnail_url",
    "available_times",
    "price_range",
    "instructor_info",
    "pr_points",
)


class ClassroomFields(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    prefecture: str | None = Field(default=None, max_length=32)
    city: str | None = Field(default=None, max_length=128)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: EmailStr | None = None
    website_url: str | None = Field(default=None, max_length=512)
    thumbnail_url: str | None = Field(default=None, max_length=512)
    lesson_types: list[str] | None = None
    target_ages: list[str] | None = None
    available_days: list[str] | None = None
    available_times: str | None = Field(default=None, max_length=255)
    price_range: str | None = Field(default=None, max_length=255)
    monthly_fee_min: int | None = Field(default=None, ge=0)
    monthly_fee_max: int | None = Field(default=None, ge=0)
    trial_lesson_available: bool = False
    parking_available: bool = False
    instructor_info: str | None = None
    pr_points: str | None = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("website_url")
    @classmethod
    def check_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Invalid URL")
        return value

    @field_validator("lesson_types")
    @classmethod
    def normalize_lesson_types(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        return catalog.normalize_choices(catalog.LESSON_TYPES, value)

    @field_validator("target_ages")
    @classmethod
    def normalize_target_ages(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        return catalog.normalize_choices(catalog.AGE_GROUPS, value)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        return catalog.normalize_choices(catalog.WEEKDAYS, value)

    @model_validator(mode="after")
    def check_fee_range(self):
        if (
            self.monthly_fee_min is not None
            and self.monthly_fee_max is not None
            and self.monthly_fee_min > self.monthly_fee_max
        ):
            raise ValueError("monthly_fee_min must not exceed monthly_fee_max")
        return self


class ClassroomCreate(ClassroomFields):
    name: str = Field(max_length=255)
    description: str = Field(min_length=10)
    prefecture: str = Field(max_length=32)
    city: str = Field(max_length=128)
    address: str = Field(max_length=255)
    email: EmailStr
    lesson_types: list[str] = Field(min_length=1)
    target_ages: list[str] = Field(min_length=1)
    available_days: list[str] = Field(min_length=1)
    price_range: str = Field(max_length=255)


class ClassroomDraft(ClassroomFields):
    name: str = Field(max_length=255)


class ClassroomUpdate(ClassroomFields):
    description: str | None = Field(default=None, min_length=10)
    lesson_types: list[str] | None = Field(default=None, min_length=1)
    target_ages: list[str] | None = Field(default=None, min_length=1)
    available_days: list[str] | None = Field(default=None, min_length=1)
    trial_lesson_available: bool | None = None
    parking_available: bool | None = None

    @field_validator("name")
    @classmethod
    def require_name(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("name cannot be empty")
        return value


class ClassroomImage(BaseModel):
    id: int
    url: str
    filename: str
    position: int


class Classroom(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None = None
    prefecture: str | None = None
    city: str | None = None
    area: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website_url: str | None = None
    thumbnail_url: str | None = None
    image_urls: list[str] = Field(default_factory=list)
    lesson_types: list[str] | None = None
    age_range: str | None = None
    monthly_fee_min: int | None = None
    monthly_fee_max: int | None = None
    trial_lesson_available: bool | None = None
    parking_available: bool | None = None
    published: bool | None = None
    draft_saved: bool | None = None
    last_draft_saved_at: datetime | None = None
    instructor_info: str | None = None
    pr_points: str | None = None
    available_days: list[str] | None = None
    available_times: str | None = None
    price_range: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
