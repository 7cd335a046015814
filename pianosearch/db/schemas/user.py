from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


class UserBase(BaseModel):
    email: EmailStr
    name: str | None = None
    classroom_name: str | None = None


class UserCreate(UserBase):
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserUpdate(BaseModel):
    name: str | None = None
    classroom_name: str | None = None


class User(UserBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
