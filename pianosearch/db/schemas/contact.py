from pydantic import BaseModel, EmailStr, Field, field_validator


class _ContactBase(BaseModel):
    sender_name: str = Field(min_length=1, max_length=255)
    sender_email: EmailStr
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("sender_name", "message", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class ClassroomContact(_ContactBase):
    sender_phone: str | None = Field(default=None, max_length=32)


class GeneralContact(_ContactBase):
    subject: str = Field(min_length=1, max_length=255)


class ContactResult(BaseModel):
    success: bool = True
    message: str
