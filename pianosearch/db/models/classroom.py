from datetime import datetime
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class Classroom(Base):
    __tablename__ = "classrooms"
    __table_args__ = (
        CheckConstraint(
            "monthly_fee_min IS NULL OR monthly_fee_max IS NULL OR monthly_fee_min <= monthly_fee_max",
            name="ck_classroom_fee_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    prefecture: Mapped[str | None] = mapped_column(String(32), index=True)
    city: Mapped[str | None] = mapped_column(String(128))
    area: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(255))
    website_url: Mapped[str | None] = mapped_column(String(512))
    thumbnail_url: Mapped[str | None] = mapped_column(String(512))
    lesson_types: Mapped[list | None] = mapped_column(JSON)
    age_range: Mapped[str | None] = mapped_column(String(255))
    monthly_fee_min: Mapped[int | None] = mapped_column(Integer)
    monthly_fee_max: Mapped[int | None] = mapped_column(Integer)
    trial_lesson_available: Mapped[bool] = mapped_column(Boolean, default=False)
    parking_available: Mapped[bool] = mapped_column(Boolean, default=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    draft_saved: Mapped[bool] = mapped_column(Boolean, default=False)
    last_draft_saved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    instructor_info: Mapped[str | None] = mapped_column(Text)
    pr_points: Mapped[str | None] = mapped_column(Text)
    available_days: Mapped[list | None] = mapped_column(JSON)
    available_times: Mapped[str | None] = mapped_column(String(255))
    price_range: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    owner = relationship("User", back_populates="classroom")
    images = relationship(
        "ClassroomImage",
        back_populates="classroom",
        order_by="ClassroomImage.position",
        cascade="all, delete-orphan",
    )
