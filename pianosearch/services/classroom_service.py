from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from fastapi import UploadFile
from sqlalchemy.orm import Session, selectinload

from ..core import constants
from ..db import models, schemas
from . import visibility
from .storage import ensure_media_directory, get_media_path, media_url, relative_media_path, remove_media_file

logger = logging.getLogger(__name__)

MAX_IMAGES = 10
_MEDIA_SUBDIR = Path("classrooms")
_FLAG_FIELDS = ("trial_lesson_available", "parking_available")
_REQUIRED_TEXT = ("name", "description", "prefecture", "city", "address", "email", "price_range")
_REQUIRED_LISTS = ("lesson_types", "available_days")
_MIN_DESCRIPTION_LENGTH = 10


class ClassroomError(Exception):
    pass


class ClassroomNotFound(ClassroomError):
    pass


class ClassroomExists(ClassroomError):
    pass


class IncompleteClassroom(ClassroomError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


class PublishError(ClassroomError):
    def __init__(self, reason: str) -> None:
        super().__init__(constants.SUBSCRIPTION_ERROR_MESSAGES[reason])
        self.reason = reason


class InvalidFeeRange(ClassroomError):
    pass


class ImageError(ClassroomError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _compose_area(prefecture: str | None, city: str | None) -> str | None:
    area = f"{prefecture or ''}{city or ''}"
    return area or None


def _apply_fields(classroom: models.Classroom, data: dict[str, Any]) -> None:
    if "target_ages" in data:
        ages = data.pop("target_ages")
        classroom.age_range = ",".join(ages) if ages else None
    for key in _FLAG_FIELDS:
        if key in data and data[key] is None:
            data.pop(key)
    for key, value in data.items():
        setattr(classroom, key, value)
    if "prefecture" in data or "city" in data:
        classroom.area = _compose_area(classroom.prefecture, classroom.city)


def missing_required_fields(classroom: models.Classroom) -> list[str]:
    missing = [name for name in _REQUIRED_TEXT if not getattr(classroom, name)]
    if classroom.description and len(classroom.description) < _MIN_DESCRIPTION_LENGTH:
        missing.append("description")
    missing.extend(name for name in _REQUIRED_LISTS if not getattr(classroom, name))
    if not classroom.age_range:
        missing.append("target_ages")
    return sorted(set(missing))


def _ensure_consistent_fees(db: Session, classroom: models.Classroom) -> None:
    low, high = classroom.monthly_fee_min, classroom.monthly_fee_max
    if low is not None and high is not None and low > high:
        db.rollback()
        raise InvalidFeeRange("monthly_fee_min must not exceed monthly_fee_max")


def _ensure_publishable_content(db: Session, classroom: models.Classroom) -> None:
    if classroom.published:
        missing = missing_required_fields(classroom)
        if missing:
            db.rollback()
            raise IncompleteClassroom(missing)


def get_owned_classroom(db: Session, user: models.User) -> models.Classroom | None:
    return (
        db.query(models.Classroom)
        .options(selectinload(models.Classroom.images))
        .filter(models.Classroom.user_id == user.id)
        .first()
    )


def create_classroom(
    db: Session, user: models.User, payload: schemas.ClassroomCreate
) -> models.Classroom:
    if get_owned_classroom(db, user) is not None:
        raise ClassroomExists("Classroom already registered")
    classroom = models.Classroom(user_id=user.id, published=False, draft_saved=False)
    _apply_fields(classroom, payload.model_dump())
    db.add(classroom)
    db.commit()
    db.refresh(classroom)
    logger.info("Classroom registered", extra={"classroom_id": classroom.id, "user_id": user.id})
    return classroom


def save_draft(
    db: Session, user: models.User, payload: schemas.ClassroomDraft
) -> models.Classroom:
    classroom = get_owned_classroom(db, user)
    if classroom is None:
        classroom = models.Classroom(user_id=user.id, published=False)
        db.add(classroom)
    _apply_fields(classroom, payload.model_dump(exclude_unset=True))
    _ensure_consistent_fees(db, classroom)
    _ensure_publishable_content(db, classroom)
    classroom.draft_saved = True
    classroom.last_draft_saved_at = _now()
    db.commit()
    db.refresh(classroom)
    return classroom


def update_classroom(
    db: Session, classroom: models.Classroom, payload: schemas.ClassroomUpdate
) -> models.Classroom:
    _apply_fields(classroom, payload.model_dump(exclude_unset=True))
    _ensure_consistent_fees(db, classroom)
    _ensure_publishable_content(db, classroom)
    db.commit()
    db.refresh(classroom)
    return classroom


def delete_classroom(db: Session, classroom: models.Classroom) -> None:
    classroom_id = classroom.id
    paths = [image.file_path for image in classroom.images]
    db.delete(classroom)
    db.commit()
    for path in paths:
        remove_media_file(path)
    logger.info("Classroom deleted", extra={"classroom_id": classroom_id})


def publish_classroom(
    db: Session, classroom: models.Classroom, now: datetime | None = None
) -> models.Classroom:
    missing = missing_required_fields(classroom)
    if missing:
        raise IncompleteClassroom(missing)
    subscriptions = visibility.user_subscriptions(db, classroom.user_id)
    reason = visibility.publish_block_reason(subscriptions, now)
    if reason is not None:
        raise PublishError(reason)
    classroom.published = True
    classroom.draft_saved = False
    db.commit()
    db.refresh(classroom)
    logger.info("Classroom published", extra={"classroom_id": classroom.id})
    return classroom


def unpublish_classroom(db: Session, classroom: models.Classroom) -> models.Classroom:
    classroom.published = False
    db.commit()
    db.refresh(classroom)
    return classroom


def save_images(
    db: Session, classroom: models.Classroom, files: Iterable[UploadFile]
) -> list[models.ClassroomImage]:
    uploads = list(files)
    for upload in uploads:
        if not (upload.content_type or "").lower().startswith("image/"):
            raise ImageError("Unsupported media type")
    next_position = max((image.position for image in classroom.images), default=-1) + 1
    if len(classroom.images) + len(uploads) > MAX_IMAGES:
        raise ImageError(f"A classroom can have at most {MAX_IMAGES} images")
    ensure_media_directory(_MEDIA_SUBDIR)
    created: list[models.ClassroomImage] = []
    for upload in uploads:
        data = upload.file.read()
        if not data:
            continue
        target_path = get_media_path(_MEDIA_SUBDIR, upload.filename)
        target_path.write_bytes(data)
        image = models.ClassroomImage(
            file_path=relative_media_path(target_path),
            file_name=upload.filename or target_path.name,
            content_type=upload.content_type or "application/octet-stream",
            position=next_position,
        )
        next_position += 1
        classroom.images.append(image)
        created.append(image)
    if created:
        db.commit()
        for image in created:
            db.refresh(image)
    return created


def delete_image(db: Session, classroom: models.Classroom, image_id: int) -> None:
    image = db.get(models.ClassroomImage, image_id)
    if image is None or image.classroom_id != classroom.id:
        raise ClassroomNotFound("Image not found")
    path = image.file_path
    classroom.images.remove(image)
    db.commit()
    remove_media_file(path)


def _load_with_subscriptions(db: Session, classroom_id: int) -> models.Classroom | None:
    return (
        db.query(models.Classroom)
        .options(
            selectinload(models.Classroom.images),
            selectinload(models.Classroom.owner).selectinload(models.User.subscriptions),
        )
        .filter(models.Classroom.id == classroom_id)
        .first()
    )


def get_visible_classroom(
    db: Session, classroom_id: int, now: datetime | None = None
) -> models.Classroom:
    classroom = _load_with_subscriptions(db, classroom_id)
    if classroom is None or not visibility.should_show_classroom(
        classroom, classroom.owner.subscriptions, now
    ):
        raise ClassroomNotFound("Classroom not found")
    return classroom


def get_classroom_for_preview(
    db: Session,
    classroom_id: int,
    user: models.User,
    now: datetime | None = None,
) -> models.Classroom:
    classroom = _load_with_subscriptions(db, classroom_id)
    if classroom is None:
        raise ClassroomNotFound("Classroom not found")
    if classroom.user_id == user.id:
        return classroom
    if not visibility.should_show_classroom(classroom, classroom.owner.subscriptions, now):
        raise ClassroomNotFound("Classroom not found")
    return classroom


def image_response(image: models.ClassroomImage) -> schemas.ClassroomImage:
    return schemas.ClassroomImage(
        id=image.id,
        url=media_url(image.file_path),
        filename=image.file_name,
        position=image.position,
    )


def classroom_response(classroom: models.Classroom) -> schemas.Classroom:
    image_urls = [media_url(image.file_path) for image in classroom.images]
    thumbnail = classroom.thumbnail_url or (image_urls[0] if image_urls else None)
    return schemas.Classroom.model_validate(classroom).model_copy(
        update={"image_urls": image_urls, "thumbnail_url": thumbnail}
    )


__all__ = [
    "ClassroomError",
    "ClassroomNotFound",
    "ClassroomExists",
    "IncompleteClassroom",
    "PublishError",
    "ImageError",
    "InvalidFeeRange",
    "MAX_IMAGES",
    "missing_required_fields",
    "get_owned_classroom",
    "create_classroom",
    "save_draft",
    "update_classroom",
    "delete_classroom",
    "publish_classroom",
    "unpublish_classroom",
    "save_images",
    "delete_image",
    "get_visible_classroom",
    "get_classroom_for_preview",
    "image_response",
    "classroom_response",
]
