from datetime import datetime, timezone
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import not_
from sqlalchemy.orm import Session

from ..db import models
from ..db.session import SessionLocal
from ..services.visibility import valid_subscription_clause

logger = logging.getLogger(__name__)


def unpublish_expired(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    expired = (
        db.query(models.Classroom)
        .filter(models.Classroom.published.is_(True))
        .filter(not_(valid_subscription_clause(now)))
        .all()
    )
    for classroom in expired:
        classroom.published = False
        logger.info(
            "Unpublished classroom without valid subscription",
            extra={"classroom_id": classroom.id, "user_id": classroom.user_id},
        )
    db.commit()
    return len(expired)


def unpublish_expired_classrooms() -> None:
    with SessionLocal() as db:
        unpublish_expired(db)


def get_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(unpublish_expired_classrooms, "interval", hours=1)
    return scheduler
