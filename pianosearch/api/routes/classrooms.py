from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...api import deps
from ...db import models, schemas
from ...db.session import get_db
from ...services import classroom_service, contact_service, search_service
from ...services.mail_service import EmailConfigurationError, EmailDeliveryError

router = APIRouter(prefix="/classrooms", tags=["classrooms"])


@router.get("", response_model=list[schemas.Classroom])
def search_classrooms(
    area: str | None = None,
    prefecture: str | None = None,
    keyword: str | None = None,
    lesson_type: str | None = None,
    age_groups: list[str] = Query(default=[]),
    features: list[str] = Query(default=[]),
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    filters = search_service.SearchFilters(
        area=area,
        prefecture=prefecture,
        keyword=keyword,
        lesson_type=lesson_type,
        age_groups=age_groups,
        features=features,
        limit=limit,
        offset=offset,
    )
    classrooms = search_service.search_classrooms(db, filters)
    return [classroom_service.classroom_response(classroom) for classroom in classrooms]


@router.get("/{classroom_id}", response_model=schemas.Classroom)
def get_classroom(classroom_id: int, db: Session = Depends(get_db)):
    try:
        classroom = classroom_service.get_visible_classroom(db, classroom_id)
    except classroom_service.ClassroomNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return classroom_service.classroom_response(classroom)


@router.get("/{classroom_id}/preview", response_model=schemas.Classroom)
def preview_classroom(
    classroom_id: int,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        classroom = classroom_service.get_classroom_for_preview(db, classroom_id, current)
    except classroom_service.ClassroomNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return classroom_service.classroom_response(classroom)


@router.post("/{classroom_id}/contact", response_model=schemas.ContactResult)
def contact_classroom(
    classroom_id: int,
    payload: schemas.ClassroomContact,
    db: Session = Depends(get_db),
):
    try:
        classroom = classroom_service.get_visible_classroom(db, classroom_id)
    except classroom_service.ClassroomNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    try:
        return contact_service.contact_classroom(db, classroom, payload)
    except contact_service.ClassroomEmailMissing as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except EmailConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="メール送信の設定に問題があります。",
        ) from exc
    except EmailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
