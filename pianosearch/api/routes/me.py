from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from ...api import deps
from ...db import models, schemas
from ...db.session import get_db
from ...services import classroom_service, visibility

router = APIRouter(prefix="/me", tags=["owner"])


def _owned_classroom(db: Session, user: models.User) -> models.Classroom:
    classroom = classroom_service.get_owned_classroom(db, user)
    if classroom is None:
        raise HTTPException(status_code=404, detail="Classroom not registered")
    return classroom


def _incomplete(exc: classroom_service.IncompleteClassroom) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": "Required fields are missing", "missing": exc.missing},
    )


@router.get("/classroom", response_model=schemas.Classroom)
def get_my_classroom(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    return classroom_service.classroom_response(_owned_classroom(db, current))


@router.post("/classroom", response_model=schemas.Classroom, status_code=status.HTTP_201_CREATED)
def create_my_classroom(
    payload: schemas.ClassroomCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        classroom = classroom_service.create_classroom(db, current, payload)
    except classroom_service.ClassroomExists as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return classroom_service.classroom_response(classroom)


@router.patch("/classroom", response_model=schemas.Classroom)
def update_my_classroom(
    payload: schemas.ClassroomUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = _owned_classroom(db, current)
    try:
        classroom = classroom_service.update_classroom(db, classroom, payload)
    except classroom_service.IncompleteClassroom as exc:
        raise _incomplete(exc) from exc
    except classroom_service.InvalidFeeRange as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return classroom_service.classroom_response(classroom)


@router.delete("/classroom", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_classroom(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom_service.delete_classroom(db, _owned_classroom(db, current))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/classroom/draft", response_model=schemas.Classroom)
def save_my_draft(
    payload: schemas.ClassroomDraft,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        classroom = classroom_service.save_draft(db, current, payload)
    except classroom_service.IncompleteClassroom as exc:
        raise _incomplete(exc) from exc
    except classroom_service.InvalidFeeRange as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return classroom_service.classroom_response(classroom)


@router.post("/classroom/publish", response_model=schemas.Classroom)
def publish_my_classroom(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = _owned_classroom(db, current)
    try:
        classroom = classroom_service.publish_classroom(db, classroom)
    except classroom_service.IncompleteClassroom as exc:
        raise _incomplete(exc) from exc
    except classroom_service.PublishError as exc:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={"reason": exc.reason, "message": str(exc)},
        ) from exc
    return classroom_service.classroom_response(classroom)


@router.post("/classroom/unpublish", response_model=schemas.Classroom)
def unpublish_my_classroom(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = classroom_service.unpublish_classroom(db, _owned_classroom(db, current))
    return classroom_service.classroom_response(classroom)


@router.post(
    "/classroom/images",
    response_model=list[schemas.ClassroomImage],
    status_code=status.HTTP_201_CREATED,
)
def upload_images(
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = _owned_classroom(db, current)
    try:
        images = classroom_service.save_images(db, classroom, files)
    except classroom_service.ImageError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [classroom_service.image_response(image) for image in images]


@router.delete("/classroom/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    image_id: int,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = _owned_classroom(db, current)
    try:
        classroom_service.delete_image(db, classroom, image_id)
    except classroom_service.ClassroomNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/subscription", response_model=schemas.SubscriptionStatus)
def my_subscription(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    return visibility.subscription_status(db, current)


@router.get("/subscriptions", response_model=list[schemas.Subscription])
def my_subscriptions(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    return visibility.user_subscriptions(db, current.id)


@router.get("/dashboard", response_model=schemas.Dashboard)
def my_dashboard(
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    classroom = classroom_service.get_owned_classroom(db, current)
    subscriptions = visibility.user_subscriptions(db, current.id)
    summary = visibility.subscription_status(db, current)
    return schemas.Dashboard(
        listing_status=visibility.listing_status(classroom, subscriptions),
        classroom=classroom_service.classroom_response(classroom) if classroom else None,
        subscription=schemas.SubscriptionStatus.model_validate(summary),
    )
