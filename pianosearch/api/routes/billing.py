from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...api import deps
from ...config import get_settings
from ...db import models, schemas
from ...db.session import get_db
from ...services import billing_service
from ...services.payments import PaymentGatewayError, WebhookSignatureError

router = APIRouter(prefix="/billing", tags=["billing"])


def _origin(request: Request) -> str:
    return request.headers.get("origin") or get_settings().site_url


@router.post("/checkout", response_model=schemas.RedirectUrl)
def create_checkout(
    payload: schemas.CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        url = billing_service.create_checkout(db, current, payload.plan, _origin(request))
    except billing_service.UnknownPlan as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PaymentGatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create checkout session",
        ) from exc
    return schemas.RedirectUrl(url=url)


@router.post("/portal", response_model=schemas.RedirectUrl)
def create_portal(
    request: Request,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        url = billing_service.create_portal(db, current, _origin(request))
    except billing_service.SubscriptionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except billing_service.MissingCustomer as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PaymentGatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create portal session",
        ) from exc
    return schemas.RedirectUrl(url=url)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    try:
        result = billing_service.handle_webhook(db, payload, stripe_signature)
    except WebhookSignatureError as exc:
        raise HTTPException(status_code=400, detail="Invalid signature") from exc
    except billing_service.BillingError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return {"status": result}
