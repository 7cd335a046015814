from fastapi import APIRouter, HTTPException, status

from ...db import schemas
from ...services import contact_service
from ...services.mail_service import EmailConfigurationError, EmailDeliveryError

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=schemas.ContactResult)
def send_general_contact(payload: schemas.GeneralContact):
    try:
        return contact_service.contact_site(payload)
    except EmailConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="メール送信の設定に問題があります。",
        ) from exc
    except EmailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
