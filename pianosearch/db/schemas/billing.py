from typing import Literal

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    plan: Literal["monthly"] = "monthly"


class RedirectUrl(BaseModel):
    url: str
