"""Payment domain schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email
from ..bookings.schemas import BookingResponse


class PaymentInitResponse(BaseModel):
    payment_url: str
    reference: str


class PaymentVerifyResponse(BaseModel):
    verified: bool
    booking: Optional[BookingResponse] = None


class PaymentLinkCreate(BaseModel):
    """Ad-hoc payment link requested from the admin dashboard"""

    clientName: str
    amount: float  # NGN
    purpose: str
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v:
            return validate_email(v)
        return None


class PaymentLinkResponse(BaseModel):
    link: str
    reference: str
