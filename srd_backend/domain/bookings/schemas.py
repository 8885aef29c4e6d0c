"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...config import BOOKABLE_SERVICES
from ...models import Booking
from ...shared.clock import to_business_local
from ...shared.validators import validate_email, validate_phone


class TimeSlot(BaseModel):
    """One bookable slot on the daily template"""

    start: datetime
    end: datetime
    available: bool = True


class BookingCreate(BaseModel):
    """Schema for a public booking submission"""

    name: str
    email: str
    phone: str
    service: str
    start: datetime
    notes: Optional[str] = None
    file_url: Optional[str] = None

    @field_validator("name", "service")
    @classmethod
    def require_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return validate_phone(v)

    @field_validator("service")
    @classmethod
    def check_service(cls, v):
        if v not in BOOKABLE_SERVICES:
            raise ValueError(f"Unknown service. Choose one of: {', '.join(BOOKABLE_SERVICES)}")
        return v

    @field_validator("start")
    @classmethod
    def normalize_start(cls, v):
        return to_business_local(v)

    @field_validator("notes", "file_url")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class StatusUpdate(BaseModel):
    """Admin status change for a booking"""

    status: str


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    name: str
    email: str
    phone: str
    service: str
    start: datetime
    end: datetime
    notes: Optional[str] = None
    file_url: Optional[str] = None
    status: str
    cancellation_reason: Optional[str] = None
    payment_status: str
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            name=booking.name,
            email=booking.email,
            phone=booking.phone,
            service=booking.service,
            start=booking.slot_start,
            end=booking.slot_end,
            notes=booking.notes,
            file_url=booking.file_url,
            status=booking.status,
            cancellation_reason=booking.cancellation_reason,
            payment_status=booking.payment_status,
            paid_at=booking.paid_at,
            created_at=booking.created_at,
        )


class AvailabilityResponse(BaseModel):
    date: str
    slots: list[TimeSlot]
