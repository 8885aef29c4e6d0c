"""Booking router - public availability and reservation endpoints"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...config import BOOKABLE_SERVICES
from ...database import get_db
from ...errors import ValidationError, validate_form
from ...rate_limiter import create_rate_limiter
from ...shared.responses import ok
from ...utils.file_storage import FileStorage, get_file_storage
from .availability import AvailabilityCalculator
from .schemas import AvailabilityResponse, BookingCreate, BookingResponse
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])

booking_rate_limit = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="bookings")


def get_availability_calculator(db: Session = Depends(get_db)) -> AvailabilityCalculator:
    """Dependency injection for AvailabilityCalculator"""
    return AvailabilityCalculator(db)


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db)


def parse_optional_datetime(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field}: invalid datetime") from None


@router.get("/services")
async def list_services():
    """Services a consultation can be booked for"""
    return ok(BOOKABLE_SERVICES)


@router.get("/availability")
async def get_availability(
    day: date = Query(..., alias="date"),
    calculator: AvailabilityCalculator = Depends(get_availability_calculator),
):
    slots = calculator.get_availability(day)
    return ok(AvailabilityResponse(date=day.isoformat(), slots=slots))


@router.post("/bookings", status_code=201)
async def create_booking(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    service: Optional[str] = Form(None),
    start: Optional[str] = Form(None, alias="date"),
    end: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    file_url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    _: None = Depends(booking_rate_limit),
    reservations: ReservationService = Depends(get_reservation_service),
    storage: FileStorage = Depends(get_file_storage),
):
    """Reserve a consultation slot. The uploaded brief (if any) is discarded when the booking fails."""
    logger.info(f"📥 Booking request for {service} at {start}")

    details = validate_form(
        BookingCreate,
        name=name,
        email=email,
        phone=phone,
        service=service,
        start=start,
        notes=notes,
        file_url=file_url,
    )

    desired_end = parse_optional_datetime(end, "end")

    stored_url = await storage.save_optional(file, "bookings")
    if stored_url:
        details.file_url = stored_url

    try:
        booking = reservations.submit(details, desired_end=desired_end)
    except Exception:
        if stored_url:
            storage.delete(stored_url)
        raise

    return ok(BookingResponse.from_model(booking), message="Booking received")
