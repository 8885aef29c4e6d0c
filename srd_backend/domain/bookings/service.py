"""Booking service - reservation of consultation slots"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import PENDING_BOOKING_TTL_MINUTES
from ...errors import InvalidDateError, PersistenceError, SlotConflictError, ValidationError
from ...models import Booking
from ...shared import clock
from ...utils.sanitization import sanitize_string
from .availability import AvailabilityCalculator
from .repository import BookingRepository
from .schemas import BookingCreate, TimeSlot

logger = logging.getLogger(__name__)


class ReservationService:
    """Validates and persists booking requests against live availability"""

    def __init__(self, db: Session, now_provider: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.repo = BookingRepository()
        self._now = now_provider or clock.business_now
        self.calculator = AvailabilityCalculator(db, now_provider=self._now)

    def suggestions_for(self, start: datetime) -> list[TimeSlot]:
        return self.calculator.available_slots(start.date())

    def submit(self, details: BookingCreate, desired_end: Optional[datetime] = None) -> Booking:
        """
        Reserve the slot starting at details.start.

        The availability re-check is only a fast path; the active-slot unique
        index decides who wins when two submissions race for the same slot.

        Raises:
            ValidationError: start/end do not line up with a template slot
            InvalidDateError: slot in the past or beyond the lookahead window
            SlotConflictError: slot already held, with the day's free slots attached
            PersistenceError: database unavailable
        """
        start = details.start
        slot = self.calculator.matching_slot(start)
        if slot is None:
            raise ValidationError("Requested time is not one of the bookable slots")
        if desired_end is not None and clock.to_business_local(desired_end) != slot.end:
            raise ValidationError("Requested end time does not match the slot length")

        self.calculator.validate_day(start.date())
        if start <= self._now():
            raise InvalidDateError("Cannot book a slot that has already started")

        if not self.calculator.is_slot_available(start):
            logger.info(f"⚠️ Slot {start} already taken, returning alternatives")
            raise SlotConflictError(suggestions=self.suggestions_for(start))

        booking_data = {
            "name": sanitize_string(details.name),
            "email": details.email,
            "phone": details.phone,
            "service": details.service,
            "slot_start": slot.start,
            "slot_end": slot.end,
            "notes": sanitize_string(details.notes),
            "file_url": details.file_url,
            "status": "pending",
            "payment_status": "unpaid",
            "created_at": self._now(),
        }

        try:
            booking = self.repo.create_booking(self.db, **booking_data)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"⚠️ Lost race for slot {start}, another booking committed first")
            raise SlotConflictError(suggestions=self.suggestions_for(start)) from None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to persist booking for {start}: {e}")
            raise PersistenceError() from e

        logger.info(f"✅ Booking {booking.id} reserved {booking.service} at {booking.slot_start}")
        return booking

    def expire_stale_bookings(self, older_than_minutes: Optional[int] = None) -> int:
        """Cancel pending, unpaid bookings older than the TTL so their slots free up"""
        minutes = PENDING_BOOKING_TTL_MINUTES if older_than_minutes is None else older_than_minutes
        now = self._now()
        cutoff = now - timedelta(minutes=minutes)

        try:
            expired = self.repo.cancel_stale_pending(self.db, cutoff, now)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to expire stale bookings: {e}")
            raise PersistenceError() from e

        if expired:
            logger.info(f"🧹 Expired {expired} unpaid booking(s) created before {cutoff}")
        return expired
