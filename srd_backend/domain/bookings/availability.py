"""Daily slot template and per-day availability"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import BOOKING_LOOKAHEAD_DAYS, SLOT_DURATION_MINUTES, SLOT_START_TIMES
from ...errors import InvalidDateError
from ...shared import clock
from .repository import BookingRepository
from .schemas import TimeSlot

logger = logging.getLogger(__name__)


def parse_slot_times(values: list[str]) -> list[time]:
    return sorted(time.fromisoformat(value) for value in values)


SLOT_TEMPLATE = parse_slot_times(SLOT_START_TIMES)


class AvailabilityCalculator:
    """Computes the bookable slots for a calendar day. Nothing is cached between calls."""

    def __init__(self, db: Session, now_provider: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.repo = BookingRepository()
        self._now = now_provider or clock.business_now

    def template_for(self, day: date) -> list[TimeSlot]:
        duration = timedelta(minutes=SLOT_DURATION_MINUTES)
        slots = []
        for start_time in SLOT_TEMPLATE:
            start = datetime.combine(day, start_time)
            slots.append(TimeSlot(start=start, end=start + duration, available=True))
        return slots

    def matching_slot(self, start: datetime) -> Optional[TimeSlot]:
        """Template slot that begins exactly at start, if any"""
        for slot in self.template_for(start.date()):
            if slot.start == start:
                return slot
        return None

    def validate_day(self, day: date) -> None:
        today = self._now().date()
        if day < today:
            raise InvalidDateError("Cannot book or view slots for past dates")
        if day > today + timedelta(days=BOOKING_LOOKAHEAD_DAYS):
            raise InvalidDateError(f"Bookings open at most {BOOKING_LOOKAHEAD_DAYS} days in advance")

    def get_availability(self, day: date) -> list[TimeSlot]:
        """Template slots for day, each flagged unavailable when a pending/confirmed booking holds it"""
        self.validate_day(day)
        return self.slots_for(day)

    def slots_for(self, day: date) -> list[TimeSlot]:
        """Occupancy-flagged template for any day, without the booking-window check.

        Slots that have already started are never offered.
        """
        now = self._now()
        day_start = datetime.combine(day, time.min)
        taken = self.repo.get_taken_slot_starts(self.db, day_start, day_start + timedelta(days=1))

        slots = self.template_for(day)
        for slot in slots:
            slot.available = slot.start not in taken and slot.start > now

        logger.debug(f"📅 Availability for {day}: {sum(s.available for s in slots)}/{len(slots)} free")
        return slots

    def available_slots(self, day: date) -> list[TimeSlot]:
        return [slot for slot in self.get_availability(day) if slot.available]

    def is_slot_available(self, start: datetime) -> bool:
        return any(slot.start == start and slot.available for slot in self.get_availability(start.date()))
