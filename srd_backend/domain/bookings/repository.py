"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Booking, PaymentSession


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_taken_slot_starts(db: Session, day_start: datetime, day_end: datetime) -> set[datetime]:
        """Slot starts occupied by pending/confirmed bookings within [day_start, day_end)"""
        rows = (
            db.query(Booking.slot_start)
            .filter(
                Booking.slot_start >= day_start,
                Booking.slot_start < day_end,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def list_bookings(db: Session, status: Optional[str] = None) -> list[Booking]:
        """All bookings, newest first"""
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.slot_start.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Insert a booking. IntegrityError from the active-slot index propagates to the caller."""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def cancel_stale_pending(db: Session, cutoff: datetime, now: datetime) -> int:
        """
        Cancel pending, unpaid bookings created before cutoff. Returns rows affected.

        Bookings with a checkout opened since cutoff are left alone; the
        customer may still be on the Paystack page.
        """
        open_checkouts = select(PaymentSession.booking_id).where(
            PaymentSession.booking_id.is_not(None),
            PaymentSession.status == "initialized",
            PaymentSession.created_at >= cutoff,
        )
        count = (
            db.query(Booking)
            .filter(
                Booking.status == "pending",
                Booking.payment_status == "unpaid",
                Booking.created_at < cutoff,
                Booking.id.not_in(open_checkouts),
            )
            .update(
                {"status": "cancelled", "cancellation_reason": "expired", "updated_at": now},
                synchronize_session=False,
            )
        )
        db.commit()
        return count
