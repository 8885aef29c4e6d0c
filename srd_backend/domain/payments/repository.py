"""Payment repository - Database operations for payment sessions"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Booking, PaymentSession


class PaymentRepository:
    """Repository for payment session database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[PaymentSession]:
        return db.query(PaymentSession).filter(PaymentSession.reference == reference).first()

    @staticmethod
    def get_for_booking(db: Session, booking_id: str, reference: str) -> Optional[PaymentSession]:
        """Session matching both the booking and the gateway reference"""
        return (
            db.query(PaymentSession)
            .filter(PaymentSession.booking_id == booking_id, PaymentSession.reference == reference)
            .first()
        )

    @staticmethod
    def slot_taken_by_other(db: Session, booking: Booking) -> bool:
        """Whether another live booking now holds this booking's slot"""
        return (
            db.query(Booking.id)
            .filter(
                Booking.slot_start == booking.slot_start,
                Booking.id != booking.id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .first()
            is not None
        )

    @staticmethod
    def create_session(db: Session, **session_data) -> PaymentSession:
        payment_session = PaymentSession(**session_data)
        db.add(payment_session)
        db.commit()
        db.refresh(payment_session)
        return payment_session

    @staticmethod
    def save_outcome(db: Session, payment_session: PaymentSession, booking: Optional[Booking] = None) -> None:
        """Commit a verification outcome (and the booking transition that goes with it) together"""
        db.add(payment_session)
        if booking is not None:
            db.add(booking)
        db.commit()
        db.refresh(payment_session)
        if booking is not None:
            db.refresh(booking)
