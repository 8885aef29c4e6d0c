"""Payment service - Paystack checkout lifecycle for bookings and ad-hoc links"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import (
    CONSULTATION_FEE,
    CURRENCY,
    DEFAULT_CUSTOMER_EMAIL,
    FRONTEND_URL,
    MIN_PAYMENT_LINK_AMOUNT,
    SERVICE_FEES,
)
from ...errors import BookingStateError, NotFoundError, PersistenceError, ValidationError
from ...models import Booking, PaymentSession
from ...shared import clock
from ...utils.sanitization import sanitize_string
from .paystack_service import PaystackService
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

# Paystack transaction statuses that are final but unsuccessful
FAILED_GATEWAY_STATUSES = {"failed", "reversed"}

REFUND_MESSAGE = (
    "Payment received, but this booking was cancelled and its slot is no longer held. We will arrange a refund."
)


@dataclass
class PaymentVerificationResult:
    verified: bool
    booking: Optional[Booking]
    message: str


def to_minor_units(amount: float) -> int:
    """Naira to kobo"""
    return int(round(amount * 100))


def fee_for_service(service: str) -> float:
    return float(SERVICE_FEES.get(service, CONSULTATION_FEE))


def generate_reference(booking_id: Optional[str] = None) -> str:
    """SRD-<8 hex of booking>-<8 random hex>, or SRD-LINK-<12 random hex> for ad-hoc links"""
    if booking_id:
        return f"SRD-{booking_id.replace('-', '')[:8]}-{secrets.token_hex(4)}"
    return f"SRD-LINK-{secrets.token_hex(6)}"


class PaymentService:
    """Service layer for initializing and confirming Paystack payments"""

    def __init__(
        self,
        db: Session,
        gateway: PaystackService,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.repo = PaymentRepository()
        self._now = now_provider or clock.business_now

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _create_session(self, **session_data) -> PaymentSession:
        try:
            return self.repo.create_session(self.db, created_at=self._now(), **session_data)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to persist payment session {session_data.get('reference')}: {e}")
            raise PersistenceError() from e

    async def initialize_payment(self, booking_id: str) -> PaymentSession:
        """
        Open a Paystack checkout for a pending, unpaid booking.

        Nothing is written until the gateway accepts the transaction, so a
        failed call leaves the booking untouched and can simply be retried.
        """
        booking = self._get_booking(booking_id)
        if booking.status != "pending" or booking.payment_status != "unpaid":
            logger.warning(
                f"⚠️ Refusing payment for booking {booking.id} "
                f"(status={booking.status}, payment_status={booking.payment_status})"
            )
            raise BookingStateError()

        amount = to_minor_units(fee_for_service(booking.service))
        reference = generate_reference(booking.id)
        metadata = {
            "booking_id": booking.id,
            "service": booking.service,
            "cancel_action": f"{FRONTEND_URL}/booking/failed?booking_id={booking.id}",
        }

        logger.info(f"💳 Initializing payment {reference} for booking {booking.id} ({amount} kobo)")
        data = await self.gateway.initialize_transaction(
            email=booking.email,
            amount=amount,
            reference=reference,
            callback_url=f"{FRONTEND_URL}/booking/success?booking_id={booking.id}",
            metadata=metadata,
            currency=CURRENCY,
        )

        return self._create_session(
            booking_id=booking.id,
            reference=data.get("reference") or reference,
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code"),
            amount=amount,
            currency=CURRENCY,
            email=booking.email,
            purpose=booking.service,
            client_name=booking.name,
            status="initialized",
        )

    async def verify_payment(self, booking_id: str, reference: str) -> PaymentVerificationResult:
        """Confirm a booking's payment with the gateway. Safe to call repeatedly."""
        booking = self._get_booking(booking_id)

        if booking.payment_status == "paid":
            return self._result_for_paid(booking, "Payment already verified")

        payment_session = self.repo.get_for_booking(self.db, booking.id, reference) if reference else None
        if not payment_session:
            logger.warning(f"⚠️ Reference {reference} does not belong to booking {booking.id}")
            return PaymentVerificationResult(False, booking, "Payment reference does not match this booking")

        data = await self.gateway.verify_transaction(reference)
        return self._apply_outcome(payment_session, booking, data)

    def handle_webhook(self, event: dict[str, Any]) -> Optional[PaymentVerificationResult]:
        """Apply a signature-checked Paystack event. Only charge.success changes state."""
        event_type = event.get("event")
        data = event.get("data") or {}
        reference = data.get("reference")

        if event_type != "charge.success":
            logger.info(f"ℹ️ Ignoring Paystack event {event_type}")
            return None

        payment_session = self.repo.get_by_reference(self.db, reference) if reference else None
        if not payment_session:
            logger.warning(f"⚠️ Paystack webhook for unknown reference {reference}")
            return None

        if payment_session.status == "success":
            logger.info(f"ℹ️ Webhook for {reference} already applied")
            return self._result_for_paid(payment_session.booking, "Payment already verified")

        return self._apply_outcome(payment_session, payment_session.booking, data)

    @staticmethod
    def _result_for_paid(booking: Optional[Booking], message: str) -> PaymentVerificationResult:
        if booking is not None and booking.status == "cancelled":
            return PaymentVerificationResult(False, booking, REFUND_MESSAGE)
        return PaymentVerificationResult(True, booking, message)

    def _confirm_paid_booking(self, booking: Booking, reference: str) -> None:
        """Move a paid booking to confirmed, re-taking its slot if it expired while the customer paid"""
        if booking.status == "pending":
            booking.status = "confirmed"
        elif booking.status == "cancelled" and booking.cancellation_reason == "expired":
            if self.repo.slot_taken_by_other(self.db, booking):
                logger.warning(f"⚠️ Payment {reference} for expired booking {booking.id}, slot already re-booked")
            else:
                booking.status = "confirmed"
                booking.cancellation_reason = None
                logger.info(f"♻️ Booking {booking.id} re-activated by late payment {reference}")
        elif booking.status == "cancelled":
            logger.warning(f"⚠️ Payment {reference} received for cancelled booking {booking.id}")

    def _save_outcome(self, payment_session: PaymentSession, booking: Optional[Booking]) -> None:
        try:
            self.repo.save_outcome(self.db, payment_session, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to record outcome for {payment_session.reference}: {e}")
            raise PersistenceError() from e

    def _apply_outcome(
        self,
        payment_session: PaymentSession,
        booking: Optional[Booking],
        data: dict[str, Any],
    ) -> PaymentVerificationResult:
        now = self._now()
        gateway_status = str(data.get("status") or "").lower()
        paid_amount = int(data.get("amount") or 0)
        paid_currency = str(data.get("currency") or payment_session.currency).upper()
        gateway_response = str(data.get("gateway_response") or gateway_status)[:255]

        payment_session.gateway_response = gateway_response

        if gateway_status == "success" and paid_amount < payment_session.amount:
            logger.error(
                f"❌ Underpayment on {payment_session.reference}: {paid_amount} < {payment_session.amount}"
            )
            payment_session.status = "failed"
            message = "Amount paid does not match the consultation fee"
        elif gateway_status == "success" and paid_currency != payment_session.currency.upper():
            logger.error(f"❌ Currency mismatch on {payment_session.reference}: {paid_currency}")
            payment_session.status = "failed"
            message = "Payment currency does not match"
        elif gateway_status == "success":
            payment_session.status = "success"
            payment_session.verified_at = now
            if booking is not None:
                booking.payment_status = "paid"
                booking.paid_at = now
                self._confirm_paid_booking(booking, payment_session.reference)
            message = "Payment verified"
        else:
            if gateway_status == "abandoned":
                payment_session.status = "abandoned"
            elif gateway_status in FAILED_GATEWAY_STATUSES:
                payment_session.status = "failed"
            message = f"Payment not completed ({gateway_status or 'unknown'})"

        if payment_session.status != "success":
            self._save_outcome(payment_session, None)
            return PaymentVerificationResult(False, booking, message)

        try:
            self.repo.save_outcome(self.db, payment_session, booking)
        except IntegrityError:
            # Another booking took the slot between the check and the commit; keep the money, stay cancelled
            self.db.rollback()
            logger.warning(
                f"⚠️ Slot for booking {booking.id} was taken before payment {payment_session.reference} landed"
            )
            payment_session.status = "success"
            payment_session.verified_at = now
            payment_session.gateway_response = gateway_response
            booking.payment_status = "paid"
            booking.paid_at = now
            self._save_outcome(payment_session, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to record outcome for {payment_session.reference}: {e}")
            raise PersistenceError() from e

        result = self._result_for_paid(booking, message)
        if result.verified:
            logger.info(f"✅ Payment {payment_session.reference} verified")
        return result

    async def create_payment_link(
        self, client_name: str, amount: float, purpose: str, email: Optional[str] = None
    ) -> dict[str, str]:
        """Ad-hoc Paystack link for invoicing a client outside the booking flow"""
        client_name = sanitize_string(client_name or "")
        purpose = sanitize_string(purpose or "")
        if not client_name or not purpose:
            raise ValidationError("clientName and purpose are required")
        if amount is None or amount < MIN_PAYMENT_LINK_AMOUNT:
            raise ValidationError(f"Amount must be at least {MIN_PAYMENT_LINK_AMOUNT:.0f} {CURRENCY}")

        amount_minor = to_minor_units(amount)
        reference = generate_reference()
        customer_email = email or DEFAULT_CUSTOMER_EMAIL

        logger.info(f"🔗 Creating payment link {reference} for {client_name} ({amount_minor} kobo)")
        data = await self.gateway.initialize_transaction(
            email=customer_email,
            amount=amount_minor,
            reference=reference,
            metadata={"purpose": purpose, "client_name": client_name},
            currency=CURRENCY,
        )

        payment_session = self._create_session(
            booking_id=None,
            reference=data.get("reference") or reference,
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code"),
            amount=amount_minor,
            currency=CURRENCY,
            email=email,
            purpose=purpose,
            client_name=client_name,
            status="initialized",
        )
        return {"link": payment_session.authorization_url, "reference": payment_session.reference}
