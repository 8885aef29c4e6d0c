"""Payment router - Paystack checkout, verification and webhook endpoints"""

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import AdminCredential, get_current_admin
from ...database import get_db
from ...errors import AuthenticationError, ValidationError
from ...shared.responses import ok
from ...webhook_security import PAYSTACK_SIGNATURE_HEADER
from ..bookings.schemas import BookingResponse
from .paystack_service import PaystackService, get_paystack_service
from .schemas import PaymentInitResponse, PaymentLinkCreate, PaymentLinkResponse, PaymentVerifyResponse
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: PaystackService = Depends(get_paystack_service),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


@router.post("/payment/initialize/{booking_id}")
async def initialize_payment(
    booking_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    """Start Paystack checkout for a pending booking"""
    payment_session = await service.initialize_payment(booking_id)
    return ok(
        PaymentInitResponse(
            payment_url=payment_session.authorization_url,
            reference=payment_session.reference,
        )
    )


@router.get("/payment/verify/{booking_id}")
async def verify_payment(
    booking_id: str,
    reference: str = Query(""),
    service: PaymentService = Depends(get_payment_service),
):
    """Called by the success page after Paystack redirects back"""
    result = await service.verify_payment(booking_id, reference)
    booking = BookingResponse.from_model(result.booking) if result.booking else None
    return ok(PaymentVerifyResponse(verified=result.verified, booking=booking), message=result.message)


@router.post("/payment/webhook")
async def paystack_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
):
    """Paystack event callback; the signature covers the raw body"""
    raw_body = await request.body()
    signature = request.headers.get(PAYSTACK_SIGNATURE_HEADER)

    if not service.gateway.verify_webhook_signature(raw_body, signature):
        raise AuthenticationError("Invalid webhook signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise ValidationError("Webhook body is not valid JSON") from None
    if not isinstance(event, dict):
        raise ValidationError("Webhook body must be a JSON object")

    logger.info(f"📨 Paystack webhook: {event.get('event')}")
    service.handle_webhook(event)
    return ok({"received": True})


@router.post("/admin/payment-link", status_code=201)
async def create_payment_link(
    data: PaymentLinkCreate,
    admin: AdminCredential = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
):
    """Generate an ad-hoc Paystack link from the dashboard"""
    logger.info(f"🔗 Admin {admin.email} requested a payment link for {data.clientName}")
    link = await service.create_payment_link(data.clientName, data.amount, data.purpose, data.email)
    return ok(PaymentLinkResponse(**link), message="Payment link generated")
