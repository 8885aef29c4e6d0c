"""Moderation router - admin dashboard actions"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AdminCredential, get_current_admin
from ...database import get_db
from ...shared.responses import ok
from ...utils.file_storage import FileStorage, get_file_storage
from ..bookings.router import get_reservation_service
from ..bookings.schemas import BookingResponse, StatusUpdate
from ..bookings.service import ReservationService
from ..content.schemas import TestimonialResponse
from .service import ModerationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Moderation"])


def get_moderation_service(
    db: Session = Depends(get_db), storage: FileStorage = Depends(get_file_storage)
) -> ModerationService:
    """Dependency injection for ModerationService"""
    return ModerationService(db, storage)


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/admin/bookings")
async def list_bookings(
    status: Optional[str] = Query(None),
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    """All bookings, newest first, optionally filtered by status"""
    bookings = service.list_bookings(status)
    return ok([BookingResponse.from_model(b) for b in bookings])


@router.put("/bookings/{booking_id}/status")
async def update_booking_status(
    booking_id: str,
    data: StatusUpdate,
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    logger.info(f"🔄 Admin {admin.email} setting booking {booking_id} to {data.status}")
    booking = service.set_booking_status(booking_id, data.status)
    return ok(BookingResponse.from_model(booking), message="Booking status updated")


@router.post("/admin/bookings/expire-stale")
async def expire_stale_bookings(
    admin: AdminCredential = Depends(get_current_admin),
    reservations: ReservationService = Depends(get_reservation_service),
):
    """Release slots held by bookings that were never paid"""
    expired = reservations.expire_stale_bookings()
    return ok({"expired": expired})


# ============================================================================
# CONTENT
# ============================================================================


@router.post("/admin/testimonials/{testimonial_id}/approve")
async def approve_testimonial(
    testimonial_id: str,
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    testimonial = service.approve_testimonial(testimonial_id)
    return ok(TestimonialResponse.model_validate(testimonial), message="Testimonial approved")


@router.delete("/admin/testimonials/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    return ok({"deleted": service.delete_testimonial(testimonial_id)}, message="Testimonial deleted")


@router.delete("/admin/blog-posts/{post_id}")
async def delete_blog_post(
    post_id: str,
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    return ok({"deleted": service.delete_blog_post(post_id)}, message="Blog post deleted")


@router.delete("/admin/contact-messages/{message_id}")
async def delete_contact_message(
    message_id: str,
    admin: AdminCredential = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    return ok({"deleted": service.delete_contact_message(message_id)}, message="Message deleted")
