"""Moderation service - admin transitions on bookings and user-submitted content"""

import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import NotFoundError, PersistenceError, SlotConflictError, ValidationError
from ...models import BOOKING_STATUSES, Booking, Testimonial
from ...utils.file_storage import FileStorage
from ..bookings.availability import AvailabilityCalculator
from ..bookings.repository import BookingRepository
from ..content.repository import BlogRepository, ContactRepository, TestimonialRepository

logger = logging.getLogger(__name__)


class ModerationService:
    """Admin-only state changes. Deletes are hard deletes; attached files go best-effort afterwards."""

    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage
        self.bookings = BookingRepository()
        self.testimonials = TestimonialRepository()
        self.blog = BlogRepository()
        self.contact = ContactRepository()

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def list_bookings(self, status: Optional[str] = None) -> list[Booking]:
        if status and status not in BOOKING_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(BOOKING_STATUSES)}")
        return self.bookings.list_bookings(self.db, status)

    def set_booking_status(self, booking_id: str, status: str) -> Booking:
        """Move a booking between pending, confirmed and cancelled. Payment fields are left alone."""
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(BOOKING_STATUSES)}")

        booking = self.bookings.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        previous = booking.status
        if previous == status:
            return booking

        try:
            booking = self.bookings.update_booking(
                self.db, booking, status=status, cancellation_reason="admin" if status == "cancelled" else None
            )
        except IntegrityError:
            # Re-activating a cancelled booking whose slot has since been taken
            self.db.rollback()
            slot_start = self.bookings.get_booking_by_id(self.db, booking_id).slot_start
            logger.warning(f"⚠️ Cannot reactivate booking {booking_id}: slot {slot_start} is taken")
            suggestions = [s for s in AvailabilityCalculator(self.db).slots_for(slot_start.date()) if s.available]
            raise SlotConflictError("The slot for this booking has been taken by another client", suggestions) from None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update booking {booking_id}: {e}")
            raise PersistenceError() from e

        logger.info(f"✅ Booking {booking_id} status {previous} -> {status}")
        return booking

    def _write(self, action: Callable[[], Any], description: str):
        """Run a repository write, turning store failures into PersistenceError"""
        try:
            return action()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {description}: {e}")
            raise PersistenceError() from e

    # ------------------------------------------------------------------
    # Testimonials
    # ------------------------------------------------------------------

    def approve_testimonial(self, testimonial_id: str) -> Testimonial:
        testimonial = self.testimonials.get_testimonial(self.db, testimonial_id)
        if not testimonial:
            raise NotFoundError("Testimonial not found")
        if testimonial.approved:
            return testimonial

        testimonial = self._write(
            lambda: self.testimonials.approve_testimonial(self.db, testimonial), f"approve testimonial {testimonial_id}"
        )
        logger.info(f"✅ Testimonial {testimonial_id} approved")
        return testimonial

    def delete_testimonial(self, testimonial_id: str) -> str:
        testimonial = self.testimonials.get_testimonial(self.db, testimonial_id)
        if not testimonial:
            raise NotFoundError("Testimonial not found")

        photo = testimonial.photo
        self._write(
            lambda: self.testimonials.delete_testimonial(self.db, testimonial), f"delete testimonial {testimonial_id}"
        )
        logger.info(f"🗑️ Testimonial {testimonial_id} deleted")
        if photo:
            self.storage.delete(photo)
        return testimonial_id

    # ------------------------------------------------------------------
    # Blog and contact
    # ------------------------------------------------------------------

    def delete_blog_post(self, post_id: str) -> str:
        post = self.blog.get_post(self.db, post_id)
        if not post:
            raise NotFoundError("Blog post not found")

        image = post.image
        self._write(lambda: self.blog.delete_post(self.db, post), f"delete blog post {post_id}")
        logger.info(f"🗑️ Blog post {post_id} deleted")
        if image:
            self.storage.delete(image)
        return post_id

    def delete_contact_message(self, message_id: str) -> str:
        message = self.contact.get_message(self.db, message_id)
        if not message:
            raise NotFoundError("Contact message not found")

        self._write(lambda: self.contact.delete_message(self.db, message), f"delete contact message {message_id}")
        logger.info(f"🗑️ Contact message {message_id} deleted")
        return message_id
