import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .shared.clock import business_now

BOOKING_STATUSES = ("pending", "confirmed", "cancelled")
# Statuses that occupy a calendar slot
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


def generate_public_id():
    """Generate a unique opaque ID for public-facing records"""
    return str(uuid.uuid4())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    service = Column(String(100), nullable=False)
    # Naive datetimes in business-local time (see config.BUSINESS_TIMEZONE)
    slot_start = Column(DateTime, nullable=False, index=True)
    slot_end = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    file_url = Column(String(500), nullable=True)  # /uploads/... path or R2 public URL
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, cancelled
    cancellation_reason = Column(String(20), nullable=True)  # expired, admin
    payment_status = Column(String(20), default="unpaid", nullable=False)  # unpaid, paid
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=business_now, nullable=False)
    updated_at = Column(DateTime, default=business_now, onupdate=business_now)

    payment_sessions = relationship(
        "PaymentSession", back_populates="booking", order_by="PaymentSession.created_at"
    )

    __table_args__ = (
        # One live booking per slot; cancelled rows fall out of the index
        Index(
            "uq_bookings_active_slot",
            "slot_start",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )


class PaymentSession(Base):
    __tablename__ = "payment_sessions"

    id = Column(Integer, primary_key=True, index=True)
    # Null for ad-hoc payment links generated from the admin dashboard
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True, index=True)
    reference = Column(String(100), unique=True, index=True, nullable=False)
    authorization_url = Column(String(500), nullable=False)
    access_code = Column(String(100), nullable=True)
    amount = Column(Integer, nullable=False)  # minor units (kobo)
    currency = Column(String(3), nullable=False, default="NGN")
    email = Column(String(255), nullable=True)
    purpose = Column(String(255), nullable=True)
    client_name = Column(String(255), nullable=True)
    status = Column(String(20), default="initialized", nullable=False)  # initialized, success, failed, abandoned
    gateway_response = Column(String(255), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=business_now, nullable=False)

    booking = relationship("Booking", back_populates="payment_sessions")


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    name = Column(String(255), nullable=False)
    org = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=True)  # 1-5
    text = Column(Text, nullable=False)
    photo = Column(String(500), nullable=True)
    approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    content = Column(Text, nullable=False)
    image = Column(String(500), nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class About(Base):
    __tablename__ = "about"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    image = Column(String(500), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
