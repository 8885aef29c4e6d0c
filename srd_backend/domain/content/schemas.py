"""Content domain schemas - testimonials, blog, about and contact"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


# ============================================================================
# TESTIMONIALS
# ============================================================================


class TestimonialCreate(BaseModel):
    name: str
    text: str
    org: Optional[str] = None
    rating: Optional[int] = None

    @field_validator("name", "text")
    @classmethod
    def require_text(cls, v):
        return _require_text(v)

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError("must be between 1 and 5")
        return v


class TestimonialResponse(BaseModel):
    id: str
    name: str
    org: Optional[str] = None
    rating: Optional[int] = None
    text: str
    photo: Optional[str] = None
    approved: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# BLOG
# ============================================================================


class BlogPostCreate(BaseModel):
    title: str
    content: str
    tags: list[str] = []

    @field_validator("title", "content")
    @classmethod
    def require_text(cls, v):
        return _require_text(v)


class BlogPostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("title", "content")
    @classmethod
    def require_text(cls, v):
        if v is None:
            return v
        return _require_text(v)


class BlogPostResponse(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    image: Optional[str] = None
    tags: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# ABOUT
# ============================================================================


class AboutResponse(BaseModel):
    id: int
    content: str
    image: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# CONTACT
# ============================================================================


class ContactCreate(BaseModel):
    """Schema for the public contact form"""

    name: str
    email: str
    subject: str
    message: str
    phone: Optional[str] = None

    @field_validator("name", "subject", "message")
    @classmethod
    def require_text(cls, v):
        return _require_text(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_phone(v)
        return None


class ContactResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
