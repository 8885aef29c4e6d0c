"""Shared validation utilities"""

import re
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an international phone number to E.164-like form.

    Local Nigerian numbers with a leading 0 (e.g. 0803 123 4567) are
    rewritten with the +234 country code.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number (+<country><subscriber>)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    has_plus = phone.startswith("+")

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if not has_plus and digits.startswith("0") and len(digits) == 11:
        digits = "234" + digits[1:]

    # E.164 allows at most 15 digits
    if len(digits) < 8 or len(digits) > 15:
        raise ValueError("Phone number must contain between 8 and 15 digits")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def slugify(title: str) -> str:
    """Lowercase, drop punctuation, hyphenate spaces and collapse repeated hyphens"""
    slug = title.strip().lower()
    slug = re.sub(r"[^a-z0-9 -]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def split_tags(raw: Optional[str]) -> list[str]:
    """Turn a comma-separated tag string into a clean list"""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]
