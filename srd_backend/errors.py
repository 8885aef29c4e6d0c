"""Typed application errors, each mapped to an HTTP status by the handlers in main.py"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError


class AppError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidDateError(AppError):
    status_code = 400
    default_message = "Invalid date"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class BookingStateError(AppError):
    """Booking is not in a state that allows the requested payment action"""

    status_code = 409
    default_message = "Booking cannot be paid in its current state"


class SlotConflictError(AppError):
    """The requested slot is occupied; carries the remaining free slots for that day"""

    status_code = 422
    default_message = "Selected time slot is no longer available"

    def __init__(self, message: Optional[str] = None, suggestions: Optional[list[Any]] = None):
        super().__init__(message)
        self.suggestions = suggestions or []


class RateLimitError(AppError):
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class PaymentInitError(AppError):
    status_code = 502
    default_message = "Could not start payment with the gateway"


class PaymentVerificationError(AppError):
    status_code = 502
    default_message = "Could not verify payment with the gateway"


class PersistenceError(AppError):
    status_code = 500
    default_message = "Database temporarily unavailable"


def validation_error_from_pydantic(exc) -> ValidationError:
    """Collapse pydantic (or FastAPI request) validation errors into one readable message"""
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header"))
        if err.get("type") == "missing" or err.get("input") is None:
            messages.append(f"{field} is required")
        else:
            msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
            messages.append(f"{field}: {msg}" if field else msg)
    return ValidationError("; ".join(messages) or None)


def validate_form(model_cls, **values):
    """Build a pydantic model from form fields, raising our ValidationError on bad input"""
    try:
        return model_cls(**values)
    except PydanticValidationError as e:
        raise validation_error_from_pydantic(e) from None
