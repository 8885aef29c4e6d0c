"""Uniform JSON envelope returned by every endpoint"""

from typing import Any, Optional


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return {"success": True, "data": data, "message": message}


def error_body(message: str, **extra: Any) -> dict:
    body = {"success": False, "data": None, "message": message}
    body.update(extra)
    return body
