"""Admin router - dashboard authentication"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AdminCredential, get_current_admin
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...shared.responses import ok
from .schemas import LoginRequest
from .service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])

login_rate_limit = create_rate_limiter(limit=10, window_seconds=900, key_prefix="admin_login")


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.post("/login")
async def login(
    data: LoginRequest,
    _: None = Depends(login_rate_limit),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.login(data.email, data.password), message="Signed in")


@router.get("/me")
async def whoami(admin: AdminCredential = Depends(get_current_admin)):
    """Lets the dashboard check whether its stored token is still valid"""
    return ok({"id": admin.admin_id, "email": admin.email, "expires_at": admin.expires_at})
