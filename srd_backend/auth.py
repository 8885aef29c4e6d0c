import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ADMIN_EMAIL, ADMIN_PASSWORD
from .database import get_db
from .errors import AuthenticationError
from .models import AdminUser
from .security_utils import hash_password_bcrypt, verify_jwt_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header surfaces as our own 401 envelope
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminCredential:
    """Authenticated admin identity resolved from the bearer token for one request"""

    admin_id: int
    email: str
    expires_at: datetime


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AdminCredential:
    """Resolve the admin behind the Authorization header or fail with 401"""

    if not credentials:
        logger.warning("⚠️ Admin request without credentials")
        raise AuthenticationError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise AuthenticationError("Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    try:
        admin_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Token missing admin ID claim. Available claims: {list(payload.keys())}")
        raise AuthenticationError("Invalid token claims") from e

    admin = db.query(AdminUser).filter(AdminUser.id == admin_id).first()
    if not admin or not admin.is_active:
        logger.warning(f"⚠️ Token for unknown or inactive admin_id: {admin_id}")
        raise AuthenticationError("Admin account not found")

    return AdminCredential(
        admin_id=admin.id,
        email=admin.email,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def bootstrap_admin(db: Session) -> Optional[AdminUser]:
    """Create the configured admin account on first start"""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.info("ℹ️ ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin bootstrap")
        return None

    email = ADMIN_EMAIL.strip().lower()
    existing = db.query(AdminUser).filter(AdminUser.email == email).first()
    if existing:
        return existing

    admin = AdminUser(email=email, password_hash=hash_password_bcrypt(ADMIN_PASSWORD))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"✅ Bootstrapped admin account: {email}")
    return admin
