"""Admin service - dashboard sign-in"""

import logging

from sqlalchemy.orm import Session

from ...errors import AuthenticationError
from ...models import AdminUser
from ...security_utils import create_jwt_token, verify_password_bcrypt
from .schemas import TokenResponse

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str, password: str) -> TokenResponse:
        """Exchange admin credentials for a short-lived bearer token"""
        email = (email or "").strip().lower()
        admin = self.db.query(AdminUser).filter(AdminUser.email == email).first()

        if not admin or not admin.is_active or not verify_password_bcrypt(password, admin.password_hash):
            logger.warning(f"⚠️ Failed admin login for {email}")
            raise AuthenticationError("Invalid email or password")

        token, expires_at = create_jwt_token({"sub": str(admin.id), "email": admin.email})
        logger.info(f"🔐 Admin {admin.email} signed in")
        return TokenResponse(token=token, expires_at=expires_at)
