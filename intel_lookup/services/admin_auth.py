"""
Admin authentication service - HS256 JWTs for admin console users.

Tokens are minted out of band (scripts/issue_admin_token.py) and verified on
every admin request.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from intel_lookup.db.models import AdminUser
from intel_lookup.models.api import AdminRole

logger = get_logger(__name__)


class AdminAuthService:
    """Admin authentication service."""

    def __init__(self, jwt_secret: str, jwt_expire_hours: int = 24):
        self.jwt_secret = jwt_secret
        self.jwt_expire_hours = jwt_expire_hours

    def create_token(self, admin_user: AdminUser) -> str:
        """Create JWT token for admin user."""
        now = datetime.now(UTC)
        payload = {
            "sub": str(admin_user.id),
            "email": admin_user.email,
            "role": admin_user.role,
            "iat": now,
            "exp": now + timedelta(hours=self.jwt_expire_hours),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm="HS256")

    def verify_jwt_token(self, token: str) -> dict[str, str | int] | None:
        """Verify JWT token and return payload."""
        try:
            payload: dict[str, str | int] = jwt.decode(token, self.jwt_secret, algorithms=["HS256"])
            return payload
        except jwt.ExpiredSignatureError:
            logger.warning("jwt_token_expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning("jwt_token_invalid", error=str(e))
            return None

    async def get_admin_user_by_id(self, db: AsyncSession, user_id: UUID) -> AdminUser | None:
        """Get admin user by ID."""
        stmt = select(AdminUser).where(AdminUser.id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_admin_user(
        self, db: AsyncSession, email: str, name: str, role: AdminRole
    ) -> AdminUser:
        """Fetch an admin by email, creating it with the given role if absent."""
        result = await db.execute(select(AdminUser).where(AdminUser.email == email))
        admin_user = result.scalar_one_or_none()

        if admin_user is None:
            admin_user = AdminUser(email=email, name=name, role=role.value, is_active=True)
            db.add(admin_user)
            logger.info("new_admin_user_created", email=email, role=role.value)
        elif not admin_user.is_active:
            raise ValueError(f"Admin account {email} is deactivated")

        admin_user.last_login = datetime.now(UTC)
        await db.commit()
        await db.refresh(admin_user)
        return admin_user
