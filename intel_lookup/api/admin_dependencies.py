"""
Admin console dependencies: JWT verification and role gating.

Tokens are minted by scripts/issue_admin_token.py and presented either as a
Bearer header or as the admin_token cookie.
"""

from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from intel_lookup.config import get_settings
from intel_lookup.db.models import AdminUser
from intel_lookup.db.session import get_write_db
from intel_lookup.models.api import AdminRole
from intel_lookup.services.admin_auth import AdminAuthService

logger = get_logger(__name__)

ADMIN_TOKEN_COOKIE = "admin_token"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def presented_token(request: Request, authorization: str | None) -> str | None:
    """Bearer token from the Authorization header, else the admin_token cookie."""
    if authorization and authorization.startswith("Bearer "):
        token = authorization.removeprefix("Bearer ").strip()
        if token:
            return token
    return request.cookies.get(ADMIN_TOKEN_COOKIE) or None


def get_admin_auth_service() -> AdminAuthService:
    """503 when ADMIN_JWT_SECRET is unset, so the console fails closed."""
    settings = get_settings()
    if not settings.ADMIN_JWT_SECRET:
        logger.error("admin_auth_not_configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication is not configured",
        )
    return AdminAuthService(
        jwt_secret=settings.ADMIN_JWT_SECRET,
        jwt_expire_hours=settings.admin_jwt_expire_hours,
    )


async def get_current_admin(
    request: Request,
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_write_db),
    auth_service: AdminAuthService = Depends(get_admin_auth_service),
) -> AdminUser:
    """
    Resolve the admin user behind the presented token.

    Raises:
        HTTPException(401): Missing, invalid or expired token, or unknown admin
        HTTPException(403): Admin account deactivated
    """
    token = presented_token(request, authorization)
    if token is None:
        logger.warning("admin_auth_no_token", path=request.url.path)
        raise _unauthorized("Not authenticated")

    claims = auth_service.verify_jwt_token(token)
    if claims is None:
        logger.warning("admin_auth_invalid_token", path=request.url.path)
        raise _unauthorized("Invalid or expired token")

    try:
        admin_id = UUID(str(claims["sub"]))
    except (KeyError, ValueError) as exc:
        logger.warning("admin_auth_bad_subject", error=str(exc))
        raise _unauthorized("Invalid token payload") from exc

    admin = await auth_service.get_admin_user_by_id(db, admin_id)
    if admin is None:
        logger.warning("admin_auth_unknown_admin", admin_id=str(admin_id))
        raise _unauthorized("User not found")

    if not admin.is_active:
        logger.warning("admin_auth_deactivated", admin_id=str(admin_id))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return admin


async def require_admin_role(admin: AdminUser = Depends(get_current_admin)) -> AdminUser:
    """Write access. Moderators get 403."""
    if admin.role != AdminRole.ADMIN.value:
        logger.warning("admin_write_denied", admin_id=str(admin.id), role=admin.role)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Admin role required. Your role: {admin.role} (read-only)",
        )
    return admin
