#!/usr/bin/env python3
"""
Issue Admin Token

Creates the admin user if needed and prints a signed JWT for the admin API.

Usage:
    python scripts/issue_admin_token.py admin@example.org "Jane Doe" --role moderator
"""

import argparse
import asyncio

import structlog

from intel_lookup.config import settings
from intel_lookup.db.session import close_engines, get_write_session_factory
from intel_lookup.models.api import AdminRole
from intel_lookup.services.admin_auth import AdminAuthService

logger = structlog.get_logger()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue an admin API token")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("name", help="Display name used when the admin is created")
    parser.add_argument(
        "--role",
        choices=[role.value for role in AdminRole],
        default=AdminRole.ADMIN.value,
        help="Role for a newly created admin (existing admins keep theirs)",
    )
    return parser.parse_args()


async def issue_token(email: str, name: str, role: AdminRole) -> str:
    """Get or create the admin and sign a token for them."""
    if not settings.ADMIN_JWT_SECRET:
        raise SystemExit("ADMIN_JWT_SECRET is not set")

    auth_service = AdminAuthService(
        jwt_secret=settings.ADMIN_JWT_SECRET,
        jwt_expire_hours=settings.admin_jwt_expire_hours,
    )
    factory = get_write_session_factory()
    try:
        async with factory() as session:
            admin_user = await auth_service.get_or_create_admin_user(session, email, name, role)
            token = auth_service.create_token(admin_user)
    finally:
        await close_engines()

    logger.info("admin_token_issued", email=email, role=admin_user.role)
    return token


def main() -> None:
    args = parse_args()
    print(asyncio.run(issue_token(args.email, args.name, AdminRole(args.role))))


if __name__ == "__main__":
    main()
