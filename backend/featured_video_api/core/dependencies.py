"""Dependency injection utilities for FastAPI"""

import logging
from functools import lru_cache

import asyncpg
from fastapi import Cookie, Depends, HTTPException

from featured_video.database import get_database_manager
from featured_video.resolver import FloatingVideoResolver
from featured_video_api.core.config import get_settings
from featured_video_api.core.errors import ForbiddenError
from featured_video_api.services import (
    AuthService,
    FloatingVideoService,
    PostVideoService,
    SettingsService,
)

logger = logging.getLogger(__name__)


# ============================================
# Service Dependencies
# ============================================


def get_auth_service() -> AuthService:
    """Get AuthService instance (dependency injection)"""
    settings = get_settings()
    return AuthService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.jwt_expire_days,
    )


@lru_cache
def get_resolver() -> FloatingVideoResolver:
    """Shared resolver; the aspect ratio is read from settings once."""
    settings = get_settings()
    return FloatingVideoResolver(aspect_ratio=lambda: settings.floating_video_aspect_ratio)


def get_db_pool() -> asyncpg.Pool:
    try:
        db_manager = get_database_manager()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Database not ready") from None
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_floating_video_service(
    pool: asyncpg.Pool = Depends(get_db_pool),
    resolver: FloatingVideoResolver = Depends(get_resolver),
) -> FloatingVideoService:
    return FloatingVideoService(pool, resolver)


def get_post_video_service(pool: asyncpg.Pool = Depends(get_db_pool)) -> PostVideoService:
    return PostVideoService(pool)


def get_settings_service(pool: asyncpg.Pool = Depends(get_db_pool)) -> SettingsService:
    return SettingsService(pool)


# ============================================
# Authentication Dependencies
# ============================================


async def require_admin(auth_token: str | None = Cookie(None)) -> str:
    """Return the user id of an authenticated user holding the admin capability."""
    settings = get_settings()

    if not auth_token:
        logger.warning("No auth token provided")
        raise ForbiddenError("You do not have permission to manage floating videos.")

    payload = get_auth_service().verify_token(auth_token)
    if not payload or not AuthService.has_capability(payload, settings.admin_capability):
        logger.warning("Token rejected or missing admin capability")
        raise ForbiddenError("You do not have permission to manage floating videos.")

    return str(payload["sub"])
