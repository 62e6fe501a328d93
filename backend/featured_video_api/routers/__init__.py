"""API routers"""

from . import floating_videos_router, posts_router, public_router, settings_router

__all__ = [
    "floating_videos_router",
    "posts_router",
    "public_router",
    "settings_router",
]
