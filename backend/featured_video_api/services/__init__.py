"""API services"""

from .auth_service import AuthService
from .floating_video_service import FloatingVideoService
from .post_video_service import PostVideoService
from .settings_service import SettingsService

__all__ = [
    "AuthService",
    "FloatingVideoService",
    "PostVideoService",
    "SettingsService",
]
