"""Repositories: plain SQL access to the featured video tables."""

from .content import ContentRepository
from .floating_video import FloatingVideoRepository
from .post_video import PostVideoRepository
from .site_options import SiteOptionsRepository
from .widget_document import WidgetDocumentRepository

__all__ = [
    "ContentRepository",
    "FloatingVideoRepository",
    "PostVideoRepository",
    "SiteOptionsRepository",
    "WidgetDocumentRepository",
]
