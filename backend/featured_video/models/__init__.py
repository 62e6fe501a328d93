"""Data models shared by the API and the core pipeline."""

from .content import PostContext, PostSummary, TaxonomyOption, TermSummary, TypeOption
from .floating_video import FloatingVideo
from .post_video import PostVideoMeta
from .site_options import SiteSettings, VideoControls

__all__ = [
    "FloatingVideo",
    "PostContext",
    "PostSummary",
    "PostVideoMeta",
    "SiteSettings",
    "TaxonomyOption",
    "TermSummary",
    "TypeOption",
    "VideoControls",
]
