"""Data model for the floating_videos table."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

STATUS_PUBLISH = "publish"
STATUS_DRAFT = "draft"

SOURCE_SELF = "self"
SOURCE_EMBED = "embed"


@dataclass
class FloatingVideo:
    """Floating video record."""

    id: int
    title: str
    status: str  # 'publish' | 'draft'
    video_source: str  # 'self' | 'embed'
    display_type: str  # 'sitewide' | 'specific_pages' | 'post_types' | 'taxonomies'
    video_id: int | None = None
    embed_url: str | None = None
    page_ids: list[int] = field(default_factory=list)
    target_post_types: list[str] = field(default_factory=list)
    target_taxonomies: list[dict] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISH
