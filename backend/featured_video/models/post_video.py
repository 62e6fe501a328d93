"""Data model for the post_videos table (canonical featured video per post)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PostVideoMeta:
    """The four canonical fields of a post's featured video.

    Empty values are normalized to ``None`` for ids and ``""`` for the embed
    URL so two snapshots compare equal whenever they describe the same video.
    """

    source: str = "self"  # 'self' | 'embed'
    video_id: int | None = None
    poster_id: int | None = None
    embed_url: str = ""

    @property
    def has_video(self) -> bool:
        return bool(self.video_id or self.embed_url)

    def exclusive(self) -> PostVideoMeta:
        """Copy with the fields of the other source cleared."""
        if self.source == "embed":
            return PostVideoMeta(source="embed", embed_url=self.embed_url)
        return PostVideoMeta(
            source=self.source, video_id=self.video_id, poster_id=self.poster_id
        )
