"""Floating video resolution: records + page context -> client payload."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from featured_video.conditions import RequestContext, matches, rule_from_record
from featured_video.models.floating_video import SOURCE_EMBED, SOURCE_SELF, FloatingVideo
from featured_video.models.site_options import LAYOUT_STANDARD, SiteSettings, VideoControls

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = "16/9"

_ASPECT_RATIO_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)\s*$")

AspectRatioProvider = Callable[[], str]
ControlsOverride = Callable[[str, VideoControls], VideoControls]


def is_valid_aspect_ratio(value: str) -> bool:
    m = _ASPECT_RATIO_RE.match(value or "")
    return bool(m) and float(m.group(1)) > 0 and float(m.group(2)) > 0


@dataclass
class ResolvedVideo:
    video_source: str
    video_url: str
    embed_url: str
    title: str

    def to_dict(self) -> dict[str, str]:
        return {
            "videoSource": self.video_source,
            "videoUrl": self.video_url,
            "embedUrl": self.embed_url,
            "title": self.title,
        }


@dataclass
class FloatingVideoPayload:
    """Everything the popup player needs. ``videos`` is never empty."""

    videos: list[ResolvedVideo]
    self_controls: VideoControls
    embed_controls: VideoControls
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    layout: str = LAYOUT_STANDARD

    def to_dict(self) -> dict:
        return {
            "videos": [v.to_dict() for v in self.videos],
            "selfControls": self.self_controls.to_dict(),
            "embedControls": self.embed_controls.to_dict(),
            "aspectRatio": self.aspect_ratio,
            "layout": self.layout,
        }

    @classmethod
    def from_dict(cls, data: dict) -> FloatingVideoPayload:
        return cls(
            videos=[
                ResolvedVideo(
                    video_source=v.get("videoSource", SOURCE_SELF),
                    video_url=v.get("videoUrl", ""),
                    embed_url=v.get("embedUrl", ""),
                    title=v.get("title", ""),
                )
                for v in data.get("videos", [])
            ],
            self_controls=VideoControls.from_dict(data.get("selfControls")),
            embed_controls=VideoControls.from_dict(data.get("embedControls")),
            aspect_ratio=data.get("aspectRatio") or DEFAULT_ASPECT_RATIO,
            layout=data.get("layout") or LAYOUT_STANDARD,
        )


def _newest_first(record: FloatingVideo) -> tuple[float, int]:
    created = record.created_at.timestamp() if record.created_at else 0.0
    return created, record.id


class FloatingVideoResolver:
    """Select the floating videos for a page view and build the payload.

    Extension points are resolved once here: *aspect_ratio* supplies the
    popup's ``W/H`` ratio and *controls_override* may adjust the control
    flags per source kind (``"self"`` or ``"embed"``).
    """

    def __init__(
        self,
        aspect_ratio: AspectRatioProvider | None = None,
        controls_override: ControlsOverride | None = None,
    ) -> None:
        ratio = aspect_ratio() if aspect_ratio else DEFAULT_ASPECT_RATIO
        if not is_valid_aspect_ratio(ratio):
            logger.warning(f"Invalid aspect ratio {ratio!r}, using {DEFAULT_ASPECT_RATIO}")
            ratio = DEFAULT_ASPECT_RATIO
        self.aspect_ratio = ratio.replace(" ", "")
        self._controls_override = controls_override

    def select(
        self, records: Iterable[FloatingVideo], context: RequestContext
    ) -> list[FloatingVideo]:
        """Published records matching *context*, newest first."""
        published = sorted(
            (r for r in records if r.is_published), key=_newest_first, reverse=True
        )
        return [
            r
            for r in published
            if matches(
                rule_from_record(
                    r.display_type, r.page_ids, r.target_post_types, r.target_taxonomies
                ),
                context,
            )
        ]

    def _video_for(
        self, record: FloatingVideo, media_urls: Mapping[int, str]
    ) -> ResolvedVideo | None:
        if record.video_source == SOURCE_SELF and record.video_id:
            url = media_urls.get(record.video_id, "")
            if not url:
                logger.debug(f"Floating video {record.id}: media {record.video_id} has no URL")
                return None
            return ResolvedVideo(SOURCE_SELF, url, "", record.title)
        if record.video_source == SOURCE_EMBED and record.embed_url:
            return ResolvedVideo(SOURCE_EMBED, record.embed_url, record.embed_url, record.title)
        return None

    def _controls(self, kind: str, controls: VideoControls) -> VideoControls:
        if self._controls_override is None:
            return controls
        return self._controls_override(kind, controls)

    def resolve(
        self,
        records: Iterable[FloatingVideo],
        context: RequestContext,
        settings: SiteSettings,
        media_urls: Mapping[int, str] | None = None,
    ) -> FloatingVideoPayload | None:
        """Build the payload, or return None when no popup should render."""
        matched = self.select(records, context)
        if not matched:
            return None

        media_urls = media_urls or {}
        videos = [v for v in (self._video_for(r, media_urls) for r in matched) if v is not None]
        if not videos:
            return None

        return FloatingVideoPayload(
            videos=videos,
            self_controls=self._controls(SOURCE_SELF, settings.self_controls),
            embed_controls=self._controls(SOURCE_EMBED, settings.embed_controls),
            aspect_ratio=self.aspect_ratio,
            layout=settings.floating_video_layout,
        )
