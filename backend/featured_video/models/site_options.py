"""Site-wide options stored in the site_options table."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

CONTROL_FLAGS = ("controls", "autoplay", "loop", "mute", "pip", "download")

LAYOUT_STANDARD = "standard"
LAYOUT_STORY = "story"
VALID_LAYOUTS = {LAYOUT_STANDARD, LAYOUT_STORY}


@dataclass(frozen=True)
class VideoControls:
    """Player behaviour flags for one source kind (self-hosted or embed)."""

    controls: bool = True
    autoplay: bool = False
    loop: bool = False
    mute: bool = False
    pip: bool = False
    download: bool = False

    @classmethod
    def from_dict(cls, data: dict | None) -> VideoControls:
        data = data or {}
        return cls(**{name: bool(data[name]) for name in CONTROL_FLAGS if name in data})

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass
class SiteSettings:
    self_controls: VideoControls = field(default_factory=VideoControls)
    embed_controls: VideoControls = field(default_factory=VideoControls)
    floating_video_layout: str = LAYOUT_STANDARD
    post_types: list[str] = field(default_factory=lambda: ["post"])
