"""Embed URL normalization for YouTube, Vimeo and Dailymotion links."""

from __future__ import annotations

import re

from featured_video.models.site_options import VideoControls

_YOUTUBE_RE = re.compile(r"(?:youtube\.com/(?:watch\?v=|embed/)|youtu\.be/)([\w-]{11})")
_VIMEO_RE = re.compile(r"vimeo\.com/(?:video/)?(\d+)")
_DAILYMOTION_RE = re.compile(r"dailymotion\.com/video/(\w+)")

_EMBED_BASES = (
    (_YOUTUBE_RE, "https://www.youtube.com/embed/"),
    (_VIMEO_RE, "https://player.vimeo.com/video/"),
    (_DAILYMOTION_RE, "https://www.dailymotion.com/embed/video/"),
)


def embed_base_url(url: str) -> str | None:
    """Return the host's canonical embed URL for *url*, or None if unrecognized."""
    for pattern, base in _EMBED_BASES:
        m = pattern.search(url)
        if m:
            return base + m.group(1)
    return None


def embed_params(controls: VideoControls) -> list[str]:
    params = [
        "autoplay=1" if controls.autoplay else "autoplay=0",
        "controls=1" if controls.controls else "controls=0",
    ]
    if controls.loop:
        params.append("loop=1")
    if controls.mute:
        params += ["mute=1", "muted=1"]
    if controls.pip:
        params.append("picture-in-picture=1")
    params.append("rel=0")
    return params


def normalize_embed_url(url: str, controls: VideoControls | dict | None = None) -> str:
    """Rewrite a video page URL into an embeddable player URL.

    Unknown hosts (and already-embeddable URLs from other hosts) are returned
    unchanged; whether they can be framed is up to the host.

    >>> normalize_embed_url("https://youtu.be/abc12345678", {"autoplay": True, "mute": True})
    'https://www.youtube.com/embed/abc12345678?autoplay=1&controls=1&mute=1&muted=1&rel=0'
    """
    if not isinstance(controls, VideoControls):
        controls = VideoControls.from_dict(controls)

    base = embed_base_url(url)
    if base is None:
        return url
    return base + "?" + "&".join(embed_params(controls))
