"""Input sanitizers for ids, keys and URLs coming from admin requests."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlparse

_KEY_RE = re.compile(r"[^a-z0-9_\-]")


def absint(value: Any) -> int:
    """Non-negative integer, 0 for anything unparseable."""
    try:
        return abs(int(value))
    except (TypeError, ValueError):
        return 0


def sanitize_key(value: Any) -> str:
    """Lowercase and strip everything but ``a-z 0-9 _ -``."""
    if value is None:
        return ""
    return _KEY_RE.sub("", str(value).lower())


def sanitize_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def sanitize_url(value: Any) -> str:
    """Keep http(s) URLs with a host, return "" for anything else."""
    url = str(value or "").strip()
    if not url:
        return ""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ""
    return url


def id_list(values: Iterable[Any] | None) -> list[int]:
    """Positive ids, de-duplicated, input order kept."""
    seen: dict[int, None] = {}
    for value in values or ():
        n = absint(value)
        if n:
            seen.setdefault(n, None)
    return list(seen)


def key_list(values: Iterable[Any] | None) -> list[str]:
    seen: dict[str, None] = {}
    for value in values or ():
        key = sanitize_key(value)
        if key:
            seen.setdefault(key, None)
    return list(seen)
