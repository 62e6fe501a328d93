"""Display conditions for floating videos.

A floating video carries exactly one targeting rule. ``matches`` answers
whether that rule applies to the page being rendered. Missing or malformed
rules never raise; they simply do not match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DISPLAY_SITEWIDE = "sitewide"
DISPLAY_SPECIFIC_PAGES = "specific_pages"
DISPLAY_POST_TYPES = "post_types"
DISPLAY_TAXONOMIES = "taxonomies"
DISPLAY_TYPES = (DISPLAY_SITEWIDE, DISPLAY_SPECIFIC_PAGES, DISPLAY_POST_TYPES, DISPLAY_TAXONOMIES)

# Built-in taxonomies whose archives are not reported as generic taxonomy archives
CATEGORY_TAXONOMY = "category"
TAG_TAXONOMY = "post_tag"
_BUILTIN_TAXONOMIES = {CATEGORY_TAXONOMY, TAG_TAXONOMY}

KIND_SINGULAR = "singular"
KIND_POST_TYPE_ARCHIVE = "post_type_archive"
KIND_TAXONOMY_ARCHIVE = "taxonomy_archive"
KIND_OTHER = "other"
CONTEXT_KINDS = (KIND_SINGULAR, KIND_POST_TYPE_ARCHIVE, KIND_TAXONOMY_ARCHIVE, KIND_OTHER)


# ---------------------------------------------------------------------------
# Targeting rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Sitewide:
    pass


@dataclass(frozen=True)
class SpecificPages:
    page_ids: frozenset[int] = frozenset()


@dataclass(frozen=True)
class PostTypes:
    post_types: frozenset[str] = frozenset()


@dataclass(frozen=True)
class TaxonomyEntry:
    taxonomy: str
    term_ids: frozenset[int] = frozenset()


@dataclass(frozen=True)
class Taxonomies:
    entries: tuple[TaxonomyEntry, ...] = ()


TargetingRule = Sitewide | SpecificPages | PostTypes | Taxonomies


def _int_ids(values: Iterable | None) -> frozenset[int]:
    ids: set[int] = set()
    for value in values or ():
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            continue
    return frozenset(ids)


def rule_from_record(
    display_type: str | None,
    page_ids: Iterable | None = None,
    post_types: Iterable | None = None,
    taxonomies: Iterable | None = None,
) -> TargetingRule | None:
    """Decode stored rule columns. Unknown display types decode to None."""
    if display_type == DISPLAY_SITEWIDE:
        return Sitewide()
    if display_type == DISPLAY_SPECIFIC_PAGES:
        return SpecificPages(_int_ids(page_ids))
    if display_type == DISPLAY_POST_TYPES:
        return PostTypes(frozenset(str(pt) for pt in post_types or () if pt))
    if display_type == DISPLAY_TAXONOMIES:
        entries = []
        for item in taxonomies or ():
            if not isinstance(item, dict):
                continue
            entries.append(
                TaxonomyEntry(str(item.get("taxonomy") or ""), _int_ids(item.get("terms")))
            )
        return Taxonomies(tuple(entries))
    return None


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


@dataclass
class RequestContext:
    """The page being rendered, as seen by the display conditions.

    ``post_type`` is the singular object's type or the archived type;
    ``taxonomy``/``term_id`` describe a term archive; ``post_terms`` holds the
    singular object's term ids per taxonomy.
    """

    queried_object_id: int = 0
    kind: str = KIND_OTHER
    post_type: str | None = None
    taxonomy: str | None = None
    term_id: int | None = None
    post_terms: dict[str, set[int]] = field(default_factory=dict)

    def is_singular(self, post_types: Iterable[str] | None = None) -> bool:
        if self.kind != KIND_SINGULAR:
            return False
        if post_types is None:
            return True
        return self.post_type in set(post_types)

    def is_post_type_archive(self, post_types: Iterable[str]) -> bool:
        return self.kind == KIND_POST_TYPE_ARCHIVE and self.post_type in set(post_types)

    def is_taxonomy_archive(self, taxonomy: str, term_ids: Iterable[int]) -> bool:
        if self.kind != KIND_TAXONOMY_ARCHIVE or self.taxonomy in _BUILTIN_TAXONOMIES:
            return False
        return self.taxonomy == taxonomy and self.term_id in set(term_ids)

    def is_category(self, term_ids: Iterable[int]) -> bool:
        return self._is_builtin_archive(CATEGORY_TAXONOMY, term_ids)

    def is_tag(self, term_ids: Iterable[int]) -> bool:
        return self._is_builtin_archive(TAG_TAXONOMY, term_ids)

    def _is_builtin_archive(self, taxonomy: str, term_ids: Iterable[int]) -> bool:
        return (
            self.kind == KIND_TAXONOMY_ARCHIVE
            and self.taxonomy == taxonomy
            and self.term_id in set(term_ids)
        )

    def current_post_term_ids(self, taxonomy: str) -> set[int]:
        if self.kind != KIND_SINGULAR:
            return set()
        return set(self.post_terms.get(taxonomy, ()))


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def _matches_taxonomies(rule: Taxonomies, context: RequestContext) -> bool:
    for entry in rule.entries:
        if not entry.taxonomy or not entry.term_ids:
            continue

        # Generic archive check plus the legacy category/tag archive checks;
        # the union is kept even where they overlap.
        if (
            context.is_taxonomy_archive(entry.taxonomy, entry.term_ids)
            or context.is_category(entry.term_ids)
            or context.is_tag(entry.term_ids)
        ):
            return True

        if context.is_singular() and context.current_post_term_ids(entry.taxonomy) & entry.term_ids:
            return True

    return False


def matches(rule: TargetingRule | None, context: RequestContext) -> bool:
    """Return True if *rule* applies to *context*."""
    if isinstance(rule, Sitewide):
        return True

    if isinstance(rule, SpecificPages):
        if not rule.page_ids:
            return False
        return context.queried_object_id in rule.page_ids

    if isinstance(rule, PostTypes):
        if not rule.post_types:
            return False
        return context.is_singular(rule.post_types) or context.is_post_type_archive(
            rule.post_types
        )

    if isinstance(rule, Taxonomies):
        return _matches_taxonomies(rule, context)

    logger.debug(f"Unknown targeting rule {rule!r}, treating as no match")
    return False
