"""Read models for the content catalog (posts, terms, types, taxonomies)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PostContext:
    """What the matcher needs to know about a single post."""

    id: int
    post_type: str
    term_ids: dict[str, set[int]] = field(default_factory=dict)


@dataclass
class PostSummary:
    id: int
    title: str
    post_type: str
    type_label: str


@dataclass
class TermSummary:
    id: int
    name: str
    taxonomy: str
    taxonomy_label: str


@dataclass
class TypeOption:
    name: str
    label: str


@dataclass
class TaxonomyOption:
    name: str
    label: str
    terms: list[TermSummary] = field(default_factory=list)
