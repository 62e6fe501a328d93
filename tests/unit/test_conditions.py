"""Tests for floating video display conditions."""

import pytest

from featured_video.conditions import (
    PostTypes,
    RequestContext,
    Sitewide,
    SpecificPages,
    Taxonomies,
    TaxonomyEntry,
    matches,
    rule_from_record,
)


def singular(object_id: int, post_type: str = "post", terms: dict | None = None) -> RequestContext:
    return RequestContext(
        queried_object_id=object_id, kind="singular", post_type=post_type, post_terms=terms or {}
    )


def term_archive(taxonomy: str, term_id: int) -> RequestContext:
    return RequestContext(
        queried_object_id=term_id, kind="taxonomy_archive", taxonomy=taxonomy, term_id=term_id
    )


class TestSitewideAndPages:
    @pytest.mark.parametrize(
        "context",
        [
            RequestContext(),
            singular(5),
            term_archive("genre", 3),
            RequestContext(kind="post_type_archive", post_type="product"),
        ],
    )
    def test_sitewide_matches_any_context(self, context):
        assert matches(Sitewide(), context) is True

    def test_specific_pages_membership(self):
        rule = SpecificPages(frozenset({12, 34}))
        assert matches(rule, singular(34)) is True
        assert matches(rule, singular(99)) is False

    def test_specific_pages_empty_never_matches(self):
        assert matches(SpecificPages(), singular(0)) is False
        assert matches(SpecificPages(), singular(12)) is False

    def test_specific_pages_compares_queried_object_on_term_archive(self):
        # A term archive's queried object is the term itself
        assert matches(SpecificPages(frozenset({7})), term_archive("genre", 7)) is True


class TestPostTypes:
    def test_singular_of_listed_type(self):
        assert matches(PostTypes(frozenset({"product"})), singular(9, "product")) is True

    def test_singular_of_other_type(self):
        assert matches(PostTypes(frozenset({"product"})), singular(9, "post")) is False

    def test_archive_of_listed_type(self):
        context = RequestContext(kind="post_type_archive", post_type="product")
        assert matches(PostTypes(frozenset({"product"})), context) is True

    def test_empty_never_matches(self):
        assert matches(PostTypes(), singular(9, "post")) is False


class TestTaxonomies:
    def test_singular_post_with_matching_term(self):
        rule = Taxonomies((TaxonomyEntry("category", frozenset({5})),))
        context = singular(77, terms={"category": {5, 8}})
        assert matches(rule, context) is True

    def test_singular_post_without_term(self):
        rule = Taxonomies((TaxonomyEntry("category", frozenset({5})),))
        assert matches(rule, singular(77, terms={"category": {8}})) is False

    def test_custom_taxonomy_archive(self):
        rule = Taxonomies((TaxonomyEntry("genre", frozenset({3})),))
        assert matches(rule, term_archive("genre", 3)) is True
        assert matches(rule, term_archive("genre", 4)) is False

    def test_category_and_tag_archives_use_builtin_checks(self):
        context = term_archive("category", 5)
        assert context.is_taxonomy_archive("category", {5}) is False
        assert context.is_category({5}) is True

        rule = Taxonomies((TaxonomyEntry("category", frozenset({5})),))
        assert matches(rule, context) is True

        tag_rule = Taxonomies((TaxonomyEntry("post_tag", frozenset({9})),))
        assert matches(tag_rule, term_archive("post_tag", 9)) is True

    def test_legacy_category_check_ignores_entry_taxonomy(self):
        # An entry for another taxonomy still matches a category archive of the same id
        rule = Taxonomies((TaxonomyEntry("genre", frozenset({5})),))
        assert matches(rule, term_archive("category", 5)) is True

    def test_entries_with_empty_parts_are_skipped(self):
        rule = Taxonomies(
            (
                TaxonomyEntry("", frozenset({5})),
                TaxonomyEntry("category", frozenset()),
                TaxonomyEntry("genre", frozenset({3})),
            )
        )
        assert matches(rule, singular(1, terms={"category": {5}})) is False
        assert matches(rule, singular(1, terms={"genre": {3}})) is True

    def test_other_context_never_matches(self):
        rule = Taxonomies((TaxonomyEntry("category", frozenset({5})),))
        assert matches(rule, RequestContext()) is False


class TestMalformedRules:
    def test_none_rule(self):
        assert matches(None, singular(1)) is False

    def test_unknown_object(self):
        assert matches("sitewide", singular(1)) is False  # type: ignore[arg-type]


class TestRuleFromRecord:
    def test_unknown_display_type_decodes_to_none(self):
        assert rule_from_record("everywhere") is None
        assert rule_from_record(None) is None

    def test_specific_pages_ids_are_coerced(self):
        rule = rule_from_record("specific_pages", page_ids=["12", 34, "x", None])
        assert rule == SpecificPages(frozenset({12, 34}))

    def test_taxonomies_skip_non_dict_entries(self):
        rule = rule_from_record(
            "taxonomies", taxonomies=[{"taxonomy": "genre", "terms": ["3", 4]}, "junk"]
        )
        assert rule == Taxonomies((TaxonomyEntry("genre", frozenset({3, 4})),))

    def test_sitewide_ignores_lists(self):
        assert rule_from_record("sitewide", page_ids=[1]) == Sitewide()
