"""Tests for the suggestion ranker, tables and taxonomy."""

from aggregator import suggestions
from aggregator.suggestions import (
    autocomplete_combined,
    autocomplete_performers,
    autocomplete_terms,
    categorized_suggestions,
    popular_searches,
    related_searches,
    set_custom_terms,
)
from aggregator.suggestions.ranker import PREFIX_TIER, SUBSTRING_TIER, WORD_PREFIX_TIER, rank, score
from aggregator.suggestions.taxonomy import normalize_term, related_terms, smart_related, synonyms


class TestRanker:
    def test_shorter_prefix_match_wins(self):
        ranked = rank("po", ["porntube", "pornhub"], 10)
        assert [name for name, _ in ranked] == ["pornhub", "porntube"]

    def test_tiers(self):
        ranked = rank("hub", ["pornhub", "my hub", "hub cams"], 10)
        assert [name for name, _ in ranked] == ["hub cams", "my hub", "pornhub"]

    def test_tier_dominates_length(self):
        assert score("ab", "ab" + "x" * 500) > score("ab", "x ab")
        assert score("ab", "x ab") > score("ab", "xab")

    def test_score_bands(self):
        assert (PREFIX_TIER - 1) * 1000 < score("po", "porn") < PREFIX_TIER * 1000
        assert (WORD_PREFIX_TIER - 1) * 1000 < score("po", "big porn") < WORD_PREFIX_TIER * 1000
        assert (SUBSTRING_TIER - 1) * 1000 < score("po", "xpo") < SUBSTRING_TIER * 1000
        assert score("po", "nothing") == 0

    def test_short_prefix_returns_nothing(self):
        assert rank("p", ["pornhub"], 10) == []
        assert rank("p", ["pornhub"], 10, min_length=1) != []

    def test_ties_keep_table_order(self):
        ranked = rank("ab", ["abx", "aby", "abz"], 10)
        assert [name for name, _ in ranked] == ["abx", "aby", "abz"]

    def test_limit(self):
        assert len(rank("a", ["a1", "a2", "a3"], 2, min_length=1)) == 2
        assert rank("a", ["a1"], 0, min_length=1) == []

    def test_multiple_keys_best_counts(self):
        ranked = rank("ph", ["redtube", "pornhub"], 10, key=lambda name: {"pornhub": ["ph"], "redtube": ["rt"]}[name])
        assert ranked[0][0] == "pornhub"
        assert len(ranked) == 1


class TestAutocomplete:
    def test_terms(self):
        results = autocomplete_terms("mil")
        assert results[0].term == "milf"
        assert all(s.type == "search" for s in results)

    def test_performers(self):
        results = autocomplete_performers("mia")
        assert results[0].term == "mia li"
        assert {"mia khalifa", "mia malkova"} <= {s.term for s in results}
        assert all(s.type == "performer" for s in results)

    def test_combined_puts_performers_first(self):
        results = autocomplete_combined("mia", limit=10)
        types = [s.type for s in results]
        assert types[0] == "performer"
        assert types == sorted(types, key=lambda t: t != "performer")
        terms = [s.term.lower() for s in results]
        assert len(terms) == len(set(terms))

    def test_score_is_not_serialized(self):
        suggestion = autocomplete_terms("mil")[0]
        assert suggestion.score > 0
        assert suggestion.model_dump() == {"term": "milf", "type": "search"}

    def test_single_character_prefix_returns_nothing(self):
        assert autocomplete_terms("m") == []
        assert autocomplete_combined("") == []

    def test_custom_terms_are_merged(self):
        assert autocomplete_terms("zzq") == []
        set_custom_terms(["zzqcustom", "ZZQCUSTOM", "  "])
        assert suggestions.get_tables().custom_terms == ("zzqcustom",)
        assert [s.term for s in autocomplete_terms("zzq")] == ["zzqcustom"]

    def test_popular_searches(self):
        assert popular_searches(3) == ["teen", "milf", "lesbian"]
        assert popular_searches(0) == []


class TestRelated:
    def test_taxonomy_terms_come_first(self):
        related = related_searches("milf")
        assert related[0] == "stepmom"
        assert "milf" not in related
        assert len(related) <= 8

    def test_limit_and_empty(self):
        assert len(related_searches("big tits", limit=3)) <= 3
        assert related_searches("") == []
        assert related_searches("milf", limit=0) == []

    def test_categories_end_with_performers(self):
        categories = categorized_suggestions()
        assert categories[-1]["name"] == "performers"
        assert len(categories[-1]["terms"]) == 8


class TestTaxonomy:
    def test_normalize_term(self):
        assert normalize_term("Cougar") == "milf"
        assert normalize_term("unknownword") == "unknownword"

    def test_category_name_beats_synonym(self):
        assert normalize_term("stepmom") == "stepmom"

    def test_synonyms_and_related(self):
        assert "blowjob" in synonyms("bj")
        assert synonyms("unknownword") == ["unknownword"]
        assert related_terms("unknownword") == []

    def test_smart_related_starts_with_words(self):
        related = smart_related("busty milf", 10)
        assert related[:2] == ["busty", "milf"]
        assert len(related) == 10
        assert "busty milf" not in related
