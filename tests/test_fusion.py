"""Tests for hybrid search fusion."""

import math

import pytest

from uigen_cli.config_manager import FusionSettings
from uigen_cli.fusion import (
    HybridSearch,
    code_query,
    extract_code_features,
    fuse,
    infer_category,
    infer_component_type,
    normalize_scores,
)
from uigen_cli.models import GenerationRequest, Origin, SearchHit

from conftest import FailingProvider, StaticSearch


def sem(id, score, **kwargs):
    return SearchHit(id, score, Origin.SEMANTIC, **kwargs)


def kw(id, score, **kwargs):
    return SearchHit(id, score, Origin.KEYWORD, **kwargs)


class TestFuse:
    """Test the weighted merge of semantic and keyword hits."""

    def test_boosted_merge_scenario(self):
        """Duplicate ids are averaged; keyword-only hits keep their boost."""
        results = fuse([sem("a", 0.9)], [kw("a", 0.8), kw("b", 0.95)])

        assert [r.id for r in results] == ["b", "a"]
        assert results[0].score == pytest.approx(1.045)
        assert results[1].score == pytest.approx(1.025)

    def test_mean_merge_not_sum(self):
        results = fuse([sem("x", 0.5)], [kw("x", 0.5)])
        assert results[0].score == pytest.approx((0.5 * 1.3 + 0.5 * 1.1) / 2)

    def test_repeated_keyword_id_averages_again(self):
        """A second keyword hit for the same id is averaged into the first."""
        results = fuse([], [kw("a", 0.8), kw("a", 0.4)])
        assert len(results) == 1
        assert results[0].score == pytest.approx((0.8 * 1.1 + 0.4 * 1.1) / 2)

    def test_cardinality_capped_and_unique(self):
        semantic = [sem(f"s{i}", i / 30) for i in range(30)]
        keyword = [kw(f"s{i}", i / 40) for i in range(15)] + [kw(f"k{i}", i / 30) for i in range(30)]

        results = fuse(semantic, keyword)

        assert len(results) <= 20
        ids = [r.id for r in results]
        assert len(ids) == len(set(ids))

    def test_sorted_descending(self):
        semantic = [sem(f"s{i}", (i * 7 % 11) / 11) for i in range(11)]
        keyword = [kw(f"k{i}", (i * 5 % 13) / 13) for i in range(13)]

        results = fuse(semantic, keyword)

        for first, second in zip(results, results[1:]):
            assert first.score >= second.score

    def test_ties_broken_by_id(self):
        results = fuse([sem("z", 0.5), sem("m", 0.5), sem("a", 0.5)], [])
        assert [r.id for r in results] == ["a", "m", "z"]

    def test_deterministic(self):
        semantic = [sem("a", 0.3), sem("b", 0.7)]
        keyword = [kw("b", 0.2), kw("c", 0.9)]

        first = [r.to_dict() for r in fuse(semantic, keyword)]
        second = [r.to_dict() for r in fuse(semantic, keyword)]

        assert first == second

    def test_empty_inputs(self):
        assert fuse([], []) == []

    def test_metadata_merge(self):
        semantic = [sem("a", 0.9, title="Semantic title", description="Semantic desc",
                        tags=["form", "login"], attributes={"framework": "react", "rating": 4.0})]
        keyword = [kw("a", 0.8, title="Keyword title", tags=["login", "auth"],
                      attributes={"rating": 4.5})]

        result = fuse(semantic, keyword)[0]

        assert result.title == "Keyword title"
        assert result.description == "Semantic desc"
        assert result.tags == ["form", "login", "auth"]
        assert result.attributes == {"framework": "react", "rating": 4.5}

    def test_nan_score_counts_as_zero(self):
        results = fuse([sem("a", math.nan)], [kw("b", 0.1)])
        scores = {r.id: r.score for r in results}
        assert scores["a"] == 0.0
        assert [r.id for r in results] == ["b", "a"]

    def test_custom_settings(self):
        settings = FusionSettings(semantic_boost=1.0, keyword_boost=2.0, max_results=1)
        results = fuse([sem("a", 0.9)], [kw("b", 0.5)], settings)

        assert len(results) == 1
        assert results[0].id == "b"
        assert results[0].score == pytest.approx(1.0)


class TestNormalizeScores:
    def test_scaled_by_best(self):
        hits = normalize_scores([kw("a", 2.0), kw("b", 4.0), kw("c", 6.0)])
        assert [h.score for h in hits] == pytest.approx([1 / 3, 2 / 3, 1.0])
        assert [h.id for h in hits] == ["a", "b", "c"]

    def test_all_equal(self):
        hits = normalize_scores([kw("a", 3.0), kw("b", 3.0)])
        assert [h.score for h in hits] == [1.0, 1.0]

    def test_weakest_hit_keeps_its_ratio(self):
        hits = normalize_scores([kw("a", 2.0), kw("b", 1.0)])
        assert [h.score for h in hits] == [1.0, 0.5]

    def test_non_positive(self):
        hits = normalize_scores([kw("a", 0.0), kw("b", -1.0)])
        assert [h.score for h in hits] == [0.0, 0.0]

    def test_empty(self):
        assert normalize_scores([]) == []


class TestPromptHeuristics:
    @pytest.mark.parametrize("prompt,expected", [
        ("Login form with validation", "Forms & Inputs"),
        ("user table with paging", "Data Display"),
        ("sales chart", "Data Visualization"),
        ("admin dashboard", "Admin & Dashboard"),
        ("confirmation modal", "Overlays"),
        ("hero banner", "Layout"),
    ])
    def test_infer_category(self, prompt, expected):
        assert infer_category(prompt) == expected

    def test_infer_component_type(self):
        assert infer_component_type("A modal dialog") == "modal"
        assert infer_component_type("Primary button") == "button"
        assert infer_component_type("hero") == "component"

    def test_extract_code_features(self):
        code = "const [v, setV] = useState(0); items.map(x => x)"
        assert extract_code_features(code) == ["stateful", "list rendering"]
        assert code_query(code, "react") == "stateful list rendering react component"


class TestHybridSearch:
    def test_search_report(self):
        semantic = StaticSearch([sem("a", 0.9)])
        keyword = StaticSearch([kw("a", 0.8), kw("b", 0.95)])
        search = HybridSearch(semantic, keyword)

        report = search.search(GenerationRequest(prompt="login form"))

        assert [r.id for r in report.results] == ["b", "a"]
        assert report.semantic_matches == 1
        assert report.keyword_matches == 2
        assert report.total_found == 2
        assert semantic.calls == [("login form", {"framework": "react", "category": "Forms & Inputs"}, 20)]

    def test_provider_failure_yields_empty_list(self):
        search = HybridSearch(StaticSearch([sem("a", 0.9)]), FailingProvider())

        report = search.search(GenerationRequest(prompt="login form", framework="vue"))

        assert [r.id for r in report.results] == ["a"]
        assert report.keyword_matches == 0

    def test_example_code_extends_query(self):
        search = HybridSearch(StaticSearch([]), StaticSearch([]))
        request = GenerationRequest(prompt="login form", example_code="const [a] = useState(0); items.map(f)")

        assert search.query_for(request) == "login form stateful list rendering react component"
        assert search.query_for(GenerationRequest(prompt="login form")) == "login form"
