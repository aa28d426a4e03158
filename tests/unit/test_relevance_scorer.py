"""
Unit tests for the Relevance Scorer
"""
from datetime import timedelta

import pytest

from api.engines.discovery.relevance_scorer import RelevanceScorer
from api.engines.discovery.schemas import SearchFilters


@pytest.fixture
def scorer(fixed_now):
    return RelevanceScorer(clock=lambda: fixed_now)


class TestRelevanceScore:
    """Tests for score()"""

    @pytest.mark.unit
    def test_base_score_without_query(self, scorer, make_item):
        """Test an old item with no matching filters gets the base score"""
        assert scorer.score(make_item("a"), SearchFilters()) == pytest.approx(0.5)

    @pytest.mark.unit
    def test_exact_title_match_saturates(self, scorer, make_item):
        """Test an exact title match clamps to 1.0"""
        item = make_item("a", title="Blue Horizon")
        assert scorer.score(item, SearchFilters(query="blue horizon")) == 1.0

    @pytest.mark.unit
    def test_description_match(self, scorer, make_item):
        """Test a description-only match adds 0.3"""
        item = make_item("a", title="Untitled", description="A calm blue sea")
        assert scorer.score(item, SearchFilters(query="blue")) == pytest.approx(0.8)

    @pytest.mark.unit
    def test_tag_match(self, scorer, make_item):
        """Test a tag-only match adds 0.4"""
        item = make_item("a", title="Untitled", tags=["Ocean", "blue-hour"])
        assert scorer.score(item, SearchFilters(query="blue")) == pytest.approx(0.9)

    @pytest.mark.unit
    def test_category_and_style_filters(self, scorer, make_item):
        """Test matching category and style filters add 0.2 each"""
        item = make_item("a", category="photography", style="minimalist")
        filters = SearchFilters(categories=["photography"], styles=["minimalist"])
        assert scorer.score(item, filters) == pytest.approx(0.9)

    @pytest.mark.unit
    def test_recency_bonus(self, scorer, make_item, fixed_now):
        """Test items created within 30 days get a bonus"""
        recent = make_item("a", created_at=fixed_now - timedelta(days=10))
        boundary = make_item("b", created_at=fixed_now - timedelta(days=30))

        assert scorer.score(recent, SearchFilters()) == pytest.approx(0.6)
        assert scorer.score(boundary, SearchFilters()) == pytest.approx(0.5)

    @pytest.mark.unit
    def test_naive_timestamps_are_treated_as_utc(self, scorer, make_item, fixed_now):
        """Test naive created_at values compare against an aware clock"""
        item = make_item("a", created_at=(fixed_now - timedelta(days=1)).replace(tzinfo=None))
        assert scorer.score(item, SearchFilters()) == pytest.approx(0.6)

    @pytest.mark.unit
    def test_exact_title_never_ranks_below_substring(self, scorer, make_item):
        """Test the exact match bonus dominates a substring match"""
        filters = SearchFilters(query="sunset")
        exact = make_item("a", title="Sunset")
        partial = make_item("b", title="Sunset over the bay", description="sunset", tags=["sunset"])

        assert scorer.score(exact, filters) >= scorer.score(partial, filters)

    @pytest.mark.unit
    def test_score_is_bounded(self, scorer, make_item, fixed_now):
        """Test every bonus at once still stays within [0, 1]"""
        item = make_item(
            "a",
            title="Sunset",
            description="sunset",
            tags=["sunset"],
            created_at=fixed_now,
        )
        filters = SearchFilters(query="Sunset", categories=["painting"], styles=["abstract"])
        assert 0.0 <= scorer.score(item, filters) <= 1.0


class TestMatchReasons:
    """Tests for reasons()"""

    @pytest.mark.unit
    def test_reasons_order(self, scorer, make_item):
        """Test reasons follow title, description, tag, category, style, color order"""
        item = make_item(
            "a",
            title="Blue study",
            description="Shades of blue",
            tags=["blue"],
            category="painting",
            style="abstract",
            dominant_colors=["blue", "white", "red"],
        )
        filters = SearchFilters(
            query="blue",
            categories=["painting"],
            styles=["abstract"],
            colors=["red", "blue"],
        )

        assert scorer.reasons(item, filters) == [
            "Title match",
            "Description match",
            "Tag match",
            "painting category",
            "abstract style",
            "Contains blue, red colors",
        ]

    @pytest.mark.unit
    def test_no_reasons(self, scorer, make_item):
        """Test an unmatched item has no reasons"""
        assert scorer.reasons(make_item("a"), SearchFilters(query="zebra")) == []
