"""
Unit tests for the Result Blender
"""
import pytest

from api.engines.discovery.blender import ResultBlender
from api.engines.discovery.schemas import Recommendation, RecommendationStrategyType


@pytest.fixture
def blender():
    return ResultBlender()


@pytest.fixture
def rec(make_item):
    def _rec(item_id, score, strategy=RecommendationStrategyType.TRENDING, **item_fields):
        return Recommendation(item=make_item(item_id, **item_fields), score=score, reason="test", strategy=strategy)
    return _rec


class TestMerge:
    """Tests for deduplication and ranking"""

    @pytest.mark.unit
    def test_duplicate_keeps_highest_score(self, blender, rec):
        """Test an item offered by two strategies keeps its best score"""
        collaborative = [rec("a", 0.7, RecommendationStrategyType.COLLABORATIVE)]
        content = [rec("a", 0.9, RecommendationStrategyType.CONTENT), rec("b", 0.8, RecommendationStrategyType.CONTENT)]

        merged = blender.merge([collaborative, content])

        assert [(r.item.id, r.score) for r in merged] == [("a", 0.9), ("b", 0.8)]
        assert merged[0].strategy == RecommendationStrategyType.CONTENT

    @pytest.mark.unit
    def test_tie_keeps_first_seen(self, blender, rec):
        """Test equal scores keep the first strategy's entry"""
        merged = blender.merge([
            [rec("a", 0.6, RecommendationStrategyType.COLLABORATIVE)],
            [rec("a", 0.6, RecommendationStrategyType.TRENDING)],
        ])
        assert merged[0].strategy == RecommendationStrategyType.COLLABORATIVE


class TestDiversity:
    """Tests for the category and artist caps"""

    @pytest.mark.unit
    def test_caps(self):
        """Test caps scale with the limit but never drop below their floors"""
        assert ResultBlender.category_cap(8) == 2
        assert ResultBlender.category_cap(20) == 5
        assert ResultBlender.artist_cap(4) == 1
        assert ResultBlender.artist_cap(20) == 2

    @pytest.mark.unit
    def test_single_category_is_backfilled(self, blender, rec):
        """Test a single-category pool still fills the limit in ranked order"""
        recommendations = [rec(f"item-{i:02d}", 0.99 - i * 0.01) for i in range(20)]

        blended = blender.blend([recommendations], limit=8)

        assert len(blended) == 8
        assert [r.item.id for r in blended] == [f"item-{i:02d}" for i in range(8)]

    @pytest.mark.unit
    def test_category_cap_promotes_other_categories(self, blender, rec):
        """Test lower scored items from other categories are admitted before capped ones"""
        paintings = [rec(f"painting-{i}", 0.9 - i * 0.01, category="painting") for i in range(6)]
        photos = [rec("photo-1", 0.5, category="photography"), rec("photo-2", 0.4, category="photography")]

        blended = blender.blend([paintings, photos], limit=4)

        assert [r.item.id for r in blended] == ["painting-0", "painting-1", "photo-1", "photo-2"]

    @pytest.mark.unit
    def test_artist_cap(self, blender, rec):
        """Test one artist cannot dominate the first pass"""
        same_artist = [rec(f"a{i}", 0.9 - i * 0.01, artist_id="artist-x", category=f"cat-{i}") for i in range(3)]
        others = [rec("b", 0.5, artist_id="artist-y", category="cat-b")]

        blended = blender.blend([same_artist, others], limit=2)

        assert [r.item.id for r in blended] == ["a0", "b"]

    @pytest.mark.unit
    def test_limit_and_uniqueness(self, blender, rec):
        """Test output is unique and never longer than the limit or the input"""
        lists = [[rec("a", 0.9), rec("b", 0.8)], [rec("a", 0.3), rec("c", 0.2)]]

        blended = blender.blend(lists, limit=10)

        ids = [r.item.id for r in blended]
        assert ids == ["a", "b", "c"]
        assert len(set(ids)) == len(ids)

    @pytest.mark.unit
    def test_zero_limit(self, blender, rec):
        """Test a zero limit returns nothing"""
        assert blender.blend([[rec("a", 0.9)]], limit=0) == []
