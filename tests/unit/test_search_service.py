"""
Unit tests for the Search Service
"""
from datetime import timedelta

import pytest

from api.engines.discovery.cache import SearchSessionCache
from api.engines.discovery.errors import SearchUnavailableError
from api.engines.discovery.relevance_scorer import RelevanceScorer
from api.engines.discovery.schemas import ArtistSummary, PriceRange, SearchFilters, SortMode, SuggestionType
from api.engines.discovery.search_service import SearchService


@pytest.fixture
def service(fake_gateway, fixed_now):
    return SearchService(
        fake_gateway,
        scorer=RelevanceScorer(clock=lambda: fixed_now),
        cache=SearchSessionCache(ttl_seconds=300, max_entries=100),
        timeout_seconds=0.5,
    )


class TestEffectiveFilters:
    """Tests for merging parsed hints"""

    @pytest.mark.unit
    def test_hints_are_merged(self, service):
        """Test hints from the text become structured filters"""
        effective = service.effective_filters(SearchFilters(query="abstract blue under $500"))

        assert effective.styles == ["abstract"]
        assert effective.colors == ["blue"]
        assert effective.price_range == PriceRange(min=0, max=500)
        assert effective.query == "abstract blue under $500"

    @pytest.mark.unit
    def test_hints_override_explicit_values(self, service):
        """Test a parsed hint replaces the explicit filter it sets and leaves the rest"""
        filters = SearchFilters(query="under $500", price_range=PriceRange(min=0, max=1000), categories=["print"])

        effective = service.effective_filters(filters)

        assert effective.price_range.max == 500
        assert effective.categories == ["print"]

    @pytest.mark.unit
    def test_without_text(self, service):
        """Test filters without text are used unchanged"""
        filters = SearchFilters(categories=["painting"])
        assert service.effective_filters(filters) is filters


class TestSearch:
    """Tests for search()"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_results_are_annotated(self, service, fake_gateway, make_item):
        """Test results carry relevance scores and reasons"""
        fake_gateway.items = [make_item("a", title="Blue Study")]

        page = await service.search(SearchFilters(query="blue"), page=1, page_size=10)

        assert page.total_count == 1
        assert page.results[0].relevance_score == pytest.approx(1.0)
        assert page.results[0].match_reasons == ["Title match"]
        assert page.has_more is False
        assert page.from_cache is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gateway_receives_merged_filters(self, service, fake_gateway):
        """Test the catalog query uses the merged filters"""
        await service.search(SearchFilters(query="abstract under $500"), page=1, page_size=10)

        filters, page, page_size = fake_gateway.calls_to("query_catalog")[0]
        assert filters.styles == ["abstract"]
        assert filters.price_range == PriceRange(min=0, max=500)
        assert (page, page_size) == (1, 10)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_relevance_mode_reorders_by_score(self, service, fake_gateway, make_item, fixed_now):
        """Test relevance mode with text sorts the page by score"""
        fake_gateway.items = [
            make_item("newer", title="Sky", description="blue sky", created_at=fixed_now - timedelta(days=60)),
            make_item("older", title="Blue"),
        ]

        page = await service.search(SearchFilters(query="blue"), page=1, page_size=10)

        assert [r.item.id for r in page.results] == ["older", "newer"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_sorts_keep_gateway_order(self, service, fake_gateway, make_item):
        """Test explicit sorts are not overridden by relevance"""
        fake_gateway.items = [
            make_item("cheap", title="Sky", description="blue", price=50),
            make_item("pricey", title="Blue", price=500),
        ]

        page = await service.search(SearchFilters(query="blue", sort_by=SortMode.PRICE_ASC), page=1, page_size=10)

        assert [r.item.id for r in page.results] == ["cheap", "pricey"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_has_more_on_full_page(self, service, fake_gateway, make_item):
        """Test a full page reports more results"""
        fake_gateway.items = [make_item(str(i)) for i in range(5)]

        page = await service.search(SearchFilters(), page=1, page_size=2)

        assert page.has_more is True
        assert page.total_count == 5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_repeat_search_is_cached(self, service, fake_gateway, make_item):
        """Test an identical request is served from the cache"""
        fake_gateway.items = [make_item("a")]
        filters = SearchFilters(query="artwork")

        first = await service.search(filters, page=1, page_size=10)
        second = await service.search(filters, page=1, page_size=10)

        assert len(fake_gateway.calls_to("query_catalog")) == 1
        assert second.from_cache is True
        assert second.results == first.results
        assert second.total_count == first.total_count

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_page_is_not_cached(self, service, fake_gateway, make_item):
        """Test a different page misses the cache"""
        fake_gateway.items = [make_item(str(i)) for i in range(4)]

        await service.search(SearchFilters(), page=1, page_size=2)
        await service.search(SearchFilters(), page=2, page_size=2)

        assert len(fake_gateway.calls_to("query_catalog")) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_clear_cache(self, service, fake_gateway):
        """Test clearing the cache forces a new query"""
        await service.search(SearchFilters(), page=1, page_size=2)
        service.clear_cache()
        await service.search(SearchFilters(), page=1, page_size=2)

        assert len(fake_gateway.calls_to("query_catalog")) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gateway_failure(self, service, fake_gateway):
        """Test gateway errors surface as SearchUnavailableError"""
        fake_gateway.failures.add("query_catalog")

        with pytest.raises(SearchUnavailableError):
            await service.search(SearchFilters(query="blue"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gateway_timeout(self, service, fake_gateway):
        """Test a slow catalog query surfaces as SearchUnavailableError"""
        fake_gateway.delays["query_catalog"] = 2

        with pytest.raises(SearchUnavailableError):
            await service.search(SearchFilters())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, service, fake_gateway, make_item):
        """Test a failed search is retried on the next request"""
        fake_gateway.failures.add("query_catalog")
        with pytest.raises(SearchUnavailableError):
            await service.search(SearchFilters())

        fake_gateway.failures.clear()
        fake_gateway.items = [make_item("a")]
        page = await service.search(SearchFilters())

        assert page.from_cache is False
        assert page.total_count == 1


class TestSuggestions:
    """Tests for get_suggestions()"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_short_input(self, service, fake_gateway):
        """Test fewer than two characters returns nothing without a lookup"""
        assert await service.get_suggestions("a") == []
        assert fake_gateway.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_artists_first_then_facets(self, service, fake_gateway, make_item):
        """Test artist suggestions precede category, style and medium values"""
        fake_gateway.artists = [ArtistSummary(id="artist-1", full_name="Abe Stractman")]
        fake_gateway.items = [
            make_item("a", category="abstract prints", style="abstract", medium="oil"),
            make_item("b", category="abstract prints", style="abstract expressionism", medium="oil"),
        ]

        suggestions = await service.get_suggestions("abst")

        assert [(s.type, s.value) for s in suggestions] == [
            (SuggestionType.CATEGORY, "abstract prints"),
            (SuggestionType.STYLE, "abstract"),
            (SuggestionType.STYLE, "abstract expressionism"),
        ]

        suggestions = await service.get_suggestions("stract")
        assert suggestions[0].type == SuggestionType.ARTIST
        assert suggestions[0].label == "Abe Stractman"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_at_most_ten(self, service, fake_gateway, make_item):
        """Test suggestions are capped at ten"""
        fake_gateway.artists = [ArtistSummary(id=f"a{i}", full_name=f"Blue Artist {i}") for i in range(8)]
        fake_gateway.items = [make_item(str(i), category=f"blue category {i}") for i in range(8)]

        suggestions = await service.get_suggestions("blue")

        assert len(suggestions) == 10
        assert [s.type for s in suggestions[:5]] == [SuggestionType.ARTIST] * 5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gateway_failure_returns_empty(self, service, fake_gateway):
        """Test suggestion failures degrade to an empty list"""
        fake_gateway.failures.add("find_artists")
        assert await service.get_suggestions("blue") == []
