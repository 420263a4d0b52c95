"""Tests for metadata search with provider fallback."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from media_tracker.config import Settings
from media_tracker.core.enums import SearchMediaType
from media_tracker.services.metadata.omdb import OMDBClient
from media_tracker.services.metadata.search import (
    MISSING_KEYS_ERROR,
    MetadataSearchService,
    omdb_to_search_result,
    tmdb_to_search_result,
)
from media_tracker.services.metadata.tmdb import TMDBClient

TMDB_RESULTS = [
    {"id": 438631, "media_type": "movie", "title": "Dune", "release_date": "2021-09-15",
     "poster_path": "/d5NXSklXo0qyIYkgV94XAgMIckC.jpg"},
    {"id": 1, "media_type": "person", "name": "Denis Villeneuve"},
    {"id": 90228, "media_type": "tv", "name": "Dune: Prophecy", "first_air_date": "2024-11-17"},
]

OMDB_RESULTS = [
    {"Title": "Dune", "Year": "1984", "imdbID": "tt0087182", "Type": "movie", "Poster": "N/A"},
    {"Title": "Frank Herbert's Dune", "Year": "2000", "imdbID": "tt0142032", "Type": "series",
     "Poster": "https://m.media-amazon.com/images/dune.jpg"},
]


@pytest.fixture
def tmdb() -> MagicMock:
    """TMDB client double."""
    client = MagicMock(spec=TMDBClient)
    client.search_multi = AsyncMock(return_value=TMDB_RESULTS)
    return client


@pytest.fixture
def omdb() -> MagicMock:
    """OMDB client double."""
    client = MagicMock(spec=OMDBClient)
    client.search = AsyncMock(return_value=OMDB_RESULTS)
    return client


class TestSearchFallback:
    """Tests for MetadataSearchService.search."""

    @pytest.mark.asyncio
    async def test_primary_results_skip_secondary(self, tmdb, omdb) -> None:
        """Test OMDB is never called when TMDB has results."""
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search("Dune")

        assert response.error is None
        assert [r.id for r in response.results] == ["tmdb_movie_438631", "tmdb_tv_90228"]
        tmdb.search_multi.assert_awaited_once_with("Dune")
        omdb.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_primary_falls_back_once(self, tmdb, omdb) -> None:
        """Test OMDB is called exactly once when TMDB returns nothing."""
        tmdb.search_multi.return_value = []
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search("Dune")

        assert [r.id for r in response.results] == ["omdb_tt0087182", "omdb_tt0142032"]
        omdb.search.assert_awaited_once_with("Dune")

    @pytest.mark.asyncio
    async def test_people_only_primary_falls_back(self, tmdb, omdb) -> None:
        """Test TMDB hits that are not movies or TV count as empty."""
        tmdb.search_multi.return_value = [{"id": 1, "media_type": "person", "name": "X"}]
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search("Dune")

        assert len(response.results) == 2
        omdb.search.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_raising_primary_falls_back_once(self, tmdb, omdb) -> None:
        """Test a TMDB client error is logged and OMDB is asked once."""
        tmdb.search_multi.side_effect = RuntimeError("boom")
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search("Dune")

        assert response.error is None
        assert [r.id for r in response.results] == ["omdb_tt0087182", "omdb_tt0142032"]
        omdb.search.assert_awaited_once_with("Dune")

    @pytest.mark.asyncio
    async def test_raising_secondary_is_empty(self, tmdb, omdb) -> None:
        """Test an OMDB failure after an empty TMDB answer yields no results."""
        tmdb.search_multi.return_value = []
        omdb.search.side_effect = RuntimeError("boom")
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search("Dune")

        assert response.results == []
        assert response.error is None

    @pytest.mark.asyncio
    async def test_malformed_primary_payload_falls_back(self) -> None:
        """Test a TMDB body with null hits falls back to OMDB over HTTP."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.host == "api.themoviedb.org":
                return httpx.Response(200, json={"results": [None]})
            return httpx.Response(
                200, json={"Response": "True", "Search": OMDB_RESULTS[:1]}
            )

        transport = httpx.MockTransport(handler)
        service = MetadataSearchService(
            tmdb=TMDBClient("tmdb-key", transport=transport),
            omdb=OMDBClient("omdb-key", transport=transport),
        )

        response = await service.search("Dune")

        assert [r.id for r in response.results] == ["omdb_tt0087182"]
        assert [r.url.host for r in seen] == ["api.themoviedb.org", "www.omdbapi.com"]

    @pytest.mark.asyncio
    async def test_secondary_only(self, omdb) -> None:
        """Test OMDB alone is used when TMDB is not configured."""
        service = MetadataSearchService(omdb=omdb)

        response = await service.search("Dune")

        assert len(response.results) == 2
        omdb.search.assert_awaited_once_with("Dune")

    @pytest.mark.asyncio
    async def test_results_capped(self, tmdb) -> None:
        """Test at most eight results are returned."""
        tmdb.search_multi.return_value = [
            {"id": i, "media_type": "movie", "title": f"Movie {i}"} for i in range(20)
        ]
        service = MetadataSearchService(tmdb=tmdb)

        response = await service.search("Movie")

        assert len(response.results) == 8

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "a", " b ", None])
    async def test_short_query_makes_no_calls(self, tmdb, omdb, query) -> None:
        """Test queries under two characters return empty without calls."""
        service = MetadataSearchService(tmdb=tmdb, omdb=omdb)

        response = await service.search(query)

        assert response.results == []
        assert response.error is None
        tmdb.search_multi.assert_not_called()
        omdb.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured(self) -> None:
        """Test a configuration error when no provider is available."""
        response = await MetadataSearchService().search("Dune")

        assert response.results == []
        assert response.error == MISSING_KEYS_ERROR

    def test_from_settings(self) -> None:
        """Test clients are built only for configured keys."""
        service = MetadataSearchService.from_settings(Settings(omdb_api_key="k"))
        assert service.tmdb is None
        assert isinstance(service.omdb, OMDBClient)


class TestResultMapping:
    """Tests for provider hit -> SearchResult mapping."""

    def test_tmdb_movie(self) -> None:
        """Test a TMDB movie hit."""
        result = tmdb_to_search_result(TMDB_RESULTS[0])

        assert result.title == "Dune"
        assert result.year == "2021"
        assert result.media_type == SearchMediaType.MOVIE
        assert result.poster_url == "https://image.tmdb.org/t/p/w200/d5NXSklXo0qyIYkgV94XAgMIckC.jpg"
        assert result.provider == "tmdb"

    def test_tmdb_tv_without_poster(self) -> None:
        """Test a TMDB TV hit uses the name and first air date."""
        result = tmdb_to_search_result(TMDB_RESULTS[2])

        assert result.title == "Dune: Prophecy"
        assert result.year == "2024"
        assert result.media_type == SearchMediaType.TV
        assert result.poster_url is None

    def test_omdb(self) -> None:
        """Test OMDB hits carry the IMDb id and drop N/A posters."""
        movie = omdb_to_search_result(OMDB_RESULTS[0])
        series = omdb_to_search_result(OMDB_RESULTS[1])

        assert movie.imdb_id == "tt0087182"
        assert movie.poster_url is None
        assert movie.provider == "omdb"
        assert series.media_type == SearchMediaType.TV
