"""Tests for the TMDB, OMDB and Google Books HTTP clients."""

import httpx
import pytest

from media_tracker.services.metadata.google_books import (
    GoogleBooksClient,
    best_image_url,
    clean_image_url,
)
from media_tracker.services.metadata.omdb import OMDBClient, omdb_value
from media_tracker.services.metadata.tmdb import TMDBClient, TMDBRef


def make_transport(routes: dict[str, object], seen: list[httpx.Request] | None = None):
    """Build a MockTransport answering JSON per URL path."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"status_message": "not found"})
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


class TestProviderClient:
    """Tests for the shared failure handling."""

    @pytest.mark.asyncio
    async def test_non_2xx_is_none(self) -> None:
        """Test HTTP errors are reported as empty results."""
        client = TMDBClient("key", transport=make_transport({}))
        assert await client.search_multi("Dune") == []
        assert await client.get_movie(1) is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_none(self) -> None:
        """Test an undecodable body is reported as None."""
        routes = {"/3/movie/1": httpx.Response(200, text="<html>oops</html>")}
        client = TMDBClient("key", transport=make_transport(routes))
        assert await client.get_movie(1) is None

    @pytest.mark.asyncio
    async def test_timeout_is_none(self) -> None:
        """Test a timeout is reported as None."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = TMDBClient("key", transport=httpx.MockTransport(handler))
        assert await client.get_tv(5) is None


class TestTMDBClient:
    """Tests for TMDBClient."""

    @pytest.mark.asyncio
    async def test_search_multi_sends_key_and_query(self) -> None:
        """Test the multi search request and result passthrough."""
        seen: list[httpx.Request] = []
        routes = {"/3/search/multi": {"results": [{"id": 1, "media_type": "movie"}]}}
        client = TMDBClient("secret", transport=make_transport(routes, seen))

        results = await client.search_multi("Dune")

        assert results == [{"id": 1, "media_type": "movie"}]
        assert seen[0].url.params["api_key"] == "secret"
        assert seen[0].url.params["query"] == "Dune"

    @pytest.mark.asyncio
    async def test_search_tv(self) -> None:
        """Test series searches hit the TV endpoint with the air-date year."""
        seen: list[httpx.Request] = []
        routes = {"/3/search/tv": {"results": [{"id": 42}, {"id": 43}]}}
        client = TMDBClient("key", transport=make_transport(routes, seen))

        ref = await client.search("Shogun", media_type="series", year="2024")

        assert ref == TMDBRef(media_type="tv", tmdb_id=42)
        assert seen[0].url.params["first_air_date_year"] == "2024"

    @pytest.mark.asyncio
    async def test_search_movie_without_year(self) -> None:
        """Test unset parameters are not sent."""
        seen: list[httpx.Request] = []
        routes = {"/3/search/movie": {"results": [{"id": 7}]}}
        client = TMDBClient("key", transport=make_transport(routes, seen))

        assert await client.search("Heat") == TMDBRef(media_type="movie", tmdb_id=7)
        assert "year" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_search_no_results(self) -> None:
        """Test an empty result page."""
        client = TMDBClient("key", transport=make_transport({"/3/search/movie": {"results": []}}))
        assert await client.search("zzzz") is None

    @pytest.mark.asyncio
    async def test_find_by_imdb(self) -> None:
        """Test IMDb id resolution prefers movies, then TV."""
        routes = {"/3/find/tt0903747": {"movie_results": [], "tv_results": [{"id": 1396}]}}
        client = TMDBClient("key", transport=make_transport(routes))

        assert await client.find_by_imdb("tt0903747") == TMDBRef(media_type="tv", tmdb_id=1396)


class TestOMDBClient:
    """Tests for OMDBClient."""

    def test_omdb_value(self) -> None:
        """Test N/A and empty values are missing."""
        assert omdb_value({"Poster": "N/A"}, "Poster") is None
        assert omdb_value({"Poster": ""}, "Poster") is None
        assert omdb_value({"Year": "2010"}, "Year") == "2010"
        assert omdb_value(None, "Year") is None

    @pytest.mark.asyncio
    async def test_response_false_is_miss(self) -> None:
        """Test OMDB's 200-with-error responses are misses."""
        routes = {"/": {"Response": "False", "Error": "Movie not found!"}}
        client = OMDBClient("key", transport=make_transport(routes))

        assert await client.get_by_title("zzzz") is None
        assert await client.search("zzzz") == []

    @pytest.mark.asyncio
    async def test_search_type_filter(self) -> None:
        """Test only movie/series are forwarded as type filters."""
        seen: list[httpx.Request] = []
        routes = {"/": {"Response": "True", "Search": [{"Title": "Dune"}]}}
        client = OMDBClient("key", transport=make_transport(routes, seen))

        await client.search("Dune", media_type="series")
        await client.search("Dune", media_type="tv")

        assert seen[0].url.params["type"] == "series"
        assert "type" not in seen[1].url.params
        assert seen[0].url.params["apikey"] == "key"

    @pytest.mark.asyncio
    async def test_episode_runtime(self) -> None:
        """Test the leading number of Runtime is used."""
        routes = {"/": {"Response": "True", "Runtime": "47 min"}}
        client = OMDBClient("key", transport=make_transport(routes))
        assert await client.get_episode_runtime("tt1") == 47

    @pytest.mark.asyncio
    async def test_episode_runtime_unknown(self) -> None:
        """Test unknown runtimes count as zero."""
        routes = {"/": {"Response": "True", "Runtime": "N/A"}}
        client = OMDBClient("key", transport=make_transport(routes))
        assert await client.get_episode_runtime("tt1") == 0

    @pytest.mark.asyncio
    async def test_get_season_requires_id_or_title(self) -> None:
        """Test a season lookup with nothing to look up."""
        client = OMDBClient("key", transport=make_transport({}))
        assert await client.get_season("1") is None


class TestGoogleBooks:
    """Tests for the Google Books client and image helpers."""

    def test_clean_image_url(self) -> None:
        """Test https, no page curl and a minimum zoom."""
        url = "http://books.google.com/books/content?id=abc&printsec=frontcover&img=1&zoom=1&edge=curl"
        cleaned = clean_image_url(url)

        assert cleaned.startswith("https://books.google.com/books/content?")
        assert "edge=curl" not in cleaned
        assert "zoom=5" in cleaned
        assert "id=abc" in cleaned

    def test_high_zoom_kept(self) -> None:
        """Test a zoom above the minimum is left alone."""
        assert "zoom=6" in clean_image_url("https://books.google.com/x?zoom=6")

    def test_best_image_prefers_large(self) -> None:
        """Test the largest available cover is chosen."""
        info = {
            "imageLinks": {
                "thumbnail": "https://books.google.com/t?zoom=1",
                "large": "https://books.google.com/l?zoom=1",
            }
        }
        assert best_image_url(info).startswith("https://books.google.com/l?")
        assert best_image_url({}) is None

    @pytest.mark.asyncio
    async def test_search_title(self) -> None:
        """Test the title query and max results."""
        seen: list[httpx.Request] = []
        routes = {"/books/v1/volumes": {"items": [{"volumeInfo": {"title": "Dune"}}]}}
        client = GoogleBooksClient("key", transport=make_transport(routes, seen))

        items = await client.search_title("Dune", year="1965")

        assert items == [{"volumeInfo": {"title": "Dune"}}]
        assert seen[0].url.params["q"] == "intitle:Dune 1965"
        assert seen[0].url.params["maxResults"] == "5"

    @pytest.mark.asyncio
    async def test_search_isbn_no_items(self) -> None:
        """Test a response without items."""
        routes = {"/books/v1/volumes": {"totalItems": 0}}
        client = GoogleBooksClient("key", transport=make_transport(routes))
        assert await client.search_isbn("9780441013593") == []
