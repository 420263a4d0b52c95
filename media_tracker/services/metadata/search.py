"""Metadata search with a primary (TMDB) and secondary (OMDB) provider."""

import logging
from typing import Any

from pydantic import BaseModel, Field

from media_tracker.config import Settings, get_settings
from media_tracker.core.enums import SearchMediaType
from media_tracker.core.schema import SearchResult
from media_tracker.services.metadata.omdb import OMDBClient, omdb_value
from media_tracker.services.metadata.tmdb import SEARCH_POSTER_BASE, TMDBClient

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_RESULTS = 8

MISSING_KEYS_ERROR = "TMDB_API_KEY or OMDB_API_KEY must be configured"


class SearchResponse(BaseModel):
    """Search results plus an optional configuration error."""

    results: list[SearchResult] = Field(default_factory=list)
    error: str | None = None


def tmdb_to_search_result(item: dict[str, Any]) -> SearchResult:
    """Map one TMDB multi-search hit onto a SearchResult."""
    media_type = SearchMediaType.MOVIE if item.get("media_type") == "movie" else SearchMediaType.TV
    date = item.get("release_date") or item.get("first_air_date") or ""
    poster_path = item.get("poster_path")
    return SearchResult(
        id=f"tmdb_{item.get('media_type')}_{item.get('id')}",
        title=item.get("title") or item.get("name") or "Unknown",
        year=date[:4] or None,
        poster_url=f"{SEARCH_POSTER_BASE}{poster_path}" if poster_path else None,
        media_type=media_type,
    )


def omdb_to_search_result(item: dict[str, Any]) -> SearchResult:
    """Map one OMDB search hit onto a SearchResult."""
    return SearchResult(
        id=f"omdb_{item.get('imdbID')}",
        title=item.get("Title") or "Unknown",
        year=item.get("Year") or None,
        poster_url=omdb_value(item, "Poster"),
        media_type=SearchMediaType.TV if item.get("Type") == "series" else SearchMediaType.MOVIE,
        imdb_id=item.get("imdbID"),
    )


class MetadataSearchService:
    """
    Title search across metadata providers.

    TMDB is asked first. OMDB is only asked when TMDB is not configured
    or returned nothing. Provider failures count as empty results.
    """

    def __init__(
        self,
        tmdb: TMDBClient | None = None,
        omdb: OMDBClient | None = None,
    ):
        self.tmdb = tmdb
        self.omdb = omdb

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MetadataSearchService":
        """Build the service with a client per configured API key."""
        settings = settings or get_settings()
        return cls(
            tmdb=TMDBClient(settings.tmdb_api_key, timeout=settings.metadata_timeout)
            if settings.tmdb_api_key
            else None,
            omdb=OMDBClient(settings.omdb_api_key, timeout=settings.metadata_timeout)
            if settings.omdb_api_key
            else None,
        )

    async def _search_tmdb(self, query: str) -> list[SearchResult]:
        try:
            items = await self.tmdb.search_multi(query)
            hits = [item for item in items if item.get("media_type") in ("movie", "tv")]
            return [tmdb_to_search_result(item) for item in hits[:MAX_RESULTS]]
        except Exception as e:
            logger.error(f"TMDB search failed for {query!r}: {e}")
            return []

    async def _search_omdb(self, query: str) -> list[SearchResult]:
        try:
            items = await self.omdb.search(query)
            return [omdb_to_search_result(item) for item in items[:MAX_RESULTS]]
        except Exception as e:
            logger.error(f"OMDB search failed for {query!r}: {e}")
            return []

    async def search(self, query: str | None) -> SearchResponse:
        """
        Search movies and TV shows by title.

        Args:
            query: Free-text query. Fewer than 2 non-whitespace characters
                returns an empty response without calling any provider.

        Returns:
            SearchResponse with up to 8 results, or an error when neither
            provider is configured.
        """
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return SearchResponse()

        if self.tmdb is None and self.omdb is None:
            logger.error(MISSING_KEYS_ERROR)
            return SearchResponse(error=MISSING_KEYS_ERROR)

        query = query.strip()
        results: list[SearchResult] = []

        if self.tmdb is not None:
            results = await self._search_tmdb(query)
            logger.info(f"TMDB returned {len(results)} results for {query!r}")

        if not results and self.omdb is not None:
            results = await self._search_omdb(query)
            logger.info(f"OMDB fallback returned {len(results)} results for {query!r}")

        return SearchResponse(results=results)
