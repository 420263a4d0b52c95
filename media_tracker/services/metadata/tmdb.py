"""TMDB (The Movie Database) API client."""

import logging
from dataclasses import dataclass
from typing import Any

from media_tracker.services.metadata.base import ProviderClient

logger = logging.getLogger(__name__)

TMDB_API_URL = "https://api.themoviedb.org/3"
SEARCH_POSTER_BASE = "https://image.tmdb.org/t/p/w200"
DETAIL_POSTER_BASE = "https://image.tmdb.org/t/p/w500"


@dataclass
class TMDBRef:
    """Reference to a TMDB title: media type ("movie" or "tv") and numeric id."""

    media_type: str
    tmdb_id: int


class TMDBClient(ProviderClient):
    """Async client for the TMDB v3 API."""

    name = "TMDB"
    base_url = TMDB_API_URL

    def _params(self, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"api_key": self.api_key}
        params.update({k: v for k, v in extra.items() if v is not None})
        return params

    async def search_multi(self, query: str) -> list[dict[str, Any]]:
        """
        Search movies, TV shows and people in one call.

        Returns:
            The raw ``results`` list (first page), empty on failure.
        """
        data = await self._get_json("/search/multi", self._params(query=query, page=1))
        if not data or not isinstance(data.get("results"), list):
            return []
        return data["results"]

    async def search(
        self,
        title: str,
        media_type: str | None = None,
        year: str | None = None,
    ) -> TMDBRef | None:
        """
        Resolve a title to its first TMDB match.

        Args:
            title: Title to search.
            media_type: "series"/"tv" searches TV, anything else movies.
            year: Optional release (or first air) year.

        Returns:
            TMDBRef of the first hit, or None.
        """
        if media_type in ("series", "tv"):
            data = await self._get_json(
                "/search/tv", self._params(query=title, first_air_date_year=year)
            )
            kind = "tv"
        else:
            data = await self._get_json(
                "/search/movie", self._params(query=title, year=year)
            )
            kind = "movie"

        results = (data or {}).get("results") or []
        if not results:
            return None
        return TMDBRef(media_type=kind, tmdb_id=results[0]["id"])

    async def find_by_imdb(self, imdb_id: str) -> TMDBRef | None:
        """Resolve an IMDb id (tt...) to a TMDB movie or TV reference."""
        data = await self._get_json(
            f"/find/{imdb_id}", self._params(external_source="imdb_id")
        )
        if not data:
            return None
        if data.get("movie_results"):
            return TMDBRef(media_type="movie", tmdb_id=data["movie_results"][0]["id"])
        if data.get("tv_results"):
            return TMDBRef(media_type="tv", tmdb_id=data["tv_results"][0]["id"])
        return None

    async def get_movie(self, tmdb_id: int) -> dict[str, Any] | None:
        """Fetch movie details including external ids."""
        return await self._get_json(
            f"/movie/{tmdb_id}", self._params(append_to_response="external_ids")
        )

    async def get_tv(self, tmdb_id: int) -> dict[str, Any] | None:
        """Fetch TV show details including seasons and external ids."""
        return await self._get_json(
            f"/tv/{tmdb_id}", self._params(append_to_response="external_ids")
        )
