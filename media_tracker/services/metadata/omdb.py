"""OMDB (Open Movie Database) API client."""

import logging
import re
from typing import Any

from media_tracker.services.metadata.base import ProviderClient

logger = logging.getLogger(__name__)

OMDB_API_URL = "https://www.omdbapi.com"

# OMDB only filters on these type values
OMDB_TYPES = ("movie", "series")

RUNTIME_PATTERN = re.compile(r"(\d+)")


def omdb_value(data: dict[str, Any] | None, key: str) -> str | None:
    """Read an OMDB field, treating "N/A" and empty as missing."""
    if not data:
        return None
    value = data.get(key)
    if value is None or value == "" or value == "N/A":
        return None
    return value


class OMDBClient(ProviderClient):
    """
    Async client for the OMDB API.

    OMDB answers HTTP 200 with ``{"Response": "False"}`` for misses;
    those are reported as None/empty just like transport failures.
    """

    name = "OMDB"
    base_url = OMDB_API_URL

    async def _query(self, **params: Any) -> dict[str, Any] | None:
        query = {"apikey": self.api_key}
        query.update({k: v for k, v in params.items() if v is not None})
        data = await self._get_json("/", query)
        if not isinstance(data, dict):
            return None
        if data.get("Response") != "True":
            logger.debug(f"OMDB miss for {params}: {data.get('Error')}")
            return None
        return data

    @staticmethod
    def _type_filter(media_type: str | None) -> str | None:
        return media_type if media_type in OMDB_TYPES else None

    async def search(self, query: str, media_type: str | None = None) -> list[dict[str, Any]]:
        """
        Free-text search (``s=``).

        Returns:
            The ``Search`` list, empty on a miss or failure.
        """
        data = await self._query(s=query, type=self._type_filter(media_type))
        if not data or not isinstance(data.get("Search"), list):
            return []
        return data["Search"]

    async def get_by_title(
        self,
        title: str,
        media_type: str | None = None,
        year: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch one title by exact name (``t=``)."""
        return await self._query(
            t=title, type=self._type_filter(media_type), y=year, plot="short"
        )

    async def get_by_id(
        self,
        imdb_id: str,
        media_type: str | None = None,
        year: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch one title by IMDb id (``i=``)."""
        return await self._query(
            i=imdb_id, type=self._type_filter(media_type), y=year, plot="short"
        )

    async def get_season(
        self,
        season: str,
        imdb_id: str | None = None,
        title: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch the episode listing of one season, by IMDb id or title."""
        if imdb_id:
            return await self._query(i=imdb_id, Season=season)
        if title:
            return await self._query(t=title, Season=season)
        return None

    async def get_episode_runtime(self, imdb_id: str) -> int:
        """Runtime of one episode in minutes, 0 when unknown."""
        runtime = omdb_value(await self._query(i=imdb_id), "Runtime")
        if runtime:
            match = RUNTIME_PATTERN.search(runtime)
            if match:
                return int(match.group(1))
        return 0
