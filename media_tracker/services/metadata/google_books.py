"""Google Books API client."""

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from media_tracker.services.metadata.base import ProviderClient

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_API_URL = "https://www.googleapis.com/books/v1"
MIN_IMAGE_ZOOM = 5

# Largest first
IMAGE_SIZES = ("large", "medium", "thumbnail", "smallThumbnail")


def clean_image_url(image_url: str) -> str:
    """
    Upgrade a Google Books cover URL.

    Forces https, drops the ``edge=curl`` page-curl effect and raises
    ``zoom`` to at least 5 for a sharper image.
    """
    parts = urlsplit(image_url)
    if not parts.netloc:
        return image_url.replace("http:", "https:").replace("&edge=curl", "")

    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "edge"]
    zoom = next((v for k, v in query if k == "zoom"), None)
    if zoom is None or not zoom.isdigit() or int(zoom) < MIN_IMAGE_ZOOM:
        query = [(k, v) for k, v in query if k != "zoom"]
        query.append(("zoom", str(MIN_IMAGE_ZOOM)))

    return urlunsplit(("https", parts.netloc, parts.path, urlencode(query), parts.fragment))


def best_image_url(volume_info: dict[str, Any]) -> str | None:
    """Pick the largest cover image of a volume, cleaned."""
    links = volume_info.get("imageLinks") or {}
    for size in IMAGE_SIZES:
        if links.get(size):
            return clean_image_url(links[size])
    return None


class GoogleBooksClient(ProviderClient):
    """Async client for the Google Books volumes API."""

    name = "Google Books"
    base_url = GOOGLE_BOOKS_API_URL

    async def _volumes(self, query: str, max_results: int | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"q": query, "key": self.api_key}
        if max_results is not None:
            params["maxResults"] = max_results
        data = await self._get_json("/volumes", params)
        if not data or not isinstance(data.get("items"), list):
            return []
        return data["items"]

    async def search_isbn(self, isbn: str) -> list[dict[str, Any]]:
        """Search volumes by normalized ISBN."""
        return await self._volumes(f"isbn:{isbn}")

    async def search_title(
        self,
        title: str,
        year: str | None = None,
        max_results: int = 5,
    ) -> list[dict[str, Any]]:
        """Search volumes by title, optionally narrowed by year."""
        query = f"intitle:{title}"
        if year:
            query = f"{query} {year}"
        return await self._volumes(query, max_results=max_results)
