"""Metadata providers, search and lookup."""

from media_tracker.services.metadata.google_books import GoogleBooksClient
from media_tracker.services.metadata.lookup import MetadataLookupService
from media_tracker.services.metadata.omdb import OMDBClient
from media_tracker.services.metadata.search import MetadataSearchService, SearchResponse
from media_tracker.services.metadata.tmdb import TMDBClient

__all__ = [
    "GoogleBooksClient",
    "MetadataLookupService",
    "MetadataSearchService",
    "OMDBClient",
    "SearchResponse",
    "TMDBClient",
]
