"""
Single-title Metadata Lookup
============================

Resolves one title (or IMDb id / ISBN) to a MediaMetadata record.

Books go to Google Books. Movies and TV shows are looked up on TMDB
and OMDB; TMDB wins for most fields, OMDB contributes the IMDb rating,
a fallback poster and extra genres. For TV shows with a season, the
episode count and total length of that season are resolved from TMDB
or, failing that, from OMDB's season listing.
"""

import asyncio
import logging
import re
from typing import Any

from media_tracker.config import Settings, get_settings
from media_tracker.core.enums import Medium
from media_tracker.core.schema import MediaMetadata
from media_tracker.importing.normalizer import format_runtime
from media_tracker.services.ai.errors import (
    ConfigurationError,
    InvalidInputError,
    MetadataNotFoundError,
)
from media_tracker.services.metadata.google_books import GoogleBooksClient, best_image_url
from media_tracker.services.metadata.matching import (
    detect_isbn,
    find_best_book_match,
    find_best_match,
)
from media_tracker.services.metadata.omdb import OMDBClient, omdb_value
from media_tracker.services.metadata.tmdb import DETAIL_POSTER_BASE, TMDBClient

logger = logging.getLogger(__name__)

DEFAULT_EPISODE_DELAY = 0.1

OMDB_TYPE_MAP = {
    "movie": Medium.MOVIE.value,
    "series": Medium.TV_SHOW.value,
    "episode": Medium.TV_SHOW.value,
}

DIGITS_PATTERN = re.compile(r"\d+")
YEAR_PATTERN = re.compile(r"\d{4}")


def _seasons_label(count: int) -> str:
    return "1 season" if count == 1 else f"{count} seasons"


def _episode_runtime(tv: dict[str, Any]) -> int | None:
    runtimes = tv.get("episode_run_time") or []
    if not runtimes:
        return None
    return runtimes[0] or round(sum(runtimes) / len(runtimes))


def _float_or_none(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _merge_genres(current: list[str] | None, extra: str | None) -> list[str] | None:
    """Union of two genre lists, order preserved, duplicates dropped."""
    if not extra:
        return current
    merged = list(current or [])
    for genre in (g.strip() for g in extra.split(",")):
        if genre and genre not in merged:
            merged.append(genre)
    return merged or None


class MetadataLookupService:
    """Resolve a single title to unified metadata."""

    def __init__(
        self,
        tmdb: TMDBClient | None = None,
        omdb: OMDBClient | None = None,
        google_books: GoogleBooksClient | None = None,
        episode_delay: float = DEFAULT_EPISODE_DELAY,
    ):
        """
        Initialize the lookup service.

        Args:
            tmdb: TMDB client, None when TMDB_API_KEY is not set.
            omdb: OMDB client, None when OMDB_API_KEY is not set.
            google_books: Google Books client, None when GOOGLE_BOOK_API_KEY is not set.
            episode_delay: Pause between per-episode OMDB requests.
        """
        self.tmdb = tmdb
        self.omdb = omdb
        self.google_books = google_books
        self.episode_delay = episode_delay

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MetadataLookupService":
        """Build the service with a client per configured API key."""
        settings = settings or get_settings()
        timeout = settings.metadata_timeout
        return cls(
            tmdb=TMDBClient(settings.tmdb_api_key, timeout=timeout)
            if settings.tmdb_api_key
            else None,
            omdb=OMDBClient(settings.omdb_api_key, timeout=timeout)
            if settings.omdb_api_key
            else None,
            google_books=GoogleBooksClient(settings.google_books_api_key, timeout=timeout)
            if settings.google_books_api_key
            else None,
        )

    async def lookup(
        self,
        title: str | None = None,
        imdb_id: str | None = None,
        media_type: str | None = None,
        medium: str | None = None,
        year: str | None = None,
        season: str | None = None,
        source: str | None = None,
    ) -> MediaMetadata:
        """
        Look up metadata for one title.

        Args:
            title: Title to search for.
            imdb_id: IMDb id ("tt...") or ISBN.
            media_type: "movie" or "series" to narrow the search.
            medium: Entry medium; "Book" routes to Google Books.
            year: Release year.
            season: Season number or label, e.g. "2" or "Season 2".
            source: Restrict to "tmdb" or "omdb"; both when None.

        Returns:
            MediaMetadata with whatever fields the providers supplied.

        Raises:
            InvalidInputError: If neither title nor imdb_id is given.
            ConfigurationError: If the needed API keys are missing.
            MetadataNotFoundError: If no provider knows the title.
        """
        if not title and not imdb_id:
            raise InvalidInputError("Title or IMDb ID/ISBN is required")

        normalized_title = title.strip() if title else ""
        isbn = detect_isbn(imdb_id) or detect_isbn(normalized_title)

        if medium == Medium.BOOK.value or isbn:
            return await self._lookup_book(normalized_title, isbn, year)

        is_imdb_id = bool(imdb_id and imdb_id.strip().startswith("tt"))
        return await self._lookup_screen(
            title=normalized_title or None,
            imdb_id=imdb_id.strip() if is_imdb_id else None,
            media_type=media_type,
            year=year,
            season=season,
            source=source,
        )

    async def _lookup_book(self, title: str, isbn: str | None, year: str | None) -> MediaMetadata:
        if self.google_books is None:
            raise ConfigurationError("GOOGLE_BOOK_API_KEY not configured")

        if isbn:
            logger.info(f"Looking up book by ISBN {isbn}")
            volumes = await self.google_books.search_isbn(isbn)
            best = volumes[0] if volumes else None
        else:
            if not title:
                raise InvalidInputError("Title is required for book search")
            logger.info(f"Looking up book by title {title!r}")
            volumes = await self.google_books.search_title(title, year=year)
            best = find_best_book_match(title, volumes, year)

        if best is None:
            raise MetadataNotFoundError("Book not found")

        return self._book_metadata(best.get("volumeInfo") or {}, year)

    @staticmethod
    def _book_metadata(info: dict[str, Any], year: str | None) -> MediaMetadata:
        book_year = year
        published = YEAR_PATTERN.search(info.get("publishedDate") or "")
        if published:
            book_year = published.group()

        page_count = info.get("pageCount")
        rating = info.get("averageRating")

        identifiers = {i.get("type"): i.get("identifier") for i in info.get("industryIdentifiers") or []}
        isbn = identifiers.get("ISBN_13") or identifiers.get("ISBN_10")

        categories = [c.strip() for c in info.get("categories") or [] if c and c.strip()]

        title = info.get("title") or None
        if title and info.get("subtitle"):
            title = f"{title}: {info['subtitle']}"

        return MediaMetadata(
            title=title,
            poster_url=best_image_url(info),
            genre=categories or None,
            language=info.get("language") or None,
            # Google Books rates 0-5
            average_rating=round(rating * 2, 1) if rating is not None else None,
            length=f"{page_count} pages" if page_count and page_count > 0 else None,
            type=Medium.BOOK.value,
            year=book_year,
            plot=info.get("description") or None,
            imdb_id=isbn,
        )

    async def _lookup_screen(
        self,
        title: str | None,
        imdb_id: str | None,
        media_type: str | None,
        year: str | None,
        season: str | None,
        source: str | None,
    ) -> MediaMetadata:
        if self.tmdb is None and self.omdb is None:
            raise ConfigurationError("OMDB_API_KEY or TMDB_API_KEY must be configured")

        use_tmdb = self.tmdb is not None and source in (None, "tmdb")
        use_omdb = self.omdb is not None and source in (None, "omdb")

        movie: dict[str, Any] | None = None
        tv: dict[str, Any] | None = None
        if use_tmdb:
            if imdb_id:
                ref = await self.tmdb.find_by_imdb(imdb_id)
            elif title:
                ref = await self.tmdb.search(title, media_type=media_type, year=year)
            else:
                ref = None
            if ref is not None and ref.media_type == "movie":
                movie = await self.tmdb.get_movie(ref.tmdb_id)
            elif ref is not None:
                tv = await self.tmdb.get_tv(ref.tmdb_id)

        omdb: dict[str, Any] | None = None
        if use_omdb:
            if imdb_id:
                omdb = await self.omdb.get_by_id(imdb_id, media_type=media_type, year=year)
            elif title:
                omdb = await self.omdb.get_by_title(title, media_type=media_type, year=year)
                if omdb is None:
                    omdb = await self._fuzzy_omdb(title, media_type, year)
            elif movie is None and tv is None:
                raise InvalidInputError("Title or IMDb ID is required")

        if omdb is None and movie is None and tv is None:
            raise MetadataNotFoundError("Media not found")

        omdb_type = (omdb_value(omdb, "Type") or "").lower()
        is_tv = tv is not None or omdb_type in ("series", "episode")

        metadata = MediaMetadata()
        if movie is not None:
            self._apply_tmdb_movie(metadata, movie)
        elif tv is not None:
            self._apply_tmdb_common(metadata, tv, tv.get("name"), tv.get("first_air_date"))
            metadata.imdb_id = (tv.get("external_ids") or {}).get("imdb_id") or None
            metadata.type = Medium.TV_SHOW.value
        elif omdb is not None:
            self._apply_omdb(metadata, omdb, is_tv)

        if is_tv and movie is None:
            await self._apply_tv_counts(metadata, tv, omdb, title, imdb_id, season)

        self._merge_omdb(metadata, omdb)
        logger.info(
            f"Resolved {title or imdb_id!r}: tmdb={'movie' if movie else 'tv' if tv else 'none'}, "
            f"omdb={'yes' if omdb else 'no'}"
        )
        return metadata

    async def _fuzzy_omdb(
        self, title: str, media_type: str | None, year: str | None
    ) -> dict[str, Any] | None:
        results = await self.omdb.search(title, media_type=media_type)
        best = find_best_match(title, results, media_type)
        if best is None:
            return None
        logger.info(f"OMDB fuzzy match for {title!r}: {best.get('Title')!r}")
        return await self.omdb.get_by_title(best["Title"], media_type=media_type, year=year)

    @staticmethod
    def _apply_tmdb_common(
        metadata: MediaMetadata,
        data: dict[str, Any],
        title: str | None,
        date: str | None,
    ) -> None:
        metadata.title = title
        metadata.year = (date or "")[:4] or None
        metadata.plot = data.get("overview") or None
        vote = data.get("vote_average")
        metadata.average_rating = round(vote, 1) if vote else None
        metadata.genre = [g["name"] for g in data.get("genres") or []] or None
        languages = data.get("spoken_languages") or []
        metadata.language = languages[0].get("name") or None if languages else None
        if data.get("poster_path"):
            metadata.poster_url = f"{DETAIL_POSTER_BASE}{data['poster_path']}"

    def _apply_tmdb_movie(self, metadata: MediaMetadata, movie: dict[str, Any]) -> None:
        self._apply_tmdb_common(metadata, movie, movie.get("title"), movie.get("release_date"))
        metadata.imdb_id = movie.get("imdb_id") or None
        runtime = movie.get("runtime")
        metadata.length = format_runtime(runtime) if runtime else None
        metadata.type = Medium.MOVIE.value

    @staticmethod
    def _apply_omdb(metadata: MediaMetadata, omdb: dict[str, Any], is_tv: bool) -> None:
        metadata.title = omdb_value(omdb, "Title")
        metadata.year = omdb_value(omdb, "Year")
        metadata.plot = omdb_value(omdb, "Plot")
        metadata.average_rating = _float_or_none(omdb_value(omdb, "imdbRating"))
        metadata.genre = _merge_genres(None, omdb_value(omdb, "Genre"))
        metadata.language = omdb_value(omdb, "Language")
        metadata.imdb_id = omdb_value(omdb, "imdbID")
        metadata.type = OMDB_TYPE_MAP.get((omdb_value(omdb, "Type") or "").lower())
        metadata.poster_url = omdb_value(omdb, "Poster")
        if not is_tv:
            metadata.length = omdb_value(omdb, "Runtime")

    async def _apply_tv_counts(
        self,
        metadata: MediaMetadata,
        tv: dict[str, Any] | None,
        omdb: dict[str, Any] | None,
        title: str | None,
        imdb_id: str | None,
        season: str | None,
    ) -> None:
        """Fill episodes, season and length for a TV show."""
        episode_count: int | None = None
        season_info: str | None = None
        total_runtime: str | None = None

        if tv is not None:
            episode_count = tv.get("number_of_episodes") or None
            if tv.get("number_of_seasons"):
                season_info = _seasons_label(tv["number_of_seasons"])
            per_episode = _episode_runtime(tv)
            if episode_count and per_episode:
                total_runtime = format_runtime(episode_count * per_episode)
        else:
            total_seasons = omdb_value(omdb, "totalSeasons")
            if total_seasons and total_seasons.isdigit():
                season_info = _seasons_label(int(total_seasons))

        season_label: str | None = None
        season_episodes: int | None = None
        season_length: str | None = None

        if season:
            digits = DIGITS_PATTERN.search(season)
            season_num = digits.group() if digits else season
            season_label = f"Season {season_num}"

            if tv is not None and season_num.isdigit():
                for entry in tv.get("seasons") or []:
                    if entry.get("season_number") == int(season_num):
                        season_episodes = entry.get("episode_count")
                        per_episode = _episode_runtime(tv)
                        if season_episodes and per_episode:
                            season_length = format_runtime(season_episodes * per_episode)
                        break

            if season_episodes is None and self.omdb is not None and omdb is not None:
                season_episodes, season_length = await self._omdb_season(
                    season_num,
                    imdb_id=imdb_id or omdb_value(omdb, "imdbID"),
                    title=title or omdb_value(omdb, "Title"),
                )

        metadata.episodes = season_episodes if season_episodes is not None else episode_count
        metadata.season = season_label or season_info
        fallback_length = omdb_value(omdb, "Runtime") if tv is None else None
        metadata.length = season_length or total_runtime or fallback_length

    async def _omdb_season(
        self,
        season_num: str,
        imdb_id: str | None,
        title: str | None,
    ) -> tuple[int | None, str | None]:
        """Episode count and summed runtime of one season from OMDB."""
        data = await self.omdb.get_season(season_num, imdb_id=imdb_id, title=title)
        episodes = (data or {}).get("Episodes")
        if not isinstance(episodes, list):
            return None, None

        total_minutes = 0
        for index, episode in enumerate(episodes):
            if index > 0 and self.episode_delay:
                await asyncio.sleep(self.episode_delay)
            episode_id = episode.get("imdbID")
            if episode_id:
                total_minutes += await self.omdb.get_episode_runtime(episode_id)

        length = format_runtime(total_minutes) if total_minutes > 0 else None
        return len(episodes), length

    @staticmethod
    def _merge_omdb(metadata: MediaMetadata, omdb: dict[str, Any] | None) -> None:
        """Overlay the OMDB rating, poster and genres onto the metadata."""
        if omdb is None:
            return

        rating = _float_or_none(omdb_value(omdb, "imdbRating"))
        if rating is not None and (not metadata.average_rating or rating > 0):
            metadata.average_rating = rating

        poster = omdb_value(omdb, "Poster")
        if poster and not metadata.poster_url:
            metadata.poster_url = poster

        metadata.genre = _merge_genres(metadata.genre, omdb_value(omdb, "Genre"))
