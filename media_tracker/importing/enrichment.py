"""
Batch Enrichment Module
=======================

Fills missing fields on already-persisted entries from metadata
lookups, one entry at a time with a pacing delay between entries.
A failing entry is counted and the batch moves on.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from media_tracker.core.enums import EntryOutcome, Medium
from media_tracker.core.schema import EnrichmentDelta, MediaEntry, MediaMetadata, is_blank
from media_tracker.importing.normalizer import normalize_language

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
CompletionCallback = Callable[["EnrichmentReport"], Any]

# Entry medium -> lookup type hint
MEDIUM_TYPE_HINTS = {
    Medium.MOVIE.value: "movie",
    Medium.TV_SHOW.value: "series",
}

# Fields copied from metadata when missing on the entry, in update order
ENRICHABLE_FIELDS = [
    "genre", "language", "average_rating", "length",
    "episodes", "poster_url", "season", "imdb_id",
]


class PacingPolicy(Protocol):
    """Waits between consecutive entries of a batch."""

    async def wait(self) -> None: ...


class MinIntervalGate:
    """
    Enforces a minimum interval between consecutive releases.

    The first call waits the full interval; later calls only wait for
    whatever part of the interval has not already elapsed.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval
        self.clock = clock
        self._last_release: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last_release is None:
                delay = self.interval
            else:
                delay = self.interval - (self.clock() - self._last_release)
            if delay > 0:
                await asyncio.sleep(delay)
            self._last_release = self.clock()


class NoPacing:
    """Pacing policy that never waits."""

    async def wait(self) -> None:
        return None


class EntryStore(Protocol):
    """Partial update of a persisted entry, keyed by id."""

    async def update(self, entry_id: str, fields: EnrichmentDelta) -> None: ...


class MetadataLookup(Protocol):
    """Anything that resolves lookup params to MediaMetadata."""

    async def lookup(self, **params: Any) -> MediaMetadata: ...


@dataclass
class EntryEnrichment:
    """Outcome for one entry of a batch."""

    entry_id: str
    title: str | None
    outcome: EntryOutcome
    fields: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "entry_id": self.entry_id,
            "title": self.title,
            "outcome": self.outcome.value,
            "fields": self.fields,
            "error": self.error,
        }


@dataclass
class EnrichmentReport:
    """Aggregate result of a batch enrichment run."""

    total: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    no_update_count: int = 0
    outcomes: list[EntryEnrichment] = field(default_factory=list)
    message: str = ""

    def record(self, result: EntryEnrichment) -> None:
        """Add one entry outcome and update the counters."""
        self.outcomes.append(result)
        if result.outcome == EntryOutcome.UPDATED:
            self.success_count += 1
        elif result.outcome in (EntryOutcome.LOOKUP_FAILED, EntryOutcome.SAVE_FAILED):
            self.failed_count += 1
        elif result.outcome == EntryOutcome.SKIPPED:
            self.skipped_count += 1
        else:
            self.no_update_count += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "no_update_count": self.no_update_count,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "message": self.message,
        }


def summarize(report: EnrichmentReport) -> str:
    """Human-readable summary of a finished run."""
    if report.total == 0:
        return "No entries to fetch"
    if report.success_count > 0:
        message = f"Fetched metadata for {report.success_count} items"
        if report.failed_count > 0:
            message += f", {report.failed_count} failed"
        return message
    if report.failed_count > 0:
        return f"Failed to fetch metadata for {report.failed_count} items"
    return "No metadata updates needed"


def build_lookup_params(entry: MediaEntry) -> dict[str, Any]:
    """
    Build lookup arguments for an entry.

    Books are routed by medium, movies and TV shows get a type hint,
    and a known season narrows TV lookups.
    """
    params: dict[str, Any] = {"title": entry.title.strip()}
    if entry.medium == Medium.BOOK.value:
        params["medium"] = Medium.BOOK.value
    elif entry.medium in MEDIUM_TYPE_HINTS:
        params["media_type"] = MEDIUM_TYPE_HINTS[entry.medium]
    if entry.season:
        params["season"] = entry.season
    return params


def build_enrichment_delta(entry: MediaEntry, metadata: MediaMetadata) -> EnrichmentDelta:
    """
    Select metadata fields that the entry is missing.

    A field is included only when the metadata has a value for it and
    the entry's current value is blank. Genre accepts a list or a
    comma-separated string; language is normalized to English names.

    Args:
        entry: The persisted entry.
        metadata: Lookup result for the entry.

    Returns:
        Mapping of field name to new value, empty when nothing is missing.
    """
    delta: EnrichmentDelta = {}
    for name in ENRICHABLE_FIELDS:
        value = getattr(metadata, name)
        if not value or not is_blank(getattr(entry, name)):
            continue

        if name == "genre":
            genres = value if isinstance(value, list) else str(value).split(",")
            value = [g.strip() for g in genres if g and g.strip()]
        elif name == "language":
            value = normalize_language(value)

        if value:
            delta[name] = value
    return delta


class BatchEnricher:
    """
    Sequential metadata enrichment of persisted entries.

    Usage:
        enricher = BatchEnricher(lookup, store, pacing=MinIntervalGate(0.2))
        report = await enricher.enrich(entries)
    """

    def __init__(
        self,
        lookup: MetadataLookup,
        store: EntryStore,
        pacing: PacingPolicy | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.lookup = lookup
        self.store = store
        self.pacing = pacing or NoPacing()
        self.on_progress = on_progress

    async def enrich_entry(self, entry: MediaEntry) -> EntryEnrichment:
        """Look up, diff and persist one entry. Never raises."""
        if is_blank(entry.title):
            return EntryEnrichment(entry.id, entry.title, EntryOutcome.SKIPPED)

        try:
            metadata = await self.lookup.lookup(**build_lookup_params(entry))
        except Exception as e:
            logger.warning(f"Metadata lookup failed for {entry.title!r}: {e}")
            return EntryEnrichment(
                entry.id, entry.title, EntryOutcome.LOOKUP_FAILED, error=str(e)
            )

        delta = build_enrichment_delta(entry, metadata)
        if not delta:
            return EntryEnrichment(entry.id, entry.title, EntryOutcome.NO_UPDATE_NEEDED)

        try:
            await self.store.update(entry.id, delta)
        except Exception as e:
            logger.warning(f"Saving metadata failed for {entry.title!r}: {e}")
            return EntryEnrichment(
                entry.id, entry.title, EntryOutcome.SAVE_FAILED,
                fields=list(delta), error=str(e),
            )

        logger.info(f"Updated {entry.title!r}: {', '.join(delta)}")
        return EntryEnrichment(entry.id, entry.title, EntryOutcome.UPDATED, fields=list(delta))

    async def enrich(
        self,
        entries: list[MediaEntry],
        on_complete: CompletionCallback | None = None,
    ) -> EnrichmentReport:
        """
        Enrich entries in order, pacing between consecutive entries.

        Args:
            entries: Persisted entries to enrich.
            on_complete: Called with the report when at least one entry
                was updated. May be a coroutine function.

        Returns:
            EnrichmentReport with per-entry outcomes and counts.
        """
        report = EnrichmentReport(total=len(entries))
        if not entries:
            report.message = summarize(report)
            return report

        logger.info(f"Enriching {len(entries)} entries")
        for index, entry in enumerate(entries):
            report.record(await self.enrich_entry(entry))

            if self.on_progress:
                self.on_progress(index + 1, len(entries))

            if index < len(entries) - 1:
                await self.pacing.wait()

        report.message = summarize(report)
        logger.info(report.message)

        if report.success_count > 0 and on_complete is not None:
            result = on_complete(report)
            if inspect.isawaitable(result):
                await result

        return report
