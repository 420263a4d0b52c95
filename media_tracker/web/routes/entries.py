"""Routes for persisting imported entries and enriching them."""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from media_tracker.db.engine import get_session
from media_tracker.db.repositories import MediaEntryRepository
from media_tracker.importing.enrichment import BatchEnricher
from media_tracker.importing.transform import transform_cleaned_data
from media_tracker.web.dependencies import EntryStoreDep, LookupServiceDep, PacingDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/entries", tags=["entries"])


class ImportEntriesRequest(BaseModel):
    """Rows to persist, as returned by clean-data or parse-data."""

    entries: list[dict[str, Any]] = Field(default_factory=list)


class EnrichRequest(BaseModel):
    """Optional restriction of an enrichment run."""

    ids: list[str] | None = None
    limit: int | None = None


@router.get("")
async def list_entries(limit: int | None = None) -> JSONResponse:
    """List persisted entries."""
    with get_session() as session:
        entries = MediaEntryRepository(session).list_all(limit=limit)
    return JSONResponse({"entries": [e.model_dump(mode="json") for e in entries]})


@router.post("/import")
async def import_entries(body: ImportEntriesRequest) -> JSONResponse:
    """Transform and persist rows; rows without a title are dropped."""
    entries = transform_cleaned_data(body.entries)
    with get_session() as session:
        created = MediaEntryRepository(session).create_many(entries)
        session.commit()

    logger.info(f"Imported {len(created)} of {len(body.entries)} rows")
    return JSONResponse(
        {
            "created": len(created),
            "skipped": len(body.entries) - len(created),
            "entries": [e.model_dump(mode="json") for e in created],
        },
        status_code=201,
    )


@router.post("/enrich")
async def enrich_entries(
    body: EnrichRequest,
    lookup: LookupServiceDep,
    store: EntryStoreDep,
    pacing: PacingDep,
) -> JSONResponse:
    """Fill missing metadata on persisted entries and report counts."""
    with get_session() as session:
        entries = MediaEntryRepository(session).list_missing_metadata(
            ids=body.ids, limit=body.limit
        )

    enricher = BatchEnricher(lookup=lookup, store=store, pacing=pacing)
    report = await enricher.enrich(entries)
    return JSONResponse(report.to_dict())
