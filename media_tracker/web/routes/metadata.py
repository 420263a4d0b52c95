"""Routes for metadata search and single-title lookup."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from media_tracker.services.ai.errors import (
    ConfigurationError,
    InvalidInputError,
    MetadataNotFoundError,
)
from media_tracker.web.dependencies import LookupServiceDep, SearchServiceDep

router = APIRouter(prefix="/api/metadata", tags=["metadata"])


@router.get("/search")
async def search_metadata(service: SearchServiceDep, q: str = "") -> JSONResponse:
    """Search movies and TV shows; TMDB first, OMDB when TMDB has nothing."""
    response = await service.search(q)
    if response.error:
        return JSONResponse({"error": response.error, "results": []}, status_code=500)
    return JSONResponse({
        "results": [r.model_dump(mode="json", exclude_none=True) for r in response.results],
    })


@router.get("")
async def get_metadata(
    service: LookupServiceDep,
    title: str | None = None,
    imdb_id: str | None = None,
    media_type: str | None = Query(None, alias="type"),
    medium: str | None = None,
    year: str | None = None,
    season: str | None = None,
    source: str | None = None,
) -> JSONResponse:
    """Look up full metadata for one title, IMDb id or ISBN."""
    try:
        metadata = await service.lookup(
            title=title,
            imdb_id=imdb_id,
            media_type=media_type,
            medium=medium,
            year=year,
            season=season,
            source=source,
        )
    except InvalidInputError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except MetadataNotFoundError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except ConfigurationError as e:
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse(metadata.model_dump(mode="json"))
