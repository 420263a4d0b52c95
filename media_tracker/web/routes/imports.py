"""Routes for AI-assisted cleaning of pasted data."""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from media_tracker.importing.csv_parser import parse_pasted_text
from media_tracker.services.ai.errors import (
    ConfigurationError,
    InvalidInputError,
    ProviderError,
    ResponseParseError,
    ResponseSchemaError,
)
from media_tracker.web.dependencies import CleaningServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["import"])


class CleanDataRequest(BaseModel):
    """Body of a clean-data request."""

    csvData: Any = None


@router.post("/clean-data")
async def clean_data(body: CleanDataRequest, service: CleaningServiceDep) -> JSONResponse:
    """
    Clean pasted CSV/TSV text with the configured AI model.

    Returns:
        ``{success, data, errors, rawCount}`` on success, otherwise
        ``{error}`` with a status reflecting the failure kind.
    """
    try:
        result = await service.clean(body.csvData)
    except InvalidInputError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except ConfigurationError as e:
        return JSONResponse({"error": str(e)}, status_code=500)
    except ProviderError as e:
        content: dict[str, Any] = {"error": str(e)}
        if e.retry_after_seconds is not None:
            content["retryAfter"] = e.retry_after_seconds
        return JSONResponse(content, status_code=e.status_code or 500)
    except ResponseParseError as e:
        logger.error(f"Clean data parse error: {e}")
        return JSONResponse(
            {"error": "Failed to parse AI response as JSON", "detail": e.original_error},
            status_code=500,
        )
    except ResponseSchemaError as e:
        logger.error(f"Clean data schema error: {e}")
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse({
        "success": True,
        "data": [entry.model_dump(mode="json") for entry in result.entries],
        "errors": result.errors,
        "rawCount": result.raw_count,
    })


@router.post("/parse-data")
async def parse_data(body: CleanDataRequest) -> JSONResponse:
    """Split pasted text into rows without calling the AI model."""
    if not isinstance(body.csvData, str) or not body.csvData.strip():
        return JSONResponse({"error": "Missing or invalid csvData field"}, status_code=400)

    result = parse_pasted_text(body.csvData)
    return JSONResponse({
        "success": True,
        "data": result.rows,
        "errors": result.errors,
        "headerMappings": result.header_mappings,
    })
