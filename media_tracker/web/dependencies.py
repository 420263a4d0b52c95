"""FastAPI dependencies providing configured services.

Routes receive their services through these factories so tests can
swap them with ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends

from media_tracker.config import Settings, get_settings
from media_tracker.db.repositories import SqlEntryStore
from media_tracker.importing.enrichment import EntryStore, MinIntervalGate, PacingPolicy
from media_tracker.services.ai.cleaning import CleaningService
from media_tracker.services.metadata.lookup import MetadataLookupService
from media_tracker.services.metadata.search import MetadataSearchService


def get_app_settings() -> Settings:
    """Dependency returning settings read from the environment."""
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_cleaning_service(settings: SettingsDep) -> CleaningService:
    """Dependency returning the AI cleaning service."""
    return CleaningService(settings=settings)


def get_search_service(settings: SettingsDep) -> MetadataSearchService:
    """Dependency returning the metadata search service."""
    return MetadataSearchService.from_settings(settings)


def get_lookup_service(settings: SettingsDep) -> MetadataLookupService:
    """Dependency returning the single-title lookup service."""
    return MetadataLookupService.from_settings(settings)


def get_entry_store() -> EntryStore:
    """Dependency returning the persisted entry store."""
    return SqlEntryStore()


def get_pacing(settings: SettingsDep) -> PacingPolicy:
    """Dependency returning the inter-entry pacing policy for enrichment."""
    return MinIntervalGate(settings.enrichment_delay)


CleaningServiceDep = Annotated[CleaningService, Depends(get_cleaning_service)]
SearchServiceDep = Annotated[MetadataSearchService, Depends(get_search_service)]
LookupServiceDep = Annotated[MetadataLookupService, Depends(get_lookup_service)]
EntryStoreDep = Annotated[EntryStore, Depends(get_entry_store)]
PacingDep = Annotated[PacingPolicy, Depends(get_pacing)]
