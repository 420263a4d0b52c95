"""FastAPI application factory for Media Tracker."""

from fastapi import FastAPI

from media_tracker import __version__
from media_tracker.config import configure_logging, get_settings
from media_tracker.db.engine import init_db


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Media Tracker",
        description="Import, clean and enrich a personal media log",
        version=__version__,
    )

    # Initialize database tables
    init_db()

    # Include routers (import here to avoid circular imports)
    from media_tracker.web.routes import entries, imports, metadata

    app.include_router(imports.router)
    app.include_router(metadata.router)
    app.include_router(entries.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
