"""Media Tracker CLI using Typer."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from media_tracker import __version__
from media_tracker.config import ENV_PATHS, configure_logging, get_settings
from media_tracker.core.schema import CleanedEntry
from media_tracker.services.ai.errors import ImportPipelineError

console = Console()

app = typer.Typer(
    name="media-tracker",
    help="Media Tracker - import, clean and enrich a personal media log",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Load configuration and set up logging."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


def _read_input(path: Path) -> str:
    if not path.exists():
        rprint(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _display_entries(entries: list[CleanedEntry], title: str) -> None:
    table = Table(title=title)
    table.add_column("Title", style="cyan")
    table.add_column("Medium")
    table.add_column("Status")
    table.add_column("My Rating", justify="right")
    table.add_column("Finished")
    table.add_column("Genre")

    for entry in entries:
        table.add_row(
            entry.title,
            entry.medium or "",
            entry.status or "",
            f"{entry.my_rating:g}" if entry.my_rating is not None else "",
            entry.finish_date or "",
            ", ".join(entry.genre or []),
        )
    console.print(table)


def _display_errors(errors: list[str]) -> None:
    if errors:
        rprint(f"\n[yellow]{len(errors)} row(s) could not be parsed:[/yellow]")
        for error in errors:
            rprint(f"  • {error}")


def _save_entries(entries: list[CleanedEntry]) -> None:
    from media_tracker.db.engine import get_session, init_db as db_init
    from media_tracker.db.repositories import MediaEntryRepository

    db_init()
    with get_session() as session:
        created = MediaEntryRepository(session).create_many(entries)
        session.commit()
    rprint(f"\n[green]Saved {len(created)} entries.[/green]")


@app.command()
def clean(
    file: Path = typer.Argument(..., help="CSV/TSV file with a header row"),
    save: bool = typer.Option(False, "--save", "-s", help="Persist the cleaned entries"),
) -> None:
    """Clean pasted spreadsheet data with the configured AI model."""
    from media_tracker.services.ai.cleaning import CleaningService

    raw_text = _read_input(file)
    try:
        with console.status("[bold blue]Cleaning with AI...[/bold blue]"):
            result = asyncio.run(CleaningService().clean(raw_text))
    except ImportPipelineError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _display_entries(result.entries, f"Cleaned {len(result.entries)} of {result.raw_count} rows")
    _display_errors(result.errors)
    if save:
        _save_entries(result.entries)


@app.command()
def parse(
    file: Path = typer.Argument(..., help="CSV/TSV file with a header row"),
    save: bool = typer.Option(False, "--save", "-s", help="Persist the parsed entries"),
) -> None:
    """Parse spreadsheet data locally, without AI cleaning."""
    from media_tracker.importing.csv_parser import parse_pasted_text
    from media_tracker.importing.transform import transform_cleaned_data

    result = parse_pasted_text(_read_input(file))
    if result.header_mappings:
        mapped = ", ".join(f"{h} → {c}" for h, c in result.header_mappings.items())
        rprint(f"[dim]Columns: {mapped}[/dim]")

    entries = transform_cleaned_data(result.rows)
    _display_entries(entries, f"Parsed {len(entries)} entries")
    _display_errors(result.errors)
    if save:
        _save_entries(entries)


@app.command()
def search(query: str = typer.Argument(..., help="Title to search for")) -> None:
    """Search movies and TV shows (TMDB, falling back to OMDB)."""
    from media_tracker.services.metadata.search import MetadataSearchService

    service = MetadataSearchService.from_settings()
    with console.status("[bold blue]Searching...[/bold blue]"):
        response = asyncio.run(service.search(query))

    if response.error:
        rprint(f"[red]Error:[/red] {response.error}")
        raise typer.Exit(1)
    if not response.results:
        rprint("[yellow]No results.[/yellow]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Year")
    table.add_column("Type")
    for result in response.results:
        table.add_row(result.id, result.title, result.year or "", result.media_type.value)
    console.print(table)


@app.command()
def lookup(
    title: Optional[str] = typer.Argument(None, help="Title to look up"),
    imdb_id: Optional[str] = typer.Option(None, "--imdb-id", "-i", help="IMDb id or ISBN"),
    media_type: Optional[str] = typer.Option(None, "--type", "-t", help="movie or series"),
    medium: Optional[str] = typer.Option(None, "--medium", "-m", help="e.g. Book"),
    season: Optional[str] = typer.Option(None, "--season", help="Season number"),
    year: Optional[str] = typer.Option(None, "--year", "-y", help="Release year"),
) -> None:
    """Look up full metadata for one title, IMDb id or ISBN."""
    from media_tracker.services.metadata.lookup import MetadataLookupService

    service = MetadataLookupService.from_settings()
    try:
        with console.status("[bold blue]Looking up...[/bold blue]"):
            metadata = asyncio.run(
                service.lookup(
                    title=title,
                    imdb_id=imdb_id,
                    media_type=media_type,
                    medium=medium,
                    year=year,
                    season=season,
                )
            )
    except ImportPipelineError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in metadata.model_dump().items():
        if value is None:
            continue
        table.add_row(name, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)


@app.command()
def enrich(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum entries to enrich"),
    delay: Optional[float] = typer.Option(
        None, "--delay", "-d", help="Seconds between entries (default: ENRICHMENT_DELAY_SECONDS)"
    ),
) -> None:
    """Fill missing metadata on saved entries, one entry at a time."""
    from media_tracker.db.engine import get_session, init_db as db_init
    from media_tracker.db.repositories import MediaEntryRepository, SqlEntryStore
    from media_tracker.importing.enrichment import BatchEnricher, MinIntervalGate
    from media_tracker.services.metadata.lookup import MetadataLookupService

    settings = get_settings()
    db_init()
    with get_session() as session:
        entries = MediaEntryRepository(session).list_missing_metadata(limit=limit)

    if not entries:
        rprint("[yellow]No entries to fetch[/yellow]")
        return

    with Progress(
        TextColumn("[bold blue]Fetching metadata"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("enrich", total=len(entries))
        enricher = BatchEnricher(
            lookup=MetadataLookupService.from_settings(settings),
            store=SqlEntryStore(),
            pacing=MinIntervalGate(delay if delay is not None else settings.enrichment_delay),
            on_progress=lambda current, total: progress.update(task, completed=current),
        )
        report = asyncio.run(enricher.enrich(entries))

    for outcome in report.outcomes:
        if outcome.error:
            rprint(f"  [red]✗[/red] {outcome.title}: {outcome.error}")

    color = "green" if report.success_count else "red" if report.failed_count else "yellow"
    rprint(f"\n[{color}]{report.message}[/{color}]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
) -> None:
    """Start the Media Tracker API server."""
    import uvicorn

    typer.echo(f"Starting Media Tracker on http://{host}:{port}")
    typer.echo("Press Ctrl+C to stop the server")

    uvicorn.run(
        "media_tracker.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def init_db() -> None:
    """Initialize the database (create tables)."""
    from media_tracker.db.engine import init_db as db_init

    typer.echo("Initializing database...")
    db_init()
    typer.echo("Database initialized successfully!")


@app.command()
def version() -> None:
    """Show the Media Tracker version."""
    typer.echo(f"Media Tracker v{__version__}")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    settings = get_settings()
    typer.echo("Media Tracker Configuration")
    typer.echo("=" * 40)

    env_path = next((p for p in ENV_PATHS if p.exists()), None)
    typer.echo(f"  .env file: {env_path or 'Not found'}")

    ai_status = "configured" if settings.ai_api_key() else f"missing {settings.ai_key_env_var}"
    model = f" ({settings.ai_model})" if settings.ai_model else ""
    typer.echo(f"  AI Provider: {settings.ai_provider}{model} - {ai_status}")

    for label, key, env_var in (
        ("TMDB", settings.tmdb_api_key, "TMDB_API_KEY"),
        ("OMDB", settings.omdb_api_key, "OMDB_API_KEY"),
        ("Google Books", settings.google_books_api_key, "GOOGLE_BOOK_API_KEY"),
    ):
        typer.echo(f"  {label}: {'configured' if key else f'not configured (set {env_var})'}")

    typer.echo(f"  Enrichment delay: {settings.enrichment_delay}s")

    from media_tracker.db.engine import get_database_url

    typer.echo(f"  Database: {get_database_url()}")


if __name__ == "__main__":
    app()
