"""Command-line interface for the Lightning Lessons backend."""

from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from lessons.logging_config import configure_logging, get_logger
from lessons.settings import settings
from lessons.storage.db import Database, DatabaseNotConfigured

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="lessons",
    help="Lightning Lessons - payments and signup backend",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "0.0.0.0",
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port (defaults to PORT)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the HTTP API."""
    port = port or settings.port
    console.print(f"[bold blue]Server is running on http://localhost:{port}[/bold blue]")
    uvicorn.run(
        "lessons.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("db-version")
def db_version() -> None:
    """Print the database server version."""
    db = Database(settings.database_url)
    try:
        version = db.version()
    except DatabaseNotConfigured as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)
    except SQLAlchemyError as e:
        logger.error("database_query_failed", error=str(e))
        console.print("[bold red]✗[/bold red] Failed to connect to database")
        raise typer.Exit(code=1)
    finally:
        db.dispose()

    console.print(f"[bold green]✓[/bold green] {version}")


if __name__ == "__main__":
    app()
