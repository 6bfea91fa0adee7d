"""Database management CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from src.product_catalog.core.errors import SchemaMismatchError
from src.product_catalog.core.services import DbManageService, DbSessionService
from src.product_catalog.runtime.context import get_config

console = Console()

# Create the db subcommand app
db_app = typer.Typer(help="Manage the product catalog database")


@contextmanager
def manage_service() -> Iterator[DbManageService]:
    """Build a DbManageService for the current configuration and dispose it afterwards."""
    config = get_config()
    database_service = DbSessionService(config)
    try:
        yield DbManageService(config, database_service)
    finally:
        database_service.dispose()


@db_app.command("init")
def init_database() -> None:
    """Create missing tables and seed an empty product table."""
    with manage_service() as service:
        try:
            seeded = service.initialize()
        except SchemaMismatchError as e:
            console.print(f"[red]❌ {e}[/red]")
            raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Database initialized ({seeded} products seeded)[/green]")


@db_app.command("reset")
def reset_database(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Drop and recreate all tables. Every stored product is lost."""
    config = get_config()
    if config.app.environment == "production" and not yes:
        console.print("[red]❌ Refusing to reset a production database without --yes[/red]")
        raise typer.Exit(code=1)

    if not yes and not Confirm.ask(
        f"Drop all tables in [bold]{config.database.url}[/bold]?"
    ):
        console.print("[yellow]Reset cancelled[/yellow]")
        raise typer.Exit(code=0)

    with manage_service() as service:
        seeded = service.reset_schema()

    console.print(f"[green]✅ Schema recreated ({seeded} products seeded)[/green]")


@db_app.command("status")
def database_status() -> None:
    """Show schema fingerprint and product count."""
    with manage_service() as service:
        status = service.seed_status()

    table = Table(title="Database status")
    table.add_column("Check", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Tables present", "✅" if status["tables_present"] else "❌")
    table.add_row("Schema current", "✅" if status["schema_current"] else "❌")
    table.add_row("Stored fingerprint", (status["stored_fingerprint"] or "-")[:12])
    table.add_row("Model fingerprint", status["model_fingerprint"][:12])
    table.add_row("Products", str(status["product_count"]))
    console.print(table)
