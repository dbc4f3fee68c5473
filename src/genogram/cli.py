"""CLI for inspecting genogram documents."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .logging import configure_logging
from .models import GenogramDocument
from .persistence import load_document, save_document
from .store import DocumentError, GraphStore

app = typer.Typer(
    name="genogram",
    help="Genogram document tools",
    add_completion=False,
)
console = Console()


def _load_store(file_path: Path) -> GraphStore:
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {file_path}[/red]")
        raise typer.Exit(1)
    try:
        document = load_document(file_path)
    except DocumentError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    config = load_config()
    store = GraphStore(household_buffer=config.household_buffer)
    store.load(document)
    return store


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for library output"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    configure_logging(log_level.upper(), json_output=json_logs)


@app.command()
def summary(
    file_path: Path = typer.Argument(..., help="Path to a genogram JSON document"),
):
    """Show entity counts and dangling relationships."""
    store = _load_store(file_path)

    table = Table(title=f"Genogram: {file_path.name}")
    table.add_column("Entity")
    table.add_column("Count")
    for name, count in store.counts().items():
        table.add_row(name, str(count))
    console.print(table)

    dangling = store.dangling_relationships()
    if dangling:
        dangling_table = Table(title="Dangling Relationships")
        dangling_table.add_column("ID")
        dangling_table.add_column("Type")
        dangling_table.add_column("From")
        dangling_table.add_column("To")
        for rel in dangling:
            data = rel.to_dict()
            dangling_table.add_row(rel.id, rel.type.value, data["from"], data["to"])
        console.print(dangling_table)


@app.command()
def validate(
    file_path: Path = typer.Argument(..., help="Path to a genogram JSON document"),
):
    """Exit non-zero when the document is malformed or has dangling edges."""
    store = _load_store(file_path)

    dangling = store.dangling_relationships()
    if dangling:
        console.print(f"[red]{len(dangling)} dangling relationship(s)[/red]")
        for rel in dangling:
            console.print(f"  • {rel.id} ({rel.type.value})")
        raise typer.Exit(1)

    console.print(f"[green]{file_path.name} is valid[/green]")


@app.command()
def new(
    file_path: Path = typer.Argument(..., help="Where to write the empty document"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write an empty genogram document."""
    if file_path.exists() and not force:
        console.print(f"[red]Error: {file_path} already exists (use --force)[/red]")
        raise typer.Exit(1)

    save_document(GenogramDocument(), file_path)
    console.print(f"[green]Created {file_path}[/green]")


if __name__ == "__main__":
    app()
