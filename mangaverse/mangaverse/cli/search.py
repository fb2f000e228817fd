"""
Search command for MangaVerse CLI.
"""
from typing import Tuple

import click
from rich import box
from rich.table import Table

from .base import configure_logging, console, get_services, verbose_option
from ..catalog import ANIME, MANGA, CatalogProvider
from ..logging import get_logger

logger = get_logger(__name__)


@click.command()
@click.argument("query")
@click.option("--manga", is_flag=True, help="Search manga instead of anime.")
@click.option("--page", default=1, show_default=True, type=int, help="Result page.")
@click.option(
    "--provider", "providers", multiple=True,
    type=click.Choice([p.value for p in CatalogProvider], case_sensitive=False),
    help="Restrict to a provider (repeatable). All configured providers by default.",
)
@verbose_option
def search(query: str, manga: bool, page: int, providers: Tuple[str, ...], verbose: int) -> None:
    """Search the merged anime/manga catalog for QUERY."""
    configure_logging(verbose)
    media = MANGA if manga else ANIME
    selected = [CatalogProvider(p.lower()) for p in providers] or None

    with console.status(f"[bold blue]Searching {media} for '{query}'..."):
        results = get_services().catalog.search(query, media=media, page=page, providers=selected)

    if not results:
        console.print(f"[yellow]No {media} found for '{query}'.[/yellow]")
        return

    table = Table(title=f"{media.title()} results for '{query}' (page {page})", box=box.ROUNDED)
    table.add_column("Title", style="white")
    table.add_column("Source", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Rating", justify="right")
    table.add_column("Year", justify="right")
    table.add_column("Status")
    for entry in results:
        table.add_row(
            entry.title,
            entry.source,
            entry.id,
            f"{entry.rating:.1f}" if entry.rating is not None else "-",
            str(entry.year or "-"),
            entry.status or "-",
        )
    console.print(table)
