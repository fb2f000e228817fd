"""
Stream command for MangaVerse CLI.

Resolves playable sources for one episode and prints them.
"""
import json

import click
from rich import box
from rich.table import Table

from .base import console, configure_logging, fail, get_services, verbose_option
from ..logging import StreamUnavailableError, get_logger
from ..models import StreamResult, StreamType

logger = get_logger(__name__)


def render_stream_result(result: StreamResult) -> Table:
    if result.type is StreamType.STREAM:
        table = Table(title=f"Sources ({result.provider or 'unknown provider'})", box=box.ROUNDED)
        table.add_column("Quality", style="cyan")
        table.add_column("HLS", justify="center")
        table.add_column("URL", style="white", overflow="fold")
        for source in result.sources:
            table.add_row(source.quality, "yes" if source.is_m3u8 else "no", source.url)
    elif result.type is StreamType.EMBED:
        table = Table(title=f"Embed ({result.provider or 'unknown provider'})", box=box.ROUNDED)
        table.add_column("URL", style="white", overflow="fold")
        table.add_row(result.url)
    else:
        table = Table(title="No direct stream, try one of these sites", box=box.ROUNDED)
        table.add_column("Site", style="cyan")
        table.add_column("URL", style="white", overflow="fold")
        for link in result.links:
            table.add_row(link.name, link.url)
    return table


@click.command()
@click.argument("anime_id")
@click.argument("episode_id")
@click.option("--json", "as_json", is_flag=True, help="Print the raw StreamResult JSON.")
@verbose_option
def stream(anime_id: str, episode_id: str, as_json: bool, verbose: int) -> None:
    """Resolve streaming sources for ANIME_ID / EPISODE_ID."""
    configure_logging(verbose)
    logger.info(f"Stream command started (anime={anime_id}, episode={episode_id})")

    with console.status("[bold blue]Resolving stream..."):
        try:
            result = get_services().resolver.resolve(anime_id, episode_id)
        except StreamUnavailableError as e:
            fail(str(e), e.details)
            return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    console.print(render_stream_result(result))
