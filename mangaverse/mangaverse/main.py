import click
from dotenv import load_dotenv, find_dotenv

# Load environment variables immediately
load_dotenv(find_dotenv())

from .cli.narrate import narrate
from .cli.search import search
from .cli.serve import serve
from .cli.stream import stream


@click.group()
def cli():
    """MangaVerse: stream resolution and manga narration."""
    pass


cli.add_command(stream)
cli.add_command(narrate)
cli.add_command(search)
cli.add_command(serve)

if __name__ == "__main__":
    cli()
