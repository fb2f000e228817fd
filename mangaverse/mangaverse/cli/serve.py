"""
Serve command for MangaVerse CLI.
"""
from typing import Optional

import click
import uvicorn

from .base import configure_logging, console, get_services, verbose_option
from ..config import get_config
from ..logging import get_logger
from ..server import create_app

logger = get_logger(__name__)


@click.command()
@click.option("--host", default=None, help="Bind address (SERVER_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (SERVER_PORT).")
@verbose_option
def serve(host: Optional[str], port: Optional[int], verbose: int) -> None:
    """Start the MangaVerse HTTP API."""
    configure_logging(verbose)
    server_config = get_config().server
    host = host or server_config.host
    port = port or server_config.port

    app = create_app(get_services())
    console.print(f"[green]MangaVerse API listening on http://{host}:{port}[/green]")
    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)
