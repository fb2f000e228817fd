"""
Shared CLI utilities.

Commands get their collaborators from `get_services` so tests can patch a
single function to inject mocks.
"""
import sys
from typing import Any, Dict, Optional

import click
from rich import box
from rich.table import Table

from ..config import get_config
from ..logging import console, get_logger, setup_logging, set_log_level, verbosity_to_level
from ..services import Services, build_services

logger = get_logger(__name__)

_services: Optional[Services] = None

verbose_option = click.option(
    "-v", "--verbose", count=True, help="Increase console verbosity (-v info, -vv debug)."
)


def configure_logging(verbose: int) -> None:
    """Installs the file and console handlers and applies the `-v` count."""
    config = get_config()
    setup_logging(config.logging.log_file)
    set_log_level(config.logging.level, handler_type="file")
    set_log_level(verbosity_to_level(verbose), handler_type="console", clean=verbose < 2)


def get_services() -> Services:
    """Builds the collaborators once per process."""
    global _services
    if _services is None:
        _services = build_services(get_config())
    return _services


def fail(message: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Prints an error (and its details) and exits with status 1."""
    console.print(f"[red]Error: {message}[/red]")
    if details:
        console.print(key_value_table("Details", details))
    sys.exit(1)


def key_value_table(title: str, values: Dict[str, Any]) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key, value in values.items():
        table.add_row(str(key), "-" if value is None else str(value))
    return table
