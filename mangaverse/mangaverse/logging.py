"""
Centralized logging and error handling for MangaVerse.

This module provides consistent logging configuration and custom exceptions
shared by the streaming and narration pipelines.
"""

import logging
from typing import Any, Dict, Optional, Union
from rich.logging import RichHandler
from rich.console import Console
from rich.panel import Panel

# Global console instance for the entire application
console = Console()


class MangaVerseError(Exception):
    """Base exception for all MangaVerse-specific errors."""
    pass


class ConfigError(MangaVerseError):
    """Raised when there's a configuration-related error."""
    pass


class APIError(MangaVerseError):
    """Raised when an external API call fails (Jikan, AniList, Consumet, ElevenLabs...)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FileError(MangaVerseError):
    """Raised when a file operation fails."""
    pass


class ValidationError(MangaVerseError):
    """Raised when data validation fails."""
    pass


class IdNotFoundError(MangaVerseError):
    """Raised when a foreign id has no counterpart on the native provider."""
    pass


class StreamUnavailableError(MangaVerseError):
    """Raised when no stream, embed or fallback link could be produced for an episode."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class NarrationError(MangaVerseError):
    """Raised when a narration job cannot complete."""
    pass


class MangaVerseLogger:
    """
    Centralized logging configuration for MangaVerse.

    Owns the root logger handlers: a UTF-8 file handler with full detail and
    a Rich console handler for warnings and errors.
    """

    def __init__(self, log_file: str = "mangaverse.log"):
        self.log_file = log_file
        self.console = console
        self._setup_root_logger()

    def _setup_root_logger(self) -> None:
        """Configure the root logger with file and console handlers."""
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(file_formatter)

        console_handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=True,
            keywords=[]
        )
        console_handler.setLevel(logging.WARNING)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        root_logger.handlers = []
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    def set_console_level(self, level: Union[str, int], clean: bool = False) -> None:
        """
        Set the console logging level.

        Args:
            level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING')
            clean: If True, hides time and level for a cleaner UI-like look
        """
        root_logger = logging.getLogger()

        numeric_level = level
        if isinstance(level, str):
            numeric_level = getattr(logging, level.upper(), logging.INFO)

        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(numeric_level)
                handler.show_time = not clean
                handler.show_level = not clean
                break

    def set_file_level(self, level: Union[str, int]) -> None:
        """Set the file logging level."""
        root_logger = logging.getLogger()

        numeric_level = level
        if isinstance(level, str):
            numeric_level = getattr(logging, level.upper(), logging.INFO)

        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric_level)
                break


# Global logger instance
_logger_instance: Optional[MangaVerseLogger] = None


def setup_logging(log_file: str = "mangaverse.log") -> MangaVerseLogger:
    """
    Set up the global logging configuration.

    Args:
        log_file: Path to the log file

    Returns:
        The configured MangaVerseLogger instance
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = MangaVerseLogger(log_file)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    This should be called in each module as:
        from .logging import get_logger
        logger = get_logger(__name__)

    Handlers are only installed by `setup_logging`, so library use (tests, the
    FastAPI app embedded elsewhere) never touches the root logger on import.
    """
    return logging.getLogger(name)


def set_log_level(level: Union[str, int], handler_type: str = "both", clean: bool = False) -> None:
    """
    Set the logging level for console, file, or both handlers.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING', 'ERROR')
        handler_type: 'console', 'file', or 'both'
        clean: If True, hides time and level for console handler
    """
    instance = setup_logging()

    if handler_type in ("console", "both"):
        instance.set_console_level(level, clean=clean)
    if handler_type in ("file", "both"):
        instance.set_file_level(level)


def verbosity_to_level(verbose: int) -> int:
    """Maps a click `-v` count onto a console logging level."""
    if verbose == 1:
        return logging.INFO
    if verbose >= 2:
        return logging.DEBUG
    return logging.WARNING


def log_step(message: str) -> None:
    """
    Log a major step with a visual panel.
    Logs to file as INFO, prints to console as Panel if level <= INFO.
    """
    instance = setup_logging()

    logging.getLogger("mangaverse.step").info(f"STEP: {message}")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler):
            if handler.level <= logging.INFO:
                instance.console.print(Panel(message, style="bold magenta"))
            break


def log_substep(message: str) -> None:
    """Log a sub-step with indentation."""
    get_logger("mangaverse.substep").info(f"  [bold cyan]->[/bold cyan] {message}")


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """
    Log an API call with sensitive data masking.
    Logs at DEBUG level.
    """
    logger = get_logger("mangaverse.api")

    if not logger.isEnabledFor(logging.DEBUG):
        return

    safe_params = "None"
    if params:
        masked = dict(params)
        keys_to_mask = ['api_key', 'token', 'password', 'secret', 'key', 'signature']
        for k in masked:
            if isinstance(k, str) and any(m in k.lower() for m in keys_to_mask):
                masked[k] = "********"
        safe_params = str(masked)

    logger.debug(f"API CALL: {method} {url} | Params: {safe_params}")


__all__ = [
    "MangaVerseError",
    "ConfigError",
    "APIError",
    "FileError",
    "ValidationError",
    "IdNotFoundError",
    "StreamUnavailableError",
    "NarrationError",
    "MangaVerseLogger",
    "console",
    "setup_logging",
    "get_logger",
    "set_log_level",
    "verbosity_to_level",
    "log_step",
    "log_substep",
    "log_api_call",
]
