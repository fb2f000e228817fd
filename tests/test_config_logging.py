"""
Tests for the logging and configuration foundations.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError
from rich.logging import RichHandler

from mangaverse.mangaverse.logging import (
    MangaVerseLogger, get_logger, verbosity_to_level,
    MangaVerseError, ConfigError, APIError, FileError, ValidationError,
    IdNotFoundError, StreamUnavailableError, NarrationError
)
from mangaverse.mangaverse.config import (
    setup_config, reload_config, MangaVerseConfig, CacheConfig, LoggingConfig, StorageConfig
)


@pytest.fixture
def restore_root_handlers():
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)


class TestLogging:
    """Test the centralized logging system."""

    def test_logger_installs_file_and_console_handlers(self, tmp_path, restore_root_handlers):
        log_file = tmp_path / "mangaverse.log"
        instance = MangaVerseLogger(str(log_file))

        root_logger = logging.getLogger()
        assert instance.log_file == str(log_file)
        assert log_file.exists()
        assert any(isinstance(h, RichHandler) for h in root_logger.handlers)
        assert any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)

    def test_console_level_can_be_lowered(self, tmp_path, restore_root_handlers):
        instance = MangaVerseLogger(str(tmp_path / "mangaverse.log"))
        instance.set_console_level("DEBUG")

        rich_handler = next(h for h in logging.getLogger().handlers if isinstance(h, RichHandler))
        assert rich_handler.level == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG

    def test_get_logger_has_no_own_handlers(self):
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert len(logger.handlers) == 0

    @pytest.mark.parametrize("verbose,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_to_level(self, verbose, level):
        assert verbosity_to_level(verbose) == level

    def test_custom_exceptions(self):
        for exc_type in (ConfigError, APIError, FileError, ValidationError,
                         IdNotFoundError, StreamUnavailableError, NarrationError):
            with pytest.raises(MangaVerseError):
                raise exc_type("boom")

        error = APIError("down", status_code=503)
        assert error.status_code == 503

        unavailable = StreamUnavailableError("nothing", details={"animeId": "21"})
        assert unavailable.details == {"animeId": "21"}
        assert StreamUnavailableError("nothing").details == {}


class TestConfiguration:
    """Test the centralized configuration system."""

    def test_defaults(self):
        config = MangaVerseConfig()
        assert config.cache.stream_ttl == 3600
        assert config.cache.status_ttl == 3600
        assert config.narration.fail_on_missing_content is False
        assert config.api.jikan_url.startswith("https://")

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("CACHE_BACKEND", "FILE")
        monkeypatch.setenv("NARRATION_FAIL_ON_MISSING_CONTENT", "true")
        monkeypatch.setenv("ELEVENLABS_API_KEY", "secret")
        monkeypatch.setenv("SERVER_PORT", "8080")

        config = reload_config()

        assert config.cache.backend == "file"
        assert config.narration.fail_on_missing_content is True
        assert config.tts.api_key == "secret"
        assert config.server.port == 8080

    def test_invalid_cache_backend(self):
        with pytest.raises(PydanticValidationError):
            CacheConfig(backend="redis")

    def test_invalid_log_level(self):
        with pytest.raises(PydanticValidationError):
            LoggingConfig(level="LOUD")

    def test_storage_is_configured_needs_all_credentials(self):
        assert not StorageConfig(cloud_name="demo", api_key="key").is_configured
        assert StorageConfig(cloud_name="demo", api_key="key", api_secret="secret").is_configured

    def test_setup_config_overrides(self):
        config = setup_config(narration={"workers": 5, "uploads_dir": "media"})
        assert config.narration.workers == 5
        assert config.narration.uploads_dir == "media"

    def test_save_and_load(self, tmp_path):
        config = setup_config(narration={"workers": 3})
        config_file = tmp_path / "config.json"

        config.save_to_file(config_file)
        loaded = MangaVerseConfig.load_from_file(config_file)

        assert loaded.narration.workers == 3
        assert loaded.cache.backend == config.cache.backend

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MangaVerseConfig.load_from_file(tmp_path / "missing.json")


def test_package_metadata_does_not_ship_design_documents():
    pyproject = (Path(__file__).resolve().parent.parent / "pyproject.toml").read_text(encoding="utf-8")
    assert "spec.md" not in pyproject
