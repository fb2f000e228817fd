"""
Centralized configuration management for MangaVerse.

This module provides type-safe, validated configuration using Pydantic.
Every collaborator (content APIs, TTS, object storage, cache) is configured
here; collaborators whose credentials are missing are simply not wired.
"""

import json
from pathlib import Path
from typing import List, Optional, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import constants as c


class ApiConfig(BaseSettings):
    """Configuration for the content and streaming APIs"""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    jikan_url: str = Field(default=c.JIKAN_BASE_URL, description="Jikan (MyAnimeList) API base URL")
    anilist_url: str = Field(default=c.ANILIST_BASE_URL, description="AniList GraphQL endpoint")
    kitsu_url: str = Field(default=c.KITSU_BASE_URL, description="Kitsu API base URL")
    mangadex_url: str = Field(default=c.MANGADEX_BASE_URL, description="MangaDex API base URL")
    consumet_url: str = Field(default=c.CONSUMET_BASE_URL, description="Consumet API base URL")
    anify_url: str = Field(default=c.ANIFY_BASE_URL, description="Anify API base URL")
    timeout: int = Field(default=c.HTTP_TIMEOUT_SECONDS, description="API timeout in seconds")
    stream_timeout: int = Field(default=c.STREAM_TIMEOUT_SECONDS, description="Streaming provider timeout in seconds")
    max_retries: int = Field(default=c.HTTP_RETRY_COUNT, description="Maximum number of retries")


class TTSConfig(BaseSettings):
    """Configuration for the ElevenLabs text-to-speech provider"""

    model_config = SettingsConfigDict(
        env_prefix="ELEVENLABS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    api_key: Optional[str] = Field(default=None, description="ElevenLabs API key; mock audio is used when unset")
    model_id: str = Field(default=c.TTS_MODEL_ID, description="ElevenLabs model id")
    base_url: str = Field(default=c.ELEVENLABS_BASE_URL, description="ElevenLabs API base URL")
    timeout: int = Field(default=60, description="Synthesis timeout in seconds")


class StorageConfig(BaseSettings):
    """Configuration for Cloudinary object storage"""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    cloud_name: Optional[str] = Field(default=None, description="Cloudinary cloud name")
    api_key: Optional[str] = Field(default=None, description="Cloudinary API key")
    api_secret: Optional[str] = Field(default=None, description="Cloudinary API secret")

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class CacheConfig(BaseSettings):
    """Configuration for caching behavior"""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    backend: str = Field(default="memory", description="Cache backend: memory, file, none")
    directory: str = Field(default=c.CACHE_DIRNAME, description="Directory used by the file backend")
    stream_ttl: int = Field(default=c.STREAM_CACHE_TTL_SECONDS, description="Stream result TTL in seconds")
    status_ttl: int = Field(default=c.NARRATION_STATUS_TTL_SECONDS, description="Narration status TTL in seconds")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        valid_backends = {'memory', 'file', 'none'}
        if v.lower() not in valid_backends:
            raise ValueError(f"Cache backend must be one of {valid_backends}")
        return v.lower()


class NarrationConfig(BaseSettings):
    """Configuration for narration jobs"""

    model_config = SettingsConfigDict(
        env_prefix="NARRATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    uploads_dir: str = Field(default=c.DEFAULT_UPLOADS_DIR, description="Local directory for persisted audio")
    workers: int = Field(default=c.NARRATION_WORKERS, description="Concurrent narration jobs")
    fail_on_missing_content: bool = Field(
        default=False,
        description="Fail the job instead of narrating a placeholder when the chapter cannot be fetched"
    )


class LoggingConfig(BaseSettings):
    """Configuration for logging behavior"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    level: str = Field(default="INFO", description="Default logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    log_file: str = Field(default="mangaverse.log", description="Log file path")

    @field_validator('level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the allowed values"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class ServerConfig(BaseSettings):
    """Configuration for the HTTP server"""

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=3001, description="Bind port")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


class MangaVerseConfig(BaseSettings):
    """
    Main configuration class for MangaVerse.

    This class serves as the single source of truth for all configuration.
    It automatically loads from environment variables and .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    api: ApiConfig = Field(default_factory=ApiConfig, description="Content API configuration")
    tts: TTSConfig = Field(default_factory=TTSConfig, description="Text-to-speech configuration")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Object storage configuration")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Cache configuration")
    narration: NarrationConfig = Field(default_factory=NarrationConfig, description="Narration job configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    server: ServerConfig = Field(default_factory=ServerConfig, description="HTTP server configuration")

    def save_to_file(self, path: Union[str, Path]) -> None:
        """
        Save configuration to a JSON file.

        Args:
            path: Path to save the configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode='json')

        with open(path, "w", encoding="utf-8") as f:
            json.dump(config_dict, f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "MangaVerseConfig":
        """
        Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls(**data)


# Global configuration instance
_config_instance: Optional[MangaVerseConfig] = None


def setup_config(env_file: Optional[Union[str, Path]] = None, **kwargs) -> MangaVerseConfig:
    """
    Set up the global configuration.

    Args:
        env_file: Path to .env file
        **kwargs: Additional configuration overrides

    Returns:
        MangaVerseConfig instance
    """
    global _config_instance

    config_kwargs = {}
    if env_file:
        config_kwargs["_env_file"] = str(env_file)
    config_kwargs.update(kwargs)

    _config_instance = MangaVerseConfig(**config_kwargs)
    return _config_instance


def get_config() -> MangaVerseConfig:
    """Get the global configuration instance, creating it from the environment on first use."""
    global _config_instance
    if _config_instance is None:
        _config_instance = MangaVerseConfig()
    return _config_instance


def reload_config() -> MangaVerseConfig:
    """Reload configuration from environment and .env files."""
    global _config_instance
    _config_instance = MangaVerseConfig()
    return _config_instance


__all__ = [
    "ApiConfig",
    "TTSConfig",
    "StorageConfig",
    "CacheConfig",
    "NarrationConfig",
    "LoggingConfig",
    "ServerConfig",
    "MangaVerseConfig",
    "setup_config",
    "get_config",
    "reload_config",
]
