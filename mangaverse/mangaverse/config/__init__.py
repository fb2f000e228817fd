"""
Configuration package for MangaVerse.

This package provides centralized, type-safe configuration management.
"""

from .manager import (
    ApiConfig,
    TTSConfig,
    StorageConfig,
    CacheConfig,
    NarrationConfig,
    LoggingConfig,
    ServerConfig,
    MangaVerseConfig,
    setup_config,
    get_config,
    reload_config,
)

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
