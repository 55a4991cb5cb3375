"""
Core module for music-search.

This module provides the foundational components used throughout the package:
    - exceptions: Typed errors carrying vendor name and failing stage
    - config: Configuration loading and validation (CLI only)
    - logger: Logging system with console and file outputs

Usage:
    from music_search.core import (
        Config, load_config,
        setup_logging, get_logger,
        MusicSearchError, NetworkError, LyricNotFoundError
    )
"""

from music_search.core.config import (
    Config,
    HttpConfig,
    LoggingConfig,
    LyricsConfig,
    VendorConfig,
    load_config,
)
from music_search.core.exceptions import (
    ApiError,
    ConfigError,
    DecompressionError,
    DecryptionError,
    EncryptionError,
    JsonParseError,
    LyricDecodeError,
    LyricNotFoundError,
    MusicSearchError,
    NetworkError,
    NotFoundError,
)
from music_search.core.logger import (
    get_logger,
    log_dropped_item,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "VendorConfig",
    "HttpConfig",
    "LyricsConfig",
    "LoggingConfig",
    "load_config",
    # Exceptions
    "MusicSearchError",
    "ConfigError",
    "NetworkError",
    "EncryptionError",
    "DecryptionError",
    "DecompressionError",
    "LyricDecodeError",
    "JsonParseError",
    "ApiError",
    "NotFoundError",
    "LyricNotFoundError",
    # Logger
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "log_dropped_item",
]
