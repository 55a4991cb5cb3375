"""
music-search: Unified search and lyric retrieval for NetEase Cloud Music and QQ Music.

Both vendors are reached through the same asynchronous interface. Callers
never deal with the vendor-specific parts:
    - NetEase "weapi" request signing (AES-CBC twice, RSA-wrapped key)
    - QQ Music lyric payloads (hex, custom Triple-DES, zlib, nested XML)
    - Inconsistent vendor JSON (numeric-or-string ids, aliased fields)

Modules:
    core/       - Configuration, logging, exceptions
    crypto/     - Byte-level ciphers (AES-CBC, RSA, vendor Triple-DES, zlib)
    netease/    - NetEase signer, normalizers and client
    qqmusic/    - QQ Music decoder, normalizers and client
    lyrics/     - Lyric format detection and parsing, lyrics providers
    models.py   - Vendor-agnostic dataclasses
    api.py      - create_api() factory
    cli.py      - Command-line interface

Usage:
    Command Line:
        music-search search "Norwegian Wood"
        music-search lyric 1357375695 --parse
        music-search fetch-lyrics 晴天 --artist 周杰伦

    Python API:
        from music_search import SearchQuery, SearchSource, create_api

        async with create_api(SearchSource.NET_EASE_MUSIC) as api:
            result = await api.search(SearchQuery("Norwegian Wood"))
            song = result.songs[0]
            lyrics = await api.get_lyric(song.id, song.display_id)

Configuration:
    Optional config.yaml in the current directory (used by the CLI only):

        netease:
          cookie: null
        qqmusic:
          cookie: null
        http:
          timeout: 10
        lyrics:
          providers: [netease, qqmusic]
        logging:
          directory: null

Dependencies:
    - aiohttp: HTTP client
    - cryptography: AES-CBC for request signing
    - click / rich-click: CLI framework and colors
    - pyyaml / python-dotenv: Configuration
    - colorama: Console log colors
"""

__version__ = "0.1.0"
__author__ = "music-search"
__license__ = "MIT"

# Convenience imports for common usage
from music_search.api import MusicApi, NetEaseMusicApi, QQMusicApi, create_api
from music_search.core import (
    ApiError,
    Config,
    ConfigError,
    LyricNotFoundError,
    MusicSearchError,
    NetworkError,
    NotFoundError,
    get_logger,
    load_config,
    setup_logging,
)
from music_search.lyrics.format import LyricFormat, detect_format, parse_lyric_lines
from music_search.models import (
    Album,
    LyricSet,
    Playlist,
    SearchQuery,
    SearchResultSet,
    SearchSource,
    SearchType,
    Song,
    SongSummary,
)

__all__ = [
    # Version
    "__version__",
    # API
    "MusicApi",
    "NetEaseMusicApi",
    "QQMusicApi",
    "create_api",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "MusicSearchError",
    "ConfigError",
    "NetworkError",
    "ApiError",
    "NotFoundError",
    "LyricNotFoundError",
    # Models
    "SearchQuery",
    "SearchSource",
    "SearchType",
    "SearchResultSet",
    "SongSummary",
    "Song",
    "Album",
    "Playlist",
    "LyricSet",
    # Lyrics
    "LyricFormat",
    "detect_format",
    "parse_lyric_lines",
]
