"""
Lyrics handling for music-search.

    - format: Lyric format classification, parsing and name conversion
    - providers: Lyrics providers over the vendor APIs and the fallback
                 aggregator (import from music_search.lyrics.providers)
"""

from music_search.lyrics.format import (
    LyricFormat,
    LyricLine,
    LyricWord,
    detect_format,
    format_to_string,
    parse_lyric_lines,
    string_to_format,
    strip_word_timing,
)

__all__ = [
    "LyricFormat",
    "LyricLine",
    "LyricWord",
    "detect_format",
    "format_to_string",
    "string_to_format",
    "parse_lyric_lines",
    "strip_word_timing",
]
