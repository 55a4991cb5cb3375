"""
QQ Music vendor.

    - decoder: Lyric payload decoding (hex, Triple-DES, zlib, XML)
    - models: Response normalizers
    - api: QQMusicApi client
"""

from music_search.qqmusic.api import QQMusicApi
from music_search.qqmusic.decoder import DecodedLyrics, decode_lyric_response

__all__ = [
    "QQMusicApi",
    "DecodedLyrics",
    "decode_lyric_response",
]
