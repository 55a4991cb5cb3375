"""Test configuration and fixtures"""

import logging
from pathlib import Path

import pytest

from music_search.crypto.ciphers import triple_des_encrypt
from music_search.qqmusic.decoder import QQ_KEY


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def qq_lyric_hex():
    """Encrypted QQ Music lyric body captured from lyric_download"""
    return (FIXTURES_DIR / "qq_lyric_payload.hex").read_text(encoding="utf-8").strip()


@pytest.fixture
def encrypt_qq_body():
    """Encrypt bytes the way QQ Music does, returning uppercase hex"""
    def encrypt(plaintext: bytes) -> str:
        padded = plaintext.ljust(-(-len(plaintext) // 8) * 8, b"\x00")
        return triple_des_encrypt(padded, QQ_KEY).hex().upper()
    return encrypt


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Remove handlers installed by setup_logging() between tests"""
    root_logger = logging.getLogger()
    saved_level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        # pytest manages its own capture handlers
        if type(handler).__module__.startswith("_pytest"):
            continue
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(saved_level)


@pytest.fixture
def netease_song_item():
    """One song as returned by the NetEase cloudsearch endpoint"""
    return {
        "id": 1357375695,
        "name": "Norwegian Wood",
        "ar": [{"id": 1, "name": "The Beatles"}],
        "al": {"id": 2, "name": "Rubber Soul", "picUrl": "https://p1.music.126.net/cover.jpg"},
        "dt": 125000,
    }


@pytest.fixture
def netease_search_response(netease_song_item):
    """NetEase song search with one valid and one malformed item"""
    return {
        "code": 200,
        "result": {
            "songs": [netease_song_item, {"name": "No id"}],
            "songCount": 57,
        },
    }


@pytest.fixture
def qq_song_item():
    """One song as returned by the QQ Music desktop search"""
    return {
        "id": 97773,
        "mid": "0039MnYb0qxYhV",
        "title": "晴天",
        "singer": [{"id": 4558, "mid": "0025NhlN2yWrP4", "name": "周杰伦"}],
        "album": {"id": 8220, "mid": "000MkMni19ClKG", "name": "叶惠美", "pmid": "000MkMni19ClKG_3"},
        "interval": 269,
    }


@pytest.fixture
def qq_search_response(qq_song_item):
    """QQ Music song search envelope with all three status codes"""
    return {
        "code": 0,
        "req_1": {
            "code": 0,
            "data": {
                "code": 0,
                "body": {"song": {"list": [qq_song_item, {"title": "No mid", "id": 1}]}},
            },
        },
    }
