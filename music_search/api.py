"""
Unified retrieval interface.

    from music_search.api import create_api

    async with create_api("qqmusic") as api:
        result = await api.search(SearchQuery("晴天"))
"""

import aiohttp

from music_search.base import MusicApi
from music_search.core.config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from music_search.models import SearchSource
from music_search.netease.api import NetEaseMusicApi
from music_search.qqmusic.api import QQMusicApi


API_CLASSES: dict[SearchSource, type[MusicApi]] = {
    SearchSource.NET_EASE_MUSIC: NetEaseMusicApi,
    SearchSource.QQ_MUSIC: QQMusicApi,
}


def create_api(
    source: SearchSource | str,
    cookie: str | None = None,
    session: aiohttp.ClientSession | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT
) -> MusicApi:
    """
    Build the MusicApi implementation for a vendor.

    Args:
        source: SearchSource or a vendor name accepted by SearchSource.from_string.
        cookie: Vendor cookie, attached verbatim to every request.
        session: Shared aiohttp session; the API will not close it.

    Raises:
        ValueError: If the vendor name is unknown.
    """
    if isinstance(source, str):
        source = SearchSource.from_string(source)
    api_class = API_CLASSES[source]
    return api_class(cookie=cookie, session=session, timeout=timeout, user_agent=user_agent)


__all__ = [
    "MusicApi",
    "NetEaseMusicApi",
    "QQMusicApi",
    "create_api",
]
