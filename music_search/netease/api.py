"""
NetEase Cloud Music client over the encrypted "weapi" endpoints.

Every request body is signed by music_search.netease.signer; the response
is plain JSON normalized by music_search.netease.models.
"""

import json
from typing import Any

from music_search.base import MusicApi
from music_search.core.exceptions import NotFoundError
from music_search.core.logger import get_logger
from music_search.models import Album, LyricSet, Playlist, SearchQuery, SearchResultSet, SearchSource, Song
from music_search.netease import models
from music_search.netease.signer import encrypt_request


logger = get_logger(__name__)

SEARCH_URL = "https://music.163.com/weapi/cloudsearch/get/web"
SONG_DETAIL_URL = "https://music.163.com/weapi/v3/song/detail?csrf_token="
PLAYLIST_URL = "https://music.163.com/weapi/v6/playlist/detail?csrf_token="
ALBUM_URL = "https://music.163.com/weapi/v1/album/{album_id}?csrf_token="
LYRIC_URL = "https://music.163.com/weapi/song/lyric?csrf_token="
SONG_URL_URL = "https://music.163.com/weapi/song/enhance/player/url?csrf_token="

SEARCH_LIMIT = "20"
PLAYLIST_LIMIT = "1000"
# Highest bitrate the endpoint accepts; it answers with the best available
SONG_BITRATE = "999000"


class NetEaseMusicApi(MusicApi):
    """NetEase Cloud Music implementation of MusicApi."""

    source = SearchSource.NET_EASE_MUSIC
    referer = "https://music.163.com/"

    async def _post_form(self, url: str, data: dict[str, Any]) -> Any:
        """Sign `data`, POST it as a form and decode the JSON answer."""
        form = encrypt_request(data)
        text = await self._request_text(url, data=form)
        return self._load_json(text, url)

    async def search(self, query: SearchQuery) -> SearchResultSet:
        response = await self._post_form(SEARCH_URL, {
            "csrf_token": "",
            "s": query.keyword,
            "type": models.SEARCH_TYPE_CODES[query.kind],
            "limit": SEARCH_LIMIT,
            "offset": "0",
        })
        result = models.parse_search_response(response, query.kind)
        logger.debug(f"NetEase {query.kind.value} search '{query.keyword}': {len(result)} results")
        return result

    async def get_songs(self, song_ids: list[str]) -> dict[str, Song]:
        if not song_ids:
            return {}

        # The endpoint wants the id list as a JSON string inside the payload
        ids = [{"id": song_id} for song_id in song_ids]
        response = await self._post_form(SONG_DETAIL_URL, {
            "c": json.dumps(ids, separators=(",", ":")),
            "csrf_token": "",
        })
        return models.parse_song_details(response)

    async def get_playlist(self, playlist_id: str) -> Playlist:
        response = await self._post_form(PLAYLIST_URL, {
            "csrf_token": "",
            "id": playlist_id,
            "offset": "0",
            "total": "true",
            "limit": PLAYLIST_LIMIT,
            "n": PLAYLIST_LIMIT,
        })
        playlist, track_ids = models.parse_playlist_detail(response, playlist_id)

        details = await self.get_songs(track_ids)
        tracks = tuple(details[track_id].to_summary() for track_id in track_ids if track_id in details)
        return Playlist(
            id=playlist.id,
            name=playlist.name,
            author=playlist.author,
            description=playlist.description,
            songs=tracks,
        )

    async def get_album(self, album_id: str) -> Album:
        url = ALBUM_URL.format(album_id=album_id)
        response = await self._post_form(url, {"csrf_token": ""})
        return models.parse_album_detail(response, album_id)

    async def get_song_link(self, song_id: str) -> str:
        response = await self._post_form(SONG_URL_URL, {
            "ids": f"[{song_id}]",
            "br": SONG_BITRATE,
            "csrf_token": "",
        })
        link = models.parse_song_urls(response).get(song_id)
        if not link:
            raise NotFoundError(
                f"NetEase has no playable link for song {song_id}",
                details={"source": self.source.value, "stage": "envelope", "song_id": song_id}
            )
        return link

    async def get_lyric(self, song_id: str, display_id: str, verbatim: bool = False) -> LyricSet:
        """NetEase keys lyrics by display_id; `verbatim` has no effect here."""
        display_id = display_id or song_id
        response = await self._post_form(LYRIC_URL, {
            "id": display_id,
            "os": "pc",
            "lv": "-1",
            "kv": "-1",
            "tv": "-1",
            "rv": "-1",
            "yv": "-1",
            "ytv": "-1",
            "yrv": "-1",
            "csrf_token": "",
        })
        return models.parse_lyric(response, display_id)
