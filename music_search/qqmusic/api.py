"""
QQ Music client.

Search and song links go through the JSON gateway (musicu.fcg); song,
playlist, album and lyric details use the older form endpoints, one of
which answers in JSONP and one in comment-wrapped XML.
"""

import random
from typing import Any

from music_search.base import MusicApi
from music_search.core.exceptions import JsonParseError, LyricNotFoundError, NotFoundError
from music_search.core.logger import get_logger
from music_search.lyrics.format import LyricFormat, detect_format, strip_word_timing
from music_search.models import Album, LyricSet, Playlist, SearchQuery, SearchResultSet, SearchSource, Song
from music_search.qqmusic import models
from music_search.qqmusic.decoder import decode_lyric_response


logger = get_logger(__name__)

MUSICU_URL = "https://u.y.qq.com/cgi-bin/musicu.fcg"
SONG_URL = "https://c.y.qq.com/v8/fcg-bin/fcg_play_single_song.fcg"
PLAYLIST_URL = "https://c.y.qq.com/qzone/fcg-bin/fcg_ucc_getcdinfo_byids_cp.fcg"
ALBUM_URL = "https://c.y.qq.com/v8/fcg-bin/fcg_v8_album_info_cp.fcg"
LYRIC_URL = "https://c.y.qq.com/qqmusic/fcgi-bin/lyric_download.fcg"

SONG_CALLBACK = "getOneSongInfoCallback"
SEARCH_PAGE_SIZE = "20"
VKEY_GUID = "8348972662"


def resolve_jsonp(text: str, callback: str) -> str:
    """
    Unwrap `callback({...})` to the JSON inside.

    Raises:
        JsonParseError: If the body is not wrapped in the expected callback.
    """
    body = text.strip()
    prefix = f"{callback}("
    if not body.startswith(prefix):
        raise JsonParseError(
            f"Response is not wrapped in {callback}()",
            details={"source": SearchSource.QQ_MUSIC.value, "stage": "jsonp"}
        )
    return body[len(prefix):].rstrip(";").rstrip(")")


def create_guid() -> str:
    """Ten random digits, as the web player sends."""
    return "".join(str(random.randint(0, 9)) for _ in range(10))


class QQMusicApi(MusicApi):
    """QQ Music implementation of MusicApi."""

    source = SearchSource.QQ_MUSIC
    referer = "https://c.y.qq.com/"

    async def _post_form(self, url: str, data: dict[str, str]) -> str:
        return await self._request_text(url, data=data)

    async def _post_json(self, url: str, payload: dict[str, Any]) -> Any:
        text = await self._request_text(url, json_body=payload)
        return self._load_json(text, url)

    async def search(self, query: SearchQuery) -> SearchResultSet:
        response = await self._post_json(MUSICU_URL, {
            "req_1": {
                "method": "DoSearchForQQMusicDesktop",
                "module": "music.search.SearchCgiService",
                "param": {
                    "num_per_page": SEARCH_PAGE_SIZE,
                    "page_num": "1",
                    "query": query.keyword,
                    "search_type": models.SEARCH_TYPE_CODES[query.kind],
                },
            }
        })
        result = models.parse_search_response(response, query.kind)
        logger.debug(f"QQ Music {query.kind.value} search '{query.keyword}': {len(result)} results")
        return result

    async def get_song(self, song_id: str) -> Song:
        """Details of one song, by numeric id or by mid."""
        params = {"songid": song_id} if song_id.isdigit() else {"songmid": song_id}
        params.update({
            "tpl": "yqq_song_detail",
            "format": "jsonp",
            "callback": SONG_CALLBACK,
            "g_tk": "5381",
            "jsonpCallback": SONG_CALLBACK,
            "loginUin": "0",
            "hostUin": "0",
            "outCharset": "utf8",
            "notice": "0",
            "platform": "yqq",
            "needNewCode": "0",
        })
        text = await self._post_form(SONG_URL, params)
        response = self._load_json(resolve_jsonp(text, SONG_CALLBACK), SONG_URL)
        return models.parse_song_detail(response, song_id)

    async def get_songs(self, song_ids: list[str]) -> dict[str, Song]:
        """One request per id; ids the vendor does not know are left out."""
        songs = {}
        for song_id in song_ids:
            try:
                songs[song_id] = await self.get_song(song_id)
            except NotFoundError as e:
                logger.info(e.message)
        return songs

    async def get_playlist(self, playlist_id: str) -> Playlist:
        text = await self._post_form(PLAYLIST_URL, {
            "disstid": playlist_id,
            "format": "json",
            "outCharset": "utf8",
            "type": "1",
            "json": "1",
            "utf8": "1",
            "onlysong": "0",
            "new_format": "1",
        })
        return models.parse_playlist_detail(self._load_json(text, PLAYLIST_URL), playlist_id)

    async def get_album(self, album_id: str) -> Album:
        params = {"albumid": album_id} if album_id.isdigit() else {"albummid": album_id}
        text = await self._post_form(ALBUM_URL, params)
        return models.parse_album_detail(self._load_json(text, ALBUM_URL), album_id)

    async def get_song_link(self, song_id: str) -> str:
        """Playable URL for a song mid."""
        response = await self._post_json(MUSICU_URL, {
            "req": {
                "method": "GetCdnDispatch",
                "module": "CDN.SrfCdnDispatchServer",
                "param": {"guid": create_guid(), "calltype": "0", "userip": ""},
            },
            "req_0": {
                "method": "CgiGetVkey",
                "module": "vkey.GetVkeyServer",
                "param": {
                    "guid": VKEY_GUID,
                    "songmid": [song_id],
                    "songtype": [1],
                    "uin": "0",
                    "loginflag": 1,
                    "platform": "20",
                },
            },
            "comm": {"uin": 0, "format": "json", "ct": 24, "cv": 0},
        })
        return models.parse_song_link(response, song_id)

    async def get_lyric(self, song_id: str, display_id: str, verbatim: bool = False) -> LyricSet:
        """
        Lyrics by numeric song id.

        The request is keyed by `display_id`, the numeric id. `song_id` (the
        mid) is only sent when no numeric id is known.

        The original lyric usually comes word-synchronized. Unless `verbatim`
        is set, word timing is stripped so that callers get line-level LRC.

        Raises:
            LyricNotFoundError: If the vendor returned no lyric body at all.
        """
        lyric_id = display_id or song_id
        text = await self._post_form(LYRIC_URL, {
            "version": "15",
            "miniversion": "82",
            "lrctype": "4",
            "musicid": lyric_id,
        })
        decoded = decode_lyric_response(text)

        lyrics = LyricSet(
            source=self.source,
            lyric=self._line_level(decoded.lyric, verbatim),
            translation=self._line_level(decoded.translation, verbatim),
            transliteration=self._line_level(decoded.romanization, verbatim),
        )
        if lyrics.is_empty:
            raise LyricNotFoundError(
                f"QQ Music has no lyric for song {lyric_id}",
                details={"source": self.source.value, "song_id": lyric_id}
            )
        return lyrics

    @staticmethod
    def _line_level(content: str | None, verbatim: bool) -> str | None:
        if content is None or verbatim:
            return content
        if detect_format(content) is LyricFormat.LRC_WORD:
            return strip_word_timing(content)
        return content
