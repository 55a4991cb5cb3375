"""
QQ Music response normalizers.

Known irregularities handled here:
    - Song `id` is a JSON number on search results and a string elsewhere
    - Playlist track counts appear as `song_count` or `song_Count`
    - Song `title` is missing on older entries; `name` is used instead
    - Success needs code 0 at up to three nesting levels of musicu.fcg

Identifier convention for songs: `id` is the song mid (used for links and
details), `display_id` is the numeric song id (used for lyrics).
"""

from collections.abc import Mapping
from typing import Any

from music_search.core.exceptions import ApiError, JsonParseError, NotFoundError
from music_search.core.logger import get_logger
from music_search.models import (
    Album,
    AlbumSummary,
    Playlist,
    PlaylistSummary,
    SearchResultSet,
    SearchSource,
    SearchType,
    Song,
    SongSummary,
)
from music_search.normalize import (
    normalize_artists,
    normalize_id,
    optional_text,
    parse_items,
    pick_alias,
    require,
    to_int,
)


logger = get_logger(__name__)

SOURCE = SearchSource.QQ_MUSIC.value

COVER_URL = "https://y.qq.com/music/photo_new/T002R800x800M000{pmid}.jpg"

# musicu.fcg `search_type` parameter per search kind
SEARCH_TYPE_CODES = {
    SearchType.SONG: 0,
    SearchType.ALBUM: 2,
    SearchType.PLAYLIST: 3,
}


def _ensure_object(response: Any, endpoint: str) -> Mapping[str, Any]:
    if not isinstance(response, Mapping):
        raise JsonParseError(
            f"QQ Music {endpoint} response is not a JSON object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": endpoint}
        )
    return response


def _check_code(container: Mapping[str, Any], endpoint: str, level: str) -> None:
    code = to_int(container.get("code"), default=-1)
    if code != 0:
        raise ApiError(
            f"QQ Music {endpoint} failed with code {code} ({level})",
            details={"source": SOURCE, "stage": "envelope", "endpoint": endpoint, "level": level},
            code=code
        )


def _album_name(album: Any) -> str | None:
    if isinstance(album, Mapping):
        return optional_text(album.get("name"))
    return optional_text(album)


def parse_song_summary(item: Mapping[str, Any]) -> SongSummary:
    """Search results and playlist tracks share this shape."""
    interval = item.get("interval")
    return SongSummary(
        id=normalize_id(require(item, "mid")),
        title=str(pick_alias(item, "title", "name")),
        artists=normalize_artists(item.get("singer")),
        album=_album_name(item.get("album")),
        duration=float(to_int(interval)) if interval is not None else None,
        display_id=normalize_id(require(item, "id")),
    )


def parse_album_track(item: Mapping[str, Any]) -> SongSummary:
    """Album track lists use the legacy songid/songmid spelling."""
    return SongSummary(
        id=normalize_id(require(item, "songmid")),
        title=str(pick_alias(item, "songname", "name")),
        artists=normalize_artists(item.get("singer")),
        duration=float(to_int(item["interval"])) if item.get("interval") is not None else None,
        display_id=normalize_id(require(item, "songid")),
    )


def parse_album_summary(item: Mapping[str, Any]) -> AlbumSummary:
    artists = normalize_artists(pick_alias(item, "singer_list", "singerName", default=None))
    return AlbumSummary(
        id=normalize_id(pick_alias(item, "albumMID", "albumMid")),
        name=str(require(item, "albumName")),
        artist=", ".join(artists),
        track_count=to_int(item.get("song_count")),
        publish_time=optional_text(item.get("publicTime")),
    )


def parse_playlist_summary(item: Mapping[str, Any]) -> PlaylistSummary:
    creator = item.get("creator") or {}
    return PlaylistSummary(
        id=normalize_id(require(item, "dissid")),
        name=str(require(item, "dissname")),
        owner=str(creator.get("name") or "") if isinstance(creator, Mapping) else "",
        track_count=to_int(pick_alias(item, "song_count", "song_Count", default=0)),
        description=optional_text(item.get("introduction")),
        play_count=to_int(item.get("listennum")),
    )


def parse_search_response(response: Any, kind: SearchType) -> SearchResultSet:
    """
    Normalize a DoSearchForQQMusicDesktop response.

    Raises:
        ApiError: If any of the three status codes is non-zero.
        JsonParseError: If the envelope is malformed.
    """
    envelope = _ensure_object(response, "search")
    _check_code(envelope, "search", "response")

    request = envelope.get("req_1")
    if not isinstance(request, Mapping):
        raise JsonParseError(
            "QQ Music search response has no 'req_1' object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "search"}
        )
    _check_code(request, "search", "req_1")

    data = request.get("data")
    if not isinstance(data, Mapping):
        raise JsonParseError(
            "QQ Music search response has no 'req_1.data' object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "search"}
        )
    _check_code(data, "search", "req_1.data")

    body = data.get("body") or {}
    if not isinstance(body, Mapping):
        raise JsonParseError(
            "QQ Music search response 'req_1.data.body' is not an object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "search"}
        )

    def section(name: str) -> Any:
        block = body.get(name)
        return block.get("list") if isinstance(block, Mapping) else None

    if kind is SearchType.SONG:
        songs, warnings = parse_items(section("song"), parse_song_summary, SOURCE, "song", logger)
        return SearchResultSet(
            kind=kind, source=SearchSource.QQ_MUSIC, songs=songs, total=len(songs), warnings=warnings
        )

    if kind is SearchType.ALBUM:
        albums, warnings = parse_items(section("album"), parse_album_summary, SOURCE, "album", logger)
        return SearchResultSet(
            kind=kind, source=SearchSource.QQ_MUSIC, albums=albums, total=len(albums), warnings=warnings
        )

    playlists, warnings = parse_items(
        section("songlist"), parse_playlist_summary, SOURCE, "playlist", logger
    )
    return SearchResultSet(
        kind=kind, source=SearchSource.QQ_MUSIC, playlists=playlists,
        total=len(playlists), warnings=warnings
    )


def parse_song_detail(response: Any, requested_id: str) -> Song:
    """
    Normalize a fcg_play_single_song response (after JSONP unwrapping).

    Raises:
        NotFoundError: If the vendor returned no song for the id.
        JsonParseError: If the song entry is not an object.
    """
    envelope = _ensure_object(response, "song detail")
    code = to_int(envelope.get("code"), default=-1)
    data = envelope.get("data")

    if code != 0 or not isinstance(data, list) or not data:
        raise NotFoundError(
            f"QQ Music song {requested_id} does not exist",
            details={"source": SOURCE, "stage": "envelope", "song_id": requested_id},
            code=code
        )

    item = data[0]
    if not isinstance(item, Mapping):
        raise JsonParseError(
            f"QQ Music song detail entry for {requested_id} is not an object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "song detail", "song_id": requested_id}
        )
    album = item.get("album") or {}
    pmid = optional_text(album.get("pmid")) if isinstance(album, Mapping) else None

    return Song(
        id=normalize_id(require(item, "mid")),
        display_id=normalize_id(require(item, "id")),
        name=str(pick_alias(item, "title", "name")),
        artists=normalize_artists(item.get("singer")),
        album=_album_name(album) or "",
        cover_url=COVER_URL.format(pmid=pmid) if pmid else None,
        duration_ms=to_int(item.get("interval")) * 1000,
    )


def parse_playlist_detail(response: Any, playlist_id: str) -> Playlist:
    envelope = _ensure_object(response, "playlist")
    cdlist = envelope.get("cdlist")

    if to_int(envelope.get("code"), default=-1) != 0 or not isinstance(cdlist, list) or not cdlist:
        raise NotFoundError(
            f"QQ Music playlist {playlist_id} does not exist",
            details={"source": SOURCE, "stage": "envelope", "playlist_id": playlist_id},
            code=to_int(envelope.get("code"), default=-1)
        )

    playlist = cdlist[0]
    if not isinstance(playlist, Mapping):
        raise JsonParseError(
            f"QQ Music playlist {playlist_id} entry is not an object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "playlist", "playlist_id": playlist_id}
        )
    songs, _ = parse_items(playlist.get("songList"), parse_song_summary, SOURCE, "song", logger)

    return Playlist(
        id=playlist_id,
        name=str(playlist.get("dissname") or ""),
        author=str(playlist.get("nickname") or ""),
        description=optional_text(playlist.get("desc")),
        songs=songs,
    )


def parse_album_detail(response: Any, album_id: str) -> Album:
    envelope = _ensure_object(response, "album")
    data = envelope.get("data")

    if to_int(envelope.get("code"), default=-1) != 0 or not isinstance(data, Mapping):
        raise NotFoundError(
            f"QQ Music album {album_id} does not exist",
            details={"source": SOURCE, "stage": "envelope", "album_id": album_id},
            code=to_int(envelope.get("code"), default=-1)
        )

    songs, _ = parse_items(data.get("list"), parse_album_track, SOURCE, "song", logger)

    return Album(
        id=album_id,
        name=str(data.get("name") or ""),
        company=optional_text(data.get("company")),
        description=optional_text(data.get("desc")),
        publish_time=optional_text(data.get("aDate")),
        songs=songs,
    )


def parse_song_link(response: Any, song_mid: str) -> str:
    """
    Join the CDN host and the purl of a GetCdnDispatch + CgiGetVkey response.

    Raises:
        ApiError: If either request failed.
        NotFoundError: If the vendor returned no playable path (for example
                       a paid track without a logged-in cookie).
    """
    envelope = _ensure_object(response, "song link")
    dispatch = envelope.get("req")
    vkey = envelope.get("req_0")

    if not isinstance(dispatch, Mapping) or not isinstance(vkey, Mapping):
        raise JsonParseError(
            "QQ Music song link response lacks 'req' or 'req_0'",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "song link"}
        )
    _check_code(dispatch, "song link", "req")
    _check_code(vkey, "song link", "req_0")

    details = {"source": SOURCE, "stage": "envelope", "song_id": song_mid}
    try:
        host = dispatch["data"]["sip"][0]
        purl = vkey["data"]["midurlinfo"][0]["purl"]
    except (KeyError, IndexError, TypeError) as e:
        raise NotFoundError(f"QQ Music has no playable link for song {song_mid}", details=details) from e

    if not host or not purl:
        raise NotFoundError(f"QQ Music has no playable link for song {song_mid}", details=details)
    return f"{host}{purl}"
