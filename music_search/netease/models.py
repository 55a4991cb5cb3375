"""
NetEase Cloud Music response normalizers.

Turns weapi JSON into the shared models of music_search.models. Known
irregularities handled here:
    - Song and playlist ids arrive as numbers on some endpoints and as
      strings on others
    - `ar` (song artists) is a list of objects; album search results use
      `artists` and sometimes a single `artist` object
    - Search results omit `result` entirely when nothing matched
    - Lyric blocks (`lrc`, `tlyric`, `romalrc`) may be missing or hold an
      empty `lyric` string

Envelope codes:
    200       success
    50000005  search requires a logged-in cookie
    20001     playlist requires a logged-in cookie
    404/400   unknown id
"""

from collections.abc import Mapping
from typing import Any

from music_search.core.exceptions import ApiError, JsonParseError, LyricNotFoundError, NotFoundError
from music_search.core.logger import get_logger
from music_search.models import (
    Album,
    AlbumSummary,
    LyricSet,
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

SOURCE = SearchSource.NET_EASE_MUSIC.value

SUCCESS_CODE = 200
LOGIN_REQUIRED_CODES = (50000005, 20001, 301)
NOT_FOUND_CODES = (400, 404, -460)

# weapi search `type` parameter per search kind
SEARCH_TYPE_CODES = {
    SearchType.SONG: "1",
    SearchType.ALBUM: "10",
    SearchType.PLAYLIST: "1000",
}


def check_envelope(response: Any, endpoint: str) -> Mapping[str, Any]:
    """
    Validate the top-level response object and its status code.

    Raises:
        JsonParseError: If the response is not an object.
        ApiError: If the vendor reported a failure (needs_login set for
                  the login-required codes).
        NotFoundError: If the vendor reported an unknown id.
    """
    if not isinstance(response, Mapping):
        raise JsonParseError(
            "NetEase response is not a JSON object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": endpoint}
        )

    code = to_int(response.get("code"), default=-1)
    if code == SUCCESS_CODE:
        return response

    details = {"source": SOURCE, "stage": "envelope", "endpoint": endpoint, "code": code}
    message = optional_text(response.get("message") or response.get("msg"))

    if code in LOGIN_REQUIRED_CODES:
        raise ApiError(
            f"NetEase {endpoint} requires login",
            details=details,
            code=code,
            needs_login=True
        )
    if code in NOT_FOUND_CODES:
        raise NotFoundError(f"NetEase {endpoint}: not found", details=details, code=code)

    raise ApiError(
        f"NetEase {endpoint} failed with code {code}" + (f": {message}" if message else ""),
        details=details,
        code=code
    )


def parse_song_summary(item: Mapping[str, Any]) -> SongSummary:
    song_id = normalize_id(require(item, "id"))
    album = item.get("al") or item.get("album") or {}
    duration_ms = pick_alias(item, "dt", "duration", default=None)

    return SongSummary(
        id=song_id,
        title=str(require(item, "name")),
        artists=normalize_artists(pick_alias(item, "ar", "artists", default=None)),
        album=optional_text(album.get("name")) if isinstance(album, Mapping) else None,
        duration=to_int(duration_ms) / 1000 if duration_ms is not None else None,
        display_id=song_id,
    )


def parse_album_summary(item: Mapping[str, Any]) -> AlbumSummary:
    artists = normalize_artists(pick_alias(item, "artists", "artist", default=None))
    publish_time = item.get("publishTime")

    return AlbumSummary(
        id=normalize_id(require(item, "id")),
        name=str(require(item, "name")),
        artist=", ".join(artists),
        track_count=to_int(item.get("size")),
        publish_time=str(publish_time) if publish_time is not None else None,
    )


def parse_playlist_summary(item: Mapping[str, Any]) -> PlaylistSummary:
    creator = item.get("creator") or {}

    return PlaylistSummary(
        id=normalize_id(require(item, "id")),
        name=str(require(item, "name")),
        owner=str(creator.get("nickname") or "") if isinstance(creator, Mapping) else "",
        track_count=to_int(pick_alias(item, "trackCount", "track_count", default=0)),
        description=optional_text(item.get("description")),
        play_count=to_int(pick_alias(item, "playCount", "play_count", default=0)),
    )


def parse_search_response(response: Any, kind: SearchType) -> SearchResultSet:
    """
    Normalize a cloudsearch response for one search kind.

    Malformed items are dropped and reported in the result's warnings.
    """
    envelope = check_envelope(response, "search")
    result = envelope.get("result") or {}
    if not isinstance(result, Mapping):
        raise JsonParseError(
            "NetEase search 'result' is not an object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "search"}
        )

    if kind is SearchType.SONG:
        songs, warnings = parse_items(result.get("songs"), parse_song_summary, SOURCE, "song", logger)
        return SearchResultSet(
            kind=kind, source=SearchSource.NET_EASE_MUSIC, songs=songs,
            total=to_int(result.get("songCount"), default=len(songs)), warnings=warnings
        )

    if kind is SearchType.ALBUM:
        albums, warnings = parse_items(result.get("albums"), parse_album_summary, SOURCE, "album", logger)
        return SearchResultSet(
            kind=kind, source=SearchSource.NET_EASE_MUSIC, albums=albums,
            total=to_int(result.get("albumCount"), default=len(albums)), warnings=warnings
        )

    playlists, warnings = parse_items(
        result.get("playlists"), parse_playlist_summary, SOURCE, "playlist", logger
    )
    return SearchResultSet(
        kind=kind, source=SearchSource.NET_EASE_MUSIC, playlists=playlists,
        total=to_int(result.get("playlistCount"), default=len(playlists)), warnings=warnings
    )


def parse_song_detail(item: Mapping[str, Any]) -> Song:
    song_id = normalize_id(require(item, "id"))
    album = item.get("al") or {}
    if not isinstance(album, Mapping):
        album = {}

    return Song(
        id=song_id,
        display_id=song_id,
        name=str(require(item, "name")),
        artists=normalize_artists(item.get("ar")),
        album=str(album.get("name") or ""),
        cover_url=optional_text(album.get("picUrl")),
        duration_ms=to_int(item.get("dt")),
    )


def parse_song_details(response: Any) -> dict[str, Song]:
    """Normalize a v3/song/detail response into {song id: Song}."""
    envelope = check_envelope(response, "song detail")
    songs, _ = parse_items(envelope.get("songs"), parse_song_detail, SOURCE, "song", logger)
    return {song.id: song for song in songs}


def parse_playlist_detail(response: Any, playlist_id: str) -> tuple[Playlist, list[str]]:
    """
    Normalize a v6/playlist/detail response.

    The endpoint only returns track ids for long playlists, so the track
    list is returned separately for a follow-up song detail request.

    Returns:
        (playlist without songs, ordered track ids)
    """
    envelope = check_envelope(response, "playlist")
    playlist = envelope.get("playlist")
    if not isinstance(playlist, Mapping):
        raise NotFoundError(
            f"NetEase playlist {playlist_id} does not exist",
            details={"source": SOURCE, "stage": "envelope", "playlist_id": playlist_id}
        )

    track_ids, _ = parse_items(
        playlist.get("trackIds"),
        lambda track: normalize_id(require(track, "id")),
        SOURCE,
        "track id",
        logger
    )
    creator = playlist.get("creator") or {}

    return (
        Playlist(
            id=playlist_id,
            name=str(playlist.get("name") or ""),
            author=str(creator.get("nickname") or "") if isinstance(creator, Mapping) else "",
            description=optional_text(playlist.get("description")),
        ),
        list(track_ids),
    )


def parse_album_detail(response: Any, album_id: str) -> Album:
    """Normalize a v1/album response, including its track list."""
    envelope = check_envelope(response, "album")
    album = envelope.get("album")
    if not isinstance(album, Mapping):
        raise NotFoundError(
            f"NetEase album {album_id} does not exist",
            details={"source": SOURCE, "stage": "envelope", "album_id": album_id}
        )

    songs, _ = parse_items(envelope.get("songs"), parse_song_summary, SOURCE, "song", logger)
    publish_time = album.get("publishTime")

    return Album(
        id=album_id,
        name=str(album.get("name") or ""),
        company=optional_text(album.get("company")),
        description=optional_text(album.get("description")),
        publish_time=str(publish_time) if publish_time is not None else None,
        songs=songs,
    )


def _lyric_block(response: Mapping[str, Any], key: str) -> str | None:
    block = response.get(key)
    if not isinstance(block, Mapping):
        return None
    return optional_text(block.get("lyric"))


def parse_lyric(response: Any, song_id: str) -> LyricSet:
    """
    Normalize a song/lyric response.

    Raises:
        LyricNotFoundError: If the vendor reports failure or returns no
                            lyric text at all (instrumental or uncollected).
    """
    if not isinstance(response, Mapping):
        raise JsonParseError(
            "NetEase lyric response is not a JSON object",
            details={"source": SOURCE, "stage": "envelope", "endpoint": "lyric"}
        )

    code = to_int(response.get("code"), default=-1)
    if code != SUCCESS_CODE:
        raise LyricNotFoundError(
            f"NetEase has no lyric for song {song_id}",
            details={"source": SOURCE, "song_id": song_id, "code": code}
        )

    lyrics = LyricSet(
        source=SearchSource.NET_EASE_MUSIC,
        lyric=_lyric_block(response, "lrc"),
        translation=_lyric_block(response, "tlyric"),
        transliteration=_lyric_block(response, "romalrc"),
    )
    if lyrics.is_empty:
        raise LyricNotFoundError(
            f"NetEase has no lyric for song {song_id}",
            details={"source": SOURCE, "song_id": song_id, "code": code}
        )
    return lyrics


def parse_song_urls(response: Any) -> dict[str, str | None]:
    """Normalize a song/enhance/player/url response into {song id: url}."""
    envelope = check_envelope(response, "song url")

    def parse_datum(datum: Mapping[str, Any]) -> tuple[str, str | None]:
        return normalize_id(require(datum, "id")), optional_text(datum.get("url"))

    entries, _ = parse_items(envelope.get("data"), parse_datum, SOURCE, "song url", logger)
    return dict(entries)
