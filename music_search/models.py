"""
Vendor-agnostic data models for music-search.

This module defines the immutable dataclasses every vendor implementation
returns. The response normalizers (music_search.netease.models and
music_search.qqmusic.models) are the only code that knows about vendor JSON;
everything downstream sees these types.

Design Decisions:
    - All dataclasses are frozen (immutable) and created fresh per call
    - Identifiers are always text, even when the vendor sent a JSON number
    - Multi-valued fields are tuples to keep instances hashable
    - Durations in summaries are seconds; Song.duration_ms mirrors the
      millisecond value vendors report for full song details

Usage:
    from music_search.models import SearchQuery, SearchType

    query = SearchQuery("Norwegian Wood", SearchType.SONG)
    result = await api.search(query)
    for song in result.songs:
        print(song.id, song.title, ", ".join(song.artists))
"""

from dataclasses import dataclass, field
from enum import Enum

from music_search.lyrics.format import LyricFormat


class SearchSource(Enum):
    """The two supported vendors. The value is the provider name used in logs and payloads."""

    NET_EASE_MUSIC = "netease"
    QQ_MUSIC = "qqmusic"

    @property
    def display_name(self) -> str:
        return {
            SearchSource.NET_EASE_MUSIC: "NetEase Cloud Music",
            SearchSource.QQ_MUSIC: "QQ Music",
        }[self]

    @classmethod
    def from_string(cls, value: str) -> "SearchSource":
        """
        Resolve a vendor name such as "netease", "163", "qq" or "qqmusic".

        Raises:
            ValueError: If the name matches neither vendor.
        """
        normalized = value.strip().lower().replace("_", "").replace("-", "")
        if normalized in ("netease", "neteasemusic", "163", "ncm"):
            return cls.NET_EASE_MUSIC
        if normalized in ("qq", "qqmusic"):
            return cls.QQ_MUSIC
        raise ValueError(f"Unknown music source: {value}")


class SearchType(Enum):
    """Kind of entity a search targets."""

    SONG = "song"
    ALBUM = "album"
    PLAYLIST = "playlist"

    @classmethod
    def from_string(cls, value: str) -> "SearchType":
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ValueError(f"Unknown search type: {value}") from e


@dataclass(frozen=True)
class SearchQuery:
    """
    A single search request.

    Attributes:
        keyword: Free text sent to the vendor search endpoint.
        kind: Which entity list to search.

    Raises:
        ValueError: If the keyword is blank.
    """
    keyword: str
    kind: SearchType = SearchType.SONG

    def __post_init__(self) -> None:
        if not self.keyword or not self.keyword.strip():
            raise ValueError("Search keyword must not be empty")


@dataclass(frozen=True)
class SongSummary:
    """
    One song in a search result or in a playlist/album track list.

    Attributes:
        id: Vendor-scoped identifier, always text.
            NetEase: numeric song id. QQ Music: song mid (used for links).
        title: Song title as shown by the vendor.
        artists: Ordered artist names. Empty when the vendor reported no
                 artist; `artist` is then "".
        album: Album name, if the vendor reported one.
        duration: Length in seconds, if known.
        display_id: Secondary identifier. NetEase: same as id.
                    QQ Music: numeric song id (used for lyrics).
    """
    id: str
    title: str
    artists: tuple[str, ...] = ()
    album: str | None = None
    duration: float | None = None
    display_id: str = ""

    @property
    def artist(self) -> str:
        """Artists joined for display."""
        return ", ".join(self.artists)


@dataclass(frozen=True)
class AlbumSummary:
    """
    One album in a search result.

    Attributes:
        id: Vendor-scoped identifier, always text.
        name: Album title.
        artist: Primary artist (or joined artist names).
        track_count: Number of tracks reported by the vendor.
        duration: Total length in seconds, when the vendor reports it.
        publish_time: Release date text or epoch milliseconds as text.
        tracks: Nested track list, when the endpoint includes one.
    """
    id: str
    name: str
    artist: str = ""
    track_count: int = 0
    duration: float | None = None
    publish_time: str | None = None
    tracks: tuple[SongSummary, ...] = ()


@dataclass(frozen=True)
class PlaylistSummary:
    """
    One playlist in a search result.

    Attributes:
        id: Vendor-scoped identifier, always text.
        name: Playlist title.
        owner: Creator nickname.
        track_count: Number of tracks.
        duration: Total length in seconds, when known.
        description: Free text description.
        play_count: Number of plays reported by the vendor.
        tracks: Nested track list, when the endpoint includes one.
    """
    id: str
    name: str
    owner: str = ""
    track_count: int = 0
    duration: float | None = None
    description: str | None = None
    play_count: int | None = None
    tracks: tuple[SongSummary, ...] = ()


@dataclass(frozen=True)
class SearchResultSet:
    """
    Normalized search response.

    Lists keep the vendor's relevance order. Items the normalizer could not
    parse are dropped and described in `warnings`; a single bad item never
    aborts the search.

    Attributes:
        kind: Search kind that produced this set.
        source: Vendor that answered.
        songs / albums / playlists: One list per kind; only the list for
                                    `kind` is populated.
        total: Total match count reported by the vendor.
        warnings: One message per dropped item.
    """
    kind: SearchType
    source: SearchSource
    songs: tuple[SongSummary, ...] = ()
    albums: tuple[AlbumSummary, ...] = ()
    playlists: tuple[PlaylistSummary, ...] = ()
    total: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def items(self) -> tuple:
        """The populated list for this set's kind."""
        if self.kind is SearchType.SONG:
            return self.songs
        if self.kind is SearchType.ALBUM:
            return self.albums
        return self.playlists

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Song:
    """
    Full song details returned by get_songs().

    Attributes:
        id: Vendor identifier, same convention as SongSummary.id
            (QQ Music: mid; NetEase: numeric id as text).
        display_id: Same convention as SongSummary.display_id
                    (QQ Music: numeric id; NetEase: same as id).
        name: Song title.
        artists: Ordered artist names; empty when unknown.
        album: Album name.
        cover_url: Album cover image URL.
        duration_ms: Length in milliseconds.
    """
    id: str
    display_id: str
    name: str
    artists: tuple[str, ...] = ()
    album: str = ""
    cover_url: str | None = None
    duration_ms: int = 0

    def to_summary(self) -> SongSummary:
        """Track-list entry for this song."""
        return SongSummary(
            id=self.id,
            title=self.name,
            artists=self.artists,
            album=self.album or None,
            duration=self.duration_ms / 1000 if self.duration_ms else None,
            display_id=self.display_id,
        )


@dataclass(frozen=True)
class Playlist:
    """Playlist details with its track list."""
    id: str
    name: str
    author: str = ""
    description: str | None = None
    songs: tuple[SongSummary, ...] = ()


@dataclass(frozen=True)
class Album:
    """Album details with its track list."""
    id: str
    name: str
    company: str | None = None
    description: str | None = None
    publish_time: str | None = None
    songs: tuple[SongSummary, ...] = ()


@dataclass(frozen=True)
class LyricSet:
    """
    Raw lyric texts as returned by a vendor.

    Attributes:
        source: Vendor that produced the lyrics.
        lyric: Original lyric text.
        translation: Translated lyric text.
        transliteration: Romanized lyric text.
    """
    source: SearchSource
    lyric: str | None = None
    translation: str | None = None
    transliteration: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.lyric or self.translation or self.transliteration)

    def best_content(self) -> str | None:
        """Original lyric, then translation, then transliteration."""
        return self.lyric or self.translation or self.transliteration


@dataclass(frozen=True)
class LyricMetadata:
    """Optional provenance information attached to a lyric payload."""
    contributor: str | None = None
    copyright: str | None = None
    updated_at: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class LyricPayload:
    """
    A lyric ready for downstream storage.

    Attributes:
        content: Lyric text in one of the three encodings.
        format: Classification of `content`.
        language: Language code, if it could be inferred.
        source: Provider name ("netease" or "qqmusic").
        url: Page of the song at the vendor.
        metadata: Provenance information.
    """
    content: str
    format: LyricFormat
    source: str
    language: str | None = None
    url: str | None = None
    metadata: LyricMetadata = field(default_factory=LyricMetadata)
