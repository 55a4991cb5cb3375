"""
Abstract retrieval interface shared by the vendor implementations.

A MusicApi instance owns (or borrows) one aiohttp.ClientSession. Sessions
are created lazily on the first request; an injected session is never
closed by the API, the caller keeps ownership of it.

Usage:
    async with create_api(SearchSource.QQ_MUSIC) as api:
        result = await api.search(SearchQuery("晴天"))
"""

import json
from abc import ABC, abstractmethod
from typing import Any

import aiohttp

from music_search.core.config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from music_search.core.exceptions import JsonParseError, NetworkError
from music_search.core.logger import get_logger
from music_search.models import Album, LyricSet, Playlist, SearchQuery, SearchResultSet, SearchSource, Song


logger = get_logger(__name__)


class MusicApi(ABC):
    """
    Vendor-agnostic music retrieval client.

    Subclasses set `source` and implement the six retrieval operations.
    Every operation raises a MusicSearchError subclass on failure; there
    are no retries and no caches at this level.

    Args:
        cookie: Vendor cookie header value, attached verbatim when given.
        session: Externally managed aiohttp session.
        timeout: Total request timeout in seconds for a session created here.
        user_agent: User-Agent header sent with every request.
    """

    source: SearchSource
    referer: str = ""

    def __init__(
        self,
        cookie: str | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT
    ) -> None:
        self.cookie = cookie
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Return the session, creating one on first use."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this instance created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "MusicApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.referer:
            headers["Referer"] = self.referer
        if self.cookie:
            headers["Cookie"] = self.cookie
        headers.update(extra)
        return headers

    async def _request_text(
        self,
        url: str,
        data: Any = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None
    ) -> str:
        """
        POST to a vendor endpoint and return the response body as text.

        Raises:
            NetworkError: On transport failure, timeout or an HTTP error status.
        """
        session = await self._get_session()
        logger.debug(f"POST {url}")

        try:
            async with session.post(
                url,
                data=data,
                json=json_body,
                headers=headers or self._headers()
            ) as response:
                body = await response.text(encoding="utf-8", errors="replace")
                if response.status >= 400:
                    raise NetworkError(
                        f"{self.source.display_name} returned HTTP {response.status}",
                        details={"source": self.source.value, "stage": "http", "url": url},
                        status=response.status
                    )
                return body
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Request to {self.source.display_name} failed: {e}",
                details={
                    "source": self.source.value,
                    "stage": "http",
                    "url": url,
                    "original_error": str(e)
                }
            ) from e
        except TimeoutError as e:
            raise NetworkError(
                f"Request to {self.source.display_name} timed out",
                details={"source": self.source.value, "stage": "http", "url": url}
            ) from e

    def _load_json(self, text: str, url: str) -> Any:
        """
        Decode a JSON body.

        Raises:
            JsonParseError: If the body is not valid JSON.
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise JsonParseError(
                f"Invalid JSON from {self.source.display_name}: {e}",
                details={
                    "source": self.source.value,
                    "stage": "envelope",
                    "url": url,
                    "original_error": str(e)
                }
            ) from e

    @abstractmethod
    async def search(self, query: SearchQuery) -> SearchResultSet:
        """Search songs, albums or playlists by keyword."""

    @abstractmethod
    async def get_playlist(self, playlist_id: str) -> Playlist:
        """Playlist details with its tracks."""

    @abstractmethod
    async def get_album(self, album_id: str) -> Album:
        """Album details with its tracks."""

    @abstractmethod
    async def get_songs(self, song_ids: list[str]) -> dict[str, Song]:
        """Song details keyed by song id."""

    @abstractmethod
    async def get_song_link(self, song_id: str) -> str:
        """Playable URL of a song."""

    @abstractmethod
    async def get_lyric(self, song_id: str, display_id: str, verbatim: bool = False) -> LyricSet:
        """
        Lyric texts of a song.

        Both vendors key lyrics by `display_id`: the numeric id on QQ Music,
        the song id itself on NetEase. `song_id` is used only when
        `display_id` is empty.

        The returned LyricSet holds raw text and is not classified; lyric
        format detection is left to lyrics.format.detect_format, which the
        lyrics providers apply.

        Args:
            song_id: Id used for details and links (the QQ Music mid).
            display_id: Id used for lyrics.
            verbatim: QQ Music only. Keep word-level timing instead of
                      reducing the lyric to line-level LRC. NetEase returns
                      its lyrics unchanged either way.

        Raises:
            LyricNotFoundError: If the vendor has no lyric for the song.
        """
