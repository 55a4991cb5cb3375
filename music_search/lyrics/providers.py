"""
Lyrics providers and the fallback aggregator.

A provider answers two questions for a (title, artist) query: which songs
might match (search, with a confidence score) and what the lyric of one of
them is (fetch). The aggregator asks its providers in registration order
and returns the first lyric found.

Usage:
    aggregator = LyricsAggregator()
    aggregator.register(NetEaseLyricsProvider())
    aggregator.register(QQMusicLyricsProvider())

    payload = await aggregator.fetch_lyrics(LyricsQuery("晴天", artist="周杰伦"))
    if payload:
        print(payload.format, payload.content)
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

import aiohttp

from music_search.api import create_api
from music_search.base import MusicApi
from music_search.core.exceptions import LyricNotFoundError, MusicSearchError
from music_search.core.logger import get_logger
from music_search.lyrics.format import detect_format
from music_search.models import LyricMetadata, LyricPayload, SearchQuery, SearchSource, SearchType


logger = get_logger(__name__)

BASE_CONFIDENCE = 0.5
TITLE_MATCH_BONUS = 0.3
ARTIST_MATCH_BONUS = 0.2
FETCH_THRESHOLD = 0.5

TRANSLATION_NOTE = "Has translated lyrics available"


@dataclass(frozen=True)
class LyricsQuery:
    """What the caller knows about the song."""
    title: str
    artist: str | None = None
    album: str | None = None
    duration: float | None = None

    @property
    def keyword(self) -> str:
        """Search keyword: title, followed by the artist when known."""
        if self.artist:
            return f"{self.title} {self.artist}"
        return self.title


@dataclass(frozen=True)
class LyricsSearchResult:
    """
    One candidate song.

    Attributes:
        id: Identifier to pass to fetch().
        title: Song title.
        artist: Artist names joined with ", ".
        album: Album name, if known.
        duration: Length in seconds, if known.
        confidence: Match score in [0, 1].
    """
    id: str
    title: str
    artist: str
    album: str | None = None
    duration: float | None = None
    confidence: float = BASE_CONFIDENCE


def score_match(query: LyricsQuery, title: str, artists: tuple[str, ...]) -> float:
    """
    Confidence that a candidate matches the query.

    Starts at 0.5, adds 0.3 when the candidate title contains the query
    title and 0.2 when any candidate artist contains the query artist.
    Comparisons ignore case. The result never exceeds 1.0.
    """
    confidence = BASE_CONFIDENCE
    if query.title.lower() in title.lower():
        confidence += TITLE_MATCH_BONUS
    if query.artist:
        wanted = query.artist.lower()
        if any(wanted in artist.lower() for artist in artists):
            confidence += ARTIST_MATCH_BONUS
    return min(confidence, 1.0)


class LyricsProvider(ABC):
    """Source of lyrics for the aggregator."""

    name: str = ""
    supports_synced: bool = False
    requires_auth: bool = False

    @abstractmethod
    async def search(self, query: LyricsQuery) -> list[LyricsSearchResult]:
        """Candidate songs for the query."""

    @abstractmethod
    async def fetch(self, result_id: str) -> LyricPayload:
        """Lyric of one candidate returned by search()."""

    async def search_and_fetch(self, query: LyricsQuery) -> LyricPayload | None:
        """
        Fetch the lyric of the best candidate.

        Returns None when there is no candidate or the best one scores 0.5
        or less.
        """
        results = await self.search(query)
        if not results:
            return None

        best = max(results, key=lambda result: result.confidence)
        if best.confidence <= FETCH_THRESHOLD:
            logger.debug(f"Skipping {self.name}: best confidence {best.confidence:.2f} too low")
            return None

        logger.debug(f"Fetching lyrics from {self.name} with confidence {best.confidence:.2f}")
        return await self.fetch(best.id)

    async def health_check(self) -> bool:
        """Run a throwaway search; errors propagate."""
        await self.search(LyricsQuery("test"))
        return True

    async def close(self) -> None:
        pass


class MusicSearchLyricsProvider(LyricsProvider):
    """
    Lyrics provider backed by a MusicApi.

    Candidate ids are song display ids, which both vendors accept for
    lyric lookup.

    Args:
        api: Retrieval client of one vendor.
        url_template: Song page URL with an `{id}` placeholder.
        copyright: Copyright notice attached to the payload metadata.
    """

    supports_synced = True

    def __init__(self, api: MusicApi, url_template: str | None = None, copyright: str | None = None) -> None:
        self.api = api
        self.name = api.source.value
        self.url_template = url_template
        self.copyright = copyright

    async def search(self, query: LyricsQuery) -> list[LyricsSearchResult]:
        logger.debug(f"{self.name} lyric search: {query.keyword}")
        result_set = await self.api.search(SearchQuery(query.keyword, SearchType.SONG))

        return [
            LyricsSearchResult(
                id=song.display_id or song.id,
                title=song.title,
                artist=song.artist,
                album=song.album,
                duration=song.duration,
                confidence=score_match(query, song.title, song.artists),
            )
            for song in result_set.songs
        ]

    async def fetch(self, result_id: str) -> LyricPayload:
        """
        Raises:
            LyricNotFoundError: If the vendor has no lyric for the song.
        """
        lyrics = await self.api.get_lyric(result_id, result_id, verbatim=False)
        content = lyrics.best_content()
        if not content:
            raise LyricNotFoundError(
                f"{self.api.source.display_name} has no lyric for song {result_id}",
                details={"source": self.name, "song_id": result_id}
            )

        has_translation = bool(lyrics.translation)
        return LyricPayload(
            content=content,
            format=detect_format(content),
            source=self.name,
            language="zh" if has_translation else None,
            url=self.url_template.format(id=result_id) if self.url_template else None,
            metadata=LyricMetadata(
                copyright=self.copyright,
                notes=TRANSLATION_NOTE if has_translation else None,
            ),
        )

    async def close(self) -> None:
        await self.api.close()


class NetEaseLyricsProvider(MusicSearchLyricsProvider):
    """NetEase Cloud Music lyrics. Works without a cookie."""

    def __init__(
        self,
        cookie: str | None = None,
        session: aiohttp.ClientSession | None = None,
        api: MusicApi | None = None
    ) -> None:
        super().__init__(
            api or create_api(SearchSource.NET_EASE_MUSIC, cookie=cookie, session=session),
            url_template="https://music.163.com/#/song?id={id}",
            copyright="NetEase Cloud Music",
        )


class QQMusicLyricsProvider(MusicSearchLyricsProvider):
    """QQ Music lyrics, reduced to line-level LRC."""

    def __init__(
        self,
        cookie: str | None = None,
        session: aiohttp.ClientSession | None = None,
        api: MusicApi | None = None
    ) -> None:
        super().__init__(
            api or create_api(SearchSource.QQ_MUSIC, cookie=cookie, session=session),
            url_template="https://y.qq.com/n/ryqq/songDetail/{id}",
            copyright="QQ Music",
        )


PROVIDER_CLASSES: dict[str, type[MusicSearchLyricsProvider]] = {
    SearchSource.NET_EASE_MUSIC.value: NetEaseLyricsProvider,
    SearchSource.QQ_MUSIC.value: QQMusicLyricsProvider,
}


class LyricsAggregator:
    """
    Ordered collection of providers.

    fetch_lyrics() tries providers one after another and stops at the first
    lyric. A failing provider is logged and skipped; nothing is retried.
    """

    def __init__(self, providers: list[LyricsProvider] | None = None) -> None:
        self.providers: list[LyricsProvider] = list(providers or [])

    def register(self, provider: LyricsProvider) -> None:
        self.providers.append(provider)

    def provider_names(self) -> list[str]:
        return [provider.name for provider in self.providers]

    async def fetch_lyrics(self, query: LyricsQuery) -> LyricPayload | None:
        for provider in self.providers:
            logger.debug(f"Trying provider: {provider.name}")
            try:
                payload = await provider.search_and_fetch(query)
            except LyricNotFoundError as e:
                logger.info(f"No lyrics from {provider.name}: {e.message}")
                continue
            except MusicSearchError as e:
                logger.warning(f"Provider {provider.name} failed: {e.message}")
                logger.debug(f"Details: {e.details}")
                continue

            if payload is not None:
                logger.info(f"Found lyrics from provider: {provider.name}")
                return payload
            logger.debug(f"No lyrics found from provider: {provider.name}")

        logger.warning(f"No lyrics found from any provider for '{query.keyword}'")
        return None

    async def fetch_from_provider(self, provider_name: str, query: LyricsQuery) -> LyricPayload | None:
        """
        Raises:
            KeyError: If no provider with that name is registered.
        """
        for provider in self.providers:
            if provider.name == provider_name:
                return await provider.search_and_fetch(query)
        raise KeyError(f"Provider '{provider_name}' not found")

    async def search_all(
        self,
        query: LyricsQuery
    ) -> list[tuple[str, list[LyricsSearchResult] | MusicSearchError]]:
        """Search every provider concurrently; failures are returned in place of results."""
        outcomes = await asyncio.gather(
            *(provider.search(query) for provider in self.providers),
            return_exceptions=True
        )

        results = []
        for provider, outcome in zip(self.providers, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, MusicSearchError):
                raise outcome
            results.append((provider.name, outcome))
        return results

    async def health_check_all(self) -> list[tuple[str, bool]]:
        async def check(provider: LyricsProvider) -> tuple[str, bool]:
            try:
                return provider.name, await provider.health_check()
            except MusicSearchError as e:
                logger.warning(f"Health check of {provider.name} failed: {e.message}")
                return provider.name, False

        return list(await asyncio.gather(*(check(provider) for provider in self.providers)))

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()
