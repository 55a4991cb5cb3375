"""Test lyrics providers and the aggregator"""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from music_search.core.exceptions import LyricNotFoundError, NetworkError
from music_search.lyrics.format import LyricFormat
from music_search.lyrics.providers import (
    PROVIDER_CLASSES,
    LyricsAggregator,
    LyricsProvider,
    LyricsQuery,
    LyricsSearchResult,
    NetEaseLyricsProvider,
    QQMusicLyricsProvider,
    score_match,
)
from music_search.models import LyricPayload, LyricSet, SearchResultSet, SearchSource, SearchType, SongSummary


def mock_api(source=SearchSource.NET_EASE_MUSIC, songs=(), lyrics=None):
    api = Mock()
    api.source = source
    api.search = AsyncMock(return_value=SearchResultSet(kind=SearchType.SONG, source=source, songs=tuple(songs)))
    api.get_lyric = AsyncMock(return_value=lyrics)
    api.close = AsyncMock()
    return api


def stub_provider(name, payload=None, error=None):
    provider = Mock(spec=LyricsProvider)
    provider.name = name
    provider.search_and_fetch = AsyncMock(return_value=payload, side_effect=error)
    provider.search = AsyncMock(return_value=[], side_effect=error)
    provider.health_check = AsyncMock(return_value=True, side_effect=error)
    provider.close = AsyncMock()
    return provider


SUNNY = SongSummary(
    id="0039MnYb0qxYhV", title="晴天", artists=("周杰伦",), album="叶惠美", duration=269.0, display_id="97773"
)


class TestScoreMatch:
    """Test candidate scoring"""

    def test_title_and_artist(self):
        """Title and artist matches add to the base score"""
        query = LyricsQuery("晴天", artist="周杰伦")
        assert score_match(query, "晴天", ("周杰伦",)) == pytest.approx(1.0)
        assert score_match(query, "晴天 (Live)", ("Other",)) == pytest.approx(0.8)
        assert score_match(query, "Rainy", ("Other",)) == pytest.approx(0.5)

    def test_case_insensitive(self):
        """Comparisons ignore case"""
        query = LyricsQuery("norwegian wood", artist="beatles")
        assert score_match(query, "Norwegian Wood", ("The Beatles",)) == pytest.approx(1.0)

    def test_keyword(self):
        """The search keyword includes the artist when known"""
        assert LyricsQuery("晴天", artist="周杰伦").keyword == "晴天 周杰伦"
        assert LyricsQuery("晴天").keyword == "晴天"


class TestMusicSearchLyricsProvider:
    """Test providers backed by a MusicApi"""

    @pytest.mark.asyncio
    async def test_search_uses_display_id(self):
        """Candidates carry the display id used for lyric lookup"""
        provider = QQMusicLyricsProvider(api=mock_api(SearchSource.QQ_MUSIC, songs=[SUNNY]))
        results = await provider.search(LyricsQuery("晴天", artist="周杰伦"))

        assert results == [LyricsSearchResult(
            id="97773", title="晴天", artist="周杰伦", album="叶惠美", duration=269.0, confidence=1.0
        )]
        assert provider.name == "qqmusic"

    @pytest.mark.asyncio
    async def test_fetch_payload(self):
        """Payloads carry format, URL, copyright and translation note"""
        lyrics = LyricSet(source=SearchSource.NET_EASE_MUSIC, lyric="[00:01.00]line", translation="[00:01.00]译")
        api = mock_api(lyrics=lyrics)
        provider = NetEaseLyricsProvider(api=api)

        payload = await provider.fetch("1357375695")

        api.get_lyric.assert_awaited_once_with("1357375695", "1357375695", verbatim=False)
        assert payload.content == "[00:01.00]line"
        assert payload.format is LyricFormat.LRC
        assert payload.source == "netease"
        assert payload.language == "zh"
        assert payload.url == "https://music.163.com/#/song?id=1357375695"
        assert payload.metadata.copyright == "NetEase Cloud Music"
        assert payload.metadata.notes

    @pytest.mark.asyncio
    async def test_fetch_empty(self):
        """An empty lyric set raises LyricNotFoundError"""
        provider = NetEaseLyricsProvider(api=mock_api(lyrics=LyricSet(source=SearchSource.NET_EASE_MUSIC)))
        with pytest.raises(LyricNotFoundError):
            await provider.fetch("1")

    @pytest.mark.asyncio
    async def test_low_confidence_is_skipped(self):
        """Candidates scoring 0.5 or less are not fetched"""
        api = mock_api(songs=[SUNNY])
        provider = NetEaseLyricsProvider(api=api)

        assert await provider.search_and_fetch(LyricsQuery("Completely different")) is None
        api.get_lyric.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        """No search results means no lyric"""
        provider = NetEaseLyricsProvider(api=mock_api())
        assert await provider.search_and_fetch(LyricsQuery("晴天")) is None

    @pytest.mark.asyncio
    async def test_close_closes_api(self):
        """Closing a provider closes its client"""
        api = mock_api()
        await NetEaseLyricsProvider(api=api).close()
        api.close.assert_awaited_once()

    def test_registry(self):
        """Providers are registered under the vendor names"""
        assert PROVIDER_CLASSES == {"netease": NetEaseLyricsProvider, "qqmusic": QQMusicLyricsProvider}


class TestLyricsAggregator:
    """Test provider fallback"""

    @pytest.mark.asyncio
    async def test_first_hit_wins(self):
        """Providers are tried in order and the first lyric is returned"""
        payload = LyricPayload(content="line", format=LyricFormat.PLAIN, source="qqmusic")
        empty = stub_provider("netease")
        found = stub_provider("qqmusic", payload=payload)
        unused = stub_provider("other")

        aggregator = LyricsAggregator([empty, found, unused])
        assert await aggregator.fetch_lyrics(LyricsQuery("晴天")) is payload
        unused.search_and_fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_failures_are_skipped(self, caplog):
        """Provider errors are logged and the next provider is asked"""
        payload = LyricPayload(content="line", format=LyricFormat.PLAIN, source="qqmusic")
        broken = stub_provider("netease", error=NetworkError("timeout"))
        missing = stub_provider("other", error=LyricNotFoundError("none"))
        found = stub_provider("qqmusic", payload=payload)

        aggregator = LyricsAggregator([broken, missing, found])
        with caplog.at_level(logging.INFO):
            assert await aggregator.fetch_lyrics(LyricsQuery("晴天")) is payload
        assert "Provider netease failed" in caplog.text

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        """None is returned when every provider comes up empty"""
        aggregator = LyricsAggregator([stub_provider("netease")])
        assert await aggregator.fetch_lyrics(LyricsQuery("晴天")) is None

    @pytest.mark.asyncio
    async def test_fetch_from_provider(self):
        """A single provider can be asked by name"""
        aggregator = LyricsAggregator()
        aggregator.register(stub_provider("netease"))
        assert aggregator.provider_names() == ["netease"]
        assert await aggregator.fetch_from_provider("netease", LyricsQuery("晴天")) is None
        with pytest.raises(KeyError):
            await aggregator.fetch_from_provider("qqmusic", LyricsQuery("晴天"))

    @pytest.mark.asyncio
    async def test_search_all_returns_failures_in_place(self):
        """Errors are returned next to the provider that raised them"""
        error = NetworkError("timeout")
        aggregator = LyricsAggregator([stub_provider("netease"), stub_provider("qqmusic", error=error)])

        results = await aggregator.search_all(LyricsQuery("晴天"))
        assert results == [("netease", []), ("qqmusic", error)]

    @pytest.mark.asyncio
    async def test_health_check_all(self):
        """Failing providers report False"""
        aggregator = LyricsAggregator([
            stub_provider("netease"),
            stub_provider("qqmusic", error=NetworkError("down")),
        ])
        assert await aggregator.health_check_all() == [("netease", True), ("qqmusic", False)]

    @pytest.mark.asyncio
    async def test_close(self):
        """Every provider is closed"""
        providers = [stub_provider("netease"), stub_provider("qqmusic")]
        await LyricsAggregator(providers).close()
        for provider in providers:
            provider.close.assert_awaited_once()
