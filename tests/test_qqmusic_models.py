"""Test QQ Music response normalizers"""

import pytest

from music_search.core.exceptions import ApiError, JsonParseError, NotFoundError
from music_search.models import SearchSource, SearchType
from music_search.qqmusic import models


def search_envelope(body):
    return {"code": 0, "req_1": {"code": 0, "data": {"code": 0, "body": body}}}


class TestSearch:
    """Test search normalization"""

    def test_songs(self, qq_search_response):
        """Songs use the mid as id and the numeric id as display id"""
        result = models.parse_search_response(qq_search_response, SearchType.SONG)

        assert result.source is SearchSource.QQ_MUSIC
        assert len(result) == 1
        assert result.total == 1
        assert len(result.warnings) == 1

        song = result.songs[0]
        assert song.id == "0039MnYb0qxYhV"
        assert song.display_id == "97773"
        assert song.title == "晴天"
        assert song.artists == ("周杰伦",)
        assert song.album == "叶惠美"
        assert song.duration == pytest.approx(269.0)

    def test_title_falls_back_to_name(self, qq_song_item):
        """Older entries only carry `name`"""
        item = dict(qq_song_item)
        del item["title"]
        item["name"] = "晴天"
        assert models.parse_song_summary(item).title == "晴天"

    def test_song_without_singer(self, qq_song_item):
        """A song without singers keeps an empty artist tuple"""
        item = dict(qq_song_item)
        del item["singer"]
        song = models.parse_song_summary(item)
        assert song.artists == ()
        assert song.artist == ""

    @pytest.mark.parametrize("level", ["response", "req_1", "req_1.data"])
    def test_nested_codes(self, qq_search_response, level):
        """A non-zero code at any level raises ApiError"""
        if level == "response":
            qq_search_response["code"] = 500
        elif level == "req_1":
            qq_search_response["req_1"]["code"] = 500
        else:
            qq_search_response["req_1"]["data"]["code"] = 500

        with pytest.raises(ApiError) as exc_info:
            models.parse_search_response(qq_search_response, SearchType.SONG)
        assert exc_info.value.code == 500

    def test_missing_request(self):
        """A response without req_1 is a parse error"""
        with pytest.raises(JsonParseError):
            models.parse_search_response({"code": 0}, SearchType.SONG)

    @pytest.mark.parametrize("body", [["song"], "song", 1])
    def test_body_not_an_object(self, body):
        """A body that is not an object is a parse error"""
        with pytest.raises(JsonParseError):
            models.parse_search_response(search_envelope(body), SearchType.SONG)

    def test_playlists_accept_both_count_spellings(self):
        """song_count and song_Count are both read"""
        body = {"songlist": {"list": [
            {"dissid": "7039426390", "dissname": "Mix", "creator": {"name": "qq"}, "song_Count": 30},
            {"dissid": 1, "dissname": "Other", "song_count": "12", "listennum": 5},
        ]}}
        result = models.parse_search_response(search_envelope(body), SearchType.PLAYLIST)
        assert [playlist.track_count for playlist in result.playlists] == [30, 12]
        assert result.playlists[0].owner == "qq"
        assert result.playlists[1].play_count == 5

    def test_albums(self):
        """Album search results read the album mid"""
        body = {"album": {"list": [{
            "albumMID": "000MkMni19ClKG",
            "albumName": "叶惠美",
            "singer_list": [{"name": "周杰伦"}],
            "song_count": 11,
            "publicTime": "2003-07-31",
        }]}}
        album = models.parse_search_response(search_envelope(body), SearchType.ALBUM).albums[0]
        assert album.id == "000MkMni19ClKG"
        assert album.artist == "周杰伦"
        assert album.publish_time == "2003-07-31"


class TestDetails:
    """Test detail endpoints"""

    def test_song_detail(self, qq_song_item):
        """Song details carry a cover URL and milliseconds"""
        song = models.parse_song_detail({"code": 0, "data": [qq_song_item]}, "97773")
        assert song.id == "0039MnYb0qxYhV"
        assert song.display_id == "97773"
        assert song.duration_ms == 269000
        assert song.cover_url.endswith("T002R800x800M000000MkMni19ClKG_3.jpg")

    def test_unknown_song(self):
        """Empty data means not found"""
        with pytest.raises(NotFoundError):
            models.parse_song_detail({"code": 0, "data": []}, "1")

    @pytest.mark.parametrize("entry", [None, "0039MnYb0qxYhV", [1]])
    def test_song_entry_not_an_object(self, entry):
        """A data entry that is not an object is a parse error"""
        with pytest.raises(JsonParseError) as exc_info:
            models.parse_song_detail({"code": 0, "data": [entry]}, "97773")
        assert exc_info.value.details["song_id"] == "97773"

    def test_playlist_detail(self, qq_song_item):
        """Playlist details read the first cdlist entry"""
        response = {"code": 0, "cdlist": [
            {"dissname": "Mix", "nickname": "qq", "desc": "songs", "songList": [qq_song_item]}
        ]}
        playlist = models.parse_playlist_detail(response, "7039426390")
        assert playlist.name == "Mix"
        assert playlist.author == "qq"
        assert playlist.songs[0].display_id == "97773"

    def test_missing_playlist(self):
        """An empty cdlist means not found"""
        with pytest.raises(NotFoundError):
            models.parse_playlist_detail({"code": 0, "cdlist": []}, "1")

    def test_playlist_entry_not_an_object(self):
        """A cdlist entry that is not an object is a parse error"""
        with pytest.raises(JsonParseError):
            models.parse_playlist_detail({"code": 0, "cdlist": [None]}, "7039426390")

    def test_album_detail(self):
        """Album tracks use the songmid/songid spelling"""
        response = {"code": 0, "data": {
            "name": "叶惠美",
            "company": "杰威尔",
            "aDate": "2003-07-31",
            "list": [{"songmid": "0039MnYb0qxYhV", "songid": 97773, "songname": "晴天", "interval": 269}],
        }}
        album = models.parse_album_detail(response, "000MkMni19ClKG")
        assert album.company == "杰威尔"
        assert album.songs[0].id == "0039MnYb0qxYhV"
        assert album.songs[0].display_id == "97773"
        assert album.songs[0].duration == pytest.approx(269.0)


class TestSongLink:
    """Test playable link assembly"""

    def test_joins_host_and_path(self):
        """The CDN host is joined with the purl"""
        response = {
            "req": {"code": 0, "data": {"sip": ["http://ws.stream.qqmusic.qq.com/"]}},
            "req_0": {"code": 0, "data": {"midurlinfo": [{"purl": "C400.m4a?vkey=abc"}]}},
        }
        link = models.parse_song_link(response, "0039MnYb0qxYhV")
        assert link == "http://ws.stream.qqmusic.qq.com/C400.m4a?vkey=abc"

    def test_empty_purl(self):
        """An empty purl (paid track) means not found"""
        response = {
            "req": {"code": 0, "data": {"sip": ["http://ws.stream.qqmusic.qq.com/"]}},
            "req_0": {"code": 0, "data": {"midurlinfo": [{"purl": ""}]}},
        }
        with pytest.raises(NotFoundError):
            models.parse_song_link(response, "0039MnYb0qxYhV")

    def test_failed_request(self):
        """A failing sub-request raises ApiError"""
        response = {"req": {"code": 0}, "req_0": {"code": 104003}}
        with pytest.raises(ApiError):
            models.parse_song_link(response, "0039MnYb0qxYhV")
