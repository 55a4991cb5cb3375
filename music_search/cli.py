"""
Command-line interface for music-search.

Commands:
    music-search search <keyword> [--source] [--type]   Search songs, albums or playlists
    music-search song <id>...                           Song details
    music-search album <id>                             Album details with tracks
    music-search playlist <id>                          Playlist details with tracks
    music-search link <id>                              Playable song URL
    music-search lyric <id> [--display-id] [--verbatim] [--parse]
    music-search fetch-lyrics <title> [--artist] [--provider]

Global options:
    --config <path>     YAML configuration (default: ./config.yaml when present)
    --verbose           Show debug output

Usage:
    music-search search "Norwegian Wood" --source netease
    music-search search 晴天 --source qq --type album
    music-search lyric 0039MnYb0qxYhV --source qq --display-id 97773 --parse
    music-search fetch-lyrics 晴天 --artist 周杰伦

Results go to stdout; logs and errors go to stderr. Any failure exits with
status 1.
"""

import asyncio
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, TypeVar

import rich_click as click

click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

from music_search import __version__
from music_search.api import create_api
from music_search.base import MusicApi
from music_search.core import (
    ApiError,
    Config,
    ConfigError,
    LyricNotFoundError,
    MusicSearchError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from music_search.lyrics.format import detect_format, format_to_string, parse_lyric_lines
from music_search.lyrics.providers import PROVIDER_CLASSES, LyricsAggregator, LyricsQuery
from music_search.models import Album, Playlist, SearchQuery, SearchResultSet, SearchSource, SearchType, SongSummary


logger = get_logger(__name__)

T = TypeVar("T")

SOURCE_CHOICES = ["netease", "163", "qq", "qqmusic"]

source_option = click.option(
    "--source", "-s",
    type=click.Choice(SOURCE_CHOICES, case_sensitive=False),
    default="netease",
    show_default=True,
    help="Music vendor to query"
)


def _run(operation: Awaitable[T]) -> T:
    """
    Run one async operation and translate failures into exit status 1.
    """
    try:
        return asyncio.run(operation)

    except LyricNotFoundError as e:
        click.echo(f"No lyrics found: {e.message}", err=True)
        sys.exit(1)

    except ApiError as e:
        click.echo(f"Provider error: {e.message}", err=True)
        if e.needs_login:
            click.echo("Set a cookie for this vendor in config.yaml or the environment", err=True)
        logger.debug(f"Details: {e.details}")
        sys.exit(1)

    except MusicSearchError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.debug(f"Details: {e.details}")
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


def _create_api(config: Config, source_name: str) -> MusicApi:
    source = SearchSource.from_string(source_name)
    return create_api(
        source,
        cookie=config.cookie_for(source.value),
        timeout=config.http.timeout,
        user_agent=config.http.user_agent,
    )


async def _with_api(config: Config, source_name: str, call: str, *args: Any, **kwargs: Any) -> Any:
    async with _create_api(config, source_name) as api:
        return await getattr(api, call)(*args, **kwargs)


def _format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "--:--"
    minutes, remainder = divmod(int(seconds), 60)
    return f"{minutes}:{remainder:02d}"


def _echo_song(song: SongSummary, index: int) -> None:
    album = f"  [{song.album}]" if song.album else ""
    click.echo(
        f"{index:>3}. {song.title} - {song.artist or 'Unknown'}{album}"
        f"  ({_format_duration(song.duration)})  id={song.id} display_id={song.display_id}"
    )


def _echo_search(result: SearchResultSet) -> None:
    click.echo(f"{result.source.display_name}: {len(result)} of {result.total} {result.kind.value} results")

    for index, item in enumerate(result.items, 1):
        if result.kind is SearchType.SONG:
            _echo_song(item, index)
        elif result.kind is SearchType.ALBUM:
            click.echo(f"{index:>3}. {item.name} - {item.artist}  ({item.track_count} tracks)  id={item.id}")
        else:
            click.echo(
                f"{index:>3}. {item.name} by {item.owner or 'Unknown'}"
                f"  ({item.track_count} tracks, {item.play_count or 0} plays)  id={item.id}"
            )

    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)


def _echo_collection(collection: Album | Playlist) -> None:
    click.echo(collection.name)
    if isinstance(collection, Playlist) and collection.author:
        click.echo(f"by {collection.author}")
    if isinstance(collection, Album):
        if collection.company:
            click.echo(f"company: {collection.company}")
        if collection.publish_time:
            click.echo(f"published: {collection.publish_time}")
    if collection.description:
        click.echo(collection.description)
    click.echo("")
    for index, song in enumerate(collection.songs, 1):
        _echo_song(song, index)


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file"
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="music-search")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """
    music-search: Search NetEase Cloud Music and QQ Music.

    \b
    Songs, albums, playlists, playable links and lyrics from both vendors
    behind one interface.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    setup_logging(config.logging.directory, verbose=verbose)
    ctx.call_on_close(shutdown_logging)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("keyword")
@source_option
@click.option(
    "--type", "-t", "kind",
    type=click.Choice([kind.value for kind in SearchType], case_sensitive=False),
    default=SearchType.SONG.value,
    show_default=True,
    help="What to search for"
)
@click.pass_context
def search(ctx: click.Context, keyword: str, source: str, kind: str) -> None:
    """Search by keyword."""
    try:
        query = SearchQuery(keyword, SearchType.from_string(kind))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="KEYWORD") from e

    result = _run(_with_api(ctx.obj["config"], source, "search", query))
    _echo_search(result)


@cli.command()
@click.argument("song_ids", nargs=-1, required=True)
@source_option
@click.pass_context
def song(ctx: click.Context, song_ids: tuple[str, ...], source: str) -> None:
    """Show song details."""
    songs = _run(_with_api(ctx.obj["config"], source, "get_songs", list(song_ids)))

    for song_id in song_ids:
        details = songs.get(song_id)
        if details is None:
            click.echo(f"{song_id}: not found", err=True)
            continue
        click.echo(f"{details.name} - {', '.join(details.artists) or 'Unknown'}")
        click.echo(f"  album:    {details.album}")
        click.echo(f"  duration: {_format_duration(details.duration_ms / 1000)}")
        click.echo(f"  id:       {details.id}  display_id: {details.display_id}")
        if details.cover_url:
            click.echo(f"  cover:    {details.cover_url}")

    if not songs:
        sys.exit(1)


@cli.command()
@click.argument("album_id")
@source_option
@click.pass_context
def album(ctx: click.Context, album_id: str, source: str) -> None:
    """Show an album and its tracks."""
    _echo_collection(_run(_with_api(ctx.obj["config"], source, "get_album", album_id)))


@cli.command()
@click.argument("playlist_id")
@source_option
@click.pass_context
def playlist(ctx: click.Context, playlist_id: str, source: str) -> None:
    """Show a playlist and its tracks."""
    _echo_collection(_run(_with_api(ctx.obj["config"], source, "get_playlist", playlist_id)))


@cli.command()
@click.argument("song_id")
@source_option
@click.pass_context
def link(ctx: click.Context, song_id: str, source: str) -> None:
    """Print a playable URL (QQ Music expects the song mid)."""
    click.echo(_run(_with_api(ctx.obj["config"], source, "get_song_link", song_id)))


@cli.command()
@click.argument("song_id")
@source_option
@click.option("--display-id", default=None, help="Secondary id (defaults to SONG_ID)")
@click.option("--verbatim", is_flag=True, help="Keep word-level timing")
@click.option("--parse", "parse_lines", is_flag=True, help="Print parsed timed lines")
@click.pass_context
def lyric(
    ctx: click.Context,
    song_id: str,
    source: str,
    display_id: str | None,
    verbatim: bool,
    parse_lines: bool
) -> None:
    """
    Print the lyrics of a song.

    NetEase looks lyrics up by display id, QQ Music by numeric song id.
    """
    lyrics = _run(_with_api(
        ctx.obj["config"], source, "get_lyric", song_id, display_id or song_id, verbatim=verbatim
    ))

    sections = [
        ("lyric", lyrics.lyric),
        ("translation", lyrics.translation),
        ("transliteration", lyrics.transliteration),
    ]
    for title, content in sections:
        if not content:
            continue
        click.echo(f"== {title} ({format_to_string(detect_format(content))}) ==")
        if not parse_lines:
            click.echo(content)
            continue
        for line in parse_lyric_lines(content):
            stamp = f"{line.time:8.2f}" if line.time is not None else " " * 8
            words = f"  ({len(line.words)} words)" if line.words else ""
            click.echo(f"{stamp}  {line.text}{words}")


@cli.command("fetch-lyrics")
@click.argument("title")
@click.option("--artist", "-a", default=None, help="Artist name, improves matching")
@click.option(
    "--provider", "-p",
    type=click.Choice(sorted(PROVIDER_CLASSES), case_sensitive=False),
    default=None,
    help="Ask one provider only"
)
@click.pass_context
def fetch_lyrics(ctx: click.Context, title: str, artist: str | None, provider: str | None) -> None:
    """Find lyrics by title, trying the configured providers in order."""
    config: Config = ctx.obj["config"]

    async def fetch() -> Any:
        aggregator = LyricsAggregator()
        for name in config.lyrics.providers:
            aggregator.register(PROVIDER_CLASSES[name](cookie=config.cookie_for(name)))

        query = LyricsQuery(title, artist=artist)
        try:
            if provider:
                return await aggregator.fetch_from_provider(provider.lower(), query)
            return await aggregator.fetch_lyrics(query)
        finally:
            await aggregator.close()

    try:
        payload = _run(fetch())
    except KeyError as e:
        raise click.BadParameter(
            f"{provider} is not enabled in the lyrics.providers setting", param_hint="--provider"
        ) from e

    if payload is None:
        click.echo(f"No lyrics found for '{title}'", err=True)
        sys.exit(1)

    click.echo(f"== {payload.source} ({format_to_string(payload.format)}) ==")
    if payload.url:
        click.echo(payload.url)
    if payload.metadata.notes:
        click.echo(payload.metadata.notes)
    click.echo(payload.content)


def main() -> None:
    """Entry point for the `music-search` console script."""
    cli()


if __name__ == "__main__":
    main()
