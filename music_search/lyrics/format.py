"""
Lyric format classification and parsing.

Three encodings are recognized, tested in a fixed priority order because a
word-synchronized payload also matches the line-synchronized pattern:

    LRC_WORD  [0,11550]挪(0,721)威(721,721)的(1442,721)
    LRC       [00:12.34]Line one
    PLAIN     anything without timing markers

Line timestamps come in two flavors: `[mm:ss.xx]` (minutes, seconds and a
2-3 digit fraction) and `[offset_ms,duration_ms]`. Word groups are
`word(offset_ms,duration_ms)` with offsets relative to the line start.

Usage:
    from music_search.lyrics.format import detect_format, parse_lyric_lines

    if detect_format(content) is LyricFormat.LRC_WORD:
        for line in parse_lyric_lines(content):
            print(line.time, [w.text for w in line.words])
"""

import re
from dataclasses import dataclass
from enum import Enum


class LyricFormat(Enum):
    """Lyric encoding tag. The value is the canonical storage name."""

    PLAIN = "plain"
    LRC = "lrc"
    LRC_WORD = "lrc_word"


# Input-only synonyms; never emitted by format_to_string()
FORMAT_ALIASES = {
    "plain": LyricFormat.PLAIN,
    "lrc": LyricFormat.LRC,
    "lrc_word": LyricFormat.LRC_WORD,
    "lrcword": LyricFormat.LRC_WORD,
    "word": LyricFormat.LRC_WORD,
    "extended": LyricFormat.LRC_WORD,
}

WORD_TIMING_PATTERN = re.compile(r"\S+\(\d+,\d+\)")
LINE_TIMESTAMP_PATTERN = re.compile(
    r"^[ \t]*(?:\[\d+:\d{2}\.\d{2,3}\]|\[\d+,\d+\])", re.MULTILINE
)

# One leading timestamp tag of either flavor
TIMESTAMP_TAG = re.compile(r"\[(?:(\d+):(\d{2})\.(\d{2,3})|(\d+),(\d+))\]")
WORD_GROUP = re.compile(r"(.*?)\((\d+),(\d+)\)")
WORD_TIMING_MARK = re.compile(r"\(\d+,\d+\)")
METADATA_TAG = re.compile(r"^\[(ti|ar|al|by|offset):.*\]$", re.IGNORECASE)


@dataclass(frozen=True)
class LyricWord:
    """
    One timed word of a word-synchronized line.

    Attributes:
        text: Word text exactly as it appears (may carry a trailing space).
        time: Absolute start in seconds (line start plus word offset).
        duration: Word length in seconds.
    """
    text: str
    time: float
    duration: float


@dataclass(frozen=True)
class LyricLine:
    """
    One lyric line.

    Attributes:
        time: Line start in seconds, or None for untimed plain text.
        text: Line text with all timing markers removed.
        words: Timed words; empty for line-synchronized or plain lines.
        duration: Line length in seconds when given by `[offset,duration]`.
    """
    time: float | None
    text: str
    words: tuple[LyricWord, ...] = ()
    duration: float | None = None


def detect_format(content: str) -> LyricFormat:
    """
    Classify lyric content.

    1. A run of non-space characters followed by `(digits,digits)` anywhere
       means LRC_WORD.
    2. Otherwise a line starting with `[m:ss.xx]` or `[ms,ms]` means LRC.
    3. Otherwise PLAIN.

    The function is pure, so classifying the same content twice always
    gives the same answer.
    """
    if not content:
        return LyricFormat.PLAIN
    if WORD_TIMING_PATTERN.search(content):
        return LyricFormat.LRC_WORD
    if LINE_TIMESTAMP_PATTERN.search(content):
        return LyricFormat.LRC
    return LyricFormat.PLAIN


def format_to_string(lyric_format: LyricFormat) -> str:
    """Canonical name of a format: "plain", "lrc" or "lrc_word"."""
    return lyric_format.value


def string_to_format(value: str | None) -> LyricFormat:
    """
    Parse a format name, case-insensitively.

    Accepts the canonical names plus the aliases "lrcword", "word" and
    "extended" for LRC_WORD. Unknown or empty names fall back to PLAIN.
    """
    if not value:
        return LyricFormat.PLAIN
    return FORMAT_ALIASES.get(value.strip().lower(), LyricFormat.PLAIN)


def _tag_seconds(match: re.Match) -> tuple[float, float | None]:
    """Start (and duration, for the offset flavor) of a timestamp tag, in seconds."""
    minutes, seconds, fraction, offset_ms, duration_ms = match.groups()
    if offset_ms is not None:
        return int(offset_ms) / 1000, int(duration_ms) / 1000
    return int(minutes) * 60 + float(f"{seconds}.{fraction}"), None


def _split_timestamps(line: str) -> tuple[list[tuple[float, float | None]], str]:
    """Consume every leading timestamp tag of a line."""
    stamps = []
    rest = line.lstrip()
    while True:
        match = TIMESTAMP_TAG.match(rest)
        if match is None:
            break
        stamps.append(_tag_seconds(match))
        rest = rest[match.end():]
    return stamps, rest


def _parse_words(text: str, line_start: float) -> tuple[tuple[LyricWord, ...], str]:
    words = []
    consumed = 0
    for match in WORD_GROUP.finditer(text):
        word_text, offset_ms, duration_ms = match.groups()
        words.append(
            LyricWord(
                text=word_text,
                time=line_start + int(offset_ms) / 1000,
                duration=int(duration_ms) / 1000,
            )
        )
        consumed = match.end()

    trailing = text[consumed:]
    line_text = "".join(word.text for word in words) + trailing
    return tuple(words), line_text


def parse_lyric_lines(content: str) -> list[LyricLine]:
    """
    Parse lyric content into timed lines.

    - Metadata tags ([ti:], [ar:], [al:], [by:], [offset:]) are skipped.
    - A line carrying several timestamps yields one entry per timestamp.
    - Word groups are only extracted when the content is LRC_WORD; a timed
      line without word groups yields an entry with an empty word list.
    - For PLAIN content every non-empty line is returned with time None.
    - Timed entries are returned sorted by start time (stable).
    """
    lyric_format = detect_format(content)
    lines: list[LyricLine] = []

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or METADATA_TAG.match(line):
            continue

        if lyric_format is LyricFormat.PLAIN:
            lines.append(LyricLine(time=None, text=line))
            continue

        stamps, rest = _split_timestamps(line)
        if not stamps:
            continue

        for start, duration in stamps:
            if lyric_format is LyricFormat.LRC_WORD:
                words, text = _parse_words(rest, start)
            else:
                words, text = (), rest
            lines.append(LyricLine(time=start, text=text, words=words, duration=duration))

    if lyric_format is not LyricFormat.PLAIN:
        lines.sort(key=lambda entry: entry.time)

    return lines


def _format_lrc_timestamp(seconds: float) -> str:
    centiseconds = int(round(seconds * 1000)) // 10
    minutes, remainder = divmod(centiseconds, 6000)
    return f"[{minutes:02d}:{remainder // 100:02d}.{remainder % 100:02d}]"


def strip_word_timing(content: str) -> str:
    """
    Reduce word-synchronized lyrics to plain line-level LRC.

    `[offset,duration]` line tags become `[mm:ss.xx]` and every
    `(offset,duration)` word mark is removed. Metadata lines and lines
    without timestamps are kept unchanged. The result classifies as LRC.
    """
    output = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if METADATA_TAG.match(line):
            output.append(line)
            continue

        stamps, rest = _split_timestamps(line)
        if not stamps:
            output.append(WORD_TIMING_MARK.sub("", raw_line))
            continue

        tags = "".join(_format_lrc_timestamp(start) for start, _ in stamps)
        output.append(tags + WORD_TIMING_MARK.sub("", rest))

    return "\n".join(output)
