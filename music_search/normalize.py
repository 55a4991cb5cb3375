"""
Tolerance rules shared by the vendor response normalizers.

Both vendors emit inconsistent JSON. The rules below are a living
allow-list: when a new irregularity is observed, add a rule here (or an
alias at the call site) instead of assuming the list is complete.

    - Identifiers may be a JSON number or a JSON string -> normalize_id()
    - A field may appear under several spellings      -> pick_alias()
    - Artists may be one string or a list             -> normalize_artists()
    - One malformed list item never aborts the list   -> parse_items()
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from music_search.core.exceptions import JsonParseError
from music_search.core.logger import log_dropped_item


T = TypeVar("T")

_MISSING = object()


def normalize_id(value: Any) -> str:
    """
    Normalize a vendor identifier to text.

    Accepts ints (107192078), strings ("107192078") and integral floats
    (107192078.0, produced by some JSON encoders). Booleans, None and empty
    strings are rejected.

    Raises:
        JsonParseError: If the value cannot be an identifier.
    """
    if isinstance(value, bool) or value is None:
        raise JsonParseError(f"Invalid identifier: {value!r}")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise JsonParseError(f"Invalid identifier: {value!r}")


def pick_alias(item: Mapping[str, Any], *names: str, default: Any = _MISSING) -> Any:
    """
    Return the first present, non-null value among several spellings.

    Example:
        pick_alias(playlist, "song_count", "song_Count", default=0)

    Raises:
        JsonParseError: If no spelling is present and no default was given.
    """
    for name in names:
        value = item.get(name)
        if value is not None:
            return value
    if default is _MISSING:
        raise JsonParseError(f"Missing required field {' / '.join(repr(n) for n in names)}")
    return default


def require(item: Mapping[str, Any], name: str) -> Any:
    """Return item[name], raising JsonParseError when it is missing or null."""
    if not isinstance(item, Mapping):
        raise JsonParseError(f"Expected an object, got {type(item).__name__}")
    value = item.get(name)
    if value is None:
        raise JsonParseError(f"Missing required field '{name}'")
    return value


def to_int(value: Any, default: int = 0) -> int:
    """Lenient integer conversion for counts that may arrive as text."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def optional_text(value: Any) -> str | None:
    """Strip text fields and turn empty strings into None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_artists(value: Any, name_key: str = "name") -> tuple[str, ...]:
    """
    Normalize an artist field to an ordered tuple of names.

    Accepts a single string, a list of strings, a list of objects carrying
    `name_key`, or a single such object. Blank names are skipped.

    An empty tuple means the artist is unknown: a missing field and a field
    holding only blank names both give (). Callers never get a placeholder
    name such as "Unknown".
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, Mapping):
        value = [value]
    if not isinstance(value, Iterable):
        raise JsonParseError(f"Invalid artist field: {value!r}")

    names = []
    for entry in value:
        if isinstance(entry, Mapping):
            entry = entry.get(name_key)
        if isinstance(entry, str) and entry.strip():
            names.append(entry.strip())
    return tuple(names)


def parse_items(
    raw_items: Any,
    parser: Callable[[Mapping[str, Any]], T],
    source: str,
    kind: str,
    logger: logging.Logger
) -> tuple[tuple[T, ...], tuple[str, ...]]:
    """
    Parse a vendor list item by item.

    Items whose parser raises a parse error are dropped; each drop is
    logged (see log_dropped_item) and described in the returned warnings.

    Args:
        raw_items: The JSON list (None is treated as empty).
        parser: Converts one raw item into a model instance.
        source: Vendor name for diagnostics.
        kind: Item kind for diagnostics.
        logger: Logger of the calling normalizer.

    Returns:
        (parsed items in original order, warning messages)

    Raises:
        JsonParseError: If raw_items is not a list at all.
    """
    if raw_items is None:
        return (), ()
    if not isinstance(raw_items, list):
        raise JsonParseError(
            f"Expected a list of {kind} items",
            details={"source": source, "stage": "normalize", "kind": kind}
        )

    items = []
    warnings = []
    for index, raw in enumerate(raw_items):
        try:
            items.append(parser(raw))
        except (JsonParseError, KeyError, TypeError, ValueError, AttributeError) as e:
            reason = f"item {index}: {e}"
            log_dropped_item(logger, source, kind, reason, raw)
            warnings.append(f"Dropped {source} {kind} {reason}")

    return tuple(items), tuple(warnings)
