"""
QQ Music lyric payload decoder.

The lyric_download endpoint answers with an XML document wrapped in comment
markers. Each lyric kind sits in its own tag as an uppercase hex string:

    content      original lyric (QRC word-timed or LRC)
    contentts    translation
    contentroma  romanization

Decoding one payload:

    hex text -> bytes -> vendor Triple-DES (ECB) -> zlib inflate -> UTF-8

When inflation fails but the decrypted bytes are already readable XML, the
bytes are taken as plaintext. The original lyric is itself often an XML
document whose `Lyric_1` element carries the text in its `LyricContent`
attribute.

Every failure raises; an undecodable payload is never reported as an empty
lyric.
"""

import base64
import binascii
import html
import re
from dataclasses import dataclass
from xml.etree import ElementTree

from music_search.core.exceptions import DecompressionError, DecryptionError, LyricDecodeError
from music_search.core.logger import get_logger
from music_search.crypto.ciphers import triple_des_decrypt, trim_trailing_padding, zlib_inflate


logger = get_logger(__name__)

SOURCE = "qqmusic"

QQ_KEY = b"!@#)(*$%123ZXC!@!@#)(NHL"

LYRIC_TAGS = ("content", "contentts", "contentroma")

XML_DECLARATION = re.compile(r"<\?xml[^>]*\?>")
BARE_AMPERSAND = re.compile(r"&(?!(?:[A-Za-z]+|#\d+|#x[0-9A-Fa-f]+);)")
LYRIC_CONTENT_ATTRIBUTE = re.compile(r"<Lyric_1\b[^>]*?\bLyricContent=\"([^\"]*)\"", re.DOTALL)
BASE64_BODY = re.compile(r"[A-Za-z0-9+/]+={0,2}")


@dataclass(frozen=True)
class DecodedLyrics:
    """Plaintext lyric bodies of one lyric_download response."""
    lyric: str | None = None
    translation: str | None = None
    romanization: str | None = None


def strip_comment_markers(text: str) -> str:
    return text.replace("<!--", "").replace("-->", "")


def parse_lyric_document(xml_text: str) -> dict[str, str]:
    """
    Extract the hex bodies of the lyric tags.

    Accepts the response body as served, comment markers included.

    Returns:
        {tag: hex text} for every lyric tag with a non-blank body.

    Raises:
        LyricDecodeError: If the document is not well-formed XML.
    """
    body = XML_DECLARATION.sub("", strip_comment_markers(xml_text))
    body = BARE_AMPERSAND.sub("&amp;", body)

    try:
        # Wrapped so that several top-level elements still parse
        root = ElementTree.fromstring(f"<document>{body}</document>")
    except ElementTree.ParseError as e:
        raise LyricDecodeError(
            f"Unreadable lyric document: {e}",
            details={"source": SOURCE, "stage": "xml", "original_error": str(e)}
        ) from e

    contents = {}
    for tag in LYRIC_TAGS:
        element = root.find(f".//{tag}")
        if element is not None and element.text and element.text.strip():
            contents[tag] = element.text
    return contents


def _plaintext_fallback(decrypted: bytes) -> str | None:
    """Decrypted bytes as text, when they already are an XML document."""
    try:
        text = trim_trailing_padding(decrypted).decode("utf-8")
    except UnicodeDecodeError:
        return None
    if text.lstrip().startswith("<"):
        return text
    return None


def decrypt_hex_payload(hex_text: str) -> str:
    """
    Decode one hex lyric body to text.

    Raises:
        LyricDecodeError: If the body is not hex.
        DecompressionError: If the decrypted bytes neither inflate nor read
                            as plaintext XML.
        DecryptionError: If the inflated bytes are not UTF-8.
    """
    cleaned = "".join(hex_text.split())
    try:
        encrypted = bytes.fromhex(cleaned)
    except ValueError as e:
        raise LyricDecodeError(
            f"Lyric payload is not valid hex: {e}",
            details={"source": SOURCE, "stage": "hex", "length": len(cleaned)}
        ) from e

    decrypted = triple_des_decrypt(encrypted, QQ_KEY)

    try:
        inflated = zlib_inflate(decrypted)
    except DecompressionError as e:
        plaintext = _plaintext_fallback(decrypted)
        if plaintext is None:
            e.details.setdefault("source", SOURCE)
            raise
        logger.debug("Lyric payload is not compressed, using decrypted bytes as plaintext")
        return plaintext

    try:
        return inflated.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError(
            f"Decrypted lyric is not UTF-8: {e}",
            details={"source": SOURCE, "stage": "utf8"}
        ) from e


def extract_lyric_content(text: str) -> str:
    """
    Unwrap a `Lyric_1` document to its LyricContent attribute.

    Read with a pattern rather than an XML parser because attribute value
    normalization would turn the lyric's newlines into spaces. Text that is
    not such a document is returned unchanged.
    """
    if "<?xml" not in text:
        return text
    match = LYRIC_CONTENT_ATTRIBUTE.search(text)
    if match is None:
        return text
    return html.unescape(match.group(1))


def decode_text_body(text: str) -> str:
    """
    Base64 tolerance step.

    A body that is a strict, whitespace-free base64 string decoding to UTF-8
    is replaced by the decoded text; anything else passes through unchanged.
    """
    candidate = text.strip()
    if len(candidate) < 4 or len(candidate) % 4 or not BASE64_BODY.fullmatch(candidate):
        return text
    try:
        return base64.b64decode(candidate, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return text


def _decode_body(contents: dict[str, str], tag: str) -> str | None:
    hex_text = contents.get(tag)
    if hex_text is None:
        return None
    try:
        text = decrypt_hex_payload(hex_text)
    except (LyricDecodeError, DecryptionError, DecompressionError) as e:
        e.details.setdefault("tag", tag)
        raise
    text = decode_text_body(extract_lyric_content(text))
    return text or None


def decode_lyric_response(raw: str) -> DecodedLyrics:
    """
    Decode a complete lyric_download response body.

    Tags that are absent or blank yield None.
    """
    contents = parse_lyric_document(raw)
    logger.debug(f"Lyric document carries {sorted(contents)}")

    return DecodedLyrics(
        lyric=_decode_body(contents, "content"),
        translation=_decode_body(contents, "contentts"),
        romanization=_decode_body(contents, "contentroma"),
    )
