"""
Exception classes for music-search.

This module defines all custom exceptions used throughout the package.
Each exception carries a human-readable message plus a details dictionary
so that callers can report "found / not found / provider error" to users
while operators still get enough context (vendor name, failing stage) to
diagnose the problem.

Exception Hierarchy:
    MusicSearchError (base)
        ConfigError - Configuration file issues
        NetworkError - Transport failures and HTTP error statuses
        EncryptionError - NetEase request signing failed
        DecryptionError - QQ Music lyric payload could not be decrypted
        DecompressionError - zlib stream malformed or truncated
        LyricDecodeError - QQ Music lyric document unreadable (hex or XML)
        JsonParseError - Response envelope or item could not be parsed
        ApiError - Vendor answered with a non-success code
            NotFoundError - Song, album or playlist does not exist
        LyricNotFoundError - Vendor has no lyric for the id (expected outcome)

Common details keys:
    - 'source': Vendor name ("netease" or "qqmusic")
    - 'stage': Pipeline stage that failed ("hex", "decrypt", "inflate", "xml", ...)
    - 'url': Endpoint involved in the failure
    - 'original_error': The underlying exception text when wrapping another error
"""


class MusicSearchError(Exception):
    """
    Base exception for all music-search errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch every provider error with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        details: Dictionary with additional context (vendor, stage, ids, URLs).

    Example:
        try:
            lyrics = await api.get_lyric(song_id, display_id)
        except MusicSearchError as e:
            logger.error(f"Lyric retrieval failed: {e.message}")
            logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message

    @property
    def source(self) -> str | None:
        """Vendor name recorded in details, if any."""
        return self.details.get("source")

    @property
    def stage(self) -> str | None:
        """Failing pipeline stage recorded in details, if any."""
        return self.details.get("stage")


class ConfigError(MusicSearchError):
    """
    Raised when there's an issue with the configuration file.

    Common causes:
        - config.yaml has invalid YAML syntax
        - A section is not a mapping
        - Invalid field values (e.g., negative timeout, unknown provider name)

    Example:
        raise ConfigError(
            "'http.timeout' must be a positive number",
            details={'field': 'http.timeout', 'value': -1}
        )
    """
    pass


class NetworkError(MusicSearchError):
    """
    Raised when a vendor request fails at the transport level.

    Surfaced to the caller as-is; the core never retries.

    Common causes:
        - DNS or connection failure
        - Timeout configured on the HTTP session
        - HTTP error status (4xx/5xx) from the vendor endpoint

    Attributes:
        status: HTTP status code when the server answered, otherwise None.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.status = status


class EncryptionError(MusicSearchError):
    """
    Raised when building a signed NetEase weapi request fails.

    Fatal for that call only.

    Common causes:
        - Request parameters that cannot be serialized to JSON
        - Cipher backend rejecting key or IV sizes
    """
    pass


class DecryptionError(MusicSearchError):
    """
    Raised when a QQ Music lyric payload cannot be decrypted.

    Common causes:
        - Key of the wrong length
        - Decrypted bytes that are neither a zlib stream nor UTF-8 text
    """
    pass


class DecompressionError(MusicSearchError):
    """
    Raised when a zlib stream is malformed or truncated.

    Never converted into an empty lyric.
    """
    pass


class LyricDecodeError(MusicSearchError):
    """
    Raised when the QQ Music lyric document cannot be read.

    Covers hex-decode failures of the encrypted body and XML parse
    failures of the outer or inner document. Fatal for that call only.

    Example:
        raise LyricDecodeError(
            "Lyric payload is not valid hex",
            details={'source': 'qqmusic', 'stage': 'hex', 'length': 17}
        )
    """
    pass


class JsonParseError(MusicSearchError):
    """
    Raised when a vendor JSON response cannot be parsed.

    When raised for a single list item, the normalizer catches it, drops the
    item and records a warning. It only reaches the caller when the whole
    top-level envelope is unusable.
    """
    pass


class ApiError(MusicSearchError):
    """
    Raised when the vendor answers with a non-success code.

    Attributes:
        code: Vendor status code from the response envelope.
        needs_login: True when the vendor signalled that a session cookie
                     is required for this endpoint.

    Example:
        raise ApiError(
            "Login required",
            details={'source': 'netease', 'endpoint': 'search'},
            code=50000005,
            needs_login=True
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        code: int | None = None,
        needs_login: bool = False
    ) -> None:
        super().__init__(message, details)
        self.code = code
        self.needs_login = needs_login


class NotFoundError(ApiError):
    """Raised when a song, album or playlist does not exist at the vendor."""
    pass


class LyricNotFoundError(MusicSearchError):
    """
    Raised when the vendor legitimately has no lyric for a song.

    This is a normal outcome, not an operational failure: it is logged at
    INFO level and the lyric aggregator simply moves on to the next provider.
    """
    pass
