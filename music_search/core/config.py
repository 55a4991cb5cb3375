"""
Configuration management for music-search.

This module handles loading and validating the optional config.yaml used by
the command-line interface. The retrieval core itself takes plain constructor
arguments (cookie, session) and never reads configuration on its own.

The configuration file contains:
    - Session cookies for each vendor (optional, unlock login-only endpoints)
    - HTTP timeout and User-Agent for the shared aiohttp session
    - Ordered list of lyrics providers for the fallback aggregator
    - Optional directory for log files

Environment Overrides:
    Values from a .env file (loaded with python-dotenv) or the process
    environment take precedence over the YAML file:
        MUSIC_SEARCH_NETEASE_COOKIE -> netease.cookie
        MUSIC_SEARCH_QQ_COOKIE      -> qqmusic.cookie
        MUSIC_SEARCH_TIMEOUT        -> http.timeout
        MUSIC_SEARCH_LOG_DIR        -> logging.directory

Example config.yaml:
    netease:
      cookie: "MUSIC_U=..."

    qqmusic:
      cookie: null

    http:
      timeout: 10
      user_agent: "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    lyrics:
      providers: [netease, qqmusic]

    logging:
      directory: "~/.music-search/logs"
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from music_search.core.exceptions import ConfigError


# Default configuration file name (looked up in the current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
KNOWN_PROVIDERS = ("netease", "qqmusic")

ENV_NETEASE_COOKIE = "MUSIC_SEARCH_NETEASE_COOKIE"
ENV_QQ_COOKIE = "MUSIC_SEARCH_QQ_COOKIE"
ENV_TIMEOUT = "MUSIC_SEARCH_TIMEOUT"
ENV_LOG_DIR = "MUSIC_SEARCH_LOG_DIR"


@dataclass(frozen=True)
class VendorConfig:
    """
    Per-vendor settings.

    Attributes:
        cookie: Session cookie sent verbatim in the Cookie header, or None.
                Without it, some endpoints answer with a "login required" code.
    """
    cookie: str | None = None


@dataclass(frozen=True)
class HttpConfig:
    """
    Transport settings for the aiohttp session.

    Attributes:
        timeout: Total request timeout in seconds.
        user_agent: User-Agent header sent to both vendors.
    """
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class LyricsConfig:
    """
    Lyrics aggregator settings.

    Attributes:
        providers: Provider names tried in order by the aggregator.
    """
    providers: tuple[str, ...] = KNOWN_PROVIDERS


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging settings.

    Attributes:
        directory: Where log files are written, or None for console only.
    """
    directory: Path | None = None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config(); every section has defaults so an empty or
    missing config file is valid.
    """
    netease: VendorConfig = field(default_factory=VendorConfig)
    qqmusic: VendorConfig = field(default_factory=VendorConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    lyrics: LyricsConfig = field(default_factory=LyricsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def cookie_for(self, source: str) -> str | None:
        """Return the configured cookie for a vendor name."""
        if source == "netease":
            return self.netease.cookie
        if source == "qqmusic":
            return self.qqmusic.cookie
        raise ConfigError(f"Unknown source: {source}", details={"source": source})


def load_config(config_path: Path | None = None, env_file: Path | None = None) -> Config:
    """
    Load and validate configuration.

    Args:
        config_path: Explicit path to a YAML file. If None, config.yaml in the
                     current working directory is used when it exists, and
                     defaults are used when it does not.
        env_file: Optional .env file; when None python-dotenv searches for one.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is missing, the YAML is
                     invalid, or a value fails validation.
    """
    load_dotenv(dotenv_path=env_file)

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        raw_config = _read_yaml(config_path)
    else:
        default_path = Path.cwd() / CONFIG_FILENAME
        if default_path.exists():
            raw_config = _read_yaml(default_path)

    _apply_environment(raw_config)

    return Config(
        netease=_parse_vendor_section(raw_config.get("netease"), "netease"),
        qqmusic=_parse_vendor_section(raw_config.get("qqmusic"), "qqmusic"),
        http=_parse_http_section(raw_config.get("http")),
        lyrics=_parse_lyrics_section(raw_config.get("lyrics")),
        logging=_parse_logging_section(raw_config.get("logging")),
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Read a YAML file and return its top-level mapping."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _apply_environment(raw_config: dict[str, Any]) -> None:
    """Overlay environment variables on the raw configuration in place."""
    env_mappings = {
        ENV_NETEASE_COOKIE: ("netease", "cookie"),
        ENV_QQ_COOKIE: ("qqmusic", "cookie"),
        ENV_TIMEOUT: ("http", "timeout"),
        ENV_LOG_DIR: ("logging", "directory"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.getenv(env_var)
        if not value:
            continue
        if not isinstance(raw_config.get(section), dict):
            raw_config[section] = {}
        if env_var == ENV_TIMEOUT:
            try:
                raw_config[section][key] = float(value)
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_TIMEOUT} must be a number",
                    details={"field": env_var, "value": value}
                ) from e
        else:
            raw_config[section][key] = value


def _require_section(section: Any, name: str) -> dict[str, Any]:
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_vendor_section(section: Any, name: str) -> VendorConfig:
    section = _require_section(section, name)
    cookie = section.get("cookie")

    if cookie is None:
        return VendorConfig()

    if not isinstance(cookie, str):
        raise ConfigError(
            f"'{name}.cookie' must be a string or null",
            details={"field": f"{name}.cookie"}
        )

    return VendorConfig(cookie=cookie.strip() or None)


def _parse_http_section(section: Any) -> HttpConfig:
    section = _require_section(section, "http")

    timeout = section.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(
            "'http.timeout' must be a positive number",
            details={"field": "http.timeout", "value": timeout}
        )

    user_agent = section.get("user_agent", DEFAULT_USER_AGENT)
    if not isinstance(user_agent, str) or not user_agent.strip():
        raise ConfigError(
            "'http.user_agent' must be a non-empty string",
            details={"field": "http.user_agent"}
        )

    return HttpConfig(timeout=float(timeout), user_agent=user_agent.strip())


def _parse_lyrics_section(section: Any) -> LyricsConfig:
    section = _require_section(section, "lyrics")
    providers = section.get("providers")

    if providers is None:
        return LyricsConfig()

    if not isinstance(providers, list) or not providers:
        raise ConfigError(
            "'lyrics.providers' must be a non-empty list",
            details={"field": "lyrics.providers"}
        )

    names = []
    for provider in providers:
        if provider not in KNOWN_PROVIDERS:
            raise ConfigError(
                f"Unknown lyrics provider: {provider}",
                details={"field": "lyrics.providers", "value": provider, "known": list(KNOWN_PROVIDERS)}
            )
        if provider not in names:
            names.append(provider)

    return LyricsConfig(providers=tuple(names))


def _parse_logging_section(section: Any) -> LoggingConfig:
    section = _require_section(section, "logging")
    directory = section.get("directory")

    if directory is None:
        return LoggingConfig()

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'logging.directory' must be a non-empty string",
            details={"field": "logging.directory"}
        )

    return LoggingConfig(directory=Path(directory.strip()).expanduser().resolve())
