"""Test configuration loading"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from music_search.core.config import (
    DEFAULT_TIMEOUT,
    ENV_LOG_DIR,
    ENV_NETEASE_COOKIE,
    ENV_QQ_COOKIE,
    ENV_TIMEOUT,
    KNOWN_PROVIDERS,
    load_config,
)
from music_search.core.exceptions import ConfigError


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run in an empty directory without music-search variables"""
    monkeypatch.chdir(tmp_path)
    with patch.dict(os.environ):
        for name in (ENV_NETEASE_COOKIE, ENV_QQ_COOKIE, ENV_TIMEOUT, ENV_LOG_DIR):
            os.environ.pop(name, None)
        yield tmp_path


def write_config(directory: Path, text: str) -> Path:
    path = directory / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test YAML configuration"""

    def test_defaults_without_file(self, clean_env):
        """A missing default file means defaults"""
        config = load_config(env_file=clean_env / "missing.env")
        assert config.netease.cookie is None
        assert config.http.timeout == DEFAULT_TIMEOUT
        assert config.lyrics.providers == KNOWN_PROVIDERS
        assert config.logging.directory is None

    def test_explicit_missing_file(self, clean_env):
        """An explicit path must exist"""
        with pytest.raises(ConfigError):
            load_config(clean_env / "nope.yaml", env_file=clean_env / "missing.env")

    def test_full_file(self, clean_env):
        """Every section is read"""
        path = write_config(clean_env, (
            "netease:\n"
            "  cookie: 'MUSIC_U=abc'\n"
            "qqmusic:\n"
            "  cookie: '  '\n"
            "http:\n"
            "  timeout: 5\n"
            "  user_agent: test-agent\n"
            "lyrics:\n"
            "  providers: [qqmusic, netease, qqmusic]\n"
            "logging:\n"
            f"  directory: '{clean_env / 'logs'}'\n"
        ))
        config = load_config(path, env_file=clean_env / "missing.env")

        assert config.cookie_for("netease") == "MUSIC_U=abc"
        assert config.cookie_for("qqmusic") is None
        assert config.http.timeout == 5.0
        assert config.http.user_agent == "test-agent"
        assert config.lyrics.providers == ("qqmusic", "netease")
        assert config.logging.directory == (clean_env / "logs").resolve()

    def test_cwd_file_is_found(self, clean_env):
        """config.yaml in the working directory is used by default"""
        write_config(clean_env, "http:\n  timeout: 3\n")
        assert load_config(env_file=clean_env / "missing.env").http.timeout == 3.0

    def test_empty_file(self, clean_env):
        """An empty file means defaults"""
        path = write_config(clean_env, "")
        assert load_config(path, env_file=clean_env / "missing.env").http.timeout == DEFAULT_TIMEOUT

    @pytest.mark.parametrize("text", [
        "netease: [unclosed\n",
        "- just\n- a list\n",
        "http: 5\n",
        "http:\n  timeout: -1\n",
        "http:\n  timeout: true\n",
        "netease:\n  cookie: 42\n",
        "lyrics:\n  providers: []\n",
        "lyrics:\n  providers: [genius]\n",
        "logging:\n  directory: ''\n",
    ])
    def test_invalid_values(self, clean_env, text):
        """Invalid files and values raise ConfigError"""
        path = write_config(clean_env, text)
        with pytest.raises(ConfigError):
            load_config(path, env_file=clean_env / "missing.env")

    def test_unknown_cookie_source(self, clean_env):
        """Only the two vendors have cookies"""
        config = load_config(env_file=clean_env / "missing.env")
        with pytest.raises(ConfigError):
            config.cookie_for("spotify")


class TestEnvironment:
    """Test environment overrides"""

    def test_variables_override_file(self, clean_env):
        """Environment values win over the YAML file"""
        path = write_config(clean_env, "netease:\n  cookie: from-file\nhttp:\n  timeout: 5\n")
        os.environ[ENV_NETEASE_COOKIE] = "from-env"
        os.environ[ENV_TIMEOUT] = "2.5"

        config = load_config(path, env_file=clean_env / "missing.env")
        assert config.netease.cookie == "from-env"
        assert config.http.timeout == 2.5

    def test_invalid_timeout_variable(self, clean_env):
        """A non-numeric timeout variable is rejected"""
        os.environ[ENV_TIMEOUT] = "soon"
        with pytest.raises(ConfigError):
            load_config(env_file=clean_env / "missing.env")

    def test_dotenv_file(self, clean_env):
        """Values are read from a .env file"""
        env_file = clean_env / ".env"
        env_file.write_text(f"{ENV_QQ_COOKIE}=uin=123\n", encoding="utf-8")

        config = load_config(env_file=env_file)
        assert config.qqmusic.cookie == "uin=123"
