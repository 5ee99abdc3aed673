"""Config module tests.

Tests STREAMCMD_* environment variable parsing and configuration caching.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest import mock

import pytest

from streamcmd.config import (
    DEFAULT_CHUNK_SIZE,
    MAX_CHUNK_SIZE,
    get_config,
    load_config,
    reload_config,
)


def clean_env(**overrides: str) -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if not k.startswith("STREAMCMD_")}
    env.update(overrides)
    return env


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        with mock.patch.dict(os.environ, clean_env(), clear=True):
            config = load_config()

        assert config.log_debug is False
        assert config.log_file is None
        assert config.decode_errors == "replace"
        assert config.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.term_timeout == 2.0
        assert config.kill_timeout == 1.0


class TestDecodePolicy:
    """Test STREAMCMD_DECODE_ERRORS."""

    @pytest.mark.parametrize("value", ["strict", "STRICT", " Strict "])
    def test_strict(self, value: str):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_DECODE_ERRORS=value), clear=True):
            assert load_config().decode_errors == "strict"

    @pytest.mark.parametrize("value", ["replace", "bogus", ""])
    def test_replace_fallback(self, value: str):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_DECODE_ERRORS=value), clear=True):
            assert load_config().decode_errors == "replace"


class TestNumbers:
    """Test numeric variables."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("8192", 8192),
            ("0", 1),
            ("-5", 1),
            (str(MAX_CHUNK_SIZE * 4), MAX_CHUNK_SIZE),
            ("abc", DEFAULT_CHUNK_SIZE),
        ],
    )
    def test_chunk_size(self, value: str, expected: int):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_CHUNK_SIZE=value), clear=True):
            assert load_config().chunk_size == expected

    def test_timeouts(self):
        env = clean_env(STREAMCMD_TERM_TIMEOUT="0.25", STREAMCMD_KILL_TIMEOUT="3")
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config()

        assert config.term_timeout == 0.25
        assert config.kill_timeout == 3.0

    @pytest.mark.parametrize("value", ["-1", "soon"])
    def test_invalid_timeout_uses_default(self, value: str):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_TERM_TIMEOUT=value), clear=True):
            assert load_config().term_timeout == 2.0


class TestLogDebug:
    """Test STREAMCMD_LOG_DEBUG."""

    @pytest.mark.parametrize("value", ["true", "1", "yes", "ON"])
    def test_enabled_sets_log_file(self, value: str):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_LOG_DEBUG=value), clear=True):
            config = load_config()

        assert config.log_debug is True
        assert config.log_file is not None
        assert Path(config.log_file).parent.name == "streamcmd"
        assert Path(config.log_file).name.startswith("streamcmd_debug_")

    @pytest.mark.parametrize("value", ["false", "0", "no", ""])
    def test_disabled(self, value: str):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_LOG_DEBUG=value), clear=True):
            assert load_config().log_debug is False


class TestGlobalConfig:
    """Test the cached global instance."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload_config_reads_environment(self):
        with mock.patch.dict(os.environ, clean_env(STREAMCMD_CHUNK_SIZE="123"), clear=True):
            config = reload_config()
            assert config.chunk_size == 123
            assert get_config() is config
        reload_config()
