"""streamcmd environment-variable configuration.

Environment variables:
    STREAMCMD_LOG_DEBUG: debug logging mode
        - true/1/yes/on = on (logs go to a temp file)
        - anything else = off (default, logs go to stderr)

    STREAMCMD_DECODE_ERRORS: policy for malformed output bytes
        - replace = substitute U+FFFD and warn once per stream (default)
        - strict = raise DecodeError after both streams drain

    STREAMCMD_CHUNK_SIZE: bytes per stream read
        - default 4096, clamped to 1..1048576

    STREAMCMD_TERM_TIMEOUT: seconds to wait after SIGTERM (default 2.0)

    STREAMCMD_KILL_TIMEOUT: seconds to wait after SIGKILL (default 1.0)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .types import DecodePolicy

__all__ = ["Config", "load_config", "get_config", "reload_config"]

DEFAULT_CHUNK_SIZE = 4096
MAX_CHUNK_SIZE = 1024 * 1024
DEFAULT_TERM_TIMEOUT = 2.0
DEFAULT_KILL_TIMEOUT = 1.0


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_decode_policy(value: str | None) -> DecodePolicy:
    if value and value.strip().lower() == "strict":
        return "strict"
    return "replace"


def _parse_chunk_size(value: str | None) -> int:
    if not value:
        return DEFAULT_CHUNK_SIZE
    try:
        size = int(value)
    except ValueError:
        return DEFAULT_CHUNK_SIZE
    return max(1, min(size, MAX_CHUNK_SIZE))


def _parse_timeout(value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return timeout if timeout >= 0 else default


@dataclass
class Config:
    """streamcmd configuration.

    Attributes:
        log_debug: Debug logging mode (log to temp file)
        log_file: Log file path (set automatically when log_debug=True)
        decode_errors: Default decode policy for both streams
        chunk_size: Bytes requested per stream read
        term_timeout: Seconds to wait for graceful exit on teardown
        kill_timeout: Seconds to wait for forced exit on teardown
    """

    log_debug: bool = False
    log_file: str | None = None
    decode_errors: DecodePolicy = "replace"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the system temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "streamcmd"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"streamcmd_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """Load configuration from environment variables."""
    log_debug = _parse_bool(os.environ.get("STREAMCMD_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        log_debug=log_debug,
        log_file=log_file,
        decode_errors=_parse_decode_policy(os.environ.get("STREAMCMD_DECODE_ERRORS")),
        chunk_size=_parse_chunk_size(os.environ.get("STREAMCMD_CHUNK_SIZE")),
        term_timeout=_parse_timeout(
            os.environ.get("STREAMCMD_TERM_TIMEOUT"), DEFAULT_TERM_TIMEOUT
        ),
        kill_timeout=_parse_timeout(
            os.environ.get("STREAMCMD_KILL_TIMEOUT"), DEFAULT_KILL_TIMEOUT
        ),
    )


# Lazily loaded global instance
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
