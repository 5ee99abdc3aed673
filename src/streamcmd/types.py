"""Core data types.

streamcmd v0.1.0

Defines the command specification, run result, sink severities, the
per-stream pipeline configuration and the tagged keep/drop result that
line transforms return.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Literal, Union

__all__ = [
    "CommandSpec",
    "RunResult",
    "Severity",
    "Keep",
    "Drop",
    "DROP",
    "LineResult",
    "LineFilter",
    "LineTransform",
    "DecodePolicy",
    "PipelineConfig",
]


class Severity(str, Enum):
    """Sink severity selector."""

    STATUS = "status"
    ERROR = "error"
    TRACE = "trace"


@dataclass(frozen=True)
class CommandSpec:
    """Specification for a command to run.

    Attributes:
        argv: Command line arguments (first element is the executable)
        cwd: Working directory for the process (None = inherit current)
        env: Environment variables (None = inherit parent)
        silent: When False, captured stdout is echoed in synchronous mode
    """

    argv: tuple[str, ...]
    cwd: str | None = None
    env: Mapping[str, str] | None = None
    silent: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.argv, str):
            raise TypeError("argv must be a sequence of strings, not a string")
        argv = tuple(self.argv)
        if not argv:
            raise ValueError("argv must contain at least the executable")
        object.__setattr__(self, "argv", argv)
        if self.cwd is not None:
            object.__setattr__(self, "cwd", str(self.cwd))
        if self.env is not None:
            object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class RunResult:
    """Result of a synchronous run.

    Attributes:
        exit_code: Process exit code
        stdout: Captured standard output
        stderr: Captured standard error
    """

    exit_code: int
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class Keep:
    """Transform result: forward the line with ``value``."""

    value: str


@dataclass(frozen=True)
class Drop:
    """Transform result: drop the line."""


DROP = Drop()

LineResult = Union[Keep, Drop]
LineFilter = Union[re.Pattern, Callable[[str], bool]]
LineTransform = Callable[[str], Union[LineResult, str, None]]
DecodePolicy = Literal["replace", "strict"]


@dataclass(frozen=True)
class PipelineConfig:
    """Per-command configuration shared by the stdout and stderr pipelines.

    Attributes:
        filter: Inclusion predicate. A pattern string or compiled regex is
            matched with ``search``; any other callable is called with the line.
        transform: Mapping applied to included lines, returning Keep or DROP
        prefix: Prepended to every forwarded line
        trace: Forward stdout at TRACE instead of STATUS
        decode_errors: "replace" or "strict" (None = configured default)
    """

    filter: LineFilter | str | None = None
    transform: LineTransform | None = None
    prefix: str = ""
    trace: bool = False
    decode_errors: DecodePolicy | None = None
    predicate: Callable[[str], bool] | None = field(
        init=False, repr=False, compare=False, default=None
    )

    def __post_init__(self) -> None:
        line_filter = self.filter
        if isinstance(line_filter, str):
            line_filter = re.compile(line_filter)
            object.__setattr__(self, "filter", line_filter)
        if isinstance(line_filter, re.Pattern):
            pattern = line_filter
            predicate = lambda line: pattern.search(line) is not None  # noqa: E731
        else:
            predicate = line_filter
        object.__setattr__(self, "predicate", predicate)
        if self.decode_errors not in (None, "replace", "strict"):
            raise ValueError(f"invalid decode_errors: {self.decode_errors!r}")
