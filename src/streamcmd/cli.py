"""streamcmd command line.

Usage:
    streamcmd [--cwd DIR] [--filter REGEX] [--prefix TEXT] [--trace]
              [--sync] [--no-silent] [-v] -- COMMAND [ARGS...]

Exit status is the child's exit code, 127 if it could not be launched,
or 1 if its output could not be decoded.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import Config, get_config
from .context import ExecutionContext
from .errors import CommandFailedError, DecodeError, LaunchError
from .runner import CommandRunner
from .sink import ConsoleSink

__all__ = ["main", "build_parser", "configure_logging"]

logger = logging.getLogger(__name__)

EXIT_LAUNCH_FAILED = 127
EXIT_DECODE_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamcmd",
        description="Run a command and stream its output line by line.",
    )
    parser.add_argument("--cwd", default=None, help="Working directory (default: inherit)")
    parser.add_argument("--filter", default=None, help="Only forward lines matching this regex")
    parser.add_argument("--prefix", default="", help="Text prepended to every forwarded line")
    parser.add_argument("--trace", action="store_true", help="Forward stdout at trace severity")
    parser.add_argument("--sync", action="store_true", help="Capture output, print when done")
    parser.add_argument(
        "--no-silent",
        dest="silent",
        action="store_false",
        help="With --sync, echo captured stdout",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show trace lines")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command and arguments")
    return parser


def configure_logging(config: Config, verbose: bool = False) -> None:
    """Route streamcmd logs to stderr, or to a temp file in debug mode."""
    log_handlers: list[logging.Handler] = []
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if config.log_debug and config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        log_level = logging.DEBUG
    else:
        handler = logging.StreamHandler(sys.stderr)
        log_level = logging.DEBUG if verbose else logging.INFO
    handler.setFormatter(formatter)
    log_handlers.append(handler)

    # Third-party libraries stay at WARNING
    logging.basicConfig(level=logging.WARNING, handlers=log_handlers)
    logging.getLogger("streamcmd").setLevel(log_level)


def main(argv: list[str] | None = None) -> int:
    """Entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("a command is required")

    config = get_config()
    configure_logging(config, verbose=args.verbose)
    logger.debug(f"streamcmd starting: {config}")

    runner = CommandRunner(ExecutionContext(sink=ConsoleSink(verbose=args.verbose)), config)

    try:
        if args.sync:
            result = runner.cmd(command, cwd=args.cwd, silent=args.silent)
            return result.exit_code
        return asyncio.run(
            runner.run_command_and_stream_output(
                command,
                cwd=args.cwd,
                prefix=args.prefix,
                trace=args.trace,
                filter=args.filter,
            )
        )
    except CommandFailedError as e:
        return e.exit_code
    except LaunchError as e:
        print(f"streamcmd: {e}", file=sys.stderr)
        return EXIT_LAUNCH_FAILED
    except DecodeError as e:
        print(f"streamcmd: {e}", file=sys.stderr)
        return EXIT_DECODE_FAILED
