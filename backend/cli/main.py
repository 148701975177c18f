"""
Rewatch Command Line Interface.

Runs a command whenever files matching a glob pattern change.
Requires Python 3.11+.

Usage:
    rewatch [-i] [-q] [-d DIR] PATTERN COMMAND [ARGS...]
    rewatch -d src "**/*.py" pytest -x
"""

import argparse
import sys

from pydantic import ValidationError

from matcher.glob_matcher import compile_pattern
from runner.command_runner import CommandRunner
from runner.scheduler import Scheduler
from utils.config import MAX_INTERVAL_MS, MIN_POLL_INTERVAL_MS, get_settings
from utils.errors import RewatchError
from utils.logger import configure_logging, get_logger
from watcher.aggregator import ChangeAggregator
from watcher.file_watcher import FileWatcher, resolve_root


logger = get_logger("rewatch")


def _bounded_int(low: int, high: int):
    """Argument type accepting integers in [low, high], as the settings do."""

    def parse(value: str) -> int:
        number = int(value)
        if not low <= number <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}: {value}")
        return number

    return parse


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rewatch",
        description="Run command on files changed",
    )
    parser.add_argument(
        "-i",
        "--immediate",
        action="store_true",
        help="Run command immediately after program start even though no file changed",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not print change messages",
    )
    parser.add_argument(
        "-d",
        "--directory",
        default=".",
        help="Directory to watch (default: current directory)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=_bounded_int(0, MAX_INTERVAL_MS),
        default=None,
        help="Quiet period in milliseconds before a change settles (default: 1000)",
    )
    parser.add_argument(
        "--poll-interval-ms",
        type=_bounded_int(MIN_POLL_INTERVAL_MS, MAX_INTERVAL_MS),
        default=None,
        help="How often to check for settled changes, in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--literal-separator",
        action="store_true",
        default=None,
        help="Keep * and ? from matching the path separator",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        default=None,
        help="Log a command that fails to start instead of exiting",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    parser.add_argument(
        "pattern",
        help="File pattern to watch, unix-style glob syntax",
    )
    parser.add_argument(
        "command",
        help="Command to execute when files changed",
    )
    parser.add_argument(
        "command_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the command",
    )
    return parser


def execute(args: argparse.Namespace, max_iterations: int | None = None) -> None:
    """
    Validate the configuration, start watching and run the poll loop.

    Args:
        args: Parsed command line
        max_iterations: Bound on scheduler polls; None runs until killed

    Raises:
        ConfigurationError: If the directory, pattern or watch setup is invalid
        CommandSpawnError: If the command cannot be started
    """
    settings = get_settings().watch

    def pick(value, default):
        return default if value is None else value

    debounce_ms = pick(args.debounce_ms, settings.debounce_ms)
    poll_interval_ms = pick(args.poll_interval_ms, settings.poll_interval_ms)
    literal_separator = pick(args.literal_separator, settings.literal_separator)
    keep_going = pick(args.keep_going, settings.keep_going)

    root = resolve_root(args.directory)
    matcher = compile_pattern(args.pattern, literal_separator=literal_separator)

    aggregator = ChangeAggregator(debounce_ms=debounce_ms)
    runner = CommandRunner(args.command, args.command_args, keep_going=keep_going)
    scheduler = Scheduler(
        aggregator,
        runner,
        poll_interval_ms=poll_interval_ms,
        quiet=args.quiet,
    )

    logger.info(
        "watching",
        root=str(root),
        pattern=args.pattern,
        command=runner.argv,
    )

    with FileWatcher(root, matcher, aggregator):
        if args.immediate:
            runner.run()
        scheduler.run_forever(max_iterations=max_iterations)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        configure_logging("DEBUG" if args.verbose else None)
        execute(args)
    except RewatchError as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"invalid configuration:{e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
