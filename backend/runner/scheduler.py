"""
Rewatch Scheduler Loop.

Polls the change aggregator at a fixed interval and runs the command
once per settled change. The loop is the aggregator's only consumer
and the only caller of the runner, so runs never overlap.
Requires Python 3.11+.
"""

import sys
import time
from collections.abc import Callable
from typing import TextIO

from runner.command_runner import CommandRunner
from utils.logger import LoggerMixin
from watcher.aggregator import ChangeAggregator, now_ms

DEFAULT_POLL_INTERVAL_MS = 1000


class Scheduler(LoggerMixin):
    """
    Fixed-interval poll loop.

    A settled change is picked up by the first poll at or after its
    deadline, so the extra latency is at most one poll interval.
    """

    def __init__(
        self,
        aggregator: ChangeAggregator,
        runner: CommandRunner,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        debounce_ms: int | None = None,
        quiet: bool = False,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
        out: TextIO | None = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            aggregator: Source of settled changes
            runner: Runs the command for each settled change
            poll_interval_ms: Sleep between polls in milliseconds
            debounce_ms: Overrides the aggregator's debounce interval
            quiet: Suppress the "change detected" line
            clock: Millisecond clock
            sleep: Sleep function taking seconds
            out: Stream for change lines (defaults to stdout)
        """
        if poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be > 0, got {poll_interval_ms}")
        self._aggregator = aggregator
        self._runner = runner
        self._poll_interval = poll_interval_ms / 1000.0
        self._debounce_ms = debounce_ms
        self._quiet = quiet
        self._clock = clock
        self._sleep = sleep
        self._out = out

    def poll_once(self) -> bool:
        """
        Check for a settled change and run the command if there is one.

        Returns:
            True if the command was run
        """
        path = self._aggregator.try_consume(self._clock(), self._debounce_ms)
        if path is None:
            return False

        if not self._quiet:
            out = self._out or sys.stdout
            print(f"change detected:{path}", file=out, flush=True)

        self._runner.run()
        return True

    def run_forever(self, max_iterations: int | None = None) -> None:
        """
        Sleep, poll, repeat.

        Args:
            max_iterations: Stop after this many polls; None loops until
                the process is stopped
        """
        self.log.info(
            "scheduler_started",
            poll_interval_ms=int(self._poll_interval * 1000),
            debounce_ms=(
                self._aggregator.debounce_ms if self._debounce_ms is None else self._debounce_ms
            ),
        )

        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            self._sleep(self._poll_interval)
            self.poll_once()
            iterations += 1
