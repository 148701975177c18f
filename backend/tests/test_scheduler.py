"""
Tests for the Scheduler Loop.

Requires Python 3.11+.
"""

import io

import pytest

from runner.scheduler import Scheduler
from utils.errors import CommandSpawnError
from watcher.aggregator import AggregatorState, ChangeAggregator

from conftest import FakeClock, RecordingRunner


def make_scheduler(
    aggregator: ChangeAggregator,
    runner,
    clock: FakeClock,
    poll_interval_ms: int = 1000,
    quiet: bool = False,
) -> tuple[Scheduler, io.StringIO]:
    out = io.StringIO()
    scheduler = Scheduler(
        aggregator,
        runner,
        poll_interval_ms=poll_interval_ms,
        quiet=quiet,
        clock=clock,
        sleep=clock.sleep,
        out=out,
    )
    return scheduler, out


class TestPollOnce:
    """Test cases for a single poll."""

    def test_idle_poll_does_nothing(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test that nothing runs without a change."""
        runner = RecordingRunner(clock)
        scheduler, out = make_scheduler(aggregator, runner, clock)

        assert scheduler.poll_once() is False
        assert runner.calls == []
        assert out.getvalue() == ""

    def test_settled_change_runs_command(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test the change line and the run."""
        runner = RecordingRunner(clock)
        scheduler, out = make_scheduler(aggregator, runner, clock)
        aggregator.record_change("sub/a.txt", 0)
        clock.now = 1000

        assert scheduler.poll_once() is True
        assert runner.calls == [1000]
        assert out.getvalue() == "change detected:sub/a.txt\n"

    def test_quiet_suppresses_change_line(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test the quiet flag."""
        runner = RecordingRunner(clock)
        scheduler, out = make_scheduler(aggregator, runner, clock, quiet=True)
        aggregator.record_change("a.txt", 0)
        clock.now = 1000

        assert scheduler.poll_once() is True
        assert runner.calls == [1000]
        assert out.getvalue() == ""

    def test_debounce_override(self, clock: FakeClock):
        """Test that the scheduler can override the aggregator's interval."""
        aggregator = ChangeAggregator(debounce_ms=1000)
        runner = RecordingRunner(clock)
        scheduler = Scheduler(aggregator, runner, debounce_ms=200, clock=clock, out=io.StringIO())
        aggregator.record_change("a.txt", 0)
        clock.now = 200

        assert scheduler.poll_once() is True

    def test_invalid_poll_interval(self, aggregator: ChangeAggregator):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            Scheduler(aggregator, RecordingRunner(), poll_interval_ms=0)


class TestRunForever:
    """Test cases for the poll loop."""

    def test_burst_scenario_fine_polling(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test three writes at 0, 100 and 300 ms fire once at 1300 ms."""
        runner = RecordingRunner(clock)
        scheduler, out = make_scheduler(aggregator, runner, clock, poll_interval_ms=100)
        writes = {0, 100, 300}

        for now in range(0, 3001, 100):
            clock.now = now
            if now in writes:
                aggregator.record_change("a.txt", now)
            scheduler.poll_once()

        assert runner.calls == [1300]
        assert out.getvalue() == "change detected:a.txt\n"

    def test_burst_scenario_reference_polling(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test the same burst with 1 s polling fires at the first poll after 1300 ms."""
        runner = RecordingRunner(clock)
        scheduler, _ = make_scheduler(aggregator, runner, clock)
        for now in (0, 100, 300):
            aggregator.record_change("a.txt", now)
        clock.now = 300

        scheduler.run_forever(max_iterations=4)

        # Polls at 1300, 2300, 3300, 4300
        assert runner.calls == [1300]
        assert clock.now == 4300

    def test_sleeps_before_each_poll(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test the loop cadence."""
        sleeps: list[float] = []

        def sleep(seconds: float) -> None:
            sleeps.append(seconds)

        scheduler = Scheduler(
            aggregator, RecordingRunner(), poll_interval_ms=250, clock=clock, sleep=sleep
        )
        scheduler.run_forever(max_iterations=3)

        assert sleeps == [0.25, 0.25, 0.25]

    def test_no_overlap_and_change_during_run_is_queued(
        self, aggregator: ChangeAggregator, clock: FakeClock
    ):
        """Test that a change during a run fires once, after the run and the debounce."""

        class SlowRunner:
            def __init__(self) -> None:
                self.in_flight = False
                self.calls: list[int] = []

            def run(self) -> int:
                assert not self.in_flight
                self.in_flight = True
                self.calls.append(clock.now)
                if len(self.calls) == 1:
                    # The command itself touches a watched file
                    aggregator.record_change("b.txt", clock.now)
                clock.now += 500
                self.in_flight = False
                return 0

        runner = SlowRunner()
        scheduler, out = make_scheduler(aggregator, runner, clock)
        aggregator.record_change("a.txt", 0)

        scheduler.run_forever(max_iterations=5)

        # Poll at 1000 runs until 1500; next poll at 2500 sees b.txt settled
        assert runner.calls == [1000, 2500]
        assert out.getvalue() == "change detected:a.txt\nchange detected:b.txt\n"
        assert aggregator.state is AggregatorState.IDLE

    def test_spawn_failure_ends_loop(self, aggregator: ChangeAggregator, clock: FakeClock):
        """Test that a spawn error propagates out of the loop."""

        class FailingRunner:
            def run(self) -> int:
                raise CommandSpawnError("missing", FileNotFoundError(2, "No such file or directory"))

        scheduler, _ = make_scheduler(aggregator, FailingRunner(), clock)
        aggregator.record_change("a.txt", 0)

        with pytest.raises(CommandSpawnError):
            scheduler.run_forever(max_iterations=10)
