"""
Rewatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

from pathlib import Path
from typing import Generator

import pytest
import structlog

from matcher.glob_matcher import GlobMatcher, compile_pattern
from watcher.aggregator import ChangeAggregator


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def sleep(self, seconds: float) -> None:
        """Stand-in for time.sleep that advances the clock."""
        self.now += round(seconds * 1000)


class RecordingRunner:
    """CommandRunner stand-in that remembers when it ran."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.calls: list[int | None] = []

    def run(self) -> int:
        self.calls.append(self.clock() if self.clock is not None else None)
        return 0


@pytest.fixture(autouse=True, scope="session")
def quiet_structlog() -> Generator[None, None, None]:
    """Keep structlog output out of captured stdout."""
    structlog.configure(
        processors=[],
        logger_factory=structlog.ReturnLoggerFactory(),
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def aggregator() -> ChangeAggregator:
    """An aggregator with the reference 1000 ms debounce."""
    return ChangeAggregator(debounce_ms=1000)


@pytest.fixture
def txt_matcher() -> GlobMatcher:
    """Matcher for *.txt files."""
    return compile_pattern("*.txt")


@pytest.fixture
def watch_root(tmp_path: Path) -> Path:
    """A watch root containing a.txt and a nested sub/b.txt."""
    root = tmp_path / "watched"
    root.mkdir()
    (root / "a.txt").write_text("a")
    sub = root / "sub"
    sub.mkdir()
    (sub / "b.txt").write_text("b")
    return root.resolve()
