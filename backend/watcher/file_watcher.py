"""
Rewatch File Watcher.

Cross-platform file system monitoring using watchdog. Events are
relativized against the watch root, filtered by the glob matcher and
recorded in the change aggregator.
Requires Python 3.11+.
"""

import os
from collections.abc import Callable, Iterable
from pathlib import Path, PurePath
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from matcher.glob_matcher import GlobMatcher
from utils.config import get_settings
from utils.errors import WatchSetupError
from utils.logger import LoggerMixin
from watcher.aggregator import ChangeAggregator, now_ms


def resolve_root(directory: str | Path) -> Path:
    """
    Canonicalize the watch root.

    Raises:
        WatchSetupError: If the directory does not exist or is not a directory
    """
    try:
        root = Path(directory).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise WatchSetupError(f"invalid watch directory:{directory}") from e
    if not root.is_dir():
        raise WatchSetupError(f"invalid watch directory:{directory}")
    return root


class ChangeEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Forwards matching watchdog events to a ChangeAggregator.

    Runs on watchdog's dispatcher thread. A failure on one event is
    logged and the event dropped.
    """

    def __init__(
        self,
        root_path: Path,
        matcher: GlobMatcher,
        aggregator: ChangeAggregator,
        clock: Callable[[], int] = now_ms,
        ignored_event_types: Iterable[str] = (),
    ) -> None:
        """
        Initialize the handler.

        Args:
            root_path: Canonical watch root
            matcher: Compiled pattern applied to root-relative paths
            aggregator: Receives matching changes
            clock: Millisecond clock used to timestamp changes
            ignored_event_types: watchdog event types to skip entirely
        """
        super().__init__()
        self._root_path = root_path
        self._matcher = matcher
        self._aggregator = aggregator
        self._clock = clock
        self._ignored_event_types = frozenset(ignored_event_types)

    def relative_path(self, path: str) -> str | None:
        """
        Express an event path relative to the watch root, "/"-separated.

        Returns None for paths outside the root and for the root itself.
        """
        try:
            relative = PurePath(path).relative_to(self._root_path)
        except ValueError:
            self.log.warning("event_outside_root", path=path, root=str(self._root_path))
            return None
        if not relative.parts:
            return None
        return "/".join(relative.parts)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle every event type; moves report both ends."""
        if event.event_type in self._ignored_event_types:
            return

        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(dest_path)

        for raw_path in paths:
            path = os.fsdecode(raw_path)
            try:
                self._handle_path(path, event.event_type)
            except Exception as e:
                self.log.error(
                    "event_handling_failed",
                    path=path,
                    event_type=event.event_type,
                    error=str(e),
                )

    def _handle_path(self, path: str, event_type: str) -> None:
        relative = self.relative_path(path)
        if relative is None or not self._matcher.matches(relative):
            return

        self.log.debug("file_changed", path=relative, event_type=event_type)
        self._aggregator.record_change(relative, self._clock())


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree for changes matching a glob pattern.

    Uses a watchdog Observer, so events are delivered on watchdog's own
    threads and never wait on the scheduler loop.
    """

    def __init__(
        self,
        root_path: str | Path,
        matcher: GlobMatcher,
        aggregator: ChangeAggregator,
        clock: Callable[[], int] = now_ms,
        ignored_event_types: Iterable[str] | None = None,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Directory to watch; canonicalized immediately
            matcher: Compiled glob pattern
            aggregator: Receives matching changes
            clock: Millisecond clock used to timestamp changes
            ignored_event_types: watchdog event types to skip

        Raises:
            WatchSetupError: If root_path is not an existing directory
        """
        if ignored_event_types is None:
            ignored_event_types = get_settings().watch.ignored_event_types

        self._root_path = resolve_root(root_path)
        self._handler = ChangeEventHandler(
            root_path=self._root_path,
            matcher=matcher,
            aggregator=aggregator,
            clock=clock,
            ignored_event_types=ignored_event_types,
        )
        self._observer: Observer | None = None
        self._running = False

    def start(self) -> "FileWatcher":
        """
        Start watching for file changes.

        Raises:
            WatchSetupError: If the watch subsystem cannot be initialized
        """
        if self._running:
            return self

        try:
            observer = Observer()
            observer.schedule(
                self._handler,
                str(self._root_path),
                recursive=True,
            )
            observer.start()
        except OSError as e:
            raise WatchSetupError(f"failed to watch directory:{e}") from e

        self._observer = observer
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
        )
        return self

    def stop(self) -> None:
        """Stop watching for file changes."""
        if not self._running:
            return

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        self._running = False
        self.log.info("file_watcher_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        return self.start()

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()

