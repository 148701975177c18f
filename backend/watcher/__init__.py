"""
Rewatch File Watcher Package.

File system monitoring and change debouncing.
Requires Python 3.11+.
"""

from watcher.aggregator import AggregatorState, ChangeAggregator, ChangeRecord, now_ms
from watcher.file_watcher import ChangeEventHandler, FileWatcher

__all__ = [
    "AggregatorState",
    "ChangeAggregator",
    "ChangeRecord",
    "now_ms",
    "ChangeEventHandler",
    "FileWatcher",
]
