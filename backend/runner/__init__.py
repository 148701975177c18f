"""
Rewatch Runner Package.

Scheduler loop and command execution.
Requires Python 3.11+.
"""

from runner.command_runner import CommandRunner
from runner.scheduler import Scheduler

__all__ = ["CommandRunner", "Scheduler"]
