"""
Rewatch Error Types.

Configuration errors are raised at startup and reported once;
spawn errors end the watch loop.
Requires Python 3.11+.
"""


class RewatchError(Exception):
    """Base class for all errors reported to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(RewatchError):
    """Startup configuration is unusable; the watch loop is never entered."""


class InvalidPatternError(ConfigurationError):
    """The glob pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern:{pattern} ({reason})")
        self.pattern = pattern
        self.reason = reason


class WatchSetupError(ConfigurationError):
    """The watch root is invalid or the watch subsystem failed to start."""


class CommandSpawnError(RewatchError):
    """The external command could not be started."""

    def __init__(self, command: str, cause: OSError) -> None:
        super().__init__(f"failed to run command:{command} ({cause.strerror or cause})")
        self.command = command
        self.cause = cause
