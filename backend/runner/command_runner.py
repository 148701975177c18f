"""
Rewatch Command Runner.

Spawns the configured command and waits for it to exit.
Requires Python 3.11+.
"""

import subprocess
from collections.abc import Sequence

from utils.errors import CommandSpawnError
from utils.logger import LoggerMixin


class CommandRunner(LoggerMixin):
    """
    Runs an external command synchronously.

    The child inherits stdout and stderr. Its exit status is logged
    but never treated as an error.
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        keep_going: bool = False,
    ) -> None:
        """
        Initialize the runner.

        Args:
            command: Executable name or path
            args: Arguments passed through to the command
            keep_going: Log spawn failures instead of raising
        """
        self._command = command
        self._args = list(args)
        self._keep_going = keep_going

    @property
    def argv(self) -> list[str]:
        """Full argument vector of the command."""
        return [self._command, *self._args]

    def run(self) -> int | None:
        """
        Run the command and block until it exits.

        Returns:
            The child's exit code, or None if it could not be spawned
            and keep_going is set

        Raises:
            CommandSpawnError: If the command cannot be spawned
        """
        self.log.debug("command_started", argv=self.argv)

        try:
            process = subprocess.Popen(self.argv)
        except OSError as e:
            error = CommandSpawnError(self._command, e)
            if not self._keep_going:
                raise error from e
            self.log.error("command_spawn_failed", command=self._command, error=error.message)
            return None

        returncode = process.wait()

        self.log.debug("command_finished", command=self._command, returncode=returncode)
        return returncode
