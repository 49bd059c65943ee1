"""
process_helpers.py
- Resolves how the current agent process was launched so it can be started again.
- Spawns detached replacement processes.
"""

import os
import subprocess
import sys
from pathlib import Path


class ExecutableResolutionError(Exception):
    pass


class ExecutableDescriptor:
    """
    Describes the packaged artifact this process runs from.

    Accepted artifacts:
        - a frozen executable (PyInstaller and friends set sys.frozen)
        - a zipapp (*.pyz), relaunched with the current interpreter
        - an installed console script: an executable file that is not a .py source

    Running from a source tree (python -m ..., python main.py) is not relaunchable.
    """

    def __init__(self, argv0=None, interpreter=None, frozen=None):
        self.argv0 = sys.argv[0] if argv0 is None else argv0
        self.interpreter = interpreter or sys.executable
        self.frozen = getattr(sys, "frozen", False) if frozen is None else frozen

    def resolve_launch_command(self):
        """
        Return the command prefix that starts a fresh copy of this program.

        Raises:
            ExecutableResolutionError: If the artifact cannot be located or is not packaged.
        """
        if self.frozen:
            if not self.interpreter:
                raise ExecutableResolutionError("Frozen executable path is unknown")
            return [self.interpreter]

        if not self.argv0 or self.argv0 == "-c":
            raise ExecutableResolutionError("Unable to determine the current program")

        path = Path(self.argv0).resolve()
        if not path.is_file():
            raise ExecutableResolutionError(f"Current program {path} does not exist")

        if path.suffix == ".pyz":
            if not self.interpreter:
                raise ExecutableResolutionError("Python interpreter path is unknown")
            return [self.interpreter, str(path)]

        if path.suffix == ".py":
            raise ExecutableResolutionError(f"{path.name} is a source file, not a packaged executable")

        if not os.access(path, os.X_OK):
            raise ExecutableResolutionError(f"{path} is not executable")

        return [str(path)]


def spawn_detached(command, env=None):
    """Start `command` in its own session without waiting for it."""
    return subprocess.Popen(
        command,
        env=env,
        stdin=subprocess.DEVNULL,
        close_fds=True,
        start_new_session=True,
    )
