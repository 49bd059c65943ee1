"""
hard_restart.py
- Fallback when a soft label update cannot be trusted: relaunch the whole agent.
- The replacement re-reads the label file and pushes it on startup.
- The current process only launches the replacement; it never waits for or checks it.
"""

import os

from loguru import logger

from label_watcher.lib.common.process_helpers import (
    ExecutableDescriptor,
    ExecutableResolutionError,
    spawn_detached,
)

LOG_FILE_ENV = "LOG_FILE"


class ProcessRelauncher:
    """
    Args:
        descriptor (ExecutableDescriptor): Resolves the launch command of this process.
        log_file (str): Log file the current process writes to, passed on to the replacement.
        spawn: Callable(command, env) starting a detached process.
    """

    def __init__(self, descriptor=None, log_file=None, spawn=spawn_detached):
        self.descriptor = descriptor or ExecutableDescriptor()
        self.log_file = log_file
        self.spawn = spawn

    def build_environment(self):
        env = dict(os.environ)
        if self.log_file:
            env[LOG_FILE_ENV] = self.log_file
        else:
            logger.warning(
                "[hard_restart] NOTE: No log file is configured, but the label file has changed. "
                "The new agent instance will only log to its console. It will keep working, "
                "but nothing will be written to disk."
            )
        return env

    def restart(self, startup_args):
        """
        Launch a replacement process with the original arguments.

        Returns:
            bool: True if the replacement was launched.
        """
        try:
            command = self.descriptor.resolve_launch_command()
        except ExecutableResolutionError as e:
            logger.critical(f"[hard_restart] ERROR: Unable to determine the current executable, agent will stay stopped: {e}")
            return False

        command = command + list(startup_args)
        env = self.build_environment()
        logger.info(f"[hard_restart] Invoking: {' '.join(command)}")

        try:
            self.spawn(command, env=env)
        except OSError as e:
            logger.critical(f"[hard_restart] ERROR: Failed to launch replacement agent, agent will stay stopped: {e}")
            return False

        logger.info("[hard_restart] New agent instance started, ignore the shutdown warning that follows.")
        return True
