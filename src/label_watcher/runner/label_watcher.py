#!/usr/bin/env python3
"""
label_watcher.py
- Polls the agent's label file and keeps the controller's labels in sync with it.
- On change: soft update through the controller API.
- On soft update failure: hard restart of the whole agent, then this instance exits.
- Exposes basic metrics for Prometheus.
"""

import os
import threading
import time

from loguru import logger

from label_watcher.core.config_loader import read_label_file
from label_watcher.core.state import WatcherState, WatcherStatus
from label_watcher.lib.sync.hard_restart import ProcessRelauncher
from label_watcher.lib.sync.soft_update import UpdateOutcome, soft_label_update

# --- Metrics ---
label_polls_total = 0
label_read_errors_total = 0
soft_updates_total = 0
soft_update_failures_total = 0
hard_restarts_total = 0
hard_restart_failures_total = 0
soft_update_last_duration_seconds = 0.0


class LabelFileWatcher:
    """
    Watches one label file on a dedicated thread.

    Args:
        target (str): Controller base URL.
        options (Options): Labels file, poll interval and client settings.
        agent_name (str): Name the controller knows this agent by.
        startup_args (list[str]): Original command-line arguments, reused on hard restart.
        soft_update: Callable(target, options, agent_name, labels) -> UpdateOutcome.
        relauncher: Object with restart(startup_args) -> bool.
        exit_hook: Called with the exit status once the loop ends.

    Raises:
        OSError: If the label file cannot be read at construction.
    """

    def __init__(
        self,
        target,
        options,
        agent_name,
        startup_args=(),
        soft_update=soft_label_update,
        relauncher=None,
        exit_hook=os._exit,
    ):
        logger.debug(f"[label_watcher] Constructed with {options.labels_file} and args {list(startup_args)}")
        self.options = options
        self.interval = options.poll_interval
        self._soft_update = soft_update
        self._relauncher = relauncher or ProcessRelauncher(log_file=options.log_file)
        self._exit = exit_hook
        self._wakeup = threading.Event()
        self._shutdown_requested = False

        labels = read_label_file(options.labels_file)
        self.state = WatcherState(
            controller_url=target,
            agent_name=agent_name,
            labels_file=options.labels_file,
            labels=labels,
            startup_args=list(startup_args),
        )
        logger.debug(f"[label_watcher] Labels loaded: {labels.strip()}")

    # --- Owner-facing controls ---
    def wake(self):
        """Cut the current wait short and poll right away."""
        self._wakeup.set()

    def request_shutdown(self):
        """Ask the loop to stop after its current wait."""
        self._shutdown_requested = True
        self._wakeup.set()

    # --- Loop ---
    def run(self):
        if self.state.status is not WatcherStatus.IDLE:
            raise RuntimeError(f"Label watcher cannot be started from state {self.state.status.value}")

        self.state.transition(WatcherStatus.WATCHING)
        logger.info(f"[label_watcher] Running, monitoring file: {self.state.labels_file}")

        while self.state.running:
            self._wait()
            if self._shutdown_requested:
                logger.info("[label_watcher] Shutdown requested.")
                self.state.transition(WatcherStatus.TERMINATED)
                break
            try:
                self.poll_once()
            except Exception as e:
                logger.exception(f"[label_watcher] Unexpected error while checking {self.state.labels_file}: {e}")
                if self.state.status is WatcherStatus.RECONCILING_SOFT:
                    self.state.transition(WatcherStatus.WATCHING)

        logger.warning("[label_watcher] No longer running. Shutting down this instance of the agent.")
        self._exit(0)

    def _wait(self):
        logger.trace(f"[label_watcher] Sleeping {self.interval} secs")
        if self._wakeup.wait(self.interval):
            self._wakeup.clear()
            if not self._shutdown_requested:
                logger.warning("[label_watcher] Woken before the poll interval elapsed, checking labels now.")

    def poll_once(self):
        """Run one read / compare / reconcile iteration."""
        global label_polls_total, label_read_errors_total

        label_polls_total += 1
        path = self.state.labels_file
        try:
            new_labels = read_label_file(path)
        except OSError as e:
            label_read_errors_total += 1
            logger.warning(f"[label_watcher] Unable to read {path}, agent may not be reporting proper labels to {self.state.controller_url}: {e}")
            return

        if new_labels.lower() == self.state.labels.lower():
            logger.trace(f"[label_watcher] Nothing to do. {path} has not changed.")
            return

        logger.info(f"[label_watcher] NOTICE: {path} has changed.")
        self.reconcile(new_labels)

    def reconcile(self, new_labels):
        global soft_updates_total, soft_update_failures_total, soft_update_last_duration_seconds

        self.state.transition(WatcherStatus.RECONCILING_SOFT)
        start_time = time.time()
        try:
            outcome = self._soft_update(
                self.state.controller_url,
                self.options,
                self.state.agent_name,
                new_labels,
            )
        except Exception as e:
            logger.exception(f"[label_watcher] Soft label update crashed: {e}")
            outcome = UpdateOutcome.soft_update_failed(str(e))
        soft_update_last_duration_seconds = time.time() - start_time

        if outcome.ok:
            soft_updates_total += 1
            self._refresh_known_labels()
            self.state.transition(WatcherStatus.WATCHING)
            return

        soft_update_failures_total += 1
        logger.warning(
            f"[label_watcher] Soft label update failed ({outcome.kind.value}): {outcome.reason}. "
            "Forcing agent restart. This can disrupt running jobs; check the agent logs to see why this is happening."
        )
        self.hard_restart()

    def _refresh_known_labels(self):
        # The file may have changed again while the soft update was in flight.
        try:
            self.state.labels = read_label_file(self.state.labels_file)
        except OSError as e:
            logger.warning(f"[label_watcher] Unable to re-read {self.state.labels_file} after soft update: {e}")

    def hard_restart(self):
        global hard_restarts_total, hard_restart_failures_total

        self.state.transition(WatcherStatus.RECONCILING_HARD)
        logger.info(f"[label_watcher] NOTICE: {self.state.labels_file} has changed. Hard agent restart initiated.")
        hard_restarts_total += 1
        try:
            launched = self._relauncher.restart(self.state.startup_args)
        except Exception as e:
            logger.critical(f"[label_watcher] Hard restart crashed, agent will stay stopped: {e}")
            launched = False

        if not launched:
            hard_restart_failures_total += 1
        self.state.transition(WatcherStatus.TERMINATED)


def metrics_snapshot():
    return {
        "label_polls_total": label_polls_total,
        "label_read_errors_total": label_read_errors_total,
        "soft_updates_total": soft_updates_total,
        "soft_update_failures_total": soft_update_failures_total,
        "hard_restarts_total": hard_restarts_total,
        "hard_restart_failures_total": hard_restart_failures_total,
        "soft_update_last_duration_seconds": soft_update_last_duration_seconds,
    }
