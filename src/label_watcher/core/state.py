"""
state.py
- Holds the watcher's owned state and its lifecycle status.
- Status transitions are validated against an explicit table:
    IDLE -> WATCHING -> RECONCILING_SOFT -> WATCHING
                                         -> RECONCILING_HARD -> TERMINATED
    WATCHING -> TERMINATED (shutdown request)

Only the watcher loop mutates this state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class WatcherStatus(Enum):
    IDLE = "idle"
    WATCHING = "watching"
    RECONCILING_SOFT = "reconciling_soft"
    RECONCILING_HARD = "reconciling_hard"
    TERMINATED = "terminated"


ALLOWED_TRANSITIONS = {
    WatcherStatus.IDLE: {WatcherStatus.WATCHING},
    WatcherStatus.WATCHING: {WatcherStatus.RECONCILING_SOFT, WatcherStatus.TERMINATED},
    WatcherStatus.RECONCILING_SOFT: {WatcherStatus.WATCHING, WatcherStatus.RECONCILING_HARD},
    WatcherStatus.RECONCILING_HARD: {WatcherStatus.TERMINATED},
    WatcherStatus.TERMINATED: set(),
}


class InvalidTransition(Exception):
    def __init__(self, current, target):
        super().__init__(f"Cannot move watcher from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class WatcherState:
    controller_url: str
    agent_name: str
    labels_file: str
    labels: str
    startup_args: List[str] = field(default_factory=list)
    status: WatcherStatus = WatcherStatus.IDLE

    @property
    def running(self):
        return self.status not in (WatcherStatus.IDLE, WatcherStatus.TERMINATED)

    def transition(self, target):
        """
        Move to a new status.

        Raises:
            InvalidTransition: If the move is not in ALLOWED_TRANSITIONS.
        """
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransition(self.status, target)
        self.status = target

    def as_dict(self):
        return {
            "status": self.status.value,
            "controller_url": self.controller_url,
            "agent_name": self.agent_name,
            "labels_file": self.labels_file,
            "labels": self.labels.split(),
        }
