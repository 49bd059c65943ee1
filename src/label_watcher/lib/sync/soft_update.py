"""
soft_update.py
- Reconciles the controller's view of this agent's labels without restarting the agent.
- Sequence (one session for the whole attempt):
    1. fetch the controller's current labels
    2. remove them in batches (sentinel label excluded)
    3. add the new label set in batches
- Any failure aborts the attempt; partial removal is not rolled back.
"""

from dataclasses import dataclass
from enum import Enum

import requests
from loguru import logger
from tenacity import RetryError

from label_watcher.lib.sync.label_batcher import send_in_batches
from label_watcher.lib.sync.label_client import LabelClientError, RemoteLabelClient


class OutcomeKind(Enum):
    SUCCESS = "success"
    SOFT_UPDATE_FAILED = "soft_update_failed"
    TRANSPORT_FAILED = "transport_failed"


@dataclass(frozen=True)
class UpdateOutcome:
    kind: OutcomeKind
    reason: str = ""

    @property
    def ok(self):
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls):
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def soft_update_failed(cls, reason):
        return cls(OutcomeKind.SOFT_UPDATE_FAILED, reason)

    @classmethod
    def transport_failed(cls, reason):
        return cls(OutcomeKind.TRANSPORT_FAILED, reason)


def strip_sentinel(labels, sentinel):
    """Split the controller's label string, dropping every occurrence of the sentinel token."""
    return [label for label in labels.split() if label != sentinel]


def soft_label_update(target, options, agent_name, new_labels, client_factory=RemoteLabelClient):
    """
    Replace the agent's labels on the controller with `new_labels`.

    Args:
        target (str): Controller base URL.
        options (Options): Client, batching and sentinel settings.
        agent_name (str): Agent whose labels are updated.
        new_labels (str): Desired label file contents.
        client_factory: Callable building a RemoteLabelClient-compatible context manager.

    Returns:
        UpdateOutcome: SUCCESS only if the fetch and every batch succeeded.
    """
    logger.info(f"[soft_update] Attempting soft label update for {agent_name} on {target} (no agent restart)")

    with client_factory(target, options) as client:
        step = "fetching labels from"
        try:
            logger.debug(f"[soft_update] Getting current labels from {target}")
            current = client.get_labels(agent_name)

            old_labels = strip_sentinel(current, options.sentinel_label)
            logger.debug(f"[soft_update] Labels to be removed: {' '.join(old_labels)}")
            step = "removing labels from"
            removed = send_in_batches(
                old_labels,
                lambda batch: client.remove_labels(agent_name, batch),
                limit=options.batch_limit,
                separator=options.label_separator,
            )

            wanted = new_labels.split()
            logger.debug(f"[soft_update] Labels to be added: {' '.join(wanted)}")
            step = "appending labels to"
            added = send_in_batches(
                wanted,
                lambda batch: client.add_labels(agent_name, batch),
                limit=options.batch_limit,
                separator=options.label_separator,
            )
        except requests.RequestException as e:
            msg = f"Transport error when {step} {target}: {e}"
            logger.error(f"[soft_update] {msg}")
            return UpdateOutcome.transport_failed(msg)
        except RetryError as e:
            last = e.last_attempt.exception()
            msg = f"Retries exhausted when {step} {target}: {last}"
            logger.error(f"[soft_update] {msg}")
            return UpdateOutcome.soft_update_failed(msg)
        except LabelClientError as e:
            msg = f"Controller error when {step} {target}: {e}"
            logger.error(f"[soft_update] {msg}")
            return UpdateOutcome.soft_update_failed(msg)
        except Exception as e:
            msg = f"Unexpected error when {step} {target}: {e}"
            logger.exception(f"[soft_update] {msg}")
            return UpdateOutcome.soft_update_failed(msg)

    logger.info(f"[soft_update] ✅ Labels for {agent_name} replaced ({removed} removal batch(es), {added} addition batch(es))")
    return UpdateOutcome.success()
