"""
label_client.py
- Authenticated HTTP client for the controller's per-agent label endpoints.
- Fetches the controller's recorded labels and appends / removes label batches.
- Mutation requests are retried with tenacity on transient controller errors.
"""

import xml.etree.ElementTree as ET

import requests
from loguru import logger
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from label_watcher.core.constants import (
    ADD_LABELS_PATH,
    GET_LABELS_PATH,
    REMOVE_LABELS_PATH,
    RETRYABLE_STATUS_CODES,
)


class LabelClientError(Exception):
    """Base class for controller label errors."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class LabelQueryError(LabelClientError):
    """The controller refused to report the agent's current labels."""


class MalformedResponseError(LabelClientError):
    """The controller's label document could not be parsed."""


class TransientLabelError(LabelClientError):
    """A mutation failed with a status worth retrying (429 / 5xx)."""


class FatalLabelError(LabelClientError):
    """A mutation failed with a status that retrying will not fix."""


def parse_labels_document(content):
    """
    Extract the `labels` field from the controller's XML label document.

    Raises:
        MalformedResponseError: If the payload is not XML or has no labels element.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise MalformedResponseError(f"Invalid XML: {e}") from e

    element = root if root.tag == "labels" else root.find(".//labels")
    if element is None:
        raise MalformedResponseError(f"No <labels> element in <{root.tag}> document")
    return element.text or ""


class RemoteLabelClient:
    """
    One authenticated session against a controller.

    Args:
        controller_url (str): Controller base URL.
        options (Options): Credentials, TLS, timeout and retry settings.
        session (requests.Session): Optional pre-built session, mainly for tests.
    """

    def __init__(self, controller_url, options, session=None):
        self.controller_url = controller_url.rstrip("/")
        self.timeout = options.request_timeout
        self.max_retries = max(1, options.max_retries)
        self.retry_wait = options.retry_wait
        self.session = session or requests.Session()
        self.session.auth = options.auth
        self.session.verify = options.verify

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        self.session.close()

    def get_labels(self, agent_name):
        """
        Return the controller's current label string for an agent.

        Raises:
            LabelQueryError: Non-200 response.
            MalformedResponseError: Unparsable document.
            requests.RequestException: Transport failure.
        """
        url = self.controller_url + GET_LABELS_PATH
        response = self.session.get(url, params={"name": agent_name}, timeout=self.timeout)
        if response.status_code != 200:
            logger.error(f"[label_client] Failed to retrieve labels from {self.controller_url} -- Response code: {response.status_code}")
            raise LabelQueryError(
                f"Unable to acquire labels from {self.controller_url} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return parse_labels_document(response.content)

    def add_labels(self, agent_name, labels):
        self._post_with_retry(ADD_LABELS_PATH, agent_name, labels)

    def remove_labels(self, agent_name, labels):
        self._post_with_retry(REMOVE_LABELS_PATH, agent_name, labels)

    def _post_with_retry(self, path, agent_name, labels):
        """
        POST one label batch, retrying transient failures.

        Raises:
            tenacity.RetryError: Transient failures exhausted every attempt.
            FatalLabelError: Non-retryable response status.
            requests.RequestException: Transport failure.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_wait, max=30),
            retry=retry_if_exception_type(TransientLabelError),
        )
        for attempt in retrying:
            with attempt:
                self._post_labels(path, agent_name, labels)

    def _post_labels(self, path, agent_name, labels):
        url = self.controller_url + path
        response = self.session.post(
            url,
            params={"name": agent_name, "labels": labels},
            timeout=self.timeout,
        )
        if response.status_code == 200:
            logger.debug(f"[label_client] {path} accepted {len(labels.split())} label(s) for {agent_name}")
            return

        msg = f"Failed to update labels via {url}. Response code: {response.status_code}"
        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(f"[label_client] {msg} (will retry)")
            raise TransientLabelError(msg, status_code=response.status_code)
        logger.error(f"[label_client] {msg}")
        raise FatalLabelError(msg, status_code=response.status_code)
