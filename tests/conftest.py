"""
Pytest configuration and fixtures for label watcher tests.

Provides label files, resolved options, a recording controller client and a
loguru capture sink.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from loguru import logger

from label_watcher.core.options import Options


# ============================================================================
# Files & Options
# ============================================================================


@pytest.fixture
def labels_file(tmp_path) -> Path:
    path = tmp_path / "labels"
    path.write_text("a b", encoding="utf-8")
    return path


@pytest.fixture
def options(labels_file) -> Options:
    """Options with zero retry waits and a short poll interval."""
    return Options(
        controller_url="http://controller.test",
        agent_name="agent-1",
        labels_file=str(labels_file),
        max_retries=3,
        retry_wait=0,
        poll_interval=0.01,
        request_timeout=5,
    )


# ============================================================================
# Controller Fakes
# ============================================================================


class RecordingClient:
    """
    Stand-in for RemoteLabelClient that records every call in order.

    Attributes:
        calls: list of (method, labels) tuples
        failures: map of (method, call_index) -> exception to raise
    """

    def __init__(self, current_labels="swarm"):
        self.current_labels = current_labels
        self.calls = []
        self.failures = {}
        self.closed = False
        self.get_error = None

    def __call__(self, target, options):
        self.target = target
        self.options = options
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def _record(self, method, labels):
        index = sum(1 for name, _ in self.calls if name == method)
        self.calls.append((method, labels))
        error = self.failures.get((method, index))
        if error is not None:
            raise error

    def get_labels(self, agent_name):
        self.calls.append(("get", agent_name))
        if self.get_error is not None:
            raise self.get_error
        return self.current_labels

    def remove_labels(self, agent_name, labels):
        self._record("remove", labels)

    def add_labels(self, agent_name, labels):
        self._record("add", labels)


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


def make_response(status_code=200, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    session.get.return_value = make_response(200, b"<slave><labels>swarm a b</labels></slave>")
    session.post.return_value = make_response(200)
    return session


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)
