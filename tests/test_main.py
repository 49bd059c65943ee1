"""
Tests for the entrypoint and the status API.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from label_watcher import main as main_module
from label_watcher.lib.sync.soft_update import UpdateOutcome


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main_module, "watcher", None)
    return TestClient(main_module.api)


@pytest.fixture
def fake_watcher(monkeypatch):
    watcher = MagicMock()
    watcher.state.as_dict.return_value = {"status": "watching", "labels": ["a", "b"]}
    watcher.state.running = True
    monkeypatch.setattr(main_module, "watcher", watcher)
    return watcher


class TestStatusApi:

    def test_healthz(self, client, fake_watcher):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_healthz_before_start(self, client):
        assert client.get("/healthz").status_code == 503

    def test_healthz_after_watcher_stopped(self, client, fake_watcher):
        fake_watcher.state.running = False

        response = client.get("/healthz")

        assert response.status_code == 503
        assert response.json()["detail"] == "Label watcher not running"

    def test_status_before_start(self, client):
        assert client.get("/status").status_code == 503

    def test_status(self, client, fake_watcher):
        response = client.get("/status")

        assert response.status_code == 200
        assert response.json()["status"] == "watching"

    def test_sync_wakes_watcher(self, client, fake_watcher):
        response = client.post("/sync")

        assert response.json() == {"status": "triggered"}
        fake_watcher.wake.assert_called_once()

    def test_metrics(self, client, fake_watcher):
        body = client.get("/metrics").text

        assert "soft_updates_total" in body
        assert "hard_restarts_total" in body
        assert "label_watcher_running 1" in body


class TestMain:

    @pytest.fixture(autouse=True)
    def isolate(self, monkeypatch):
        monkeypatch.setattr(main_module, "watcher", None)
        monkeypatch.setattr(main_module.config, "configure_logging", MagicMock())
        monkeypatch.setattr(main_module, "init_sentry", MagicMock())

    def test_missing_options_exit_one(self, monkeypatch):
        monkeypatch.setattr(main_module.config, "CONTROLLER_URL", None)
        monkeypatch.setattr(main_module.config, "AGENT_NAME", None)
        monkeypatch.setattr(main_module.config, "LABELS_FILE", None)

        assert main_module.main([]) == 1

    def test_unreadable_label_file_exit_one(self, tmp_path):
        argv = ["--url", "http://c", "--name", "a", "--labels-file", str(tmp_path / "missing")]

        assert main_module.main(argv) == 1

    def test_starts_watcher_thread(self, monkeypatch, labels_file):
        thread_cls = MagicMock()
        soft_update = MagicMock(return_value=UpdateOutcome.transport_failed("refused"))
        monkeypatch.setattr(main_module, "Thread", thread_cls)
        monkeypatch.setattr(main_module, "soft_label_update", soft_update)
        argv = ["--url", "http://c", "--name", "agent-1", "--labels-file", str(labels_file)]

        assert main_module.main(argv) == 0

        soft_update.assert_called_once_with("http://c", main_module.watcher.options, "agent-1", "a b")
        assert thread_cls.call_args.kwargs["name"] == "label_watcher"
        assert thread_cls.call_args.kwargs["daemon"] is True
        thread_cls.return_value.start.assert_called_once()
        thread_cls.return_value.join.assert_called_once()
        assert main_module.watcher.state.startup_args == argv

    def test_no_initial_sync(self, monkeypatch, labels_file):
        soft_update = MagicMock()
        monkeypatch.setattr(main_module, "Thread", MagicMock())
        monkeypatch.setattr(main_module, "soft_label_update", soft_update)
        argv = ["--url", "http://c", "--name", "agent-1", "--labels-file", str(labels_file), "--no-initial-sync"]

        assert main_module.main(argv) == 0
        soft_update.assert_not_called()
