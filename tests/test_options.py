"""
Unit tests for option loading.
"""

import pytest
import yaml

from label_watcher.cli.entrypoint import parse_args
from label_watcher.core import config
from label_watcher.core.config_loader import load_yaml
from label_watcher.core.constants import LABEL_BATCH_LIMIT, SENTINEL_LABEL
from label_watcher.core.options import OptionsError, coerce_option, load_options


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("CONTROLLER_URL", "AGENT_NAME", "LABELS_FILE", "CONTROLLER_USERNAME",
                 "CONTROLLER_PASSWORD", "CONTROLLER_PASSWORD_FILE", "CA_BUNDLE", "LOG_FILE"):
        monkeypatch.setattr(config, name, None)
    monkeypatch.setattr(config, "DISABLE_SSL_VERIFICATION", False)


@pytest.fixture
def options_file(tmp_path):
    def write(data):
        path = tmp_path / "options.yml"
        path.write_text(yaml.safe_dump(data))
        return str(path)
    return write


class TestLoadOptions:

    def test_flags_only(self, clean_env):
        args = parse_args(["--url", "http://controller.test/", "--name", "agent-1", "--labels-file", "/etc/labels"])

        options = load_options(args)

        assert options.controller_url == "http://controller.test"
        assert options.agent_name == "agent-1"
        assert options.labels_file == "/etc/labels"
        assert options.batch_limit == LABEL_BATCH_LIMIT
        assert options.sentinel_label == SENTINEL_LABEL
        assert options.auth is None
        assert options.verify is True

    def test_environment_defaults(self, clean_env, monkeypatch):
        monkeypatch.setattr(config, "CONTROLLER_URL", "http://env.test")
        monkeypatch.setattr(config, "AGENT_NAME", "env-agent")
        monkeypatch.setattr(config, "LABELS_FILE", "/env/labels")

        options = load_options(parse_args([]))

        assert options.controller_url == "http://env.test"
        assert options.agent_name == "env-agent"

    def test_yaml_overrides_env_and_flags_override_yaml(self, clean_env, monkeypatch, options_file):
        monkeypatch.setattr(config, "AGENT_NAME", "env-agent")
        path = options_file({
            "controller_url": "http://yaml.test",
            "agent_name": "yaml-agent",
            "labels-file": "/yaml/labels",
            "batch_limit": 200,
        })
        args = parse_args(["--config", path, "--name", "flag-agent"])

        options = load_options(args)

        assert options.controller_url == "http://yaml.test"
        assert options.agent_name == "flag-agent"
        assert options.labels_file == "/yaml/labels"
        assert options.batch_limit == 200

    def test_unknown_yaml_keys_are_ignored(self, clean_env, options_file, log_records):
        path = options_file({
            "controller_url": "http://yaml.test",
            "agent_name": "a",
            "labels_file": "/l",
            "colour": "blue",
        })

        options = load_options(parse_args(["--config", path]))

        assert not hasattr(options, "colour")
        assert any("colour" in r["message"] for r in log_records)

    def test_missing_required(self, clean_env):
        with pytest.raises(OptionsError) as exc:
            load_options(parse_args(["--url", "http://controller.test"]))

        assert "agent_name" in str(exc.value)
        assert "labels_file" in str(exc.value)

    def test_password_file(self, clean_env, tmp_path):
        secret = tmp_path / "secret"
        secret.write_text("s3cret\n")
        args = parse_args([
            "--url", "http://c", "--name", "a", "--labels-file", "/l",
            "--username", "ci", "--password-file", str(secret),
        ])

        options = load_options(args)

        assert options.auth == ("ci", "s3cret")

    def test_unreadable_password_file(self, clean_env, tmp_path):
        args = parse_args([
            "--url", "http://c", "--name", "a", "--labels-file", "/l",
            "--password-file", str(tmp_path / "missing"),
        ])

        with pytest.raises(OptionsError):
            load_options(args)

    def test_tls_flags(self, clean_env):
        args = parse_args(["--url", "http://c", "--name", "a", "--labels-file", "/l", "--disable-ssl-verification"])

        assert load_options(args).verify is False

    def test_no_initial_sync_flag(self, clean_env):
        args = parse_args(["--url", "http://c", "--name", "a", "--labels-file", "/l", "--no-initial-sync"])

        assert load_options(args).initial_sync is False

    def test_yaml_strings_are_coerced(self, clean_env, options_file):
        path = options_file({
            "controller_url": "http://c",
            "agent_name": "a",
            "labels_file": "/l",
            "poll_interval": "10",
            "max_retries": "5",
            "initial_sync": "no",
        })

        options = load_options(parse_args(["--config", path]))

        assert options.poll_interval == 10.0
        assert isinstance(options.poll_interval, float)
        assert options.max_retries == 5
        assert isinstance(options.max_retries, int)
        assert options.initial_sync is False

    def test_bad_yaml_value_is_rejected(self, clean_env, options_file):
        path = options_file({
            "controller_url": "http://c",
            "agent_name": "a",
            "labels_file": "/l",
            "poll_interval": "soon",
        })

        with pytest.raises(OptionsError) as exc:
            load_options(parse_args(["--config", path]))

        assert "poll_interval" in str(exc.value)


class TestCoerceOption:

    @pytest.mark.parametrize("value,expected", [
        (True, True), ("yes", True), ("On", True), (1, True),
        (False, False), ("off", False), ("0", False),
    ])
    def test_booleans(self, value, expected):
        assert coerce_option("debug", value) is expected

    def test_numbers(self):
        assert coerce_option("status_port", 8080.0) == 8080
        assert coerce_option("request_timeout", 3) == 3.0
        assert coerce_option("agent_name", 42) == "42"

    @pytest.mark.parametrize("key,value", [
        ("debug", "maybe"),
        ("max_retries", 2.5),
        ("max_retries", True),
        ("retry_wait", False),
        ("poll_interval", None),
        ("batch_limit", [1000]),
    ])
    def test_invalid(self, key, value):
        with pytest.raises(OptionsError):
            coerce_option(key, value)

    def test_optional_string_may_be_empty(self):
        assert coerce_option("ca_bundle", None) is None


class TestLoadYaml:

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_yaml(str(tmp_path / "nope.yml")) == {}

    def test_non_mapping_returns_empty(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")

        assert load_yaml(str(path)) == {}
