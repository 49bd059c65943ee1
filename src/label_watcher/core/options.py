"""
options.py
- Resolves the watcher's runtime options.
- Precedence: command-line flags > YAML options file > environment defaults (core.config).
"""

from dataclasses import dataclass, fields
from typing import Optional

from loguru import logger

from label_watcher.core import config
from label_watcher.core.config_loader import load_yaml
from label_watcher.core.constants import LABEL_BATCH_LIMIT, LABEL_SEPARATOR, SENTINEL_LABEL


class OptionsError(Exception):
    pass


@dataclass
class Options:
    controller_url: Optional[str] = None
    agent_name: Optional[str] = None
    labels_file: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    password_file: Optional[str] = None
    disable_ssl_verification: bool = False
    ca_bundle: Optional[str] = None
    request_timeout: float = config.REQUEST_TIMEOUT
    max_retries: int = config.MAX_RETRIES
    retry_wait: float = config.RETRY_WAIT
    poll_interval: float = config.POLL_INTERVAL
    batch_limit: int = LABEL_BATCH_LIMIT
    label_separator: str = LABEL_SEPARATOR
    sentinel_label: str = SENTINEL_LABEL
    log_file: Optional[str] = None
    status_port: int = config.STATUS_PORT
    initial_sync: bool = config.INITIAL_SYNC
    debug: bool = config.DEBUG

    @property
    def auth(self):
        if not self.username:
            return None
        return (self.username, self.password or "")

    @property
    def verify(self):
        if self.disable_ssl_verification:
            return False
        return self.ca_bundle or True


def env_defaults():
    return {
        "controller_url": config.CONTROLLER_URL,
        "agent_name": config.AGENT_NAME,
        "labels_file": config.LABELS_FILE,
        "username": config.CONTROLLER_USERNAME,
        "password": config.CONTROLLER_PASSWORD,
        "password_file": config.CONTROLLER_PASSWORD_FILE,
        "disable_ssl_verification": config.DISABLE_SSL_VERIFICATION,
        "ca_bundle": config.CA_BUNDLE,
        "log_file": config.LOG_FILE,
    }


BOOL_FIELDS = {"disable_ssl_verification", "initial_sync", "debug"}
INT_FIELDS = {"max_retries", "batch_limit", "status_port"}
FLOAT_FIELDS = {"request_timeout", "retry_wait", "poll_interval"}
TRUE_WORDS = {"true", "yes", "on", "1"}
FALSE_WORDS = {"false", "no", "off", "0"}


def coerce_option(key, value):
    """
    Convert a YAML value to the type of its Options field.

    Raises:
        OptionsError: If the value cannot be converted.
    """
    if value is None:
        if key in BOOL_FIELDS | INT_FIELDS | FLOAT_FIELDS:
            raise OptionsError(f"Option '{key}' needs a value")
        return None

    try:
        if key in BOOL_FIELDS:
            if isinstance(value, bool):
                return value
            word = str(value).strip().lower()
            if word in TRUE_WORDS:
                return True
            if word in FALSE_WORDS:
                return False
            raise ValueError(f"not a boolean: {value!r}")
        if key in INT_FIELDS:
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise ValueError(f"not an integer: {value!r}")
            return int(value)
        if key in FLOAT_FIELDS:
            if isinstance(value, bool):
                raise ValueError(f"not a number: {value!r}")
            return float(value)
    except (TypeError, ValueError) as e:
        raise OptionsError(f"Invalid value for option '{key}': {e}") from e
    return str(value)


def _read_password_file(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError as e:
        raise OptionsError(f"Unable to read password file {path}: {e}") from e


def load_options(args=None, config_file=None):
    """
    Build Options from the environment, an optional YAML file and parsed CLI args.

    Args:
        args (argparse.Namespace): Parsed flags; attributes left as None are ignored.
        config_file (str): Optional YAML options file. Defaults to args.config.

    Returns:
        Options: Fully resolved options.

    Raises:
        OptionsError: If a required value is missing, a YAML value has the wrong type,
            or the password file is unreadable.
    """
    known = {f.name for f in fields(Options)}
    values = {k: v for k, v in env_defaults().items() if v is not None}

    config_file = config_file or getattr(args, "config", None)
    if config_file:
        for key, value in load_yaml(config_file).items():
            key = str(key).replace("-", "_")
            if key not in known:
                logger.warning(f"[options] Ignoring unknown option '{key}' in {config_file}")
                continue
            values[key] = coerce_option(key, value)

    if args is not None:
        for key, value in vars(args).items():
            if key in known and value is not None:
                values[key] = value

    options = Options(**values)

    missing = [name for name in ("controller_url", "agent_name", "labels_file") if not getattr(options, name)]
    if missing:
        raise OptionsError(f"Missing required option(s): {', '.join(missing)}")

    options.controller_url = options.controller_url.rstrip("/")
    if options.password_file and not options.password:
        options.password = _read_password_file(options.password_file)

    return options
