"""
config_loader.py
- Loads the optional YAML options file and reads the agent's label file.
- Previews label file contents at startup for debugging.
"""

import os

import yaml
from loguru import logger


def load_yaml(path):
    """Safely load a YAML file and return a parsed dict. Returns {} on failure."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"[load_yaml] Failed to load {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"[load_yaml] Expected a mapping at the top of {path}, got {type(data).__name__}")
        return {}
    return data


def read_label_file(path):
    """
    Read the whole label file as UTF-8 text.
    Undecodable bytes (e.g. a file caught mid-write) become U+FFFD instead of raising.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def preview_labels(path, name=None):
    """
    Log a human-readable preview of the label file.
    Typically used during startup to verify the file is mounted and populated.
    """
    if not os.path.exists(path):
        logger.warning(f"[config] Label file not found: {path}")
        return

    try:
        labels = read_label_file(path).split()
        logger.info(f"📄 Loaded {name or path}: {len(labels)} label(s)\n" + "\n".join(f"│ {label}" for label in labels))
    except OSError as e:
        logger.error(f"[config] Could not preview {path}: {e}")
