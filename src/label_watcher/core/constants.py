"""
constants.py
- Project-wide constants shared across the watcher, the sync library and the CLI.
- Includes polling timers, label batching limits and controller endpoint paths.
"""

# --- Polling ---
POLL_INTERVAL_SECONDS = 10  # seconds between label file checks

# --- Label Batching ---
LABEL_BATCH_LIMIT = 1000  # flush a batch once the buffer exceeds this many characters
LABEL_SEPARATOR = " "
SENTINEL_LABEL = "swarm"  # always reported by the controller, never removed

# --- Controller Endpoints ---
GET_LABELS_PATH = "/plugin/swarm/getSlaveLabels"
ADD_LABELS_PATH = "/plugin/swarm/addSlaveLabels"
REMOVE_LABELS_PATH = "/plugin/swarm/removeSlaveLabels"

# --- HTTP Retry Defaults ---
DEFAULT_REQUEST_TIMEOUT = 30  # seconds
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_WAIT = 2  # seconds, exponential multiplier
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# --- Status API ---
DEFAULT_STATUS_PORT = 0  # 0 disables the status server
