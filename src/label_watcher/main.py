#!/usr/bin/env python3
"""
main.py
- Entrypoint for the label watcher agent.
- Launches:
    - One-time label push at startup
    - Label file watcher on a background thread
    - Optional status API (/healthz, /status, /metrics, /sync)
"""

import sys
from threading import Thread

import sentry_sdk
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from loguru import logger

from label_watcher.cli.entrypoint import parse_args
from label_watcher.core import config
from label_watcher.core.config_loader import preview_labels
from label_watcher.core.options import OptionsError, load_options
from label_watcher.lib.sync.soft_update import soft_label_update
from label_watcher.runner import label_watcher as watcher_module
from label_watcher.runner.label_watcher import LabelFileWatcher

watcher = None

# --- FastAPI Server ---
api = FastAPI()


def _require_watcher():
    if watcher is None:
        raise HTTPException(status_code=503, detail="Label watcher not started")
    return watcher


@api.get("/healthz")
async def health():
    if watcher is None or not watcher.state.running:
        raise HTTPException(status_code=503, detail="Label watcher not running")
    return {"status": "ok"}


@api.get("/status")
async def status():
    return _require_watcher().state.as_dict()


@api.post("/sync")
async def sync_now():
    _require_watcher().wake()
    return {"status": "triggered"}


@api.get("/metrics")
async def metrics():
    m = watcher_module.metrics_snapshot()
    running = 1 if watcher is not None and watcher.state.running else 0
    return PlainTextResponse(
        f"""# HELP label_polls_total Total label file polls
# TYPE label_polls_total counter
label_polls_total {m["label_polls_total"]}
# HELP label_read_errors_total Total label file read failures
# TYPE label_read_errors_total counter
label_read_errors_total {m["label_read_errors_total"]}
# HELP soft_updates_total Successful soft label updates
# TYPE soft_updates_total counter
soft_updates_total {m["soft_updates_total"]}
# HELP soft_update_failures_total Failed soft label updates
# TYPE soft_update_failures_total counter
soft_update_failures_total {m["soft_update_failures_total"]}
# HELP soft_update_last_duration_seconds Duration of the last soft label update in seconds
# TYPE soft_update_last_duration_seconds gauge
soft_update_last_duration_seconds {m["soft_update_last_duration_seconds"]}
# HELP hard_restarts_total Hard agent restarts attempted
# TYPE hard_restarts_total counter
hard_restarts_total {m["hard_restarts_total"]}
# HELP hard_restart_failures_total Hard agent restarts that could not launch a replacement
# TYPE hard_restart_failures_total counter
hard_restart_failures_total {m["hard_restart_failures_total"]}
# HELP label_watcher_running 1 if the label watcher loop is running
# TYPE label_watcher_running gauge
label_watcher_running {running}
""",
        media_type="text/plain",
    )


def init_sentry(dsn=config.SENTRY_DSN):
    if dsn:
        sentry_sdk.init(dsn=dsn, traces_sample_rate=1.0)


def initial_sync(current):
    """Push the label file to the controller once, before watching starts."""
    outcome = soft_label_update(
        current.state.controller_url,
        current.options,
        current.state.agent_name,
        current.state.labels,
    )
    if not outcome.ok:
        logger.error(f"[main] Initial label push failed, watching anyway: {outcome.reason}")
    return outcome


def main(argv=None):
    global watcher

    startup_args = list(sys.argv[1:] if argv is None else argv)
    args = parse_args(startup_args)

    try:
        options = load_options(args)
    except OptionsError as e:
        config.configure_logging()
        logger.error(f"[main] {e}")
        return 1

    config.configure_logging(debug=options.debug, log_file=options.log_file)
    init_sentry()
    preview_labels(options.labels_file, name="label file")

    try:
        watcher = LabelFileWatcher(
            options.controller_url,
            options,
            options.agent_name,
            startup_args,
        )
    except OSError as e:
        logger.error(f"[main] Unable to read label file {options.labels_file}: {e}")
        return 1

    if options.initial_sync:
        initial_sync(watcher)

    thread = Thread(target=watcher.run, name="label_watcher", daemon=True)
    thread.start()

    if options.status_port:
        logger.info(f"[main] Serving status API on port {options.status_port}")
        uvicorn.run(api, host="0.0.0.0", port=options.status_port)
    else:
        thread.join()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("🛑 KeyboardInterrupt received. Exiting.")
