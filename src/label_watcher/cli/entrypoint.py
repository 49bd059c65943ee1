#!/usr/bin/env python3
"""
entrypoint.py
- Command-line flags for the label watcher.
- Every flag defaults to None so that YAML / environment values are kept unless overridden.
- Usage:
    label-watcher --url https://ci.example.com --name build-01 --labels-file /etc/agent/labels
"""

import argparse


def build_parser():
    parser = argparse.ArgumentParser(
        prog="label-watcher",
        description="Keep an agent's controller labels in sync with a local label file",
    )
    parser.add_argument("--config", help="YAML options file")
    parser.add_argument("--url", dest="controller_url", help="Controller base URL")
    parser.add_argument("--name", dest="agent_name", help="Agent name known to the controller")
    parser.add_argument("--labels-file", dest="labels_file", help="File holding whitespace-separated labels")
    parser.add_argument("--username", help="Controller username")
    parser.add_argument("--password", help="Controller password or API token")
    parser.add_argument("--password-file", dest="password_file", help="File holding the controller password")
    parser.add_argument(
        "--disable-ssl-verification",
        dest="disable_ssl_verification",
        action="store_true",
        default=None,
        help="Skip TLS certificate verification",
    )
    parser.add_argument("--ca-bundle", dest="ca_bundle", help="CA bundle used to verify the controller")
    parser.add_argument("--request-timeout", dest="request_timeout", type=float, help="Seconds per HTTP request")
    parser.add_argument("--max-retries", dest="max_retries", type=int, help="Attempts per label batch")
    parser.add_argument("--poll-interval", dest="poll_interval", type=float, help="Seconds between label file checks")
    parser.add_argument("--log-file", dest="log_file", help="Also write logs to this file")
    parser.add_argument("--status-port", dest="status_port", type=int, help="Serve /healthz, /status and /metrics on this port")
    parser.add_argument(
        "--no-initial-sync",
        dest="initial_sync",
        action="store_false",
        default=None,
        help="Do not push the label file to the controller at startup",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug output")
    return parser


def parse_args(argv=None):
    return build_parser().parse_args(argv)
