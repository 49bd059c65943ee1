#!/usr/bin/env python3
"""
healthcheck.py
- Basic healthcheck script for Docker HEALTHCHECK.
- Returns exit code 0 if the status API answers /healthz, 1 if not.
"""

import os
import sys

import requests


def check(port, host="127.0.0.1", timeout=3):
    try:
        response = requests.get(f"http://{host}:{port}/healthz", timeout=timeout)
    except requests.RequestException as e:
        print(f"❌ Healthcheck failed: {e}")
        return False
    if response.status_code != 200:
        print(f"❌ Healthcheck failed: HTTP {response.status_code}")
        return False
    return True


def main():
    port = os.getenv("STATUS_PORT")
    if not port or port == "0":
        print("❌ Healthcheck failed: STATUS_PORT is not set")
        sys.exit(1)
    sys.exit(0 if check(port) else 1)


if __name__ == "__main__":
    main()
