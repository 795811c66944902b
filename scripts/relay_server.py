#!/usr/bin/env python3
"""Launch the metrics relay diagnostics service with a running listener."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from metrics_relay.config.runtime_store import load_relay_config
from metrics_relay.runtime.listener import BackendListener
from metrics_relay.service import relay_api


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for the service.")
    parser.add_argument("--port", type=int, default=8080, help="Port to expose.")
    parser.add_argument(
        "--no-listener",
        action="store_true",
        help="Serve configuration endpoints only, without starting a listener.",
    )
    parser.add_argument("--log-level", default="INFO", help="Root logging level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    listener = None
    if not args.no_listener:
        listener = BackendListener(load_relay_config())
        listener.setup_test()
        relay_api.attach_listener(listener)
    try:
        uvicorn.run(relay_api.app, host=args.host, port=args.port)
    finally:
        if listener is not None:
            listener.teardown_test()
            relay_api.attach_listener(None)


if __name__ == "__main__":
    main()
