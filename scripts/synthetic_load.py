#!/usr/bin/env python3
"""Drive a backend listener with synthetic samples from concurrent producers."""

from __future__ import annotations

import argparse
import logging
import random
import sys
import threading
import time
from collections import Counter
from pathlib import Path
from typing import List

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from metrics_relay.config.defaults import ListenerConfig, RelayConfig
from metrics_relay.runtime.listener import BackendListener
from metrics_relay.runtime.records import SampleResult
from metrics_relay.runtime.senders import InMemoryMetricsSender


def producer(
    listener: BackendListener,
    labels: List[str],
    deadline: float,
    batch_size: int,
    error_rate: float,
    seed: int,
    produced: List[int],
) -> None:
    rng = random.Random(seed)
    count = 0
    while time.monotonic() < deadline:
        batch = [
            SampleResult(
                label=rng.choice(labels),
                success=rng.random() >= error_rate,
                elapsed_ms=rng.lognormvariate(4.5, 0.6),
            )
            for _ in range(batch_size)
        ]
        listener.handle_sample_results(batch)
        count += len(batch)
        time.sleep(rng.uniform(0.005, 0.05))
    produced.append(count)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--labels", nargs="*", default=["login", "search", "checkout"])
    parser.add_argument("--threads", type=int, default=4, help="Number of producer threads.")
    parser.add_argument("--duration", type=float, default=3.0, help="Seconds to produce samples.")
    parser.add_argument("--batch-size", type=int, default=5)
    parser.add_argument("--error-rate", type=float, default=0.05)
    parser.add_argument("--percentiles", default="90;95;99")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = RelayConfig(
        listener=ListenerConfig(
            sender="memory",
            summary_only=False,
            samplers_list=";".join(args.labels),
            percentiles=args.percentiles,
        )
    )
    sender = InMemoryMetricsSender()
    listener = BackendListener(config, sender=sender)
    listener.setup_test()

    deadline = time.monotonic() + args.duration
    produced: List[int] = []
    threads = [
        threading.Thread(
            target=producer,
            args=(listener, args.labels, deadline, args.batch_size, args.error_rate, seed, produced),
        )
        for seed in range(args.threads)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    listener.teardown_test()

    totals: Counter = Counter()
    for item in sender.sent():
        if item.metric in ("ok.count", "ko.count"):
            totals[(item.context, item.metric)] += int(item.value)

    print(f"Samples produced: {sum(produced)}")
    print(f"Samples counted: {sum(totals.values())}")
    print(f"Batches sent: {len(sender.batches)}")
    print(f"Metric tuples sent: {len(sender.sent())}")
    for (context, metric), value in sorted(totals.items()):
        print(f"  - {context}.{metric}: {value}")


if __name__ == "__main__":
    main()
