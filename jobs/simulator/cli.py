"""CLI entry point for the sensor simulator."""

from __future__ import annotations

import argparse
import logging
import os
import time

from .client import MonitorClient
from .runner import SimulatorConfig, run_once, seed_demo_fleet

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Random-walk sensor simulator for the device monitor")
    p.add_argument("--url", default=os.getenv("MONITOR_URL", "http://localhost:8000"))
    p.add_argument("--interval-seconds", type=float, default=5.0)
    p.add_argument("--once", action="store_true", help="run a single pass and exit")
    p.add_argument("--seed", action="store_true", help="add demo devices if none exist")
    args = p.parse_args()

    cfg = SimulatorConfig(
        base_url=args.url,
        api_key=os.getenv("MONITOR_API_KEY") or None,
        interval_seconds=args.interval_seconds,
        once=bool(args.once),
        seed=bool(args.seed),
    )
    client = MonitorClient(cfg.base_url, api_key=cfg.api_key)

    logger.info("Simulator started url=%s interval=%.1fs", cfg.base_url, cfg.interval_seconds)
    if cfg.seed:
        seed_demo_fleet(client)

    while True:
        try:
            run_once(client)
            if cfg.once:
                return
            time.sleep(cfg.interval_seconds)
        except Exception as e:
            logger.error("Error en iteración: %s", e)
            if cfg.once:
                raise
            time.sleep(cfg.interval_seconds)


if __name__ == "__main__":
    main()
