"""One simulator pass over the monitored fleet."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

import requests

from .client import MonitorClient
from .random_walk import DEMO_DEVICES, step_readings

logger = logging.getLogger(__name__)


@dataclass
class SimulatorConfig:
    base_url: str = "http://localhost:8000"
    api_key: Optional[str] = None
    interval_seconds: float = 5.0
    once: bool = False
    seed: bool = False


def seed_demo_fleet(client: MonitorClient) -> int:
    """Add the demo devices if the service has none. Returns how many were added."""
    if client.list_devices():
        return 0
    for payload in DEMO_DEVICES:
        device_id = client.add_device(payload)
        logger.info("[SIM] Seeded device %s id=%s", payload["name"], device_id)
    return len(DEMO_DEVICES)


def run_once(client: MonitorClient, rng: Optional[random.Random] = None) -> int:
    """Push one random-walk step for every online device.

    A failed update is logged and the pass continues.

    Returns:
        Number of devices updated.
    """
    rng = rng or random.Random()
    updated = 0
    for device in client.list_devices():
        readings = step_readings(device, rng)
        if readings is None:
            continue
        try:
            client.update_readings(device["id"], readings)
            updated += 1
        except requests.RequestException as e:
            logger.error("[SIM] Error updating device %s: %s", device.get("id"), e)
    logger.info("[SIM] Pass done: %d devices updated", updated)
    return updated
