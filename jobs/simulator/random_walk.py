"""Random walk of sensor readings.

Each step moves every reading of an online device by a small uniform
delta:

- temperature: ±1, rounded to 0.1
- humidity: ±2.5, clamped to [0, 100]
- windSpeed: ±1.5, >= 0, rounded to 0.1
- gasLevel: ±10 (integer step), >= 0

Offline devices are left untouched.
"""

from __future__ import annotations

import random
from typing import Dict, Optional


def step_readings(device: Dict, rng: Optional[random.Random] = None) -> Optional[Dict]:
    """Next readings for ``device`` (API JSON), or None if it is offline."""
    if device.get("status") != "online":
        return None

    rng = rng or random.Random()

    def jitter(spread: float) -> float:
        return (rng.random() - 0.5) * spread

    temperature = round(float(device["temperature"]) + jitter(2), 1)
    humidity = max(0.0, min(100.0, float(device["humidity"]) + jitter(5)))
    wind_speed = max(0.0, round(float(device["windSpeed"]) + jitter(3), 1))
    gas_level = max(0.0, float(device["gasLevel"]) + round(jitter(20)))

    return {
        "temperature": temperature,
        "humidity": humidity,
        "windSpeed": wind_speed,
        "gasLevel": gas_level,
    }


# Demo fleet loaded by ``--seed`` when the service has no devices.
DEMO_DEVICES = [
    {
        "name": "ET",
        "temperature": 22.5, "humidity": 45, "windSpeed": 12.3, "gasLevel": 150,
        "latitude": 40.7128, "longitude": -74.0060,
    },
    {
        "name": "TestDevice742",
        "temperature": 28.7, "humidity": 67, "windSpeed": 35.2, "gasLevel": 89,
        "latitude": 40.7589, "longitude": -73.9851,
        "thresholds": {
            "temperature": {"min": 20, "max": 30},
            "humidity": {"min": 20, "max": 80},
            "windSpeed": {"min": 0, "max": 25},
            "gasLevel": {"min": 0, "max": 500},
        },
    },
    {
        "name": "TD 5",
        "temperature": 15.2, "humidity": 32, "windSpeed": 45.8, "gasLevel": 234,
        "latitude": 40.6892, "longitude": -74.0445,
        "status": "offline",
        "thresholds": {
            "temperature": {"min": 0, "max": 40},
            "humidity": {"min": 0, "max": 90},
            "windSpeed": {"min": 0, "max": 40},
            "gasLevel": {"min": 0, "max": 800},
        },
    },
    {
        "name": "Weather Station Alpha",
        "temperature": 24.1, "humidity": 58, "windSpeed": 18.7, "gasLevel": 67,
        "latitude": 40.6782, "longitude": -73.9442,
        "thresholds": {
            "temperature": {"min": 0, "max": 35},
            "humidity": {"min": 0, "max": 85},
            "windSpeed": {"min": 0, "max": 35},
            "gasLevel": {"min": 0, "max": 600},
        },
    },
]
