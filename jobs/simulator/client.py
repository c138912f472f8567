"""HTTP client for the monitor API used by the simulator."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class MonitorClient:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 5,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_key:
            self._session.headers["X-API-Key"] = api_key

    def list_devices(self) -> List[Dict]:
        response = self._session.get(f"{self._base_url}/devices", timeout=self._timeout)
        response.raise_for_status()
        return response.json()

    def add_device(self, payload: Dict) -> str:
        response = self._session.post(
            f"{self._base_url}/devices", json=payload, timeout=self._timeout
        )
        response.raise_for_status()
        return response.json()["id"]

    def update_readings(self, device_id: str, readings: Dict) -> None:
        response = self._session.patch(
            f"{self._base_url}/devices/{device_id}", json=readings, timeout=self._timeout
        )
        response.raise_for_status()
