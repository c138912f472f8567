"""SQL-backed store for the devices and alerts collections.

Raw SQL through SQLAlchemy ``text()``. Writes and reads go through a
retry executor (exponential backoff); once retries are exhausted the
operation raises ``StoreUnavailable``. Subscribers are notified in-process
after every committed write.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError

from ...core.domain import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    MonitorStore,
    NewAlert,
    NewDevice,
    StoreUnavailable,
    Thresholds,
    Unsubscribe,
    utc_now,
)
from ...core.domain.device import apply_update
from .retry import RetryConfig, RetryExecutor
from .schema import ensure_schema
from .subscriptions import SubscriberHub

logger = logging.getLogger(__name__)


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_device(row) -> Device:
    return Device(
        id=str(row.id),
        name=str(row.name),
        latitude=float(row.latitude),
        longitude=float(row.longitude),
        temperature=float(row.temperature),
        humidity=float(row.humidity),
        wind_speed=float(row.wind_speed),
        gas_level=float(row.gas_level),
        status=DeviceStatus(row.status),
        last_updated=_parse_ts(row.last_updated),
        thresholds=Thresholds.from_dict(json.loads(row.thresholds)),
    )


def _row_to_alert(row) -> Alert:
    return Alert(
        id=str(row.id),
        device_id=str(row.device_id),
        device_name=str(row.device_name),
        type=AlertType(row.type),
        value=float(row.value),
        threshold=float(row.threshold),
        message=str(row.message),
        created_at=_parse_ts(row.created_at),
        acknowledged=bool(row.acknowledged),
        acknowledged_at=_parse_ts(row.acknowledged_at),
    )


def _device_params(device: Device) -> dict:
    return {
        "id": device.id,
        "name": device.name,
        "latitude": device.latitude,
        "longitude": device.longitude,
        "temperature": device.temperature,
        "humidity": device.humidity,
        "wind_speed": device.wind_speed,
        "gas_level": device.gas_level,
        "status": device.status.value,
        "last_updated": _ts(device.last_updated),
        "thresholds": json.dumps(device.thresholds.to_dict()),
    }


class SqlMonitorStore(MonitorStore):
    """MonitorStore over a SQLAlchemy engine (SQLite, PostgreSQL, ...)."""

    def __init__(
        self,
        engine: Engine,
        retry: Optional[RetryExecutor] = None,
        clock: Callable[[], datetime] = utc_now,
        create_schema: bool = True,
    ) -> None:
        self._engine = engine
        self._retry = retry or RetryExecutor(RetryConfig(retryable_exceptions=(DBAPIError,)))
        self._clock = clock
        self._device_hub: SubscriberHub[Device] = SubscriberHub("devices")
        self._alert_hub: SubscriberHub[Alert] = SubscriberHub("alerts")
        if create_schema:
            ensure_schema(engine)

    def _run(self, op: Callable[[Connection], Any]) -> Any:
        def attempt():
            with self._engine.begin() as conn:
                return op(conn)

        try:
            return self._retry.execute(attempt)
        except DBAPIError as e:
            raise StoreUnavailable(f"{getattr(op, '__name__', 'store op')}: {type(e).__name__}") from e

    def _publish_devices(self) -> None:
        try:
            self._device_hub.publish(self.get_devices())
        except StoreUnavailable:
            logger.exception("[STORE] Could not refresh devices snapshot")

    def _publish_alerts(self) -> None:
        try:
            self._alert_hub.publish(self.get_alerts())
        except StoreUnavailable:
            logger.exception("[STORE] Could not refresh alerts snapshot")

    # -- subscriptions ----------------------------------------------------

    def subscribe_devices(self, callback) -> Unsubscribe:  # type: ignore[override]
        return self._device_hub.add(callback, self.get_devices())

    def subscribe_alerts(self, callback) -> Unsubscribe:  # type: ignore[override]
        return self._alert_hub.add(callback, self.get_alerts())

    # -- devices ----------------------------------------------------------

    def get_devices(self) -> List[Device]:
        def select_devices(conn: Connection) -> List[Device]:
            rows = conn.execute(text("SELECT * FROM devices ORDER BY name, id")).fetchall()
            return [_row_to_device(r) for r in rows]

        return self._run(select_devices)

    def _get_device(self, conn: Connection, device_id: str) -> Device:
        row = conn.execute(
            text("SELECT * FROM devices WHERE id = :id"), {"id": device_id}
        ).fetchone()
        if row is None:
            raise KeyError(device_id)
        return _row_to_device(row)

    def add_device(self, device: NewDevice) -> str:
        new = device.to_device(uuid.uuid4().hex, self._clock())

        def insert_device(conn: Connection) -> None:
            conn.execute(
                text(
                    """
                    INSERT INTO devices (
                        id, name, latitude, longitude, temperature, humidity,
                        wind_speed, gas_level, status, last_updated, thresholds
                    )
                    VALUES (
                        :id, :name, :latitude, :longitude, :temperature, :humidity,
                        :wind_speed, :gas_level, :status, :last_updated, :thresholds
                    )
                    """
                ),
                _device_params(new),
            )

        self._run(insert_device)
        logger.info("[STORE] Device added id=%s name=%s", new.id, new.name)
        self._publish_devices()
        return new.id

    def update_device(self, device_id: str, fields: Dict[str, Any]) -> None:
        now = self._clock()

        def update_device_row(conn: Connection) -> None:
            updated = apply_update(self._get_device(conn, device_id), fields, now)
            conn.execute(
                text(
                    """
                    UPDATE devices
                    SET name = :name,
                        latitude = :latitude,
                        longitude = :longitude,
                        temperature = :temperature,
                        humidity = :humidity,
                        wind_speed = :wind_speed,
                        gas_level = :gas_level,
                        status = :status,
                        last_updated = :last_updated,
                        thresholds = :thresholds
                    WHERE id = :id
                    """
                ),
                _device_params(updated),
            )

        self._run(update_device_row)
        self._publish_devices()

    def delete_device(self, device_id: str) -> None:
        def delete_device_row(conn: Connection) -> None:
            result = conn.execute(text("DELETE FROM devices WHERE id = :id"), {"id": device_id})
            if result.rowcount == 0:
                raise KeyError(device_id)

        self._run(delete_device_row)
        logger.info("[STORE] Device deleted id=%s", device_id)
        self._publish_devices()

    # -- alerts -----------------------------------------------------------

    def get_alerts(self) -> List[Alert]:
        def select_alerts(conn: Connection) -> List[Alert]:
            rows = conn.execute(
                text("SELECT * FROM alerts ORDER BY created_at DESC, id")
            ).fetchall()
            return [_row_to_alert(r) for r in rows]

        return self._run(select_alerts)

    def add_alert(self, alert: NewAlert) -> str:
        alert_id = uuid.uuid4().hex

        def insert_alert(conn: Connection) -> None:
            conn.execute(
                text(
                    """
                    INSERT INTO alerts (
                        id, device_id, device_name, type, value, threshold,
                        message, created_at, acknowledged, acknowledged_at
                    )
                    VALUES (
                        :id, :device_id, :device_name, :type, :value, :threshold,
                        :message, :created_at, 0, NULL
                    )
                    """
                ),
                {
                    "id": alert_id,
                    "device_id": alert.device_id,
                    "device_name": alert.device_name,
                    "type": alert.type.value,
                    "value": float(alert.value),
                    "threshold": float(alert.threshold),
                    "message": alert.message,
                    "created_at": _ts(alert.created_at),
                },
            )

        self._run(insert_alert)
        self._publish_alerts()
        return alert_id

    def acknowledge_alert(self, alert_id: str, acknowledged_at: datetime) -> None:
        def acknowledge_row(conn: Connection) -> None:
            result = conn.execute(
                text(
                    """
                    UPDATE alerts
                    SET acknowledged = 1,
                        acknowledged_at = :acknowledged_at
                    WHERE id = :id
                    """
                ),
                {"id": alert_id, "acknowledged_at": _ts(acknowledged_at)},
            )
            if result.rowcount == 0:
                raise KeyError(alert_id)

        self._run(acknowledge_row)
        self._publish_alerts()

    def delete_alert(self, alert_id: str) -> None:
        def delete_alert_row(conn: Connection) -> None:
            result = conn.execute(text("DELETE FROM alerts WHERE id = :id"), {"id": alert_id})
            if result.rowcount == 0:
                raise KeyError(alert_id)

        self._run(delete_alert_row)
        self._publish_alerts()

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("[STORE] Ping failed")
            return False
