"""Tests del fan-out de notificaciones."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from device_monitor.alerts import (
    LogSink,
    NotificationFanout,
    NotificationRegistry,
    PushSink,
    get_registry,
)
from device_monitor.alerts.notification_service import Notification
from device_monitor.core.domain import Alert, AlertType
from device_monitor.core.monitoring import MonitorStats


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def stats():
    return MonitorStats()


@pytest.fixture
def fanout(sink, stats, clock):
    return NotificationFanout(
        [sink],
        stats,
        registry=NotificationRegistry(),
        clock=clock,
    )


def alert(clock, alert_id="a1", age_seconds=0, acknowledged=False, alert_type=AlertType.TEMPERATURE):
    return Alert(
        id=alert_id,
        device_id="dev-1",
        device_name="Sensor 1",
        type=alert_type,
        value=35.0,
        threshold=30.0,
        message="Temperature exceeded maximum threshold of 30°C",
        created_at=clock() - timedelta(seconds=age_seconds),
        acknowledged=acknowledged,
    )


# =============================================================================
# FIRING RULES
# =============================================================================

class TestFanout:
    def test_fires_once_for_fresh_alert(self, fanout, sink, stats, clock):
        alerts = [alert(clock, age_seconds=2)]

        first = fanout.on_alerts(alerts)
        second = fanout.on_alerts(alerts)

        assert first is not None
        assert first.title == "🌡️ THRESHOLD ALERT"
        assert first.sound is True
        assert second is None
        sink.deliver.assert_called_once()
        assert stats.notifications_fired == 1

    def test_old_alert_is_silent(self, fanout, sink, clock):
        assert fanout.on_alerts([alert(clock, age_seconds=10)]) is None
        sink.deliver.assert_not_called()

    def test_only_most_recent_unacknowledged(self, fanout, clock):
        alerts = [
            alert(clock, "new-acked", acknowledged=True),
            alert(clock, "newest-open", age_seconds=1),
            alert(clock, "older-open", age_seconds=3),
        ]
        assert fanout.on_alerts(alerts).alert_id == "newest-open"

    def test_no_unacknowledged(self, fanout, clock):
        assert fanout.on_alerts([alert(clock, acknowledged=True)]) is None
        assert fanout.on_alerts([]) is None

    def test_sound_preference_gates_sound_only(self, sink, stats, clock):
        fanout = NotificationFanout(
            [sink], stats, sound_enabled=lambda: False,
            registry=NotificationRegistry(), clock=clock,
        )
        notification = fanout.on_alerts([alert(clock)])
        assert notification.sound is False
        sink.deliver.assert_called_once()

    def test_registry_shared_between_instances(self, sink, stats, clock):
        registry = NotificationRegistry()
        first = NotificationFanout([sink], stats, registry=registry, clock=clock)
        second = NotificationFanout([sink], stats, registry=registry, clock=clock)
        alerts = [alert(clock)]

        assert first.on_alerts(alerts) is not None
        assert second.on_alerts(alerts) is None
        assert registry.last_alert_id == "a1"

    def test_default_registry_is_process_wide(self):
        assert get_registry() is get_registry()

    def test_failing_sink_does_not_stop_others(self, stats, clock):
        bad, good = MagicMock(), MagicMock()
        bad.deliver.side_effect = RuntimeError("sink down")
        fanout = NotificationFanout([bad, good], stats, registry=NotificationRegistry(), clock=clock)

        assert fanout.on_alerts([alert(clock)]) is not None
        good.deliver.assert_called_once()

    def test_location_alert_uses_generic_icon(self, fanout, clock):
        n = fanout.on_alerts([alert(clock, alert_type=AlertType.LOCATION)])
        assert n.title == "⚠️ THRESHOLD ALERT"


# =============================================================================
# SINKS
# =============================================================================

def sample_notification(clock) -> Notification:
    return Notification(
        alert_id="a1",
        title="💨 THRESHOLD ALERT",
        device_name="Sensor 1",
        message="Wind speed exceeded maximum threshold of 30 m/s",
        sound=True,
        created_at=clock(),
    )


class TestSinks:
    def test_log_sink(self, clock, caplog):
        LogSink().deliver(sample_notification(clock))
        assert "[NOTIFY]" in caplog.text
        assert "Sensor 1" in caplog.text

    def test_push_sink_posts_to_backend(self, clock):
        with patch("device_monitor.alerts.notification_service.requests.post") as post:
            post.return_value = MagicMock(ok=True)
            PushSink("http://backend:3000/", "secret").deliver(sample_notification(clock))

        args, kwargs = post.call_args
        assert args[0] == "http://backend:3000/notifications/internal/trigger-push"
        assert kwargs["headers"]["X-Internal-Key"] == "secret"
        assert kwargs["json"]["alertId"] == "a1"

    def test_push_sink_without_key_skips(self, clock):
        with patch("device_monitor.alerts.notification_service.requests.post") as post:
            PushSink("http://backend:3000", None).deliver(sample_notification(clock))
        post.assert_not_called()

    def test_push_sink_never_raises(self, clock):
        with patch(
            "device_monitor.alerts.notification_service.requests.post",
            side_effect=ConnectionError("refused"),
        ):
            PushSink("http://backend:3000", "secret").deliver(sample_notification(clock))
