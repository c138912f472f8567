"""Tests del evaluador de conectividad."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from device_monitor.classification import LivenessEvaluator, infer_status
from device_monitor.core.domain import DeviceStatus
from device_monitor.core.monitoring import MonitorStats
from device_monitor.infrastructure.persistence import InMemoryMonitorStore

from conftest import T0, make_device

THRESHOLD = timedelta(minutes=5)


@pytest.fixture
def store(clock):
    return InMemoryMonitorStore(clock=clock)


@pytest.fixture
def stats():
    return MonitorStats()


class TestInferStatus:
    def test_online_goes_offline_after_threshold(self):
        device = make_device(last_updated=T0 - timedelta(minutes=6))
        assert infer_status(device, T0, THRESHOLD) == DeviceStatus.OFFLINE

    def test_offline_comes_back_online(self):
        device = make_device(status=DeviceStatus.OFFLINE, last_updated=T0 - timedelta(minutes=2))
        assert infer_status(device, T0, THRESHOLD) == DeviceStatus.ONLINE

    def test_exactly_at_threshold_stays_online(self):
        device = make_device(last_updated=T0 - THRESHOLD)
        assert infer_status(device, T0, THRESHOLD) is None

    def test_no_transition(self):
        assert infer_status(make_device(last_updated=T0), T0, THRESHOLD) is None
        stale_offline = make_device(status=DeviceStatus.OFFLINE, last_updated=T0 - timedelta(hours=1))
        assert infer_status(stale_offline, T0, THRESHOLD) is None


class TestLivenessEvaluator:
    def test_writes_transition_without_touching_last_updated(self, store, stats, clock):
        stale = T0 - timedelta(minutes=6)
        store.put_device(make_device(last_updated=stale))
        evaluator = LivenessEvaluator(store, stats, THRESHOLD)

        transitions = evaluator.evaluate(store.get_devices(), clock())

        assert len(transitions) == 1
        assert transitions[0].to_status == DeviceStatus.OFFLINE
        device = store.get_devices()[0]
        assert device.status == DeviceStatus.OFFLINE
        assert device.last_updated == stale

    def test_second_pass_is_stable(self, store, stats, clock):
        store.put_device(make_device(last_updated=T0 - timedelta(minutes=6)))
        evaluator = LivenessEvaluator(store, stats, THRESHOLD)

        evaluator.evaluate(store.get_devices(), clock())
        assert evaluator.evaluate(store.get_devices(), clock()) == []
        assert stats.liveness_ticks == 2
        assert stats.status_transitions == 1

    def test_failed_write_is_logged_and_others_continue(self, stats, clock, caplog):
        store = MagicMock()
        store.update_device = MagicMock(side_effect=[RuntimeError("down"), None])
        evaluator = LivenessEvaluator(store, stats, THRESHOLD)
        devices = [
            make_device("a", last_updated=T0 - timedelta(minutes=6)),
            make_device("b", last_updated=T0 - timedelta(minutes=6)),
        ]

        transitions = evaluator.evaluate(devices, clock())

        assert [t.device_id for t in transitions] == ["b"]
        assert stats.status_failures == 1
        assert "Error updating status for device a" in caplog.text
