"""Tests del ciclo de vida de alertas."""

from unittest.mock import MagicMock

import pytest

from device_monitor.alerts import AlertLifecycleManager
from device_monitor.core.domain import AlertType, NewAlert
from device_monitor.infrastructure.persistence import InMemoryMonitorStore


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def store(clock):
    return InMemoryMonitorStore(clock=clock)


@pytest.fixture
def manager(store, clock):
    m = AlertLifecycleManager(store, clock=clock)
    store.subscribe_alerts(m.on_alerts)
    return m


class FlakyAckStore(InMemoryMonitorStore):
    fail_on = None

    def acknowledge_alert(self, alert_id, acknowledged_at):
        if alert_id == self.fail_on:
            raise RuntimeError("store down")
        super().acknowledge_alert(alert_id, acknowledged_at)


def new_alert(clock, device_id="dev-1", alert_type=AlertType.TEMPERATURE, message="hot"):
    return NewAlert(
        device_id=device_id,
        device_name="Sensor 1",
        type=alert_type,
        value=35.0,
        threshold=30.0,
        message=message,
        created_at=clock(),
    )


# =============================================================================
# CREATE / ACKNOWLEDGE
# =============================================================================

class TestCreate:
    def test_create_is_unacknowledged(self, manager, store, clock):
        alert_id = manager.create(new_alert(clock))
        alert = store.get_alerts()[0]
        assert alert.id == alert_id
        assert alert.acknowledged is False
        assert alert.acknowledged_at is None

    @pytest.mark.parametrize("field", ["device_id", "message"])
    def test_missing_required_field(self, manager, clock, field):
        kwargs = {"device_id": "dev-1", "message": "hot"}
        kwargs[field] = ""
        with pytest.raises(ValueError):
            manager.create(new_alert(clock, **kwargs))


class TestAcknowledge:
    def test_acknowledge_is_idempotent(self, manager, store, clock):
        alert_id = manager.create(new_alert(clock))
        manager.acknowledge(alert_id)
        first = store.get_alerts()[0].acknowledged_at

        clock.advance(seconds=30)
        manager.acknowledge(alert_id)
        alert = store.get_alerts()[0]

        assert alert.acknowledged is True
        assert alert.acknowledged_at == clock()
        assert alert.acknowledged_at != first

    def test_unknown_id_raises_key_error(self, manager):
        with pytest.raises(KeyError):
            manager.acknowledge("missing")

    def test_acknowledge_all_defaults_to_read_model(self, manager, store, clock):
        ids = [manager.create(new_alert(clock, device_id=f"d{i}")) for i in range(3)]
        done = manager.acknowledge_all()
        assert sorted(done) == sorted(ids)
        assert manager.view.unacknowledged == []
        assert len(manager.view.acknowledged) == 3

    def test_acknowledge_all_partial_failure(self, clock):
        store = FlakyAckStore(clock=clock)
        manager = AlertLifecycleManager(store, clock=clock)
        ids = [manager.create(new_alert(clock, device_id=f"d{i}")) for i in range(3)]
        manager.refresh()
        store.fail_on = ids[1]

        done = manager.acknowledge_all()

        assert sorted(done) == sorted([ids[0], ids[2]])
        assert not next(a for a in store.get_alerts() if a.id == ids[1]).acknowledged


# =============================================================================
# CLEAR / READ MODEL
# =============================================================================

class TestClearAcknowledged:
    def test_clear_is_set_difference(self, manager, store, clock):
        a = manager.create(new_alert(clock, device_id="a"))
        clock.advance(seconds=1)
        b = manager.create(new_alert(clock, device_id="b"))
        clock.advance(seconds=1)
        c = manager.create(new_alert(clock, device_id="c"))
        manager.acknowledge(a)
        manager.acknowledge(c)

        deleted = manager.clear_acknowledged()

        assert sorted(deleted) == sorted([a, c])
        assert [x.id for x in store.get_alerts()] == [b]

    def test_clear_stops_on_first_failure(self, clock):
        store = MagicMock()
        acked = [MagicMock(id=f"x{i}", acknowledged=True) for i in range(3)]
        store.get_alerts = MagicMock(return_value=acked)
        store.delete_alert = MagicMock(side_effect=[None, RuntimeError("down"), None])
        manager = AlertLifecycleManager(store, clock=clock)

        with pytest.raises(RuntimeError):
            manager.clear_acknowledged()
        assert store.delete_alert.call_count == 2


class TestReadModel:
    def test_view_sorted_newest_first(self, manager, clock):
        first = manager.create(new_alert(clock, device_id="a"))
        clock.advance(seconds=5)
        second = manager.create(new_alert(clock, device_id="b"))

        assert [a.id for a in manager.view.alerts] == [second, first]
        assert manager.view.counts() == {"total": 2, "unacknowledged": 2, "acknowledged": 0}

    def test_listener_failure_does_not_break_others(self, manager, clock):
        seen = []
        manager.add_listener(MagicMock(side_effect=RuntimeError("bad listener")))
        manager.add_listener(seen.append)
        manager.create(new_alert(clock))
        assert len(seen) == 1

    def test_refresh_reads_store(self, store, clock):
        manager = AlertLifecycleManager(store, clock=clock)
        manager.create(new_alert(clock))
        assert manager.view.alerts == []
        assert len(manager.refresh().alerts) == 1
