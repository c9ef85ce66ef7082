"""
Tests for cell tasks (StoringTask, RetrievingTask).

Tests focus on:
- The pre-flight battery check and the active/standby swap
- Step order and battery costs of each variant
- Conversion of component errors into FAILED results
- State machine rules (terminal tasks, cancellation)
"""
import pytest
from unittest.mock import Mock

from interfaces.configuration_interface import BatteryConfig, TaskConfig
from interfaces.task_interface import TaskType, TaskStatus, UnitPair
from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import (
    Moved, PickedUp, Dropped, Retrieved, StationAssigned, StationCharged, TaskFailed
)
from interfaces.cell_errors import (
    FailureReason, BothUnitsLowError, StateViolationError, InvalidArgumentError
)
from events.sinks import InMemoryEventSink
from warehouse.box import Box
from warehouse.impl.battery_impl import BatteryImpl, LogicalChargeClock
from warehouse.impl.charging_station_impl import ChargingStationImpl
from warehouse.impl.storage_area_impl import StorageAreaImpl
from warehouse.impl.task_impl import StoringTask, RetrievingTask, create_task
from warehouse.impl.transport_unit_impl import TransportUnitImpl

PICKUP = Position(-1, -1)
DROPOFF = Position(5, 5)
START = Position(10, 10)
STATION = Position(0, 5)

TASK_CONFIG = TaskConfig(
    move_cost=5.0,
    store_carry_cost=20.0,
    retrieve_carry_cost=15.0,
    max_concurrent_tasks=4,
    station_assign_timeout=1.0,
)


def make_unit(unit_id, level, sink):
    provider = Mock()
    provider.get_battery_config.return_value = BatteryConfig(
        initial_level=100.0, low_threshold=20.0, recharge_step=20.0, charge_tick_seconds=0.0,
        randomize_initial_level=False, initial_level_min=80.0, initial_level_max=100.0,
    )
    battery = BatteryImpl(provider, unit_id, clock=LogicalChargeClock(0.0), initial_level=level)
    return TransportUnitImpl(unit_id, battery, START, move_cost=TASK_CONFIG.move_cost, event_sink=sink)


class TaskHarness:
    """One unit pair, a storage area and a station wired to an in-memory sink."""

    def __init__(self, active_level=100.0, standby_level=100.0):
        self.sink = InMemoryEventSink()
        self.area = StorageAreaImpl(5, 5)
        self.station = ChargingStationImpl("CS1", STATION, event_sink=self.sink)
        self.active = make_unit("1", active_level, self.sink)
        self.standby = make_unit("2", standby_level, self.sink)
        self.pair = UnitPair(self.active, self.standby)

    def task(self, task_type, box):
        return create_task(
            task_type,
            pair=self.pair,
            box=box,
            area=self.area,
            station=self.station,
            task_config=TASK_CONFIG,
            pickup_position=PICKUP,
            dropoff_position=DROPOFF,
            event_sink=self.sink,
        )


class TestStoringTask:

    def test_factory_builds_variants(self):
        harness = TaskHarness()
        assert isinstance(harness.task(TaskType.STORE, None), StoringTask)
        assert isinstance(harness.task(TaskType.RETRIEVE, None), RetrievingTask)

    def test_factory_rejects_unknown_type(self):
        with pytest.raises(InvalidArgumentError):
            create_task("bogus")

    def test_task_id_names_variant(self):
        task = TaskHarness().task(TaskType.STORE, None)
        assert task.task_id.startswith("store-")
        assert task.status == TaskStatus.PENDING
        assert task.result is None

    def test_store_happy_path(self):
        harness = TaskHarness()
        box = Box("B1", 12.5, "Bolts", Position(0, 0))

        result = harness.task(TaskType.STORE, box).execute()

        assert result.status == TaskStatus.COMPLETED
        assert result.succeeded
        assert result.unit_id == "1"
        assert result.position == Position(0, 0)
        assert harness.area.get_box_at(0, 0) is box
        assert harness.active.position == Position(0, 0)
        assert harness.active.carried_box is None
        # pickup move, slot move, carry cost
        assert harness.active.battery.get_level() == 70.0
        kinds = [type(event) for event in harness.sink.events]
        assert kinds == [Moved, PickedUp, Moved, Dropped]

    def test_low_active_is_charged_and_swapped(self):
        harness = TaskHarness(active_level=15.0, standby_level=50.0)
        box = Box("B1", 12.5, "Bolts", Position(0, 0))

        result = harness.task(TaskType.STORE, box).execute()

        assert result.status == TaskStatus.COMPLETED
        assert result.unit_id == "2"
        assert harness.pair.active is harness.standby
        assert harness.pair.standby is harness.active
        # Former active waits at the station fully charged
        assert harness.active.position == STATION
        assert harness.active.battery.get_level() == 100.0
        assert harness.active.active is False
        assert harness.standby.active is True
        assert harness.standby.battery.get_level() == 20.0
        assert harness.station.is_available()
        assert len(harness.sink.of_type(StationAssigned)) == 1
        assert len(harness.sink.of_type(StationCharged)) == 1

    def test_both_units_low_fails(self):
        harness = TaskHarness(active_level=10.0, standby_level=10.0)
        box = Box("B1", 12.5, "Bolts", Position(0, 0))

        result = harness.task(TaskType.STORE, box).execute()

        assert result.status == TaskStatus.FAILED
        assert result.reason == FailureReason.BOTH_UNITS_LOW
        assert harness.active.carried_box is None
        assert harness.standby.carried_box is None
        assert harness.area.stored_count == 0
        assert harness.pair.active is harness.active
        assert harness.sink.of_type(PickedUp) == []
        failed = harness.sink.of_type(TaskFailed)
        assert failed[0].reason == FailureReason.BOTH_UNITS_LOW.value

    def test_check_and_swap_raises_when_both_low(self):
        harness = TaskHarness(active_level=10.0, standby_level=10.0)
        task = harness.task(TaskType.STORE, Box("B1", 1.0, "x", Position(0, 0)))

        with pytest.raises(BothUnitsLowError):
            task.check_and_swap()
        assert task.status == TaskStatus.FAILED

    def test_check_and_swap_without_low_battery(self):
        harness = TaskHarness()
        task = harness.task(TaskType.STORE, Box("B1", 1.0, "x", Position(0, 0)))

        assert task.check_and_swap() is False
        assert task.status == TaskStatus.BATTERY_CHECKED
        with pytest.raises(StateViolationError):
            task.check_and_swap()

    def test_missing_box_fails(self):
        harness = TaskHarness()
        result = harness.task(TaskType.STORE, None).execute()

        assert result.status == TaskStatus.FAILED
        assert result.reason == FailureReason.NO_BOX_TO_STORE
        assert harness.sink.of_type(Moved) == []
        assert len(harness.sink.of_type(TaskFailed)) == 1

    def test_battery_check_runs_before_missing_box(self):
        harness = TaskHarness(active_level=15.0, standby_level=50.0)
        result = harness.task(TaskType.STORE, None).execute()

        assert result.reason == FailureReason.NO_BOX_TO_STORE
        assert harness.pair.active is harness.standby
        assert harness.active.battery.get_level() == 100.0
        assert len(harness.sink.of_type(StationCharged)) == 1
        assert result.unit_id == "2"

    def test_storage_error_propagates_as_reason(self):
        harness = TaskHarness()
        harness.area.store(Box("B0", 1.0, "x", Position(0, 0)))
        box = Box("B1", 1.0, "x", Position(0, 0))

        result = harness.task(TaskType.STORE, box).execute()

        assert result.status == TaskStatus.FAILED
        assert result.reason == FailureReason.SLOT_CONFLICT
        assert harness.active.carried_box is None
        assert harness.area.find_box_by_id("B1") is None

    def test_terminal_task_cannot_run_again(self):
        harness = TaskHarness()
        task = harness.task(TaskType.STORE, Box("B1", 1.0, "x", Position(0, 0)))
        task.execute()

        with pytest.raises(StateViolationError):
            task.execute()
        with pytest.raises(StateViolationError):
            task.cancel()

    def test_cancel_before_start(self):
        harness = TaskHarness()
        task = harness.task(TaskType.STORE, Box("B1", 1.0, "x", Position(0, 0)))

        result = task.cancel()

        assert result.status == TaskStatus.CANCELLED
        assert result.reason == FailureReason.CANCELLED
        assert task.status == TaskStatus.CANCELLED
        with pytest.raises(StateViolationError):
            task.execute()
        assert harness.sink.events == []

    def test_cancel_after_battery_check(self):
        harness = TaskHarness()
        task = harness.task(TaskType.STORE, Box("B1", 1.0, "x", Position(0, 0)))
        task.check_and_swap()

        assert task.cancel().status == TaskStatus.CANCELLED


class TestRetrievingTask:

    def test_retrieve_happy_path(self):
        harness = TaskHarness()
        box = Box("B1", 12.5, "Bolts", Position(1, 2))
        harness.area.store(box)

        result = harness.task(TaskType.RETRIEVE, box).execute()

        assert result.status == TaskStatus.COMPLETED
        assert result.position == Position(1, 2)
        assert harness.area.find_box_by_id("B1") is None
        assert box.position == DROPOFF
        assert harness.active.position == DROPOFF
        assert harness.active.carried_box is None
        assert harness.active.battery.get_level() == 75.0
        retrieved = harness.sink.of_type(Retrieved)
        assert retrieved[0].position == Position(1, 2)

    def test_empty_slot_is_retrieval_failure(self):
        harness = TaskHarness()
        box = Box("B1", 12.5, "Bolts", Position(1, 2))

        result = harness.task(TaskType.RETRIEVE, box).execute()

        assert result.status == TaskStatus.FAILED
        assert result.reason == FailureReason.RETRIEVAL_FAILED
        # The orphaned box is released rather than left on the unit
        assert harness.active.carried_box is None

    def test_box_without_position(self):
        harness = TaskHarness()
        result = harness.task(TaskType.RETRIEVE, Box("B1", 1.0, "x")).execute()

        assert result.status == TaskStatus.FAILED
        assert result.reason == FailureReason.RETRIEVAL_FAILED
        assert harness.sink.of_type(Moved) == []

    def test_missing_box(self):
        result = TaskHarness().task(TaskType.RETRIEVE, None).execute()
        assert result.reason == FailureReason.INVALID_ARGUMENT

    def test_result_serialises(self):
        harness = TaskHarness()
        box = Box("B1", 1.0, "x", Position(0, 3))
        harness.area.store(box)

        data = harness.task(TaskType.RETRIEVE, box).execute().to_dict()

        assert data["task_type"] == "retrieve"
        assert data["status"] == "completed"
        assert data["reason"] is None
        assert data["position"] == {"row": 0, "col": 3}
