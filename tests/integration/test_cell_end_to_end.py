"""
Integration tests for a complete storage cell.

Uses real implementations throughout (configuration provider, batteries,
stations, storage area, tasks, event pipeline) and drives the cell through
full store/retrieve cycles, battery swaps and failure paths.
"""
import os
import pytest
from unittest.mock import Mock

from config.configuration_provider import ConfigurationProvider
from interfaces.cell_errors import FailureReason
from interfaces.event_sink_interface import StationCharged, TaskFailed
from interfaces.task_interface import TaskStatus, TaskType
from interfaces.warehouse_types import Position
from events.event_counters import EventCounters
from events.sinks import CompositeEventSink, InMemoryEventSink
from warehouse.box import Box
from warehouse.impl.warehouse_cell_impl import WarehouseCellImpl


@pytest.fixture
def provider(monkeypatch):
    for key in list(os.environ):
        if key.startswith("WAREHOUSE_"):
            monkeypatch.delenv(key, raising=False)
    return ConfigurationProvider()


@pytest.fixture
def observers():
    return EventCounters(), InMemoryEventSink()


def build_cell(provider, observers, battery_levels=None):
    counters, memory = observers
    return WarehouseCellImpl.from_config(
        provider, event_sink=CompositeEventSink([counters, memory]), battery_levels=battery_levels
    )


class TestCellEndToEnd:

    def test_fill_and_empty_the_grid(self, provider, observers):
        counters, memory = observers
        cell = build_cell(provider, observers)

        store_results = [cell.submit_store(Box(f"B{i:02d}", 1.0 + i, f"item {i}")) for i in range(25)]
        assert all(result.succeeded for result in store_results)
        assert [result.position for result in store_results[:6]] == [
            Position(0, 0), Position(0, 1), Position(0, 2), Position(0, 3), Position(0, 4), Position(1, 0)
        ]

        overflow = cell.submit_store(Box("B99", 1.0, "overflow"))
        assert overflow.reason == FailureReason.STORAGE_FULL

        retrieve_results = [cell.submit_retrieve(f"B{i:02d}") for i in range(25)]
        assert all(result.succeeded for result in retrieve_results)

        snapshot = counters.snapshot()
        assert (snapshot.entered, snapshot.stored, snapshot.exited, snapshot.failed) == (25, 25, 25, 1)
        assert snapshot.in_storage == 0
        assert cell.storage_area.stored_count == 0
        # Long runs drain batteries, so both pairs must have swapped at least once
        assert len(memory.of_type(StationCharged)) >= 2
        for unit in cell.get_status().units:
            assert unit.battery_level >= 0.0
            assert unit.carried_box_id is None

    def test_low_active_unit_swaps_with_standby(self, provider, observers):
        _, memory = observers
        cell = build_cell(provider, observers, battery_levels={"1": 15.0, "2": 50.0})

        result = cell.submit_store(Box("B1", 5.0, "Bolts"))

        assert result.status == TaskStatus.COMPLETED
        assert result.unit_id == "2"
        pair = cell.get_pair(TaskType.STORE)
        assert pair.active.unit_id == "2"
        former = pair.standby
        assert former.unit_id == "1"
        assert former.position == Position(0, 5)
        assert former.battery.get_level() == 100.0
        assert former.active is False
        assert cell.get_station(TaskType.STORE).is_available()

    def test_both_units_low_then_recovery(self, provider, observers):
        counters, memory = observers
        cell = build_cell(provider, observers, battery_levels={"1": 10.0, "2": 10.0})
        box = Box("B1", 5.0, "Bolts")

        failed = cell.submit_store(box)

        assert failed.reason == FailureReason.BOTH_UNITS_LOW
        assert box.position is None
        assert cell.storage_area.free_count == 25
        assert all(unit.carried_box_id is None for unit in cell.get_status().units)
        assert memory.of_type(TaskFailed)[0].reason == "both_units_low"

        # The active unit was charged before the standby check, so it serves the retry
        retry = cell.submit_store(box)
        assert retry.succeeded
        assert retry.unit_id == "1"
        assert counters.snapshot().stored == 1

    def test_store_then_retrieve_round_trip(self, provider, observers):
        cell = build_cell(provider, observers)
        box = Box("B7", 7.5, "Gears")

        stored = cell.submit_store(box, slot=Position(4, 4))
        retrieved = cell.submit_retrieve("B7")

        assert stored.position == Position(4, 4)
        assert retrieved.position == Position(4, 4)
        assert box.position == Position(5, 5)
        # The id may be reused once the box has left the cell
        assert cell.submit_store(Box("B7", 1.0, "Gears again")).succeeded

    def test_broken_observer_does_not_change_outcomes(self, provider):
        broken = Mock()
        broken.record.side_effect = RuntimeError("observer down")
        counters = EventCounters()
        cell = WarehouseCellImpl.from_config(provider, event_sink=CompositeEventSink([broken, counters]))

        assert cell.submit_store(Box("B1", 1.0, "Bolts")).succeeded
        assert cell.submit_retrieve("B1").succeeded
        assert counters.snapshot().exited == 1

        cell_with_raw_sink = WarehouseCellImpl.from_config(provider, event_sink=broken)
        assert cell_with_raw_sink.submit_store(Box("B2", 1.0, "Nuts")).succeeded
