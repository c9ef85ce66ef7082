"""
Concurrency tests for slot allocation and charging station sharing.

Threads are released together through a barrier so that competing requests
overlap as much as possible.
"""
import os
import threading
import pytest
from unittest.mock import Mock

from config.configuration_provider import ConfigurationProvider
from interfaces.cell_errors import FailureReason
from interfaces.configuration_interface import BatteryConfig, TaskConfig
from interfaces.task_interface import TaskStatus, TaskType, UnitPair
from interfaces.warehouse_types import Position
from warehouse.box import Box
from warehouse.impl.battery_impl import BatteryImpl, LogicalChargeClock
from warehouse.impl.charging_station_impl import ChargingStationImpl
from warehouse.impl.storage_area_impl import StorageAreaImpl
from warehouse.impl.task_impl import create_task
from warehouse.impl.transport_unit_impl import TransportUnitImpl
from warehouse.impl.warehouse_cell_impl import WarehouseCellImpl


@pytest.fixture
def cell(monkeypatch):
    for key in list(os.environ):
        if key.startswith("WAREHOUSE_"):
            monkeypatch.delenv(key, raising=False)
    return WarehouseCellImpl.from_config(ConfigurationProvider())


def run_together(count, target):
    """Run target(index) on count threads released at the same instant."""
    barrier = threading.Barrier(count)
    results = [None] * count
    errors = []

    def worker(index):
        try:
            barrier.wait(timeout=5.0)
            results[index] = target(index)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30.0)
    assert errors == []
    return results


class TestConcurrentAllocation:

    def test_same_slot_has_exactly_one_winner(self, cell):
        results = run_together(8, lambda i: cell.submit_store(Box(f"B{i}", 1.0, "x"), slot=Position(2, 2)))

        winners = [result for result in results if result.status == TaskStatus.COMPLETED]
        losers = [result for result in results if result.status == TaskStatus.FAILED]
        assert len(winners) == 1
        assert len(losers) == 7
        assert all(result.reason == FailureReason.SLOT_CONFLICT for result in losers)
        assert cell.storage_area.get_box_at(2, 2).id == winners[0].box_id
        assert cell.storage_area.stored_count == 1

    def test_first_empty_slots_are_distinct(self, cell):
        results = run_together(20, lambda i: cell.submit_store(Box(f"B{i}", 1.0, "x")))

        assert all(result.succeeded for result in results)
        positions = {result.position for result in results}
        assert len(positions) == 20
        assert cell.storage_area.stored_count == 20

    def test_same_box_id_has_exactly_one_winner(self, cell):
        results = run_together(5, lambda i: cell.submit_store(Box("DUP", 1.0, f"copy {i}")))

        assert sum(1 for result in results if result.succeeded) == 1
        assert sorted(result.reason.value for result in results if not result.succeeded) == \
            ["duplicate_box_id"] * 4

    def test_stores_and_retrieves_interleave(self, cell):
        for i in range(5):
            assert cell.submit_store(Box(f"OLD{i}", 1.0, "x")).succeeded

        def work(index):
            if index % 2 == 0:
                return cell.submit_retrieve(f"OLD{index // 2}")
            return cell.submit_store(Box(f"NEW{index}", 1.0, "x"))

        results = run_together(10, work)

        assert all(result.succeeded for result in results)
        assert cell.storage_area.stored_count == 5
        assert cell.get_pair(TaskType.STORE).active.carried_box is None


class TestSharedChargingStation:

    def make_pair(self, prefix, clock, active_level):
        provider = Mock()
        provider.get_battery_config.return_value = BatteryConfig(
            initial_level=100.0, low_threshold=20.0, recharge_step=20.0, charge_tick_seconds=0.01,
            randomize_initial_level=False, initial_level_min=80.0, initial_level_max=100.0,
        )

        def unit(unit_id, level):
            battery = BatteryImpl(provider, unit_id, clock=clock, initial_level=level)
            return TransportUnitImpl(unit_id, battery, Position(10, 10))

        return UnitPair(unit(f"{prefix}1", active_level), unit(f"{prefix}2", 100.0))

    def test_waiting_tasks_take_turns(self):
        clock = LogicalChargeClock(0.01)
        station = ChargingStationImpl("CS1", Position(0, 5))
        area = StorageAreaImpl(5, 5)
        task_config = TaskConfig(move_cost=5.0, store_carry_cost=20.0, retrieve_carry_cost=15.0,
                                 max_concurrent_tasks=2, station_assign_timeout=10.0)
        pairs = [self.make_pair("A", clock, 15.0), self.make_pair("B", clock, 12.0)]

        def run(index):
            task = create_task(
                TaskType.STORE,
                pair=pairs[index],
                box=Box(f"B{index}", 1.0, "x", Position(0, index)),
                area=area,
                station=station,
                task_config=task_config,
                pickup_position=Position(-1, -1),
                dropoff_position=Position(5, 5),
            )
            return task.execute()

        results = run_together(2, run)

        assert all(result.succeeded for result in results)
        assert station.get_info().charge_count == 2
        assert station.is_available()
        for pair in pairs:
            assert pair.standby.battery.get_level() == 100.0
