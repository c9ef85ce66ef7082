"""
Warehouse Cell Implementation - Composition root for one storage cell.

This implementation wires a storage area, two unit pairs and their charging
stations together, allocates slots for incoming boxes and runs each request
as a fresh task.

Design Principles:
- **Single Responsibility**: Allocation and task dispatch only; the task owns the steps
- **Dependency Inversion**: Depends on component interfaces; from_config() builds
  the concrete implementations from the configuration provider

Threading Model:
- Slot reservation happens before the pair lock, relying on the storage
  area's own atomic reservation
- Tasks that share a unit pair serialize on that pair's lock
- Store and retrieve pairs run independently of each other
"""

import logging
import threading
from typing import Dict, List, Optional

from interfaces.warehouse_cell_interface import IWarehouseCell, CellStatus
from interfaces.task_interface import TaskType, TaskStatus, TaskResult, UnitPair
from interfaces.storage_area_interface import IStorageArea
from interfaces.charging_station_interface import IChargingStation
from interfaces.battery_interface import IChargeClock
from interfaces.configuration_interface import (
    IBusinessConfigurationProvider, CellConfig, TaskConfig, ConfigurationError
)
from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import IEventSink, Allocated, TaskFailed, record_safely
from interfaces.cell_errors import WarehouseCellError, BoxNotFoundError
from warehouse.box import Box
from warehouse.impl.battery_impl import BatteryImpl, LogicalChargeClock
from warehouse.impl.charging_station_impl import ChargingStationImpl
from warehouse.impl.storage_area_impl import StorageAreaImpl
from warehouse.impl.task_impl import create_task, new_task_id
from warehouse.impl.transport_unit_impl import TransportUnitImpl


class WarehouseCellImpl(IWarehouseCell):
    """Storage cell with a store pair and a retrieve pair of transport units."""

    def __init__(self, cell_config: CellConfig, task_config: TaskConfig,
                 storage_area: IStorageArea, store_pair: UnitPair, retrieve_pair: UnitPair,
                 store_station: IChargingStation, retrieve_station: IChargingStation,
                 event_sink: Optional[IEventSink] = None):
        self._cell_config = cell_config
        self._task_config = task_config
        self._area = storage_area
        self._pairs: Dict[TaskType, UnitPair] = {
            TaskType.STORE: store_pair,
            TaskType.RETRIEVE: retrieve_pair,
        }
        self._stations: Dict[TaskType, IChargingStation] = {
            TaskType.STORE: store_station,
            TaskType.RETRIEVE: retrieve_station,
        }
        self._pair_locks: Dict[TaskType, threading.RLock] = {
            TaskType.STORE: threading.RLock(),
            TaskType.RETRIEVE: threading.RLock(),
        }
        self._event_sink = event_sink
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{cell_config.cell_id}]")
        self.logger.info(
            f"Cell {cell_config.cell_id} ready: store pair "
            f"{store_pair.active.unit_id}/{store_pair.standby.unit_id} at {store_station.station_id}, "
            f"retrieve pair {retrieve_pair.active.unit_id}/{retrieve_pair.standby.unit_id} "
            f"at {retrieve_station.station_id}"
        )

    @classmethod
    def from_config(cls, config_provider: IBusinessConfigurationProvider,
                    event_sink: Optional[IEventSink] = None,
                    storage_area: Optional[IStorageArea] = None,
                    clock: Optional[IChargeClock] = None,
                    battery_levels: Optional[Dict[str, float]] = None) -> 'WarehouseCellImpl':
        """
        Build a cell and all of its components from configuration.

        Args:
            config_provider: Source of cell, battery, task and station settings
            event_sink: Observer shared by every component of the cell
            storage_area: Existing storage area to share, a new grid otherwise
            clock: Charge clock shared by all batteries
            battery_levels: Explicit starting levels keyed by unit id

        Raises:
            ConfigurationError: If the configuration failed validation or a
                station named by the cell is not configured
        """
        errors = config_provider.errors
        if errors:
            raise ConfigurationError(f"Cannot build cell from invalid configuration: {'; '.join(errors)}")

        cell_config = config_provider.get_cell_config()
        task_config = config_provider.get_task_config()
        station_config = config_provider.get_charging_station_config()
        battery_config = config_provider.get_battery_config()
        clock = clock or LogicalChargeClock(battery_config.charge_tick_seconds)
        battery_levels = battery_levels or {}

        area = storage_area or StorageAreaImpl(cell_config.rows, cell_config.cols, name=cell_config.cell_id)

        def build_unit(unit_id: str) -> TransportUnitImpl:
            battery = BatteryImpl(config_provider, unit_id, clock=clock,
                                  initial_level=battery_levels.get(unit_id))
            return TransportUnitImpl(unit_id, battery, cell_config.unit_start_position,
                                     move_cost=task_config.move_cost, event_sink=event_sink)

        def build_station(station_id: str) -> ChargingStationImpl:
            spec = station_config.get_station(station_id)
            if spec is None:
                raise ConfigurationError(f"Charging station {station_id} is not configured")
            return ChargingStationImpl(spec.station_id, spec.position, event_sink=event_sink)

        store_ids = cell_config.store_unit_ids
        retrieve_ids = cell_config.retrieve_unit_ids
        return cls(
            cell_config=cell_config,
            task_config=task_config,
            storage_area=area,
            store_pair=UnitPair(build_unit(store_ids[0]), build_unit(store_ids[1])),
            retrieve_pair=UnitPair(build_unit(retrieve_ids[0]), build_unit(retrieve_ids[1])),
            store_station=build_station(cell_config.store_station_id),
            retrieve_station=build_station(cell_config.retrieve_station_id),
            event_sink=event_sink,
        )

    @property
    def cell_id(self) -> str:
        return self._cell_config.cell_id

    @property
    def storage_area(self) -> IStorageArea:
        return self._area

    def get_pair(self, task_type: TaskType) -> UnitPair:
        return self._pairs[task_type]

    def get_station(self, task_type: TaskType) -> IChargingStation:
        return self._stations[task_type]

    # --- Submission ---

    def submit_store(self, box: Box, slot: Optional[Position] = None) -> TaskResult:
        if box is None:
            with self._pair_locks[TaskType.STORE]:
                return self._new_task(TaskType.STORE, None).execute()

        try:
            if slot is not None:
                position = self._area.reserve_slot(slot, box.id)
            else:
                position = self._area.reserve_empty_slot(box.id)
        except WarehouseCellError as e:
            return self._reject(TaskType.STORE, e, box.id)

        box.assign_position(position)
        self.logger.info(f"Allocated slot {position} for box {box.id}")
        record_safely(self._event_sink, Allocated(box.id, position), self.logger)

        with self._pair_locks[TaskType.STORE]:
            result = self._new_task(TaskType.STORE, box).execute()

        if result.status != TaskStatus.COMPLETED:
            if self._area.release_reservation(position, box.id):
                self.logger.info(f"Released slot {position} after failed store of box {box.id}")
            box.assign_position(None)
        return result

    def submit_retrieve(self, box_id: str) -> TaskResult:
        with self._pair_locks[TaskType.RETRIEVE]:
            position = self._area.find_box_by_id(box_id)
            if position is None:
                return self._reject(TaskType.RETRIEVE, BoxNotFoundError(f"Box {box_id} not found"), box_id)
            box = self._area.get_box_at(position.row, position.col)
            return self._new_task(TaskType.RETRIEVE, box).execute()

    def _new_task(self, task_type: TaskType, box: Optional[Box]):
        return create_task(
            task_type,
            pair=self._pairs[task_type],
            box=box,
            area=self._area,
            station=self._stations[task_type],
            task_config=self._task_config,
            pickup_position=self._cell_config.pickup_position,
            dropoff_position=self._cell_config.dropoff_position,
            event_sink=self._event_sink,
        )

    def _reject(self, task_type: TaskType, error: WarehouseCellError, box_id: Optional[str]) -> TaskResult:
        """Report a request that failed before a task could start."""
        task_id = new_task_id(task_type)
        self.logger.warning(f"{task_type.value.capitalize()} request for box {box_id} rejected: {error}")
        record_safely(self._event_sink, TaskFailed(task_id, error.reason.value, str(error)), self.logger)
        return TaskResult(
            task_id=task_id,
            task_type=task_type,
            status=TaskStatus.FAILED,
            detail=str(error),
            reason=error.reason,
            box_id=box_id,
        )

    # --- Status ---

    def get_status(self) -> CellStatus:
        units: List = []
        for pair in self._pairs.values():
            units.extend(unit.get_status() for unit in pair)
        return CellStatus(
            cell_id=self.cell_id,
            stored_count=self._area.stored_count,
            free_count=self._area.free_count,
            contents=self._area.describe_contents(),
            units=sorted(units, key=lambda status: status.unit_id),
            stations=[station.get_info() for station in self._stations.values()],
        )
