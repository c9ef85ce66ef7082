"""
Charging Station Implementation - Exclusive charging resource with condition-based waiting.

This implementation binds at most one transport unit at a time. Callers that
find the station occupied either fail immediately or suspend on a condition
variable until charge() releases it. The station never displaces an occupant.

Design Principles:
- **Single Responsibility**: Handles only occupancy and charging of one station
- **Liskov Substitution**: Fully implements IChargingStation
- **Dependency Inversion**: Charges any ITransportUnit through its IBattery
"""

import logging
import threading
import time
from typing import Optional

from interfaces.charging_station_interface import (
    IChargingStation, ChargingStationInfo, ChargingStationStatus
)
from interfaces.transport_unit_interface import ITransportUnit
from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import IEventSink, StationAssigned, StationCharged, record_safely
from interfaces.cell_errors import (
    InvalidArgumentError, StationOccupiedError, NoOccupantError, StateViolationError, AlreadyFullError
)


class ChargingStationImpl(IChargingStation):
    """
    Thread-safe charging station.

    Threading Model:
    - Occupancy is guarded by a threading.Condition
    - assign(wait=True) suspends on the condition, never spins
    - Charging runs outside the condition so status reads stay responsive;
      the occupant stays bound until charging finishes
    """

    def __init__(self, station_id: str, position: Position, event_sink: Optional[IEventSink] = None):
        self._station_id = station_id
        self._position = position
        self._event_sink = event_sink
        self._condition = threading.Condition(threading.RLock())
        self._occupant: Optional[ITransportUnit] = None
        self._assigned_at: Optional[float] = None
        self._charging = False
        self._charge_count = 0
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{station_id}]")

    @property
    def station_id(self) -> str:
        return self._station_id

    @property
    def position(self) -> Position:
        return self._position

    def assign(self, unit: ITransportUnit, wait: bool = False, timeout: Optional[float] = None) -> None:
        if unit is None:
            raise InvalidArgumentError(f"Station {self._station_id} was given no unit to assign")

        with self._condition:
            if self._occupant is not None:
                if not wait:
                    raise StationOccupiedError(
                        f"Station {self._station_id} is occupied by unit {self._occupant.unit_id}"
                    )
                self._logger.info(
                    f"Unit {unit.unit_id} waiting for station {self._station_id} "
                    f"(occupied by {self._occupant.unit_id})"
                )
                if not self._condition.wait_for(lambda: self._occupant is None, timeout=timeout):
                    raise StationOccupiedError(
                        f"Station {self._station_id} still occupied after waiting {timeout}s"
                    )
            self._occupant = unit
            self._assigned_at = time.time()

        unit.move_to(self._position)
        self._logger.info(f"Assigned unit {unit.unit_id} to station {self._station_id} at {self._position}")
        record_safely(self._event_sink, StationAssigned(unit.unit_id, self._station_id), self._logger)

    def charge(self) -> float:
        with self._condition:
            occupant = self._occupant
            if occupant is None:
                raise NoOccupantError(f"Station {self._station_id} has no unit to charge")
            if self._charging:
                raise StateViolationError(f"Station {self._station_id} is already charging {occupant.unit_id}")
            self._charging = True

        charged = False
        try:
            if occupant.battery.is_full():
                self._logger.info(f"Unit {occupant.unit_id} is already full, releasing station")
            else:
                try:
                    occupant.battery.recharge()
                except AlreadyFullError:
                    self._logger.debug(f"Unit {occupant.unit_id} reached full charge before recharge started")
            charged = True
            level = occupant.battery.get_level()
        finally:
            with self._condition:
                self._occupant = None
                self._assigned_at = None
                self._charging = False
                if charged:
                    self._charge_count += 1
                self._condition.notify_all()

        self._logger.info(f"Unit {occupant.unit_id} charged to {level:.1f}% at station {self._station_id}")
        record_safely(self._event_sink, StationCharged(occupant.unit_id, self._station_id), self._logger)
        return level

    def get_occupant(self) -> Optional[ITransportUnit]:
        with self._condition:
            return self._occupant

    def is_available(self) -> bool:
        with self._condition:
            return self._occupant is None

    def get_info(self) -> ChargingStationInfo:
        with self._condition:
            return ChargingStationInfo(
                station_id=self._station_id,
                position=self._position,
                status=ChargingStationStatus.AVAILABLE if self._occupant is None else ChargingStationStatus.OCCUPIED,
                occupant_id=self._occupant.unit_id if self._occupant else None,
                assigned_at=self._assigned_at,
                charge_count=self._charge_count,
            )
