"""
Transport Unit Implementation - AGV primitives over an owned battery.

Each primitive validates its input, updates the unit's state under the unit
lock, and reports what happened to the event sink after the lock is released.
"""

import logging
import threading
from typing import Optional

from interfaces.transport_unit_interface import ITransportUnit, UnitStatus
from interfaces.battery_interface import IBattery
from interfaces.storage_area_interface import IStorageArea
from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import IEventSink, Moved, PickedUp, Dropped, STORED, record_safely
from interfaces.cell_errors import (
    WarehouseCellError, InvalidTargetError, InvalidBoxError, InvalidAreaError,
    AlreadyCarryingError, NothingCarriedError
)
from warehouse.box import Box


class TransportUnitImpl(ITransportUnit):
    """Thread-safe transport unit with a single-carry invariant."""

    def __init__(self, unit_id: str, battery: IBattery, start_position: Position,
                 move_cost: float = 5.0, event_sink: Optional[IEventSink] = None,
                 active: bool = False):
        """
        Initialize a transport unit.

        Args:
            unit_id: Unit identifier
            battery: Battery owned exclusively by this unit
            start_position: Initial position
            move_cost: Charge discharged by every move
            event_sink: Observer for Moved/PickedUp/Dropped events
            active: Whether the unit starts as the active unit of its pair
        """
        self._unit_id = unit_id
        self._battery = battery
        self._position = start_position
        self._move_cost = move_cost
        self._event_sink = event_sink
        self._active = active
        self._carried_box: Optional[Box] = None
        self._lock = threading.RLock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{unit_id}]")

    @property
    def unit_id(self) -> str:
        return self._unit_id

    @property
    def battery(self) -> IBattery:
        return self._battery

    @property
    def position(self) -> Position:
        with self._lock:
            return self._position

    @property
    def carried_box(self) -> Optional[Box]:
        with self._lock:
            return self._carried_box

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def set_active(self, active: bool) -> None:
        with self._lock:
            self._active = active
        self.logger.debug(f"Unit {self._unit_id} is now {'active' if active else 'standby'}")

    def move_to(self, target: Position) -> None:
        if target is None:
            raise InvalidTargetError(f"Unit {self._unit_id} was given no move target")
        with self._lock:
            origin = self._position
            self._position = target
            level = self._battery.discharge(self._move_cost)
        self.logger.info(f"AGV {self._unit_id} moved {origin} -> {target} (battery {level:.1f}%)")
        record_safely(self._event_sink, Moved(self._unit_id, origin, target), self.logger)

    def pick_up(self, box: Box) -> None:
        if box is None:
            raise InvalidBoxError(f"Unit {self._unit_id} was given no box to pick up")
        with self._lock:
            if self._carried_box is not None:
                raise AlreadyCarryingError(
                    f"Unit {self._unit_id} already carries box {self._carried_box.id}"
                )
            self._carried_box = box
        self.logger.info(f"AGV {self._unit_id} picked up box {box.id}")
        record_safely(self._event_sink, PickedUp(self._unit_id, box.id), self.logger)

    def drop(self, area: IStorageArea) -> None:
        with self._lock:
            box = self._carried_box
            if box is None:
                raise NothingCarriedError(f"Unit {self._unit_id} carries no box to drop")
            if area is None:
                raise InvalidAreaError(f"Unit {self._unit_id} was given no storage area")
            self._carried_box = None

        try:
            area.store(box)
        except WarehouseCellError as e:
            self.logger.warning(f"AGV {self._unit_id} dropped box {box.id} but store failed: {e}")
            record_safely(self._event_sink, Dropped(self._unit_id, box.id, e.reason.value), self.logger)
            raise

        self.logger.info(f"AGV {self._unit_id} dropped box {box.id} at {box.position}")
        record_safely(self._event_sink, Dropped(self._unit_id, box.id, STORED), self.logger)

    def hand_off(self) -> Box:
        with self._lock:
            box = self._carried_box
            if box is None:
                raise NothingCarriedError(f"Unit {self._unit_id} carries no box to hand off")
            self._carried_box = None
        self.logger.info(f"AGV {self._unit_id} handed off box {box.id} at {self.position}")
        return box

    def get_status(self) -> UnitStatus:
        with self._lock:
            state = self._battery.get_state()
            return UnitStatus(
                unit_id=self._unit_id,
                position=self._position,
                battery_level=state.level,
                is_low=state.is_low,
                active=self._active,
                carried_box_id=self._carried_box.id if self._carried_box else None,
            )

    def __repr__(self):
        return f"TransportUnitImpl(id={self._unit_id!r}, position={self._position}, active={self._active})"
