"""
Transport Unit Interface - Mobile carrier (AGV) primitives.

A transport unit owns one battery and carries at most one box. Motion is an
instantaneous state transition: move_to() replaces the unit's position and
charges the move cost against its battery.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from interfaces.battery_interface import IBattery
from interfaces.warehouse_types import Position
from interfaces.storage_area_interface import IStorageArea
from warehouse.box import Box


@dataclass(frozen=True)
class UnitStatus:
    """Snapshot of a unit for status displays."""
    unit_id: str
    position: Position
    battery_level: float
    is_low: bool
    active: bool
    carried_box_id: Optional[str] = None


class ITransportUnit(ABC):
    """
    Interface for transport units.

    **Thread Safety**: All methods are thread-safe. A unit is driven by one
    task at a time; the lock guards status reads from other threads.
    """

    @property
    @abstractmethod
    def unit_id(self) -> str:
        """Unit identifier."""
        pass

    @property
    @abstractmethod
    def battery(self) -> IBattery:
        """Battery owned by this unit."""
        pass

    @property
    @abstractmethod
    def position(self) -> Position:
        """Current position."""
        pass

    @property
    @abstractmethod
    def carried_box(self) -> Optional[Box]:
        """Box currently carried, if any."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether this unit is the active unit of its pair."""
        pass

    @abstractmethod
    def set_active(self, active: bool) -> None:
        """Flip the active flag."""
        pass

    @abstractmethod
    def move_to(self, target: Position) -> None:
        """
        Move to a position and discharge the move cost.

        Args:
            target: Destination

        Raises:
            InvalidTargetError: If target is None
        """
        pass

    @abstractmethod
    def pick_up(self, box: Box) -> None:
        """
        Attach a box to the unit.

        Raises:
            InvalidBoxError: If box is None
            AlreadyCarryingError: If the unit already carries a box
        """
        pass

    @abstractmethod
    def drop(self, area: IStorageArea) -> None:
        """
        Release the carried box into a storage area.

        The unit lets go of the box before the store is attempted; a failed
        store is reported to the caller but never rolled back onto the unit.

        Raises:
            NothingCarriedError: If no box is carried
            InvalidAreaError: If area is None
            OutOfBoundsError, SlotConflictError: Propagated from the store
        """
        pass

    @abstractmethod
    def hand_off(self) -> Box:
        """
        Release the carried box outside storage (at the dropoff point).

        Returns:
            Box: The released box

        Raises:
            NothingCarriedError: If no box is carried
        """
        pass

    @abstractmethod
    def get_status(self) -> UnitStatus:
        """
        Get a snapshot of the unit.

        Returns:
            UnitStatus: Current unit information
        """
        pass
