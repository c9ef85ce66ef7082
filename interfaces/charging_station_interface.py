"""
Charging Station Interface - Exclusive charging resource for transport units.

This interface defines a station that binds at most one unit at a time. It
follows the same allocation pattern as the storage slots: claim, use, release,
with the release happening only when charging has completed.

Design Principles:
- **Single Responsibility**: Handles only occupancy and charging of one station
- **Liskov Substitution**: All implementations are interchangeable
- **Dependency Inversion**: Works against ITransportUnit, not a concrete unit
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from interfaces.transport_unit_interface import ITransportUnit
from interfaces.warehouse_types import Position


class ChargingStationStatus(Enum):
    """Status of a charging station."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"


@dataclass(frozen=True)
class ChargingStationInfo:
    """Information about a charging station."""
    station_id: str
    position: Position
    status: ChargingStationStatus
    occupant_id: Optional[str] = None
    assigned_at: Optional[float] = None  # timestamp
    charge_count: int = 0


class IChargingStation(ABC):
    """
    Interface for a single charging station.

    **Thread Safety**: All methods are thread-safe. Occupancy is guarded by a
    condition variable so waiting callers suspend instead of polling.
    """

    @property
    @abstractmethod
    def station_id(self) -> str:
        """Station identifier."""
        pass

    @property
    @abstractmethod
    def position(self) -> Position:
        """Station position."""
        pass

    @abstractmethod
    def assign(self, unit: ITransportUnit, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Bind a unit as occupant and move it to the station.

        Args:
            unit: Unit to charge
            wait: Wait for the station to free up instead of failing
            timeout: Maximum seconds to wait (None waits indefinitely)

        Raises:
            InvalidArgumentError: If unit is None
            StationOccupiedError: If occupied (and not freed within the wait)
        """
        pass

    @abstractmethod
    def charge(self) -> float:
        """
        Recharge the occupant to full, then release the station.

        Returns:
            float: Occupant charge level after charging

        Raises:
            NoOccupantError: If the station has no occupant
        """
        pass

    @abstractmethod
    def get_occupant(self) -> Optional[ITransportUnit]:
        """Current occupant, if any."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """True if the station has no occupant."""
        pass

    @abstractmethod
    def get_info(self) -> ChargingStationInfo:
        """
        Get a snapshot of the station.

        Returns:
            ChargingStationInfo: Current station information
        """
        pass
