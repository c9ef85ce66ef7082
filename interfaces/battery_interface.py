"""
Battery Interface - Charge-level state machine owned by a single transport unit.

This interface defines the contract for unit batteries:
- Bounded charge level in [0, 100]
- Discharge by a non-negative amount
- Stepwise recharge driven by a logical charge clock
- Low-battery predicate used by the swap policy

A battery is owned exclusively by its unit and is never shared.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BatteryState:
    """Current battery state information."""
    level: float        # Current charge level (0.0 to 100.0)
    is_low: bool        # Below the low-battery threshold
    is_charging: bool   # Whether a recharge is in progress


class IChargeClock(ABC):
    """
    Logical clock that paces recharge steps.

    Implementations must suspend the calling thread only; they must never
    spin on wall-clock polling.
    """

    @abstractmethod
    def wait_tick(self) -> None:
        """Block until the next charge tick."""
        pass

    @abstractmethod
    def get_tick_count(self) -> int:
        """
        Get number of ticks elapsed so far.

        Returns:
            int: Ticks waited since the clock was created
        """
        pass


class IBattery(ABC):
    """
    Battery interface for transport units.

    **Thread Safety**: All methods are thread-safe.
    """

    @abstractmethod
    def get_level(self) -> float:
        """
        Get current charge level.

        Returns:
            float: Charge level from 0.0 (empty) to 100.0 (full)
        """
        pass

    @abstractmethod
    def get_state(self) -> BatteryState:
        """
        Get current battery state snapshot.

        Returns:
            BatteryState: Current battery information
        """
        pass

    @abstractmethod
    def discharge(self, amount: float) -> float:
        """
        Discharge the battery, never below zero.

        Args:
            amount: Charge to remove (must be >= 0)

        Returns:
            float: New charge level

        Raises:
            InvalidArgumentError: If amount is negative or not finite (state unchanged)
        """
        pass

    @abstractmethod
    def recharge(self) -> float:
        """
        Recharge to full in discrete steps, one step per charge tick.

        Returns:
            float: Final charge level (always 100.0)

        Raises:
            AlreadyFullError: If the battery is already full
            StateViolationError: If a recharge is already in progress
        """
        pass

    @abstractmethod
    def is_low(self) -> bool:
        """
        Check if the charge level is below the low-battery threshold.

        Returns:
            bool: True if the swap policy should send this unit to charge
        """
        pass

    @abstractmethod
    def is_full(self) -> bool:
        """
        Check if the battery is fully charged.

        Returns:
            bool: True if charge level is 100.0
        """
        pass
