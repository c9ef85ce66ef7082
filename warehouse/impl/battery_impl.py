"""
Battery Implementation - Per-unit charge level with logical-tick recharging.

This implementation keeps a bounded charge level for one transport unit and
recharges it in discrete steps paced by an injected charge clock.

Design Principles:
- **Single Responsibility**: Handles only charge-level state
- **Liskov Substitution**: Fully implements IBattery
- **Dependency Inversion**: Tick pacing comes from IChargeClock, costs from configuration
"""

import logging
import math
import random
import threading
from typing import Optional

from interfaces.battery_interface import IBattery, IChargeClock, BatteryState
from interfaces.cell_errors import InvalidArgumentError, AlreadyFullError, StateViolationError
from interfaces.configuration_interface import IBusinessConfigurationProvider

FULL_CHARGE = 100.0


class LogicalChargeClock(IChargeClock):
    """
    Charge clock backed by threading.Event.wait.

    A tick suspends only the calling thread for tick_seconds. With a zero
    duration ticks complete immediately, which keeps tests fast.
    """

    def __init__(self, tick_seconds: float = 0.0):
        self._tick_seconds = max(0.0, float(tick_seconds))
        self._tick_event = threading.Event()
        self._lock = threading.Lock()
        self._ticks = 0

    def wait_tick(self) -> None:
        if self._tick_seconds > 0:
            self._tick_event.wait(self._tick_seconds)
        with self._lock:
            self._ticks += 1

    def get_tick_count(self) -> int:
        with self._lock:
            return self._ticks


class BatteryImpl(IBattery):
    """
    Thread-safe battery owned by a single transport unit.

    Threading Model:
    - Level reads and discharges are guarded by an RLock
    - The lock is released between recharge ticks so status queries never wait
      on a full charge cycle
    - A second concurrent recharge is rejected instead of queued
    """

    def __init__(self, config_provider: IBusinessConfigurationProvider, unit_id: str = "default",
                 clock: Optional[IChargeClock] = None, initial_level: Optional[float] = None):
        """
        Initialize battery with configuration.

        Args:
            config_provider: Configuration provider for battery parameters
            unit_id: Owning unit identifier for logging
            clock: Charge clock pacing recharge steps
            initial_level: Explicit starting level, overrides configuration
        """
        self._unit_id = unit_id
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{unit_id}]")
        self._config = config_provider.get_battery_config()
        self._clock = clock or LogicalChargeClock(self._config.charge_tick_seconds)
        self._lock = threading.RLock()
        self._charging = False

        if initial_level is None:
            if self._config.randomize_initial_level:
                initial_level = random.uniform(self._config.initial_level_min, self._config.initial_level_max)
            else:
                initial_level = self._config.initial_level
        if not math.isfinite(initial_level) or initial_level < 0 or initial_level > FULL_CHARGE:
            raise InvalidArgumentError(f"Initial charge level must be within [0, 100], got {initial_level}")
        self._level = float(initial_level)

        self._logger.debug(f"Battery initialized at {self._level:.1f}%")

    def get_level(self) -> float:
        with self._lock:
            return self._level

    def get_state(self) -> BatteryState:
        with self._lock:
            return BatteryState(
                level=self._level,
                is_low=self._level < self._config.low_threshold,
                is_charging=self._charging,
            )

    def discharge(self, amount: float) -> float:
        if amount is None or not math.isfinite(amount) or amount < 0:
            raise InvalidArgumentError(f"Discharge amount must be a finite non-negative number, got {amount}")
        with self._lock:
            self._level = max(0.0, self._level - amount)
            self._logger.debug(f"Discharged {amount:g}, level now {self._level:.1f}%")
            return self._level

    def recharge(self) -> float:
        with self._lock:
            if self._charging:
                raise StateViolationError(f"Battery of unit {self._unit_id} is already charging")
            if self._level >= FULL_CHARGE:
                raise AlreadyFullError(f"Battery of unit {self._unit_id} is already full")
            self._charging = True
            start_level = self._level

        self._logger.info(f"Recharging from {start_level:.1f}%")
        try:
            while True:
                self._clock.wait_tick()
                with self._lock:
                    self._level = min(FULL_CHARGE, self._level + self._config.recharge_step)
                    self._logger.debug(f"Charge tick, level now {self._level:.1f}%")
                    if self._level >= FULL_CHARGE:
                        break
        finally:
            with self._lock:
                self._charging = False

        self._logger.info(f"Recharge complete ({start_level:.1f}% -> {FULL_CHARGE:.1f}%)")
        return FULL_CHARGE

    def is_low(self) -> bool:
        with self._lock:
            return self._level < self._config.low_threshold

    def is_full(self) -> bool:
        with self._lock:
            return self._level >= FULL_CHARGE
