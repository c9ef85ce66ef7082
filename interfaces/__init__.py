"""
Core interfaces for the AGV Storage Cell.

This module defines all the major interfaces that components must implement
to ensure proper decoupling and testability.

Only leaf modules are re-exported here. Interfaces that carry Box in their
signatures (storage area, transport unit, charging station, task, cell) are
imported from their own modules, since warehouse.box itself depends on
interfaces.warehouse_types.
"""

# Value types and error taxonomy
from .warehouse_types import Position
from .cell_errors import (
    FailureReason, WarehouseCellError, InvalidArgumentError, ResourceConflictError,
    OutOfBoundsError, StateViolationError, BoxNotFoundError, BothUnitsLowError,
    RetrievalFailedError
)

# Battery, events and configuration
from .battery_interface import IBattery, IChargeClock, BatteryState
from .event_sink_interface import IEventSink, TaskEvent
from .configuration_interface import IBusinessConfigurationProvider, ConfigurationError

__all__ = [
    'Position',
    'FailureReason', 'WarehouseCellError', 'InvalidArgumentError', 'ResourceConflictError',
    'OutOfBoundsError', 'StateViolationError', 'BoxNotFoundError', 'BothUnitsLowError',
    'RetrievalFailedError',
    'IBattery', 'IChargeClock', 'BatteryState',
    'IEventSink', 'TaskEvent',
    'IBusinessConfigurationProvider', 'ConfigurationError',
]
