"""
Cell Errors - Error taxonomy for the storage cell engine.

Every component raises a subclass of WarehouseCellError. Each class carries a
FailureReason so that the task boundary can turn any raised error into a typed
TaskResult without inspecting messages.

Families:
- InvalidArgumentError: bad input (negative discharge, missing target/box/area)
- ResourceConflictError: occupied slot or station, duplicate box id, full grid
- OutOfBoundsError: grid index outside the storage area
- StateViolationError: operation not allowed in the current state
- BothUnitsLow / RetrievalFailed / BoxNotFound: task-level terminal failures
"""
from enum import Enum


class FailureReason(Enum):
    """Machine-readable reason attached to every failure."""
    INVALID_ARGUMENT = "invalid_argument"
    NO_BOX_TO_STORE = "no_box_to_store"
    RESOURCE_CONFLICT = "resource_conflict"
    SLOT_CONFLICT = "slot_conflict"
    STATION_OCCUPIED = "station_occupied"
    DUPLICATE_BOX_ID = "duplicate_box_id"
    STORAGE_FULL = "storage_full"
    OUT_OF_BOUNDS = "out_of_bounds"
    STATE_VIOLATION = "state_violation"
    EMPTY_CELL = "empty_cell"
    NOT_FOUND = "not_found"
    BOTH_UNITS_LOW = "both_units_low"
    RETRIEVAL_FAILED = "retrieval_failed"
    CANCELLED = "cancelled"


class WarehouseCellError(Exception):
    """Base class for all storage cell errors."""
    reason = FailureReason.STATE_VIOLATION


# --- Invalid arguments ---

class InvalidArgumentError(WarehouseCellError):
    """Raised when an operation receives bad input."""
    reason = FailureReason.INVALID_ARGUMENT


class InvalidTargetError(InvalidArgumentError):
    """Raised when a unit is asked to move to a missing target."""
    pass


class InvalidBoxError(InvalidArgumentError):
    """Raised when a unit is asked to pick up a missing box."""
    pass


class InvalidAreaError(InvalidArgumentError):
    """Raised when a unit is asked to drop into a missing storage area."""
    pass


class NoBoxToStoreError(InvalidArgumentError):
    """Raised when a storing task has no box."""
    reason = FailureReason.NO_BOX_TO_STORE


# --- Resource conflicts ---

class ResourceConflictError(WarehouseCellError):
    """Raised when an exclusive resource is already taken."""
    reason = FailureReason.RESOURCE_CONFLICT


class SlotConflictError(ResourceConflictError):
    """Raised when a storage slot is occupied or reserved for another box."""
    reason = FailureReason.SLOT_CONFLICT


class StationOccupiedError(ResourceConflictError):
    """Raised when a charging station already has an occupant."""
    reason = FailureReason.STATION_OCCUPIED


class DuplicateBoxError(ResourceConflictError):
    """Raised when a box id is already stored or reserved."""
    reason = FailureReason.DUPLICATE_BOX_ID


class StorageFullError(ResourceConflictError):
    """Raised when no empty slot is left in the storage area."""
    reason = FailureReason.STORAGE_FULL


# --- Grid bounds ---

class OutOfBoundsError(WarehouseCellError):
    """Raised when a grid position lies outside the storage area."""
    reason = FailureReason.OUT_OF_BOUNDS


# --- State violations ---

class StateViolationError(WarehouseCellError):
    """Raised when an operation is not allowed in the current state."""
    reason = FailureReason.STATE_VIOLATION


class AlreadyFullError(StateViolationError):
    """Raised when recharging a battery that is already full."""
    pass


class AlreadyCarryingError(StateViolationError):
    """Raised when a unit that carries a box is asked to pick up another."""
    pass


class NothingCarriedError(StateViolationError):
    """Raised when a unit without a box is asked to drop or hand off."""
    pass


class EmptyCellError(StateViolationError):
    """Raised when retrieving from an empty storage cell."""
    reason = FailureReason.EMPTY_CELL


class NoOccupantError(StateViolationError):
    """Raised when charging at a station that has no occupant."""
    pass


# --- Task-level failures ---

class BoxNotFoundError(WarehouseCellError):
    """Raised when a retrieve request names a box that is not stored."""
    reason = FailureReason.NOT_FOUND


class BothUnitsLowError(WarehouseCellError):
    """Raised when both units of a pair are low on battery."""
    reason = FailureReason.BOTH_UNITS_LOW


class RetrievalFailedError(WarehouseCellError):
    """Raised when storage does not hold a box that was known to be there."""
    reason = FailureReason.RETRIEVAL_FAILED
