"""
Task Interface - One store-or-retrieve request executed by a unit pair.

A task moves through PENDING -> BATTERY_CHECKED -> IN_PROGRESS and ends in
COMPLETED or FAILED. It may be CANCELLED only before IN_PROGRESS. A terminal
task is never reused.

The variants form a closed set (TaskType.STORE, TaskType.RETRIEVE); callers
obtain instances through the create_task() factory.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from interfaces.cell_errors import FailureReason
from interfaces.transport_unit_interface import ITransportUnit
from interfaces.warehouse_types import Position
from warehouse.box import Box


class TaskType(Enum):
    """Types of cell tasks."""
    STORE = "store"
    RETRIEVE = "retrieve"


class TaskStatus(Enum):
    """Task execution status."""
    PENDING = "pending"
    BATTERY_CHECKED = "battery_checked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


@dataclass(frozen=True)
class TaskResult:
    """Typed outcome of a task."""
    task_id: str
    task_type: TaskType
    status: TaskStatus
    detail: str
    reason: Optional[FailureReason] = None
    box_id: Optional[str] = None
    unit_id: Optional[str] = None
    position: Optional[Position] = None

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_type": self.task_type.value,
            "status": self.status.value,
            "detail": self.detail,
            "reason": self.reason.value if self.reason else None,
            "box_id": self.box_id,
            "unit_id": self.unit_id,
            "position": self.position.to_dict() if self.position else None,
        }


class UnitPair:
    """
    Active and standby unit serving one kind of task.

    Tasks swap the references when the active unit runs low; the pair object is
    shared with the owning cell so the swap outlives the task.
    """

    def __init__(self, active: ITransportUnit, standby: ITransportUnit):
        self.active = active
        self.standby = standby
        active.set_active(True)
        standby.set_active(False)

    def swap(self) -> None:
        """Exchange active and standby, flipping their active flags."""
        self.active, self.standby = self.standby, self.active
        self.active.set_active(True)
        self.standby.set_active(False)

    def __iter__(self):
        return iter((self.active, self.standby))


@dataclass
class TaskRequest:
    """A store or retrieve request addressed to a cell."""
    task_type: TaskType
    cell_id: Optional[str] = None
    box: Optional[Box] = None
    box_id: Optional[str] = None
    slot: Optional[Position] = None


class ITask(ABC):
    """
    Interface for cell tasks.

    **Thread Safety**: State transitions are guarded by a per-task lock, so
    cancel() may be called from another thread while execute() runs.
    """

    @property
    @abstractmethod
    def task_id(self) -> str:
        """Task identifier."""
        pass

    @property
    @abstractmethod
    def task_type(self) -> TaskType:
        """Variant of this task."""
        pass

    @property
    @abstractmethod
    def status(self) -> TaskStatus:
        """Current state."""
        pass

    @property
    @abstractmethod
    def result(self) -> Optional[TaskResult]:
        """Outcome once terminal, None before."""
        pass

    @abstractmethod
    def check_and_swap(self) -> bool:
        """
        Pre-flight battery check.

        If the active unit is low it is charged at the station; if the standby
        is low as well the task fails. Otherwise active and standby swap.

        Returns:
            bool: True if the pair was swapped

        Raises:
            BothUnitsLowError: If both units are low (task becomes FAILED)
            StateViolationError: If the task is not PENDING
        """
        pass

    @abstractmethod
    def execute(self) -> TaskResult:
        """
        Run the task to a terminal state.

        Component errors are converted to a FAILED result, never raised.

        Returns:
            TaskResult: Outcome of the task

        Raises:
            StateViolationError: If the task already started or is terminal
        """
        pass

    @abstractmethod
    def cancel(self) -> TaskResult:
        """
        Abandon the task before it starts moving boxes.

        Returns:
            TaskResult: CANCELLED result

        Raises:
            StateViolationError: If the task is IN_PROGRESS or terminal
        """
        pass
