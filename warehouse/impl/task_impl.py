"""
Task Implementation - Storing and retrieving tasks with the battery-swap policy.

Both variants share one state machine (BaseTaskImpl) and differ only in the
steps they drive the active unit through:

- Storing:    pickup -> pick up -> slot -> carry cost -> drop into storage
- Retrieving: slot -> pick up -> release cell -> dropoff -> carry cost -> hand off

Any WarehouseCellError raised by a component is converted at this boundary
into a FAILED TaskResult plus a TaskFailed event. Nothing is swallowed: every
failure is logged and reported through the result.
"""

import logging
import threading
import uuid
from typing import Dict, Optional, Type

from interfaces.task_interface import ITask, TaskType, TaskStatus, TaskResult, UnitPair
from interfaces.storage_area_interface import IStorageArea
from interfaces.charging_station_interface import IChargingStation
from interfaces.configuration_interface import TaskConfig
from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import IEventSink, Retrieved, TaskFailed, record_safely
from interfaces.cell_errors import (
    FailureReason, WarehouseCellError, StateViolationError, NoBoxToStoreError,
    BothUnitsLowError, RetrievalFailedError, EmptyCellError, OutOfBoundsError,
    InvalidArgumentError
)
from warehouse.box import Box


def new_task_id(task_type: TaskType) -> str:
    return f"{task_type.value}-{uuid.uuid4().hex[:8]}"


class BaseTaskImpl(ITask):
    """
    Shared state machine for cell tasks.

    Subclasses implement _validate() and _run(unit); everything else (battery
    check, cancellation, result bookkeeping, orphan release) lives here.
    """

    task_type_value: TaskType = None

    def __init__(self, pair: UnitPair, box: Optional[Box], area: IStorageArea,
                 station: IChargingStation, task_config: TaskConfig,
                 pickup_position: Position, dropoff_position: Position,
                 event_sink: Optional[IEventSink] = None, task_id: Optional[str] = None):
        self._pair = pair
        self._box = box
        self._area = area
        self._station = station
        self._config = task_config
        self._pickup_position = pickup_position
        self._dropoff_position = dropoff_position
        self._event_sink = event_sink
        self._task_id = task_id or new_task_id(self.task_type_value)
        self._status = TaskStatus.PENDING
        self._result: Optional[TaskResult] = None
        self._started = False
        self._lock = threading.RLock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{self._task_id}]")

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def task_type(self) -> TaskType:
        return self.task_type_value

    @property
    def status(self) -> TaskStatus:
        with self._lock:
            return self._status

    @property
    def result(self) -> Optional[TaskResult]:
        with self._lock:
            return self._result

    @property
    def active_unit(self):
        return self._pair.active

    @property
    def standby_unit(self):
        return self._pair.standby

    # --- Battery check ---

    def check_and_swap(self) -> bool:
        with self._lock:
            if self._status != TaskStatus.PENDING:
                raise StateViolationError(
                    f"Battery check requires a pending task, {self._task_id} is {self._status.value}"
                )

        try:
            swapped = self._check_and_swap()
        except WarehouseCellError as e:
            self._fail(e)
            raise

        with self._lock:
            if self._status == TaskStatus.PENDING:
                self._status = TaskStatus.BATTERY_CHECKED
        return swapped

    def _check_and_swap(self) -> bool:
        active = self._pair.active
        if not active.battery.is_low():
            self.logger.debug(f"Unit {active.unit_id} battery {active.battery.get_level():.1f}% is sufficient")
            return False

        self.logger.info(
            f"AGV {active.unit_id} has low battery ({active.battery.get_level():.1f}%), "
            f"sending to station {self._station.station_id}"
        )
        self._station.assign(active, wait=True, timeout=self._config.station_assign_timeout)
        self._station.charge()

        standby = self._pair.standby
        if standby.battery.is_low():
            raise BothUnitsLowError(
                f"Both AGV {active.unit_id} and AGV {standby.unit_id} are low on battery"
            )

        self._pair.swap()
        self.logger.info(f"Switched to AGV {self._pair.active.unit_id}, AGV {active.unit_id} is on standby")
        return True

    # --- Execution ---

    def execute(self) -> TaskResult:
        with self._lock:
            if self._status.is_terminal:
                raise StateViolationError(f"Task {self._task_id} is already {self._status.value}")
            if self._started:
                raise StateViolationError(f"Task {self._task_id} is already running")
            self._started = True

        try:
            if self.status == TaskStatus.PENDING:
                self.check_and_swap()
            self._validate()

            with self._lock:
                if self._status == TaskStatus.CANCELLED:
                    return self._result
                self._status = TaskStatus.IN_PROGRESS

            unit = self._pair.active
            self.logger.info(f"{self.task_type_value.value.capitalize()} task started with AGV {unit.unit_id}")
            position = self._run(unit)
            return self._complete(unit.unit_id, position)

        except WarehouseCellError as e:
            with self._lock:
                if self._status.is_terminal:
                    return self._result
            self._release_orphan()
            return self._fail(e)

    def cancel(self) -> TaskResult:
        with self._lock:
            if self._status not in (TaskStatus.PENDING, TaskStatus.BATTERY_CHECKED):
                raise StateViolationError(
                    f"Task {self._task_id} cannot be cancelled while {self._status.value}"
                )
            self._status = TaskStatus.CANCELLED
            self._result = TaskResult(
                task_id=self._task_id,
                task_type=self.task_type_value,
                status=TaskStatus.CANCELLED,
                detail="Task cancelled before execution",
                reason=FailureReason.CANCELLED,
                box_id=self._box.id if self._box else None,
            )
        self.logger.info(f"Task {self._task_id} cancelled")
        return self._result

    def _validate(self) -> None:
        """Reject requests that cannot start. Runs after the battery check."""
        pass

    def _run(self, unit) -> Optional[Position]:
        """Drive the active unit through the task steps; return the slot involved."""
        raise NotImplementedError

    # --- Terminal transitions ---

    def _complete(self, unit_id: str, position: Optional[Position]) -> TaskResult:
        with self._lock:
            self._status = TaskStatus.COMPLETED
            self._result = TaskResult(
                task_id=self._task_id,
                task_type=self.task_type_value,
                status=TaskStatus.COMPLETED,
                detail=self._success_detail(position),
                box_id=self._box.id if self._box else None,
                unit_id=unit_id,
                position=position,
            )
        self.logger.info(f"Task {self._task_id} completed: {self._result.detail}")
        return self._result

    def _fail(self, error: WarehouseCellError) -> TaskResult:
        with self._lock:
            if self._status.is_terminal:
                return self._result
            self._status = TaskStatus.FAILED
            self._result = TaskResult(
                task_id=self._task_id,
                task_type=self.task_type_value,
                status=TaskStatus.FAILED,
                detail=str(error),
                reason=error.reason,
                box_id=self._box.id if self._box else None,
                unit_id=self._pair.active.unit_id,
                position=self._box.position if self._box else None,
            )
        self.logger.warning(f"Task {self._task_id} failed ({error.reason.value}): {error}")
        record_safely(self._event_sink, TaskFailed(self._task_id, error.reason.value, str(error)), self.logger)
        return self._result

    def _release_orphan(self) -> None:
        """Release a box left on the active unit by a failed step."""
        unit = self._pair.active
        if self._box is not None and unit.carried_box is self._box:
            unit.hand_off()
            self.logger.warning(f"AGV {unit.unit_id} released orphaned box {self._box.id}")

    def _success_detail(self, position: Optional[Position]) -> str:
        return "completed"


class StoringTask(BaseTaskImpl):
    """Carry a box from the pickup point into its allocated storage slot."""

    task_type_value = TaskType.STORE

    def _validate(self) -> None:
        if self._box is None:
            raise NoBoxToStoreError("No box to store")

    def _run(self, unit) -> Optional[Position]:
        box = self._box
        unit.move_to(self._pickup_position)
        unit.pick_up(box)
        unit.move_to(box.position)
        unit.battery.discharge(self._config.store_carry_cost)
        unit.drop(self._area)
        return box.position

    def _success_detail(self, position: Optional[Position]) -> str:
        return f"Box {self._box.id} stored at {position}"


class RetrievingTask(BaseTaskImpl):
    """Carry a stored box from its slot to the dropoff point."""

    task_type_value = TaskType.RETRIEVE

    def _validate(self) -> None:
        if self._box is None:
            raise InvalidArgumentError("No box to retrieve")
        if self._box.position is None:
            raise RetrievalFailedError(f"Box {self._box.id} has no known storage position")

    def _run(self, unit) -> Optional[Position]:
        box = self._box
        position = box.position
        unit.move_to(position)
        unit.pick_up(box)
        try:
            self._area.retrieve(position.row, position.col)
        except (EmptyCellError, OutOfBoundsError) as e:
            raise RetrievalFailedError(f"Storage could not release box {box.id} from {position}: {e}") from e
        record_safely(self._event_sink, Retrieved(box.id, position), self.logger)

        unit.move_to(self._dropoff_position)
        unit.battery.discharge(self._config.retrieve_carry_cost)
        unit.hand_off()
        box.assign_position(self._dropoff_position)
        return position

    def _success_detail(self, position: Optional[Position]) -> str:
        return f"Box {self._box.id} retrieved from {position}"


_TASK_CLASSES: Dict[TaskType, Type[BaseTaskImpl]] = {
    TaskType.STORE: StoringTask,
    TaskType.RETRIEVE: RetrievingTask,
}


def create_task(task_type: TaskType, **kwargs) -> BaseTaskImpl:
    """
    Build the task variant for a task type.

    Raises:
        InvalidArgumentError: If the task type is unknown
    """
    task_class = _TASK_CLASSES.get(task_type)
    if task_class is None:
        raise InvalidArgumentError(f"Unknown task type: {task_type}")
    return task_class(**kwargs)
