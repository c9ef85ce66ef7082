"""
Event Sink Interface - Write-only observer of storage cell activity.

The engine reports every position change, allocation and failure as a typed
TaskEvent. Sinks decide what to do with them (log, count, persist). The engine
never depends on a sink's outcome: calls go through record_safely(), which logs
and discards sink failures.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from interfaces.warehouse_types import Position


def _plain(value: Any) -> Any:
    if isinstance(value, Position):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class TaskEvent:
    """Base class for all cell events."""
    event_type: ClassVar[str] = "event"

    def to_record(self) -> Dict[str, Any]:
        """Flatten the event into a JSON-friendly dictionary."""
        record: Dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):
            record[f.name] = _plain(getattr(self, f.name))
        return record


@dataclass(frozen=True)
class Moved(TaskEvent):
    event_type: ClassVar[str] = "moved"
    unit_id: str
    from_position: Position
    to_position: Position
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class PickedUp(TaskEvent):
    event_type: ClassVar[str] = "picked_up"
    unit_id: str
    box_id: str
    timestamp: float = field(default_factory=time.time)


# Dropped.result for a drop that ended in storage
STORED = "stored"


@dataclass(frozen=True)
class Dropped(TaskEvent):
    """A drop attempt. result is "stored" or the failure reason value."""
    event_type: ClassVar[str] = "dropped"
    unit_id: str
    box_id: str
    result: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Allocated(TaskEvent):
    event_type: ClassVar[str] = "allocated"
    box_id: str
    position: Position
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Retrieved(TaskEvent):
    event_type: ClassVar[str] = "retrieved"
    box_id: str
    position: Position
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class StationAssigned(TaskEvent):
    event_type: ClassVar[str] = "station_assigned"
    unit_id: str
    station_id: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class StationCharged(TaskEvent):
    event_type: ClassVar[str] = "station_charged"
    unit_id: str
    station_id: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TaskFailed(TaskEvent):
    event_type: ClassVar[str] = "task_failed"
    task_id: str
    reason: str
    detail: str
    timestamp: float = field(default_factory=time.time)


class IEventSink(ABC):
    """
    Interface for receiving cell events.

    Implementations must be thread-safe: tasks on different worker threads
    record concurrently. record() should not block for long; persisting work
    belongs on a background worker where applicable.
    """

    @abstractmethod
    def record(self, event: TaskEvent) -> None:
        """
        Accept one event.

        Args:
            event: Event emitted by a cell component
        """
        pass

    @abstractmethod
    def flush(self) -> None:
        """
        Best-effort flush of any buffered events.

        Intended for shutdown hooks or test scenarios.
        """
        pass


def record_safely(sink: Optional[IEventSink], event: TaskEvent,
                  logger: Optional[logging.Logger] = None) -> None:
    """
    Deliver an event without letting sink failures reach the caller.

    Failures are logged with traceback and otherwise ignored so that a broken
    observer never changes a task outcome.
    """
    if sink is None:
        return
    try:
        sink.record(event)
    except Exception:
        (logger or logging.getLogger(__name__)).error(
            f"Event sink {sink.__class__.__name__} failed to record {event.event_type}", exc_info=True
        )
