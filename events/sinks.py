"""
Event sinks for the storage cell.

Small IEventSink implementations that can be combined: a null sink, an
in-memory sink for tests and status displays, a logging sink that writes one
readable line per event, and a composite that fans out to several sinks.
"""

import logging
import threading
from typing import List, Optional, Type

from interfaces.event_sink_interface import (
    IEventSink, TaskEvent, Moved, PickedUp, Dropped, Allocated, Retrieved,
    StationAssigned, StationCharged, TaskFailed, record_safely
)


def describe_event(event: TaskEvent) -> str:
    """Render an event as a single human-readable line."""
    if isinstance(event, Moved):
        return f"AGV {event.unit_id} moved from {event.from_position} to {event.to_position}"
    if isinstance(event, PickedUp):
        return f"AGV {event.unit_id} picked up box {event.box_id}"
    if isinstance(event, Dropped):
        return f"AGV {event.unit_id} dropped box {event.box_id} ({event.result})"
    if isinstance(event, Allocated):
        return f"Box {event.box_id} allocated to slot {event.position}"
    if isinstance(event, Retrieved):
        return f"Box {event.box_id} retrieved from slot {event.position}"
    if isinstance(event, StationAssigned):
        return f"AGV {event.unit_id} assigned to charging station {event.station_id}"
    if isinstance(event, StationCharged):
        return f"AGV {event.unit_id} fully charged at station {event.station_id}"
    if isinstance(event, TaskFailed):
        return f"Task {event.task_id} failed ({event.reason}): {event.detail}"
    return f"{event.event_type}: {event.to_record()}"


class NullEventSink(IEventSink):
    """Discards every event."""

    def record(self, event: TaskEvent) -> None:
        pass

    def flush(self) -> None:
        pass


class InMemoryEventSink(IEventSink):
    """Keeps every event in arrival order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: List[TaskEvent] = []

    def record(self, event: TaskEvent) -> None:
        with self._lock:
            self._events.append(event)

    def flush(self) -> None:
        pass

    @property
    def events(self) -> List[TaskEvent]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_class: Type[TaskEvent]) -> List[TaskEvent]:
        with self._lock:
            return [event for event in self._events if isinstance(event, event_class)]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class LoggingEventSink(IEventSink):
    """Writes each event to a logger; failures at WARNING, everything else at INFO."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def record(self, event: TaskEvent) -> None:
        level = logging.WARNING if isinstance(event, TaskFailed) else logging.INFO
        self._logger.log(level, f"[EVENT] {describe_event(event)}")

    def flush(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()


class CompositeEventSink(IEventSink):
    """Forwards each event to several sinks; one failing sink does not starve the others."""

    def __init__(self, sinks: Optional[List[IEventSink]] = None):
        self._sinks: List[IEventSink] = list(sinks or [])
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def add(self, sink: IEventSink) -> None:
        self._sinks.append(sink)

    @property
    def sinks(self) -> List[IEventSink]:
        return list(self._sinks)

    def record(self, event: TaskEvent) -> None:
        for sink in self._sinks:
            record_safely(sink, event, self._logger)

    def flush(self) -> None:
        for sink in self._sinks:
            try:
                sink.flush()
            except Exception:
                self._logger.error(f"Flush failed for sink {sink.__class__.__name__}", exc_info=True)
