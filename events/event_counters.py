"""
Event counters - explicit tally of boxes moving through a cell.

Counters are an ordinary sink owned by the caller, so several independent
tallies can coexist (one per cell, one per test) without shared global state.
"""

import threading
from dataclasses import dataclass

from interfaces.event_sink_interface import (
    IEventSink, TaskEvent, Allocated, Dropped, Retrieved, TaskFailed, STORED
)


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time copy of the counters."""
    entered: int
    stored: int
    exited: int
    failed: int

    @property
    def in_storage(self) -> int:
        return self.stored - self.exited


class EventCounters(IEventSink):
    """
    Counts events as they arrive.

    - entered: boxes allocated a slot
    - stored: drops that ended in storage
    - exited: boxes retrieved from storage
    - failed: tasks that ended FAILED
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entered = 0
        self._stored = 0
        self._exited = 0
        self._failed = 0

    def record(self, event: TaskEvent) -> None:
        with self._lock:
            if isinstance(event, Allocated):
                self._entered += 1
            elif isinstance(event, Dropped) and event.result == STORED:
                self._stored += 1
            elif isinstance(event, Retrieved):
                self._exited += 1
            elif isinstance(event, TaskFailed):
                self._failed += 1

    def flush(self) -> None:
        pass

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                entered=self._entered,
                stored=self._stored,
                exited=self._exited,
                failed=self._failed,
            )

    def reset(self) -> None:
        with self._lock:
            self._entered = self._stored = self._exited = self._failed = 0
