"""
Tests for event sinks and counters.

Tests focus on:
- Event records (plain dicts for persistence)
- In-memory, logging and composite sinks
- Guarded delivery: a failing sink never reaches the caller
- Explicit counters replacing process-wide tallies
"""
import logging
import pytest
from unittest.mock import Mock

from interfaces.warehouse_types import Position
from interfaces.event_sink_interface import (
    Moved, PickedUp, Dropped, Allocated, Retrieved, StationAssigned, StationCharged,
    TaskFailed, STORED, record_safely
)
from events.sinks import (
    NullEventSink, InMemoryEventSink, LoggingEventSink, CompositeEventSink, describe_event
)
from events.event_counters import EventCounters


class TestEventRecords:

    def test_record_is_plain(self):
        record = Moved("1", Position(10, 10), Position(-1, -1), timestamp=12.5).to_record()
        assert record == {
            "event_type": "moved",
            "unit_id": "1",
            "from_position": {"row": 10, "col": 10},
            "to_position": {"row": -1, "col": -1},
            "timestamp": 12.5,
        }

    def test_events_are_immutable(self):
        event = PickedUp("1", "B1")
        with pytest.raises(Exception):
            event.box_id = "B2"

    def test_describe_event(self):
        assert describe_event(Moved("1", Position(0, 0), Position(0, 1))) == "AGV 1 moved from [0,0] to [0,1]"
        assert describe_event(Dropped("2", "B1", STORED)) == "AGV 2 dropped box B1 (stored)"
        assert describe_event(Allocated("B1", Position(2, 2))) == "Box B1 allocated to slot [2,2]"
        assert describe_event(TaskFailed("store-1", "slot_conflict", "taken")) == \
            "Task store-1 failed (slot_conflict): taken"


class TestSinks:

    def test_null_sink_accepts_everything(self):
        sink = NullEventSink()
        sink.record(PickedUp("1", "B1"))
        sink.flush()

    def test_in_memory_sink(self):
        sink = InMemoryEventSink()
        sink.record(PickedUp("1", "B1"))
        sink.record(Retrieved("B1", Position(0, 0)))

        assert len(sink.events) == 2
        assert [event.box_id for event in sink.of_type(Retrieved)] == ["B1"]
        sink.clear()
        assert sink.events == []

    def test_logging_sink_levels(self, caplog):
        logger = logging.getLogger("test.events")
        sink = LoggingEventSink(logger)
        with caplog.at_level(logging.INFO, logger="test.events"):
            sink.record(StationAssigned("1", "CS1"))
            sink.record(TaskFailed("retrieve-1", "not_found", "Box B9 not found"))

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.INFO, logging.WARNING]
        assert "[EVENT] AGV 1 assigned to charging station CS1" in caplog.text

    def test_composite_isolates_failing_sink(self):
        broken = Mock()
        broken.record.side_effect = RuntimeError("down")
        broken.flush.side_effect = RuntimeError("down")
        healthy = InMemoryEventSink()
        sink = CompositeEventSink([broken, healthy])

        sink.record(StationCharged("1", "CS1"))
        sink.flush()

        assert len(healthy.events) == 1

    def test_composite_add(self):
        sink = CompositeEventSink()
        memory = InMemoryEventSink()
        sink.add(memory)
        sink.record(PickedUp("1", "B1"))
        assert sink.sinks == [memory]
        assert len(memory.events) == 1

    def test_record_safely_logs_failures(self, caplog):
        broken = Mock()
        broken.record.side_effect = RuntimeError("down")
        with caplog.at_level(logging.ERROR):
            record_safely(broken, PickedUp("1", "B1"))
        assert "failed to record picked_up" in caplog.text

    def test_record_safely_without_sink(self):
        record_safely(None, PickedUp("1", "B1"))


class TestEventCounters:

    def test_counts_box_flow(self):
        counters = EventCounters()
        for event in [
            Allocated("B1", Position(0, 0)),
            Dropped("1", "B1", STORED),
            Allocated("B2", Position(0, 1)),
            Dropped("1", "B2", "slot_conflict"),
            TaskFailed("store-2", "slot_conflict", "taken"),
            Retrieved("B1", Position(0, 0)),
            Moved("1", Position(0, 0), Position(1, 1)),
        ]:
            counters.record(event)

        snapshot = counters.snapshot()
        assert snapshot.entered == 2
        assert snapshot.stored == 1
        assert snapshot.exited == 1
        assert snapshot.failed == 1
        assert snapshot.in_storage == 0

    def test_reset(self):
        counters = EventCounters()
        counters.record(Allocated("B1", Position(0, 0)))
        counters.reset()
        assert counters.snapshot().entered == 0

    def test_independent_tallies(self):
        first, second = EventCounters(), EventCounters()
        first.record(Allocated("B1", Position(0, 0)))
        assert second.snapshot().entered == 0
