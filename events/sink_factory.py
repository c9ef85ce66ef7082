"""
Event sink assembly from configuration.

Builds the composite sink a cell reports to: counters always, a logging sink
when event_recorder.log_events is set, and the PostgreSQL recorder when
event_recorder.db_enabled is set.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from interfaces.configuration_interface import IBusinessConfigurationProvider
from events.sinks import CompositeEventSink, LoggingEventSink
from events.event_counters import EventCounters
from events.event_recorder_db_impl import EventRecorderDbImpl
from events.db_connection import PooledConnectionProvider

logger = logging.getLogger(__name__)


@dataclass
class EventPipeline:
    """Sinks built for one run. Call close() before exit to flush the recorder."""
    sink: CompositeEventSink
    counters: EventCounters
    recorder: Optional[EventRecorderDbImpl] = None
    connections: Optional[PooledConnectionProvider] = None

    def close(self) -> None:
        if self.recorder is not None:
            self.recorder.stop()
        self.sink.flush()
        if self.connections is not None:
            self.connections.close()


def build_event_pipeline(config_provider: IBusinessConfigurationProvider,
                         cell_id: Optional[str] = None) -> EventPipeline:
    """
    Assemble the event sinks described by configuration.

    Args:
        config_provider: Source of event_recorder and database settings
        cell_id: Cell tag stored with persisted events

    Returns:
        EventPipeline: Composite sink plus handles to its parts
    """
    recorder_config = config_provider.get_event_recorder_config()
    counters = EventCounters()
    sink = CompositeEventSink([counters])

    if recorder_config.log_events:
        sink.add(LoggingEventSink())

    recorder = None
    connections = None
    if recorder_config.db_enabled:
        connections = PooledConnectionProvider(config_provider.get_database_config())
        connections.ensure_schema(recorder_config.table_name)
        recorder = EventRecorderDbImpl(
            connections.get_connection,
            table_name=recorder_config.table_name,
            cell_id=cell_id,
            flush_interval_sec=recorder_config.flush_interval,
            max_batch_size=recorder_config.max_batch_size,
            queue_capacity=recorder_config.queue_capacity,
        )
        sink.add(recorder)
        logger.info(f"Persisting events to table {recorder_config.table_name}")

    return EventPipeline(sink=sink, counters=counters, recorder=recorder, connections=connections)
