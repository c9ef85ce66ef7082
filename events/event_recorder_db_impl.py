"""
PostgreSQL event recorder.

record() only enqueues; a background worker collects events into batches of
at most max_batch_size and writes each batch in one transaction. A batch is
written as soon as it is full or flush_interval_sec after its first event.
"""
import logging
import queue
import threading
import time
from datetime import datetime, timezone
from typing import Optional, List, Tuple

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json

from interfaces.event_sink_interface import IEventSink, TaskEvent
from events.db_connection import EventStoreError

MIN_QUEUE_CAPACITY = 128


class EventRecorderDbImpl(IEventSink):
    """
    Non-blocking, batching event sink backed by an event table.

    Threading Model:
    - Task threads only call record(), which never blocks and never raises
    - One daemon worker owns all database writes unless start_worker is False,
      in which case the owner drives persistence through flush()
    - Lost events (full queue, database errors) are logged, never re-raised
    """

    def __init__(
        self,
        connection_getter,
        table_name: str = "cell_events",
        cell_id: Optional[str] = None,
        flush_interval_sec: float = 60.0,
        max_batch_size: int = 256,
        queue_capacity: int = 8192,
        logger: Optional[logging.Logger] = None,
        start_worker: bool = True,
    ) -> None:
        """
        Initialize the recorder.

        Args:
            connection_getter: Callable returning a context manager that yields
                a psycopg2 connection
            table_name: Event table, quoted as an identifier
            cell_id: Cell recorded on every row
            flush_interval_sec: Longest time an event waits in a partial batch
            max_batch_size: Events written per transaction
            queue_capacity: Pending events kept before new ones are dropped
            logger: Logger override
            start_worker: Start the background writer thread
        """
        self._get_connection = connection_getter
        self._cell_id = cell_id
        self._interval = max(0.1, float(flush_interval_sec))
        self._batch_size = max(1, int(max_batch_size))
        self._queue: "queue.Queue[TaskEvent]" = queue.Queue(maxsize=max(MIN_QUEUE_CAPACITY, int(queue_capacity)))
        self._logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._insert = sql.SQL(
            "INSERT INTO {} (cell_id, event_type, unit_id, box_id, payload, occurred_at) "
            "VALUES (%s, %s, %s, %s, %s, %s)"
        ).format(sql.Identifier(table_name))

        self._stopping = threading.Event()
        self._worker: Optional[threading.Thread] = None
        if start_worker:
            self._worker = threading.Thread(target=self._run_worker, name="EventRecorderWorker", daemon=True)
            self._worker.start()

    def record(self, event: TaskEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._logger.warning(f"[EVENTS] Event queue full, dropping event: type={event.event_type}")

    def flush(self) -> None:
        """Write every pending event from the calling thread."""
        batch = self._collect_batch(first_timeout=None)
        while batch:
            self._write_batch(batch)
            batch = self._collect_batch(first_timeout=None)

    def stop(self) -> None:
        """Stop the worker and write whatever is still queued."""
        self._stopping.set()
        if self._worker is not None:
            self._worker.join(timeout=self._interval * 2)
        self.flush()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # --- Worker ---

    def _run_worker(self) -> None:
        while not self._stopping.is_set():
            try:
                batch = self._collect_batch(first_timeout=min(1.0, self._interval))
                if batch:
                    self._write_batch(batch)
            except Exception:
                self._logger.error("[EVENTS] Worker loop error", exc_info=True)
                self._stopping.wait(0.1)

    def _collect_batch(self, first_timeout: Optional[float]) -> List[TaskEvent]:
        """
        Take up to one batch off the queue.

        With first_timeout None the queue is only drained; otherwise the call
        waits that long for a first event and then keeps filling the batch
        until it is full or the flush interval has passed.
        """
        batch: List[TaskEvent] = []
        try:
            if first_timeout is None:
                batch.append(self._queue.get_nowait())
            else:
                batch.append(self._queue.get(timeout=first_timeout))
        except queue.Empty:
            return batch
        self._queue.task_done()

        deadline = time.monotonic() + (0.0 if first_timeout is None else self._interval)
        while len(batch) < self._batch_size:
            remaining = deadline - time.monotonic()
            try:
                if remaining <= 0 or self._stopping.is_set():
                    event = self._queue.get_nowait()
                else:
                    event = self._queue.get(timeout=min(remaining, 0.05))
            except queue.Empty:
                if remaining <= 0 or self._stopping.is_set():
                    break
                continue
            self._queue.task_done()
            batch.append(event)
        return batch

    def _row(self, event: TaskEvent) -> Tuple:
        record = event.to_record()
        occurred_at = datetime.fromtimestamp(record.get("timestamp", time.time()), tz=timezone.utc)
        return (
            self._cell_id,
            event.event_type,
            record.get("unit_id"),
            record.get("box_id"),
            Json(record),
            occurred_at,
        )

    def _write_batch(self, events: List[TaskEvent]) -> None:
        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    for event in events:
                        cur.execute(self._insert, self._row(event))
                conn.commit()
        except (psycopg2.Error, EventStoreError):
            self._logger.error(f"[EVENTS] Database error, dropped batch of {len(events)} event(s)", exc_info=True)
            return
        self._logger.debug(f"[EVENTS] Persisted {len(events)} event(s)")
