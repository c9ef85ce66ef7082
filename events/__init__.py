"""
Events package: sinks that observe storage cell activity.

This package provides interchangeable IEventSink implementations: logging,
in-memory capture, explicit counters, and a batched PostgreSQL recorder that
persists events on a background worker.
"""

__all__ = [
]
