"""Storage: signal repository interface, SQLite and in-memory implementations."""

from signal_engine.storage.base import SignalRepository, factors_payload, record_from_candidate
from signal_engine.storage.memory import InMemorySignalRepository
from signal_engine.storage.sqlite import SqliteSignalRepository

__all__ = [
    "SignalRepository",
    "factors_payload",
    "record_from_candidate",
    "InMemorySignalRepository",
    "SqliteSignalRepository",
]
