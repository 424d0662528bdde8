"""Record store implementations."""

from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore

__all__ = ["InMemoryRecordStore"]
