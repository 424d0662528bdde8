"""RecordStore interface for the persistence collaborator.

This module defines the abstract RecordStore interface the tracker uses to
read and write logistics records, their append-only status transition log,
and their occurrences. Storage backends implement it; the tracker treats it
as an opaque CRUD service.

Example:
    ```python
    from breakdowntracker.domain.interfaces.record_store import RecordStore
    from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore

    store: RecordStore = InMemoryRecordStore()

    await store.save_record(record)
    transitions = await store.get_transitions_for_record(record.id)
    ```
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from breakdowntracker.domain.models.logistics_record import LogisticsRecord
from breakdowntracker.domain.models.occurrence import Occurrence
from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.status_transition import StatusTransition
from breakdowntracker.domain.models.tracking_error import PersistenceError


class TransitionQuery(BaseModel):
    """Filter for transition log scans across records.

    Attributes:
        record_id: Restrict to one record. If None, matches all records.
        new_status: Restrict to transitions entering this status.
        changed_from: Inclusive lower bound on ``changed_at``.
        changed_to: Inclusive upper bound on ``changed_at``.
        limit: Maximum number of results.
        offset: Number of results to skip.

    Example:
        ```python
        query = TransitionQuery(
            changed_from=datetime(2025, 7, 1, tzinfo=timezone.utc),
            changed_to=datetime(2025, 7, 31, tzinfo=timezone.utc),
        )
        transitions = await store.query_transitions(query)
        ```
    """

    record_id: str | None = None
    new_status: TrackingStatus | None = None
    changed_from: datetime | None = None
    changed_to: datetime | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )


class RecordStore(ABC):
    """Abstract interface for record, transition and occurrence persistence.

    All methods are async. Implementations must wrap backend failures in
    PersistenceError and must never mutate or reorder stored transitions.

    Transition log contract:
        - ``get_transitions_for_record`` returns transitions ordered by
          ``sequence_number`` ascending.
        - ``append_transition`` is an atomic increment-on-write: it accepts a
          draft only when its ``sequence_number`` is exactly one past the
          record's head and its ``previous_status`` equals the head's
          ``new_status``, then assigns the identifier.
    """

    # Records

    @abstractmethod
    async def save_record(self, record: LogisticsRecord) -> None:
        """Insert or replace a logistics record.

        Raises:
            PersistenceError: If the save fails.
        """

    @abstractmethod
    async def get_record(self, record_id: str) -> LogisticsRecord | None:
        """Fetch a record by id, or None when it does not exist.

        Raises:
            PersistenceError: If the read fails.
        """

    @abstractmethod
    async def get_records(self) -> list[LogisticsRecord]:
        """List every record, newest first.

        Raises:
            PersistenceError: If the read fails.
        """

    @abstractmethod
    async def update_record_status(
        self, record_id: str, status: TrackingStatus, updated_at: datetime
    ) -> LogisticsRecord:
        """Advance a record's current-status pointer.

        Returns:
            The updated record.

        Raises:
            PersistenceError: If the record is missing or the write fails.
        """

    @abstractmethod
    async def delete_records(self, record_ids: list[str]) -> int:
        """Delete records with their transitions and occurrences.

        Returns:
            Number of records actually deleted.

        Raises:
            PersistenceError: If the delete fails.
        """

    async def delete_record(self, record_id: str) -> bool:
        """Delete a single record. Returns False when it did not exist."""
        return await self.delete_records([record_id]) == 1

    # Transition log

    @abstractmethod
    async def get_transitions_for_record(self, record_id: str) -> list[StatusTransition]:
        """All transitions of a record ordered by sequence_number.

        Raises:
            PersistenceError: If the read fails.
        """

    @abstractmethod
    async def get_latest_transition(self, record_id: str) -> StatusTransition | None:
        """The head (highest sequence_number) transition, or None.

        Raises:
            PersistenceError: If the read fails.
        """

    @abstractmethod
    async def append_transition(self, transition: StatusTransition) -> StatusTransition:
        """Atomically append a draft transition to its record's log.

        Returns:
            The stored transition with its assigned id.

        Raises:
            PersistenceError: On sequence conflict or write failure.
        """

    @abstractmethod
    async def retract_transition(self, transition: StatusTransition) -> None:
        """Roll back the head transition written in the same operation.

        Only the current head may be retracted; this exists solely to undo
        an append whose paired record-status update failed.

        Raises:
            PersistenceError: If ``transition`` is not the head.
        """

    @abstractmethod
    async def query_transitions(self, query: TransitionQuery) -> list[StatusTransition]:
        """Scan the transition log across records.

        Results are ordered by ``changed_at`` then ``sequence_number``.

        Raises:
            PersistenceError: If the query fails.
        """

    # Occurrences

    @abstractmethod
    async def save_occurrence(self, occurrence: Occurrence) -> None:
        """Insert or replace an occurrence.

        Raises:
            PersistenceError: If the save fails.
        """

    @abstractmethod
    async def get_occurrence(self, occurrence_id: str) -> Occurrence | None:
        """Fetch an occurrence by id, or None.

        Raises:
            PersistenceError: If the read fails.
        """

    @abstractmethod
    async def list_occurrences(self, record_id: str) -> list[Occurrence]:
        """Occurrences of a record, newest first.

        Raises:
            PersistenceError: If the read fails.
        """


__all__ = ["RecordStore", "TransitionQuery", "PersistenceError"]
