"""In-memory record store implementation.

This module provides an in-memory implementation of the RecordStore
interface using Python dictionaries. It is safe for concurrent coroutines
and needs no external services, which makes it the default store for tests
and single-process deployments.

Example:
    ```python
    from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore

    store = InMemoryRecordStore()
    await store.save_record(record)
    head = await store.get_latest_transition(record.id)
    ```
"""

import asyncio
import uuid
from datetime import datetime

from breakdowntracker.domain.interfaces.record_store import RecordStore, TransitionQuery
from breakdowntracker.domain.models.logistics_record import LogisticsRecord
from breakdowntracker.domain.models.occurrence import Occurrence
from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.status_transition import StatusTransition
from breakdowntracker.domain.models.tracking_error import PersistenceError


class InMemoryRecordStore(RecordStore):
    """In-memory implementation of RecordStore interface.

    Thread Safety:
        - Write operations take a single asyncio.Lock, so an append sees the
          head as it is at write time (atomic increment-on-write)
        - Read operations return copies of the internal lists and need no lock

    Attributes:
        _records: LogisticsRecord objects keyed by record id
        _transitions: Per-record transition lists ordered by sequence_number
        _occurrences: Occurrence objects keyed by occurrence id
        _write_lock: asyncio.Lock serializing every write
    """

    def __init__(self) -> None:
        self._records: dict[str, LogisticsRecord] = {}
        self._transitions: dict[str, list[StatusTransition]] = {}
        self._occurrences: dict[str, Occurrence] = {}

        self._write_lock = asyncio.Lock()

    # Records

    async def save_record(self, record: LogisticsRecord) -> None:
        try:
            async with self._write_lock:
                self._records[record.id] = record.model_copy()
        except Exception as e:
            raise PersistenceError(f"Failed to save record {record.id}: {e}") from e

    async def get_record(self, record_id: str) -> LogisticsRecord | None:
        try:
            record = self._records.get(record_id)
            return record.model_copy() if record is not None else None
        except Exception as e:
            raise PersistenceError(f"Failed to get record {record_id}: {e}") from e

    async def get_records(self) -> list[LogisticsRecord]:
        try:
            records = sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)
            return [record.model_copy() for record in records]
        except Exception as e:
            raise PersistenceError(f"Failed to list records: {e}") from e

    async def update_record_status(
        self, record_id: str, status: TrackingStatus, updated_at: datetime
    ) -> LogisticsRecord:
        async with self._write_lock:
            record = self._records.get(record_id)
            if record is None:
                raise PersistenceError(
                    f"Failed to update status of record {record_id}: record does not exist",
                    details={"record_id": record_id},
                )
            try:
                updated = record.model_copy(update={"status": status, "updated_at": updated_at})
                self._records[record_id] = updated
                return updated.model_copy()
            except Exception as e:
                raise PersistenceError(
                    f"Failed to update status of record {record_id}: {e}"
                ) from e

    async def delete_records(self, record_ids: list[str]) -> int:
        try:
            async with self._write_lock:
                deleted = 0
                for record_id in dict.fromkeys(record_ids):
                    if self._records.pop(record_id, None) is None:
                        continue
                    deleted += 1
                    self._transitions.pop(record_id, None)
                    for occurrence_id in [
                        o.id for o in self._occurrences.values() if o.record_id == record_id
                    ]:
                        del self._occurrences[occurrence_id]
                return deleted
        except Exception as e:
            raise PersistenceError(f"Failed to delete records: {e}") from e

    # Transition log

    async def get_transitions_for_record(self, record_id: str) -> list[StatusTransition]:
        try:
            return list(self._transitions.get(record_id, []))
        except Exception as e:
            raise PersistenceError(
                f"Failed to get transitions for record {record_id}: {e}"
            ) from e

    async def get_latest_transition(self, record_id: str) -> StatusTransition | None:
        try:
            log = self._transitions.get(record_id)
            return log[-1] if log else None
        except Exception as e:
            raise PersistenceError(
                f"Failed to get latest transition for record {record_id}: {e}"
            ) from e

    async def append_transition(self, transition: StatusTransition) -> StatusTransition:
        async with self._write_lock:
            log = self._transitions.setdefault(transition.record_id, [])
            head = log[-1] if log else None
            expected_sequence = head.sequence_number + 1 if head else 1
            expected_previous = head.new_status if head else None

            if (
                transition.sequence_number != expected_sequence
                or transition.previous_status != expected_previous
            ):
                raise PersistenceError(
                    f"Sequence conflict on record {transition.record_id}: "
                    f"expected sequence {expected_sequence}, got {transition.sequence_number}",
                    details={
                        "record_id": transition.record_id,
                        "expected_sequence": expected_sequence,
                        "received_sequence": transition.sequence_number,
                    },
                )

            try:
                stored = transition.model_copy(update={"id": str(uuid.uuid4())})
                log.append(stored)
                return stored
            except Exception as e:
                raise PersistenceError(
                    f"Failed to append transition for record {transition.record_id}: {e}"
                ) from e

    async def retract_transition(self, transition: StatusTransition) -> None:
        async with self._write_lock:
            log = self._transitions.get(transition.record_id)
            if not log or log[-1].id != transition.id:
                raise PersistenceError(
                    f"Cannot retract transition {transition.id}: it is not the head "
                    f"of record {transition.record_id}"
                )
            log.pop()

    async def query_transitions(self, query: TransitionQuery) -> list[StatusTransition]:
        try:
            if query.record_id is not None:
                candidates = list(self._transitions.get(query.record_id, []))
            else:
                candidates = [t for log in self._transitions.values() for t in log]

            results = [t for t in candidates if self._matches_transition_filters(t, query)]
            results.sort(key=lambda t: (t.changed_at, t.sequence_number))

            # Apply pagination
            if query.offset is not None:
                results = results[query.offset :]
            if query.limit is not None:
                results = results[: query.limit]

            return results
        except Exception as e:
            raise PersistenceError(f"Failed to query transitions: {e}") from e

    # Occurrences

    async def save_occurrence(self, occurrence: Occurrence) -> None:
        try:
            async with self._write_lock:
                self._occurrences[occurrence.id] = occurrence.model_copy()
        except Exception as e:
            raise PersistenceError(f"Failed to save occurrence {occurrence.id}: {e}") from e

    async def get_occurrence(self, occurrence_id: str) -> Occurrence | None:
        try:
            occurrence = self._occurrences.get(occurrence_id)
            return occurrence.model_copy() if occurrence is not None else None
        except Exception as e:
            raise PersistenceError(f"Failed to get occurrence {occurrence_id}: {e}") from e

    async def list_occurrences(self, record_id: str) -> list[Occurrence]:
        try:
            occurrences = [o for o in self._occurrences.values() if o.record_id == record_id]
            occurrences.sort(key=lambda o: o.created_at, reverse=True)
            return [o.model_copy() for o in occurrences]
        except Exception as e:
            raise PersistenceError(
                f"Failed to list occurrences for record {record_id}: {e}"
            ) from e

    def _matches_transition_filters(
        self, transition: StatusTransition, query: TransitionQuery
    ) -> bool:
        """Check if StatusTransition matches query filters."""
        if query.new_status is not None and transition.new_status != query.new_status:
            return False
        if query.changed_from is not None and transition.changed_at < query.changed_from:
            return False
        return not (query.changed_to is not None and transition.changed_at > query.changed_to)
