"""TransitionRecorder component: the single write path of the status log."""

import asyncio
from collections.abc import Callable
from datetime import datetime

from breakdowntracker.domain.components.timeline_builder import elapsed_seconds
from breakdowntracker.domain.interfaces.observability_manager import ObservabilityManager
from breakdowntracker.domain.interfaces.record_store import RecordStore
from breakdowntracker.domain.models.status import (
    TrackingStatus,
    allowed_next,
    is_transition_allowed,
    parse_status,
)
from breakdowntracker.domain.models.status_transition import StatusTransition, utc_now
from breakdowntracker.domain.models.tracking_error import (
    NotFoundError,
    PersistenceError,
    StateTransitionError,
)
from breakdowntracker.infrastructure.utils.validation import (
    validate_notes,
    validate_operator_name,
    validate_record_id,
)


class TransitionRecorder:
    """Appends status transitions and advances the record's current status.

    At most one transition write is in flight per record: each record has
    its own asyncio.Lock around read-head, append and status update. The
    store's sequence check rejects any write that slips past the lock
    (e.g. from another process).

    Example:
        ```python
        recorder = TransitionRecorder(store, observability)
        transition = await recorder.record_transition(
            record_id, TrackingStatus.AguardandoMecanico, operator_name="Ana"
        )
        ```
    """

    def __init__(
        self,
        record_store: RecordStore,
        observability_manager: ObservabilityManager,
        enforce_allowed_transitions: bool = True,
        max_notes_length: int = 2000,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize TransitionRecorder.

        Args:
            record_store: RecordStore implementation for persistence.
            observability_manager: ObservabilityManager for events and logging.
            enforce_allowed_transitions: Reject edges missing from the status
                registry. When False they are recorded with a warning.
            max_notes_length: Maximum accepted notes length.
            clock: Returns the current UTC time.
        """
        self._store = record_store
        self._observability = observability_manager
        self._enforce_allowed_transitions = enforce_allowed_transitions
        self._max_notes_length = max_notes_length
        self._clock = clock
        self._record_locks: dict[str, asyncio.Lock] = {}
        self._locks_lock = asyncio.Lock()  # Guards the record_locks dict

    async def _get_record_lock(self, record_id: str) -> asyncio.Lock:
        async with self._locks_lock:
            if record_id not in self._record_locks:
                self._record_locks[record_id] = asyncio.Lock()
            return self._record_locks[record_id]

    async def forget_record(self, record_id: str) -> None:
        """Drop the lock of a deleted record."""
        async with self._locks_lock:
            lock = self._record_locks.get(record_id)
            if lock is not None and not lock.locked():
                del self._record_locks[record_id]

    async def record_transition(
        self,
        record_id: str,
        new_status: TrackingStatus | str,
        operator_name: str,
        notes: str | None = None,
    ) -> StatusTransition:
        """Record a status change for a record.

        Input is validated before any store access. The duration of the
        previous status is computed in whole seconds (clamped to zero) and
        stored on the new transition.

        Args:
            record_id: Record whose status changes.
            new_status: Target status (enum or identifier string).
            operator_name: Who performs the change.
            notes: Optional annotation.

        Returns:
            The stored StatusTransition.

        Raises:
            ValidationError: If an input is missing or malformed.
            NotFoundError: If the record does not exist.
            StateTransitionError: If the edge is not allowed and enforcement is on.
            PersistenceError: If a store write fails; no partial state is left.
        """
        record_id = validate_record_id(record_id)
        target = parse_status(new_status)
        operator_name = validate_operator_name(operator_name)
        notes = validate_notes(notes, self._max_notes_length)

        lock = await self._get_record_lock(record_id)
        async with lock:
            record = await self._store.get_record(record_id)
            if record is None:
                raise NotFoundError(
                    f"Record not found: {record_id}",
                    entity_type="record",
                    entity_id=record_id,
                )

            previous = await self._store.get_latest_transition(record_id)
            previous_status = previous.new_status if previous else None

            if not is_transition_allowed(previous_status, target):
                await self._handle_disallowed(record_id, previous_status, target, operator_name)

            changed_at = self._clock()
            duration = None
            if previous is not None:
                # changed_at never goes backwards within a record
                changed_at = max(changed_at, previous.changed_at)
                duration = elapsed_seconds(previous.changed_at, changed_at)

            draft = StatusTransition(
                record_id=record_id,
                sequence_number=previous.sequence_number + 1 if previous else 1,
                previous_status=previous_status,
                new_status=target,
                operator_name=operator_name,
                changed_at=changed_at,
                duration_in_previous_status=duration,
                notes=notes,
            )

            stored = await self._store.append_transition(draft)
            try:
                await self._store.update_record_status(record_id, target, stored.changed_at)
            except PersistenceError:
                try:
                    await self._store.retract_transition(stored)
                except Exception as retract_error:
                    await self._observability.log(
                        level="ERROR",
                        message=f"Failed to retract transition after status update failure: "
                        f"{retract_error}",
                        context={
                            "record_id": record_id,
                            "transition_id": stored.id,
                            "sequence_number": stored.sequence_number,
                        },
                    )
                raise

        try:
            await self._observability.emit_event(
                event_type="status_transition",
                payload={
                    "record_id": record_id,
                    "transition_id": stored.id,
                    "sequence_number": stored.sequence_number,
                    "from_status": previous_status.value if previous_status else None,
                    "to_status": target.value,
                    "operator_name": operator_name,
                    "duration_in_previous_status": duration,
                    "notes": notes,
                },
                metadata={
                    "changed_at": stored.changed_at.isoformat(),
                },
            )
        except Exception as e:
            await self._observability.log(
                level="WARNING",
                message=f"Failed to emit status_transition event: {e}",
                context={"record_id": record_id},
            )

        return stored

    async def _handle_disallowed(
        self,
        record_id: str,
        previous_status: TrackingStatus | None,
        target: TrackingStatus,
        operator_name: str,
    ) -> None:
        from_value = previous_status.value if previous_status else None
        if previous_status is None:
            reason = f"A record cannot start in terminal status '{target.value}'"
        else:
            allowed = sorted(s.value for s in allowed_next(previous_status))
            reason = (
                f"Transition from '{from_value}' to '{target.value}' is not allowed. "
                f"Allowed: {', '.join(allowed) or 'none'}"
            )

        if not self._enforce_allowed_transitions:
            await self._observability.log(
                level="WARNING",
                message="Recording transition outside allowed edges",
                context={
                    "record_id": record_id,
                    "from_status": from_value,
                    "to_status": target.value,
                },
            )
            return

        try:
            await self._observability.emit_event(
                event_type="transition_rejected",
                payload={
                    "record_id": record_id,
                    "from_status": from_value,
                    "to_status": target.value,
                    "operator_name": operator_name,
                },
            )
        except Exception as e:
            await self._observability.log(
                level="WARNING",
                message=f"Failed to emit transition_rejected event: {e}",
                context={"record_id": record_id},
            )
        raise StateTransitionError(reason, from_status=from_value, to_status=target.value)
