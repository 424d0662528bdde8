"""API v1 routes for the Breakdown Tracker."""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field

from breakdowntracker.domain.models.occurrence import OccurrenceCategory, OccurrencePriority
from breakdowntracker.domain.models.session import SessionContext
from breakdowntracker.domain.models.status import STATUS_REGISTRY
from breakdowntracker.tracker import BreakdownTracker
from breakdowntracker_api.dependencies import get_session, get_tracker

router = APIRouter()

Tracker = Annotated[BreakdownTracker, Depends(get_tracker)]
Session = Annotated[SessionContext, Depends(get_session)]
RecordId = Annotated[str, Path(..., description="The ID of the breakdown record.")]


class CreateRecordRequest(BaseModel):
    """Record fields as typed in the intake form.

    Unknown and tracker-managed fields are passed through so the tracker
    can reject them with a field-level error.
    """

    operator_name: str | None = Field(None, description="Overrides the caller's operator name.")

    model_config = ConfigDict(extra="allow")


class MessageIntakeRequest(BaseModel):
    message: str = Field(..., description="Breakdown report as pasted from the chat channel.")
    operator_name: str | None = Field(None, description="Overrides the caller's operator name.")


class TransitionRequest(BaseModel):
    new_status: str = Field(..., description="Target status, e.g. 'aguardando_mecanico'.")
    notes: str | None = Field(None, description="Free-text notes for this change.")
    operator_name: str | None = Field(None, description="Overrides the caller's operator name.")


class DeleteRecordsRequest(BaseModel):
    record_ids: list[str] = Field(..., description="IDs of the records to delete.")


class OccurrenceRequest(BaseModel):
    title: str = Field(..., description="Short title of the occurrence.")
    description: str | None = None
    category: str = OccurrenceCategory.Outros.value
    priority: str = OccurrencePriority.Media.value


class OccurrenceStatusRequest(BaseModel):
    status: str = Field(..., description="The new occurrence status.")
    resolution_notes: str | None = None


@router.get("/statuses")
async def list_statuses() -> dict[str, Any]:
    """
    Status registry: labels, colors and allowed next statuses.
    """
    return {
        "statuses": [
            {**config.model_dump(mode="json"), "is_terminal": config.is_terminal}
            for config in STATUS_REGISTRY.values()
        ]
    }


# Records


@router.post("/records", status_code=status.HTTP_201_CREATED)
async def create_record(
    request: Annotated[CreateRecordRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    fields = request.model_dump(exclude_none=True)
    record = await tracker.create_record(session, **fields)
    return {"record": record.model_dump(mode="json")}


@router.post("/records/from-message", status_code=status.HTTP_201_CREATED)
async def create_record_from_message(
    request: Annotated[MessageIntakeRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    """
    Open a record by parsing a pasted breakdown report.
    """
    record = await tracker.create_record_from_message(
        session, request.message, operator_name=request.operator_name
    )
    return {"record": record.model_dump(mode="json")}


@router.get("/records")
async def list_records(tracker: Tracker, session: Session) -> dict[str, Any]:
    records = await tracker.list_records(session)
    return {"records": [record.model_dump(mode="json") for record in records]}


@router.get("/records/{record_id}")
async def get_record(record_id: RecordId, tracker: Tracker, session: Session) -> dict[str, Any]:
    record = await tracker.get_record(session, record_id)
    return {"record": record.model_dump(mode="json")}


@router.delete("/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(record_id: RecordId, tracker: Tracker, session: Session) -> Response:
    await tracker.delete_record(session, record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/records/delete")
async def delete_records(
    request: Annotated[DeleteRecordsRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    """
    Bulk delete; unknown IDs are skipped.
    """
    deleted = await tracker.delete_records(session, request.record_ids)
    return {"deleted": deleted}


# Status tracking


@router.post("/records/{record_id}/transitions", status_code=status.HTTP_201_CREATED)
async def record_transition(
    record_id: RecordId,
    request: Annotated[TransitionRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    transition = await tracker.record_transition(
        session,
        record_id,
        request.new_status,
        notes=request.notes,
        operator_name=request.operator_name,
    )
    return {"transition": transition.model_dump(mode="json")}


@router.get("/records/{record_id}/timeline")
async def get_timeline(record_id: RecordId, tracker: Tracker, session: Session) -> dict[str, Any]:
    entries = await tracker.build_timeline(session, record_id)
    return {"timeline": [entry.model_dump(mode="json") for entry in entries]}


@router.get("/records/{record_id}/analysis")
async def get_analysis(record_id: RecordId, tracker: Tracker, session: Session) -> dict[str, Any]:
    """
    Timing analysis; ``analysis`` is null while the record has no history.
    """
    analysis = await tracker.analyze_timeline(session, record_id)
    return {"analysis": analysis.model_dump(mode="json") if analysis else None}


@router.get("/records/{record_id}/stats")
async def get_quick_stats(record_id: RecordId, tracker: Tracker, session: Session) -> dict[str, Any]:
    stats = await tracker.get_record_quick_stats(session, record_id)
    return {"stats": stats.model_dump(mode="json")}


@router.get("/reports")
async def get_report(
    period_start: Annotated[datetime, Query(..., description="Start of the period (ISO 8601).")],
    period_end: Annotated[datetime, Query(..., description="End of the period (ISO 8601).")],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    report = await tracker.generate_report(session, period_start, period_end)
    return {"report": report.model_dump(mode="json")}


# Occurrences


@router.get("/records/{record_id}/occurrences")
async def list_occurrences(
    record_id: RecordId, tracker: Tracker, session: Session
) -> dict[str, Any]:
    occurrences = await tracker.list_occurrences(session, record_id)
    return {"occurrences": [occurrence.model_dump(mode="json") for occurrence in occurrences]}


@router.post("/records/{record_id}/occurrences", status_code=status.HTTP_201_CREATED)
async def add_occurrence(
    record_id: RecordId,
    request: Annotated[OccurrenceRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    occurrence = await tracker.add_occurrence(
        session,
        record_id,
        request.title,
        description=request.description,
        category=request.category,
        priority=request.priority,
    )
    return {"occurrence": occurrence.model_dump(mode="json")}


@router.get("/records/{record_id}/occurrences/summary")
async def get_occurrence_summary(
    record_id: RecordId, tracker: Tracker, session: Session
) -> dict[str, Any]:
    summary = await tracker.get_occurrence_summary(session, record_id)
    return {"summary": summary.model_dump(mode="json")}


@router.put("/occurrences/{occurrence_id}/status")
async def update_occurrence_status(
    occurrence_id: Annotated[str, Path(..., description="The ID of the occurrence.")],
    request: Annotated[OccurrenceStatusRequest, Body(...)],
    tracker: Tracker,
    session: Session,
) -> dict[str, Any]:
    occurrence = await tracker.update_occurrence_status(
        session,
        occurrence_id,
        request.status,
        resolution_notes=request.resolution_notes,
    )
    return {"occurrence": occurrence.model_dump(mode="json")}
