"""Event discovery, creation, editing and interaction endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.api.deps import get_discovery_request
from app.schemas.common import ErrorResponse
from app.schemas.discovery import DiscoveryRequest, DiscoveryResponse
from app.schemas.enums import EventStatus
from app.schemas.event import (
    EventCreate,
    EventRecord,
    EventUpdate,
    EventView,
    InteractionCreate,
    InteractionResponse,
    OccurrenceListResponse,
)
from app.services import discovery_service, event_store, interaction_store

router = APIRouter()


def _get_view(event_id: str, user_id: str | None = None) -> EventView:
    """Resolve an event id or occurrence id to its view, or raise 404.

    An occurrence id only resolves when its date is part of the series.
    """
    record = event_store.get_event(event_id, user_id=user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Event not found")

    views = discovery_service.expand_event(record)
    if event_id == record.id:
        return views[0]
    for view in views:
        if view.id == event_id:
            return view
    raise HTTPException(status_code=404, detail="Event not found")


def _get_owned(event_id: str, user_id: str) -> EventRecord:
    record = event_store.get_event(event_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if record.organizer_id != user_id:
        raise HTTPException(status_code=403, detail="Only the organizer can change this event")
    return record


@router.get(
    "/",
    response_model=DiscoveryResponse,
    summary="Discover events",
    description="List upcoming event occurrences filtered by category, text, date window "
    "and radius, ordered by date, distance or popularity. Recurring events are expanded "
    "into one item per occurrence. An unusable sort key falls back to date ordering and "
    "sets `degraded`.",
)
async def list_events(request: DiscoveryRequest = Depends(get_discovery_request)):
    return discovery_service.list_events(request)


@router.post(
    "/",
    response_model=EventRecord,
    status_code=201,
    summary="Create event",
    description="Create an event. Recurring events need a recurrence type and an end date "
    "no more than two months after the start date.",
)
async def create_event(data: EventCreate):
    return event_store.create_event(data)


@router.get(
    "/organizer/{organizer_id}",
    response_model=list[EventRecord],
    summary="Organizer events",
    description="All events of one organizer, cancelled included, newest first.",
)
async def list_organizer_events(organizer_id: str):
    return event_store.list_by_organizer(organizer_id)


@router.get(
    "/{event_id}",
    response_model=EventView,
    summary="Event detail",
    description="Get an event by ID. Occurrence IDs (`<id>_YYYY-MM-DD`) return that occurrence.",
    responses={404: {"model": ErrorResponse, "description": "Event not found"}},
)
async def get_event(event_id: str, user_id: str | None = Query(None, alias="userId")):
    return _get_view(event_id, user_id=user_id)


@router.put(
    "/{event_id}",
    response_model=EventRecord,
    summary="Edit event",
    description="Partially update an event (organizer only). The merged event is validated "
    "again, so a recurrence that would now run past two months is rejected.",
    responses={
        403: {"model": ErrorResponse, "description": "Not the organizer"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def update_event(
    event_id: str,
    data: EventUpdate,
    user_id: str = Query(..., alias="userId", description="Organizer making the change"),
):
    record = _get_owned(event_id, user_id)
    try:
        updated = event_store.update_event(record.id, data)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False, include_input=False))
    if updated is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return updated


@router.post(
    "/{event_id}/cancel",
    response_model=EventRecord,
    summary="Cancel event",
    description="Mark an event cancelled (organizer only). Cancelled events are kept but "
    "no longer appear in discovery.",
    responses={
        400: {"model": ErrorResponse, "description": "Already cancelled"},
        403: {"model": ErrorResponse, "description": "Not the organizer"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def cancel_event(
    event_id: str,
    user_id: str = Query(..., alias="userId", description="Organizer cancelling the event"),
):
    record = _get_owned(event_id, user_id)
    if record.status == EventStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Event is already cancelled")
    cancelled = event_store.cancel_event(record.id)
    if cancelled is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return cancelled


@router.get(
    "/{event_id}/occurrences",
    response_model=OccurrenceListResponse,
    summary="Event occurrences",
    description="List every occurrence instant of an event (a single one if it does not recur).",
    responses={404: {"model": ErrorResponse, "description": "Event not found"}},
)
async def list_occurrences(event_id: str):
    record = event_store.get_event(event_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Event not found")
    occurrences = list(discovery_service.occurrence_series(record))
    rule = record.recurrence
    return OccurrenceListResponse(
        event_id=record.id,
        pattern=rule.pattern if rule else None,
        end_date=rule.end_date if rule else None,
        occurrences=occurrences,
        total=len(occurrences),
    )


@router.post(
    "/{event_id}/interact",
    response_model=InteractionResponse,
    summary="Record interaction",
    description="Mark an event as going / like / pass. Replaces the user's previous "
    "interaction with this event; occurrences share their parent event's interaction.",
    responses={404: {"model": ErrorResponse, "description": "Event or occurrence not found"}},
)
async def interact(event_id: str, data: InteractionCreate):
    _get_view(event_id)
    return interaction_store.record_interaction(data.user_id, event_id, data.type)


@router.delete(
    "/{event_id}/interact",
    status_code=204,
    summary="Remove interaction",
    responses={404: {"model": ErrorResponse, "description": "No interaction recorded"}},
)
async def remove_interaction(event_id: str, user_id: str = Query(..., alias="userId")):
    if not interaction_store.remove_interaction(user_id, event_id):
        raise HTTPException(status_code=404, detail="Interaction not found")
