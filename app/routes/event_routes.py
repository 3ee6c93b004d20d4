import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Body, Query
from sqlalchemy.orm import Session
from app.models.child_model import Child
from app.repositories.event_repository import EventRepository
from app.schemas.event_schema import (
    TEMPERATURE,
    EventCreate,
    EventUpdate,
    EventRead,
    derive_value,
    normalize_event_type,
    to_naive_utc,
    validate_details,
)
from app.utils.report_generator import parse_date_bound, parse_details
from config.database import get_db
from app.dependencies.children import get_owned_child
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/children/{child_id}/events", tags=["events"])


@router.post("", status_code=201)
def create_event(
    # the body may be a single event or a list of events
    events: Union[EventCreate, List[EventCreate]] = Body(...),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    """
    A single EventCreate creates one event.
    A list of EventCreate creates all of them in one commit.
    """
    event_list = events if isinstance(events, list) else [events]

    created = EventRepository(db).add_many(child.id, event_list)
    logger.info("Created %d event(s) for child %s", len(created), child.id)

    return {
        "msg": "Events recorded successfully.",
        "created": [EventRead.model_validate(event) for event in created],
    }


@router.get("", response_model=List[EventRead])
def list_events(
    event_type: Optional[str] = Query(None, alias="type"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1, le=1000),
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    try:
        start = parse_date_bound(start_date)
        end = parse_date_bound(end_date, end_of_day=True)
    except ValueError:
        raise HTTPException(status_code=422, detail="startDate and endDate must be ISO-8601 dates")

    if event_type and event_type != "all":
        event_type = normalize_event_type(event_type)
    else:
        event_type = None

    return EventRepository(db).list_for_child(child.id, event_type, start, end, limit=limit)


@router.get("/{event_id}", response_model=EventRead)
def get_event(
    event_id: int,
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    event = EventRepository(db).get(child.id, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.patch("/{event_id}", response_model=EventRead)
def update_event(
    event_id: int,
    event_update: EventUpdate,
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    repo = EventRepository(db)
    event = repo.get(child.id, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    fields = event_update.model_dump(exclude_unset=True)

    event_type = event.event_type
    if fields.get("event_type"):
        event_type = normalize_event_type(fields["event_type"])

    try:
        # details are re-validated whenever they or the type change
        if "details" in fields or event_type != event.event_type:
            raw = fields["details"] if "details" in fields else parse_details(event.details, event.event_type)
            details = validate_details(event_type, raw)
        else:
            details = parse_details(event.details, event.event_type)

        value = fields["value"] if "value" in fields else event.value
        if "details" in fields and "value" not in fields and event_type != TEMPERATURE:
            value = None
        value = derive_value(event_type, value, details)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    event.event_type = event_type
    event.details = json.dumps(details)
    event.value = value
    if fields.get("timestamp"):
        event.timestamp = to_naive_utc(fields["timestamp"])
    if "unit" in fields:
        event.unit = fields["unit"]
    if "notes" in fields:
        event.notes = fields["notes"]

    return repo.save(event)


@router.delete("/{event_id}")
def delete_event(
    event_id: int,
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    repo = EventRepository(db)
    event = repo.get(child.id, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    repo.delete(event)
    return {"msg": "Event deleted successfully.", "event_id": event_id}
