# app/repositories/event_repository.py

import json
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.event_model import Event
from app.schemas.event_schema import EventCreate


class EventRepository:
    def __init__(self, db: Session):
        self.db = db

    def _query(
        self,
        child_id: int,
        event_type: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ):
        query = self.db.query(Event).filter(Event.child_id == child_id)
        if event_type:
            query = query.filter(Event.event_type == event_type)
        if start is not None:
            query = query.filter(Event.timestamp >= start)
        if end is not None:
            query = query.filter(Event.timestamp <= end)
        return query

    def list_for_child(
        self,
        child_id: int,
        event_type: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> List[Event]:
        """Events of one child inside [start, end], both ends inclusive."""
        if newest_first:
            ordering = (Event.timestamp.desc(), Event.id.desc())
        else:
            ordering = (Event.timestamp.asc(), Event.id.asc())
        query = self._query(child_id, event_type, start, end).order_by(*ordering)
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_by_type(
        self,
        child_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, int]:
        rows = (
            self._query(child_id, start=start, end=end)
            .with_entities(Event.event_type, func.count(Event.id).label("event_count"))
            .group_by(Event.event_type)
            .all()
        )
        return {row.event_type: row.event_count for row in rows}

    def get(self, child_id: int, event_id: int) -> Optional[Event]:
        return self.db.query(Event).filter_by(id=event_id, child_id=child_id).first()

    def add_many(self, child_id: int, events: List[EventCreate]) -> List[Event]:
        created = []
        for data in events:
            event = Event(
                child_id=child_id,
                event_type=data.event_type,
                timestamp=data.timestamp,
                value=data.value,
                unit=data.unit,
                notes=data.notes,
                details=json.dumps(data.details),
            )
            self.db.add(event)
            self.db.flush()  # assigns event.id before the commit
            created.append(event)

        self.db.commit()
        for event in created:
            self.db.refresh(event)
        return created

    def save(self, event: Event) -> Event:
        self.db.commit()
        self.db.refresh(event)
        return event

    def delete(self, event: Event) -> None:
        self.db.delete(event)
        self.db.commit()
