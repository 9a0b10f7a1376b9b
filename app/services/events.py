from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.event import Event
from app.models.user import User
from app.schemas.event import EventCreate, EventUpdate
from app.services.audit import log_activity


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def list_events(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[Event]:
    query = db.query(Event)
    if start_date:
        query = query.filter(Event.event_date >= start_date)
    if end_date:
        query = query.filter(Event.event_date <= end_date)
    return query.order_by(Event.event_date.asc(), Event.start_time.asc(), Event.id.asc()).all()


def create_event(db: Session, payload: EventCreate, actor: User | None, ip_address: str | None = None) -> Event:
    data = payload.dict()
    if not data["is_recurring"]:
        data["recurrence_pattern"] = None
    event = Event(**data, created_by_id=actor.id if actor else None)
    db.add(event)
    db.flush()
    log_activity(
        db,
        actor,
        "event_created",
        "event",
        event.id,
        {"title": event.title, "event_date": event.event_date},
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(event)
    return event


def update_event(
    db: Session,
    event_id: int,
    payload: EventUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> Event:
    event = get_event(db, event_id)
    changes = payload.dict(exclude_unset=True)
    for field in ("title", "event_date", "is_recurring"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be cleared")
    for field, value in changes.items():
        setattr(event, field, value)
    if event.start_time and event.end_time and event.end_time < event.start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_time must not be before start_time")
    if not event.is_recurring:
        event.recurrence_pattern = None
    log_activity(db, actor, "event_updated", "event", event.id, changes, ip_address=ip_address)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event_id: int, actor: User | None, ip_address: str | None = None) -> None:
    event = get_event(db, event_id)
    log_activity(db, actor, "event_deleted", "event", event.id, {"title": event.title}, ip_address=ip_address)
    db.delete(event)
    db.commit()
