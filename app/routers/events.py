from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.auth.deps import client_ip, require_roles
from app.core.db import get_db
from app.models.role import ELDER, PASTOR, SECRETARY
from app.models.user import User
from app.schemas.event import EventCreate, EventOut, EventUpdate
from app.services import events as events_service

READ_ROLES = (SECRETARY, PASTOR, ELDER)
WRITE_ROLES = (SECRETARY, PASTOR)

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[EventOut], status_code=status.HTTP_200_OK)
def list_events(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> list[EventOut]:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    events = events_service.list_events(db, start_date=start_date, end_date=end_date)
    return [EventOut.from_orm(event) for event in events]


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> EventOut:
    event = events_service.create_event(db, payload, current_user, ip_address=ip_address)
    return EventOut.from_orm(event)


@router.get("/{event_id:int}", response_model=EventOut, status_code=status.HTTP_200_OK)
def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> EventOut:
    return EventOut.from_orm(events_service.get_event(db, event_id))


@router.patch("/{event_id:int}", response_model=EventOut, status_code=status.HTTP_200_OK)
def update_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> EventOut:
    event = events_service.update_event(db, event_id, payload, current_user, ip_address=ip_address)
    return EventOut.from_orm(event)


@router.delete("/{event_id:int}", response_model=None, status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> Response:
    events_service.delete_event(db, event_id, current_user, ip_address=ip_address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
