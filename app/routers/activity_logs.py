from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.deps import require_roles
from app.core.db import get_db
from app.models.role import SUPER_ADMIN
from app.models.user import User
from app.schemas.reports import ActivityLogOut
from app.services import audit as audit_service

router = APIRouter(prefix="/activity-logs", tags=["activity"])


@router.get("", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_type: str | None = Query(default=None),
    action: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(SUPER_ADMIN)),
) -> list[ActivityLogOut]:
    entries = audit_service.list_activity_logs(db, entity_type=entity_type, action=action, limit=limit)
    return [ActivityLogOut.from_orm(entry) for entry in entries]
