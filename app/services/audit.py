from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.activity_log import ActivityLog
from app.models.user import User


def _to_json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def log_activity(
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    details: Optional[Dict[str, Any]] = None,
    ip_address: str | None = None,
) -> ActivityLog:
    """Stage an activity entry on the session; the caller owns the commit."""

    entry = ActivityLog(
        user_id=actor.id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details={key: _to_json_value(value) for key, value in (details or {}).items()},
        ip_address=ip_address,
    )
    db.add(entry)
    return entry


def list_activity_logs(
    db: Session,
    *,
    entity_type: str | None = None,
    action: str | None = None,
    limit: int | None = None,
) -> list[ActivityLog]:
    query = db.query(ActivityLog)
    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type)
    if action:
        query = query.filter(ActivityLog.action == action)
    cap = min(limit or settings.ACTIVITY_LOG_LIMIT, settings.ACTIVITY_LOG_LIMIT)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(cap).all()
