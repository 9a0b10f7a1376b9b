from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.attendance import AttendanceRecord, ChurchService
from app.models.profile import Profile
from app.models.user import User
from app.schemas.attendance import (
    AttendanceCheckIn,
    AttendanceMemberOut,
    AttendanceRecordOut,
    AttendanceStatsResponse,
    ChurchServiceCreate,
    ChurchServiceUpdate,
    ServiceTypeAttendance,
)
from app.services.audit import log_activity

logger = logging.getLogger(__name__)


def get_service(db: Session, service_id: int) -> ChurchService:
    service = (
        db.query(ChurchService)
        .options(selectinload(ChurchService.attendance))
        .filter(ChurchService.id == service_id)
        .first()
    )
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


def list_services(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service_type: Optional[str] = None,
) -> list[ChurchService]:
    query = db.query(ChurchService).options(selectinload(ChurchService.attendance))
    if start_date:
        query = query.filter(ChurchService.service_date >= start_date)
    if end_date:
        query = query.filter(ChurchService.service_date <= end_date)
    if service_type:
        query = query.filter(ChurchService.service_type == service_type)
    return query.order_by(ChurchService.service_date.desc(), ChurchService.id.desc()).all()


def create_service(
    db: Session,
    payload: ChurchServiceCreate,
    actor: User | None,
    ip_address: str | None = None,
) -> ChurchService:
    service = ChurchService(**payload.dict(), created_by_id=actor.id if actor else None)
    db.add(service)
    db.flush()
    log_activity(
        db,
        actor,
        "service_created",
        "church_service",
        service.id,
        {"title": service.title, "service_date": service.service_date},
        ip_address=ip_address,
    )
    db.commit()
    return get_service(db, service.id)


def update_service(
    db: Session,
    service_id: int,
    payload: ChurchServiceUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> ChurchService:
    service = get_service(db, service_id)
    changes = payload.dict(exclude_unset=True)
    for field in ("title", "service_type", "service_date"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be cleared")
    for field, value in changes.items():
        setattr(service, field, value)
    if service.start_time and service.end_time and service.end_time < service.start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_time must not be before start_time")
    log_activity(db, actor, "service_updated", "church_service", service.id, changes, ip_address=ip_address)
    db.commit()
    return get_service(db, service.id)


def delete_service(db: Session, service_id: int, actor: User | None, ip_address: str | None = None) -> None:
    service = get_service(db, service_id)
    log_activity(
        db,
        actor,
        "service_deleted",
        "church_service",
        service.id,
        {"title": service.title, "attendance": service.attendance_count},
        ip_address=ip_address,
    )
    db.delete(service)
    db.commit()


def list_attendance(db: Session, service_id: int) -> list[AttendanceRecordOut]:
    service = get_service(db, service_id)
    user_ids = [record.user_id for record in service.attendance]
    profiles: Dict[int, Profile] = {}
    users: Dict[int, User] = {}
    if user_ids:
        profiles = {p.user_id: p for p in db.query(Profile).filter(Profile.user_id.in_(user_ids)).all()}
        users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}
    items: list[AttendanceRecordOut] = []
    for record in service.attendance:
        profile = profiles.get(record.user_id)
        user = users.get(record.user_id)
        items.append(
            AttendanceRecordOut(
                id=record.id,
                service_id=record.service_id,
                user_id=record.user_id,
                full_name=profile.full_name if profile else (user.full_name if user else None),
                checked_in_at=record.checked_in_at,
                checked_in_by_id=record.checked_in_by_id,
                notes=record.notes,
                profile=AttendanceMemberOut.from_orm(profile) if profile else None,
            )
        )
    return items


def record_attendance(
    db: Session,
    service_id: int,
    payload: AttendanceCheckIn,
    actor: User | None,
    ip_address: str | None = None,
) -> list[AttendanceRecordOut]:
    """Check members in to a service. Members already checked in are left as they are."""
    service = get_service(db, service_id)
    requested = list(dict.fromkeys(payload.user_ids))
    known = {user_id for (user_id,) in db.query(User.id).filter(User.id.in_(requested)).all()}
    missing = [user_id for user_id in requested if user_id not in known]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Member not found: {', '.join(str(user_id) for user_id in missing)}",
        )

    already = {record.user_id for record in service.attendance}
    added = [user_id for user_id in requested if user_id not in already]
    for user_id in added:
        db.add(
            AttendanceRecord(
                service_id=service.id,
                user_id=user_id,
                checked_in_by_id=actor.id if actor else None,
                notes=payload.notes,
            )
        )
    if added:
        log_activity(
            db,
            actor,
            "attendance_recorded",
            "church_service",
            service.id,
            {"user_ids": ",".join(str(user_id) for user_id in added)},
            ip_address=ip_address,
        )
        db.commit()
        db.expire(service)
    logger.info(
        "attendance_recorded",
        extra={"service_id": service.id, "added": len(added), "skipped": len(requested) - len(added)},
    )
    return list_attendance(db, service.id)


def remove_attendance(
    db: Session,
    service_id: int,
    user_id: int,
    actor: User | None,
    ip_address: str | None = None,
) -> None:
    record = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.service_id == service_id, AttendanceRecord.user_id == user_id)
        .first()
    )
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")
    log_activity(
        db,
        actor,
        "attendance_removed",
        "church_service",
        service_id,
        {"user_id": user_id},
        ip_address=ip_address,
    )
    db.delete(record)
    db.commit()


def attendance_stats(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AttendanceStatsResponse:
    query = (
        db.query(
            ChurchService.id,
            ChurchService.service_type,
            func.count(AttendanceRecord.id).label("attendance"),
        )
        .outerjoin(AttendanceRecord, AttendanceRecord.service_id == ChurchService.id)
        .group_by(ChurchService.id, ChurchService.service_type)
    )
    if start_date:
        query = query.filter(ChurchService.service_date >= start_date)
    if end_date:
        query = query.filter(ChurchService.service_date <= end_date)

    by_type: Dict[str, list[int]] = defaultdict(list)
    for _, service_type, attendance in query.all():
        by_type[service_type].append(attendance)

    total_services = sum(len(counts) for counts in by_type.values())
    total_attendance = sum(sum(counts) for counts in by_type.values())
    average = round(total_attendance / total_services) if total_services else 0
    return AttendanceStatsResponse(
        total_services=total_services,
        total_attendance=total_attendance,
        average_attendance=average,
        by_service_type={
            service_type: ServiceTypeAttendance(count=len(counts), total_attendance=sum(counts))
            for service_type, counts in by_type.items()
        },
    )
