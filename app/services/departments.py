from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.department import Department, DepartmentMember
from app.models.user import User
from app.schemas.department import (
    DepartmentCreate,
    DepartmentMemberAdd,
    DepartmentMemberOut,
    DepartmentUpdate,
)
from app.services.audit import log_activity
from app.services.payments import resolve_user


def get_department(db: Session, department_id: int) -> Department:
    department = (
        db.query(Department)
        .options(selectinload(Department.members).selectinload(DepartmentMember.user))
        .filter(Department.id == department_id)
        .first()
    )
    if not department:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
    return department


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Department).filter(func.lower(Department.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Department name already exists")


def list_departments(db: Session, include_inactive: bool = False) -> list[Department]:
    query = db.query(Department).options(selectinload(Department.members))
    if not include_inactive:
        query = query.filter(Department.is_active.is_(True))
    return query.order_by(Department.name.asc()).all()


def create_department(
    db: Session,
    payload: DepartmentCreate,
    actor: User | None,
    ip_address: str | None = None,
) -> Department:
    _ensure_unique_name(db, payload.name)
    if payload.head_user_id is not None:
        resolve_user(db, payload.head_user_id)
    department = Department(**payload.dict())
    db.add(department)
    db.flush()
    log_activity(
        db,
        actor,
        "department_created",
        "department",
        department.id,
        {"name": department.name},
        ip_address=ip_address,
    )
    db.commit()
    return get_department(db, department.id)


def update_department(
    db: Session,
    department_id: int,
    payload: DepartmentUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> Department:
    department = get_department(db, department_id)
    changes = payload.dict(exclude_unset=True)
    if "name" in changes:
        if not changes["name"] or not changes["name"].strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name cannot be cleared")
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=department.id)
    if changes.get("head_user_id") is not None:
        resolve_user(db, changes["head_user_id"])
    if "is_active" in changes and changes["is_active"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="is_active cannot be cleared")
    for field, value in changes.items():
        setattr(department, field, value)
    log_activity(db, actor, "department_updated", "department", department.id, changes, ip_address=ip_address)
    db.commit()
    return get_department(db, department.id)


def list_department_members(db: Session, department_id: int) -> list[DepartmentMemberOut]:
    department = get_department(db, department_id)
    return [
        DepartmentMemberOut(
            id=membership.id,
            department_id=membership.department_id,
            user_id=membership.user_id,
            full_name=membership.user.full_name if membership.user else None,
            email=membership.user.email if membership.user else None,
            joined_at=membership.joined_at,
        )
        for membership in department.members
    ]


def add_department_members(
    db: Session,
    department_id: int,
    payload: DepartmentMemberAdd,
    actor: User | None,
    ip_address: str | None = None,
) -> list[DepartmentMemberOut]:
    department = get_department(db, department_id)
    if not department.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Department is inactive")
    requested = list(dict.fromkeys(payload.user_ids))
    for user_id in requested:
        resolve_user(db, user_id)
    existing = {membership.user_id for membership in department.members}
    added: list[int] = []
    for user_id in requested:
        if user_id in existing:
            continue
        db.add(DepartmentMember(department_id=department.id, user_id=user_id))
        added.append(user_id)
    if added:
        log_activity(
            db,
            actor,
            "department_members_added",
            "department",
            department.id,
            {"user_ids": ",".join(str(user_id) for user_id in added)},
            ip_address=ip_address,
        )
        db.commit()
        db.expire(department)
    return list_department_members(db, department.id)


def remove_department_member(
    db: Session,
    department_id: int,
    user_id: int,
    actor: User | None,
    ip_address: str | None = None,
) -> None:
    membership = (
        db.query(DepartmentMember)
        .filter(DepartmentMember.department_id == department_id, DepartmentMember.user_id == user_id)
        .first()
    )
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department member not found")
    log_activity(
        db,
        actor,
        "department_member_removed",
        "department",
        department_id,
        {"user_id": user_id},
        ip_address=ip_address,
    )
    db.delete(membership)
    db.commit()
