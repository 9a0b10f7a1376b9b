from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status
from slugify import slugify
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.models.profile import Profile
from app.models.role import MEMBER, Role
from app.models.user import User
from app.schemas.member import MemberCreate, MemberListResponse, MemberOut, MemberUpdate
from app.services.audit import log_activity

MEMBERSHIP_NUMBER_PREFIX = "MBR"


def _ensure_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
    return role


def _placeholder_email(first_name: str, last_name: str) -> str:
    slug = slugify(f"{first_name}.{last_name}", separator=".") or "member"
    return f"{slug}@members.invalid"


def _ensure_unique_email(db: Session, email: str) -> str:
    local, _, domain = email.partition("@")
    candidate = email
    suffix = 1
    while db.query(User).filter(func.lower(User.email) == candidate.lower()).first():
        suffix += 1
        candidate = f"{local}{suffix}@{domain}"
    return candidate


def format_membership_number(profile_id: int) -> str:
    return f"{MEMBERSHIP_NUMBER_PREFIX}-{profile_id:05d}"


def get_member(db: Session, member_id: int) -> Profile:
    profile = db.query(Profile).options(selectinload(Profile.user)).filter(Profile.id == member_id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return profile


def list_members(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    active: Optional[bool] = None,
) -> MemberListResponse:
    query = db.query(Profile)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Profile.first_name).like(pattern),
                func.lower(Profile.last_name).like(pattern),
                func.lower(Profile.membership_number).like(pattern),
                Profile.phone.like(pattern),
            )
        )
    if active is not None:
        query = query.filter(Profile.is_active.is_(active))
    total = query.count()
    items = (
        query.order_by(Profile.last_name.asc(), Profile.first_name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return MemberListResponse(
        items=[MemberOut.from_orm(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def create_member(
    db: Session, payload: MemberCreate, actor: User | None, ip_address: str | None = None
) -> Profile:
    data = payload.dict(exclude={"user_id", "membership_number"})
    if payload.membership_number:
        taken = db.query(Profile).filter(Profile.membership_number == payload.membership_number).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Membership number already in use")

    if payload.user_id is not None:
        user = db.get(User, payload.user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User not found")
        if user.profile is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already has a member profile")
    else:
        email = payload.email or _placeholder_email(payload.first_name, payload.last_name)
        user = User(
            email=_ensure_unique_email(db, email),
            full_name=f"{payload.first_name} {payload.last_name}",
            is_active=True,
        )
        user.roles.append(_ensure_role(db, MEMBER))
        db.add(user)
        db.flush()

    profile = Profile(user_id=user.id, membership_number=payload.membership_number, **data)
    db.add(profile)
    db.flush()
    if not profile.membership_number:
        profile.membership_number = format_membership_number(profile.id)
    log_activity(
        db,
        actor,
        "member_created",
        "member",
        profile.id,
        {"membership_number": profile.membership_number},
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(profile)
    return profile


def update_member(
    db: Session,
    member_id: int,
    payload: MemberUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> Profile:
    profile = get_member(db, member_id)
    changes = payload.dict(exclude_unset=True)
    for field in ("first_name", "last_name"):
        if field in changes and not changes[field]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be cleared")
    for field, value in changes.items():
        setattr(profile, field, value)
    if {"first_name", "last_name"} & changes.keys() and profile.user is not None:
        profile.user.full_name = profile.full_name
    log_activity(db, actor, "profile_updated", "member", profile.id, changes, ip_address=ip_address)
    db.commit()
    db.refresh(profile)
    return profile


def set_member_active(
    db: Session,
    member_id: int,
    active: bool,
    actor: User | None,
    ip_address: str | None = None,
) -> Profile:
    profile = get_member(db, member_id)
    if profile.is_active == active:
        return profile
    profile.is_active = active
    if profile.user is not None:
        profile.user.is_active = active
    log_activity(
        db,
        actor,
        "member_restored" if active else "member_archived",
        "member",
        profile.id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(profile)
    return profile
