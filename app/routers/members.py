from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.deps import client_ip, require_roles
from app.core.db import get_db
from app.models.role import ELDER, PASTOR, SECRETARY
from app.models.user import User
from app.schemas.member import MemberCreate, MemberListResponse, MemberOut, MemberUpdate
from app.services import members as members_service

READ_ROLES = (SECRETARY, PASTOR, ELDER)
WRITE_ROLES = (SECRETARY,)

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=MemberListResponse, status_code=status.HTTP_200_OK)
def list_members(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    search: Optional[str] = Query(default=None, min_length=1),
    active: Optional[bool] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> MemberListResponse:
    return members_service.list_members(db, page=page, page_size=page_size, search=search, active=active)


@router.post("", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> MemberOut:
    profile = members_service.create_member(db, payload, current_user, ip_address=ip_address)
    return MemberOut.from_orm(profile)


@router.get("/{member_id}", response_model=MemberOut, status_code=status.HTTP_200_OK)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> MemberOut:
    return MemberOut.from_orm(members_service.get_member(db, member_id))


@router.patch("/{member_id}", response_model=MemberOut, status_code=status.HTTP_200_OK)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> MemberOut:
    profile = members_service.update_member(db, member_id, payload, current_user, ip_address=ip_address)
    return MemberOut.from_orm(profile)


@router.post("/{member_id}/archive", response_model=MemberOut, status_code=status.HTTP_200_OK)
def archive_member(
    member_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> MemberOut:
    profile = members_service.set_member_active(db, member_id, False, current_user, ip_address=ip_address)
    return MemberOut.from_orm(profile)


@router.post("/{member_id}/restore", response_model=MemberOut, status_code=status.HTTP_200_OK)
def restore_member(
    member_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> MemberOut:
    profile = members_service.set_member_active(db, member_id, True, current_user, ip_address=ip_address)
    return MemberOut.from_orm(profile)
