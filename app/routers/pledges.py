from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.deps import client_ip, require_roles
from app.core.db import get_db
from app.models.role import TREASURER
from app.models.user import User
from app.schemas.pledge import (
    PledgeCreate,
    PledgeListResponse,
    PledgeOut,
    PledgePaymentCreate,
    PledgeStatus,
    PledgeUpdate,
)
from app.services import pledges as pledges_service

router = APIRouter(prefix="/pledges", tags=["pledges"])

PLEDGE_ROLES = (TREASURER,)


@router.get("", response_model=PledgeListResponse, status_code=status.HTTP_200_OK)
def list_pledges(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    status_filter: Optional[PledgeStatus] = Query(default=None, alias="status"),
    user_id: Optional[int] = Query(default=None),
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, min_length=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeListResponse:
    return pledges_service.list_pledges(
        db,
        page=page,
        page_size=page_size,
        status_filter=status_filter,
        user_id=user_id,
        category_code=category,
        search=search,
    )


@router.post("", response_model=PledgeOut, status_code=status.HTTP_201_CREATED)
def create_pledge(
    payload: PledgeCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeOut:
    pledge = pledges_service.create_pledge(db, payload, current_user, ip_address=ip_address)
    return PledgeOut.from_orm(pledge)


@router.get("/{pledge_id:int}", response_model=PledgeOut, status_code=status.HTTP_200_OK)
def get_pledge(
    pledge_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeOut:
    pledge = pledges_service.get_pledge(db, pledge_id)
    return PledgeOut.from_orm(pledge)


@router.patch("/{pledge_id:int}", response_model=PledgeOut, status_code=status.HTTP_200_OK)
def update_pledge(
    pledge_id: int,
    payload: PledgeUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeOut:
    pledge = pledges_service.update_pledge(db, pledge_id, payload, current_user, ip_address=ip_address)
    return PledgeOut.from_orm(pledge)


@router.post("/{pledge_id:int}/cancel", response_model=PledgeOut, status_code=status.HTTP_200_OK)
def cancel_pledge(
    pledge_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeOut:
    pledge = pledges_service.cancel_pledge(db, pledge_id, current_user, ip_address=ip_address)
    return PledgeOut.from_orm(pledge)


@router.post("/{pledge_id:int}/payments", response_model=PledgeOut, status_code=status.HTTP_201_CREATED)
def record_pledge_payment(
    pledge_id: int,
    payload: PledgePaymentCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*PLEDGE_ROLES)),
) -> PledgeOut:
    pledge = pledges_service.record_pledge_payment(db, pledge_id, payload, current_user, ip_address=ip_address)
    return PledgeOut.from_orm(pledge)
