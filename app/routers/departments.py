from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.auth.deps import client_ip, require_roles
from app.core.db import get_db
from app.models.role import SECRETARY
from app.models.user import User
from app.schemas.department import (
    DepartmentCreate,
    DepartmentMemberAdd,
    DepartmentMemberOut,
    DepartmentOut,
    DepartmentUpdate,
)
from app.services import departments as departments_service

DEPARTMENT_ROLES = (SECRETARY,)

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=list[DepartmentOut], status_code=status.HTTP_200_OK)
def list_departments(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> list[DepartmentOut]:
    departments = departments_service.list_departments(db, include_inactive=include_inactive)
    return [DepartmentOut.from_orm(department) for department in departments]


@router.post("", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> DepartmentOut:
    department = departments_service.create_department(db, payload, current_user, ip_address=ip_address)
    return DepartmentOut.from_orm(department)


@router.get("/{department_id:int}", response_model=DepartmentOut, status_code=status.HTTP_200_OK)
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> DepartmentOut:
    return DepartmentOut.from_orm(departments_service.get_department(db, department_id))


@router.patch("/{department_id:int}", response_model=DepartmentOut, status_code=status.HTTP_200_OK)
def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> DepartmentOut:
    department = departments_service.update_department(
        db, department_id, payload, current_user, ip_address=ip_address
    )
    return DepartmentOut.from_orm(department)


@router.get(
    "/{department_id:int}/members",
    response_model=list[DepartmentMemberOut],
    status_code=status.HTTP_200_OK,
)
def list_department_members(
    department_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> list[DepartmentMemberOut]:
    return departments_service.list_department_members(db, department_id)


@router.post(
    "/{department_id:int}/members",
    response_model=list[DepartmentMemberOut],
    status_code=status.HTTP_201_CREATED,
)
def add_department_members(
    department_id: int,
    payload: DepartmentMemberAdd,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> list[DepartmentMemberOut]:
    return departments_service.add_department_members(
        db, department_id, payload, current_user, ip_address=ip_address
    )


@router.delete(
    "/{department_id:int}/members/{user_id:int}",
    response_model=None,
    status_code=status.HTTP_204_NO_CONTENT,
)
def remove_department_member(
    department_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*DEPARTMENT_ROLES)),
) -> Response:
    departments_service.remove_department_member(db, department_id, user_id, current_user, ip_address=ip_address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
