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
from app.schemas.attendance import (
    AttendanceCheckIn,
    AttendanceRecordOut,
    AttendanceStatsResponse,
    ChurchServiceCreate,
    ChurchServiceOut,
    ChurchServiceUpdate,
    ServiceType,
)
from app.services import attendance as attendance_service

READ_ROLES = (SECRETARY, PASTOR, ELDER)
WRITE_ROLES = (SECRETARY, PASTOR)

router = APIRouter(prefix="/church-services", tags=["attendance"])


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")


@router.get("", response_model=list[ChurchServiceOut], status_code=status.HTTP_200_OK)
def list_services(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    service_type: Optional[ServiceType] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> list[ChurchServiceOut]:
    _check_range(start_date, end_date)
    services = attendance_service.list_services(
        db, start_date=start_date, end_date=end_date, service_type=service_type
    )
    return [ChurchServiceOut.from_orm(service) for service in services]


@router.post("", response_model=ChurchServiceOut, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ChurchServiceCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> ChurchServiceOut:
    service = attendance_service.create_service(db, payload, current_user, ip_address=ip_address)
    return ChurchServiceOut.from_orm(service)


@router.get("/stats", response_model=AttendanceStatsResponse, status_code=status.HTTP_200_OK)
def attendance_stats(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> AttendanceStatsResponse:
    _check_range(start_date, end_date)
    return attendance_service.attendance_stats(db, start_date=start_date, end_date=end_date)


@router.get("/{service_id:int}", response_model=ChurchServiceOut, status_code=status.HTTP_200_OK)
def get_service(
    service_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> ChurchServiceOut:
    return ChurchServiceOut.from_orm(attendance_service.get_service(db, service_id))


@router.patch("/{service_id:int}", response_model=ChurchServiceOut, status_code=status.HTTP_200_OK)
def update_service(
    service_id: int,
    payload: ChurchServiceUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> ChurchServiceOut:
    service = attendance_service.update_service(db, service_id, payload, current_user, ip_address=ip_address)
    return ChurchServiceOut.from_orm(service)


@router.delete("/{service_id:int}", response_model=None, status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> Response:
    attendance_service.delete_service(db, service_id, current_user, ip_address=ip_address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{service_id:int}/attendance", response_model=list[AttendanceRecordOut], status_code=status.HTTP_200_OK)
def list_attendance(
    service_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*READ_ROLES)),
) -> list[AttendanceRecordOut]:
    return attendance_service.list_attendance(db, service_id)


@router.post(
    "/{service_id:int}/attendance",
    response_model=list[AttendanceRecordOut],
    status_code=status.HTTP_201_CREATED,
)
def record_attendance(
    service_id: int,
    payload: AttendanceCheckIn,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> list[AttendanceRecordOut]:
    return attendance_service.record_attendance(db, service_id, payload, current_user, ip_address=ip_address)


@router.delete(
    "/{service_id:int}/attendance/{user_id:int}",
    response_model=None,
    status_code=status.HTTP_204_NO_CONTENT,
)
def remove_attendance(
    service_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*WRITE_ROLES)),
) -> Response:
    attendance_service.remove_attendance(db, service_id, user_id, current_user, ip_address=ip_address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
