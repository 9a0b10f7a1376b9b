from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, validator


ServiceType = Literal[
    "sabbath_school",
    "divine_service",
    "prayer_meeting",
    "youth_program",
    "midweek_service",
    "special_event",
    "other",
]


def _check_time_window(value: Optional[time], values: dict) -> Optional[time]:
    start = values.get("start_time")
    if value and start and value < start:
        raise ValueError("end_time must not be before start_time")
    return value


class ChurchServiceBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    service_type: ServiceType = "divine_service"
    service_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)

    @validator("end_time")
    def validate_time_window(cls, value: Optional[time], values: dict) -> Optional[time]:
        return _check_time_window(value, values)


class ChurchServiceCreate(ChurchServiceBase):
    pass


class ChurchServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    service_type: Optional[ServiceType] = None
    service_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class ChurchServiceOut(ChurchServiceBase):
    id: int
    created_by_id: Optional[int]
    attendance_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AttendanceCheckIn(BaseModel):
    user_ids: List[int] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)


class AttendanceMemberOut(BaseModel):
    first_name: str
    last_name: str
    membership_number: Optional[str]

    class Config:
        from_attributes = True


class AttendanceRecordOut(BaseModel):
    id: int
    service_id: int
    user_id: int
    full_name: Optional[str] = None
    checked_in_at: datetime
    checked_in_by_id: Optional[int]
    notes: Optional[str]
    profile: Optional[AttendanceMemberOut] = None


class ServiceTypeAttendance(BaseModel):
    count: int
    total_attendance: int


class AttendanceStatsResponse(BaseModel):
    total_services: int
    total_attendance: int
    average_attendance: int
    by_service_type: Dict[str, ServiceTypeAttendance]
