from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base

SERVICE_TYPES = (
    "sabbath_school",
    "divine_service",
    "prayer_meeting",
    "youth_program",
    "midweek_service",
    "special_event",
    "other",
)


class ChurchService(Base):
    __tablename__ = "church_services"
    __table_args__ = (
        CheckConstraint(
            "service_type IN ({})".format(", ".join(f"'{value}'" for value in SERVICE_TYPES)),
            name="ck_church_services_type",
        ),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    service_type = Column(String(30), nullable=False, default="divine_service")
    service_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    attendance = relationship(
        "AttendanceRecord",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="AttendanceRecord.checked_in_at.asc(), AttendanceRecord.id.asc()",
    )

    @property
    def attendance_count(self) -> int:
        return len(self.attendance)


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("service_id", "user_id", name="uq_attendance_records_service_user"),)

    id = Column(Integer, primary_key=True)
    service_id = Column(Integer, ForeignKey("church_services.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    checked_in_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    checked_in_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    service = relationship("ChurchService", back_populates="attendance")
    user = relationship("User", foreign_keys=[user_id])
