from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    head_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    head = relationship("User", foreign_keys=[head_user_id])
    members = relationship(
        "DepartmentMember",
        back_populates="department",
        cascade="all, delete-orphan",
        order_by="DepartmentMember.joined_at.asc(), DepartmentMember.id.asc()",
    )

    @property
    def member_count(self) -> int:
        return len(self.members)


class DepartmentMember(Base):
    __tablename__ = "member_departments"
    __table_args__ = (UniqueConstraint("department_id", "user_id", name="uq_member_departments_department_user"),)

    id = Column(Integer, primary_key=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    department = relationship("Department", back_populates="members")
    user = relationship("User")
