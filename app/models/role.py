from __future__ import annotations

from sqlalchemy import Column, Integer, String

from app.core.db import Base

SUPER_ADMIN = "super_admin"
TREASURER = "treasurer"
SECRETARY = "secretary"
PASTOR = "pastor"
ELDER = "elder"
MEMBER = "member"


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True)
    name = Column(String(64), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
