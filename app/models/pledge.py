from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.core.db import Base


class Pledge(Base):
    __tablename__ = "pledges"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'fulfilled', 'cancelled')", name="ck_pledges_status"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("payment_categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    # Only the fulfillment flow writes fulfilled_amount; it is never clamped to amount.
    fulfilled_amount = Column(Numeric(12, 2), nullable=False, default=0)
    due_date = Column(Date, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    description = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    category = relationship("PaymentCategory", back_populates="pledges")
    created_by = relationship("User", foreign_keys=[created_by_id])
