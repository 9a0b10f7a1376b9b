from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.payment import PaymentCategorySummaryOut, PaymentMethod, PaymentUserOut


PledgeStatus = Literal["pending", "fulfilled", "cancelled"]


class PledgeCreate(BaseModel):
    user_id: int
    category_id: int
    amount: Decimal = Field(..., gt=0)
    due_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=1000)


class PledgeUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    due_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=1000)


class PledgePaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    reference_number: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    idempotency_key: Optional[str] = Field(None, min_length=8, max_length=120)


class PledgeOut(BaseModel):
    id: int
    user_id: int
    category_id: int
    amount: Decimal
    fulfilled_amount: Decimal
    due_date: Optional[date]
    status: PledgeStatus
    description: Optional[str]
    created_by_id: Optional[int]
    created_at: datetime
    updated_at: datetime
    category: Optional[PaymentCategorySummaryOut] = None
    user: Optional[PaymentUserOut] = None

    class Config:
        from_attributes = True


class PledgeListResponse(BaseModel):
    items: List[PledgeOut]
    total: int
    page: int
    page_size: int
