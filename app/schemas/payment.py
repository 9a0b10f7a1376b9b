from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, validator


PaymentMethod = Literal["cash", "mpesa", "bank_transfer", "cheque"]


class PaymentCategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    target_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @validator("code")
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @validator("end_date")
    def validate_window(cls, value: Optional[date], values: dict) -> Optional[date]:
        start = values.get("start_date")
        if value and start and value < start:
            raise ValueError("end_date must not be before start_date")
        return value


class PaymentCategoryCreate(PaymentCategoryBase):
    is_active: bool = True


class PaymentCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=255)
    target_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class PaymentCategoryOut(PaymentCategoryBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentUserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str]

    class Config:
        from_attributes = True


class PaymentCategorySummaryOut(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class PaymentBase(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod = "cash"
    reference_number: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)


class PaymentCreate(PaymentBase):
    user_id: int
    category_code: str = Field(..., min_length=1, max_length=50)
    payment_date: Optional[date] = None
    receipt_url: Optional[str] = Field(None, max_length=255)


class PaymentUpdate(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    reference_number: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    payment_date: Optional[date] = None
    receipt_url: Optional[str] = Field(None, max_length=255)


class PaymentOut(BaseModel):
    id: int
    user_id: int
    category_id: int
    amount: Decimal
    payment_method: str
    reference_number: Optional[str]
    description: Optional[str]
    receipt_url: Optional[str]
    payment_date: date
    recorded_by_id: Optional[int]
    created_at: datetime
    updated_at: datetime
    category: Optional[PaymentCategorySummaryOut] = None
    user: Optional[PaymentUserOut] = None

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    items: List[PaymentOut]
    total: int
    page: int
    page_size: int


class PaymentSummaryItem(BaseModel):
    category_code: str
    category_name: str
    total_amount: Decimal
    payment_count: int


class PaymentSummaryResponse(BaseModel):
    items: List[PaymentSummaryItem]
    grand_total: Decimal
    currency: str
