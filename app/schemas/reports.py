from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel


class PledgeSummaryResponse(BaseModel):
    total_pledged: Decimal
    total_fulfilled: Decimal
    pending_count: int
    fulfilled_count: int
    cancelled_count: int
    overdue_count: int
    upcoming_due_count: int
    overall_progress: float
    currency: str


class ContributionCategoryTotal(BaseModel):
    category_code: str
    category_name: str
    total_amount: Decimal
    payment_count: int


class ContributionMonthTotal(BaseModel):
    month: str
    total_amount: Decimal
    payment_count: int


class ContributionReportResponse(BaseModel):
    start_date: Optional[date]
    end_date: Optional[date]
    by_category: List[ContributionCategoryTotal]
    by_month: List[ContributionMonthTotal]
    grand_total: Decimal
    currency: str


class ActivityLogOut(BaseModel):
    id: int
    user_id: Optional[int]
    action: str
    entity_type: str
    entity_id: Optional[int]
    details: Optional[dict[str, Any]]
    ip_address: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
