from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.models.payment import Payment
from app.models.pledge import Pledge
from app.schemas.reports import (
    ContributionCategoryTotal,
    ContributionMonthTotal,
    ContributionReportResponse,
    PledgeSummaryResponse,
)


def _decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def pledge_summary(db: Session, *, today: date | None = None) -> PledgeSummaryResponse:
    today = today or date.today()
    due_soon = today + timedelta(days=settings.PLEDGE_DUE_SOON_DAYS)

    total_pledged, total_fulfilled = db.query(
        func.coalesce(func.sum(Pledge.amount), 0),
        func.coalesce(func.sum(Pledge.fulfilled_amount), 0),
    ).one()
    counts: Dict[str, int] = dict(
        db.query(Pledge.status, func.count(Pledge.id)).group_by(Pledge.status).all()
    )
    pending = db.query(Pledge).filter(Pledge.status == "pending", Pledge.due_date.isnot(None))
    overdue_count = pending.filter(Pledge.due_date < today).count()
    upcoming_count = pending.filter(Pledge.due_date >= today, Pledge.due_date <= due_soon).count()

    pledged = _decimal(total_pledged)
    fulfilled = _decimal(total_fulfilled)
    progress = float(fulfilled / pledged * 100) if pledged > 0 else 0.0
    return PledgeSummaryResponse(
        total_pledged=pledged,
        total_fulfilled=fulfilled,
        pending_count=counts.get("pending", 0),
        fulfilled_count=counts.get("fulfilled", 0),
        cancelled_count=counts.get("cancelled", 0),
        overdue_count=overdue_count,
        upcoming_due_count=upcoming_count,
        overall_progress=round(progress, 1),
        currency=settings.DEFAULT_CURRENCY,
    )


def contribution_report(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ContributionReportResponse:
    query = db.query(Payment).options(selectinload(Payment.category))
    if start_date:
        query = query.filter(Payment.payment_date >= start_date)
    if end_date:
        query = query.filter(Payment.payment_date <= end_date)

    by_category: Dict[Tuple[str, str], List[Decimal]] = defaultdict(list)
    by_month: Dict[str, List[Decimal]] = defaultdict(list)
    grand_total = Decimal("0.00")
    for payment in query.all():
        amount = _decimal(payment.amount)
        category = payment.category
        by_category[(category.code, category.name)].append(amount)
        by_month[payment.payment_date.strftime("%Y-%m")].append(amount)
        grand_total += amount

    categories = [
        ContributionCategoryTotal(
            category_code=code,
            category_name=name,
            total_amount=sum(amounts, Decimal("0.00")),
            payment_count=len(amounts),
        )
        for (code, name), amounts in by_category.items()
    ]
    categories.sort(key=lambda item: item.total_amount, reverse=True)
    months = [
        ContributionMonthTotal(
            month=month,
            total_amount=sum(amounts, Decimal("0.00")),
            payment_count=len(amounts),
        )
        for month, amounts in sorted(by_month.items())
    ]
    return ContributionReportResponse(
        start_date=start_date,
        end_date=end_date,
        by_category=categories,
        by_month=months,
        grand_total=grand_total,
        currency=settings.DEFAULT_CURRENCY,
    )
