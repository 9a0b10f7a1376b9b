from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.deps import client_ip, get_current_user, require_roles
from app.core.db import get_db
from app.models.payment import Payment
from app.models.role import ELDER, PASTOR, SECRETARY, TREASURER
from app.models.user import User
from app.schemas.payment import (
    PaymentCategoryCreate,
    PaymentCategoryOut,
    PaymentCategoryUpdate,
    PaymentCreate,
    PaymentListResponse,
    PaymentOut,
    PaymentSummaryResponse,
    PaymentUpdate,
)
from app.services import payments as payments_service

router = APIRouter(prefix="/payments", tags=["payments"])

FINANCE_ROLES = (TREASURER,)
VIEW_ROLES = (TREASURER, PASTOR, ELDER)
CATEGORY_VIEW_ROLES = (TREASURER, PASTOR, ELDER, SECRETARY)

PAYMENT_EXPORT_HEADERS = [
    "payment_id",
    "payment_date",
    "amount",
    "payment_method",
    "reference_number",
    "category_code",
    "category_name",
    "user_id",
    "member_name",
    "member_email",
    "description",
    "recorded_by_id",
]


def _format_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def _format_payment_row(payment: "Payment") -> list[str]:
    member = payment.user
    category = payment.category
    amount = f"{payment.amount:.2f}" if payment.amount is not None else ""
    return [
        str(payment.id),
        _format_date(payment.payment_date),
        amount,
        payment.payment_method or "",
        payment.reference_number or "",
        category.code if category else "",
        category.name if category else "",
        str(payment.user_id),
        (member.full_name or "") if member else "",
        member.email if member else "",
        payment.description or "",
        str(payment.recorded_by_id) if payment.recorded_by_id else "",
    ]


def _stream_payment_csv(rows: Iterable[list[str]]) -> Iterable[str]:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(PAYMENT_EXPORT_HEADERS)
    yield buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)
    for row in rows:
        writer.writerow(row)
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)


@router.get("", response_model=PaymentListResponse, status_code=status.HTTP_200_OK)
def list_payments(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    user_id: Optional[int] = Query(default=None),
    category: Optional[str] = Query(default=None),
    method: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*VIEW_ROLES)),
) -> PaymentListResponse:
    return payments_service.list_payments(
        db,
        page=page,
        page_size=page_size,
        user_id=user_id,
        category_code=category,
        method=method,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/mine", response_model=PaymentListResponse, status_code=status.HTTP_200_OK)
def list_my_payments(
    *,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PaymentListResponse:
    return payments_service.list_payments(db, page=page, page_size=page_size, user_id=current_user.id)


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*FINANCE_ROLES)),
) -> PaymentOut:
    payment = payments_service.record_payment(db, payload, current_user, ip_address=ip_address)
    return PaymentOut.from_orm(payment)


@router.get("/categories", response_model=list[PaymentCategoryOut], status_code=status.HTTP_200_OK)
def list_payment_categories(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*CATEGORY_VIEW_ROLES)),
) -> list[PaymentCategoryOut]:
    return payments_service.list_categories(db, include_inactive=include_inactive)


@router.post("/categories", response_model=PaymentCategoryOut, status_code=status.HTTP_201_CREATED)
def create_payment_category(
    payload: PaymentCategoryCreate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*FINANCE_ROLES)),
) -> PaymentCategoryOut:
    category = payments_service.create_category(db, payload, current_user, ip_address=ip_address)
    return PaymentCategoryOut.from_orm(category)


@router.patch("/categories/{category_id:int}", response_model=PaymentCategoryOut, status_code=status.HTTP_200_OK)
def update_payment_category(
    category_id: int,
    payload: PaymentCategoryUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*FINANCE_ROLES)),
) -> PaymentCategoryOut:
    category = payments_service.update_category(db, category_id, payload, current_user, ip_address=ip_address)
    return PaymentCategoryOut.from_orm(category)


@router.get("/export.csv", status_code=status.HTTP_200_OK)
def export_payments_report(
    *,
    user_id: Optional[int] = Query(default=None),
    category: Optional[str] = Query(default=None),
    method: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*VIEW_ROLES)),
) -> StreamingResponse:
    payments = payments_service.get_payments_for_export(
        db,
        user_id=user_id,
        category_code=category,
        method=method,
        start_date=start_date,
        end_date=end_date,
    )
    rows = [_format_payment_row(payment) for payment in payments]
    response = StreamingResponse(_stream_payment_csv(rows), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=contributions_report.csv"
    return response


@router.get("/reports/summary", response_model=PaymentSummaryResponse, status_code=status.HTTP_200_OK)
def payments_summary(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*VIEW_ROLES)),
) -> PaymentSummaryResponse:
    return payments_service.summarize_payments(db, start_date=start_date, end_date=end_date)


@router.get("/{payment_id:int}", response_model=PaymentOut, status_code=status.HTTP_200_OK)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*VIEW_ROLES)),
) -> PaymentOut:
    payment = payments_service.get_payment(db, payment_id)
    return PaymentOut.from_orm(payment)


@router.patch("/{payment_id:int}", response_model=PaymentOut, status_code=status.HTTP_200_OK)
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    ip_address: str | None = Depends(client_ip),
    current_user: User = Depends(require_roles(*FINANCE_ROLES)),
) -> PaymentOut:
    payment = payments_service.update_payment(db, payment_id, payload, current_user, ip_address=ip_address)
    return PaymentOut.from_orm(payment)
