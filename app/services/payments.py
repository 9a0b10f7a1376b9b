from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Query, Session, selectinload

from app.core.config import settings
from app.models.payment import Payment, PaymentCategory
from app.models.user import User
from app.schemas.payment import (
    PaymentCategoryCreate,
    PaymentCategoryOut,
    PaymentCategoryUpdate,
    PaymentCreate,
    PaymentListResponse,
    PaymentOut,
    PaymentSummaryItem,
    PaymentSummaryResponse,
    PaymentUpdate,
)
from app.services.audit import log_activity

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_CATEGORIES: tuple[dict[str, str], ...] = (
    {
        "code": "TITHE",
        "name": "Tithe",
        "description": "Regular tithes returned by members.",
    },
    {
        "code": "OFFERING",
        "name": "Offering",
        "description": "Sabbath and midweek service offerings.",
    },
    {
        "code": "BUILDING",
        "name": "Building Fund",
        "description": "Contributions toward construction and maintenance.",
    },
    {
        "code": "MISSIONS",
        "name": "Missions",
        "description": "Support for evangelism and mission outreach.",
    },
    {
        "code": "WELFARE",
        "name": "Welfare",
        "description": "Benevolence support for members in need.",
    },
)


def ensure_default_categories(db: Session) -> None:
    """Insert baseline contribution categories if any of the default codes are missing."""
    existing_codes = {code for (code,) in db.query(PaymentCategory.code).all()}
    missing = [payload for payload in DEFAULT_PAYMENT_CATEGORIES if payload["code"] not in existing_codes]
    if not missing:
        return
    for payload in missing:
        db.add(PaymentCategory(**payload))
    db.commit()


def get_category_by_code(db: Session, code: str, active_only: bool = True) -> PaymentCategory:
    query = db.query(PaymentCategory).filter(PaymentCategory.code == code.strip().upper())
    if active_only:
        query = query.filter(PaymentCategory.is_active.is_(True))
    category = query.first()
    if not category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or inactive category code")
    return category


def get_category(db: Session, category_id: int) -> PaymentCategory:
    category = db.get(PaymentCategory, category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def resolve_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Member not found")
    return user


def list_categories(db: Session, include_inactive: bool = False) -> list[PaymentCategoryOut]:
    ensure_default_categories(db)
    query = db.query(PaymentCategory)
    if not include_inactive:
        query = query.filter(PaymentCategory.is_active.is_(True))
    query = query.order_by(PaymentCategory.name.asc())
    return [PaymentCategoryOut.from_orm(record) for record in query.all()]


def create_category(
    db: Session, payload: PaymentCategoryCreate, actor: User | None, ip_address: str | None = None
) -> PaymentCategory:
    existing = db.query(PaymentCategory).filter(PaymentCategory.code == payload.code).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category code already exists")
    category = PaymentCategory(**payload.dict())
    db.add(category)
    db.flush()
    log_activity(
        db,
        actor,
        "category_created",
        "payment_category",
        category.id,
        {"code": category.code},
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(category)
    return category


def update_category(
    db: Session, category_id: int, payload: PaymentCategoryUpdate, actor: User | None, ip_address: str | None = None
) -> PaymentCategory:
    category = get_category(db, category_id)
    changes = payload.dict(exclude_unset=True)
    for field, value in changes.items():
        setattr(category, field, value)
    start, end = category.start_date, category.end_date
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    log_activity(db, actor, "category_updated", "payment_category", category.id, changes, ip_address=ip_address)
    db.commit()
    db.refresh(category)
    return category


def _base_payment_query(db: Session) -> Query:
    return (
        db.query(Payment)
        .options(
            selectinload(Payment.category),
            selectinload(Payment.user),
            selectinload(Payment.recorded_by),
        )
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )


def _apply_payment_filters(
    db: Session,
    query: Query,
    *,
    user_id: Optional[int] = None,
    category_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    method: Optional[str] = None,
) -> Query:
    if user_id:
        query = query.filter(Payment.user_id == user_id)
    if category_code:
        category = get_category_by_code(db, category_code, active_only=False)
        query = query.filter(Payment.category_id == category.id)
    if start_date:
        query = query.filter(Payment.payment_date >= start_date)
    if end_date:
        query = query.filter(Payment.payment_date <= end_date)
    if method:
        query = query.filter(func.lower(Payment.payment_method) == method.lower())
    return query


def record_payment(
    db: Session, payload: PaymentCreate, actor: User | None, ip_address: str | None = None
) -> Payment:
    category = get_category_by_code(db, payload.category_code)
    member = resolve_user(db, payload.user_id)
    payment = Payment(
        user_id=member.id,
        category_id=category.id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        description=payload.description,
        receipt_url=payload.receipt_url,
        payment_date=payload.payment_date or date.today(),
        recorded_by_id=actor.id if actor else None,
    )
    db.add(payment)
    db.flush()
    log_activity(
        db,
        actor,
        "payment_recorded",
        "payment",
        payment.id,
        {"amount": payment.amount, "category": category.code, "method": payment.payment_method},
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(payment)
    logger.info(
        "payment_recorded",
        extra={"payment_id": payment.id, "user_id": payment.user_id, "category": category.code},
    )
    return payment


def list_payments(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 25,
    user_id: Optional[int] = None,
    category_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    method: Optional[str] = None,
) -> PaymentListResponse:
    query = _apply_payment_filters(
        db,
        _base_payment_query(db),
        user_id=user_id,
        category_code=category_code,
        start_date=start_date,
        end_date=end_date,
        method=method,
    )

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return PaymentListResponse(
        items=[PaymentOut.from_orm(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = (
        db.query(Payment)
        .options(selectinload(Payment.category), selectinload(Payment.user))
        .filter(Payment.id == payment_id)
        .first()
    )
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return payment


def update_payment(
    db: Session,
    payment_id: int,
    payload: PaymentUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> Payment:
    """Edit descriptive fields only; amounts are immutable once recorded."""
    payment = get_payment(db, payment_id)
    changes = payload.dict(exclude_unset=True)
    if "payment_date" in changes and changes["payment_date"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="payment_date cannot be cleared")
    for field, value in changes.items():
        setattr(payment, field, value)
    log_activity(db, actor, "payment_updated", "payment", payment.id, changes, ip_address=ip_address)
    db.commit()
    db.refresh(payment)
    return payment


def summarize_payments(
    db: Session,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> PaymentSummaryResponse:
    query = (
        db.query(
            Payment.category_id,
            func.sum(Payment.amount).label("total_amount"),
            func.count(Payment.id).label("payment_count"),
        )
        .group_by(Payment.category_id)
    )
    if start_date:
        query = query.filter(Payment.payment_date >= start_date)
    if end_date:
        query = query.filter(Payment.payment_date <= end_date)

    items: list[PaymentSummaryItem] = []
    grand_total = Decimal("0.00")
    for row in query.all():
        category = db.get(PaymentCategory, row.category_id)
        total_amount = Decimal(str(row.total_amount or 0))
        grand_total += total_amount
        items.append(
            PaymentSummaryItem(
                category_code=category.code if category else "",
                category_name=category.name if category else "",
                total_amount=total_amount,
                payment_count=row.payment_count,
            )
        )
    items.sort(key=lambda item: item.total_amount, reverse=True)
    return PaymentSummaryResponse(items=items, grand_total=grand_total, currency=settings.DEFAULT_CURRENCY)


def get_payments_for_export(
    db: Session,
    *,
    user_id: Optional[int] = None,
    category_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    method: Optional[str] = None,
) -> list[Payment]:
    query = _apply_payment_filters(
        db,
        _base_payment_query(db),
        user_id=user_id,
        category_code=category_code,
        start_date=start_date,
        end_date=end_date,
        method=method,
    )
    return query.all()
