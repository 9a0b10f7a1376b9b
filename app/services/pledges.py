from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from app.models.activity_log import ActivityLog
from app.models.payment import Payment, PaymentCategory
from app.models.pledge import Pledge
from app.models.user import User
from app.schemas.pledge import (
    PledgeCreate,
    PledgeListResponse,
    PledgeOut,
    PledgePaymentCreate,
    PledgeStatus,
    PledgeUpdate,
)
from app.services.audit import log_activity
from app.services.notifications import (
    notify_pledge_fulfilled,
    notify_pledge_overdue,
    notify_pledge_payment_recorded,
)
from app.services.payments import resolve_user

logger = logging.getLogger(__name__)

PLEDGE_PAYMENT_FAILED = "Unable to record pledge payment"
PLEDGE_PAYMENT_RECORDED = "pledge_payment_recorded"


def resolve_pledge_status(new_fulfilled: Decimal, pledge_amount: Decimal) -> PledgeStatus:
    """Status a pledge takes once its fulfilled total becomes ``new_fulfilled``.

    There is no separate partial state: anything short of the committed amount
    stays ``pending``, and overshooting still counts as ``fulfilled``.
    """
    if new_fulfilled >= pledge_amount:
        return "fulfilled"
    return "pending"


def _base_pledge_query(db: Session) -> Query:
    return (
        db.query(Pledge)
        .options(selectinload(Pledge.category), selectinload(Pledge.user))
        .order_by(Pledge.created_at.desc(), Pledge.id.desc())
    )


def get_pledge(db: Session, pledge_id: int) -> Pledge:
    pledge = (
        db.query(Pledge)
        .options(selectinload(Pledge.category), selectinload(Pledge.user))
        .filter(Pledge.id == pledge_id)
        .populate_existing()
        .first()
    )
    if not pledge:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pledge not found")
    return pledge


def create_pledge(
    db: Session,
    payload: PledgeCreate,
    actor: User | None,
    ip_address: str | None = None,
) -> Pledge:
    member = resolve_user(db, payload.user_id)
    category = db.get(PaymentCategory, payload.category_id)
    if not category or not category.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or inactive category")
    pledge = Pledge(
        user_id=member.id,
        category_id=category.id,
        amount=payload.amount,
        fulfilled_amount=Decimal("0.00"),
        due_date=payload.due_date,
        status="pending",
        description=payload.description,
        created_by_id=actor.id if actor else None,
    )
    db.add(pledge)
    db.flush()
    log_activity(
        db,
        actor,
        "pledge_created",
        "pledge",
        pledge.id,
        {"user_id": member.id, "category": category.code, "amount": pledge.amount},
        ip_address=ip_address,
    )
    db.commit()
    return get_pledge(db, pledge.id)


def list_pledges(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 25,
    status_filter: Optional[str] = None,
    user_id: Optional[int] = None,
    category_code: Optional[str] = None,
    search: Optional[str] = None,
) -> PledgeListResponse:
    query = _base_pledge_query(db)
    if status_filter:
        query = query.filter(Pledge.status == status_filter)
    if user_id:
        query = query.filter(Pledge.user_id == user_id)
    if category_code or search:
        query = query.join(PaymentCategory, Pledge.category_id == PaymentCategory.id)
    if category_code:
        query = query.filter(PaymentCategory.code == category_code.strip().upper())
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.join(User, Pledge.user_id == User.id).filter(
            or_(
                func.lower(User.full_name).like(pattern),
                func.lower(PaymentCategory.name).like(pattern),
            )
        )

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return PledgeListResponse(
        items=[PledgeOut.from_orm(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


def update_pledge(
    db: Session,
    pledge_id: int,
    payload: PledgeUpdate,
    actor: User | None,
    ip_address: str | None = None,
) -> Pledge:
    pledge = get_pledge(db, pledge_id)
    if pledge.status == "cancelled":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cancelled pledges cannot be edited")
    changes = payload.dict(exclude_unset=True)
    if "amount" in changes and changes["amount"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="amount cannot be cleared")
    for field, value in changes.items():
        setattr(pledge, field, value)
    if "amount" in changes:
        pledge.status = resolve_pledge_status(Decimal(str(pledge.fulfilled_amount)), Decimal(str(pledge.amount)))
    log_activity(db, actor, "pledge_updated", "pledge", pledge.id, changes, ip_address=ip_address)
    db.commit()
    return get_pledge(db, pledge.id)


def cancel_pledge(
    db: Session,
    pledge_id: int,
    actor: User | None,
    ip_address: str | None = None,
) -> Pledge:
    pledge = get_pledge(db, pledge_id)
    if pledge.status == "cancelled":
        return pledge
    if pledge.status == "fulfilled":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Fulfilled pledges cannot be cancelled")
    pledge.status = "cancelled"
    log_activity(
        db,
        actor,
        "pledge_cancelled",
        "pledge",
        pledge.id,
        {"fulfilled_amount": pledge.fulfilled_amount},
        ip_address=ip_address,
    )
    db.commit()
    return get_pledge(db, pledge.id)


def _find_payment_by_key(db: Session, idempotency_key: str) -> Payment | None:
    return db.query(Payment).filter(Payment.idempotency_key == idempotency_key).first()


def _payment_pledge_id(db: Session, payment: Payment) -> int | None:
    """Pledge a payment was recorded against, taken from its activity entry."""
    candidate_pledges = select(Pledge.id).where(
        Pledge.user_id == payment.user_id,
        Pledge.category_id == payment.category_id,
    )
    entries = (
        db.query(ActivityLog)
        .filter(
            ActivityLog.action == PLEDGE_PAYMENT_RECORDED,
            ActivityLog.entity_type == "pledge",
            ActivityLog.entity_id.in_(candidate_pledges),
        )
        .all()
    )
    for entry in entries:
        if (entry.details or {}).get("payment_id") == payment.id:
            return entry.entity_id
    return None


def _replay(db: Session, pledge: Pledge, existing: Payment, payload: PledgePaymentCreate) -> Pledge:
    same_request = (
        _payment_pledge_id(db, existing) == pledge.id
        and Decimal(str(existing.amount)) == Decimal(str(payload.amount))
        and existing.payment_method == payload.payment_method
    )
    if not same_request:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Idempotency key already used for a different payment",
        )
    logger.info(
        "pledge_payment_replayed",
        extra={"pledge_id": pledge.id, "payment_id": existing.id},
    )
    db.refresh(pledge)
    return pledge


def record_pledge_payment(
    db: Session,
    pledge_id: int,
    payload: PledgePaymentCreate,
    actor: User | None,
    ip_address: str | None = None,
) -> Pledge:
    """Record a payment against a pledge and advance its progress.

    The payment insert and the pledge update share one transaction, so a
    failed write leaves neither behind. The pledge total is incremented in the
    UPDATE itself rather than from the value read here, which keeps concurrent
    payments against the same pledge from overwriting each other.

    A retried call carrying an already-used ``idempotency_key`` returns the
    pledge without recording a second payment. The key is bound to the pledge,
    amount and method of its first use; anything else is a 409.

    Cancelled pledges do not take payments (400).
    """
    pledge = get_pledge(db, pledge_id)
    if payload.idempotency_key:
        existing = _find_payment_by_key(db, payload.idempotency_key)
        if existing:
            return _replay(db, pledge, existing, payload)
    if pledge.status == "cancelled":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cancelled pledges cannot receive payments",
        )
    previous_status = pledge.status

    amount = Decimal(str(payload.amount))
    payment = Payment(
        user_id=pledge.user_id,
        category_id=pledge.category_id,
        amount=amount,
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        description=payload.description,
        payment_date=date.today(),
        recorded_by_id=actor.id if actor else None,
        idempotency_key=payload.idempotency_key,
    )
    new_fulfilled = Pledge.fulfilled_amount + amount
    try:
        db.add(payment)
        db.flush()
        result = db.execute(
            update(Pledge)
            .where(Pledge.id == pledge.id, Pledge.status != "cancelled")
            .values(
                fulfilled_amount=new_fulfilled,
                status=case((new_fulfilled >= Pledge.amount, "fulfilled"), else_="pending"),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Cancelled between the read above and this update.
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cancelled pledges cannot receive payments",
            )
        log_activity(
            db,
            actor,
            PLEDGE_PAYMENT_RECORDED,
            "pledge",
            pledge.id,
            {
                "payment_id": payment.id,
                "amount": amount,
                "payment_method": payment.payment_method,
                "reference_number": payment.reference_number,
            },
            ip_address=ip_address,
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if payload.idempotency_key:
            existing = _find_payment_by_key(db, payload.idempotency_key)
            if existing:
                return _replay(db, pledge, existing, payload)
        logger.exception("pledge_payment_failed", extra={"pledge_id": pledge.id})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=PLEDGE_PAYMENT_FAILED) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("pledge_payment_failed", extra={"pledge_id": pledge.id})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=PLEDGE_PAYMENT_FAILED) from exc

    db.refresh(pledge)
    notify_pledge_payment_recorded(pledge, payment)
    if pledge.status == "fulfilled" and previous_status != "fulfilled":
        notify_pledge_fulfilled(pledge)
    return pledge


def check_overdue_pledges(db: Session, today: date | None = None) -> list[Pledge]:
    """Report pending pledges whose due date has passed. Rows are left unchanged."""
    today = today or date.today()
    overdue = (
        db.query(Pledge)
        .options(selectinload(Pledge.category))
        .filter(
            Pledge.status == "pending",
            Pledge.due_date.isnot(None),
            Pledge.due_date < today,
        )
        .order_by(Pledge.due_date.asc())
        .all()
    )
    for pledge in overdue:
        notify_pledge_overdue(pledge)
    return overdue
