from __future__ import annotations

import logging

from app.models.payment import Payment
from app.models.pledge import Pledge

logger = logging.getLogger(__name__)


def notify_pledge_payment_recorded(pledge: Pledge, payment: Payment) -> None:
    logger.info(
        "pledge_payment_recorded",
        extra={
            "pledge_id": pledge.id,
            "payment_id": payment.id,
            "user_id": pledge.user_id,
            "amount": str(payment.amount),
            "fulfilled_amount": str(pledge.fulfilled_amount),
            "status": pledge.status,
        },
    )


def notify_pledge_fulfilled(pledge: Pledge) -> None:
    """Placeholder hook for thanking a member once a pledge is complete."""

    logger.info(
        "pledge_fulfilled",
        extra={
            "pledge_id": pledge.id,
            "user_id": pledge.user_id,
            "category_id": pledge.category_id,
            "amount": str(pledge.amount),
            "fulfilled_amount": str(pledge.fulfilled_amount),
        },
    )


def notify_pledge_overdue(pledge: Pledge) -> None:
    logger.warning(
        "pledge_overdue",
        extra={
            "pledge_id": pledge.id,
            "user_id": pledge.user_id,
            "category": pledge.category.code if pledge.category else None,
            "due_date": pledge.due_date.isoformat() if pledge.due_date else None,
            "outstanding": str(pledge.amount - pledge.fulfilled_amount),
        },
    )
