from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.deps import require_roles
from app.core.db import get_db
from app.models.role import ELDER, PASTOR, SECRETARY, TREASURER
from app.models.user import User
from app.schemas.reports import ContributionReportResponse, PledgeSummaryResponse
from app.services import reporting as reporting_service

router = APIRouter(prefix="/reports", tags=["Reports"])

REPORT_ROLES = (TREASURER, SECRETARY, PASTOR, ELDER)


@router.get("/pledges/summary", response_model=PledgeSummaryResponse)
def pledge_summary(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*REPORT_ROLES)),
) -> PledgeSummaryResponse:
    return reporting_service.pledge_summary(db)


@router.get("/contributions", response_model=ContributionReportResponse)
def contribution_report(
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*REPORT_ROLES)),
) -> ContributionReportResponse:
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'to' must not be before 'from'")
    return reporting_service.contribution_report(db, start_date=start, end_date=end)
