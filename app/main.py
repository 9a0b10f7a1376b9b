import logging

import app.models  # noqa: F401
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.db import SessionLocal
from app.routers import activity_logs as activity_logs_router
from app.routers import church_services as church_services_router
from app.routers import departments as departments_router
from app.routers import events as events_router
from app.routers import members as members_router
from app.routers import payments as payments_router
from app.routers import pledges as pledges_router
from app.routers import reports as reports_router
from app.routers import whoami as whoami_router
from app.services import pledges as pledges_service

app = FastAPI(title="Church Administration API", version="0.1.0")

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone="UTC")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(whoami_router.router)
app.include_router(members_router.router)
app.include_router(payments_router.router)
app.include_router(pledges_router.router)
app.include_router(reports_router.router)
app.include_router(activity_logs_router.router)
app.include_router(church_services_router.router)
app.include_router(events_router.router)
app.include_router(departments_router.router)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


def _run_overdue_pledge_check() -> None:
    with SessionLocal() as session:
        overdue = pledges_service.check_overdue_pledges(session)
        if overdue:
            logger.info("pledge_overdue_job", extra={"overdue": len(overdue)})


@app.on_event("startup")
def start_scheduled_jobs() -> None:
    if not settings.SCHEDULER_ENABLED:
        logger.info("scheduler_disabled")
        return
    if not scheduler.running:
        scheduler.start()
    scheduler.add_job(
        _run_overdue_pledge_check,
        trigger="cron",
        hour=3,
        minute=0,
        id="pledge_overdue_check",
        replace_existing=True,
    )


@app.on_event("shutdown")
def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
