"""API routers for the church administration service."""

from app.routers import (
    activity_logs,
    church_services,
    departments,
    events,
    members,
    payments,
    pledges,
    reports,
    whoami,
)  # noqa: F401
