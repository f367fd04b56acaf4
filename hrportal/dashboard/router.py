"""Dashboard router — read-only metrics for the HR dashboard widgets."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.dependencies import require_role
from hrportal.auth.models import User
from hrportal.common.constants import UserRole
from hrportal.dashboard.service import DashboardService
from hrportal.database import get_db

router = APIRouter()


# ── GET /metrics ────────────────────────────────────────────────────

@router.get("/metrics")
async def dashboard_metrics(
    user: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    """Employee and department totals, leave requests by status, head count."""
    metrics = await DashboardService.get_metrics(db)
    return {"data": metrics.model_dump(mode="json")}
