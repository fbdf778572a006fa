"""Analytics routes — summary statistics and incident time series."""

from typing import Optional

from fastapi import APIRouter, Depends

from ...auth.roles import ROLE_ADMIN, ROLE_RESPONDER, ROLE_VIEWER, require_role
from ...dependencies import get_analytics_engine
from ...engine.analytics import AnalyticsEngine
from ..envelope import ok

router = APIRouter(prefix="/analytics", tags=["analytics"])

read_access = require_role(ROLE_VIEWER, ROLE_RESPONDER, ROLE_ADMIN)


@router.get("/summary")
async def get_summary(
    _role: str = Depends(read_access),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    return ok(await engine.get_summary())


@router.get("/timeline")
async def get_timeline(
    period: Optional[str] = "7d",
    granularity: Optional[str] = "day",
    _role: str = Depends(read_access),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Unknown period or granularity values fall back to 7d / day."""
    return ok(await engine.get_timeline(period, granularity))
