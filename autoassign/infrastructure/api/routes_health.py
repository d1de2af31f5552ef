"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.models import AutomationRuleModel
from autoassign.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check database connectivity and report how many rules automation can use."""
    active_rules = None
    try:
        active_rules = await session.scalar(
            select(func.count())
            .select_from(AutomationRuleModel)
            .where(AutomationRuleModel.is_active.is_(True))
        )
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "active_rules": active_rules,
        "business_timezone": settings.business_timezone,
        "service": "autoassign - service request auto-assignment engine",
    }
