"""Admin dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from solarsite.auth import require_admin
from solarsite.routes.deps import get_activity_logger
from solarsite.schemas import ActivityOut
from solarsite.services.activity import ActivityLogger

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/activity", response_model=list[ActivityOut])
async def list_activity(
    limit: int = Query(default=50, ge=1, le=500),
    activity: ActivityLogger = Depends(get_activity_logger),
) -> list[ActivityOut]:
    """Most recent admin actions first."""
    entries = await activity.recent(limit)
    return [ActivityOut.model_validate(entry) for entry in entries]
