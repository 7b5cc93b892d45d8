"""Admin activity log.

Every media mutation appends an ActivityLog row. Recording is auxiliary:
a failure here is logged and never breaks the operation being recorded.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from solarsite.models import ActivityAction, ActivityLog

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Writes and reads the activity log in its own short transactions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        action: ActivityAction,
        description: str,
        *,
        actor: str = "system",
        details: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        """Append one entry. Returns None if the write failed."""
        entry = ActivityLog(
            activity_id=uuid4(),
            action=action.value,
            description=description,
            actor=actor,
            details=details or {},
        )
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to record activity %s: %s", action.value, description)
            return None
        return entry

    async def recent(self, limit: int = 50) -> Sequence[ActivityLog]:
        """Most recent entries first."""
        async with self._session_factory() as session:
            stmt = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
            result = await session.execute(stmt)
            return result.scalars().all()
