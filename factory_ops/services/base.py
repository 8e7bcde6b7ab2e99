from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories.

    Services keep business rules and orchestration, delegating data access to repositories.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _notify(
        self,
        table: str,
        event: str,
        *,
        wo_id: Optional[UUID] = None,
        row_id: Optional[UUID] = None,
    ) -> None:
        """Publish a change notification after a committed write; failures are only logged."""
        try:
            await broadcast_manager.publish_change(table, event, wo_id=wo_id, row_id=row_id)
        except Exception:
            logger.exception("Failed to publish change for table=%s event=%s", table, event)
