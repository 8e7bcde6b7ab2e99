from __future__ import annotations

import asyncio

import logging
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from starlette.websockets import WebSocket, WebSocketState

from factory_ops.schemas.realtime import TableChange, WsEnvelope

logger = logging.getLogger(__name__)

# Tables a client may watch; every view re-fetches when one of its tables changes
WATCHED_TABLES = frozenset(
    {
        "work_orders",
        "wo_stage_history",
        "production_batches",
        "qc_records",
        "ncrs",
        "wo_external_moves",
        "cartons",
        "dispatches",
        "notifications",
    }
)


class BroadcastManager:
    """
    Simple in-process pub-sub manager for table change notifications.

    Topics:
      - changes:{table}
    """

    def __init__(self) -> None:
        self._topics: Dict[str, Set[WebSocket]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    def _topic_lock(self, topic: str) -> asyncio.Lock:
        if topic not in self._locks:
            self._locks[topic] = asyncio.Lock()
        return self._locks[topic]

    # PUBLIC_INTERFACE
    def changes_topic(self, table: str) -> str:
        """Return the topic name carrying changes of a table."""
        return f"changes:{table}"

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def _ensure_topic(self, topic: str) -> None:
        async with self._global_lock:
            if topic not in self._topics:
                self._topics[topic] = set()

    # PUBLIC_INTERFACE
    async def connect(self, topic: str, websocket: WebSocket) -> None:
        """Add an accepted websocket to topic subscribers."""
        await self._ensure_topic(topic)
        async with self._topic_lock(topic):
            self._topics[topic].add(websocket)
            logger.info("WebSocket connected to topic=%s; subscribers=%d", topic, len(self._topics[topic]))

    # PUBLIC_INTERFACE
    async def disconnect(self, topic: str, websocket: WebSocket) -> None:
        """Remove websocket from topic subscribers."""
        if topic not in self._topics:
            return
        async with self._topic_lock(topic):
            self._topics[topic].discard(websocket)
            logger.info("WebSocket disconnected from topic=%s; subscribers=%d", topic, len(self._topics[topic]))

    # PUBLIC_INTERFACE
    async def broadcast(self, topic: str, message: dict, exclude: Optional[WebSocket] = None) -> None:
        """
        Broadcast a dict message to all subscribers in the topic.

        Sockets that are closed or fail to receive are dropped from the topic.
        """
        await self._ensure_topic(topic)
        async with self._topic_lock(topic):
            to_drop: List[WebSocket] = []
            for ws in list(self._topics[topic]):
                if exclude is not None and ws is exclude:
                    continue
                try:
                    if ws.application_state == WebSocketState.DISCONNECTED or ws.client_state == WebSocketState.DISCONNECTED:
                        to_drop.append(ws)
                        continue
                    await ws.send_json(message)
                except Exception:
                    logger.exception("Failed to send message to websocket; scheduling drop")
                    to_drop.append(ws)
            for ws in to_drop:
                self._topics[topic].discard(ws)

    # PUBLIC_INTERFACE
    async def publish_change(
        self,
        table: str,
        event: str,
        *,
        wo_id: UUID | str | None = None,
        row_id: UUID | str | None = None,
    ) -> None:
        """Publish a 'table.changed' envelope to subscribers of the table."""
        change = TableChange(
            table=table,
            event=event,
            wo_id=str(wo_id) if wo_id is not None else None,
            id=str(row_id) if row_id is not None else None,
        )
        env = WsEnvelope(type="table.changed", payload=change.model_dump())
        await self.broadcast(self.changes_topic(table), env.model_dump(mode="json"))


def parse_tables(raw: Optional[str]) -> List[str]:
    """
    Parse the comma-separated `tables` query parameter of the changes socket.

    Unknown names are ignored and an absent parameter means every watched table.
    A non-empty parameter naming no watched table yields an empty list.
    """
    if not raw:
        return sorted(WATCHED_TABLES)
    wanted: Iterable[str] = (t.strip() for t in raw.split(","))
    return sorted({t for t in wanted if t in WATCHED_TABLES})


# Singleton instance
broadcast_manager = BroadcastManager()
