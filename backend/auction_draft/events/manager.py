import logging
from collections import defaultdict
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Per-draft websocket fan-out. Payloads are hints; clients re-fetch state."""

    def __init__(self) -> None:
        self.draft_connections: Dict[str, Set[WebSocket]] = defaultdict(set)

    async def connect_draft(self, draft_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.draft_connections[draft_id].add(websocket)

    def disconnect_draft(self, draft_id: str, websocket: WebSocket) -> None:
        if draft_id in self.draft_connections:
            self.draft_connections[draft_id].discard(websocket)
            if not self.draft_connections[draft_id]:
                del self.draft_connections[draft_id]

    async def broadcast_draft(self, draft_id: str, payload: dict) -> None:
        connections = self.draft_connections.get(draft_id, set()).copy()
        for connection in connections:
            try:
                await connection.send_json({"draft_id": draft_id, **payload})
            except Exception:  # noqa: BLE001
                logger.debug("Dropping dead websocket for draft %s", draft_id)
                self.disconnect_draft(draft_id, connection)

    @property
    def watcher_count(self) -> int:
        return sum(len(conns) for conns in self.draft_connections.values())


manager = ConnectionManager()
