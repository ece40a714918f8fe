# instabids/core/websocket_manager.py

from fastapi import WebSocket
from typing import Dict, List, Tuple
import logging

logger = logging.getLogger(__name__)

# Connection registry: project_id -> [(user_id, WebSocket)]
class ConnectionManager:
    """Tracks WebSocket listeners per project thread and pushes new messages to them."""

    def __init__(self):
        self.active_connections: Dict[str, List[Tuple[str, WebSocket]]] = {}

    async def connect(self, project_id: str, user_id: str, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.setdefault(project_id, []).append((user_id, websocket))
        logger.info(f"User {user_id} listening on project {project_id}. Total listeners: {len(self.active_connections[project_id])}")

    def disconnect(self, project_id: str, user_id: str, websocket: WebSocket):
        connections = self.active_connections.get(project_id)
        if not connections or (user_id, websocket) not in connections:
            return
        connections.remove((user_id, websocket))
        if not connections:
            del self.active_connections[project_id]
        logger.info(f"User {user_id} left project {project_id}.")

    def listener_count(self, project_id: str) -> int:
        return len(self.active_connections.get(project_id, []))

    async def broadcast_message(self, project_id: str, message_json: str):
        """Send a JSON string to every listener of the project; drop the ones that fail."""
        disconnected = []
        for connection in list(self.active_connections.get(project_id, [])):
            user_id, ws = connection
            try:
                await ws.send_text(message_json)
            except Exception as e:
                logger.warning(f"Failed to push message to {user_id} on project {project_id}: {e}")
                disconnected.append(connection)
        for user_id, ws in disconnected:
            self.disconnect(project_id, user_id, ws)


manager = ConnectionManager()
