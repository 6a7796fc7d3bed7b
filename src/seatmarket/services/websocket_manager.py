"""
WebSocket connection manager for live seat updates
"""
from typing import Dict, List
from fastapi import WebSocket
import logging
import time

from seatmarket.core.metrics import websocket_connections_total, websocket_messages_sent_total

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[int, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, event_id: int):
        await websocket.accept()
        self.active_connections.setdefault(event_id, []).append(websocket)
        websocket_connections_total.labels(event_id=str(event_id)).set(len(self.active_connections[event_id]))
        logger.info(f"✅ WebSocket connected to event {event_id}")

    def disconnect(self, websocket: WebSocket, event_id: int):
        connections = self.active_connections.get(event_id, [])
        if websocket in connections:
            connections.remove(websocket)
        websocket_connections_total.labels(event_id=str(event_id)).set(len(connections))
        logger.info(f"❌ WebSocket disconnected from event {event_id}")

    async def handle_message(self, websocket: WebSocket, event_id: int, message: dict):
        """Handle incoming messages from client"""
        msg_type = message.get('type')

        if msg_type == 'ping':
            await websocket.send_json({"type": "pong", "timestamp": time.time()})
        else:
            logger.warning(f"❓ Unknown message type: {msg_type}")

    async def broadcast_to_event(self, event_id: int, message: dict):
        """Broadcast message to all connections for an event"""
        if not self.active_connections.get(event_id):
            return

        disconnected = []
        for websocket in list(self.active_connections[event_id]):
            try:
                await websocket.send_json(message)
                websocket_messages_sent_total.labels(message_type=message.get("type", "unknown")).inc()
            except Exception as e:
                logger.error(f"Error sending: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, event_id)

    async def broadcast_seat_update(self, event_id: int, seat_ids: list, status: str, order_id: int = None):
        """status is one of held, sold, released"""
        message = {
            "type": "seat_update",
            "event_id": event_id,
            "seat_ids": seat_ids,
            "status": status,
            "order_id": order_id,
            "timestamp": time.time()
        }

        await self.broadcast_to_event(event_id, message)
        logger.info(f"📡 Broadcast: {len(seat_ids)} seats → {status}")


manager = ConnectionManager()
