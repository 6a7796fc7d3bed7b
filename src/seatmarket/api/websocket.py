"""
Live seat updates

On connect the client gets a seat_status snapshot, then seat_update
messages (held, sold, released) as checkout changes seats.
"""
import json
import logging
from typing import Dict, List

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from seatmarket.core.database import AsyncSessionLocal
from seatmarket.services.event_service import EventService
from seatmarket.services.websocket_manager import manager

logger = logging.getLogger(__name__)
router = APIRouter()


async def seat_status_snapshot(event_id: int) -> Dict[str, List[int]]:
    # own session so the socket does not pin a pooled connection
    async with AsyncSessionLocal() as db:
        return await EventService.get_seat_status(db, event_id)


@router.websocket("/events/{event_id}")
async def seat_updates(websocket: WebSocket, event_id: int):
    await manager.connect(websocket, event_id)
    try:
        status = await seat_status_snapshot(event_id)
        await websocket.send_json({"type": "seat_status", "event_id": event_id, **status})

        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring non-JSON message on event {event_id}")
                continue
            if isinstance(message, dict):
                await manager.handle_message(websocket, event_id, message)
    except WebSocketDisconnect:
        logger.info(f"Client left event {event_id} seat updates")
    finally:
        manager.disconnect(websocket, event_id)
