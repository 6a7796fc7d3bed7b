"""
Signed ticket QR payloads for door inspection
"""
import base64
import hmac
import hashlib
import json
import time
from typing import Dict, Any, Optional

from seatmarket.core.config import settings


class InvalidTicketQRError(Exception):
    """Raised when QR data is malformed or its signature doesn't match"""


def _canonical(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


def _signature(payload: Dict[str, Any], key: Optional[str] = None) -> str:
    key = key or settings.TICKET_SIGNING_KEY
    return hmac.new(key.encode("utf-8"), _canonical(payload), hashlib.sha256).hexdigest()


def build_ticket_payload(ticket, visitor_name: str) -> Dict[str, Any]:
    """Ticket must have seat -> row -> area and event loaded"""
    seat = ticket.seat
    row = seat.row
    area = row.area
    return {
        "ticket_id": ticket.id,
        "timestamp": int(time.time() * 1000),
        "visitor_name": visitor_name,
        "event": {"id": ticket.event_id, "name": ticket.event.name},
        "seat": {"id": seat.id, "number": seat.seat_number},
        "row": {"id": row.id, "name": row.row_name},
        "area": {"id": area.id, "name": area.name},
    }


def sign_ticket_qr(payload: Dict[str, Any]) -> str:
    """base64url(JSON {payload, signature})"""
    signed = {"payload": payload, "signature": _signature(payload)}
    return base64.urlsafe_b64encode(_canonical(signed)).decode("ascii").rstrip("=")


def verify_ticket_qr(data: str) -> Dict[str, Any]:
    """Return the payload of authentic QR data"""
    try:
        padded = data + "=" * (-len(data) % 4)
        signed = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        payload, signature = signed["payload"], signed["signature"]
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidTicketQRError(f"Malformed ticket QR data: {e}")

    if not isinstance(payload, dict) or not hmac.compare_digest(_signature(payload), str(signature)):
        raise InvalidTicketQRError("Ticket QR signature mismatch")
    return payload
