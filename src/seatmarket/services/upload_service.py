"""
Signed parameters for direct browser uploads to the image host
"""
import hashlib
import time
from typing import Dict, Any

from seatmarket.core.config import settings
from seatmarket.core.errors import PermissionDeniedError
from seatmarket.models import User, UserRole

UPLOAD_ROLES = (UserRole.ORGANIZER, UserRole.ADMIN)


def upload_signature(params: Dict[str, Any], secret: str) -> str:
    """SHA-1 hex of sorted k=v pairs joined by '&', followed by the secret"""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{secret}".encode("utf-8")).hexdigest()


def sign_upload_params(user: User, params: Dict[str, Any]) -> Dict[str, Any]:
    if user.role not in UPLOAD_ROLES:
        raise PermissionDeniedError("Only organizers and admins can upload files")

    params = dict(params or {})
    params.setdefault("timestamp", int(time.time()))
    return {
        "signature": upload_signature(params, settings.UPLOAD_API_SECRET),
        "timestamp": params["timestamp"],
        "api_key": settings.UPLOAD_API_KEY,
        "cloud_name": settings.UPLOAD_CLOUD_NAME,
    }
