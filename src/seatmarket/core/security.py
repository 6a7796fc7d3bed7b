"""
Password hashing and session token helpers
"""
import secrets
from passlib.context import CryptContext

from seatmarket.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
