"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Application
    APP_NAME: str = "Seatmarket Ticketing Marketplace"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Security
    SECRET_KEY: str
    SESSION_COOKIE_NAME: str = "seatmarket_session"
    SESSION_DURATION_DAYS: int = 7
    PASSWORD_HASH_ROUNDS: int = 12

    # Checkout
    HOLD_DURATION_MINUTES: int = 15
    MAX_SEATS_PER_ORDER: int = 10

    # Background Workers
    HOLD_EXPIRY_CHECK_INTERVAL_SECONDS: int = 60
    BAN_EXPIRY_CHECK_INTERVAL_SECONDS: int = 600

    # Payment gateway (VNPay-style signed redirect)
    PAYMENT_TMN_CODE: str = "SEATMKT"
    PAYMENT_HASH_SECRET: str = "change-me"
    PAYMENT_GATEWAY_URL: str = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
    PAYMENT_RETURN_URL: str = "http://localhost:3000/checkout/return"
    PAYMENT_CURRENCY: str = "VND"
    PAYMENT_LOCALE: str = "vn"

    # Ticket QR signing
    TICKET_SIGNING_KEY: str = "change-me-too"

    # Upload signing (Cloudinary-style)
    UPLOAD_API_KEY: str = ""
    UPLOAD_API_SECRET: str = ""
    UPLOAD_CLOUD_NAME: str = ""

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CACHE_TTL: int = 300
    REDIS_SEATS_TTL: int = 30

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URL: str = "redis://localhost:6379/1"

    # Logging
    LOG_JSON: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # CORS
    CORS_ORIGINS: Union[List[str], str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    class Config:
        env_file = None  # Set below once a .env is located
        env_file_encoding = 'utf-8'
        case_sensitive = True
        extra = 'ignore'


def find_env_file():
    """Search for .env file in common locations"""
    locations = [
        Path.cwd() / '.env',
        Path(__file__).resolve().parent.parent.parent.parent / '.env',  # Project root
    ]

    for loc in locations:
        if loc.exists():
            return str(loc)

    return None


Settings.model_config['env_file'] = find_env_file()

# Global settings instance
settings = Settings()
