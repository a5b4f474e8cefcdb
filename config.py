"""
Configuration for the storefront API.

Settings are read once from the environment (and an optional .env file)
into a Settings object that is handed to whatever needs it.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime configuration for the API."""

    # Database
    database_url: Optional[str] = None
    database_name: Optional[str] = None

    # Auth
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expiration_days: int = 30

    # Image storage
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    cloudinary_folder: str = "nirmal-handloom"
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10_000_000

    # Payments
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    currency: str = "INR"

    port: int = 8000
    log_level: str = "INFO"

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url and self.database_name)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME"),
            jwt_secret=os.getenv("JWT_SECRET", "change-me"),
            jwt_expiration_days=_int_env("JWT_EXPIRATION_DAYS", 30),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", "nirmal-handloom"),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", 10_000_000),
            razorpay_key_id=os.getenv("RAZORPAY_KEY_ID"),
            razorpay_key_secret=os.getenv("RAZORPAY_KEY_SECRET"),
            currency=os.getenv("PAYMENT_CURRENCY", "INR"),
            port=_int_env("PORT", 8000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
