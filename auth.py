from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from config import Settings, get_settings
from database import get_db

USERS = "user"

security = HTTPBearer(auto_error=False)


# ---------- Passwords & tokens ----------

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_token(user_id: str, role: str, settings: Settings) -> str:
    payload = {
        "user_id": str(user_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(days=settings.jwt_expiration_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Not authorized, token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")


def public_user(user: dict) -> dict:
    """User document without the password hash."""
    return {k: v for k, v in user.items() if k != "password"}


# ---------- Dependencies ----------

def _load_user(db: Database, payload: dict) -> Optional[dict]:
    try:
        uid = ObjectId(payload.get("user_id"))
    except (InvalidId, TypeError):
        return None
    return db[USERS].find_one({"_id": uid}, {"password": 0})


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    payload = decode_token(credentials.credentials, settings)
    user = _load_user(db, payload)
    if not user or not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Not authorized, user not found or inactive")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[dict]:
    if not credentials:
        return None
    try:
        payload = decode_token(credentials.credentials, settings)
    except HTTPException:
        return None
    user = _load_user(db, payload)
    return user if user and user.get("is_active", True) else None


def get_admin_user(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized as an admin")
    return user


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get("role") == "admin"
