"""
Back-office authentication.

Admin passwords are kept as HMAC-SHA256 digests keyed by SECRET_KEY, and
login hands out a signed, expiring bearer token of the form
``header.payload.signature``.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from config import SECRET_KEY, TOKEN_EXPIRY_MINUTES
from database import Database
from errors import Unauthorized, ValidationError
from schemas import Admin


def hash_password(password: str) -> str:
    return hmac.new(SECRET_KEY.encode(), password.encode(), hashlib.sha256).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    return hmac.compare_digest(hash_password(password), password_hash)


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _sign(message: str) -> str:
    return hmac.new(SECRET_KEY.encode(), message.encode(), hashlib.sha256).hexdigest()


def create_token(admin_id: str, email: str, expires_in: int = TOKEN_EXPIRY_MINUTES * 60) -> str:
    header = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload = _b64(json.dumps({"sub": admin_id, "email": email, "exp": int(time.time()) + expires_in}).encode())
    return f"{header}.{payload}.{_sign(f'{header}.{payload}')}"


def decode_token(token: str) -> Optional[dict]:
    """Verify signature and expiry; returns the payload or None."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header, payload, sig = parts
    if not hmac.compare_digest(sig, _sign(f"{header}.{payload}")):
        return None
    try:
        data = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    except (ValueError, TypeError):
        return None
    if not isinstance(data, dict) or data.get("exp", 0) < time.time():
        return None
    return data


def create_admin(db: Database, email: str, password: str) -> dict:
    if db.find_one("admin", {"email": email}):
        raise ValidationError("Admin already exists")
    return db.create_document("admin", Admin(email=email, password_hash=hash_password(password)).model_dump())


def login_admin(db: Database, email: str, password: str) -> dict:
    if not email or not password:
        raise ValidationError("Email and password are required")
    admin = db.find_one("admin", {"email": email})
    if not admin or not verify_password(password, admin["password_hash"]):
        raise Unauthorized("Invalid credentials")
    return {
        "admin": {"id": admin["id"], "email": admin["email"]},
        "token": create_token(admin["id"], admin["email"]),
    }


def admin_from_token(db: Database, token: str) -> dict:
    data = decode_token(token or "")
    admin = db.get("admin", data.get("sub", "")) if data else None
    if admin is None:
        raise Unauthorized("Unauthorized")
    return {"id": admin["id"], "email": admin["email"]}
