from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from hunt_api.config import settings

# Tokens are issued by the identity service. make_access_token exists for
# tests and local tooling only.

def make_access_token(sub: str, roles: list[str] | None = None, ttl_min: int = 15) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": "access",
        "roles": list(roles or []),
        "iat": now.timestamp(),
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
