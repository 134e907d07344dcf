"""Security - JWT auth and password hashing"""
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext

from datewrapped.core.config import settings
from datewrapped.core.errors import AuthError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

security = HTTPBearer(auto_error=False)

# jti -> expiry timestamp, used when Redis is not connected
_revoked_fallback: Dict[str, float] = {}


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    to_encode.setdefault("type", "access")
    to_encode.setdefault("jti", uuid.uuid4().hex)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)
    )
    payload = {
        "sub": user_id,
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _prune_fallback(now: float) -> None:
    expired = [jti for jti, exp in _revoked_fallback.items() if exp and exp < now]
    for jti in expired:
        _revoked_fallback.pop(jti, None)


async def revoke_token_jti(jti: str, exp_ts: int | None = None) -> bool:
    """Mark a jti revoked; False when it already was, so a token is claimed only once"""
    if not jti:
        return False
    from datewrapped.core.database import get_redis_client

    now = time.time()
    redis_client = get_redis_client()
    if redis_client:
        ttl = max(1, int(exp_ts - now)) if exp_ts else None
        try:
            return bool(await redis_client.set(f"jwt:revoked:{jti}", "1", ex=ttl, nx=True))
        except Exception as e:
            logger.warning(f"Redis revoke failed, falling back to memory: {e}")

    _prune_fallback(now)
    if jti in _revoked_fallback:
        return False
    _revoked_fallback[jti] = float(exp_ts or 0)
    return True


async def is_token_revoked(jti: str) -> bool:
    if not jti:
        return False
    if jti in _revoked_fallback:
        return True
    from datewrapped.core.database import get_redis_client

    redis_client = get_redis_client()
    if not redis_client:
        return False
    try:
        return bool(await redis_client.get(f"jwt:revoked:{jti}"))
    except Exception as e:
        logger.warning(f"Redis revocation lookup failed: {e}")
        return False


def verify_token(token: str, expected_type: str = "access") -> dict:
    """Decode a JWT and check its type claim"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthError("Invalid token")
    if payload.get("type", "access") != expected_type:
        raise AuthError("Invalid token type")
    if not payload.get("sub"):
        raise AuthError("Invalid token payload")
    return payload


async def verify_refresh_token(token: str) -> dict:
    payload = verify_token(token, expected_type="refresh")
    if await is_token_revoked(payload.get("jti")):
        raise AuthError("Token revoked")
    return payload


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """Current user from the bearer token; every data route depends on this"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authenticated")
    payload = verify_token(credentials.credentials)
    return {"user_id": payload["sub"], "payload": payload}
