"""Auth endpoints"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from datewrapped.core.database import get_db
from datewrapped.core.errors import AuthError
from datewrapped.core.security import (
    create_access_token,
    create_refresh_token,
    get_current_user,
    get_password_hash,
    revoke_token_jti,
    verify_password,
    verify_refresh_token,
)
from datewrapped.models.user import User, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Credentials(BaseModel):
    """Password sign-in / sign-up"""
    email: str = Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user_id: str


class RefreshRequest(BaseModel):
    refresh_token: str


def _issue_tokens(user_id: str) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(data={"sub": user_id}),
        refresh_token=create_refresh_token(user_id=user_id),
        user_id=user_id,
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(request: Credentials, db: AsyncSession = Depends(get_db)):
    """Create an account and sign it in"""
    user = User(
        email=request.email,
        password_hash=get_password_hash(request.password),
        last_sign_in_at=utcnow(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    logger.info(f"New user signed up: {user.id}")
    return _issue_tokens(str(user.id))


@router.post("/login", response_model=TokenResponse)
async def sign_in(request: Credentials, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(request.password, user.password_hash):
        raise AuthError("Invalid email or password")

    user.last_sign_in_at = utcnow()
    await db.commit()
    return _issue_tokens(str(user.id))


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest):
    """Rotate: the presented refresh token is revoked, a new pair is issued"""
    payload = await verify_refresh_token(request.refresh_token)
    if not await revoke_token_jti(payload.get("jti"), payload.get("exp")):
        raise AuthError("Token revoked")
    return _issue_tokens(payload["sub"])


@router.post("/logout")
async def logout(request: RefreshRequest):
    payload = await verify_refresh_token(request.refresh_token)
    await revoke_token_jti(payload.get("jti"), payload.get("exp"))
    return {"ok": True}


@router.get("/me")
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_uuid = uuid.UUID(current_user["user_id"])
    except ValueError:
        raise AuthError("Invalid token payload")
    user = await db.get(User, user_uuid)
    if user is None:
        raise AuthError("User no longer exists")
    return {"user_id": str(user.id), "email": user.email}
