"""Wrapped endpoints - templates, slide generation, shares"""
import json
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from datewrapped.api.schemas.wrapped import (
    GenerateRequest,
    GenerateResponse,
    ShareRequest,
    ShareResponse,
    SlideTemplate,
)
from datewrapped.core.database import get_db
from datewrapped.core.errors import StorageError, ValidationError
from datewrapped.core.security import get_current_user
from datewrapped.models.wrapped_share import WrappedShare
from datewrapped.services.slide_templates import DEFAULT_SLIDES
from datewrapped.services.wrapped_service import WrappedService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/templates", response_model=List[SlideTemplate])
async def list_templates():
    """Built-in slide templates"""
    return DEFAULT_SLIDES


@router.post("/generate", response_model=GenerateResponse)
async def generate_slides(
    request: Request,
    current_user: dict = Depends(get_current_user),
):
    """
    Generate one slide per selected template

    Body: {"dateEntries": [...], "selectedTemplates": [...]}
    400 on missing/malformed/empty input, 502 when the model fails or
    returns fewer slides than requested.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    if not isinstance(body.get("dateEntries"), list):
        raise ValidationError("Invalid date entries", field="dateEntries")
    if not isinstance(body.get("selectedTemplates"), list):
        raise ValidationError("Invalid slide templates", field="selectedTemplates")

    try:
        payload = GenerateRequest.model_validate(body)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(f"Invalid request: {loc} {first.get('msg', '')}".strip())

    slides = await WrappedService().generate_slides(payload.date_entries, payload.selected_templates)
    logger.info(f"User {current_user['user_id']} generated {len(slides)} slides")
    return GenerateResponse(slides=slides)


@router.post("/shares", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def create_share(
    request: ShareRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store a snapshot of generated slides"""
    share = WrappedShare(
        user_id=uuid.UUID(current_user["user_id"]),
        data={"slides": [s.model_dump(mode="json") for s in request.slides]},
        is_public=request.is_public,
    )
    db.add(share)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to store wrapped share: {e}")
        raise StorageError("Failed to store wrapped share")

    return ShareResponse(id=str(share.id), is_public=share.is_public, created_at=share.created_at)
