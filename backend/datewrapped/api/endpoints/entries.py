"""Dating entry endpoints - owner scoped CRUD"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from datewrapped.api.schemas.entry import EntryFields, DatingEntryRecord
from datewrapped.core.database import get_db
from datewrapped.core.security import get_current_user
from datewrapped.services.entry_repository import EntryRepository

router = APIRouter()


@router.get("", response_model=List[DatingEntryRecord])
async def list_entries(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's entries, newest first"""
    return await EntryRepository(db).list_entries(current_user["user_id"])


@router.get("/{entry_id}", response_model=DatingEntryRecord)
async def get_entry(
    entry_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EntryRepository(db).get_entry(current_user["user_id"], entry_id)


@router.post("", response_model=DatingEntryRecord, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: EntryFields,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Insert; the returned record carries the server assigned id"""
    return await EntryRepository(db).upsert_entry(current_user["user_id"], request)


@router.put("/{entry_id}", response_model=DatingEntryRecord)
async def update_entry(
    entry_id: str,
    request: EntryFields,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Full-field update: every mutable column is overwritten"""
    return await EntryRepository(db).upsert_entry(current_user["user_id"], request, entry_id=entry_id)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await EntryRepository(db).delete_entry(current_user["user_id"], entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
