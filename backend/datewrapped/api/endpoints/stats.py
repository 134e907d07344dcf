"""Stats endpoint"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from datewrapped.core.database import get_db
from datewrapped.core.security import get_current_user
from datewrapped.services.entry_repository import EntryRepository
from datewrapped.services.stats import compute_stats

router = APIRouter()


@router.get("")
async def get_stats(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Aggregates recomputed from the user's full entry list"""
    entries = await EntryRepository(db).list_entries(current_user["user_id"])
    return compute_stats(entries).to_dict()
