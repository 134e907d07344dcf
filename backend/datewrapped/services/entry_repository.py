"""Entry repository - owner scoped CRUD over dating_entries"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from datewrapped.api.schemas.entry import (
    EntryFields,
    DatingEntryRecord,
    MUTABLE_FIELDS,
    HOTNESS_MAX,
)
from datewrapped.core.errors import AuthError, StorageError
from datewrapped.models.dating_entry import DatingEntry

logger = logging.getLogger(__name__)

LEGACY_HOTNESS_SCALE = 5
CURRENT_HOTNESS_SCALE = 10


class EntryNotFoundError(StorageError):
    status_code = 404
    kind = "not_found"


def _parse_uuid(value: str, error_cls, message: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise error_cls(message)


def migrate_hotness(entry: DatingEntry) -> bool:
    """
    Move a row stored on the legacy 5-point hotness scale onto the 10-point one.

    Driven by `hotness_scale`, so a row is only ever doubled once no matter
    which surface lists it first. Returns True if the row changed.
    """
    if (entry.hotness_scale or CURRENT_HOTNESS_SCALE) != LEGACY_HOTNESS_SCALE:
        return False
    if entry.hotness is not None:
        entry.hotness = max(0, min(HOTNESS_MAX, int(entry.hotness) * 2))
    entry.hotness_scale = CURRENT_HOTNESS_SCALE
    return True


class EntryRepository:
    """
    CRUD for one owner's entries.

    Every query filters by owner id; an id that belongs to somebody else
    behaves exactly like an id that does not exist.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _owner(self, owner_id: str) -> uuid.UUID:
        if not owner_id:
            raise AuthError("No active session")
        return _parse_uuid(owner_id, AuthError, "Invalid owner id")

    async def _commit(self, action: str):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}")

    async def list_entries(self, owner_id: str) -> List[DatingEntryRecord]:
        """Owner's entries, newest first. Legacy hotness rows are migrated on the way out."""
        owner = self._owner(owner_id)
        query = (
            select(DatingEntry)
            .where(DatingEntry.user_id == owner)
            .order_by(DatingEntry.created_at.desc())
        )
        try:
            result = await self.db.execute(query)
            rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list entries for {owner_id}: {e}")
            raise StorageError("Failed to load entries")

        migrated = [row for row in rows if migrate_hotness(row)]
        if migrated:
            logger.info(f"Migrated hotness scale for {len(migrated)} entries of {owner_id}")
            await self._commit("migrate hotness")

        return [DatingEntryRecord.model_validate(row) for row in rows]

    async def _get_row(self, owner: uuid.UUID, entry_id: str) -> DatingEntry:
        entry_uuid = _parse_uuid(entry_id, EntryNotFoundError, "Entry not found")
        try:
            result = await self.db.execute(
                select(DatingEntry).where(
                    DatingEntry.id == entry_uuid,
                    DatingEntry.user_id == owner,
                )
            )
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load entry {entry_id}: {e}")
            raise StorageError("Failed to load entry")
        if row is None:
            raise EntryNotFoundError("Entry not found")
        return row

    async def get_entry(self, owner_id: str, entry_id: str) -> DatingEntryRecord:
        row = await self._get_row(self._owner(owner_id), entry_id)
        if migrate_hotness(row):
            await self._commit("migrate hotness")
        return DatingEntryRecord.model_validate(row)

    async def upsert_entry(
        self,
        owner_id: str,
        fields: EntryFields,
        entry_id: Optional[str] = None,
    ) -> DatingEntryRecord:
        """
        Insert when `entry_id` is None, otherwise overwrite every mutable
        column of the existing row (full-field update, not a patch).
        """
        owner = self._owner(owner_id)
        values = {name: getattr(fields, name) for name in MUTABLE_FIELDS}

        if entry_id is None:
            row = DatingEntry(user_id=owner, hotness_scale=CURRENT_HOTNESS_SCALE, **values)
            self.db.add(row)
            action = "insert entry"
        else:
            row = await self._get_row(owner, entry_id)
            for name, value in values.items():
                setattr(row, name, value)
            row.hotness_scale = CURRENT_HOTNESS_SCALE
            action = f"update entry {entry_id}"

        await self._commit(action)
        try:
            await self.db.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to reload entry after {action}: {e}")
            raise StorageError("Failed to reload entry")
        return DatingEntryRecord.model_validate(row)

    async def delete_entry(self, owner_id: str, entry_id: str) -> None:
        """Deleting an unknown id is not an error"""
        owner = self._owner(owner_id)
        try:
            entry_uuid = uuid.UUID(str(entry_id))
        except (ValueError, TypeError):
            return
        try:
            await self.db.execute(
                delete(DatingEntry).where(
                    DatingEntry.id == entry_uuid,
                    DatingEntry.user_id == owner,
                )
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete entry {entry_id}: {e}")
            raise StorageError("Failed to delete entry")
        await self._commit(f"delete entry {entry_id}")
