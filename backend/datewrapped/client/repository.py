"""Entry repository client - the browser side of /api/entries"""
import logging
from typing import List, Optional

from datewrapped.api.schemas.entry import DatingEntryRecord
from datewrapped.client.api_client import ApiClient
from datewrapped.client.session import AuthSession
from datewrapped.core.errors import AuthError

logger = logging.getLogger(__name__)


class EntryRepositoryClient:
    """
    list / upsert / delete for the signed-in user's entries.

    Calls are independent of each other; nothing here is transactional across
    entries.
    """

    def __init__(self, api: ApiClient, session: AuthSession):
        self.api = api
        self.session = session

    def _check_owner(self, owner_id: Optional[str]) -> str:
        user_id = self.session.require_user()
        if owner_id is not None and str(owner_id) != user_id:
            raise AuthError("Entries belong to a different user")
        return user_id

    async def list_entries(self, owner_id: Optional[str] = None) -> List[DatingEntryRecord]:
        """Newest first"""
        self._check_owner(owner_id)
        rows = await self.api.get("/entries")
        return [DatingEntryRecord.model_validate(row) for row in rows or []]

    async def upsert_entry(self, owner_id: Optional[str], entry: DatingEntryRecord) -> DatingEntryRecord:
        """Insert when the entry has no id yet, otherwise a full-field update"""
        self._check_owner(owner_id)
        body = entry.fields_payload()
        if entry.id is None:
            saved = await self.api.post("/entries", json=body)
            logger.debug(f"Inserted entry {saved.get('id')}")
        else:
            saved = await self.api.put(f"/entries/{entry.id}", json=body)
        return DatingEntryRecord.model_validate(saved)

    async def delete_entry(self, identifier: str) -> None:
        self.session.require_user()
        await self.api.delete(f"/entries/{identifier}")
