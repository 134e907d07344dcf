"""
Row editor model

In-memory list of entries mirrored to the table/card views. Every cell edit
is applied optimistically and persisted right away.

Per row:
- one asyncio.Lock serializes writes, so an unidentified row has at most one
  insert in flight and later edits run as updates once its id is known;
- edits queued behind an in-flight write are coalesced into a single write
  of the row's latest state;
- `baseline` is the last committed version; a failed write reverts the
  written fields to it and records the message in `errors[field]`.
"""
import asyncio
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from datewrapped.api.schemas.entry import (
    AGE_MAX,
    AGE_MIN,
    HOTNESS_MAX,
    MUTABLE_FIELDS,
    RATING_MAX,
    SELECT_OPTIONS,
    DatingEntryRecord,
    normalize_flags,
)
from datewrapped.client.repository import EntryRepositoryClient
from datewrapped.client.session import AuthSession
from datewrapped.core.errors import DatingWrappedError, ValidationError

logger = logging.getLogger(__name__)

# field -> (min, max); max None means unbounded
INT_RANGES = {
    "num_dates": (0, None),
    "rating": (0, RATING_MAX),
    "hotness": (0, HOTNESS_MAX),
    "age": (AGE_MIN, AGE_MAX),
}
FLOAT_FIELDS = {"total_cost", "avg_duration"}
FLAG_FIELDS = {"red_flags", "green_flags"}
NULLABLE_FIELDS = {"hotness", "age", "occupation", "relationship_status", "status"}
PERSON_NAME_MAX = 200


def _clamp(value, low, high):
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def coerce_field(field_name: str, value: Any) -> Any:
    """Validate one cell value, clamping numbers into their allowed range"""
    if field_name not in MUTABLE_FIELDS:
        raise ValidationError(f"Unknown or read-only field: {field_name}", field=field_name)

    if value is None or (isinstance(value, str) and not value.strip() and field_name not in ("notes", "person_name")):
        if field_name in NULLABLE_FIELDS:
            return None
        if field_name in INT_RANGES:
            return _clamp(0, *INT_RANGES[field_name])
        if field_name in FLOAT_FIELDS:
            return 0.0
        if field_name in FLAG_FIELDS:
            return []

    if field_name in INT_RANGES:
        try:
            number = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            raise ValidationError(f"{field_name} must be a number", field=field_name)
        return _clamp(number, *INT_RANGES[field_name])

    if field_name in FLOAT_FIELDS:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must be a number", field=field_name)
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{field_name} must be a finite number", field=field_name)
        return round(max(0.0, number), 2)

    if field_name in SELECT_OPTIONS:
        if value not in SELECT_OPTIONS[field_name]:
            raise ValidationError(
                f"{field_name} must be one of: {', '.join(SELECT_OPTIONS[field_name])}",
                field=field_name,
            )
        return value

    if field_name in FLAG_FIELDS:
        return normalize_flags(value)

    text = "" if value is None else str(value)
    if field_name == "person_name" and len(text) > PERSON_NAME_MAX:
        raise ValidationError(f"person_name is limited to {PERSON_NAME_MAX} characters", field=field_name)
    return text


def blank_entry(position: int) -> DatingEntryRecord:
    """Template for a new row; `position` is the 1-based number shown in its name"""
    return DatingEntryRecord(
        person_name=f"Date #{position}",
        platform="Tinder",
        num_dates=1,
        total_cost=0.0,
        avg_duration=0.0,
        rating=0,
        hotness=None,
        outcome="Ongoing",
        occupation="",
        age=None,
        relationship_status="Single",
        status="Active",
        red_flags=[],
        green_flags=[],
        notes="",
    )


@dataclass(eq=False)
class Row:
    entry: DatingEntryRecord
    baseline: DatingEntryRecord
    key: str = field(default_factory=lambda: uuid.uuid4().hex)
    errors: Dict[str, str] = field(default_factory=dict)
    dirty_fields: Set[str] = field(default_factory=set)
    version: int = 0
    written_version: int = 0
    removed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_saved(self) -> bool:
        return self.entry.id is not None

    @property
    def is_pending(self) -> bool:
        return self.lock.locked() or self.version > self.written_version

    @classmethod
    def from_entry(cls, entry: DatingEntryRecord) -> "Row":
        return cls(entry=entry.model_copy(deep=True), baseline=entry.model_copy(deep=True))


class RowEditor:
    """Ordered rows (newest first) plus their synchronisation with the repository"""

    def __init__(self, repository: EntryRepositoryClient, session: AuthSession):
        self.repository = repository
        self.session = session
        self.rows: List[Row] = []
        self.last_error: Optional[str] = None

    @property
    def entries(self) -> List[DatingEntryRecord]:
        return [row.entry for row in self.rows]

    def _row(self, index: int) -> Row:
        if index < 0 or index >= len(self.rows):
            raise ValidationError(f"No row at index {index}")
        return self.rows[index]

    def index_of(self, row: Row) -> int:
        for i, candidate in enumerate(self.rows):
            if candidate is row:
                return i
        return -1

    async def load(self) -> List[Row]:
        """Replace the rows with the server's list; errors propagate to the caller"""
        owner = self.session.require_user()
        entries = await self.repository.list_entries(owner)
        self.rows = [Row.from_entry(entry) for entry in entries]
        self.last_error = None
        return self.rows

    def add_blank(self) -> int:
        """Prepend an unsaved template row; nothing is written until it is edited"""
        self.session.require_user()
        self.rows.insert(0, Row.from_entry(blank_entry(len(self.rows) + 1)))
        return 0

    async def update_field(self, index: int, field_name: str, value: Any) -> Row:
        """
        Apply one cell edit and persist the row.

        Raises ValidationError for a bad field/value before anything changes.
        Persistence failures do not raise; they revert the cell and land in
        `row.errors` and `last_error`.
        """
        row = self._row(index)
        value = coerce_field(field_name, value)

        if (
            row.is_saved
            and field_name not in row.errors
            and getattr(row.entry, field_name) == value
        ):
            return row

        setattr(row.entry, field_name, value)
        row.dirty_fields.add(field_name)
        row.version += 1
        await self._flush(row, row.version)
        return row

    async def _flush(self, row: Row, target_version: int):
        async with row.lock:
            if row.removed or row.written_version >= target_version:
                # removed, or a later write already carried this edit
                return

            version = row.version
            fields = set(row.dirty_fields)
            row.dirty_fields.clear()
            snapshot = row.entry.model_copy(deep=True)
            was_saved = snapshot.id is not None

            try:
                owner = self.session.require_user()
                saved = await self.repository.upsert_entry(owner, snapshot)
            except DatingWrappedError as e:
                row.written_version = version
                self._revert(row, snapshot, fields, e.message)
                self.last_error = e.message
                logger.warning(f"Saving {sorted(fields)} failed: {e.message}")
                return

            row.written_version = version
            self._commit(row, snapshot, saved, fields)
            if not was_saved:
                logger.debug(f"Row {row.key} persisted as {saved.id}")

    def _commit(self, row: Row, snapshot: DatingEntryRecord, saved: DatingEntryRecord, fields: Set[str]):
        # edits made while the write was in flight stay on top of the saved record
        newer = {
            name: getattr(row.entry, name)
            for name in MUTABLE_FIELDS
            if getattr(row.entry, name) != getattr(snapshot, name)
        }
        row.baseline = saved.model_copy(deep=True)
        row.entry = saved.model_copy(update=newer, deep=True)
        for name in fields:
            row.errors.pop(name, None)

    def _revert(self, row: Row, snapshot: DatingEntryRecord, fields: Set[str], message: str):
        for name in fields:
            if getattr(row.entry, name) == getattr(snapshot, name):
                setattr(row.entry, name, getattr(row.baseline, name))
            row.errors[name] = message

    async def remove_at(self, index: int) -> bool:
        """
        Drop the row; delete it server side only if it has (or is about to
        get) an id. Returns False if the delete call failed.
        """
        row = self._row(index)
        del self.rows[index]
        row.removed = True

        if not row.is_saved and not row.lock.locked():
            return True

        # wait for an in-flight insert so the created record does not leak
        async with row.lock:
            entry_id = row.entry.id

        if entry_id is None:
            return True
        try:
            await self.repository.delete_entry(entry_id)
        except DatingWrappedError as e:
            self.last_error = e.message
            logger.warning(f"Deleting entry {entry_id} failed: {e.message}")
            return False
        return True
