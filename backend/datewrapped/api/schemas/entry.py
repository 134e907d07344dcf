"""Dating entry schemas - shared by the API and the client"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


PLATFORM_OPTIONS = (
    "Tinder",
    "Hinge",
    "Bumble",
    "OkCupid",
    "Coffee Meets Bagel",
    "Match",
    "IRL",
    "Through Friends",
    "Work",
    "School",
    "Other",
)

OUTCOME_OPTIONS = (
    "Ghosted",
    "Relationship",
    "Ongoing",
    "Friends",
    "One-time",
    "Blocked",
    "Mutual End",
    "Other",
)

RELATIONSHIP_STATUS_OPTIONS = (
    "Single",
    "Married",
    "Divorced",
    "Separated",
    "Complicated",
    "Unknown",
)

STATUS_OPTIONS = ("Active", "Inactive", "Archived")

RATING_MAX = 5
HOTNESS_MAX = 10
AGE_MIN = 18
AGE_MAX = 100


def normalize_flags(flags) -> List[str]:
    """Strip, drop empty tags and de-duplicate keeping first occurrence"""
    if flags is None:
        return []
    if isinstance(flags, str):
        flags = flags.split(",")
    seen = set()
    result = []
    for flag in flags:
        tag = str(flag).strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        result.append(tag)
    return result


def _check_option(value, options, name):
    if value is None:
        return value
    if value not in options:
        raise ValueError(f"{name} must be one of: {', '.join(options)}")
    return value


class EntryFields(BaseModel):
    """Every user editable column of a dating entry"""

    person_name: str = Field(default="", max_length=200)
    platform: str = "Tinder"
    num_dates: int = Field(default=0, ge=0)
    total_cost: float = Field(default=0.0, ge=0)
    avg_duration: float = Field(default=0.0, ge=0, description="Average date length in hours")
    rating: int = Field(default=0, ge=0, le=RATING_MAX)
    hotness: Optional[int] = Field(default=None, ge=0, le=HOTNESS_MAX)
    outcome: str = "Ongoing"
    occupation: Optional[str] = Field(default=None, max_length=200)
    age: Optional[int] = Field(default=None, ge=AGE_MIN, le=AGE_MAX)
    relationship_status: Optional[str] = None
    status: Optional[str] = None
    red_flags: List[str] = Field(default_factory=list)
    green_flags: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        return _check_option(v, PLATFORM_OPTIONS, "platform")

    @field_validator("outcome")
    @classmethod
    def validate_outcome(cls, v: str) -> str:
        return _check_option(v, OUTCOME_OPTIONS, "outcome")

    @field_validator("relationship_status")
    @classmethod
    def validate_relationship_status(cls, v: Optional[str]) -> Optional[str]:
        return _check_option(v, RELATIONSHIP_STATUS_OPTIONS, "relationship_status")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _check_option(v, STATUS_OPTIONS, "status")

    @field_validator("red_flags", "green_flags", mode="before")
    @classmethod
    def validate_flags(cls, v):
        return normalize_flags(v)

    @field_validator("notes", mode="before")
    @classmethod
    def none_notes_to_empty(cls, v):
        return "" if v is None else v


MUTABLE_FIELDS = tuple(EntryFields.model_fields.keys())

SELECT_OPTIONS = {
    "platform": PLATFORM_OPTIONS,
    "outcome": OUTCOME_OPTIONS,
    "relationship_status": RELATIONSHIP_STATUS_OPTIONS,
    "status": STATUS_OPTIONS,
}


class DatingEntryRecord(EntryFields):
    """An entry as stored; `id` is None until the first save"""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v):
        return None if v is None else str(v)

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def fields_payload(self) -> dict:
        """JSON-ready dict of the mutable columns (full-field write body)"""
        return self.model_dump(mode="json", include=set(MUTABLE_FIELDS))
