"""API schemas"""
from datewrapped.api.schemas.entry import (
    PLATFORM_OPTIONS,
    OUTCOME_OPTIONS,
    RELATIONSHIP_STATUS_OPTIONS,
    STATUS_OPTIONS,
    EntryFields,
    DatingEntryRecord,
)
from datewrapped.api.schemas.wrapped import (
    SLIDE_TYPES,
    SlideTemplate,
    GeneratedSlide,
    GenerateRequest,
    GenerateResponse,
    ShareRequest,
    ShareResponse,
)

__all__ = [
    "PLATFORM_OPTIONS",
    "OUTCOME_OPTIONS",
    "RELATIONSHIP_STATUS_OPTIONS",
    "STATUS_OPTIONS",
    "EntryFields",
    "DatingEntryRecord",
    "SLIDE_TYPES",
    "SlideTemplate",
    "GeneratedSlide",
    "GenerateRequest",
    "GenerateResponse",
    "ShareRequest",
    "ShareResponse",
]
