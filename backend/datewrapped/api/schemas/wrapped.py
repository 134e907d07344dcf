"""Wrapped slide schemas"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


SLIDE_TYPES = ("stat", "insight", "fun_fact")


class SlideTemplate(BaseModel):
    """A slide topic the user can pick, built in or custom"""

    id: str = Field(min_length=1)
    title: str
    description: str
    tags: List[str] = Field(default_factory=list)
    type: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return self.id.startswith("custom-")


class GeneratedSlide(BaseModel):
    """One slide as returned by the generator"""

    id: str
    title: str
    description: str
    type: str = "insight"
    data: Dict[str, Any] = Field(default_factory=dict)


class GenerateRequest(BaseModel):
    """Body of POST /api/wrapped/generate"""

    model_config = ConfigDict(populate_by_name=True)

    date_entries: List[Dict[str, Any]] = Field(alias="dateEntries")
    selected_templates: List[SlideTemplate] = Field(alias="selectedTemplates")


class GenerateResponse(BaseModel):
    slides: List[GeneratedSlide]


class ShareRequest(BaseModel):
    slides: List[GeneratedSlide] = Field(min_length=1)
    is_public: bool = False


class ShareResponse(BaseModel):
    id: str
    is_public: bool
    created_at: datetime
