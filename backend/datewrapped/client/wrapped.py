"""
Wrapped generator - slide template selection and generation

States: browsing -> selecting -> requested -> in_flight -> rendered, and
back to browsing on reset. Selection, custom templates and the last slide set
are written to a WrappedSessionStore after every change, so a generator built
with the same store and session id picks up where the previous one stopped.
"""
import enum
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from datewrapped.api.schemas.wrapped import SLIDE_TYPES, GeneratedSlide, GenerateResponse, SlideTemplate
from datewrapped.client.api_client import ApiClient
from datewrapped.client.session_store import InMemoryWrappedSessionStore, WrappedSessionStore
from datewrapped.core.errors import AuthError, DatingWrappedError, GenerationError, ValidationError
from datewrapped.services.slide_templates import DEFAULT_SLIDES, TAGS, is_builtin

logger = logging.getLogger(__name__)

MAX_SELECTED = 10
TITLE_MAX = 50
DESCRIPTION_MAX = 100


class GeneratorState(str, enum.Enum):
    BROWSING = "browsing"
    SELECTING = "selecting"
    REQUESTED = "requested"
    IN_FLIGHT = "in_flight"
    RENDERED = "rendered"


def _entry_payload(entry) -> Dict[str, Any]:
    if isinstance(entry, dict):
        return dict(entry)
    return entry.model_dump(mode="json")


class WrappedGenerator:
    def __init__(
        self,
        api: ApiClient,
        store: Optional[WrappedSessionStore] = None,
        session_id: Optional[str] = None,
        max_selected: int = MAX_SELECTED,
    ):
        self.api = api
        self.store = store or InMemoryWrappedSessionStore()
        self.session_id = session_id or uuid.uuid4().hex
        self.max_selected = max_selected
        self.custom_templates: List[SlideTemplate] = []
        self.selected_ids: List[str] = []
        self.slides: List[GeneratedSlide] = []
        self.error: Optional[str] = None
        self._busy_state: Optional[GeneratorState] = None
        self._resume()

    # persistence

    def _resume(self):
        data = self.store.load(self.session_id)
        if not data:
            return
        try:
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            for key in ("custom", "slides", "selected"):
                if not isinstance(data.get(key, []), list):
                    raise TypeError(f"{key} must be a list")
            self.custom_templates = [SlideTemplate.model_validate(t) for t in data.get("custom", [])]
            self.slides = [GeneratedSlide.model_validate(s) for s in data.get("slides", [])]
            known = {t.id for t in self.templates}
            selected = [i for i in data.get("selected", []) if isinstance(i, str) and i in known]
        except (ValueError, TypeError) as e:
            logger.warning(f"Wrapped session {self.session_id} is corrupt, starting over: {e}")
            self.custom_templates, self.slides = [], []
            self.store.clear(self.session_id)
            return
        self.selected_ids = selected[: self.max_selected]

    def _persist(self):
        if not (self.custom_templates or self.selected_ids or self.slides):
            self.store.clear(self.session_id)
            return
        self.store.save(self.session_id, {
            "selected": list(self.selected_ids),
            "custom": [t.model_dump() for t in self.custom_templates],
            "slides": [s.model_dump(mode="json") for s in self.slides],
        })

    # templates

    @property
    def state(self) -> GeneratorState:
        if self._busy_state is not None:
            return self._busy_state
        if self.slides:
            return GeneratorState.RENDERED
        if self.selected_ids:
            return GeneratorState.SELECTING
        return GeneratorState.BROWSING

    @property
    def templates(self) -> List[SlideTemplate]:
        return list(DEFAULT_SLIDES) + list(self.custom_templates)

    @property
    def selected_templates(self) -> List[SlideTemplate]:
        by_id = {t.id: t for t in self.templates}
        return [by_id[i] for i in self.selected_ids if i in by_id]

    def filter_by_tag(self, tag: Optional[str]) -> List[SlideTemplate]:
        if not tag:
            return self.templates
        if tag not in TAGS:
            raise ValidationError(f"Unknown tag: {tag}")
        return [t for t in self.templates if tag in t.tags]

    def _ensure_editable(self):
        if self._busy_state is not None:
            raise ValidationError("Slides are being generated")

    def toggle(self, template_id: str) -> bool:
        """Select or deselect; returns whether the template is now selected"""
        self._ensure_editable()
        if template_id not in {t.id for t in self.templates}:
            raise ValidationError(f"Unknown slide template: {template_id}")
        if template_id in self.selected_ids:
            self.selected_ids.remove(template_id)
            self._persist()
            return False
        if len(self.selected_ids) >= self.max_selected:
            raise ValidationError(f"You can select up to {self.max_selected} slides")
        self.selected_ids.append(template_id)
        self._persist()
        return True

    def add_custom(self, title: str, description: str, type: str = "insight") -> SlideTemplate:
        self._ensure_editable()
        title = (title or "").strip()
        description = (description or "").strip()
        if not title or len(title) > TITLE_MAX:
            raise ValidationError(f"Title must be 1-{TITLE_MAX} characters", field="title")
        if not description or len(description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description must be 1-{DESCRIPTION_MAX} characters", field="description")
        if type not in SLIDE_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(SLIDE_TYPES)}", field="type")

        template = SlideTemplate(
            id=f"custom-{uuid.uuid4().hex[:12]}",
            title=title,
            description=description,
            type=type,
            tags=["custom"],
        )
        self.custom_templates.append(template)
        if len(self.selected_ids) < self.max_selected:
            self.selected_ids.append(template.id)
        self._persist()
        return template

    def delete_custom(self, template_id: str) -> None:
        self._ensure_editable()
        if is_builtin(template_id):
            raise ValidationError("Built-in slide templates cannot be deleted")
        before = len(self.custom_templates)
        self.custom_templates = [t for t in self.custom_templates if t.id != template_id]
        if len(self.custom_templates) == before:
            raise ValidationError(f"Unknown custom slide: {template_id}")
        if template_id in self.selected_ids:
            self.selected_ids.remove(template_id)
        self._persist()

    # generation

    async def generate(self, entries: Iterable) -> List[GeneratedSlide]:
        """
        Ask the server for one slide per selected template.

        Anything that goes wrong upstream surfaces as GenerationError (auth
        and input problems keep their own class); `error` holds the message
        and the selection is left intact for a manual retry.
        """
        self._ensure_editable()
        templates = self.selected_templates
        if not templates:
            self.error = "Please select at least one slide template"
            raise ValidationError(self.error)

        body = {
            "dateEntries": [_entry_payload(e) for e in entries],
            "selectedTemplates": [t.model_dump(exclude_none=True) for t in templates],
        }
        self.error = None
        self._busy_state = GeneratorState.REQUESTED
        try:
            self._busy_state = GeneratorState.IN_FLIGHT
            payload = await self.api.post("/wrapped/generate", json=body)
            slides = GenerateResponse.model_validate(payload).slides
        except (AuthError, ValidationError) as e:
            self.error = e.message
            raise
        except DatingWrappedError as e:
            self.error = e.message
            raise GenerationError(e.message)
        except ValueError as e:
            self.error = "Unexpected response from the server"
            logger.warning(f"Bad generate response: {e}")
            raise GenerationError(self.error)
        finally:
            self._busy_state = None

        self.slides = slides
        self._persist()
        return slides

    def reset(self) -> None:
        """Back to browsing: slides, selection and custom templates are dropped"""
        self._ensure_editable()
        self.slides = []
        self.selected_ids = []
        self.custom_templates = []
        self.error = None
        self.store.clear(self.session_id)

    async def share(self, is_public: bool = False) -> Dict[str, Any]:
        if not self.slides:
            raise ValidationError("Generate slides before sharing")
        return await self.api.post("/wrapped/shares", json={
            "slides": [s.model_dump(mode="json") for s in self.slides],
            "is_public": is_public,
        })
