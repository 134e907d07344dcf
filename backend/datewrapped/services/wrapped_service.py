"""
Wrapped slide generation

Responsibilities:
1. Validate the entries and selected templates
2. Build the prompt and call the chat completion API
3. Parse the JSON answer into one slide per requested template

A short answer (fewer slides than templates) is a GenerationError rather
than a partial result. There is no retry; the user re-invokes.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from datewrapped.api.schemas.wrapped import SLIDE_TYPES, GeneratedSlide, SlideTemplate
from datewrapped.core.config import settings
from datewrapped.core.errors import GenerationError, ValidationError
from datewrapped.core.llm import create_llm_client

logger = logging.getLogger(__name__)

client = create_llm_client()

# columns that never need to leave the server
PRIVATE_ENTRY_KEYS = ("user_id", "hotness_scale")

SYSTEM_PROMPT = """You are a data analyst and storyteller writing a "Dating Wrapped" presentation.

You receive a user's dating history (dateEntries) and a list of slide templates
(selectedTemplates). For EVERY template, analyze the entries and produce one slide
focused on the topic described by that template.

Keep the tone light and engaging while staying respectful.

Answer with a single JSON object of the form:
{
  "slides": [
    {
      "id": string (exactly the template id),
      "title": string (the template title),
      "description": string (the template description),
      "type": "stat" | "insight" | "fun_fact",
      "data": object (statistics and short insights for this slide)
    }
  ]
}

Return exactly one slide per template id. Output JSON only."""


def _entry_for_prompt(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in entry.items() if k not in PRIVATE_ENTRY_KEYS}


def _dedupe_templates(templates: List[SlideTemplate]) -> List[SlideTemplate]:
    seen = set()
    result = []
    for template in templates:
        if template.id in seen:
            continue
        seen.add(template.id)
        result.append(template)
    return result


class WrappedService:
    """Turns date entries and slide templates into generated slides"""

    def __init__(self, llm_client=None, model: Optional[str] = None, max_templates: Optional[int] = None):
        self.client = llm_client or client
        self.model = model or settings.OPENAI_MODEL
        self.max_templates = max_templates or settings.WRAPPED_MAX_TEMPLATES

    def validate_request(
        self,
        date_entries: List[Dict[str, Any]],
        templates: List[SlideTemplate],
    ) -> List[SlideTemplate]:
        if not date_entries:
            raise ValidationError("dateEntries must contain at least one entry", field="dateEntries")
        templates = _dedupe_templates(templates or [])
        if not templates:
            raise ValidationError("Select at least one slide template", field="selectedTemplates")
        if len(templates) > self.max_templates:
            raise ValidationError(
                f"At most {self.max_templates} slide templates can be selected",
                field="selectedTemplates",
            )
        return templates

    def build_messages(
        self,
        date_entries: List[Dict[str, Any]],
        templates: List[SlideTemplate],
    ) -> List[Dict[str, str]]:
        user_content = json.dumps(
            {
                "dateEntries": [_entry_for_prompt(e) for e in date_entries],
                "selectedTemplates": [t.model_dump(exclude_none=True) for t in templates],
                "request": "Generate one slide for each selected template, following the format in the system prompt.",
            },
            ensure_ascii=False,
            default=str,
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

    def parse_slides(self, content: Optional[str], templates: List[SlideTemplate]) -> List[GeneratedSlide]:
        """Match the model's slides to the requested templates, in request order"""
        if not content or not content.strip():
            raise GenerationError("No content received from the language model")
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Unparseable slide JSON: {e}")
            raise GenerationError("Language model returned invalid JSON")

        raw_slides = payload.get("slides") if isinstance(payload, dict) else None
        if not isinstance(raw_slides, list):
            raise GenerationError("Language model response has no slides list")

        by_id: Dict[str, Dict[str, Any]] = {}
        for raw in raw_slides:
            if isinstance(raw, dict) and raw.get("id") is not None:
                by_id.setdefault(str(raw["id"]), raw)

        missing = [t.id for t in templates if t.id not in by_id]
        if missing:
            logger.warning(f"Generated {len(templates) - len(missing)}/{len(templates)} slides, missing {missing}")
            raise GenerationError(
                f"Language model returned {len(templates) - len(missing)} of {len(templates)} slides"
            )

        slides = []
        for template in templates:
            raw = by_id[template.id]
            slide_type = raw.get("type") or template.type or "insight"
            if slide_type not in SLIDE_TYPES:
                slide_type = "insight"
            data = raw.get("data")
            if not isinstance(data, dict):
                data = {"value": data} if data is not None else {}
            slides.append(GeneratedSlide(
                id=template.id,
                title=str(raw.get("title") or template.title),
                description=str(raw.get("description") or template.description),
                type=slide_type,
                data=data,
            ))
        return slides

    async def generate_slides(
        self,
        date_entries: List[Dict[str, Any]],
        templates: List[SlideTemplate],
    ) -> List[GeneratedSlide]:
        templates = self.validate_request(date_entries, templates)
        messages = self.build_messages(date_entries, templates)

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=settings.LLM_TEMPERATURE,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(f"Slide generation request failed: {e}")
            raise GenerationError("Slide generation failed")

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None

        slides = self.parse_slides(content, templates)
        logger.info(f"Generated {len(slides)} slides from {len(date_entries)} entries")
        return slides
