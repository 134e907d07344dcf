"""Wrapped slide generation tests"""
import json

import pytest
from httpx import AsyncClient

from datewrapped.api.schemas.wrapped import SlideTemplate
from datewrapped.core.errors import GenerationError, ValidationError
from datewrapped.services.slide_templates import DEFAULT_SLIDES, get_builtin, is_builtin
from datewrapped.services.wrapped_service import SYSTEM_PROMPT, WrappedService

ENTRIES = [
    {"person_name": "Jordan", "num_dates": 2, "total_cost": 50, "user_id": "secret", "hotness_scale": 10},
    {"person_name": "Riley", "num_dates": 1, "total_cost": 30},
]


def _templates(*ids):
    return [get_builtin(i) for i in ids]


def _answer(*slides):
    return json.dumps({"slides": list(slides)})


class TestTemplates:

    def test_twenty_builtins(self):
        assert len(DEFAULT_SLIDES) == 20
        assert len({t.id for t in DEFAULT_SLIDES}) == 20
        assert is_builtin("ghosting-stats")
        assert not is_builtin("custom-123")
        assert get_builtin("nope") is None


class TestWrappedService:

    def test_validate_rejects_empty_entries(self):
        with pytest.raises(ValidationError) as excinfo:
            WrappedService().validate_request([], _templates("total-dates"))
        assert excinfo.value.field == "dateEntries"

    def test_validate_rejects_empty_and_too_many_templates(self):
        service = WrappedService(max_templates=2)
        with pytest.raises(ValidationError):
            service.validate_request(ENTRIES, [])
        with pytest.raises(ValidationError):
            service.validate_request(ENTRIES, _templates("total-dates", "date-costs", "red-flags"))

    def test_validate_dedupes(self):
        templates = WrappedService().validate_request(ENTRIES, _templates("total-dates", "total-dates"))
        assert [t.id for t in templates] == ["total-dates"]

    def test_messages_drop_private_columns(self):
        messages = WrappedService().build_messages(ENTRIES, _templates("total-dates"))
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        payload = json.loads(messages[1]["content"])
        assert "user_id" not in payload["dateEntries"][0]
        assert "hotness_scale" not in payload["dateEntries"][0]
        assert payload["selectedTemplates"][0]["id"] == "total-dates"

    def test_parse_matches_request_order_and_fills_gaps(self):
        custom = SlideTemplate(id="custom-abc", title="Mine", description="My slide", type="fun_fact", tags=["custom"])
        content = _answer(
            {"id": "custom-abc", "data": 3},
            {"id": "unrequested", "title": "Extra"},
            {"id": "total-dates", "title": "12 dates", "type": "chart", "data": {"total": 12}},
        )
        slides = WrappedService().parse_slides(content, _templates("total-dates") + [custom])
        assert [s.id for s in slides] == ["total-dates", "custom-abc"]
        assert slides[0].title == "12 dates"
        assert slides[0].type == "insight"
        assert slides[0].data == {"total": 12}
        assert slides[1].title == "Mine"
        assert slides[1].type == "fun_fact"
        assert slides[1].data == {"value": 3}

    @pytest.mark.parametrize("content", [None, "", "not json", "[]", json.dumps({"slides": "x"})])
    def test_parse_rejects_unusable_content(self, content):
        with pytest.raises(GenerationError):
            WrappedService().parse_slides(content, _templates("total-dates"))

    def test_fewer_slides_than_requested_is_an_error(self):
        with pytest.raises(GenerationError):
            WrappedService().parse_slides(
                _answer({"id": "total-dates"}),
                _templates("total-dates", "date-costs"),
            )

    @pytest.mark.asyncio
    async def test_generate_calls_chat_completion(self, fake_llm):
        completions = fake_llm(content=_answer({"id": "date-costs", "type": "stat", "data": {"spent": 80}}))
        slides = await WrappedService(model="test-model").generate_slides(ENTRIES, _templates("date-costs"))

        assert slides[0].data == {"spent": 80}
        call = completions.calls[0]
        assert call["model"] == "test-model"
        assert call["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_upstream_failure_is_generation_error(self, fake_llm):
        fake_llm(error=RuntimeError("boom"))
        with pytest.raises(GenerationError):
            await WrappedService().generate_slides(ENTRIES, _templates("date-costs"))


class TestWrappedApi:

    @pytest.mark.asyncio
    async def test_templates(self, client: AsyncClient):
        response = await client.get("/api/wrapped/templates")
        assert response.status_code == 200
        assert len(response.json()) == 20

    @pytest.mark.asyncio
    async def test_generate(self, client: AsyncClient, auth_headers, fake_llm):
        fake_llm(content=_answer({"id": "red-flags", "type": "stat", "data": {"top": "late"}}))
        body = {
            "dateEntries": ENTRIES,
            "selectedTemplates": [get_builtin("red-flags").model_dump()],
        }
        response = await client.post("/api/wrapped/generate", json=body, headers=auth_headers)
        assert response.status_code == 200
        slides = response.json()["slides"]
        assert slides == [{
            "id": "red-flags",
            "title": "Red Flag Collection",
            "description": "Most common red flags you encountered",
            "type": "stat",
            "data": {"top": "late"},
        }]

    @pytest.mark.asyncio
    async def test_generate_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/wrapped/generate", json={"dateEntries": ENTRIES, "selectedTemplates": []})
        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"dateEntries": [], "selectedTemplates": [{"id": "total-dates", "title": "t", "description": "d"}]},
        {"selectedTemplates": [{"id": "total-dates", "title": "t", "description": "d"}]},
        {"dateEntries": "nope", "selectedTemplates": []},
        {"dateEntries": ENTRIES, "selectedTemplates": []},
        {"dateEntries": ENTRIES, "selectedTemplates": [{"title": "no id"}]},
        [1, 2, 3],
    ])
    async def test_generate_bad_input_is_400(self, client: AsyncClient, auth_headers, fake_llm, body):
        completions = fake_llm(content=_answer())
        response = await client.post("/api/wrapped/generate", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert completions.calls == []

    @pytest.mark.asyncio
    async def test_generate_malformed_json_is_400(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/wrapped/generate",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_short_answer_is_502(self, client: AsyncClient, auth_headers, fake_llm):
        fake_llm(content=_answer({"id": "red-flags"}))
        body = {
            "dateEntries": ENTRIES,
            "selectedTemplates": [t.model_dump() for t in _templates("red-flags", "green-flags")],
        }
        response = await client.post("/api/wrapped/generate", json=body, headers=auth_headers)
        assert response.status_code == 502
        assert response.json()["error"] == "generation_error"

    @pytest.mark.asyncio
    async def test_share(self, client: AsyncClient, auth_headers):
        slide = {"id": "red-flags", "title": "t", "description": "d", "type": "stat", "data": {}}
        response = await client.post(
            "/api/wrapped/shares",
            json={"slides": [slide], "is_public": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["is_public"] is True

        response = await client.post("/api/wrapped/shares", json={"slides": []}, headers=auth_headers)
        assert response.status_code == 422
