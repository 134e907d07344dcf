"""Wrapped generator state machine tests"""
import json

import pytest
from httpx import ASGITransport

from datewrapped.api.schemas.entry import DatingEntryRecord
from datewrapped.client.api_client import ApiClient
from datewrapped.client.session import AuthSession
from datewrapped.client.session_store import FileWrappedSessionStore, InMemoryWrappedSessionStore
from datewrapped.client.wrapped import GeneratorState, WrappedGenerator
from datewrapped.core.errors import AuthError, GenerationError, StorageError, ValidationError
from datewrapped.main import app
from datewrapped.services.slide_templates import DEFAULT_SLIDES

ENTRIES = [DatingEntryRecord(person_name="Jordan", num_dates=2, total_cost=50)]


class FakeApi:
    """Answers POSTs with whatever `reply` produces"""

    def __init__(self, reply=None):
        self.reply = reply
        self.posts = []

    async def post(self, path, json=None, auth=True):
        self.posts.append((path, json))
        if isinstance(self.reply, Exception):
            raise self.reply
        if callable(self.reply):
            return self.reply(path, json)
        return self.reply


def echo_slides(path, body):
    return {"slides": [
        {"id": t["id"], "title": t["title"], "description": t["description"], "type": "stat", "data": {}}
        for t in body["selectedTemplates"]
    ]}


@pytest.fixture
def store():
    return InMemoryWrappedSessionStore()


class TestSelection:

    def test_starts_browsing(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        assert generator.state == GeneratorState.BROWSING
        assert len(generator.templates) == 20

    def test_eleventh_selection_rejected(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        first_ten = [t.id for t in DEFAULT_SLIDES[:10]]
        for template_id in first_ten:
            assert generator.toggle(template_id) is True
        assert generator.state == GeneratorState.SELECTING

        with pytest.raises(ValidationError):
            generator.toggle(DEFAULT_SLIDES[10].id)
        assert generator.selected_ids == first_ten

    def test_toggle_off_and_unknown(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        generator.toggle("date-costs")
        assert generator.toggle("date-costs") is False
        assert generator.selected_ids == []
        with pytest.raises(ValidationError):
            generator.toggle("no-such-slide")

    @pytest.mark.parametrize("title,description", [
        ("", "fine"),
        ("   ", "fine"),
        ("x" * 51, "fine"),
        ("fine", ""),
        ("fine", "y" * 101),
    ])
    def test_custom_slide_limits(self, store, title, description):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        with pytest.raises(ValidationError):
            generator.add_custom(title, description)
        assert generator.custom_templates == []

    def test_custom_slide_added_and_selected(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        template = generator.add_custom("x" * 50, "y" * 100, type="fun_fact")
        assert template.id.startswith("custom-")
        assert template.tags == ["custom"]
        assert template.id in generator.selected_ids
        assert generator.filter_by_tag("custom") == [template]

    def test_custom_not_selected_when_full(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        for t in DEFAULT_SLIDES[:10]:
            generator.toggle(t.id)
        template = generator.add_custom("Mine", "My own slide")
        assert template.id not in generator.selected_ids
        assert len(generator.selected_ids) == 10

    def test_delete_custom(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        template = generator.add_custom("Mine", "My own slide")
        generator.delete_custom(template.id)
        assert generator.custom_templates == []
        assert generator.selected_ids == []
        with pytest.raises(ValidationError):
            generator.delete_custom("total-dates")
        with pytest.raises(ValidationError):
            generator.delete_custom(template.id)

    def test_filter_by_tag(self, store):
        generator = WrappedGenerator(FakeApi(), store, "s1")
        money = generator.filter_by_tag("money")
        assert money and all("money" in t.tags for t in money)
        assert generator.filter_by_tag(None) == generator.templates
        with pytest.raises(ValidationError):
            generator.filter_by_tag("gossip")


class TestGenerate:

    @pytest.mark.asyncio
    async def test_requires_selection(self, store):
        api = FakeApi(echo_slides)
        generator = WrappedGenerator(api, store, "s1")
        with pytest.raises(ValidationError):
            await generator.generate(ENTRIES)
        assert api.posts == []

    @pytest.mark.asyncio
    async def test_renders_slides(self, store):
        api = FakeApi(echo_slides)
        generator = WrappedGenerator(api, store, "s1")
        generator.toggle("date-costs")
        custom = generator.add_custom("Mine", "My own slide")

        slides = await generator.generate(ENTRIES)

        assert [s.id for s in slides] == ["date-costs", custom.id]
        assert generator.state == GeneratorState.RENDERED
        path, body = api.posts[0]
        assert path == "/wrapped/generate"
        assert body["dateEntries"][0]["person_name"] == "Jordan"
        assert [t["id"] for t in body["selectedTemplates"]] == ["date-costs", custom.id]
        json.dumps(body)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [
        GenerationError("model down"),
        StorageError("Could not reach the server"),
    ])
    async def test_failure_returns_to_selecting(self, store, failure):
        generator = WrappedGenerator(FakeApi(failure), store, "s1")
        generator.toggle("date-costs")
        with pytest.raises(GenerationError):
            await generator.generate(ENTRIES)
        assert generator.state == GeneratorState.SELECTING
        assert generator.error == failure.message
        assert generator.selected_ids == ["date-costs"]

    @pytest.mark.asyncio
    async def test_auth_failure_keeps_its_class(self, store):
        generator = WrappedGenerator(FakeApi(AuthError("No active session")), store, "s1")
        generator.toggle("date-costs")
        with pytest.raises(AuthError):
            await generator.generate(ENTRIES)
        assert generator.state == GeneratorState.SELECTING

    @pytest.mark.asyncio
    async def test_malformed_reply_is_generation_error(self, store):
        generator = WrappedGenerator(FakeApi({"slides": "nope"}), store, "s1")
        generator.toggle("date-costs")
        with pytest.raises(GenerationError):
            await generator.generate(ENTRIES)

    @pytest.mark.asyncio
    async def test_reset(self, store):
        generator = WrappedGenerator(FakeApi(echo_slides), store, "s1")
        generator.toggle("date-costs")
        generator.add_custom("Mine", "My own slide")
        await generator.generate(ENTRIES)

        generator.reset()
        assert generator.state == GeneratorState.BROWSING
        assert generator.slides == []
        assert generator.custom_templates == []
        assert store.load("s1") is None

    @pytest.mark.asyncio
    async def test_share(self, store):
        api = FakeApi(echo_slides)
        generator = WrappedGenerator(api, store, "s1")
        with pytest.raises(ValidationError):
            await generator.share()

        generator.toggle("date-costs")
        await generator.generate(ENTRIES)
        api.reply = {"id": "share-1", "is_public": True, "created_at": "2024-01-01T00:00:00"}
        assert (await generator.share(is_public=True))["id"] == "share-1"
        path, body = api.posts[-1]
        assert path == "/wrapped/shares"
        assert body["is_public"] is True
        assert body["slides"][0]["id"] == "date-costs"


class TestResume:

    @pytest.mark.asyncio
    async def test_resumes_from_store(self, store):
        generator = WrappedGenerator(FakeApi(echo_slides), store, "s1")
        generator.toggle("ghosting-stats")
        custom = generator.add_custom("Mine", "My own slide")
        await generator.generate(ENTRIES)

        resumed = WrappedGenerator(FakeApi(), store, "s1")
        assert resumed.selected_ids == ["ghosting-stats", custom.id]
        assert [t.id for t in resumed.custom_templates] == [custom.id]
        assert [s.id for s in resumed.slides] == ["ghosting-stats", custom.id]
        assert resumed.state == GeneratorState.RENDERED

        assert WrappedGenerator(FakeApi(), store, "s2").state == GeneratorState.BROWSING

    @pytest.mark.asyncio
    async def test_file_store(self, tmp_path):
        store = FileWrappedSessionStore(tmp_path)
        generator = WrappedGenerator(FakeApi(echo_slides), store, "session-1")
        generator.toggle("date-costs")
        await generator.generate(ENTRIES)

        resumed = WrappedGenerator(FakeApi(), FileWrappedSessionStore(tmp_path), "session-1")
        assert [s.id for s in resumed.slides] == ["date-costs"]

        with pytest.raises(ValueError):
            store.load("../escape")

    def test_corrupt_session_discarded(self, store):
        store.save("s1", {"selected": ["date-costs"], "custom": [{"title": "no id"}], "slides": []})
        generator = WrappedGenerator(FakeApi(), store, "s1")
        assert generator.custom_templates == []
        assert generator.selected_ids == []
        assert store.load("s1") is None

    @pytest.mark.parametrize("snapshot", [
        {"custom": None},
        {"selected": 5},
        {"slides": {"id": "date-costs"}},
        ["date-costs"],
        "date-costs",
    ])
    def test_wrong_shape_file_session_discarded(self, tmp_path, snapshot):
        (tmp_path / "s1.json").write_text(json.dumps(snapshot), encoding="utf-8")
        store = FileWrappedSessionStore(tmp_path)
        generator = WrappedGenerator(FakeApi(), store, "s1")
        assert generator.custom_templates == []
        assert generator.selected_ids == []
        assert generator.slides == []
        assert generator.state == GeneratorState.BROWSING
        assert not (tmp_path / "s1.json").exists()


class TestGenerateOverHttp:

    @pytest.mark.asyncio
    async def test_end_to_end(self, client, fake_llm):
        fake_llm(content=json.dumps({"slides": [{"id": "date-costs", "type": "stat", "data": {"spent": 50}}]}))
        api = ApiClient("http://test", transport=ASGITransport(app=app))
        session = AuthSession(api)
        await session.sign_up("wrapped@example.com", "open-sesame-42")

        generator = WrappedGenerator(api, session_id="e2e")
        generator.toggle("date-costs")
        slides = await generator.generate(ENTRIES)
        assert slides[0].data == {"spent": 50}

        share = await generator.share()
        assert share["is_public"] is False
        await api.aclose()

    @pytest.mark.asyncio
    async def test_empty_entries_rejected_by_server(self, client, fake_llm):
        fake_llm(content=json.dumps({"slides": []}))
        api = ApiClient("http://test", transport=ASGITransport(app=app))
        session = AuthSession(api)
        await session.sign_up("wrapped@example.com", "open-sesame-42")

        generator = WrappedGenerator(api, session_id="e2e")
        generator.toggle("date-costs")
        with pytest.raises(ValidationError):
            await generator.generate([])
        assert generator.state == GeneratorState.SELECTING
        await api.aclose()
