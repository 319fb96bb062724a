import json
from types import SimpleNamespace

import pytest

from nl2pg import planner
from nl2pg.config import ConfigurationError
from nl2pg.planner import PlanGenerationError, build_prompt, extract_plan, generate_postgres_plan

SCHEMA = {"users": {"fields": {"id": {"type": "integer"}, "name": {"type": "text"}}}}
PLAN = {"operation": "select", "table": "users", "fields": ["name"], "where": "id = 1"}


class FakeEndpoint:
    def __init__(self, response):
        self.response = response
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        return self.response


def fake_openai_client(text):
    completion = SimpleNamespace(choices=[SimpleNamespace(text=text)])
    chat = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])
    return SimpleNamespace(
        completions=FakeEndpoint(completion),
        chat=SimpleNamespace(completions=FakeEndpoint(chat)),
    )


def test_build_prompt_embeds_schema_and_request():
    prompt = build_prompt("who is user 1?", SCHEMA)
    assert "who is user 1?" in prompt
    assert json.dumps(SCHEMA, indent=2) in prompt


@pytest.mark.parametrize("text", [
    json.dumps(PLAN),
    "```json\n" + json.dumps(PLAN) + "\n```",
    "Here is the plan:\n" + json.dumps(PLAN) + "\nLet me know if you need more.",
])
def test_extract_plan(text):
    assert extract_plan(text) == PLAN


@pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2, 3]", "{not: valid}"])
def test_extract_plan_rejects_unusable_output(text):
    with pytest.raises(PlanGenerationError):
        extract_plan(text)


@pytest.mark.asyncio
async def test_instruct_model_uses_completions_endpoint(monkeypatch):
    client = fake_openai_client(json.dumps(PLAN))
    keys = []

    def get_client(api_key):
        keys.append(api_key)
        return client

    monkeypatch.setattr(planner, "_get_openai_client", get_client)

    plan = await generate_postgres_plan("name of user 1", "openai", "gpt-3.5-turbo-instruct", SCHEMA, "sk-test")

    assert plan == PLAN
    assert keys == ["sk-test"]
    assert client.completions.requests[0]["model"] == "gpt-3.5-turbo-instruct"
    assert "name of user 1" in client.completions.requests[0]["prompt"]
    assert client.chat.completions.requests == []


@pytest.mark.asyncio
async def test_chat_model_requests_json_object(monkeypatch):
    client = fake_openai_client(json.dumps(PLAN))
    monkeypatch.setattr(planner, "_get_openai_client", lambda api_key: client)

    plan = await generate_postgres_plan("name of user 1", "openai", "gpt-4o-mini", SCHEMA, "sk-test")

    assert plan == PLAN
    request = client.chat.completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["messages"][0]["role"] == "user"


@pytest.mark.asyncio
async def test_google_provider_uses_gemini(monkeypatch):
    calls = []

    class FakeGemini:
        async def generate_content_async(self, prompt, **kwargs):
            calls.append(prompt)
            return SimpleNamespace(text="```json\n" + json.dumps(PLAN) + "\n```")

    monkeypatch.setattr(planner, "_get_gemini_model", lambda api_key, model: FakeGemini())

    plan = await generate_postgres_plan("name of user 1", "google", "gemini-1.5-flash", SCHEMA, "g-test")

    assert plan == PLAN
    assert "name of user 1" in calls[0]


@pytest.mark.asyncio
async def test_missing_api_key_fails_before_request(monkeypatch):
    def fail(api_key):
        raise AssertionError("client should not be created")

    monkeypatch.setattr(planner, "_get_openai_client", fail)
    with pytest.raises(ConfigurationError):
        await generate_postgres_plan("anything", "openai", "gpt-4o-mini", SCHEMA, None)


@pytest.mark.asyncio
async def test_unknown_provider():
    with pytest.raises(ConfigurationError):
        await generate_postgres_plan("anything", "anthropic", "model", SCHEMA, "key")
