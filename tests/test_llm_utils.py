"""Unit tests for the LLM retry helper."""

import pytest
from pydantic import BaseModel, ValidationError

from robologic.config import LLMSettings
from robologic.llm_utils import build_provider_client, call_llm_with_retries, inject_validation_feedback
from robologic.schemas import GeneratedLevel


class DummyModel(BaseModel):
    content: str


REMOTE = LLMSettings(provider="openai", model="gpt-5-nano", api_key="test-key")


def _decorator_for(fake_caller, expected_model=None):
    def fake_decorator(*, provider, model, response_model, client=None):
        if expected_model is not None:
            assert response_model is expected_model

        def wrapper(fn):
            async def inner(prompt: str):
                return await fake_caller(prompt)

            return inner

        return wrapper

    return fake_decorator


@pytest.mark.asyncio
async def test_call_llm_with_retries_success(monkeypatch):
    recorded_prompts: list[str] = []

    async def fake_caller(prompt: str) -> DummyModel:
        recorded_prompts.append(prompt)
        return DummyModel(content="ok")

    monkeypatch.setattr("robologic.llm_utils.llm.call", _decorator_for(fake_caller, DummyModel))

    result = await call_llm_with_retries(
        system_prompt="System context",
        user_prompt="Build a level",
        settings=REMOTE,
        response_model=DummyModel,
    )

    assert result.content == "ok"
    assert recorded_prompts == ["System context\n\nBuild a level"]


@pytest.mark.asyncio
async def test_call_llm_with_retries_injects_feedback(monkeypatch):
    attempts: list[str] = []

    try:
        DummyModel.model_validate({})
    except ValidationError as exc:
        validation_error = exc

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        if len(attempts) == 1:
            raise validation_error
        return DummyModel(content="fixed")

    monkeypatch.setattr("robologic.llm_utils.llm.call", _decorator_for(fake_caller))

    result = await call_llm_with_retries(
        system_prompt="System",
        user_prompt="User",
        settings=REMOTE,
        response_model=DummyModel,
    )

    assert result.content == "fixed"
    assert len(attempts) == 2
    assert "Your previous JSON response failed to validate against the required schema." in attempts[1]
    assert "- content: Field required" in attempts[1]


@pytest.mark.asyncio
async def test_call_llm_with_retries_gives_up_after_max_attempts(monkeypatch):
    attempts: list[str] = []

    try:
        DummyModel.model_validate({})
    except ValidationError as exc:
        validation_error = exc

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        raise validation_error

    monkeypatch.setattr("robologic.llm_utils.llm.call", _decorator_for(fake_caller))

    with pytest.raises(ValidationError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            settings=REMOTE.model_copy(update={"max_attempts": 2}),
            response_model=DummyModel,
        )
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_call_llm_with_retries_local_provider(monkeypatch):
    captured: dict[str, object] = {}

    async def fake_local_call(*, system_prompt, user_prompt, llm_model, base_url=None, timeout=120.0):
        captured.update(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            llm_model=llm_model,
            base_url=base_url,
        )
        return '{"content":"ok"}'

    def fail_decorator(*args, **kwargs):
        raise AssertionError("remote provider path should not be used for ollama")

    monkeypatch.setattr("robologic.llm_utils.call_ollama_chat", fake_local_call)
    monkeypatch.setattr("robologic.llm_utils.llm.call", fail_decorator)

    result = await call_llm_with_retries(
        system_prompt="System context",
        user_prompt="User payload",
        settings=LLMSettings(provider="ollama", model="llama3.1", base_url="http://gpu-box:11434"),
        response_model=DummyModel,
    )

    assert result.content == "ok"
    assert captured["system_prompt"] == "System context"
    assert captured["user_prompt"] == "User payload"
    assert captured["llm_model"] == "llama3.1"
    assert captured["base_url"] == "http://gpu-box:11434"


@pytest.mark.asyncio
async def test_remote_call_uses_injected_api_key(monkeypatch):
    received: dict[str, object] = {}

    def recording_decorator(*, provider, model, response_model, client=None):
        received["client"] = client

        def wrapper(fn):
            async def inner(prompt: str):
                return DummyModel(content="ok")

            return inner

        return wrapper

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("robologic.llm_utils.llm.call", recording_decorator)

    await call_llm_with_retries(
        system_prompt="System",
        user_prompt="User",
        settings=LLMSettings(provider="openai", model="gpt-5-nano", api_key="sk-injected"),
        response_model=DummyModel,
    )

    assert received["client"] is not None
    assert received["client"].api_key == "sk-injected"


def test_provider_client_requires_key():
    assert build_provider_client(LLMSettings(provider="openai", api_key=None)) is None
    assert build_provider_client(LLMSettings(provider="ollama", model="llama3.1")) is None
    client = build_provider_client(LLMSettings(provider="anthropic", api_key="ak-test"))
    assert client.api_key == "ak-test"


def test_feedback_names_bad_layout_rows():
    with pytest.raises(ValidationError) as excinfo:
        GeneratedLevel.model_validate(
            {"layout": ["S..?G", ".....", ".....", ".....", "....."], "story": "", "par": 4}
        )

    feedback = inject_validation_feedback(excinfo.value)

    assert any(issue.startswith("layout:") for issue in feedback.issues)
    assert "row 0 contains unknown characters" in feedback.llm_text
