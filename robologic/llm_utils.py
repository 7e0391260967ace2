"""Structured LLM calls with validation-aware retries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from robologic.config import LLMSettings
from robologic.local_llm import LocalLLMError, call_ollama_chat
from robologic.logging_utils import log_error, log_llm


ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(slots=True)
class ValidationFeedback:
    """Retry guidance for the model plus the raw issues for logging."""

    llm_text: str
    issues: Sequence[str]


def _truncate_preview(value: Any, *, limit: int = 80) -> str:
    if value is None:
        return "null"
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def inject_validation_feedback(error: ValidationError) -> ValidationFeedback:
    """Turn a pydantic ValidationError into corrective instructions.

    Each issue names the field path (``layout.2``), the message and a short
    preview of the offending input, so the model can fix a bad row instead of
    regenerating a whole level blind.
    """

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        details = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            details += f" [type={err['type']}]"
        if "input" in err:
            details += f" | received={_truncate_preview(err['input'])}"
        issues.append(details)

    if not issues:
        issues.append("root: response did not match the expected schema")

    instructions = [
        "Your previous JSON response failed to validate against the required schema.",
        "Produce a corrected response that strictly matches the schema.",
        "Do not include explanations or code fences. Return only valid JSON.",
        "Issues detected:",
    ]
    instructions.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(instructions), issues=issues)


def build_provider_client(settings: LLMSettings) -> Any | None:
    """Async SDK client authenticated with ``settings.api_key``.

    Returns None without a key (or for providers mirascope configures on its
    own), in which case mirascope falls back to its default client.
    """

    if not settings.api_key:
        return None
    provider = settings.provider.lower()
    if provider == "openai":
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=settings.api_key)
    if provider == "anthropic":
        from anthropic import AsyncAnthropic

        return AsyncAnthropic(api_key=settings.api_key)
    if provider == "google":
        from google import genai

        return genai.Client(api_key=settings.api_key)
    return None


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    settings: LLMSettings,
    response_model: type[ModelT],
    feedback_builder: Callable[[ValidationError], ValidationFeedback] = inject_validation_feedback,
) -> ModelT:
    """Invoke a structured LLM call, retrying only on schema validation errors.

    Validation feedback is appended to the original prompt so the model keeps the
    full request in view. Timeouts and provider errors propagate immediately;
    after ``settings.max_attempts`` failed validations the last error is raised.
    Remote calls authenticate with ``settings.api_key``, not the environment.
    """

    system_prompt = system_prompt.strip()
    base_user_prompt = user_prompt.strip()
    feedback_payload: ValidationFeedback | None = None

    def _user_section() -> str:
        sections = [base_user_prompt]
        if feedback_payload is not None:
            sections.append(feedback_payload.llm_text)
        return "\n\n".join(section for section in sections if section)

    remote_invoke: Callable[[str], Any] | None = None
    if not settings.is_local:
        @llm.call(
            provider=settings.provider,
            model=settings.model,
            response_model=response_model,
            client=build_provider_client(settings),
        )
        async def _invoke(prompt: str) -> str:
            return prompt

        remote_invoke = _invoke

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(settings.max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_llm(
                    f"Retry {attempt_number}/{settings.max_attempts} for "
                    f"{response_model.__name__}; attempting schema correction."
                )
            user_section = _user_section()
            try:
                if settings.is_local:
                    raw_response = await asyncio.wait_for(
                        call_ollama_chat(
                            system_prompt=system_prompt,
                            user_prompt=user_section,
                            llm_model=settings.model,
                            base_url=settings.base_url,
                            timeout=settings.timeout_seconds,
                        ),
                        timeout=settings.timeout_seconds,
                    )
                    return response_model.model_validate_json(raw_response)

                if remote_invoke is None:
                    raise RuntimeError("Remote LLM invoke is not initialized.")

                prompt = "\n\n".join(part for part in (system_prompt, user_section) if part)
                return await asyncio.wait_for(
                    remote_invoke(prompt),
                    timeout=settings.timeout_seconds,
                )
            except ValidationError as exc:
                feedback_payload = feedback_builder(exc)
                log_error(
                    f"Schema validation failed for {response_model.__name__} "
                    f"(attempt {attempt_number}/{settings.max_attempts})."
                )
                for issue in feedback_payload.issues:
                    print(f"    - {issue}")
                raise
            except asyncio.TimeoutError:
                log_error(
                    f"LLM call timed out after {int(settings.timeout_seconds)}s "
                    f"for {response_model.__name__}."
                )
                raise
            except LocalLLMError as exc:
                raise RuntimeError(
                    f"Local LLM provider error ({settings.provider}): {exc}"
                ) from exc

    raise RuntimeError("LLM retry mechanism exited unexpectedly")
