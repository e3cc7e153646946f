"""
Shared OpenAI helper for MCQ generation.

Used by:
  - mcq_generator.py

Model: gpt-4o-mini  (override with OPENAI_MODEL env var, e.g. "gpt-4o")
"""

import os

from openai import AsyncOpenAI, OpenAIError

from services.exceptions import GenerationNotConfiguredError, GenerationServiceError

# ── Model config ───────────────────────────────────────────────────────────────
DEFAULT_MODEL = "gpt-4o-mini"

# Lazy singleton
_client: AsyncOpenAI | None = None


def is_configured() -> bool:
    return bool(os.getenv("OPENAI_API_KEY"))


def get_model() -> str:
    return os.getenv("OPENAI_MODEL") or DEFAULT_MODEL


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise GenerationNotConfiguredError()
        _client = AsyncOpenAI(api_key=api_key)
    return _client


async def call_gpt_json(
    prompt: str,
    system: str = "Return strict JSON only.",
) -> str:
    """
    Call OpenAI Chat Completions in JSON-object mode and return the raw text.

    Args:
        prompt:      User-turn message
        system:      System prompt

    Returns:
        Non-empty string content of the model response

    Raises:
        GenerationNotConfiguredError: OPENAI_API_KEY is missing
        GenerationServiceError: The API call failed or returned empty content
    """
    client = _get_client()
    try:
        response = await client.chat.completions.create(
            model=get_model(),
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        raise GenerationServiceError(f"OpenAI request failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    if not isinstance(content, str) or not content.strip():
        raise GenerationServiceError("OpenAI returned empty content.")
    return content
