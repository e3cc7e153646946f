"""
MCQ Generation Engine

Builds a prompt from extracted document text plus test metadata, asks the
model for a bank of four-option multiple-choice questions, and coerces the
JSON reply into the strict question shape:

    {"id": str, "question": str, "options": [str, str, str, str], "correctAnswer": 0..3}

Malformed items are dropped, not reported; the drop count is logged.
"""

import json
import logging
import uuid
from typing import Any, List, Optional

from generation.gpt_client import call_gpt_json
from services.exceptions import GenerationServiceError

log = logging.getLogger(__name__)

MAX_SOURCE_CHARS = 50_000
OPTIONS_PER_QUESTION = 4
DEFAULT_QUESTION_COUNT = 50


# ─── Prompt ────────────────────────────────────────────────────────────────────

SYSTEM_PROMPT = "You are an expert assessment designer. Return strict JSON only."

MCQ_BANK_PROMPT = """You are an expert assessment designer.

Create exactly {count} multiple-choice questions (MCQs) for the role "{role}".
Test name: "{test_name}"
Test description: "{description}"

Requirements:
- Derive questions from the source material when possible, but also use general domain knowledge to fill gaps.
- Each question must have exactly 4 options.
- Exactly one option must be correct.
- Keep options concise and unambiguous.
- Avoid trick questions and avoid "All of the above"/"None of the above".
- Output MUST be valid JSON ONLY (no markdown), matching this schema:
{{
  "questions": [
    {{ "id": "<uuid>", "question": "<string>", "options": ["A","B","C","D"], "correctAnswer": 0 }}
  ]
}}

Source material (may be truncated):
{source_text}"""


def build_prompt(
    test_name: str,
    description: Optional[str],
    role: str,
    source_text: str,
    count: int,
) -> str:
    return MCQ_BANK_PROMPT.format(
        count=count,
        role=role,
        test_name=test_name,
        description=description or "",
        source_text=source_text[:MAX_SOURCE_CHARS],
    ).strip()


# ─── Coercion ──────────────────────────────────────────────────────────────────

def _coerce_correct_answer(value: Any) -> Optional[int]:
    """Integer index, or 0 when missing / not an integer. None means out of range."""
    if isinstance(value, bool):
        index = 0
    elif isinstance(value, int):
        index = value
    elif isinstance(value, float) and value.is_integer():
        index = int(value)
    else:
        index = 0
    if 0 <= index < OPTIONS_PER_QUESTION:
        return index
    return None


def _coerce_question(item: Any) -> Optional[dict]:
    if not isinstance(item, dict):
        return None

    question = item.get("question")
    question = question.strip() if isinstance(question, str) else ""
    if not question:
        return None

    raw_options = item.get("options")
    if not isinstance(raw_options, list):
        return None
    options = [str("" if opt is None else opt).strip() for opt in raw_options]
    if len(options) != OPTIONS_PER_QUESTION or not all(options):
        return None

    correct_answer = _coerce_correct_answer(item.get("correctAnswer"))
    if correct_answer is None:
        return None

    question_id = item.get("id")
    if not isinstance(question_id, str) or not question_id:
        question_id = str(uuid.uuid4())

    return {
        "id": question_id,
        "question": question,
        "options": options,
        "correctAnswer": correct_answer,
    }


def coerce_questions(raw: Any, count: int) -> List[dict]:
    """
    Validate and repair the model's reply, keeping at most `count` items.

    Accepts {"questions": [...]} and, leniently, a bare list.
    """
    if isinstance(raw, dict):
        items = raw.get("questions")
    else:
        items = raw
    if not isinstance(items, list):
        log.warning("MCQ reply has no questions list (got %s)", type(items).__name__)
        return []

    cleaned = []
    for item in items:
        coerced = _coerce_question(item)
        if coerced is not None:
            cleaned.append(coerced)

    dropped = len(items) - len(cleaned)
    if dropped:
        log.info("MCQ coercion dropped %s of %s items", dropped, len(items))
    return cleaned[:count]


# ─── Main entry point ──────────────────────────────────────────────────────────

async def generate_mcqs(
    test_name: str,
    description: Optional[str],
    role: str,
    source_text: str,
    count: int = DEFAULT_QUESTION_COUNT,
) -> List[dict]:
    """
    Generate up to `count` MCQs for a skill test from document text.

    Returns:
        Cleaned questions in model order; may be empty

    Raises:
        GenerationServiceError: Upstream failure or a non-JSON reply
    """
    prompt = build_prompt(test_name, description, role, source_text, count)
    log.info(f"[MCQ] generating count={count} role={role!r} source_chars={len(source_text)}")

    raw = await call_gpt_json(prompt, system=SYSTEM_PROMPT)
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GenerationServiceError(f"OpenAI returned invalid JSON: {e}") from e

    questions = coerce_questions(parsed, count)
    log.info(f"[MCQ] done requested={count} usable={len(questions)}")
    return questions
