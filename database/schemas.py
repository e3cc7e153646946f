"""
Pydantic schemas for request validation
Separate from SQLAlchemy models for clean API contracts

Request bodies use camelCase keys (testName, fileBase64, ...).
The snapshot body is lenient: malformed fields fall back to
defaults instead of rejecting the write.
"""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from generation.mcq_generator import DEFAULT_QUESTION_COUNT

MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 100
# questions_to_show is stored in a 32-bit INTEGER column
MAX_STORED_INT = 2**31 - 1


def _finite_number(value: Any) -> Optional[float]:
    """The value as a number if it is a finite int/float (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _optional_id(value: Any) -> Optional[str]:
    """Accept string or numeric identifiers; anything empty becomes None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value or None
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==========================================
# MCQ GENERATION
# ==========================================

class GenerateMcqsRequest(CamelModel):
    """Body of POST /api/generate-mcqs"""
    test_name: Optional[str] = None
    description: Optional[str] = None
    role: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_base64: Optional[str] = None
    count: int = Field(
        default=DEFAULT_QUESTION_COUNT,
        description="Questions to generate; clamped to 1-100, non-numbers fall back to 50",
    )

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, value: Any) -> int:
        number = _finite_number(value)
        if number is None:
            return DEFAULT_QUESTION_COUNT
        return int(max(MIN_QUESTION_COUNT, min(MAX_QUESTION_COUNT, number)))

    @model_validator(mode="after")
    def require_fields(self):
        if not self.test_name or not self.role:
            raise ValueError("testName and role are required.")
        if not self.file_name or not self.file_base64:
            raise ValueError("fileName and fileBase64 are required.")
        return self


# ==========================================
# SNAPSHOTS
# ==========================================

class SnapshotSaveRequest(CamelModel):
    """Body of POST /api/tests/{testId}/snapshot"""
    employer_id: Optional[str] = None
    question_bank: List[Any] = Field(default_factory=list)
    approved_question_ids: List[Any] = Field(default_factory=list)
    questions_to_show: Optional[int] = None

    @field_validator("employer_id", mode="before")
    @classmethod
    def default_employer_id(cls, value: Any) -> Optional[str]:
        value = _optional_id(value)
        return value if isinstance(value, str) else None

    @field_validator("question_bank", "approved_question_ids", mode="before")
    @classmethod
    def default_list(cls, value: Any) -> list:
        return value if isinstance(value, list) else []

    @field_validator("questions_to_show", mode="before")
    @classmethod
    def default_questions_to_show(cls, value: Any) -> Optional[int]:
        number = _finite_number(value)
        if number is None:
            return None
        return int(max(-MAX_STORED_INT, min(MAX_STORED_INT, number)))


# ==========================================
# ATTEMPTS
# ==========================================

class StartAttemptRequest(CamelModel):
    """Body of POST /api/attempts/start. Presence is checked by the delivery engine."""
    test_id: Optional[str] = None
    attempt_id: Optional[str] = None

    @field_validator("test_id", "attempt_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Optional[str]:
        return _optional_id(value)
