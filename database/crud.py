"""
CRUD operations for skill test snapshots and delivered attempts
All database operations go through these functions

Writes are single-statement upserts keyed by test_id / attempt_id, so two
racing saves for the same key never produce duplicate rows; the last
writer wins.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from database import models

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _upsert(db: Session, model, key: str, values: dict) -> None:
    """Insert a row or fully overwrite the one sharing `key`."""
    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[key],
            set_={field: stmt.excluded[field] for field in values if field != key},
        )
        db.execute(stmt)
    else:
        existing = db.query(model).filter(getattr(model, key) == values[key]).first()
        if existing:
            for field, value in values.items():
                setattr(existing, field, value)
        else:
            db.add(model(**values))
    db.commit()


# ==========================================
# SNAPSHOT CRUD
# ==========================================

def upsert_snapshot(
    db: Session,
    test_id: str,
    employer_id: Optional[str],
    question_bank: List[Any],
    approved_question_ids: List[Any],
    questions_to_show: Optional[int],
) -> None:
    """Create or entirely replace the snapshot for a test"""
    _upsert(db, models.TestSnapshot, "test_id", {
        "test_id": test_id,
        "employer_id": employer_id,
        "question_bank": question_bank,
        "approved_question_ids": approved_question_ids,
        "questions_to_show": questions_to_show,
        "updated_at": _now(),
    })


def get_snapshot(db: Session, test_id: str) -> Optional[models.TestSnapshot]:
    """Get snapshot by test ID"""
    return db.query(models.TestSnapshot).filter(models.TestSnapshot.test_id == test_id).first()


# ==========================================
# DELIVERED ATTEMPT CRUD
# ==========================================

def upsert_delivered_attempt(
    db: Session,
    attempt_id: str,
    test_id: str,
    delivered_questions: List[dict],
) -> None:
    """Record (or re-record) the questions delivered for an attempt"""
    _upsert(db, models.DeliveredAttempt, "attempt_id", {
        "attempt_id": attempt_id,
        "test_id": test_id,
        "delivered_questions": delivered_questions,
        "created_at": _now(),
    })


def get_delivered_attempt(db: Session, attempt_id: str) -> Optional[models.DeliveredAttempt]:
    """Get delivered attempt by attempt ID"""
    return (
        db.query(models.DeliveredAttempt)
        .filter(models.DeliveredAttempt.attempt_id == attempt_id)
        .first()
    )
