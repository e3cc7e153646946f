"""
Snapshot router.
Employers save the reviewed question bank for a test, plus which questions
are approved and how many to show per attempt. One snapshot per test.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import crud
from database.database import get_db
from database.schemas import SnapshotSaveRequest

router = APIRouter(prefix="/tests", tags=["snapshots"])

log = logging.getLogger(__name__)


@router.post("/{test_id}/snapshot")
def save_snapshot(
    test_id: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
):
    """Create or fully replace the snapshot for a test."""
    if not test_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="testId required.")
    # Anything other than a JSON object saves the defaults
    request = SnapshotSaveRequest.model_validate(payload) if isinstance(payload, dict) else SnapshotSaveRequest()

    try:
        crud.upsert_snapshot(
            db,
            test_id=test_id,
            employer_id=request.employer_id,
            question_bank=request.question_bank,
            approved_question_ids=request.approved_question_ids,
            questions_to_show=request.questions_to_show,
        )
    except Exception:
        log.exception(f"[SNAPSHOT] save failed test={test_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save snapshot.")

    log.info(
        f"[SNAPSHOT] saved test={test_id} bank={len(request.question_bank)} "
        f"approved={len(request.approved_question_ids)} to_show={request.questions_to_show}"
    )
    return {"ok": True}


@router.get("/{test_id}/snapshot")
def read_snapshot(test_id: str, db: Session = Depends(get_db)):
    """Get the snapshot for a test. 404 means it was never generated."""
    try:
        snapshot = crud.get_snapshot(db, test_id)
    except Exception:
        log.exception(f"[SNAPSHOT] read failed test={test_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not load snapshot.")

    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Snapshot not found.")

    return {
        "questionBank": snapshot.question_bank or [],
        "approvedQuestionIds": snapshot.approved_question_ids or [],
        "questionsToShow": snapshot.questions_to_show,
    }
