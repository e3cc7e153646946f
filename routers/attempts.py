"""
Attempt router.
Candidate-facing start endpoint: samples approved questions from the test's
snapshot and returns them with freshly shuffled options.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database.database import get_db
from database.schemas import StartAttemptRequest
from services.attempt_delivery import start_attempt
from services.exceptions import SkillTestError

router = APIRouter(prefix="/attempts", tags=["attempts"])

log = logging.getLogger(__name__)


@router.post("/start")
def start_test_attempt(request: StartAttemptRequest, db: Session = Depends(get_db)):
    """
    Start (or restart) an attempt.

    A restart resamples and overwrites the earlier delivery for the same
    attemptId. 404 tells the client to fall back to the non-AI question set.
    """
    try:
        delivered = start_attempt(db, request.test_id, request.attempt_id)
    except SkillTestError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        log.exception(f"[ATTEMPT] start failed test={request.test_id} attempt={request.attempt_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not start attempt.")

    return {"deliveredQuestions": delivered}
