"""
Attempt Delivery Engine

Per attempt start:
  1. keep only the snapshot questions the employer approved
  2. shuffle the approved pool and take the first N (questions_to_show)
  3. shuffle each question's 4 options and re-point correctAnswer
  4. store the delivered copy under the attempt id and return it

The delivered list never carries approvedQuestionIds, the full bank, or
anything about questions that were not chosen.
"""

import copy
import logging
import random
from typing import Any, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from database import crud
from services.exceptions import InvalidRequestError, SnapshotNotFoundError

log = logging.getLogger(__name__)

OPTIONS_PER_QUESTION = 4

_system_random = random.SystemRandom()


# ─── Helpers ───────────────────────────────────────────────────────────────────

def _id_key(value: Any) -> str:
    """String form used to compare bank ids with approved ids (5, 5.0 and "5" match)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def approved_id_set(approved_question_ids: Iterable[Any]) -> Set[str]:
    keys = (_id_key(x) for x in approved_question_ids or [] if x is not None)
    return {key for key in keys if key}


def approved_pool(question_bank: Iterable[Any], approved: Set[str]) -> List[dict]:
    """Bank entries with an id that is in the approved set, in bank order."""
    return [
        q for q in question_bank or []
        if isinstance(q, dict) and q.get("id") and _id_key(q["id"]) in approved
    ]


def questions_to_deliver(questions_to_show: Optional[int], pool_size: int) -> int:
    if isinstance(questions_to_show, int) and questions_to_show > 0:
        return min(questions_to_show, pool_size)
    return pool_size


def pick_random(pool: List[dict], count: int, rng: random.Random) -> List[dict]:
    """Fisher-Yates shuffle of the whole pool, then keep the first `count`."""
    shuffled = list(pool)
    rng.shuffle(shuffled)
    return shuffled[:count]


def shuffle_options(question: dict, rng: random.Random) -> dict:
    """
    Return a copy of `question` with its 4 options in a fresh random order.

    newOptions[i] = options[perm[i]], so the correct option lands at the
    position i where perm[i] equals the old correctAnswer. Questions that do
    not have exactly 4 options are returned as an unshuffled copy.
    """
    options = question.get("options")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return copy.deepcopy(question)

    correct = question.get("correctAnswer")
    if isinstance(correct, bool) or not isinstance(correct, (int, float)):
        correct = 0

    permutation = list(range(OPTIONS_PER_QUESTION))
    rng.shuffle(permutation)

    new_correct = next((i for i, source in enumerate(permutation) if source == correct), 0)
    return {
        **copy.deepcopy(question),
        "options": [str(options[source]) for source in permutation],
        "correctAnswer": new_correct,
    }


# ─── Main entry point ──────────────────────────────────────────────────────────

def start_attempt(
    db: Session,
    test_id: Optional[str],
    attempt_id: Optional[str],
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """
    Sample, shuffle, persist and return the questions for one attempt.

    Restarting an attempt resamples and overwrites the stored delivery.

    Raises:
        InvalidRequestError: test_id or attempt_id is empty
        SnapshotNotFoundError: No snapshot, or the snapshot bank is empty
    """
    if not test_id or not attempt_id:
        raise InvalidRequestError("testId and attemptId are required.")

    snapshot = crud.get_snapshot(db, test_id)
    if snapshot is None or not isinstance(snapshot.question_bank, list) or not snapshot.question_bank:
        raise SnapshotNotFoundError("No AI snapshot for this test. Use the non-AI question set only.")

    rng = rng or _system_random

    pool = approved_pool(snapshot.question_bank, approved_id_set(snapshot.approved_question_ids))
    count = questions_to_deliver(snapshot.questions_to_show, len(pool))
    chosen = pick_random(pool, count, rng)
    delivered = [shuffle_options(q, rng) for q in chosen]

    crud.upsert_delivered_attempt(db, attempt_id, test_id, delivered)
    log.info(
        "Attempt started attempt=%s test=%s bank=%s approved_pool=%s delivered=%s",
        attempt_id, test_id, len(snapshot.question_bank), len(pool), len(delivered),
    )
    return delivered
