"""
SQLAlchemy models for AI skill tests
TestSnapshot → DeliveredAttempt

A snapshot is the employer-curated question bank for one test.
A delivered attempt is an independent, already-shuffled copy of the
questions one candidate saw; it never points back at the snapshot.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from database.database import Base


# ==========================================
# TEST SNAPSHOTS
# ==========================================

class TestSnapshot(Base):
    """
    One row per test_id (unique). Replaced wholesale on every save.
    question_bank: list of {id, question, options[4], correctAnswer}
    approved_question_ids: subset of bank ids eligible for delivery
    questions_to_show: NULL or <= 0 means "the whole approved pool"
    """
    __tablename__ = "test_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(String(255), unique=True, nullable=False, index=True)
    employer_id = Column(String(255), nullable=True, index=True)
    question_bank = Column(JSON, default=list, nullable=False)
    approved_question_ids = Column(JSON, default=list, nullable=False)
    questions_to_show = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TestSnapshot(test_id='{self.test_id}', bank={len(self.question_bank or [])})>"


# ==========================================
# DELIVERED ATTEMPTS
# ==========================================

class DeliveredAttempt(Base):
    """One row per attempt_id (unique). Restarting an attempt overwrites it."""
    __tablename__ = "attempt_delivered"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(String(255), unique=True, nullable=False, index=True)
    test_id = Column(String(255), nullable=False, index=True)
    delivered_questions = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<DeliveredAttempt(attempt_id='{self.attempt_id}', test_id='{self.test_id}')>"
