"""Stored assessment result and its offline sync queue."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import String, Integer, Float, ForeignKey, DateTime, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from athlete_ai.models.base import Base, TimestampMixin, utcnow


class AssessmentResult(Base, TimestampMixin):
    """
    One finished assessment session.
    
    Written once when a session stops. `synced` flips to True when the
    record has been transmitted upstream; nothing else is ever rewritten.
    """
    
    __tablename__ = "assessment_results"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    activity: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    
    # Primary measurement (whichever applies to the activity)
    reps: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    distance_cm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    xp_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    
    # JSON payloads
    _score_breakdown: Mapped[Optional[str]] = mapped_column("score_breakdown", Text, nullable=True)
    _form_scores: Mapped[Optional[str]] = mapped_column("form_scores", Text, nullable=True)
    
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True
    )
    synced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    
    queue_entries: Mapped[List["SyncQueueEntry"]] = relationship(
        "SyncQueueEntry",
        back_populates="result",
        cascade="all, delete-orphan"
    )
    
    @property
    def score_breakdown(self) -> Dict[str, Any]:
        if self._score_breakdown:
            return json.loads(self._score_breakdown)
        return {}
    
    @score_breakdown.setter
    def score_breakdown(self, value: Optional[Dict[str, Any]]):
        self._score_breakdown = json.dumps(value) if value is not None else None
    
    @property
    def form_scores(self) -> List[int]:
        if self._form_scores:
            return json.loads(self._form_scores)
        return []
    
    @form_scores.setter
    def form_scores(self, value: Optional[List[int]]):
        self._form_scores = json.dumps(value) if value is not None else None
    
    def __repr__(self) -> str:
        return (
            f"<AssessmentResult(id={self.id}, activity={self.activity}, "
            f"score={self.score}, synced={self.synced})>"
        )


class SyncQueueEntry(Base):
    """A result recorded while offline, waiting for transmission."""
    
    __tablename__ = "sync_queue"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    result_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("assessment_results.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    queued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    
    result: Mapped["AssessmentResult"] = relationship("AssessmentResult", back_populates="queue_entries")
