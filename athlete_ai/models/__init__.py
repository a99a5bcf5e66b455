"""Database models."""

from athlete_ai.models.base import Base
from athlete_ai.models.assessment_result import AssessmentResult, SyncQueueEntry
from athlete_ai.models.athlete_profile import AthleteProfile, PRIMARY_PROFILE_ID

__all__ = [
    "Base",
    "AssessmentResult",
    "SyncQueueEntry",
    "AthleteProfile",
    "PRIMARY_PROFILE_ID",
]
