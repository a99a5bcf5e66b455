"""Pydantic schemas for result records handed to the store."""

from athlete_ai.schemas.result import (
    SessionResultCreate,
    AssessmentResultResponse,
    AthleteProfileUpdate,
    AthleteProfileResponse,
)

__all__ = [
    "SessionResultCreate",
    "AssessmentResultResponse",
    "AthleteProfileUpdate",
    "AthleteProfileResponse",
]
