"""Assessment result schemas."""

from datetime import datetime
from typing import Any, Optional, List, Dict
from pydantic import BaseModel, Field, field_validator


class SessionResultCreate(BaseModel):
    """The record a finished session hands to the result store."""
    session_id: str
    activity: str
    score: int = Field(0, ge=0, le=100)
    score_breakdown: Dict[str, Any] = Field(default_factory=dict)
    
    # Exactly the measurements that apply to the activity are set
    reps: Optional[int] = None
    duration_seconds: Optional[float] = None
    distance_cm: Optional[float] = None
    
    xp_earned: int = 0
    form_scores: List[int] = Field(default_factory=list)
    
    @field_validator("form_scores")
    @classmethod
    def validate_form_scores(cls, v: List[int]) -> List[int]:
        for score in v:
            if not 0 <= score <= 100:
                raise ValueError(f"form scores must be within 0-100, got {score}")
        return v


class AssessmentResultResponse(BaseModel):
    """Stored result as read back from the store."""
    id: int
    session_id: str
    activity: str
    score: int
    score_breakdown: Dict[str, Any]
    reps: Optional[int] = None
    duration_seconds: Optional[float] = None
    distance_cm: Optional[float] = None
    xp_earned: int
    form_scores: List[int]
    recorded_at: datetime
    synced: bool
    
    class Config:
        from_attributes = True


class AthleteProfileUpdate(BaseModel):
    """Editable athlete profile fields."""
    full_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=5, le=100)
    sport: Optional[str] = None
    region: Optional[str] = None


class AthleteProfileResponse(BaseModel):
    """Athlete profile with derived level."""
    id: str
    full_name: Optional[str] = None
    age: Optional[int] = None
    sport: Optional[str] = None
    region: Optional[str] = None
    total_xp: int
    level: int
    
    class Config:
        from_attributes = True
