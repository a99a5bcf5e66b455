"""Athlete profile model."""

from typing import Optional
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from athlete_ai.models.base import Base, TimestampMixin


PRIMARY_PROFILE_ID = "primary"


class AthleteProfile(Base, TimestampMixin):
    """The device owner's profile and cumulative XP."""
    
    __tablename__ = "athlete_profiles"
    
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=PRIMARY_PROFILE_ID)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sport: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    total_xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    
    def __repr__(self) -> str:
        return f"<AthleteProfile(id={self.id}, total_xp={self.total_xp})>"
