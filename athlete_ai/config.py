"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Application
    app_name: str = "Athlete AI Assessment"
    debug: bool = False
    log_level: str = "INFO"
    
    # Persistence (results are queued locally until synced)
    database_url: str = "sqlite:///./athlete_ai.db"
    
    # Activity selection
    default_activity: str = "squats"  # Fallback for unknown selectors
    
    # Ranking
    total_athletes: int = 150000
    
    # Validity guard
    brightness_sample_size: int = 50  # Edge of the square luma sample window (pixels)
    alert_repeat_seconds: float = 2.0  # Min spacing between audible alerts
    
    # Reaction challenge: stimulus appears after min + U(0, 1) * extra milliseconds
    reaction_min_delay_ms: float = 1500.0
    reaction_max_extra_delay_ms: float = 3000.0
    
    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
