"""
Configuration management using pydantic-settings.
All tunable forecasting constants can be overridden from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")
    dev_mode: bool = Field(default=True, description="Development mode")

    # Attendance forecaster
    attendance_min_records: int = Field(
        default=5, ge=1, description="Minimum valid records required to train"
    )
    attendance_poly_degree: int = Field(
        default=3, ge=1, le=6, description="Polynomial degree for attendance curve"
    )
    clamp_lower_factor: float = Field(
        default=0.8, ge=0.0, description="Predictions never fall below factor x training min"
    )
    clamp_upper_factor: float = Field(
        default=1.2, ge=1.0, description="Predictions never exceed factor x training max"
    )
    regular_base_confidence: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Base confidence for regular services"
    )
    special_base_confidence: float = Field(
        default=0.70, ge=0.0, le=1.0, description="Base confidence for special events"
    )
    confidence_decay_per_period: float = Field(
        default=0.05, ge=0.0, description="Confidence lost per period ahead"
    )
    confidence_floor: float = Field(
        default=0.50, ge=0.0, le=1.0, description="Lowest confidence ever reported"
    )
    trend_min_records: int = Field(
        default=4, ge=2, description="Minimum records for trend classification"
    )
    trend_change_threshold_pct: float = Field(
        default=10.0, ge=0.0, description="Half-over-half change marking growth/decline"
    )

    # DGroup growth forecaster
    default_conversion_rate: float = Field(
        default=0.25, ge=0.0, le=1.0, description="Cold-start seeker conversion rate"
    )
    default_weeks_to_convert: float = Field(
        default=4.0, gt=0.0, description="Cold-start weeks before conversion"
    )
    weekly_seeker_inflow: float = Field(
        default=0.5, ge=0.0, description="New seekers arriving per week"
    )
    growth_snapshot_weeks: int = Field(
        default=4, ge=1, description="Weeks between growth snapshots"
    )

    # Volunteer predictor
    high_reliability_rate: float = Field(
        default=0.8, ge=0.0, description="Attendance rate for high reliability"
    )
    medium_reliability_rate: float = Field(
        default=0.5, ge=0.0, description="Attendance rate for medium reliability"
    )
    preferred_day_boost: float = Field(
        default=1.2, ge=1.0, description="Probability multiplier on a volunteer's preferred day"
    )
    max_availability_probability: float = Field(
        default=0.95, ge=0.0, le=1.0, description="Availability probability cap"
    )
    likely_available_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Probability above which a volunteer is likely available"
    )

    # Annual forecaster
    annual_min_years: int = Field(
        default=3, ge=1, description="Minimum years of history for a regression fit"
    )
    annual_poly_degree: int = Field(
        default=2, ge=1, le=4, description="Polynomial degree for yearly totals"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
