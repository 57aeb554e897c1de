"""
Configuration management for the Gradebook system.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every variable is prefixed with ``GRADEBOOK_`` (for example
    ``GRADEBOOK_COMPETENT_THRESHOLD=75``).
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADEBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Competency Configuration
    # ==========================================================================
    competent_threshold: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Percentage at or above which a grade counts as competent",
    )

    needs_improvement_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Percentage at or above which a non-competent grade needs improvement",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    default_grader: str = Field(
        default="Instructor",
        min_length=1,
        description="Value recorded as graded_by when a submission omits it",
    )

    weight_tolerance: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Allowed distance of a rubric's weight sum from 100 before warning",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: str = Field(
        default="WARNING",
        description="Log level used by the command-line interface",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and make sure logging knows it."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Ensure the competency bands are ordered."""
        if self.needs_improvement_threshold > self.competent_threshold:
            raise ValueError(
                f"needs_improvement_threshold ({self.needs_improvement_threshold}) cannot "
                f"exceed competent_threshold ({self.competent_threshold})"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
