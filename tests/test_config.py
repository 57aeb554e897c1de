"""
Unit tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from gradebook.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default thresholds and grader."""
        monkeypatch.delenv("GRADEBOOK_COMPETENT_THRESHOLD", raising=False)

        settings = Settings(_env_file=None)

        assert settings.competent_threshold == 70
        assert settings.needs_improvement_threshold == 50
        assert settings.default_grader == "Instructor"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test variables with the GRADEBOOK_ prefix are read."""
        monkeypatch.setenv("GRADEBOOK_COMPETENT_THRESHOLD", "75")
        monkeypatch.setenv("GRADEBOOK_DEFAULT_GRADER", "Moderator")

        settings = Settings(_env_file=None)

        assert settings.competent_threshold == 75
        assert settings.default_grader == "Moderator"

    def test_log_level_normalized(self) -> None:
        """Test the log level is upper-cased."""
        assert Settings(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level(self) -> None:
        """Test an unknown log level is rejected."""
        with pytest.raises(ValidationError, match="Unknown log level"):
            Settings(log_level="chatty")

    def test_thresholds_ordered(self) -> None:
        """Test the needs-improvement band cannot sit above competent."""
        with pytest.raises(ValidationError, match="cannot exceed"):
            Settings(competent_threshold=60, needs_improvement_threshold=65)
