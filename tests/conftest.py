"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from gradebook.config import Settings
from gradebook.grading.aggregator import letter_grade_for
from gradebook.models import (
    CriteriaGrade,
    Exercise,
    Grade,
    Rubric,
    RubricCriterion,
    RubricLevel,
)


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with explicit values."""
    return Settings(
        competent_threshold=70,
        needs_improvement_threshold=50,
        default_grader="Instructor",
        weight_tolerance=0,
        log_level="WARNING",
    )


# ==============================================================================
# Sample Rubric Fixtures
# ==============================================================================


@pytest.fixture
def sample_levels() -> tuple[RubricLevel, ...]:
    """The common four-level scale."""
    return (
        RubricLevel(id="excellent", name="Excellent", points=4),
        RubricLevel(id="good", name="Good", points=3),
        RubricLevel(id="satisfactory", name="Satisfactory", points=2),
        RubricLevel(id="needs-improvement", name="Needs Improvement", points=1),
    )


@pytest.fixture
def sample_rubric(sample_levels: tuple[RubricLevel, ...]) -> Rubric:
    """Create a sample rubric with four weighted criteria."""
    return Rubric(
        id="rubric-web-app",
        name="Web App Project",
        description="Rubric for the end-of-module web application",
        criteria=(
            RubricCriterion(
                id="code-quality",
                name="Code Quality",
                description="Readable, well-structured code",
                weight=40,
            ),
            RubricCriterion(
                id="functionality",
                name="Functionality",
                description="All required features work",
                weight=30,
            ),
            RubricCriterion(
                id="documentation",
                name="Documentation",
                description="README and inline comments",
                weight=20,
            ),
            RubricCriterion(
                id="testing",
                name="Testing",
                description="Unit tests cover edge cases",
                weight=10,
            ),
        ),
        levels=sample_levels,
    )


@pytest.fixture
def sample_exercise(sample_rubric: Rubric) -> Exercise:
    """Exercise graded out of 16 points with the sample rubric."""
    return Exercise(
        id="exercise-1",
        title="Build a todo app",
        max_points=16,
        rubric=sample_rubric,
    )


@pytest.fixture
def sample_rubric_text() -> str:
    """Sample assessment rubric in lesson-plan text format."""
    return """# Web App Project

- **Code Quality (40%):** Clean, readable code
- **Functionality:** All features work as described (30%)
- **Documentation (20%):** README and
  inline comments
- **Testing (10%):** Unit tests cover edge cases
"""


# ==============================================================================
# Submission Fixtures
# ==============================================================================


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Grading form payload scoring 14 of 16 points."""
    return {
        "studentId": "student-1",
        "lessonId": "lesson-1",
        "exerciseId": "exercise-1",
        "criteriaGrades": [
            {"criteriaId": "code-quality", "levelId": "excellent", "points": 4, "comments": ""},
            {"criteriaId": "functionality", "levelId": "good", "points": 3, "comments": "Edit is buggy"},
            {"criteriaId": "documentation", "levelId": "excellent", "points": 4},
            {"criteriaId": "testing", "levelId": "good", "points": 3},
        ],
        "maxPoints": 16,
        "feedback": "Solid work overall.",
    }


# ==============================================================================
# Grade Fixtures
# ==============================================================================


@pytest.fixture
def graded_at() -> datetime:
    """Base timestamp for grade fixtures."""
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_grade(graded_at: datetime) -> Callable[..., Grade]:
    """Factory for stored grades with a given percentage."""

    def _make(
        percentage: int,
        student_id: str = "student-1",
        exercise_id: str = "exercise-1",
        lesson_id: str = "lesson-1",
        days: int = 0,
        max_points: int = 100,
    ) -> Grade:
        return Grade(
            student_id=student_id,
            lesson_id=lesson_id,
            exercise_id=exercise_id,
            criteria_grades=(CriteriaGrade(criteria_id="c1", level_id="l1", points=percentage),),
            total_points=percentage,
            max_possible_points=max_points,
            percentage=percentage,
            letter_grade=letter_grade_for(percentage),
            graded_at=graded_at + timedelta(days=days),
        )

    return _make


# ==============================================================================
# File Fixtures
# ==============================================================================


@pytest.fixture
def rubric_json_file(temp_dir: Path, sample_rubric: Rubric) -> Path:
    """Write the sample rubric as JSON."""
    file_path = temp_dir / "rubric.json"
    file_path.write_text(sample_rubric.model_dump_json(by_alias=True), encoding="utf-8")
    return file_path


@pytest.fixture
def rubric_text_file(temp_dir: Path, sample_rubric_text: str) -> Path:
    """Write the sample rubric text."""
    file_path = temp_dir / "rubric.md"
    file_path.write_text(sample_rubric_text, encoding="utf-8")
    return file_path


@pytest.fixture
def submission_file(temp_dir: Path, sample_payload: dict[str, Any]) -> Path:
    """Write the sample submission payload as JSON."""
    file_path = temp_dir / "submission.json"
    file_path.write_text(json.dumps(sample_payload), encoding="utf-8")
    return file_path
