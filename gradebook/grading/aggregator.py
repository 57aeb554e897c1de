"""
Grade aggregation.

Turns the points of the levels chosen per criterion into a total, a
percentage of the exercise's max points, and a letter grade.

Criterion weights are deliberately not applied: the stored score is the
plain sum of level points. ``RubricValidator.check_weights`` reports
rubrics whose weights suggest otherwise.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from gradebook.models import GradeComputation, LetterGrade

logger = logging.getLogger(__name__)

# Inclusive lower bounds, checked top down
LETTER_THRESHOLDS: tuple[tuple[int, LetterGrade], ...] = (
    (90, LetterGrade.A),
    (80, LetterGrade.B),
    (70, LetterGrade.C),
    (60, LetterGrade.D),
)


class InvalidArgument(ValueError):
    """Raised when grading input is rejected before any computation."""

    def __init__(self, message: str, argument: str | None = None):
        self.argument = argument
        super().__init__(message)


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def letter_grade_for(percentage: int | float | Decimal) -> LetterGrade:
    """Map a percentage to its letter grade."""
    for threshold, letter in LETTER_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return LetterGrade.F


def _points_of(item: Any, index: int) -> int:
    if isinstance(item, Mapping):
        if "points" not in item:
            raise InvalidArgument(f"criteria_grades[{index}] has no points", "criteria_grades")
        points = item["points"]
    else:
        points = getattr(item, "points", item)

    if isinstance(points, bool) or not isinstance(points, int):
        raise InvalidArgument(
            f"criteria_grades[{index}].points must be an integer, got {points!r}",
            "criteria_grades",
        )
    if points < 0:
        raise InvalidArgument(
            f"criteria_grades[{index}].points cannot be negative, got {points}",
            "criteria_grades",
        )
    return points


def total_points(criteria_grades: Iterable[Any]) -> int:
    """
    Sum the points of the supplied criteria grades.

    Accepts ``CriteriaGrade`` models, mappings with a ``points`` key, or
    bare integers. Criteria that were not graded are simply absent.

    Raises:
        InvalidArgument: If any points value is negative or not an integer.
    """
    return sum(_points_of(item, i) for i, item in enumerate(criteria_grades))


def compute_grade(criteria_grades: Iterable[Any], max_points: int) -> GradeComputation:
    """
    Compute total points, percentage and letter grade.

    Args:
        criteria_grades: The level selections made for each graded criterion.
        max_points: The exercise's maximum achievable score.

    Returns:
        GradeComputation. The percentage is not clamped, so over-scoring
        yields more than 100.

    Raises:
        InvalidArgument: If max_points is not a positive integer or any
            points value is negative.
    """
    if isinstance(max_points, bool) or not isinstance(max_points, int):
        raise InvalidArgument(f"max_points must be an integer, got {max_points!r}", "max_points")
    if max_points <= 0:
        raise InvalidArgument(f"max_points must be positive, got {max_points}", "max_points")

    total = total_points(criteria_grades)
    percentage = round_half_up(Decimal(total) * 100 / Decimal(max_points))
    letter = letter_grade_for(percentage)

    logger.debug("Computed %s/%s -> %s%% (%s)", total, max_points, percentage, letter.value)

    return GradeComputation(
        total_points=total,
        percentage=percentage,
        letter_grade=letter,
    )
