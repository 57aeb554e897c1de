"""
Rubric Processing Module.

Provides parsing, generation and validation of grading rubrics.
"""

from gradebook.rubric.parser import (
    RubricParseError,
    RubricParser,
    criteria_from_objectives,
    default_criteria,
    default_levels,
    normalize_weights,
    slugify,
)
from gradebook.rubric.validator import RubricValidationError, RubricValidator

__all__ = [
    "RubricParser",
    "RubricParseError",
    "RubricValidator",
    "RubricValidationError",
    "criteria_from_objectives",
    "default_criteria",
    "default_levels",
    "normalize_weights",
    "slugify",
]
