"""
Rubric validation module.

Checks that a rubric can be graded with: it has criteria and levels,
names are unique, and every level is distinguishable by its points.
Weight sums are reported as warnings only, because weights never scale
the computed score.
"""

import logging
from typing import Sequence

from gradebook.config import Settings, get_settings
from gradebook.models import Rubric, RubricCriterion, RubricLevel

logger = logging.getLogger(__name__)


class RubricValidationError(Exception):
    """Raised when rubric validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Rubric validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class RubricValidator:
    """
    Validates rubrics for completeness and consistency.

    Checks:
    1. The rubric has a name, at least one criterion and at least one level
    2. Criterion names and ids are unique
    3. Level names are unique and no two levels share a point value
    4. Criterion weights lie between 0 and 100
    """

    # Weights outside this range are rejected
    MIN_WEIGHT = 0
    MAX_WEIGHT = 100

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    def validate(self, rubric: Rubric) -> tuple[bool, list[str]]:
        """
        Validate a rubric and return any issues found.

        Args:
            rubric: The rubric to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []

        issues.extend(self._validate_structure(rubric))

        for i, criterion in enumerate(rubric.criteria, start=1):
            issues.extend(self._validate_criterion(criterion, i))

        issues.extend(self._check_duplicate_criteria(rubric.criteria))
        issues.extend(self._check_levels(rubric.levels))

        return len(issues) == 0, issues

    def validate_or_raise(self, rubric: Rubric) -> None:
        """
        Validate a rubric and raise if invalid.

        Args:
            rubric: The rubric to validate.

        Raises:
            RubricValidationError: If validation fails.
        """
        is_valid, issues = self.validate(rubric)
        if not is_valid:
            raise RubricValidationError(issues)

    def check_weights(self, rubric: Rubric) -> list[str]:
        """
        Report criterion weights that do not add up to 100.

        Graded scores are the plain sum of level points, so a rubric whose
        weights look like a weighting scheme is worth flagging to its author.

        Returns:
            List of warnings (empty when the weights sum to 100 within tolerance).
        """
        if not rubric.criteria:
            return []

        total = rubric.total_weight
        if abs(total - 100) <= self._settings.weight_tolerance:
            return []

        warning = (
            f"Criterion weights sum to {total}%, not 100%. "
            "Weights are informational and do not scale the graded points."
        )
        logger.warning("Rubric '%s': %s", rubric.name, warning)
        return [warning]

    def _validate_structure(self, rubric: Rubric) -> list[str]:
        """Validate basic rubric structure."""
        issues: list[str] = []

        if not rubric.name.strip():
            issues.append("Rubric name is empty")

        if not rubric.criteria:
            issues.append("Rubric has no criteria")

        if not rubric.levels:
            issues.append("Rubric has no levels")

        return issues

    def _validate_criterion(self, criterion: RubricCriterion, index: int) -> list[str]:
        """Validate a single criterion."""
        issues: list[str] = []
        prefix = f"Criterion {index} ({criterion.name})"

        if not criterion.name.strip():
            issues.append(f"{prefix}: Name is empty")

        # Field constraints already hold for validated models; this catches
        # rubrics assembled with model_construct from trusted storage.
        if not self.MIN_WEIGHT <= criterion.weight <= self.MAX_WEIGHT:
            issues.append(
                f"{prefix}: Weight ({criterion.weight}) must be between "
                f"{self.MIN_WEIGHT} and {self.MAX_WEIGHT}"
            )

        return issues

    def _check_duplicate_criteria(self, criteria: Sequence[RubricCriterion]) -> list[str]:
        """Check for duplicate criterion names and ids."""
        issues: list[str] = []
        seen_names: dict[str, int] = {}
        seen_ids: dict[str, int] = {}

        for i, criterion in enumerate(criteria, start=1):
            name_lower = criterion.name.lower().strip()
            if name_lower in seen_names:
                issues.append(
                    f"Duplicate criterion name: '{criterion.name}' "
                    f"(appears at positions {seen_names[name_lower]} and {i})"
                )
            else:
                seen_names[name_lower] = i

            if criterion.id in seen_ids:
                issues.append(
                    f"Duplicate criterion id: '{criterion.id}' "
                    f"(appears at positions {seen_ids[criterion.id]} and {i})"
                )
            else:
                seen_ids[criterion.id] = i

        return issues

    def _check_levels(self, levels: Sequence[RubricLevel]) -> list[str]:
        """Check that levels are uniquely named and carry distinct points."""
        issues: list[str] = []
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        seen_points: dict[int, str] = {}

        for level in levels:
            name_lower = level.name.lower().strip()
            if name_lower in seen_names:
                issues.append(f"Duplicate level name: '{level.name}'")
            seen_names.add(name_lower)

            if level.id in seen_ids:
                issues.append(f"Duplicate level id: '{level.id}'")
            seen_ids.add(level.id)

            if level.points in seen_points:
                issues.append(
                    f"Levels '{seen_points[level.points]}' and '{level.name}' "
                    f"both award {level.points} points"
                )
            else:
                seen_points[level.points] = level.name

        return issues
