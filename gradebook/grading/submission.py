"""
Grade submission parser.

Parses the JSON payload sent by the grading form and validates it
against the rubric it was graded with. Ensures every criterion and level
exists, no criterion is graded twice, and points match the chosen level.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from gradebook.models import CriteriaGrade, Exercise, GradeSubmission, Rubric

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """Raised when a grade submission cannot be parsed or validated."""

    def __init__(
        self,
        message: str,
        raw_payload: str | None = None,
        errors: list[str] | None = None,
    ):
        self.raw_payload = raw_payload
        self.errors = errors or []
        super().__init__(message)


class SubmissionParser:
    """
    Parses and validates grade submissions.

    Ensures:
    1. Payload is a JSON object
    2. criteriaGrades is a list of objects naming a criterion
    3. Criteria and levels belong to the rubric, when one is given
    4. A max points value is available from the payload or the exercise
    """

    def parse(
        self,
        payload: str | Mapping[str, Any],
        rubric: Rubric | None = None,
        exercise: Exercise | None = None,
        max_points: int | None = None,
    ) -> GradeSubmission:
        """
        Parse a submission payload into a GradeSubmission.

        Args:
            payload: Raw JSON text or an already-decoded mapping.
            rubric: Rubric to check criteria and levels against. Defaults
                to the exercise's rubric.
            exercise: Exercise supplying max points when the payload has none.
            max_points: Max points overriding both the payload and the exercise.

        Returns:
            Validated GradeSubmission.

        Raises:
            SubmissionError: If parsing or validation fails.
        """
        if isinstance(payload, Mapping):
            raw = json.dumps(payload, default=str)
            data = dict(payload)
        else:
            raw = payload
            try:
                data = json.loads(payload)
            except json.JSONDecodeError as e:
                raise SubmissionError(f"Invalid JSON in submission: {e}", raw_payload=raw) from e

        if not isinstance(data, dict):
            raise SubmissionError("Submission must be a JSON object", raw_payload=raw)

        if rubric is None and exercise is not None:
            rubric = exercise.rubric

        criteria_grades = self._parse_criteria_grades(
            data.get("criteriaGrades", data.get("criteria_grades", [])), rubric, raw
        )

        fields = {k: v for k, v in data.items() if k not in ("criteriaGrades", "criteria_grades")}
        if max_points is not None:
            fields.pop("max_points", None)
            fields["maxPoints"] = max_points
        elif fields.get("maxPoints", fields.get("max_points")) is None and exercise is not None:
            fields["maxPoints"] = exercise.max_points
        if exercise is not None and fields.get("exerciseId", fields.get("exercise_id")) is None:
            fields["exerciseId"] = exercise.id

        try:
            submission = GradeSubmission.model_validate(
                {**fields, "criteriaGrades": criteria_grades}
            )
        except ValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise SubmissionError(
                "Invalid submission: " + "; ".join(errors), raw_payload=raw, errors=errors
            ) from e

        if submission.max_points is None:
            raise SubmissionError("Missing required field: maxPoints", raw_payload=raw)

        logger.debug(
            "Parsed submission with %d criteria grades (max points %s)",
            len(submission.criteria_grades),
            submission.max_points,
        )
        return submission

    def _parse_criteria_grades(
        self, items: Any, rubric: Rubric | None, raw_payload: str
    ) -> list[CriteriaGrade]:
        """
        Parse and validate the per-criterion selections.

        Args:
            items: The decoded criteriaGrades value.
            rubric: Rubric to validate against, if any.
            raw_payload: Original payload for error reporting.

        Returns:
            List of validated CriteriaGrade objects, in payload order.

        Raises:
            SubmissionError: If validation fails.
        """
        if not isinstance(items, list):
            raise SubmissionError("criteriaGrades must be a list", raw_payload=raw_payload)

        results: list[CriteriaGrade] = []
        seen_criteria: set[str] = set()

        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise SubmissionError(
                    f"criteriaGrades[{i}] must be an object", raw_payload=raw_payload
                )

            criteria_id = str(item.get("criteriaId", item.get("criteria_id", "")) or "")
            if not criteria_id:
                raise SubmissionError(
                    f"criteriaGrades[{i}] missing criteriaId", raw_payload=raw_payload
                )

            if criteria_id in seen_criteria:
                raise SubmissionError(
                    f"Duplicate criterion in submission: '{criteria_id}'",
                    raw_payload=raw_payload,
                )
            seen_criteria.add(criteria_id)

            level_id = str(item.get("levelId", item.get("level_id", "")) or "")
            points = item.get("points")

            if rubric is not None:
                if rubric.get_criterion(criteria_id) is None:
                    raise SubmissionError(
                        f"Unknown criterion: '{criteria_id}'", raw_payload=raw_payload
                    )

                level = rubric.get_level(level_id)
                if level is None:
                    raise SubmissionError(
                        f"Unknown level for criterion '{criteria_id}': '{level_id}'",
                        raw_payload=raw_payload,
                    )

                if points is None:
                    points = level.points
                elif points != level.points:
                    raise SubmissionError(
                        f"Points for '{criteria_id}' ({points}) don't match level "
                        f"'{level.name}' ({level.points})",
                        raw_payload=raw_payload,
                    )

            if points is None:
                raise SubmissionError(
                    f"criteriaGrades[{i}] missing points", raw_payload=raw_payload
                )
            if isinstance(points, bool) or not isinstance(points, int):
                raise SubmissionError(
                    f"Invalid points for '{criteria_id}': {points!r}", raw_payload=raw_payload
                )
            if points < 0:
                raise SubmissionError(
                    f"Negative points for '{criteria_id}': {points}", raw_payload=raw_payload
                )

            comments = item.get("comments")
            results.append(
                CriteriaGrade(
                    criteria_id=criteria_id,
                    level_id=level_id,
                    points=points,
                    comments=str(comments) if comments is not None else "",
                )
            )

        return results
