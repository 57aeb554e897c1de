"""
Grade recorder - turns submissions into stored grade records.

Implements the save-a-grade flow: compute the score, derive the
competency status, upsert over a previous grade for the same
(student, exercise) pair, and produce the matching audit record.
Storage itself belongs to the caller.
"""

import logging
from datetime import datetime, timezone

from gradebook.config import Settings, get_settings
from gradebook.grading.aggregator import compute_grade
from gradebook.grading.competency import competency_status
from gradebook.grading.submission import SubmissionError
from gradebook.models import (
    AuditAction,
    AuditRecord,
    CompetencyStatus,
    Grade,
    GradeSnapshot,
    GradeSubmission,
    PerformerRole,
)

logger = logging.getLogger(__name__)


def audit_role(user_role: str | None) -> PerformerRole:
    """
    Map the account role of the user saving a grade to its audit role.

    Admins are audited as admins and instructors as the assessor of the
    grade; anyone else is recorded as an instructor.
    """
    role = (user_role or "").strip().lower()
    if role == "admin":
        return PerformerRole.ADMIN
    if role == "instructor":
        return PerformerRole.ASSESSOR
    return PerformerRole.INSTRUCTOR


class GradeRecorder:
    """
    Builds grade records and their audit trail from submissions.

    Re-grading is last-write-wins: the previous record's id is kept and
    everything else is replaced.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the recorder.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()

    def record(
        self,
        submission: GradeSubmission,
        previous: Grade | None = None,
        performed_by: str | None = None,
        performed_by_role: PerformerRole = PerformerRole.ASSESSOR,
        now: datetime | None = None,
    ) -> tuple[Grade, AuditRecord]:
        """
        Create or update a grade from a submission.

        Args:
            submission: The validated grading form submission.
            previous: The stored grade for the same student and exercise, if any.
            performed_by: Id of the user saving the grade. Defaults to graded_by.
            performed_by_role: Role recorded on the audit entry.
            now: Timestamp to stamp on the record. Defaults to the current UTC time.

        Returns:
            Tuple of (Grade, AuditRecord).

        Raises:
            SubmissionError: If required identifiers or max points are missing,
                or previous belongs to a different student or exercise.
            InvalidArgument: If the points or max points are rejected.
        """
        missing = [
            name
            for name, value in (
                ("studentId", submission.student_id),
                ("lessonId", submission.lesson_id),
                ("exerciseId", submission.exercise_id),
            )
            if not value
        ]
        if missing:
            raise SubmissionError(f"Missing required fields: {', '.join(missing)}", errors=missing)

        if previous is not None and (
            previous.student_id != submission.student_id
            or previous.exercise_id != submission.exercise_id
        ):
            raise SubmissionError(
                f"Previous grade {previous.id} belongs to student {previous.student_id} "
                f"and exercise {previous.exercise_id}"
            )

        max_points = submission.max_points
        if max_points is None and previous is not None:
            max_points = previous.max_possible_points
        if max_points is None:
            raise SubmissionError("Missing required field: maxPoints")

        timestamp = now or datetime.now(timezone.utc)
        computation = compute_grade(submission.criteria_grades, max_points)
        status, is_competent = self._resolve_competency(submission, computation.percentage)
        graded_by = submission.graded_by or self._settings.default_grader

        identity = {"id": previous.id} if previous is not None else {}

        grade = Grade(
            **identity,
            student_id=submission.student_id,
            lesson_id=submission.lesson_id,
            exercise_id=submission.exercise_id,
            criteria_grades=submission.criteria_grades,
            total_points=computation.total_points,
            max_possible_points=max_points,
            percentage=computation.percentage,
            letter_grade=computation.letter_grade,
            is_competent=is_competent,
            competency_status=status,
            assessor_id=submission.assessor_id,
            verified_by=submission.verified_by,
            verified_at=timestamp if submission.verified_by else None,
            moderated_by=submission.moderated_by,
            moderated_at=timestamp if submission.moderated_by else None,
            feedback=submission.feedback,
            graded_by=graded_by,
            graded_at=timestamp,
        )

        audit = AuditRecord(
            grade_id=grade.id,
            action=AuditAction.UPDATED if previous is not None else AuditAction.ASSESSED,
            performed_by=performed_by or graded_by,
            performed_by_role=performed_by_role,
            previous_value=GradeSnapshot.of(previous) if previous is not None else None,
            new_value=GradeSnapshot.of(grade),
            created_at=timestamp,
        )

        logger.info(
            "%s grade %s for student %s on exercise %s: %s/%s (%s%%, %s)",
            "Updated" if previous is not None else "Created",
            grade.id,
            grade.student_id,
            grade.exercise_id,
            grade.total_points,
            grade.max_possible_points,
            grade.percentage,
            grade.letter_grade.value,
        )

        return grade, audit

    def _resolve_competency(
        self, submission: GradeSubmission, percentage: int
    ) -> tuple[CompetencyStatus, bool]:
        """Use the submitted competency status, or derive it from the percentage."""
        if submission.competency_status is None:
            return competency_status(percentage, self._settings)

        is_competent = submission.is_competent
        if is_competent is None:
            is_competent = submission.competency_status == CompetencyStatus.COMPETENT
        return submission.competency_status, is_competent
