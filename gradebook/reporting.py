"""
Grade reporting.

Summaries computed over already-fetched grades for dashboards and
exports: a student's best and average grade, letter distributions, and
overall analytics.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from gradebook.grading.aggregator import letter_grade_for, round_half_up
from gradebook.models import (
    Grade,
    GradeAnalytics,
    GradeFilter,
    LetterGrade,
    StudentSummary,
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def best_grade(grades: Iterable[Grade]) -> Grade | None:
    """
    Return the grade with the highest percentage.

    Ties go to the most recent ``graded_at``; grades graded at the same
    moment resolve to the later one in the sequence.
    """
    best: Grade | None = None
    for grade in grades:
        if best is None or grade.percentage > best.percentage:
            best = grade
        elif grade.percentage == best.percentage and _as_utc(grade.graded_at) >= _as_utc(
            best.graded_at
        ):
            best = grade
    return best


def average_grade(grades: Sequence[Grade]) -> int:
    """Mean percentage rounded to the nearest integer, 0 when there are no grades."""
    if not grades:
        return 0
    return round_half_up(Decimal(sum(g.percentage for g in grades)) / len(grades))


def summarize_student(
    student_id: str,
    grades: Sequence[Grade],
    total_exercises: int | None = None,
) -> StudentSummary:
    """
    Build the best/average summary for one student.

    Args:
        student_id: The student the grades belong to.
        grades: The student's grades.
        total_exercises: Number of exercises available to the student, if known.

    Returns:
        StudentSummary. A student without grades has best and average 0 and
        a best letter grade of F.
    """
    best = best_grade(grades)
    best_percentage = best.percentage if best is not None else 0

    return StudentSummary(
        student_id=student_id,
        best_grade=best,
        best_percentage=best_percentage,
        best_letter_grade=letter_grade_for(best_percentage),
        average_grade=average_grade(grades),
        completed_exercises=len(grades),
        total_exercises=total_exercises,
    )


def summarize_students(grades: Iterable[Grade]) -> list[StudentSummary]:
    """Group grades by student and summarize each, in order of first appearance."""
    by_student: dict[str, list[Grade]] = {}
    for grade in grades:
        by_student.setdefault(grade.student_id, []).append(grade)

    return [summarize_student(student_id, items) for student_id, items in by_student.items()]


def grade_distribution(grades: Iterable[Grade]) -> dict[LetterGrade, int]:
    """Count grades per letter."""
    distribution = {letter: 0 for letter in LetterGrade}
    for grade in grades:
        distribution[grade.letter_grade] += 1
    return distribution


def analyze(grades: Sequence[Grade]) -> GradeAnalytics:
    """
    Compute overall statistics for a set of grades.

    Returns:
        GradeAnalytics, all zeros when there are no grades.
    """
    if not grades:
        return GradeAnalytics()

    count = len(grades)
    points = sum(g.total_points for g in grades)

    return GradeAnalytics(
        total_grades=count,
        average_percentage=average_grade(grades),
        average_points=round_half_up(Decimal(points) / count),
        total_points=points,
        max_possible_points=sum(g.max_possible_points for g in grades),
        grade_distribution=grade_distribution(grades),
    )


def _matches(grade: Grade, criteria: GradeFilter) -> bool:
    if criteria.student_id and grade.student_id != criteria.student_id:
        return False
    if criteria.lesson_id and grade.lesson_id != criteria.lesson_id:
        return False
    if criteria.exercise_id and grade.exercise_id != criteria.exercise_id:
        return False

    graded_at = _as_utc(grade.graded_at)
    if criteria.start_date is not None and graded_at < _as_utc(criteria.start_date):
        return False
    if criteria.end_date is not None and graded_at > _as_utc(criteria.end_date):
        return False

    if criteria.min_percentage is not None and grade.percentage < criteria.min_percentage:
        return False
    if criteria.max_percentage is not None and grade.percentage > criteria.max_percentage:
        return False

    if criteria.letter_grade and not grade.letter_grade.value.startswith(
        criteria.letter_grade.upper()
    ):
        return False

    return True


def filter_grades(grades: Iterable[Grade], criteria: GradeFilter) -> list[Grade]:
    """Keep the grades matching every field set on the filter."""
    return [grade for grade in grades if _matches(grade, criteria)]
