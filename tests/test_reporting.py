"""
Unit tests for grade reporting.

Tests best/average grades, student summaries, analytics and filtering
over lists of stored grades.
"""

from datetime import datetime
from typing import Callable

from gradebook.models import Grade, GradeFilter, LetterGrade
from gradebook.reporting import (
    analyze,
    average_grade,
    best_grade,
    filter_grades,
    grade_distribution,
    summarize_student,
    summarize_students,
)


class TestAverageGrade:
    """Tests for average_grade."""

    def test_average(self, make_grade: Callable[..., Grade]) -> None:
        """Test the mean is rounded to a whole percentage."""
        grades = [make_grade(88), make_grade(25), make_grade(100)]

        assert average_grade(grades) == 71

    def test_average_rounds_half_up(self, make_grade: Callable[..., Grade]) -> None:
        """Test a mean of 70.5 rounds up."""
        assert average_grade([make_grade(70), make_grade(71)]) == 71

    def test_no_grades(self) -> None:
        """Test the average of nothing is 0."""
        assert average_grade([]) == 0


class TestBestGrade:
    """Tests for best_grade."""

    def test_highest_percentage(self, make_grade: Callable[..., Grade]) -> None:
        """Test the highest percentage wins."""
        grades = [make_grade(88), make_grade(25), make_grade(100)]

        assert best_grade(grades) is grades[2]

    def test_tie_prefers_latest(self, make_grade: Callable[..., Grade]) -> None:
        """Test equal percentages resolve to the most recent grade."""
        newer = make_grade(90, exercise_id="exercise-2", days=3)
        older = make_grade(90, exercise_id="exercise-1", days=1)

        assert best_grade([newer, older]) is newer

    def test_tie_same_time_prefers_later(self, make_grade: Callable[..., Grade]) -> None:
        """Test equal percentage and time resolve to the later grade in the list."""
        first = make_grade(90, exercise_id="exercise-1")
        second = make_grade(90, exercise_id="exercise-2")

        assert best_grade([first, second]) is second

    def test_no_grades(self) -> None:
        """Test there is no best grade of nothing."""
        assert best_grade([]) is None


class TestStudentSummary:
    """Tests for summarize_student and summarize_students."""

    def test_summary(self, make_grade: Callable[..., Grade]) -> None:
        """Test best and average for one student."""
        grades = [
            make_grade(88, exercise_id="exercise-1"),
            make_grade(25, exercise_id="exercise-2"),
            make_grade(100, exercise_id="exercise-3"),
        ]

        summary = summarize_student("student-1", grades, total_exercises=5)

        assert summary.best_percentage == 100
        assert summary.best_letter_grade == LetterGrade.A
        assert summary.best_grade is grades[2]
        assert summary.average_grade == 71
        assert summary.completed_exercises == 3
        assert summary.total_exercises == 5

    def test_student_without_grades(self) -> None:
        """Test an empty summary."""
        summary = summarize_student("student-9", [])

        assert summary.best_grade is None
        assert summary.best_percentage == 0
        assert summary.best_letter_grade == LetterGrade.F
        assert summary.average_grade == 0
        assert summary.completed_exercises == 0

    def test_summarize_students(self, make_grade: Callable[..., Grade]) -> None:
        """Test grades are grouped per student in first-seen order."""
        grades = [
            make_grade(60, student_id="student-2"),
            make_grade(80, student_id="student-1"),
            make_grade(90, student_id="student-2", exercise_id="exercise-2"),
        ]

        summaries = summarize_students(grades)

        assert [s.student_id for s in summaries] == ["student-2", "student-1"]
        assert summaries[0].best_percentage == 90
        assert summaries[0].average_grade == 75
        assert summaries[1].completed_exercises == 1


class TestAnalytics:
    """Tests for analyze and grade_distribution."""

    def test_empty(self) -> None:
        """Test analytics of no grades are all zeros."""
        analytics = analyze([])

        assert analytics.total_grades == 0
        assert analytics.average_percentage == 0
        assert analytics.average_points == 0
        assert all(count == 0 for count in analytics.grade_distribution.values())

    def test_analytics(self, make_grade: Callable[..., Grade]) -> None:
        """Test totals, averages and the distribution."""
        grades = [make_grade(95), make_grade(85), make_grade(84), make_grade(40)]

        analytics = analyze(grades)

        assert analytics.total_grades == 4
        assert analytics.average_percentage == 76
        assert analytics.total_points == 304
        assert analytics.average_points == 76
        assert analytics.max_possible_points == 400
        assert analytics.grade_distribution[LetterGrade.A] == 1
        assert analytics.grade_distribution[LetterGrade.B] == 2
        assert analytics.grade_distribution[LetterGrade.F] == 1

    def test_distribution_lists_every_letter(self, make_grade: Callable[..., Grade]) -> None:
        """Test letters without grades are counted as zero."""
        distribution = grade_distribution([make_grade(72)])

        assert list(distribution) == list(LetterGrade)
        assert distribution[LetterGrade.C] == 1
        assert sum(distribution.values()) == 1


class TestFilterGrades:
    """Tests for filter_grades."""

    def test_filter_by_student(self, make_grade: Callable[..., Grade]) -> None:
        """Test filtering on the student id."""
        grades = [make_grade(80, student_id="student-1"), make_grade(70, student_id="student-2")]

        result = filter_grades(grades, GradeFilter(student_id="student-2"))

        assert result == [grades[1]]

    def test_filter_by_percentage_range(self, make_grade: Callable[..., Grade]) -> None:
        """Test the percentage bounds are inclusive."""
        grades = [make_grade(59), make_grade(60), make_grade(80), make_grade(81)]

        result = filter_grades(grades, GradeFilter(min_percentage=60, max_percentage=80))

        assert [g.percentage for g in result] == [60, 80]

    def test_filter_by_letter(self, make_grade: Callable[..., Grade]) -> None:
        """Test the letter filter ignores case."""
        grades = [make_grade(95), make_grade(85), make_grade(75)]

        result = filter_grades(grades, GradeFilter(letter_grade="b"))

        assert [g.percentage for g in result] == [85]

    def test_filter_by_naive_dates(self, make_grade: Callable[..., Grade]) -> None:
        """Test naive bounds are compared as UTC."""
        grades = [make_grade(80, days=0), make_grade(80, days=2), make_grade(80, days=5)]

        result = filter_grades(
            grades,
            GradeFilter(start_date=datetime(2026, 3, 3), end_date=datetime(2026, 3, 5)),
        )

        assert result == [grades[1]]

    def test_empty_filter_keeps_everything(self, make_grade: Callable[..., Grade]) -> None:
        """Test a filter with no fields set matches every grade."""
        grades = [make_grade(10), make_grade(90)]

        assert filter_grades(grades, GradeFilter()) == grades
