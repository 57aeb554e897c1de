"""
Grading Module.

Grade computation, submission parsing and grade recording.
"""

from gradebook.grading.aggregator import (
    InvalidArgument,
    compute_grade,
    letter_grade_for,
    round_half_up,
    total_points,
)
from gradebook.grading.competency import competency_status
from gradebook.grading.recorder import GradeRecorder, audit_role
from gradebook.grading.submission import SubmissionError, SubmissionParser

__all__ = [
    "GradeRecorder",
    "InvalidArgument",
    "SubmissionError",
    "SubmissionParser",
    "audit_role",
    "competency_status",
    "compute_grade",
    "letter_grade_for",
    "round_half_up",
    "total_points",
]
