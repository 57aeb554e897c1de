"""
Pydantic models for the Gradebook system.

These models define the schemas for:
- Rubrics, their criteria and their levels
- Exercises and grade submissions coming from the grading form
- Stored grade records and their audit trail
- Reporting summaries built from stored grades

Field names are snake_case in Python and camelCase on the wire, so a
payload such as ``{"criteriaGrades": [...], "maxPoints": 16}`` validates
directly and ``model_dump(by_alias=True)`` produces the same shape back.
"""

from datetime import datetime, timezone
from enum import Enum
from hashlib import sha256
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _WireModel(BaseModel):
    """Frozen model that accepts both snake_case names and camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ==============================================================================
# Enumerations
# ==============================================================================


class LetterGrade(str, Enum):
    """Letter grade derived from a percentage."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class CompetencyStatus(str, Enum):
    """Competency-based assessment outcome recorded with every grade."""

    COMPETENT = "competent"
    NEEDS_IMPROVEMENT = "needs_improvement"
    NOT_COMPETENT = "not_competent"


class AuditAction(str, Enum):
    """Assessment actions that leave an audit record."""

    ASSESSED = "assessed"
    VERIFIED = "verified"
    MODERATED = "moderated"
    UPDATED = "updated"
    EXPORTED = "exported"


class PerformerRole(str, Enum):
    """Role of the user who performed an audited action."""

    INSTRUCTOR = "instructor"
    ASSESSOR = "assessor"
    VERIFIER = "verifier"
    MODERATOR = "moderator"
    ADMIN = "admin"


# ==============================================================================
# Rubric Models
# ==============================================================================


class RubricCriterion(_WireModel):
    """
    One dimension being assessed (e.g. 'Code Quality').

    The weight is shown to graders as a percentage of the total grade, but
    it does not scale the points a grade receives.
    """

    id: str = Field(default_factory=_new_id)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name of the criterion",
    )

    description: str = Field(
        default="",
        description="What this criterion evaluates",
    )

    weight: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Declared weight as a percentage of the total grade",
    )


class RubricLevel(_WireModel):
    """A quality tier (e.g. 'Excellent') with a fixed point value."""

    id: str = Field(default_factory=_new_id)

    name: str = Field(..., min_length=1, max_length=200)

    description: str = Field(default="")

    points: int = Field(
        ...,
        ge=0,
        description="Points awarded when this level is selected",
    )

    color: str = Field(default="", description="Display style for the level badge")


class Rubric(_WireModel):
    """
    A named grading template made of criteria and levels.

    Levels are shared by every criterion: a grader picks exactly one level
    per criterion.
    """

    id: str = Field(default_factory=_new_id)

    name: str = Field(..., min_length=1, max_length=500)

    description: str = Field(default="")

    criteria: tuple[RubricCriterion, ...] = Field(default=())

    levels: tuple[RubricLevel, ...] = Field(default=())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> int:
        """Sum of the level point values."""
        return sum(level.points for level in self.levels)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_weight(self) -> int:
        """Sum of the declared criterion weights."""
        return sum(criterion.weight for criterion in self.criteria)

    def get_criterion(self, criterion_id: str) -> RubricCriterion | None:
        """Look up a criterion by id."""
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None

    def get_level(self, level_id: str) -> RubricLevel | None:
        """Look up a level by id."""
        for level in self.levels:
            if level.id == level_id:
                return level
        return None


class Exercise(_WireModel):
    """
    A gradable unit of student work.

    ``max_points`` is set by the exercise author and is the denominator of
    every percentage; it is not derived from the rubric.
    """

    id: str = Field(default_factory=_new_id)

    title: str = Field(..., min_length=1)

    description: str = Field(default="")

    max_points: int = Field(..., gt=0)

    rubric: Rubric | None = Field(default=None)


# ==============================================================================
# Grading Models
# ==============================================================================


class CriteriaGrade(_WireModel):
    """The level chosen for one criterion during a grading event."""

    criteria_id: str = Field(..., min_length=1)

    level_id: str = Field(default="")

    points: int = Field(
        ...,
        description="Points of the chosen level",
    )

    comments: str = Field(default="")


class GradeComputation(_WireModel):
    """Result of aggregating criterion points against an exercise's max points."""

    total_points: int

    percentage: int

    letter_grade: LetterGrade


class GradeSubmission(_WireModel):
    """
    A grading form submission.

    Identifiers are optional so the same model serves a bare computation
    request (``criteriaGrades`` plus ``maxPoints``) and a full grade save.
    """

    student_id: str | None = None

    lesson_id: str | None = None

    exercise_id: str | None = None

    criteria_grades: tuple[CriteriaGrade, ...] = Field(default=())

    max_points: int | None = None

    feedback: str = ""

    graded_by: str | None = None

    competency_status: CompetencyStatus | None = None

    is_competent: bool | None = None

    assessor_id: str | None = None

    verified_by: str | None = None

    moderated_by: str | None = None


class Grade(_WireModel):
    """
    Stored grade for one (student, exercise) pair.

    Re-grading replaces the criteria grades and recomputed scores while
    keeping the record id.
    """

    id: str = Field(default_factory=_new_id)

    student_id: str

    lesson_id: str

    exercise_id: str

    criteria_grades: tuple[CriteriaGrade, ...] = Field(default=())

    total_points: int

    max_possible_points: int

    percentage: int

    letter_grade: LetterGrade

    is_competent: bool = False

    competency_status: CompetencyStatus = CompetencyStatus.NOT_COMPETENT

    assessor_id: str | None = None

    verified_by: str | None = None

    verified_at: datetime | None = None

    moderated_by: str | None = None

    moderated_at: datetime | None = None

    feedback: str = ""

    graded_by: str = "Instructor"

    graded_at: datetime = Field(default_factory=_utcnow)


# ==============================================================================
# Audit Models
# ==============================================================================


class GradeSnapshot(_WireModel):
    """Score fields captured before and after an audited change."""

    total_points: int

    percentage: int

    letter_grade: LetterGrade

    competency_status: CompetencyStatus

    is_competent: bool

    @classmethod
    def of(cls, grade: Grade) -> "GradeSnapshot":
        """Capture the score fields of a stored grade."""
        return cls(
            total_points=grade.total_points,
            percentage=grade.percentage,
            letter_grade=grade.letter_grade,
            competency_status=grade.competency_status,
            is_competent=grade.is_competent,
        )


class AuditRecord(_WireModel):
    """
    Immutable audit record for an assessment action.

    ``value_hash`` fingerprints the new snapshot so an exported log can be
    checked against the grade it describes.
    """

    id: str = Field(default_factory=_new_id)

    grade_id: str

    action: AuditAction

    performed_by: str

    performed_by_role: PerformerRole

    previous_value: GradeSnapshot | None = None

    new_value: GradeSnapshot | None = None

    notes: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value_hash(self) -> str | None:
        """SHA-256 of the new snapshot's JSON form."""
        if self.new_value is None:
            return None
        return self.compute_hash(self.new_value.model_dump_json(by_alias=True))

    @staticmethod
    def compute_hash(content: str) -> str:
        """Compute SHA-256 hash of content."""
        return sha256(content.encode("utf-8")).hexdigest()


# ==============================================================================
# Reporting Models
# ==============================================================================


class StudentSummary(_WireModel):
    """Best and average grade of one student, as shown on dashboards and exports."""

    student_id: str

    best_grade: Grade | None = None

    best_percentage: int = 0

    best_letter_grade: LetterGrade = LetterGrade.F

    average_grade: int = 0

    completed_exercises: int = 0

    total_exercises: int | None = None


class GradeAnalytics(_WireModel):
    """Aggregate statistics over a set of grades."""

    total_grades: int = 0

    average_percentage: int = 0

    average_points: int = 0

    total_points: int = 0

    max_possible_points: int = 0

    grade_distribution: dict[LetterGrade, int] = Field(
        default_factory=lambda: {letter: 0 for letter in LetterGrade}
    )


class GradeFilter(_WireModel):
    """Criteria for narrowing a list of grades before reporting on it."""

    student_id: str | None = None

    lesson_id: str | None = None

    exercise_id: str | None = None

    start_date: datetime | None = None

    end_date: datetime | None = None

    min_percentage: int | None = None

    max_percentage: int | None = None

    letter_grade: str | None = None
