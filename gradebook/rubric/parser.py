"""
Rubric parser module.

Parses assessment-rubric text from lesson plans into structured Rubric
models. Criteria carry a declared weight which is normalized so the
weights of a parsed rubric sum to exactly 100.
"""

import logging
import re
from decimal import Decimal
from typing import Sequence

from gradebook.grading.aggregator import round_half_up
from gradebook.models import Rubric, RubricCriterion, RubricLevel

logger = logging.getLogger(__name__)


class RubricParseError(Exception):
    """Raised when rubric parsing fails."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number:
            message = f"Line {line_number}: {message}"
        super().__init__(message)


def default_levels() -> tuple[RubricLevel, ...]:
    """The four-level scale shared by generated rubrics."""
    return (
        RubricLevel(
            id="excellent",
            name="Excellent (4)",
            description="Exceeds expectations with exceptional quality and understanding",
            points=4,
            color="bg-green-100 text-green-800 border-green-200",
        ),
        RubricLevel(
            id="good",
            name="Good (3)",
            description="Meets expectations with good quality and understanding",
            points=3,
            color="bg-blue-100 text-blue-800 border-blue-200",
        ),
        RubricLevel(
            id="satisfactory",
            name="Satisfactory (2)",
            description="Meets basic expectations with adequate quality",
            points=2,
            color="bg-yellow-100 text-yellow-800 border-yellow-200",
        ),
        RubricLevel(
            id="needs-improvement",
            name="Needs Improvement (1)",
            description="Below expectations, requires significant improvement",
            points=1,
            color="bg-red-100 text-red-800 border-red-200",
        ),
    )


def slugify(text: str) -> str:
    """Lower-case a name and join its words with dashes ('Code Quality' -> 'code-quality')."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "criterion"


def _build_criteria(entries: Sequence[tuple[str, str, int]]) -> tuple[RubricCriterion, ...]:
    """
    Build criteria whose ids are slugs of their names.

    Ids are stable across parses so submissions can reference them.
    Repeated names get a numeric suffix ('content', 'content-2').
    """
    taken: set[str] = set()
    criteria: list[RubricCriterion] = []

    for name, description, weight in entries:
        base = slugify(name)
        criterion_id = base
        suffix = 2
        while criterion_id in taken:
            criterion_id = f"{base}-{suffix}"
            suffix += 1
        taken.add(criterion_id)

        criteria.append(
            RubricCriterion(id=criterion_id, name=name, description=description, weight=weight)
        )

    return tuple(criteria)


def default_criteria() -> tuple[RubricCriterion, ...]:
    """Fallback criteria for lessons with neither a rubric nor objectives."""
    return _build_criteria(
        [
            ("Content", "Accuracy and depth of content", 40),
            ("Presentation", "Clarity and organization", 30),
            ("Analysis", "Understanding and critical thinking", 20),
            ("Engagement", "Participation and effort", 10),
        ]
    )


def normalize_weights(weights: Sequence[int]) -> list[int]:
    """
    Scale weights so they sum to exactly 100.

    Each weight is rounded on its own and the last one absorbs whatever
    rounding left over.
    """
    total = sum(weights)
    if total <= 0:
        return list(weights)

    normalized = [round_half_up(Decimal(w) * 100 / Decimal(total)) for w in weights]
    normalized[-1] += 100 - sum(normalized)
    return normalized


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


# (verb, criterion name) pairs, first match wins
ACTION_VERBS: tuple[tuple[str, str], ...] = (
    ("define", "Definition"),
    ("explain", "Explanation"),
    ("understand", "Understanding"),
    ("identify", "Identification"),
    ("analyze", "Analysis"),
    ("evaluate", "Evaluation"),
    ("create", "Creation"),
    ("apply", "Application"),
    ("demonstrate", "Demonstration"),
    ("compare", "Comparison"),
    ("contrast", "Comparison"),
    ("describe", "Description"),
    ("trace", "Tracing"),
    ("recognize", "Recognition"),
    ("differentiate", "Differentiation"),
    ("relate", "Relationship"),
    ("implement", "Implementation"),
    ("design", "Design"),
    ("develop", "Development"),
)

STOP_WORDS = frozenset(["the", "a", "an", "to", "of", "in", "on", "at", "for", "with", "by"])

MAX_GENERATED_CRITERIA = 5


def criteria_from_objectives(objectives: Sequence[str]) -> tuple[RubricCriterion, ...]:
    """
    Generate criteria from a lesson's learning objectives.

    Objectives are grouped by their action verb (or, failing that, their
    first two meaningful words) and 100 weight points are spread evenly
    across the groups, the remainder going to the first ones.

    At most MAX_GENERATED_CRITERIA are returned: beyond that the heaviest
    four are kept and the rest merged into "Additional Objectives".
    """
    if not objectives:
        return default_criteria()

    groups: dict[str, list[str]] = {}
    for objective in objectives:
        lowered = objective.lower()
        for verb, category in ACTION_VERBS:
            if verb in lowered:
                key = category
                break
        else:
            words = [w for w in objective.split() if w.lower() not in STOP_WORDS]
            key = " ".join(words[:2]) or "Objective"
        groups.setdefault(key, []).append(objective)

    base_weight, remainder = divmod(100, len(groups))
    entries: list[tuple[str, str, int]] = []

    for index, (key, group) in enumerate(groups.items()):
        if len(group) == 1:
            description = group[0]
        else:
            description = "Demonstrates achievement of: " + "; ".join(group[:2])

        entries.append(
            (
                _truncate(key, 50),
                _truncate(description, 200),
                base_weight + (1 if index < remainder else 0),
            )
        )

    if len(entries) > MAX_GENERATED_CRITERIA:
        by_weight = sorted(entries, key=lambda entry: entry[2], reverse=True)
        kept = by_weight[: MAX_GENERATED_CRITERIA - 1]
        rest = by_weight[MAX_GENERATED_CRITERIA - 1 :]
        entries = kept + [
            (
                "Additional Objectives",
                ", ".join(name for name, _, _ in rest),
                sum(weight for _, _, weight in rest),
            )
        ]

    return _build_criteria(entries)


class RubricParser:
    """
    Parses assessment-rubric text into a structured Rubric model.

    Supports formats:
    1. Weight in the name: "- **Code Quality (40%):** Description"
    2. Weight at the end: "- **Code Quality:** Description (40%)"
    3. Plain text: "Code Quality (40%): Description"

    The leading dash is optional. Lines that follow a criterion, up to the
    next blank line, continue its description.
    """

    WEIGHT_FIRST_PATTERN = re.compile(
        r"^(?:[-*]\s+)?"  # Optional bullet
        r"\*\*([^(*]+?)\s*"  # Bold criterion name
        r"\((\d+)%\):\*\*"  # Weight inside the bold run
        r"\s*(.*)$"  # Description
    )

    WEIGHT_LAST_PATTERN = re.compile(
        r"^(?:[-*]\s+)?"  # Optional bullet
        r"\*\*([^:*]+?):\*\*\s*"  # Bold criterion name
        r"(.+?)\s*"  # Description
        r"\((\d+)%\)\s*$"  # Trailing weight
    )

    PLAIN_PATTERN = re.compile(
        r"^(?:\d+\.\s*|[-*]\s+)?"  # Optional number or bullet
        r"([^(:*]+?)\s*"  # Criterion name
        r"\((\d+)%\)\s*:\s*"  # Weight in parentheses
        r"(.*)$"  # Description
    )

    MAX_NAME_LENGTH = 100
    MAX_DESCRIPTION_LENGTH = 500

    def parse(
        self,
        content: str,
        name: str = "Assessment Rubric",
        levels: Sequence[RubricLevel] | None = None,
    ) -> Rubric:
        """
        Parse rubric content into a structured Rubric model.

        Args:
            content: Raw text of the assessment rubric.
            name: Name for the rubric when the text has no heading.
            levels: Levels to attach. Defaults to the four-level scale.

        Returns:
            Structured Rubric object with weights normalized to 100.

        Raises:
            RubricParseError: If no criteria can be parsed.
        """
        if not content or not content.strip():
            raise RubricParseError("Rubric content is empty")

        lines = content.strip().split("\n")
        entries = self._parse_lines(lines)

        if not entries:
            raise RubricParseError(
                "No valid criteria found. Expected format like:\n"
                "  - **Content Accuracy (40%):** Description\n"
                "  OR: - **Content Accuracy:** Description (40%)"
            )

        weights = normalize_weights([weight for _, _, weight in entries])
        if min(weights) < 0:
            raise RubricParseError(
                f"Cannot spread 100% across {len(entries)} criteria; "
                "use fewer criteria or larger weights"
            )

        criteria = _build_criteria(
            [
                (criterion_name, description, weight)
                for (criterion_name, description, _), weight in zip(entries, weights)
            ]
        )

        return Rubric(
            name=self._extract_title(lines) or name,
            criteria=criteria,
            levels=tuple(levels) if levels is not None else default_levels(),
        )

    def parse_or_generate(
        self,
        content: str | None,
        objectives: Sequence[str] = (),
        name: str = "Assessment Rubric",
    ) -> Rubric:
        """
        Parse rubric text, falling back to criteria generated from objectives.

        Args:
            content: Raw assessment rubric text, possibly empty.
            objectives: The lesson's learning objectives.
            name: Name for the rubric.

        Returns:
            Rubric built from the text, the objectives, or the default criteria.
        """
        if content and content.strip():
            try:
                return self.parse(content, name=name)
            except RubricParseError as e:
                logger.info("Generating criteria from objectives: %s", e)

        return Rubric(
            name=name,
            criteria=criteria_from_objectives(objectives),
            levels=default_levels(),
        )

    def _parse_lines(self, lines: Sequence[str]) -> list[tuple[str, str, int]]:
        """
        Parse lines and extract (name, description, weight) entries.

        Tries each pattern in turn on every line.
        """
        entries: list[tuple[str, list[str], int]] = []
        current: tuple[str, list[str], int] | None = None

        for line_num, line in enumerate(lines, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                current = None
                continue

            parsed = self._match(stripped)
            if parsed is None:
                if current is not None:
                    current[1].append(stripped)
                continue

            criterion_name, description, weight = parsed
            if not 0 < weight <= 100:
                logger.warning(
                    "Line %d: skipping criterion '%s' with weight %d%%",
                    line_num,
                    criterion_name,
                    weight,
                )
                current = None
                continue

            current = (criterion_name, [description], weight)
            entries.append(current)

        results: list[tuple[str, str, int]] = []
        for criterion_name, parts, weight in entries:
            criterion_name = self._clean(criterion_name)
            description = self._clean(" ".join(parts))
            if not criterion_name or not description:
                continue
            results.append(
                (
                    _truncate(criterion_name, self.MAX_NAME_LENGTH),
                    _truncate(description, self.MAX_DESCRIPTION_LENGTH),
                    weight,
                )
            )
        return results

    def _match(self, line: str) -> tuple[str, str, int] | None:
        """Try every criterion pattern on a single line."""
        match = self.WEIGHT_FIRST_PATTERN.match(line)
        if match:
            return match.group(1), match.group(3), int(match.group(2))

        match = self.WEIGHT_LAST_PATTERN.match(line)
        if match:
            return match.group(1), match.group(2), int(match.group(3))

        match = self.PLAIN_PATTERN.match(line)
        if match:
            return match.group(1), match.group(3), int(match.group(2))

        return None

    @staticmethod
    def _clean(text: str) -> str:
        """Strip markdown emphasis and code marks and collapse whitespace."""
        return re.sub(r"\s+", " ", re.sub(r"[*`]", "", text)).strip()

    def _extract_title(self, lines: Sequence[str]) -> str | None:
        """Extract title from the first markdown heading, if present."""
        for line in lines:
            stripped = line.strip()
            if stripped.startswith("#"):
                return stripped.lstrip("#").strip() or None
        return None
