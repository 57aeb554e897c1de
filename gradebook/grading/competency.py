"""Competency banding for competency-based assessment records."""

from gradebook.config import Settings, get_settings
from gradebook.models import CompetencyStatus


def competency_status(
    percentage: int, settings: Settings | None = None
) -> tuple[CompetencyStatus, bool]:
    """
    Derive the competency status of a percentage.

    Returns:
        Tuple of (status, is_competent).
    """
    settings = settings or get_settings()

    if percentage >= settings.competent_threshold:
        return CompetencyStatus.COMPETENT, True
    if percentage >= settings.needs_improvement_threshold:
        return CompetencyStatus.NEEDS_IMPROVEMENT, False
    return CompetencyStatus.NOT_COMPETENT, False
