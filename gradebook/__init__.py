"""
Gradebook - rubric grading rules for a learning-management platform.

This package turns per-criterion rubric level selections into scores,
percentages and letter grades, records grade upserts with an audit
trail, and summarizes grades for dashboards and exports.
"""

__version__ = "1.0.0"
__author__ = "Gradebook Team"
