"""
Gradebook CLI Application.

Provides a command-line interface for computing rubric grades,
summarizing exported grades, and checking rubrics.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from gradebook.config import get_settings
from gradebook.grading import InvalidArgument, SubmissionError, SubmissionParser, compute_grade
from gradebook.grading.aggregator import letter_grade_for
from gradebook.models import Grade, GradeComputation, GradeSubmission, Rubric
from gradebook.reporting import analyze, summarize_students
from gradebook.rubric import RubricParseError, RubricParser, RubricValidator

# Create Typer app
app = typer.Typer(
    name="gradebook",
    help="Rubric grading rules: scores, letter grades and grade summaries",
    add_completion=False,
)

console = Console()

_GRADES = TypeAdapter(list[Grade])


@app.callback()
def main(
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log debug output"),
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    level = logging.DEBUG if debug else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def grade(
    rubric_file: Annotated[Path, typer.Argument(help="Path to a rubric JSON or text file")],
    submission_file: Annotated[Path, typer.Argument(help="Path to the submission JSON file")],
    max_points: Annotated[
        Optional[int],
        typer.Option("--max-points", "-m", help="Exercise max points (overrides the submission)"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show the per-criterion breakdown"),
    ] = False,
) -> None:
    """
    Compute the score of a rubric grading submission.

    The submission lists the level chosen for each criterion; the total is
    the sum of the level points and the percentage is taken against the
    exercise's max points.
    """
    try:
        for path in (rubric_file, submission_file):
            if not path.exists():
                console.print(f"[red]Error:[/red] File not found: {path}")
                raise typer.Exit(1)

        rubric = _load_rubric(rubric_file)
        submission = SubmissionParser().parse(
            submission_file.read_text(encoding="utf-8"),
            rubric=rubric,
            max_points=max_points,
        )

        result = compute_grade(submission.criteria_grades, submission.max_points)

    except RubricParseError as e:
        console.print(f"[red]Rubric Parse Error:[/red] {e}")
        raise typer.Exit(1)
    except SubmissionError as e:
        console.print(f"[red]Submission Error:[/red] {e}")
        raise typer.Exit(1)
    except InvalidArgument as e:
        console.print(f"[red]Invalid Argument:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(result.model_dump_json(by_alias=True))
        return

    _display_result(result, submission, rubric, verbose)


@app.command()
def summary(
    grades_file: Annotated[Path, typer.Argument(help="Path to a JSON list of grades")],
) -> None:
    """
    Summarize exported grades per student.

    Shows each student's best and average grade, followed by the letter
    distribution across all grades.
    """
    if not grades_file.exists():
        console.print(f"[red]Error:[/red] File not found: {grades_file}")
        raise typer.Exit(1)

    try:
        grades = _GRADES.validate_json(grades_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Invalid grades file:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Student Grades")
    table.add_column("Student", style="cyan")
    table.add_column("Completed", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Letter", justify="center")
    table.add_column("Average", justify="right")

    for student in summarize_students(grades):
        table.add_row(
            student.student_id,
            str(student.completed_exercises),
            f"{student.best_percentage}%",
            student.best_letter_grade.value,
            f"{student.average_grade}%",
        )

    console.print(table)

    analytics = analyze(grades)
    distribution = "  ".join(
        f"{letter.value}: {count}" for letter, count in analytics.grade_distribution.items()
    )
    console.print(
        Panel(
            f"Grades: {analytics.total_grades}\n"
            f"Average: {analytics.average_percentage}%\n"
            f"Distribution: {distribution}",
            title="Overall",
        )
    )


@app.command()
def validate_rubric(
    rubric_file: Annotated[Path, typer.Argument(help="Path to a rubric JSON or text file")],
) -> None:
    """
    Validate a rubric file without grading anything.

    JSON files are loaded as rubrics; any other file is parsed as
    assessment-rubric text.
    """
    try:
        if not rubric_file.exists():
            console.print(f"[red]Error:[/red] File not found: {rubric_file}")
            raise typer.Exit(1)

        rubric = _load_rubric(rubric_file)

        validator = RubricValidator()
        is_valid, issues = validator.validate(rubric)
        warnings = validator.check_weights(rubric)

        console.print(Panel(f"[bold]{rubric.name}[/bold]", title="Rubric"))

        table = Table(title="Criteria")
        table.add_column("Name", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Description")

        for criterion in rubric.criteria:
            table.add_row(criterion.name, f"{criterion.weight}%", criterion.description[:50])

        console.print(table)

        levels = Table(title="Levels")
        levels.add_column("Name", style="cyan")
        levels.add_column("Points", justify="right")

        for level in rubric.levels:
            levels.add_row(level.name, str(level.points))

        console.print(levels)
        console.print(f"\n[bold]Total Weight:[/bold] {rubric.total_weight}%")

        if is_valid:
            console.print("\n[green]✓ Rubric is valid[/green]")
        else:
            console.print("\n[yellow]⚠ Validation issues found:[/yellow]")
            for issue in issues:
                console.print(f"  • {issue}")

        for warning in warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")

    except RubricParseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def letter(
    percentage: Annotated[int, typer.Argument(help="Percentage score")],
) -> None:
    """Print the letter grade for a percentage."""
    console.print(letter_grade_for(percentage).value)


def _load_rubric(path: Path) -> Rubric:
    """Load a rubric from JSON, or parse it from assessment-rubric text."""
    content = path.read_text(encoding="utf-8")

    if path.suffix.lower() != ".json":
        return RubricParser().parse(content, name=path.stem)

    try:
        return Rubric.model_validate_json(content)
    except ValidationError as e:
        raise RubricParseError(f"Invalid rubric JSON in {path}: {e}") from e


def _display_result(
    result: GradeComputation,
    submission: GradeSubmission,
    rubric: Rubric,
    verbose: bool = False,
) -> None:
    """Display a computed grade in a panel, with an optional breakdown."""

    score_color = "green" if result.percentage >= 70 else "yellow" if result.percentage >= 60 else "red"
    console.print(
        Panel(
            f"[{score_color}][bold]{result.total_points} / {submission.max_points}[/bold] "
            f"({result.percentage}%) {result.letter_grade.value}[/{score_color}]",
            title="Final Score",
        )
    )

    if verbose:
        table = Table(title="Criteria Breakdown")
        table.add_column("Criterion", style="cyan")
        table.add_column("Level")
        table.add_column("Points", justify="right")
        table.add_column("Comments")

        for criteria_grade in submission.criteria_grades:
            criterion = rubric.get_criterion(criteria_grade.criteria_id)
            level = rubric.get_level(criteria_grade.level_id)
            table.add_row(
                criterion.name if criterion else criteria_grade.criteria_id,
                level.name if level else criteria_grade.level_id,
                str(criteria_grade.points),
                criteria_grade.comments,
            )

        console.print(table)

        graded_ids = {g.criteria_id for g in submission.criteria_grades}
        ungraded = [c.name for c in rubric.criteria if c.id not in graded_ids]
        if ungraded:
            console.print(f"[yellow]Ungraded criteria:[/yellow] {', '.join(ungraded)}")


if __name__ == "__main__":
    app()
