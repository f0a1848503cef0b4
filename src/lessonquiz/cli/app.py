"""Typer CLI application for inspecting quizzes and learner progress."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from lessonquiz import __version__
from lessonquiz.config.settings import get_settings
from lessonquiz.errors import QuizEngineError
from lessonquiz.grading.answer_key import build_answer_key
from lessonquiz.grading.gaps import extract_gaps
from lessonquiz.grading.scoring import ScoreResult, score_sheet
from lessonquiz.models.quiz import QuizDefinition
from lessonquiz.persistence.api import HttpAttemptsApi
from lessonquiz.persistence.cache import JsonFileCache
from lessonquiz.persistence.codec import decode_sheet, encode_value
from lessonquiz.persistence.hashing import content_hash
from lessonquiz.persistence.history import summarize
from lessonquiz.persistence.reconciler import LoadResult, ProgressReconciler

app = typer.Typer(
    name="lessonquiz",
    help="Quiz grading and progress persistence for lesson steps",
    add_completion=False,
)

console = Console()


def read_text(path: Path) -> str:
    """Read a file, exiting with an error message if it cannot be read."""
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error:[/red] cannot read {path}: {e}", style="bold")
        raise typer.Exit(code=1)


def load_definition(path: Path) -> QuizDefinition:
    """Parse a quiz definition file, exiting on invalid content."""
    try:
        return QuizDefinition.from_content_text(read_text(path))
    except QuizEngineError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1)


@app.command()
def gaps(
    passage: str = typer.Argument(..., help="Passage text, or a path to a file containing it"),
    separator: str = typer.Option(",", "--separator", "-s", help="Separator between gap candidates"),
) -> None:
    """
    Show the gaps found in a passage.

    Example:
        lessonquiz gaps "The sky is [[blue*,azure]] today"
    """
    path = Path(passage)
    text = read_text(path) if path.is_file() else passage

    specs = extract_gaps(text, separator)
    if not specs:
        console.print("[yellow]No gaps found.[/yellow]")
        return

    table = Table(title="Gaps", border_style="cyan")
    table.add_column("#", style="cyan")
    table.add_column("Candidates", style="white")
    table.add_column("Correct", style="green")
    for idx, spec in enumerate(specs, start=1):
        table.add_row(str(idx), escape(", ".join(spec.candidates)), escape(spec.correct))

    console.print(table)


@app.command("answer-key")
def answer_key(
    definition_file: Path = typer.Argument(..., help="Quiz definition JSON file"),
) -> None:
    """Show the correct answer to every question."""
    definition = load_definition(definition_file)
    key = build_answer_key(definition.questions)
    merged = key.merged()

    table = Table(title=f"Answer Key: {escape(definition.title)}", border_style="green")
    table.add_column("No.", style="cyan")
    table.add_column("Question", style="white")
    table.add_column("Type", style="white")
    table.add_column("Answer", style="green")

    for idx, question in enumerate(definition.questions):
        if question.id not in merged:
            continue
        first, last = definition.display_range(idx)
        number = str(first) if first == last else f"{first}-{last}"
        answer = encode_value(merged[question.id])
        table.add_row(number, escape(question.id), question.question_type, escape(str(answer)))

    console.print(table)


@app.command()
def score(
    definition_file: Path = typer.Argument(..., help="Quiz definition JSON file"),
    answers_file: Path = typer.Argument(..., help="Serialized answer collection"),
) -> None:
    """
    Score saved answers against a quiz definition.

    Example:
        lessonquiz score quiz.json answers.json
    """
    definition = load_definition(definition_file)
    sheet = decode_sheet(read_text(answers_file), definition)
    result = score_sheet(definition.questions, sheet)
    display_score(result)


@app.command("hash")
def hash_command(
    definition_file: Path = typer.Argument(..., help="Quiz definition JSON file"),
    fallback: bool = typer.Option(False, "--fallback", help="Use the 32-bit rolling checksum"),
) -> None:
    """Print the content hash stored with attempts of this quiz."""
    typer.echo(content_hash(read_text(definition_file), use_fallback=fallback))


@app.command()
def resume(
    step_id: str = typer.Argument(..., help="Lesson step holding the quiz"),
    question_id: Optional[str] = typer.Option(None, "--question", "-q", help="Open directly at this question"),
    course_id: Optional[str] = typer.Option(None, "--course", help="Course id recorded on new attempts"),
    lesson_id: Optional[str] = typer.Option(None, "--lesson", help="Lesson id recorded on new attempts"),
) -> None:
    """Show where a learner would resume a quiz step."""
    settings = get_settings()

    async def run() -> tuple[ProgressReconciler, LoadResult]:
        async with HttpAttemptsApi.from_settings(settings) as api:
            reconciler = ProgressReconciler(
                api,
                JsonFileCache(settings.cache_dir),
                step_id,
                course_id=course_id,
                lesson_id=lesson_id,
                autosave_delay=settings.autosave_delay_seconds,
            )
            loaded = await reconciler.load_or_init(question_id=question_id)
            await reconciler.close(flush=False)
            return reconciler, loaded

    try:
        reconciler, loaded = asyncio.run(run())
    except QuizEngineError as e:
        console.print(f"\n[red]Error loading step {escape(step_id)}:[/red] {e}", style="bold")
        raise typer.Exit(code=1)

    display_resume(reconciler, loaded)


@app.command()
def info() -> None:
    """Display information about lessonquiz."""
    settings = get_settings()
    info_text = f"""
[bold cyan]Lesson Quiz Engine[/bold cyan]
Version: {__version__}

[bold]Question types:[/bold]
  • single/multiple choice, media questions
  • short answer and long text
  • fill in the blank and text completion
  • matching, image content

[bold]Persistence:[/bold]
  • API: {escape(settings.api_base_url)}
  • Local cache: {escape(settings.cache_dir)}
  • Autosave delay: {settings.autosave_delay_seconds:g}s
    """
    console.print(Panel(info_text, title="lessonquiz", border_style="cyan"))


def display_score(result: ScoreResult) -> None:
    """Display a score breakdown."""
    table = Table(title="Score", border_style="green")
    table.add_column("Question", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Correct", style="white")

    for outcome in result.results:
        mark = f"{outcome.correct}/{outcome.total}"
        if outcome.needs_review:
            mark += " [yellow](review)[/yellow]"
        table.add_row(escape(outcome.question_id), outcome.question_type, mark)

    console.print(table)
    status = "[green]PASSED[/green]" if result.passed else "[red]NOT PASSED[/red]"
    console.print(f"\nScore: {result.score}/{result.total} ({result.percentage:.0f}%) {status}")
    if result.total_gaps:
        console.print(f"Gaps: {result.correct_gaps}/{result.total_gaps}")


def display_resume(reconciler: ProgressReconciler, loaded: LoadResult) -> None:
    """Display the restored session."""
    session = loaded.session
    table = Table(title=f"Step {escape(str(reconciler.step_id))}", show_header=False, border_style="cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Quiz", escape(reconciler.definition.title))
    table.add_row("Source", loaded.source.value)
    table.add_row("Phase", session.phase.value)
    table.add_row("Question", f"{session.current_index + 1} of {len(reconciler.definition.questions)}")
    table.add_row("Answers", str(len(loaded.sheet.merged())))
    if loaded.attempt is not None:
        table.add_row("Attempt", f"{loaded.attempt.id} ({'draft' if loaded.attempt.is_draft else 'finalized'})")
    if loaded.invalidated:
        table.add_row("Note", "[yellow]Quiz changed since the last attempt; answers discarded[/yellow]")

    console.print()
    console.print(table)

    if loaded.attempt is not None and not loaded.attempt.is_draft:
        summary = summarize(
            reconciler.attempts,
            loaded.attempt,
            score_sheet(reconciler.definition.questions, loaded.sheet),
            reconciler.definition.has_long_text,
        )
        if summary.pending_review:
            console.print("\n[yellow]Pending teacher review[/yellow]")
        else:
            status = "[green]PASSED[/green]" if summary.passed else "[red]NOT PASSED[/red]"
            line = f"\nResult: {summary.percentage}% {status}"
            if summary.score_change is not None:
                line += f" ({summary.score_change:+d} vs previous)"
            console.print(line)


def setup_logging(level: str) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LESSONQUIZ_LOG_LEVEL"),
) -> None:
    """
    Lesson Quiz Engine - grade quizzes and restore learner progress.
    """
    setup_logging(log_level or get_settings().log_level)


if __name__ == "__main__":
    app()
