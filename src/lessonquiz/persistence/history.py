"""Attempt history and the numbers shown on the completed screen."""

import math
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ..grading.scoring import ScoreResult
from ..models.attempt import PASS_THRESHOLD, QuizAttempt


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completed_attempts(attempts: Iterable[QuizAttempt]) -> list[QuizAttempt]:
    """Finalized attempts with a completion time, oldest first."""
    finished = [a for a in attempts if not a.is_draft and a.completed_at is not None]
    return sorted(finished, key=lambda a: a.completed_at)


def is_pending_review(attempt: QuizAttempt | None, has_long_text: bool) -> bool:
    """Long text answers stay pending until a teacher grades the attempt."""
    return has_long_text and (attempt is None or not attempt.is_graded)


def effective_percentage(attempt: QuizAttempt | None, score: ScoreResult | None) -> int:
    """
    Percentage to display for the current attempt.

    A graded attempt shows its stored score, which a teacher may have set;
    otherwise the score is computed from the answers.
    """
    if attempt is not None and attempt.is_graded:
        return round_half_up(attempt.score_percentage)
    if score is not None:
        return round_half_up(score.percentage)
    return 0


def score_change(history: list[QuizAttempt], percentage: int) -> int | None:
    """Change versus the attempt before the latest one, or None for a first attempt."""
    if len(history) < 2:
        return None
    return percentage - round_half_up(history[-2].score_percentage)


class ResultSummary(BaseModel):
    """Completed-screen figures for one step."""

    percentage: int = Field(..., ge=0)
    passed: bool
    pending_review: bool
    score_change: int | None = None
    history: list[int] = Field(default_factory=list, description="Rounded percentages, oldest first")


def summarize(
    attempts: Iterable[QuizAttempt],
    current: QuizAttempt | None,
    score: ScoreResult | None,
    has_long_text: bool,
) -> ResultSummary:
    """
    Build the completed-screen summary.

    Args:
        attempts: All attempts for the step, in any order
        current: Attempt just finished or restored
        score: Score computed from the learner's answers, if available
        has_long_text: Whether the quiz contains teacher-graded questions

    Returns:
        ResultSummary
    """
    history = completed_attempts(attempts)
    percentage = effective_percentage(current, score)
    return ResultSummary(
        percentage=percentage,
        passed=percentage >= PASS_THRESHOLD * 100,
        pending_review=is_pending_review(current, has_long_text),
        score_change=score_change(history, percentage),
        history=[round_half_up(a.score_percentage) for a in history],
    )
