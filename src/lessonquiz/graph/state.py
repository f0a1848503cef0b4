"""State carried through the quiz load workflow."""

from enum import Enum
from typing import Any, TypedDict

from ..models.answers import AnswerSheet
from ..models.attempt import QuizAttempt
from ..models.quiz import QuizDefinition, QuizStep
from ..session.machine import QuizSession


class LoadSource(str, Enum):
    """Where a loaded session got its answers from."""

    SERVER_DRAFT = "server_draft"
    SERVER_COMPLETED = "server_completed"
    LOCAL_CACHE = "local_cache"
    FRESH = "fresh"


class LoadState(TypedDict):
    """
    State for opening a quiz step.

    The API and cache collaborators travel in the state so every node can be
    called on its own with a plain dict.
    """

    # Input
    step_id: int | str
    question_id: str | None
    now: float
    api: Any  # AttemptsApi
    cache: Any  # LocalCache

    # Step and version
    step: QuizStep | None
    definition: QuizDefinition | None
    content_hash: str | None

    # Server attempts
    attempts: list[QuizAttempt]
    attempts_error: str | None
    hash_matches: bool

    # Outcome
    attempt: QuizAttempt | None
    session: QuizSession | None
    sheet: AnswerSheet | None
    source: str | None
    invalidated: bool
    passed: bool | None


def create_initial_state(
    step_id: int | str,
    api: Any,
    cache: Any,
    now: float,
    question_id: str | None = None,
    step: QuizStep | None = None,
) -> LoadState:
    """
    Create initial state for the load workflow.

    Args:
        step_id: Step being opened
        api: AttemptsApi implementation
        cache: LocalCache implementation
        now: Current epoch seconds, used to rebuild elapsed time
        question_id: Optional question to open directly
        step: Step already fetched by the caller; skips the definition fetch

    Returns:
        Initial LoadState
    """
    return LoadState(
        step_id=step_id,
        question_id=question_id,
        now=now,
        api=api,
        cache=cache,
        step=step,
        definition=None,
        content_hash=None,
        attempts=[],
        attempts_error=None,
        hash_matches=True,
        attempt=None,
        session=None,
        sheet=None,
        source=None,
        invalidated=False,
        passed=None,
    )
