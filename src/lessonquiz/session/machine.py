"""Quiz navigation as one explicit state value and a transition function."""

import time
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, Field

from ..errors import IncompleteAnswerError, InvalidTransitionError
from ..models.answers import AnswerSheet
from ..models.quiz import DisplayMode, ImageContentQuestion, LongTextQuestion, QuizDefinition
from .readiness import is_answered, unanswered_questions


class QuizPhase(str, Enum):
    """Screens a learner moves through."""

    TITLE = "title"
    QUESTION = "question"
    RESULT = "result"
    FEED = "feed"
    COMPLETED = "completed"


class QuizEventType(str, Enum):
    """Learner actions that drive the session."""

    START = "start"
    SUBMIT = "submit"
    ADVANCE = "advance"
    REVIEW = "review"
    FINISH = "finish"
    RESET = "reset"
    GOTO = "goto"


class QuizEvent(BaseModel):
    """A learner action; ``index`` is only used by ``goto``."""

    type: QuizEventType
    index: int | None = Field(None, ge=0, description="Target question for goto")

    @classmethod
    def goto(cls, index: int) -> "QuizEvent":
        return cls(type=QuizEventType.GOTO, index=index)

    def __str__(self) -> str:
        if self.type == QuizEventType.GOTO:
            return f"goto({self.index})"
        return self.type.value


def entry_phase(display_mode: DisplayMode) -> QuizPhase:
    """Phase a session starts in, and returns to on reset."""
    return QuizPhase.FEED if display_mode == DisplayMode.ALL_AT_ONCE else QuizPhase.TITLE


class QuizSession(BaseModel):
    """
    Navigation state of one quiz session.

    ``current_index`` is the question on screen; ``furthest_index`` is the
    furthest question reached and only ever grows, so reviewing earlier
    questions does not lose forward progress.
    """

    display_mode: DisplayMode = DisplayMode.ONE_BY_ONE
    phase: QuizPhase = QuizPhase.TITLE
    current_index: int = Field(default=0, ge=0)
    furthest_index: int = Field(default=0, ge=0)
    feed_checked: bool = Field(default=False, description="Batch answers have been checked")
    started_at: float | None = Field(None, description="Epoch seconds when the learner started")

    @classmethod
    def fresh(cls, display_mode: DisplayMode) -> "QuizSession":
        return cls(display_mode=display_mode, phase=entry_phase(display_mode))

    @classmethod
    def resumed(
        cls,
        display_mode: DisplayMode,
        index: int,
        time_spent_seconds: int | None = None,
        now: float | None = None,
    ) -> "QuizSession":
        """
        Session restored from a draft attempt.

        Args:
            display_mode: Quiz display mode
            index: Stored current question index
            time_spent_seconds: Stored time spent; the start time is moved back by it
            now: Current epoch seconds

        Returns:
            Session in ``question`` (sequential) or ``feed`` (batch)
        """
        now = time.time() if now is None else now
        phase = QuizPhase.FEED if display_mode == DisplayMode.ALL_AT_ONCE else QuizPhase.QUESTION
        return cls(
            display_mode=display_mode,
            phase=phase,
            current_index=index,
            furthest_index=index,
            started_at=now - (time_spent_seconds or 0),
        )

    @classmethod
    def completed(cls, display_mode: DisplayMode, index: int = 0) -> "QuizSession":
        """Session restored from a finalized attempt."""
        return cls(
            display_mode=display_mode,
            phase=QuizPhase.COMPLETED,
            current_index=index,
            furthest_index=index,
        )

    def elapsed_seconds(self, now: float | None = None) -> int:
        """Whole seconds since the learner started, 0 if not started."""
        if self.started_at is None:
            return 0
        now = time.time() if now is None else now
        return max(0, int(now - self.started_at))


class Transition(BaseModel):
    """Result of applying one event."""

    session: QuizSession
    finalize: bool = Field(default=False, description="The quiz was just completed and must be persisted")
    moved: bool = Field(default=False, description="The current question changed")


Handler = Callable[[QuizSession, QuizEvent, QuizDefinition, AnswerSheet, float], Transition]


def _move_to(session: QuizSession, index: int, definition: QuizDefinition) -> Transition:
    if index >= len(definition.questions):
        return Transition(
            session=session.model_copy(update={"phase": QuizPhase.COMPLETED}),
            finalize=True,
        )
    updated = session.model_copy(
        update={
            "phase": QuizPhase.QUESTION,
            "current_index": index,
            "furthest_index": max(session.furthest_index, index),
        }
    )
    return Transition(session=updated, moved=index != session.current_index)


def _start(session, event, definition, sheet, now):
    if session.display_mode == DisplayMode.ALL_AT_ONCE:
        return Transition(session=session.model_copy(update={"phase": QuizPhase.FEED, "started_at": now}))
    started = session.model_copy(update={"started_at": now, "current_index": 0})
    transition = _move_to(started, 0, definition)
    transition.moved = False
    return transition


def _submit(session, event, definition, sheet, now):
    if session.current_index >= len(definition.questions):
        return _move_to(session, session.current_index, definition)
    question = definition.questions[session.current_index]
    if isinstance(question, ImageContentQuestion):
        return _move_to(session, session.current_index + 1, definition)
    if not is_answered(question, sheet):
        raise IncompleteAnswerError([question.id])
    # Free text has nothing to check, so the result screen is skipped.
    if isinstance(question, LongTextQuestion):
        return _move_to(session, session.current_index + 1, definition)
    return Transition(session=session.model_copy(update={"phase": QuizPhase.RESULT}))


def _advance(session, event, definition, sheet, now):
    return _move_to(session, session.current_index + 1, definition)


def _goto(session, event, definition, sheet, now):
    target = event.index
    if target is None or target > session.furthest_index or target >= len(definition.questions):
        raise InvalidTransitionError(session.phase.value, str(event))
    return _move_to(session, target, definition)


def _review(session, event, definition, sheet, now):
    return Transition(session=session.model_copy(update={"phase": QuizPhase.FEED, "feed_checked": True}))


def _finish(session, event, definition, sheet, now):
    missing = unanswered_questions(definition.questions, sheet)
    if missing:
        raise IncompleteAnswerError(missing)
    updated = session.model_copy(update={"phase": QuizPhase.COMPLETED, "feed_checked": True})
    return Transition(session=updated, finalize=True)


def _reset(session, event, definition, sheet, now):
    updated = session.model_copy(
        update={
            "phase": entry_phase(session.display_mode),
            "current_index": 0,
            "feed_checked": False,
            "started_at": now,
        }
    )
    return Transition(session=updated, moved=session.current_index != 0)


TRANSITIONS: dict[tuple[QuizPhase, QuizEventType], Handler] = {
    (QuizPhase.TITLE, QuizEventType.START): _start,
    (QuizPhase.QUESTION, QuizEventType.SUBMIT): _submit,
    (QuizPhase.QUESTION, QuizEventType.GOTO): _goto,
    (QuizPhase.RESULT, QuizEventType.ADVANCE): _advance,
    (QuizPhase.RESULT, QuizEventType.GOTO): _goto,
    (QuizPhase.FEED, QuizEventType.REVIEW): _review,
    (QuizPhase.FEED, QuizEventType.FINISH): _finish,
    (QuizPhase.COMPLETED, QuizEventType.REVIEW): _review,
    (QuizPhase.COMPLETED, QuizEventType.RESET): _reset,
    (QuizPhase.FEED, QuizEventType.RESET): _reset,
}


def transition(
    session: QuizSession,
    event: QuizEvent,
    definition: QuizDefinition,
    sheet: AnswerSheet,
    now: float | None = None,
) -> Transition:
    """
    Apply an event to a session.

    The input session is never mutated.

    Args:
        session: Current session
        event: Learner action
        definition: Quiz being taken
        sheet: Learner answers, used for readiness checks
        now: Epoch seconds, defaults to the current time

    Returns:
        Transition with the new session and follow-up flags

    Raises:
        InvalidTransitionError: If the phase does not accept the event
        IncompleteAnswerError: If a required answer is missing
    """
    handler = TRANSITIONS.get((session.phase, event.type))
    if handler is None:
        raise InvalidTransitionError(session.phase.value, str(event))
    return handler(session, event, definition, sheet, time.time() if now is None else now)
