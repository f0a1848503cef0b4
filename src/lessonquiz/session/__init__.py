"""Quiz navigation state machine."""

from .machine import (
    QuizEvent,
    QuizEventType,
    QuizPhase,
    QuizSession,
    Transition,
    entry_phase,
    transition,
)
from .readiness import is_answered, unanswered_questions

__all__ = [
    "QuizEvent",
    "QuizEventType",
    "QuizPhase",
    "QuizSession",
    "Transition",
    "entry_phase",
    "is_answered",
    "transition",
    "unanswered_questions",
]
