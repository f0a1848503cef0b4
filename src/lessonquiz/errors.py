"""Exceptions raised by the quiz engine."""


class QuizEngineError(Exception):
    """Base class for all quiz engine errors."""


class DefinitionError(QuizEngineError):
    """Step content could not be parsed into a quiz definition."""


class InvalidTransitionError(QuizEngineError):
    """An event was dispatched in a phase that does not accept it."""

    def __init__(self, phase: str, event: str):
        self.phase = phase
        self.event = event
        super().__init__(f"Event '{event}' is not allowed in phase '{phase}'")


class IncompleteAnswerError(QuizEngineError):
    """Forward progress was requested while required answers are missing."""

    def __init__(self, question_ids: list[str]):
        self.question_ids = question_ids
        super().__init__(f"Unanswered questions: {', '.join(question_ids)}")


class ApiError(QuizEngineError):
    """A request to the attempts API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class FinalizeError(QuizEngineError):
    """A completed attempt could not be persisted on the server."""
