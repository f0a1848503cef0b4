"""Data models for quizzes, answers and attempts."""

from .answers import (
    Answer,
    AnswerSheet,
    ListAnswer,
    PairMapAnswer,
    ScalarAnswer,
    answer_from_value,
)
from .attempt import PASS_THRESHOLD, AttemptCreate, AttemptUpdate, QuizAttempt
from .quiz import (
    ChoiceOption,
    DisplayMode,
    GapQuestion,
    ImageContentQuestion,
    LongTextQuestion,
    MatchingPair,
    MatchingQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionType,
    QuizDefinition,
    QuizStep,
    ShortAnswerQuestion,
    SingleChoiceQuestion,
)

__all__ = [
    "Answer",
    "AnswerSheet",
    "ScalarAnswer",
    "ListAnswer",
    "PairMapAnswer",
    "answer_from_value",
    "PASS_THRESHOLD",
    "QuizAttempt",
    "AttemptCreate",
    "AttemptUpdate",
    "QuestionType",
    "DisplayMode",
    "ChoiceOption",
    "MatchingPair",
    "Question",
    "SingleChoiceQuestion",
    "MultipleChoiceQuestion",
    "ShortAnswerQuestion",
    "LongTextQuestion",
    "GapQuestion",
    "MatchingQuestion",
    "ImageContentQuestion",
    "QuizDefinition",
    "QuizStep",
]
