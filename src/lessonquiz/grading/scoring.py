"""Scoring across a heterogeneous question list."""

import logging
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field

from ..models.answers import Answer, AnswerSheet, ListAnswer, PairMapAnswer, ScalarAnswer
from ..models.attempt import PASS_THRESHOLD
from ..models.quiz import (
    GapQuestion,
    ImageContentQuestion,
    LongTextQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    Question,
    ShortAnswerQuestion,
    SingleChoiceQuestion,
)
from .gaps import extract_correct_answers

logger = logging.getLogger(__name__)


class QuestionResult(BaseModel):
    """Outcome for one scored question."""

    question_id: str
    question_type: str
    correct: int = Field(..., ge=0, description="Items answered correctly")
    total: int = Field(..., ge=0, description="Items this question contributes")
    needs_review: bool = Field(default=False, description="Credit is provisional until a teacher grades it")

    @property
    def is_correct(self) -> bool:
        return self.total > 0 and self.correct == self.total


class ScoreResult(BaseModel):
    """Score and total, with gap-level and question-level breakdown."""

    score: int = 0
    total: int = 0
    total_gaps: int = 0
    correct_gaps: int = 0
    regular_questions: int = 0
    correct_regular: int = 0
    results: list[QuestionResult] = Field(default_factory=list)

    @property
    def percentage(self) -> float:
        """Score as a percentage of total (0 for an empty quiz)."""
        return (self.score / self.total * 100) if self.total > 0 else 0.0

    @property
    def passed(self) -> bool:
        """Whether the score clears the fixed pass threshold."""
        return self.total > 0 and self.score / self.total >= PASS_THRESHOLD

    @property
    def needs_review(self) -> bool:
        return any(r.needs_review for r in self.results)


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _gap_answers_for(
    question: GapQuestion,
    answers: Mapping[str, Answer],
    gap_answers: Mapping[str, Sequence[str | None]],
) -> Sequence[object]:
    if question.id in gap_answers:
        return gap_answers[question.id]
    # Restored attempts may still carry the gap list in the main collection.
    stored = answers.get(question.id)
    if isinstance(stored, ListAnswer):
        return stored.items
    return []


def grade_gaps(question: GapQuestion, learner: Sequence[object]) -> QuestionResult:
    """
    Grade each gap against the canonical answer at the same position.

    Comparison is trimmed and case-insensitive; missing or extra entries are
    simply not correct.
    """
    expected = extract_correct_answers(question.passage, question.gap_separator)
    correct = 0
    for idx, given in enumerate(learner):
        if idx >= len(expected):
            break
        if str(given or "").strip().lower() == expected[idx].strip().lower():
            correct += 1
    return QuestionResult(
        question_id=question.id,
        question_type=question.question_type,
        correct=correct,
        total=len(expected),
    )


def is_answer_correct(question: Question, answer: Answer | None) -> bool:
    """
    Decide a single-item question.

    Args:
        question: Any non-gap, non-image question
        answer: Learner answer, or None if unanswered

    Returns:
        True if the answer earns the item
    """
    if answer is None:
        return False

    if isinstance(question, SingleChoiceQuestion):
        return isinstance(answer, ScalarAnswer) and _is_index(answer.value) and answer.value == question.correct_answer

    if isinstance(question, MultipleChoiceQuestion):
        if not isinstance(answer, ListAnswer) or not all(_is_index(i) for i in answer.items):
            return False
        return set(answer.items) == question.correct_answer

    if isinstance(question, ShortAnswerQuestion):
        if not isinstance(answer, ScalarAnswer):
            return False
        given = str(answer.value if answer.value is not None else "").strip().lower()
        return given in question.accepted_variants

    if isinstance(question, LongTextQuestion):
        return isinstance(answer, ScalarAnswer) and bool(str(answer.value or "").strip())

    if isinstance(question, MatchingQuestion):
        if not isinstance(answer, PairMapAnswer):
            return False
        expected = {i: i for i in range(len(question.matching_pairs))}
        return answer.as_dict() == expected

    return False


def grade_question(
    question: Question,
    answers: Mapping[str, Answer],
    gap_answers: Mapping[str, Sequence[str | None]],
) -> QuestionResult | None:
    """Grade one question; display-only questions return None."""
    if isinstance(question, ImageContentQuestion):
        return None
    if isinstance(question, GapQuestion):
        return grade_gaps(question, _gap_answers_for(question, answers, gap_answers))
    correct = is_answer_correct(question, answers.get(question.id))
    return QuestionResult(
        question_id=question.id,
        question_type=question.question_type,
        correct=int(correct),
        total=1,
        needs_review=isinstance(question, LongTextQuestion),
    )


def score_quiz(
    questions: Sequence[Question],
    answers: Mapping[str, Answer],
    gap_answers: Mapping[str, Sequence[str | None]] | None = None,
) -> ScoreResult:
    """
    Compute score and total for a quiz.

    Gap questions add one item per gap; every other answerable question adds
    one item; ``image_content`` adds nothing. Long text earns its item when
    non-empty and is flagged for teacher review.

    Args:
        questions: Questions in display order
        answers: Choice, free-text and matching answers by question id
        gap_answers: Per-gap strings by question id

    Returns:
        ScoreResult with totals and per-question results
    """
    gap_answers = gap_answers or {}
    result = ScoreResult()

    for question in questions:
        outcome = grade_question(question, answers, gap_answers)
        if outcome is None:
            continue
        result.results.append(outcome)
        if isinstance(question, GapQuestion):
            result.total_gaps += outcome.total
            result.correct_gaps += outcome.correct
        else:
            result.regular_questions += outcome.total
            result.correct_regular += outcome.correct

    result.score = result.correct_gaps + result.correct_regular
    result.total = result.total_gaps + result.regular_questions
    logger.debug(
        "Scored %d questions: %d/%d (gaps %d/%d)",
        len(result.results),
        result.score,
        result.total,
        result.correct_gaps,
        result.total_gaps,
    )
    return result


def score_sheet(questions: Sequence[Question], sheet: AnswerSheet) -> ScoreResult:
    """Score an AnswerSheet."""
    return score_quiz(questions, sheet.answers, sheet.gap_answers)
