"""Checks that gate forward progress on missing answers."""

from collections.abc import Sequence

from ..models.answers import AnswerSheet, ListAnswer, PairMapAnswer, ScalarAnswer
from ..models.quiz import (
    GapQuestion,
    ImageContentQuestion,
    LongTextQuestion,
    MultipleChoiceQuestion,
    Question,
    ShortAnswerQuestion,
)


def is_answered(question: Question, sheet: AnswerSheet) -> bool:
    """
    Whether a question has enough input to be submitted.

    Gap questions need every gap filled with non-blank text, free-text
    questions need non-blank text, and display-only images never need input.
    """
    if isinstance(question, ImageContentQuestion):
        return True

    if isinstance(question, GapQuestion):
        gaps = sheet.gap_answers.get(question.id)
        if gaps is None:
            stored = sheet.get(question.id)
            gaps = stored.items if isinstance(stored, ListAnswer) else []
        needed = max(question.gap_count, 1)
        if len(gaps) < needed:
            return False
        return all(str(g or "").strip() for g in gaps[:needed])

    answer = sheet.get(question.id)
    if answer is None:
        return False
    if isinstance(question, (ShortAnswerQuestion, LongTextQuestion)):
        return isinstance(answer, ScalarAnswer) and bool(str(answer.value or "").strip())
    if isinstance(question, MultipleChoiceQuestion):
        return isinstance(answer, ListAnswer) and len(answer.items) > 0
    if isinstance(answer, PairMapAnswer):
        return len(answer.entries) > 0
    return True


def unanswered_questions(questions: Sequence[Question], sheet: AnswerSheet) -> list[str]:
    """Ids of questions that still need an answer, in display order."""
    return [q.id for q in questions if not is_answered(q, sheet)]
