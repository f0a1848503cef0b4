"""Answer sheet pre-filled with the correct answers."""

from collections.abc import Sequence

from ..models.answers import AnswerSheet, PairMapAnswer
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

LONG_TEXT_PLACEHOLDER = "Sample answer for development testing"


def build_answer_key(questions: Sequence[Question]) -> AnswerSheet:
    """
    Build an AnswerSheet that answers every question correctly.

    Teachers use it to reveal the expected answers; in development it fills a
    quiz in one go. Gap vectors come from the extractor so they match what
    grading expects byte for byte.

    Args:
        questions: Questions in display order

    Returns:
        AnswerSheet that scores full marks
    """
    sheet = AnswerSheet()
    for question in questions:
        if isinstance(question, ImageContentQuestion):
            continue
        if isinstance(question, GapQuestion):
            sheet.gap_answers[question.id] = extract_correct_answers(question.passage, question.gap_separator)
        elif isinstance(question, LongTextQuestion):
            sheet.set_answer(question.id, LONG_TEXT_PLACEHOLDER)
        elif isinstance(question, ShortAnswerQuestion):
            variants = [v.strip() for v in question.correct_answer.split("|") if v.strip()]
            sheet.set_answer(question.id, variants[0] if variants else "")
        elif isinstance(question, MultipleChoiceQuestion):
            sheet.set_answer(question.id, set(question.correct_answer))
        elif isinstance(question, SingleChoiceQuestion):
            sheet.set_answer(question.id, question.correct_answer)
        elif isinstance(question, MatchingQuestion):
            sheet.answers[question.id] = PairMapAnswer(entries=[(i, i) for i in range(len(question.matching_pairs))])
    return sheet
