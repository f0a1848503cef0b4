"""Learner answers, tagged by shape."""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class ScalarAnswer(BaseModel):
    """A single value: an option index or a piece of free text."""

    kind: Literal["scalar"] = "scalar"
    value: int | float | str | None = None


class ListAnswer(BaseModel):
    """An ordered list: selected option indices, or one string per gap."""

    kind: Literal["list"] = "list"
    items: list[int | float | str | None] = Field(default_factory=list)


class PairMapAnswer(BaseModel):
    """Matching answer: left index -> right index, in insertion order."""

    kind: Literal["pairmap"] = "pairmap"
    entries: list[tuple[int, int]] = Field(default_factory=list)

    def as_dict(self) -> dict[int, int]:
        return dict(self.entries)


Answer = Annotated[Union[ScalarAnswer, ListAnswer, PairMapAnswer], Field(discriminator="kind")]


def answer_from_value(value: Any) -> Answer:
    """
    Wrap a plain Python value in the matching answer shape.

    Args:
        value: Index, text, list/set of indices or gap strings, or a
            left -> right mapping

    Returns:
        ScalarAnswer, ListAnswer or PairMapAnswer
    """
    if isinstance(value, (ScalarAnswer, ListAnswer, PairMapAnswer)):
        return value
    if isinstance(value, Mapping):
        return PairMapAnswer(entries=[(int(k), int(v)) for k, v in value.items()])
    if isinstance(value, (set, frozenset)):
        return ListAnswer(items=sorted(value))
    if isinstance(value, (list, tuple)):
        return ListAnswer(items=list(value))
    return ScalarAnswer(value=value)


class AnswerSheet(BaseModel):
    """
    Everything a learner has entered for one quiz.

    ``answers`` holds choice, free-text and matching answers; ``gap_answers``
    holds the per-gap strings of fill-in questions. Both are keyed by
    question id.
    """

    answers: dict[str, Answer] = Field(default_factory=dict)
    gap_answers: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.answers and not self.gap_answers

    def get(self, question_id: str) -> Answer | None:
        return self.answers.get(question_id)

    def set_answer(self, question_id: str, value: Any) -> None:
        """Store a choice, free-text or matching answer."""
        self.answers[question_id] = answer_from_value(value)

    def clear_answer(self, question_id: str) -> None:
        self.answers.pop(question_id, None)
        self.gap_answers.pop(question_id, None)

    def set_gap(self, question_id: str, index: int, text: str) -> None:
        """
        Store the learner's text for one gap.

        Args:
            question_id: Gap question id
            index: Zero-based gap position
            text: Typed or selected text
        """
        if index < 0:
            raise ValueError(f"Gap index must be non-negative, got {index}")
        gaps = self.gap_answers.setdefault(question_id, [])
        if len(gaps) <= index:
            gaps.extend([""] * (index + 1 - len(gaps)))
        gaps[index] = text

    def merged(self) -> dict[str, Answer]:
        """Single collection as persisted on the server; gap entries win on clashes."""
        combined: dict[str, Answer] = dict(self.answers)
        for question_id, gaps in self.gap_answers.items():
            combined[question_id] = ListAnswer(items=list(gaps))
        return combined
