"""Gap marker parsing for fill-in-the-blank and text completion passages."""

import re

from pydantic import BaseModel, Field

from .normalizer import CORRECT_MARKER, normalize

DEFAULT_SEPARATOR = ","

GAP_PATTERN = re.compile(r"\[\[(.*?)\]\]")


class GapSpec(BaseModel):
    """One ``[[...]]`` answer slot with its candidate list."""

    candidates: list[str] = Field(..., min_length=1, description="Normalized candidates in authored order")
    correct_index: int = Field(..., ge=0, description="Index of the correct candidate")

    @property
    def correct(self) -> str:
        """The candidate a learner must type or pick."""
        return self.candidates[self.correct_index]


def count_gaps(text: str | None) -> int:
    """Count gap markers in a passage."""
    return len(GAP_PATTERN.findall(text or ""))


def _parse_gap(inner: str, separator: str) -> GapSpec:
    raw = [piece.strip() for piece in inner.split(separator)]
    raw = [piece for piece in raw if piece]

    # Correctness is decided on the raw pieces, before normalization drops any.
    marked = 0
    for idx, piece in enumerate(raw):
        if CORRECT_MARKER in piece:
            marked = idx

    cleaned = [normalize(piece) for piece in raw]
    candidates = [c for c in cleaned if c]

    if not candidates:
        # Nothing survived normalization: keep the first raw piece as-is.
        fallback = raw[0].replace(CORRECT_MARKER, "").strip() if raw else ""
        return GapSpec(candidates=[fallback], correct_index=0)

    correct = cleaned[marked] if marked < len(cleaned) else ""
    if not correct or correct not in candidates:
        correct = candidates[0]
    return GapSpec(candidates=candidates, correct_index=candidates.index(correct))


def extract_gaps(text: str | None, separator: str | None = DEFAULT_SEPARATOR) -> list[GapSpec]:
    """
    Parse every gap marker in a passage, left to right.

    A candidate containing ``*`` is the correct one (the last marked
    candidate wins if an author marked several); without a marker the first
    candidate is correct. If the chosen candidate normalizes to nothing, the
    first surviving candidate is used instead.

    Args:
        text: Passage text, possibly rich-text HTML
        separator: Candidate separator inside a gap (defaults to a comma)

    Returns:
        One GapSpec per gap in order of appearance
    """
    separator = separator or DEFAULT_SEPARATOR
    return [_parse_gap(match.group(1), separator) for match in GAP_PATTERN.finditer(text or "")]


def extract_correct_answers(text: str | None, separator: str | None = DEFAULT_SEPARATOR) -> list[str]:
    """
    Return the expected answer for each gap in order.

    This vector is what grading compares against and what auto-fill writes.
    """
    return [gap.correct for gap in extract_gaps(text, separator)]
