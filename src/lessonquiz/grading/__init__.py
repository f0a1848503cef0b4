"""Text normalization, gap extraction and scoring."""

# Note: scoring is not re-exported here to avoid a circular import with
# lessonquiz.models.quiz. Import it directly:
# from lessonquiz.grading.scoring import score_quiz, ScoreResult

from .gaps import GapSpec, count_gaps, extract_correct_answers, extract_gaps
from .normalizer import normalize

__all__ = [
    "GapSpec",
    "count_gaps",
    "extract_correct_answers",
    "extract_gaps",
    "normalize",
]
