"""Pydantic models for quiz attempts as stored by the progress API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# Share of items that must be correct for the step to count as passed.
# Not configurable per quiz.
PASS_THRESHOLD = 0.5


class QuizAttempt(BaseModel):
    """One learner's attempt at a quiz step, draft or finalized."""

    id: int | str = Field(..., description="Server-assigned attempt id")
    step_id: int | str
    course_id: int | str | None = None
    lesson_id: int | str | None = None
    quiz_title: str | None = None
    answers: str | None = Field(None, description="Serialized answer collection")
    current_question_index: int = Field(default=0, ge=0)
    time_spent_seconds: int | None = Field(default=0, ge=0)
    is_draft: bool = False
    is_graded: bool = True
    score_percentage: float = Field(default=0.0, ge=0.0)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    quiz_content_hash: str | None = None
    feedback: str | None = Field(None, description="Teacher feedback after grading")
    completed_at: datetime | None = None

    @property
    def passed(self) -> bool:
        """Whether the stored score clears the pass threshold."""
        return self.score_percentage >= PASS_THRESHOLD * 100


class AttemptCreate(BaseModel):
    """Body for creating a draft or finalized attempt."""

    step_id: int | str
    course_id: int | str | None = None
    lesson_id: int | str | None = None
    quiz_title: str = "Quiz"
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    score_percentage: float = Field(default=0.0, ge=0.0)
    answers: str
    time_spent_seconds: int | None = None
    is_graded: bool = False
    is_draft: bool = True
    current_question_index: int = Field(default=0, ge=0)
    quiz_content_hash: str | None = None


class AttemptUpdate(BaseModel):
    """Partial update of an existing attempt; unset fields are left alone."""

    answers: str | None = None
    current_question_index: int | None = Field(None, ge=0)
    time_spent_seconds: int | None = Field(None, ge=0)
    is_draft: bool | None = None
    correct_answers: int | None = Field(None, ge=0)
    score_percentage: float | None = Field(None, ge=0.0)
    is_graded: bool | None = None
    total_questions: int | None = Field(None, ge=0)

    def to_payload(self) -> dict[str, Any]:
        """JSON body with only the fields being changed."""
        return self.model_dump(exclude_none=True)
