"""Shared test fixtures and configuration for pytest."""

import json
from datetime import datetime
from typing import Any

import pytest

from lessonquiz.errors import ApiError
from lessonquiz.models.attempt import AttemptCreate, AttemptUpdate, QuizAttempt
from lessonquiz.models.quiz import QuizDefinition, QuizStep
from lessonquiz.persistence.cache import InMemoryCache

SKY_PASSAGE = "The sky is [[blue*,azure,cyan]] and grass is [[green,emerald*]]"


def mixed_quiz_payload() -> dict[str, Any]:
    """One question of every major kind, sequential mode."""
    return {
        "title": "Mixed Quiz",
        "display_mode": "one_by_one",
        "questions": [
            {
                "id": "q1",
                "question_type": "single_choice",
                "question_text": "2 + 2 = ?",
                "options": [{"text": "3"}, {"text": "4"}, {"text": "5"}],
                "correct_answer": 1,
            },
            {
                "id": "q2",
                "question_type": "fill_blank",
                "content_text": SKY_PASSAGE,
            },
            {
                "id": "q3",
                "question_type": "image_content",
                "media_url": "https://example.com/diagram.png",
            },
            {
                "id": "q4",
                "question_type": "multiple_choice",
                "question_text": "Pick the primes",
                "options": ["2", "4", "5", "9"],
                "correct_answer": [0, 2],
            },
            {
                "id": "q5",
                "question_type": "matching",
                "matching_pairs": [
                    {"left": "France", "right": "Paris"},
                    {"left": "Italy", "right": "Rome"},
                    {"left": "Spain", "right": "Madrid"},
                ],
            },
            {
                "id": "q6",
                "question_type": "short_answer",
                "question_text": "Capital of France?",
                "correct_answer": "Paris|City of Light",
            },
        ],
    }


def long_text_quiz_payload() -> dict[str, Any]:
    return {
        "title": "Essay Quiz",
        "questions": [
            {
                "id": "c1",
                "question_type": "single_choice",
                "options": ["yes", "no"],
                "correct_answer": 0,
            },
            {
                "id": "e1",
                "question_type": "long_text",
                "question_text": "Describe the water cycle",
            },
        ],
    }


def batch_quiz_payload() -> dict[str, Any]:
    return {
        "title": "Feed Quiz",
        "display_mode": "all_at_once",
        "questions": [
            {
                "id": "b1",
                "question_type": "single_choice",
                "options": ["a", "b"],
                "correct_answer": 0,
            },
            {
                "id": "b2",
                "question_type": "fill_blank",
                "content_text": SKY_PASSAGE,
            },
        ],
    }


@pytest.fixture
def mixed_quiz() -> QuizDefinition:
    """Create the mixed sequential quiz."""
    return QuizDefinition.model_validate(mixed_quiz_payload())


@pytest.fixture
def long_text_quiz() -> QuizDefinition:
    """Create a quiz with one teacher-graded question."""
    return QuizDefinition.model_validate(long_text_quiz_payload())


@pytest.fixture
def batch_quiz() -> QuizDefinition:
    """Create an all-at-once quiz."""
    return QuizDefinition.model_validate(batch_quiz_payload())


def make_step(payload: dict[str, Any], step_id: int = 42) -> QuizStep:
    return QuizStep(id=step_id, title="Quiz step", content_type="quiz", content_text=json.dumps(payload))


@pytest.fixture
def mixed_step() -> QuizStep:
    return make_step(mixed_quiz_payload())


class FakeAttemptsApi:
    """In-memory AttemptsApi that records every call."""

    def __init__(self, step: QuizStep | None = None, attempts: list[QuizAttempt] | None = None):
        self.step = step
        self.attempts = list(attempts or [])
        self.created: list[AttemptCreate] = []
        self.updated: list[tuple[Any, AttemptUpdate]] = []
        self.fail_list = False
        self.fail_writes = False
        self._next_id = 100

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.updated)

    async def get_step(self, step_id):
        if self.step is None:
            raise ApiError(f"Step {step_id} not found", status_code=404)
        return self.step

    async def list_attempts(self, step_id):
        if self.fail_list:
            raise ApiError("Service unavailable", status_code=503)
        return list(self.attempts)

    async def create_attempt(self, attempt: AttemptCreate) -> QuizAttempt:
        if self.fail_writes:
            raise ApiError("Service unavailable", status_code=503)
        self.created.append(attempt)
        self._next_id += 1
        saved = QuizAttempt(
            id=self._next_id,
            completed_at=None if attempt.is_draft else datetime(2026, 1, 1, 12, 0),
            **attempt.model_dump(),
        )
        self.attempts.insert(0, saved)
        return saved

    async def update_attempt(self, attempt_id, update: AttemptUpdate) -> QuizAttempt:
        if self.fail_writes:
            raise ApiError("Service unavailable", status_code=503)
        self.updated.append((attempt_id, update))
        current = next(a for a in self.attempts if a.id == attempt_id)
        changes = update.to_payload()
        if changes.get("is_draft") is False:
            changes["completed_at"] = datetime(2026, 1, 1, 12, 0)
        saved = current.model_copy(update=changes)
        self.attempts = [saved if a.id == attempt_id else a for a in self.attempts]
        return saved


@pytest.fixture
def fake_api(mixed_step: QuizStep) -> FakeAttemptsApi:
    return FakeAttemptsApi(step=mixed_step)


@pytest.fixture
def memory_cache() -> InMemoryCache:
    return InMemoryCache()
