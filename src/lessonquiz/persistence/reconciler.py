"""Keeps one learner's quiz progress in sync between memory, the local cache and the server."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from ..errors import ApiError, FinalizeError
from ..grading.scoring import ScoreResult, score_sheet
from ..graph.state import LoadSource, create_initial_state
from ..graph.workflow import run_load_workflow
from ..models.answers import AnswerSheet
from ..models.attempt import AttemptCreate, AttemptUpdate, QuizAttempt
from ..models.quiz import QuizDefinition, QuizStep
from ..session.machine import QuizEvent, QuizEventType, QuizPhase, QuizSession, Transition, transition
from .api import AttemptsApi
from .cache import LocalCache, StepCache
from .codec import dumps_answers, dumps_gap_answers, encode_sheet
from .scheduler import DebounceTimer

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY = 3.0


class LoadResult(BaseModel):
    """What the learner sees when a quiz step opens."""

    session: QuizSession
    sheet: AnswerSheet
    attempt: QuizAttempt | None = None
    source: LoadSource
    invalidated: bool = False
    passed: bool | None = None


class ProgressReconciler:
    """
    Orchestrates one quiz session on one step.

    The server is the system of record. The local cache only holds answers
    (never the position) and is written on every change, while the server
    draft is written after a quiet period. Finalizing a quiz clears the
    local cache only once the server has accepted the result.

    Example:
        >>> reconciler = ProgressReconciler(api, InMemoryCache(), step_id=42)
        >>> await reconciler.load_or_init()
        >>> await reconciler.dispatch(QuizEvent(type=QuizEventType.START))
        >>> reconciler.set_answer("q1", 1)
    """

    def __init__(
        self,
        api: AttemptsApi,
        cache: LocalCache,
        step_id: int | str,
        course_id: int | str | None = None,
        lesson_id: int | str | None = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
        clock: Callable[[], float] = time.time,
    ):
        self.api = api
        self.step_id = step_id
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.clock = clock
        self.step_cache = StepCache(cache, step_id)
        self.timer = DebounceTimer(autosave_delay)
        self._cache = cache
        self._save_lock = asyncio.Lock()

        self.step: QuizStep | None = None
        self.definition = QuizDefinition()
        self.content_hash: str | None = None
        self.session = QuizSession()
        self.sheet = AnswerSheet()
        self.attempts: list[QuizAttempt] = []
        self.attempt: QuizAttempt | None = None
        self.passed: bool | None = None
        self.last_score: ScoreResult | None = None

    # Loading

    async def load_or_init(self, question_id: str | None = None, step: QuizStep | None = None) -> LoadResult:
        """
        Open the step: resume server progress, fall back to the local cache, or start fresh.

        Args:
            question_id: Open a fresh session directly at this question
            step: Step already fetched by the caller

        Returns:
            LoadResult describing the restored or fresh session

        Raises:
            ApiError: If the step itself cannot be fetched
            DefinitionError: If the step does not hold a valid quiz
        """
        initial = create_initial_state(
            self.step_id, self.api, self._cache, self.clock(), question_id=question_id, step=step
        )
        final = await run_load_workflow(initial)

        self.step = final["step"]
        self.definition = final["definition"]
        self.content_hash = final["content_hash"]
        self.session = final["session"]
        self.sheet = final["sheet"]
        self.attempts = final["attempts"]
        self.attempt = final["attempt"]
        self.passed = final["passed"]

        result = LoadResult(
            session=self.session,
            sheet=self.sheet,
            attempt=self.attempt,
            source=LoadSource(final["source"]),
            invalidated=final["invalidated"],
            passed=self.passed,
        )
        logger.info("Opened step %s from %s in phase %s", self.step_id, result.source.value, self.session.phase.value)
        return result

    # Answer input

    def set_answer(self, question_id: str, value: Any) -> None:
        """Record a choice, free-text or matching answer."""
        self.sheet.set_answer(question_id, value)
        self.notify_change()

    def set_gap(self, question_id: str, index: int, text: str) -> None:
        """Record the text of one gap."""
        self.sheet.set_gap(question_id, index, text)
        self.notify_change()

    def clear_answer(self, question_id: str) -> None:
        self.sheet.clear_answer(question_id)
        self.notify_change()

    def autosave(self, sheet: AnswerSheet | None = None, current_index: int | None = None) -> None:
        """
        Adopt new answers and/or position, then persist them.

        Args:
            sheet: Replacement answer sheet
            current_index: Replacement current question index
        """
        if sheet is not None:
            self.sheet = sheet
        if current_index is not None:
            self.session = self.session.model_copy(
                update={
                    "current_index": current_index,
                    "furthest_index": max(self.session.furthest_index, current_index),
                }
            )
        self.notify_change()

    def notify_change(self) -> None:
        """
        Write the local cache now and (re)start the server autosave delay.

        Outside a running event loop only the local cache is written.
        """
        self._write_cache()
        if self._autosave_allowed():
            self.timer.schedule(self._flush_draft)

    def _write_cache(self) -> None:
        if self.sheet.is_empty:
            return
        self.step_cache.write(dumps_answers(self.sheet.answers), dumps_gap_answers(self.sheet.gap_answers))

    def _autosave_allowed(self) -> bool:
        if self.session.phase in (QuizPhase.TITLE, QuizPhase.COMPLETED):
            return False
        return not self.sheet.is_empty

    def _time_spent(self) -> int | None:
        if self.session.started_at is None:
            return None
        return self.session.elapsed_seconds(self.clock())

    def _quiz_title(self) -> str:
        return self.definition.title or "Quiz"

    async def _flush_draft(self) -> None:
        """
        Write the current state as a draft.

        Updates the known draft, or creates one if this session has no
        attempt yet. Failures are logged; the local cache still has the
        answers and the next change retries.
        """
        async with self._save_lock:
            if not self._autosave_allowed():
                return
            answers = encode_sheet(self.sheet)
            time_spent = self._time_spent()
            try:
                if self.attempt is not None and self.attempt.is_draft:
                    self.attempt = await self.api.update_attempt(
                        self.attempt.id,
                        AttemptUpdate(
                            answers=answers,
                            current_question_index=self.session.current_index,
                            time_spent_seconds=time_spent,
                        ),
                    )
                    logger.debug("Draft %s updated", self.attempt.id)
                elif self.attempt is None:
                    score = score_sheet(self.definition.questions, self.sheet)
                    self.attempt = await self.api.create_attempt(
                        AttemptCreate(
                            step_id=self.step_id,
                            course_id=self.course_id,
                            lesson_id=self.lesson_id,
                            quiz_title=self._quiz_title(),
                            total_questions=score.total,
                            answers=answers,
                            time_spent_seconds=time_spent,
                            is_draft=True,
                            current_question_index=self.session.current_index,
                            quiz_content_hash=self.content_hash,
                        )
                    )
                    logger.info("Draft %s created for step %s", self.attempt.id, self.step_id)
            except ApiError as e:
                logger.error("Failed to auto-save quiz progress for step %s: %s", self.step_id, e)

    async def save_now(self) -> None:
        """Skip the remaining delay and write the draft immediately."""
        self.timer.cancel()
        await self._flush_draft()

    # Navigation

    async def dispatch(self, event: QuizEvent) -> Transition:
        """
        Apply a learner action and persist what it implies.

        Moving to another question saves the position right away when a
        draft exists; completing the quiz finalizes it.

        Raises:
            InvalidTransitionError: If the current phase does not accept the event
            IncompleteAnswerError: If a required answer is missing
            FinalizeError: If the completed quiz could not be saved
        """
        result = transition(self.session, event, self.definition, self.sheet, self.clock())
        self.session = result.session

        if event.type == QuizEventType.RESET:
            self.timer.cancel()
            self.passed = None
            self.last_score = None
            # A finalized attempt stays on the server as history and the next
            # save starts a new one; a live draft keeps being updated.
            if self.attempt is not None and not self.attempt.is_draft:
                self.attempt = None

        if result.finalize:
            await self.finalize()
        elif result.moved and self.attempt is not None and self.attempt.is_draft:
            await self.save_now()
        else:
            self.notify_change()
        return result

    async def finalize(self) -> QuizAttempt:
        """
        Score the quiz and persist it as a finished attempt.

        A pending autosave is dropped in favour of this write. The local
        cache is cleared only after the server accepted the attempt.

        Returns:
            The saved attempt

        Raises:
            FinalizeError: If the server rejected or never received the attempt
        """
        self.timer.cancel()
        self._write_cache()
        score = score_sheet(self.definition.questions, self.sheet)
        is_graded = not self.definition.has_long_text
        answers = encode_sheet(self.sheet)
        percentage = score.percentage

        async with self._save_lock:
            time_spent = self._time_spent()
            try:
                if self.attempt is not None and self.attempt.is_draft:
                    saved = await self.api.update_attempt(
                        self.attempt.id,
                        AttemptUpdate(
                            answers=answers,
                            time_spent_seconds=time_spent,
                            is_draft=False,
                            total_questions=score.total,
                            correct_answers=score.score,
                            score_percentage=percentage,
                            is_graded=is_graded,
                        ),
                    )
                else:
                    saved = await self.api.create_attempt(
                        AttemptCreate(
                            step_id=self.step_id,
                            course_id=self.course_id,
                            lesson_id=self.lesson_id,
                            quiz_title=self._quiz_title(),
                            total_questions=score.total,
                            correct_answers=score.score,
                            score_percentage=percentage,
                            answers=answers,
                            time_spent_seconds=time_spent,
                            is_graded=is_graded,
                            is_draft=False,
                            current_question_index=self.session.current_index,
                            quiz_content_hash=self.content_hash,
                        )
                    )
            except ApiError as e:
                logger.error("Failed to save quiz attempt for step %s: %s", self.step_id, e)
                raise FinalizeError(f"Could not save the completed quiz for step {self.step_id}: {e}") from e

        self.attempt = saved
        self.attempts = [saved] + [a for a in self.attempts if a.id != saved.id]
        self.last_score = score
        self.passed = score.passed
        self.step_cache.clear()
        logger.info(
            "Step %s finalized: %d/%d (%.0f%%), graded=%s",
            self.step_id,
            score.score,
            score.total,
            percentage,
            is_graded,
        )
        return saved

    # Teardown

    async def close(self, flush: bool = True) -> None:
        """
        Tear the session down.

        A pending autosave is written now (``flush=True``) or dropped; saves
        already in flight are always awaited.
        """
        if flush:
            await self.timer.flush()
        else:
            self.timer.cancel()
        await self.timer.drain()
