"""Tests for the quiz state machine."""

import pytest

from lessonquiz.errors import IncompleteAnswerError, InvalidTransitionError
from lessonquiz.models.answers import AnswerSheet
from lessonquiz.models.quiz import DisplayMode, QuizDefinition
from lessonquiz.session.machine import (
    QuizEvent,
    QuizEventType,
    QuizPhase,
    QuizSession,
    entry_phase,
    transition,
)

START = QuizEvent(type=QuizEventType.START)
SUBMIT = QuizEvent(type=QuizEventType.SUBMIT)
ADVANCE = QuizEvent(type=QuizEventType.ADVANCE)
REVIEW = QuizEvent(type=QuizEventType.REVIEW)
FINISH = QuizEvent(type=QuizEventType.FINISH)
RESET = QuizEvent(type=QuizEventType.RESET)


def free_text_quiz() -> QuizDefinition:
    return QuizDefinition.model_validate(
        {
            "questions": [
                {"id": "t1", "question_type": "long_text"},
                {"id": "c1", "question_type": "single_choice", "options": ["a", "b"], "correct_answer": 0},
            ]
        }
    )


def answered(**answers) -> AnswerSheet:
    sheet = AnswerSheet()
    for question_id, value in answers.items():
        sheet.set_answer(question_id, value)
    return sheet


class TestEntryPhase:
    """Test where sessions start."""

    def test_sequential_starts_at_title(self):
        """Test one_by_one mode."""
        assert entry_phase(DisplayMode.ONE_BY_ONE) == QuizPhase.TITLE
        assert QuizSession.fresh(DisplayMode.ONE_BY_ONE).phase == QuizPhase.TITLE

    def test_batch_starts_at_feed(self):
        """Test all_at_once mode."""
        assert entry_phase(DisplayMode.ALL_AT_ONCE) == QuizPhase.FEED


class TestTransitionTable:
    """Test every allowed transition."""

    def test_start_sequential(self, mixed_quiz: QuizDefinition):
        """Test title -> question, recording the start time."""
        result = transition(QuizSession.fresh(DisplayMode.ONE_BY_ONE), START, mixed_quiz, AnswerSheet(), now=1000.0)

        assert result.session.phase == QuizPhase.QUESTION
        assert result.session.current_index == 0
        assert result.session.started_at == 1000.0
        assert not result.finalize

    def test_start_batch(self, batch_quiz: QuizDefinition):
        """Test title -> feed in batch mode."""
        session = QuizSession(display_mode=DisplayMode.ALL_AT_ONCE, phase=QuizPhase.TITLE)
        result = transition(session, START, batch_quiz, AnswerSheet(), now=5.0)

        assert result.session.phase == QuizPhase.FEED
        assert result.session.started_at == 5.0

    def test_submit_choice_shows_result(self, mixed_quiz: QuizDefinition):
        """Test question -> result for a checked question."""
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=0)
        result = transition(session, SUBMIT, mixed_quiz, answered(q1=1), now=1.0)

        assert result.session.phase == QuizPhase.RESULT
        assert result.session.current_index == 0

    def test_submit_long_text_skips_result(self):
        """Test question -> next question for free text."""
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=0)
        result = transition(session, SUBMIT, free_text_quiz(), answered(t1="An essay"), now=1.0)

        assert result.session.phase == QuizPhase.QUESTION
        assert result.session.current_index == 1
        assert result.moved

    def test_submit_image_continues_without_answer(self, mixed_quiz: QuizDefinition):
        """Test that a display-only question just moves on."""
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=2, furthest_index=2)
        result = transition(session, SUBMIT, mixed_quiz, AnswerSheet(), now=1.0)

        assert result.session.current_index == 3

    def test_advance_to_next_question(self, mixed_quiz: QuizDefinition):
        """Test result -> question(next)."""
        session = QuizSession(phase=QuizPhase.RESULT, current_index=0)
        result = transition(session, ADVANCE, mixed_quiz, AnswerSheet(), now=1.0)

        assert result.session.phase == QuizPhase.QUESTION
        assert result.session.current_index == 1
        assert result.session.furthest_index == 1

    def test_advance_past_last_completes(self, mixed_quiz: QuizDefinition):
        """Test result -> completed with finalize on the last question."""
        last = len(mixed_quiz.questions) - 1
        session = QuizSession(phase=QuizPhase.RESULT, current_index=last, furthest_index=last)
        result = transition(session, ADVANCE, mixed_quiz, AnswerSheet(), now=1.0)

        assert result.session.phase == QuizPhase.COMPLETED
        assert result.finalize

    def test_long_text_on_last_question_completes(self):
        """Test that skipping the result screen on the last question completes."""
        quiz = QuizDefinition.model_validate({"questions": [{"id": "t", "question_type": "long_text"}]})
        session = QuizSession(phase=QuizPhase.QUESTION)
        result = transition(session, SUBMIT, quiz, answered(t="text"), now=1.0)

        assert result.session.phase == QuizPhase.COMPLETED
        assert result.finalize

    def test_feed_review_marks_checked(self, batch_quiz: QuizDefinition):
        """Test feed -> feed with the checked flag."""
        session = QuizSession.fresh(DisplayMode.ALL_AT_ONCE)
        result = transition(session, REVIEW, batch_quiz, AnswerSheet(), now=1.0)

        assert result.session.phase == QuizPhase.FEED
        assert result.session.feed_checked

    def test_feed_finish_completes(self, batch_quiz: QuizDefinition):
        """Test feed -> completed with finalize."""
        sheet = answered(b1=0)
        sheet.gap_answers["b2"] = ["blue", "green"]
        result = transition(QuizSession.fresh(DisplayMode.ALL_AT_ONCE), FINISH, batch_quiz, sheet, now=1.0)

        assert result.session.phase == QuizPhase.COMPLETED
        assert result.finalize

    def test_completed_review_opens_feed(self, mixed_quiz: QuizDefinition):
        """Test completed -> feed to review answers."""
        session = QuizSession(phase=QuizPhase.COMPLETED)
        result = transition(session, REVIEW, mixed_quiz, AnswerSheet(), now=1.0)

        assert result.session.phase == QuizPhase.FEED
        assert result.session.feed_checked

    @pytest.mark.parametrize(
        "mode,expected",
        [(DisplayMode.ONE_BY_ONE, QuizPhase.TITLE), (DisplayMode.ALL_AT_ONCE, QuizPhase.FEED)],
    )
    def test_reset_returns_to_entry(self, mixed_quiz: QuizDefinition, mode: DisplayMode, expected: QuizPhase):
        """Test completed -> title|feed, keeping the furthest marker."""
        session = QuizSession(display_mode=mode, phase=QuizPhase.COMPLETED, current_index=5, furthest_index=5)
        result = transition(session, RESET, mixed_quiz, AnswerSheet(), now=9.0)

        assert result.session.phase == expected
        assert result.session.current_index == 0
        assert result.session.furthest_index == 5
        assert not result.session.feed_checked


class TestInvalidTransitions:
    """Test rejected events."""

    @pytest.mark.parametrize(
        "phase,event",
        [
            (QuizPhase.TITLE, SUBMIT),
            (QuizPhase.TITLE, FINISH),
            (QuizPhase.QUESTION, ADVANCE),
            (QuizPhase.QUESTION, START),
            (QuizPhase.RESULT, SUBMIT),
            (QuizPhase.FEED, ADVANCE),
            (QuizPhase.COMPLETED, FINISH),
            (QuizPhase.COMPLETED, START),
        ],
    )
    def test_rejected(self, mixed_quiz: QuizDefinition, phase: QuizPhase, event: QuizEvent):
        """Test that events outside the table raise."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(QuizSession(phase=phase), event, mixed_quiz, AnswerSheet(), now=1.0)

        assert exc_info.value.phase == phase.value

    def test_input_session_unchanged(self, mixed_quiz: QuizDefinition):
        """Test that transition never mutates its input."""
        session = QuizSession(phase=QuizPhase.RESULT, current_index=0)
        transition(session, ADVANCE, mixed_quiz, AnswerSheet(), now=1.0)

        assert session.phase == QuizPhase.RESULT
        assert session.current_index == 0


class TestReadinessGates:
    """Test that forward progress needs answers."""

    def test_submit_without_answer(self, mixed_quiz: QuizDefinition):
        """Test submit on an unanswered question."""
        with pytest.raises(IncompleteAnswerError) as exc_info:
            transition(QuizSession(phase=QuizPhase.QUESTION), SUBMIT, mixed_quiz, AnswerSheet(), now=1.0)

        assert exc_info.value.question_ids == ["q1"]

    def test_submit_with_partial_gaps(self, mixed_quiz: QuizDefinition):
        """Test that every gap must be filled."""
        sheet = AnswerSheet()
        sheet.set_gap("q2", 0, "blue")
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=1, furthest_index=1)

        with pytest.raises(IncompleteAnswerError):
            transition(session, SUBMIT, mixed_quiz, sheet, now=1.0)

    def test_finish_lists_missing(self, batch_quiz: QuizDefinition):
        """Test that finish reports every unanswered question."""
        with pytest.raises(IncompleteAnswerError) as exc_info:
            transition(QuizSession.fresh(DisplayMode.ALL_AT_ONCE), FINISH, batch_quiz, answered(b1=0), now=1.0)

        assert exc_info.value.question_ids == ["b2"]


class TestBackwardReview:
    """Test goto navigation."""

    def test_goto_earlier_question(self, mixed_quiz: QuizDefinition):
        """Test going back keeps the furthest marker."""
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=3, furthest_index=3)
        result = transition(session, QuizEvent.goto(1), mixed_quiz, AnswerSheet(), now=1.0)

        assert result.session.current_index == 1
        assert result.session.furthest_index == 3
        assert result.moved

    def test_goto_beyond_furthest_rejected(self, mixed_quiz: QuizDefinition):
        """Test that unreached questions cannot be opened."""
        session = QuizSession(phase=QuizPhase.QUESTION, current_index=1, furthest_index=1)

        with pytest.raises(InvalidTransitionError):
            transition(session, QuizEvent.goto(4), mixed_quiz, AnswerSheet(), now=1.0)


class TestSessionTiming:
    """Test elapsed time reconstruction."""

    def test_resumed_session_counts_stored_time(self):
        """Test that stored time spent moves the start time back."""
        session = QuizSession.resumed(DisplayMode.ONE_BY_ONE, index=2, time_spent_seconds=90, now=1000.0)

        assert session.phase == QuizPhase.QUESTION
        assert session.current_index == 2
        assert session.elapsed_seconds(now=1010.0) == 100

    def test_not_started(self):
        """Test that an unstarted session has no elapsed time."""
        assert QuizSession().elapsed_seconds(now=50.0) == 0
