"""Nodes of the quiz load workflow."""

import logging
from typing import Any

from ..errors import ApiError
from ..models.answers import AnswerSheet
from ..models.quiz import DisplayMode
from ..persistence.cache import StepCache
from ..persistence.codec import decode_answers, decode_sheet, loads_gap_answers, split_answers
from ..persistence.hashing import content_hash, hashes_match
from ..session.machine import QuizPhase, QuizSession
from .state import LoadSource, LoadState

logger = logging.getLogger(__name__)


async def fetch_definition(state: LoadState) -> dict[str, Any]:
    """
    Fetch the step and parse its quiz definition.

    Raises:
        ApiError: If the step cannot be fetched
        DefinitionError: If the step does not hold a valid quiz
    """
    step = state["step"]
    if step is None:
        step = await state["api"].get_step(state["step_id"])
    definition = step.definition()
    logger.debug("Step %s: %d questions, %s", step.id, len(definition.questions), definition.display_mode.value)
    return {
        "step": step,
        "definition": definition,
        "content_hash": content_hash(step.content_text),
    }


async def fetch_attempts(state: LoadState) -> dict[str, Any]:
    """List server attempts; a failed request falls back to the local cache."""
    try:
        attempts = await state["api"].list_attempts(state["step_id"])
    except ApiError as e:
        logger.error("Failed to load attempts for step %s: %s", state["step_id"], e)
        return {"attempts": [], "attempts_error": str(e)}
    return {"attempts": attempts}


async def check_version(state: LoadState) -> dict[str, Any]:
    """Compare the most recent attempt's fingerprint with the current definition."""
    latest = state["attempts"][0]
    matches = hashes_match(latest.quiz_content_hash, state["step"].content_text)
    if not latest.quiz_content_hash:
        logger.info("Attempt %s predates content hashing; restoring it", latest.id)
    return {"hash_matches": matches}


async def restore_attempt(state: LoadState) -> dict[str, Any]:
    """Resume the latest server attempt and drop the now redundant local cache."""
    attempt = state["attempts"][0]
    definition = state["definition"]
    sheet = decode_sheet(attempt.answers, definition)

    if attempt.is_draft:
        index = attempt.current_question_index
        if definition.questions:
            index = min(index, len(definition.questions) - 1)
        session = QuizSession.resumed(definition.display_mode, index, attempt.time_spent_seconds, state["now"])
        source = LoadSource.SERVER_DRAFT
        passed = None
        logger.info("Resuming draft attempt %s at question %d", attempt.id, index)
    else:
        session = QuizSession.completed(definition.display_mode, attempt.current_question_index)
        source = LoadSource.SERVER_COMPLETED
        passed = attempt.passed
        logger.info("Attempt %s already completed (passed=%s)", attempt.id, passed)

    StepCache(state["cache"], state["step_id"]).clear()
    return {
        "attempt": attempt,
        "session": session,
        "sheet": sheet,
        "source": source.value,
        "passed": passed,
    }


async def invalidate(state: LoadState) -> dict[str, Any]:
    """Discard answers recorded against an older version of the quiz."""
    logger.warning(
        "Quiz on step %s changed since attempt %s; discarding its answers",
        state["step_id"],
        state["attempts"][0].id,
    )
    StepCache(state["cache"], state["step_id"]).clear()
    return {"invalidated": True, "attempt": None}


async def restore_local(state: LoadState) -> dict[str, Any]:
    """Layer answers from the local cache onto a fresh session, if there are any."""
    answers_blob, gaps_blob = StepCache(state["cache"], state["step_id"]).read()
    if not answers_blob and not gaps_blob:
        return {}

    definition = state["definition"]
    sheet = split_answers(definition, decode_answers(answers_blob))
    sheet.gap_answers.update(loads_gap_answers(gaps_blob))
    logger.info("Restored %d cached answers for step %s", len(sheet.merged()), state["step_id"])
    return {
        "session": QuizSession.fresh(definition.display_mode),
        "sheet": sheet,
        "source": LoadSource.LOCAL_CACHE.value,
    }


async def init_fresh(state: LoadState) -> dict[str, Any]:
    """Start with no answers, optionally opened directly at one question."""
    definition = state["definition"]
    session = QuizSession.fresh(definition.display_mode)

    question_id = state["question_id"]
    if question_id is not None:
        index = definition.index_of(str(question_id))
        if index is None:
            logger.warning("Question %s is not part of step %s", question_id, state["step_id"])
        elif definition.display_mode == DisplayMode.ALL_AT_ONCE:
            session = session.model_copy(update={"started_at": state["now"]})
        else:
            session = session.model_copy(
                update={
                    "phase": QuizPhase.QUESTION,
                    "current_index": index,
                    "furthest_index": index,
                    "started_at": state["now"],
                }
            )

    return {
        "session": session,
        "sheet": AnswerSheet(),
        "source": LoadSource.FRESH.value,
    }
