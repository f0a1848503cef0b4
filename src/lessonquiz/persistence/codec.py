"""Serialization of answer collections for the server and the local cache."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from ..models.answers import Answer, AnswerSheet, ListAnswer, PairMapAnswer, ScalarAnswer
from ..models.quiz import GapQuestion, QuizDefinition

logger = logging.getLogger(__name__)

PAIRMAP_KIND = "pairmap"
LEGACY_MAP_TYPE = "Map"


def encode_value(answer: Answer) -> Any:
    """JSON-ready value of one answer; pair-maps are wrapped so they decode unambiguously."""
    if isinstance(answer, PairMapAnswer):
        return {"kind": PAIRMAP_KIND, "entries": [[left, right] for left, right in answer.entries]}
    if isinstance(answer, ListAnswer):
        return list(answer.items)
    return answer.value


def decode_value(raw: Any) -> Answer:
    """
    Rebuild an answer from its stored value.

    Accepts the canonical pair-map wrapper as well as the older
    ``{"__type": "Map", "data": [...]}`` form.

    Raises:
        ValueError: If the value has no answer shape
    """
    if isinstance(raw, dict):
        if raw.get("kind") == PAIRMAP_KIND:
            return PairMapAnswer(entries=raw.get("entries") or [])
        if raw.get("__type") == LEGACY_MAP_TYPE:
            return PairMapAnswer(entries=raw.get("data") or [])
        raise ValueError(f"Unrecognized structured answer: {sorted(raw)}")
    if isinstance(raw, list):
        return ListAnswer(items=raw)
    return ScalarAnswer(value=raw)


def encode_answers(answers: Mapping[str, Answer]) -> list[list[Any]]:
    """Ordered ``[question_id, value]`` pairs."""
    return [[question_id, encode_value(answer)] for question_id, answer in answers.items()]


def dumps_answers(answers: Mapping[str, Answer]) -> str:
    return json.dumps(encode_answers(answers), ensure_ascii=False)


def _entries(payload: Any) -> list[tuple[Any, Any]]:
    if isinstance(payload, dict):
        # Older attempts stored a plain object keyed by question id.
        return list(payload.items())
    if isinstance(payload, list):
        entries = []
        for item in payload:
            if isinstance(item, (list, tuple)) and len(item) == 2:
                entries.append((item[0], item[1]))
            else:
                logger.warning("Skipping malformed answer entry: %r", item)
        return entries
    raise ValueError(f"Answer payload must be a list or object, got {type(payload).__name__}")


def decode_answers(payload: str | list | dict | None) -> dict[str, Answer]:
    """
    Decode a stored answer collection.

    A value that fails to decode is logged and left out; the rest of the
    collection is still restored.

    Args:
        payload: JSON text or already parsed JSON

    Returns:
        Answers keyed by question id (possibly empty)
    """
    if payload is None or payload == "":
        return {}
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error("Stored answers are not valid JSON: %s", e)
            return {}
    try:
        entries = _entries(payload)
    except ValueError as e:
        logger.error("Stored answers have an unknown layout: %s", e)
        return {}

    answers: dict[str, Answer] = {}
    for question_id, raw in entries:
        try:
            answers[str(question_id)] = decode_value(raw)
        except (ValueError, TypeError) as e:
            logger.warning("Could not decode answer for question %s: %s", question_id, e)
    return answers


def split_answers(definition: QuizDefinition, answers: Mapping[str, Answer]) -> AnswerSheet:
    """
    Route a merged collection back into an AnswerSheet.

    List answers of gap questions become per-gap strings; everything else
    stays in ``answers``.
    """
    gap_ids = {q.id for q in definition.questions if isinstance(q, GapQuestion)}
    sheet = AnswerSheet()
    for question_id, answer in answers.items():
        if question_id in gap_ids and isinstance(answer, ListAnswer):
            sheet.gap_answers[question_id] = ["" if item is None else str(item) for item in answer.items]
        elif question_id in gap_ids:
            logger.warning("Ignoring non-list answer for gap question %s", question_id)
        else:
            sheet.answers[question_id] = answer
    return sheet


def encode_sheet(sheet: AnswerSheet) -> str:
    """Single serialized collection as sent to the server."""
    return dumps_answers(sheet.merged())


def decode_sheet(payload: str | list | dict | None, definition: QuizDefinition) -> AnswerSheet:
    return split_answers(definition, decode_answers(payload))


def dumps_gap_answers(gap_answers: Mapping[str, list[str]]) -> str:
    return json.dumps([[question_id, list(gaps)] for question_id, gaps in gap_answers.items()], ensure_ascii=False)


def loads_gap_answers(payload: str | None) -> dict[str, list[str]]:
    """Decode the gap slot of the local cache; bad entries are skipped."""
    gap_answers: dict[str, list[str]] = {}
    for question_id, answer in decode_answers(payload).items():
        if isinstance(answer, ListAnswer):
            gap_answers[question_id] = ["" if item is None else str(item) for item in answer.items]
        else:
            logger.warning("Ignoring cached gap answer for %s: not a list", question_id)
    return gap_answers
