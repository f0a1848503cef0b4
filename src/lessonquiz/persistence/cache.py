"""Per-step local answer cache, a resumability fallback behind the server."""

import json
import logging
import re
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

ANSWERS_KEY_PREFIX = "quiz_answers"
GAP_ANSWERS_KEY_PREFIX = "gap_answers"


def answers_key(step_id: int | str) -> str:
    return f"{ANSWERS_KEY_PREFIX}_{step_id}"


def gap_answers_key(step_id: int | str) -> str:
    return f"{GAP_ANSWERS_KEY_PREFIX}_{step_id}"


class LocalCache(Protocol):
    """String-keyed store of opaque serialized blobs."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCache:
    """Dict-backed cache; lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileCache:
    """
    One file per key under a directory.

    Keys are sanitized into file names, so ``quiz_answers_42`` is stored as
    ``<directory>/quiz_answers_42.json``.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))["value"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Unreadable cache entry %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(json.dumps({"key": key, "value": value}), encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class StepCache:
    """
    The two cache slots of one quiz step.

    Writes are best-effort: a failing store is logged and never interrupts
    the learner.
    """

    def __init__(self, cache: LocalCache, step_id: int | str):
        self.cache = cache
        self.step_id = step_id

    def read(self) -> tuple[str | None, str | None]:
        """Raw (answers, gap answers) blobs, either may be None."""
        try:
            return self.cache.get(answers_key(self.step_id)), self.cache.get(gap_answers_key(self.step_id))
        except OSError as e:
            logger.warning("Could not read local cache for step %s: %s", self.step_id, e)
            return None, None

    def write(self, answers: str, gap_answers: str) -> None:
        try:
            self.cache.set(answers_key(self.step_id), answers)
            self.cache.set(gap_answers_key(self.step_id), gap_answers)
        except OSError as e:
            logger.warning("Could not write local cache for step %s: %s", self.step_id, e)

    def clear(self) -> None:
        try:
            self.cache.delete(answers_key(self.step_id))
            self.cache.delete(gap_answers_key(self.step_id))
        except OSError as e:
            logger.warning("Could not clear local cache for step %s: %s", self.step_id, e)
        else:
            logger.debug("Cleared local cache for step %s", self.step_id)
