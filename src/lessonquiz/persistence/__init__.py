"""Content hashing, answer serialization and progress persistence."""

# Note: the reconciler is not re-exported here to avoid a circular import
# with lessonquiz.graph. Import it directly:
# from lessonquiz.persistence.reconciler import ProgressReconciler

from .api import AttemptsApi, HttpAttemptsApi
from .cache import InMemoryCache, JsonFileCache, LocalCache, StepCache, answers_key, gap_answers_key
from .codec import decode_answers, decode_sheet, encode_answers, encode_sheet
from .hashing import content_hash, hashes_match, rolling_checksum, sha256_hex
from .scheduler import DebounceTimer

__all__ = [
    "AttemptsApi",
    "DebounceTimer",
    "HttpAttemptsApi",
    "InMemoryCache",
    "JsonFileCache",
    "LocalCache",
    "StepCache",
    "answers_key",
    "content_hash",
    "decode_answers",
    "decode_sheet",
    "encode_answers",
    "encode_sheet",
    "gap_answers_key",
    "hashes_match",
    "rolling_checksum",
    "sha256_hex",
]
