"""Text normalization for author-supplied gap text.

The same function is used when gaps are previewed, extracted and graded.
Any divergence between those paths silently breaks grading, so there is
exactly one implementation and it keeps no state.
"""

import re

CORRECT_MARKER = "*"

# Decoded in this order: "&amp;lt;" yields "&lt;" on a single pass.
HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

_TAG = re.compile(r"<[^>]*>")
_UNCLOSED_TAG_AT_END = re.compile(r"<[^>]*\Z")
_ORPHAN_CLOSE_AT_START = re.compile(r"\A[^<]*>")
_TEXT_BETWEEN_TAGS = re.compile(r">[^<]*<")
_ANGLE_BRACKETS = re.compile(r"[<>]")


def decode_entities(text: str) -> str:
    """Decode the fixed set of HTML entities produced by the rich-text editor."""
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def strip_tags(text: str) -> str:
    """
    Remove HTML tags, including broken tags at either end of the string.

    Args:
        text: Text that may contain well-formed or truncated markup

    Returns:
        Text with no angle brackets left in it
    """
    text = _TAG.sub("", text)
    text = _UNCLOSED_TAG_AT_END.sub("", text)
    text = _ORPHAN_CLOSE_AT_START.sub("", text)
    text = _TEXT_BETWEEN_TAGS.sub("><", text)
    return _ANGLE_BRACKETS.sub("", text)


def _normalize_once(text: str) -> str:
    text = text.replace(CORRECT_MARKER, "")
    text = decode_entities(text)
    text = strip_tags(text)
    return text.strip()


def normalize(raw: str | None) -> str:
    """
    Normalize a gap candidate or learner answer for comparison.

    Pipeline: drop ``*`` markers, decode entities, strip tags, trim. The
    pipeline is re-applied until the text stops changing; every pass can
    only shorten the text, and the fixed point makes the function
    idempotent even for doubly-escaped input such as ``&amp;lt;b&amp;gt;``.

    Args:
        raw: Author-supplied text; ``None`` is treated as empty

    Returns:
        Normalized text
    """
    text = "" if raw is None else str(raw)
    while True:
        cleaned = _normalize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned
