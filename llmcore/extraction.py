"""Recovering JSON objects from noisy model output."""

import json
import logging
from typing import Any, Mapping, Optional

from llmcore.errors import NoJsonObjectFound, ParseError

logger = logging.getLogger(__name__)


def extract_json_object(text: Optional[str]) -> str:
    """Return the span from the first '{' to the last '}' (inclusive), trimmed.

    This is a heuristic, not a parser: nested or multiple objects are not
    balanced, so a reply holding two unrelated objects yields a span that
    will usually fail to parse later on.
    """
    if not text:
        raise NoJsonObjectFound("Input is empty")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonObjectFound("Input does not contain a valid JSON object")

    return text[start : end + 1].strip()


def _skip_insignificant(text: str, i: int) -> int:
    """Index of the next character that is neither whitespace nor inside a comment."""
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = n if close == -1 else close + 2
        else:
            break
    return i


def _strip_comments_and_trailing_commas(text: str) -> str:
    """Drop // and /* */ comments and trailing commas outside of strings."""
    out = []
    i = 0
    n = len(text)
    in_string = False
    escape = False

    while i < n:
        ch = text[i]

        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = n if close == -1 else close + 2
        elif ch == ",":
            # Trailing comma: next significant character closes the container
            j = _skip_insignificant(text, i + 1)
            if j < n and text[j] in "}]":
                i += 1
                continue
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def loads_lenient(text: str) -> Any:
    """Parse JSON that may contain comments and trailing commas."""
    if text is None or not text.strip():
        raise ParseError("Input is null or whitespace")

    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass

    cleaned = _strip_comments_and_trailing_commas(text)
    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        logger.debug(f"Lenient JSON parse failed: {e}")
        raise ParseError(f"Failed to parse JSON: {e}") from e


def get_ci(mapping: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up a property name case-insensitively."""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for k, v in mapping.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return default

