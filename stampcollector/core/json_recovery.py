"""Recover a JSON object from LLM text: fenced, bare, or embedded in prose."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ParseSucceeded:
    value: dict


@dataclass(frozen=True)
class ParseFailed:
    reason: str


ParseResult = Union[ParseSucceeded, ParseFailed]


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def _find_balanced_object(text: str) -> str | None:
    """Return the first brace-balanced ``{...}`` substring, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escape = False
        for i in range(start, len(text)):
            ch = text[i]
            if escape:
                escape = False
                continue
            if ch == "\\":
                if in_string:
                    escape = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def parse_json_object(text: str | None) -> ParseResult:
    """Parse provider text into a dict.

    Strategy:
    1. Strip markdown code fences.
    2. ``json.loads`` the cleaned text.
    3. Parse the first balanced ``{...}`` substring.
    """
    if not text or not text.strip():
        return ParseFailed("empty response")

    cleaned = strip_code_fences(text)
    try:
        value = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError):
        pass
    else:
        if isinstance(value, dict):
            return ParseSucceeded(value)
        logger.debug("Direct parse gave %s, not an object", type(value).__name__)

    candidate = _find_balanced_object(cleaned)
    if candidate is None:
        return ParseFailed("no JSON object found")
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        return ParseFailed(f"embedded object is not valid JSON: {e}")
    if not isinstance(value, dict):
        return ParseFailed("embedded value is not an object")
    return ParseSucceeded(value)
