"""Recovery of JSON payloads from free-form generative model output.

Models asked for "ONLY valid JSON" still wrap it in markdown fences, prepend
"Here's your recipe:" or trail explanations. recover_json tries, in order:

1. Strip leading/trailing code-fence lines and surrounding whitespace
2. Direct json.loads() on what remains
3. Bracket-matched extraction of the first balanced {...} or [...] span
4. Raise MalformedPayload with the raw text attached
"""

import json
import re
from typing import Any, Optional

from recipe_engine.utils.errors import MalformedPayload
from recipe_engine.utils.logger import logger

_FENCE_LINE = re.compile(r"^\s*(```|~~~)[\w+-]*\s*$")

_CLOSING = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove a leading fence line (```json) and a trailing fence line (```)."""
    lines = text.strip().splitlines()
    if lines and _FENCE_LINE.match(lines[0]):
        lines = lines[1:]
    if lines and _FENCE_LINE.match(lines[-1]):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _balanced_span_end(text: str, start: int) -> Optional[int]:
    """Index one past the bracket closing text[start], or None if unbalanced.

    Brackets inside JSON strings (including escaped quotes) are ignored.
    """
    stack = [_CLOSING[text[start]]]
    in_string = False
    escaped = False
    for idx in range(start + 1, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSING:
            stack.append(_CLOSING[char])
        elif char in ("}", "]"):
            if char != stack[-1]:
                return None
            stack.pop()
            if not stack:
                return idx + 1
    return None


def extract_json_span(text: str) -> Optional[Any]:
    """Parse the first balanced top-level object/array span that is valid JSON."""
    for start, char in enumerate(text):
        if char not in _CLOSING:
            continue
        end = _balanced_span_end(text, start)
        if end is None:
            continue
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
    return None


def recover_json(raw_text: str) -> Any:
    """Extract a JSON value from generative model text.

    Args:
        raw_text: Raw model output (may include fences or surrounding prose).

    Returns:
        The parsed JSON object or array.

    Raises:
        MalformedPayload: If no valid JSON can be extracted. The error carries
            the original raw text for diagnostics.
    """
    if raw_text is None or not raw_text.strip():
        raise MalformedPayload("Empty response from generative model", raw_text=raw_text or "")

    cleaned = strip_code_fences(raw_text)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Direct JSON parse failed: {e}")

    recovered = extract_json_span(cleaned)
    if recovered is not None:
        logger.debug("Recovered JSON from bracket-matched span")
        return recovered

    raise MalformedPayload("No valid JSON payload found in model output", raw_text=raw_text)
