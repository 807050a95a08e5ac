"""Response Extractor — recovers a JSON value from model text that should encode one.

Invariants:
    - Blank input raises EmptyResponseError
    - Candidate strategies run in order (fenced block, bracket span, raw text); first hit wins
    - Parse failure raises MalformedJsonError carrying the exact candidate text
    - Never substitutes an empty/default value for an unparseable response
    - The shape hint only steers candidate selection and a top-level type check;
      the parsed value is never trusted just because a hint was sent

Design Decisions:
    - Each strategy is a pure function (text, expect_array) -> str | None so they
      can be tested and reordered independently
    - Array hint prefers the [...] span but still falls back to {...}, and vice versa
"""

import json
import re
from collections.abc import Callable
from typing import Any

from persona_ai.core.domain_types import ExtractionResult, ShapeDescriptor
from persona_ai.core.errors import (
    EmptyResponseError,
    MalformedJsonError,
    MalformedResponseError,
)

CandidateStrategy = Callable[[str, bool], str | None]

# Opening tag: literal "json" (may touch the body) or any tag followed by whitespace.
# Closing fence must start a line or end one; backticks inside a JSON string
# can do neither, since encoded strings never contain a raw newline.
_FENCE_RE = re.compile(
    r"```(?:(?i:json)(?![\w+-])|[A-Za-z][\w+-]*(?=\s))?\s*([\s\S]*?)\s*"
    r"(?:(?<=\n)[ \t]*```|```(?=[ \t]*(?:\n|$)))"
)

_JSON_TYPES: dict[str, type | tuple[type, ...]] = {
    "object": dict,
    "array": list,
    "string": str,
    "number": (int, float),
    "integer": int,
    "boolean": bool,
}


def expects_array(shape: ShapeDescriptor | None) -> bool:
    """True when the hint's top-level type is an array (any case)."""
    if not shape:
        return False
    return str(shape.get("type", "")).lower() == "array"


def fenced_block(text: str, expect_array: bool) -> str | None:
    """Inner content of the first ``` fence (language tag optional).

    The first closing fence that sits at a line boundary ends the block.
    """
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return None


def bracket_span(text: str, expect_array: bool) -> str | None:
    """First opening to last closing delimiter, preferring the hinted kind."""
    pairs = [("[", "]"), ("{", "}")] if expect_array else [("{", "}"), ("[", "]")]
    for opening, closing in pairs:
        first = text.find(opening)
        last = text.rfind(closing)
        if first != -1 and last > first:
            return text[first:last + 1]
    return None


def raw_text(text: str, expect_array: bool) -> str:
    """The trimmed text, unmodified."""
    return text


STRATEGIES: tuple[CandidateStrategy, ...] = (fenced_block, bracket_span, raw_text)


def select_candidate(text: str, shape: ShapeDescriptor | None = None) -> str:
    """Run the strategy chain over already-trimmed text."""
    want_array = expects_array(shape)
    for strategy in STRATEGIES:
        candidate = strategy(text, want_array)
        if candidate is not None:
            return candidate
    return text


def extract(raw: str | None, shape: ShapeDescriptor | None = None) -> Any:
    """Parse the structured value encoded in `raw`.

    Raises EmptyResponseError for blank input and MalformedJsonError when the
    selected candidate is not JSON or not the hinted top-level type.
    """
    text = (raw or "").strip()
    if not text:
        raise EmptyResponseError(raw or "")

    candidate = select_candidate(text, shape)
    if not candidate.strip():
        raise EmptyResponseError(candidate)

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(str(e), candidate) from e

    _check_top_level_type(value, shape, candidate)
    return value


def try_extract(raw: str | None, shape: ShapeDescriptor | None = None) -> ExtractionResult:
    """Non-raising form of extract()."""
    try:
        return ExtractionResult(value=extract(raw, shape))
    except MalformedResponseError as e:
        return ExtractionResult(error=e)


def _check_top_level_type(value: Any, shape: ShapeDescriptor | None, candidate: str) -> None:
    if not shape:
        return
    expected = str(shape.get("type", "")).lower()
    py_type = _JSON_TYPES.get(expected)
    if py_type is None:
        return
    # bool is an int subclass; JSON true is not a number
    if isinstance(value, bool) and expected in ("number", "integer"):
        raise MalformedJsonError(f"expected {expected}, got boolean", candidate)
    if not isinstance(value, py_type):
        raise MalformedJsonError(
            f"expected {expected}, got {type(value).__name__}", candidate,
        )
