"""Lenient parsing of LLM responses into domain types."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, cast

from catalai.constants import MAX_QUESTIONS_PER_ROUND, parse_category
from catalai.matrix.loader import strip_code_fences
from catalai.value_objects import Classification

logger = logging.getLogger(__name__)

_LOOP_ECHO = re.compile(r"^clarification\s+\d+$", re.IGNORECASE)
_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")


class ResponseParseError(ValueError):
    """The model answered, but not in a usable shape."""


def extract_json(content: str) -> Any:
    """First JSON object or array found in ``content``.

    Tries the whole (fence-stripped) text first, then the outermost
    ``{...}`` and ``[...]`` spans, since models sometimes wrap JSON in
    prose.
    """
    text = strip_code_fences(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    for pattern in (_OBJECT, _ARRAY):
        match = pattern.search(text)
        if match is None:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue
    msg = f"No JSON found in response ({len(content)} chars)"
    raise ResponseParseError(msg)


def extract_json_object(content: str) -> dict[str, Any]:
    parsed = extract_json(content)
    if not isinstance(parsed, dict):
        raise ResponseParseError("Expected a JSON object")
    return cast(dict[str, Any], parsed)


def parse_classification(content: str) -> Classification:
    """Validate a classification response.

    Raises ResponseParseError for loop echoes ("Clarification 9"),
    missing fields, unknown categories, and out-of-range confidence.
    """
    if _LOOP_ECHO.match(content.strip()):
        raise ResponseParseError(
            "LLM returned a clarification loop echo instead of a "
            "classification"
        )
    data = extract_json_object(content)

    raw_confidence = data.get("confidence")
    if not data.get("category") or isinstance(raw_confidence, bool):
        raise ResponseParseError("Missing category or confidence")
    try:
        confidence = float(cast(Any, raw_confidence))
    except (TypeError, ValueError) as exc:
        raise ResponseParseError(
            f"Invalid confidence score: {raw_confidence!r}"
        ) from exc
    if not 0.0 <= confidence <= 1.0:
        raise ResponseParseError(f"Invalid confidence score: {confidence}")
    try:
        category = parse_category(data["category"])
    except ValueError as exc:
        raise ResponseParseError(str(exc)) from exc

    return Classification(
        category=category,
        confidence=confidence,
        rationale=str(data.get("rationale") or ""),
        category_progression=str(
            data.get("categoryProgression")
            or data.get("category_progression")
            or ""
        ),
        future_opportunities=str(
            data.get("futureOpportunities")
            or data.get("future_opportunities")
            or ""
        ),
    )


def parse_questions(
    content: str, limit: int = MAX_QUESTIONS_PER_ROUND
) -> tuple[list[str], bool | None]:
    """Question texts plus the model's ``shouldClarify`` hint, if any.

    Accepts a bare array or an object with a ``questions`` key; items
    may be strings or ``{"question": ...}`` objects. Malformed items are
    skipped; a response with no JSON at all raises ResponseParseError so
    it is never mistaken for a model that has nothing left to ask.
    """
    try:
        parsed = extract_json(content)
    except ResponseParseError:
        logger.warning(
            "event=questions_parse_failed response_len=%d", len(content)
        )
        raise

    should_clarify: bool | None = None
    items: Any = parsed
    if isinstance(parsed, dict):
        data = cast(dict[str, Any], parsed)
        items = data.get("questions", [])
        hint = data.get("shouldClarify", data.get("should_clarify"))
        if isinstance(hint, bool):
            should_clarify = hint
    if not isinstance(items, list):
        return [], should_clarify

    questions: list[str] = []
    for item in cast(list[Any], items):
        text: Any = item
        if isinstance(item, dict):
            text = cast(dict[str, Any], item).get("question")
        if isinstance(text, str) and text.strip():
            questions.append(text.strip())
    return questions[:limit], should_clarify
