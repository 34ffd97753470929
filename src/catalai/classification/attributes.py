"""Resolve business attribute values from a conversation.

Two sources: an LLM response parsed by ``parse_attribute_response``,
and ``KeywordAttributeExtractor``, a deterministic keyword fallback for
when no model is configured. Both return a value for every expected
attribute, using ``"unknown"`` when nothing was found.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol, cast

from catalai.constants import UNKNOWN_VALUE
from catalai.matrix.schemas import DecisionMatrix
from catalai.value_objects import (
    ClarificationQA,
    ExtractedAttributeValue,
    unknown_attribute,
)

logger = logging.getLogger(__name__)

# Canonical name -> alternative keys models tend to use instead.
ATTRIBUTE_ALIASES: dict[str, tuple[str, ...]] = {
    "judgment_required": ("judgement_required", "judgement", "judgment"),
    "business_value": ("value", "impact", "priority"),
    "success_criteria": ("success",),
    "risks_constraints": ("risks", "constraints", "blockers"),
    "current_state": ("automation_level", "process_state"),
}


class AttributeExtractor(Protocol):
    """Anything that can resolve attribute values for a conversation."""

    async def extract(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]: ...


def expected_attribute_names(
    matrix: DecisionMatrix | None, evidence_keys: Iterable[str] = ()
) -> list[str]:
    """Matrix-declared names followed by evidence keys, deduplicated."""
    names: list[str] = list(matrix.attribute_names) if matrix else []
    for key in evidence_keys:
        if key not in names:
            names.append(key)
    return names


def _to_extracted(raw: Any, explanation: str) -> ExtractedAttributeValue:
    if isinstance(raw, dict) and "value" in raw:
        item = cast(dict[str, Any], raw)
        value = item.get("value")
        return ExtractedAttributeValue(
            value=UNKNOWN_VALUE if value in (None, "") else value,
            explanation=str(item.get("explanation") or explanation),
        )
    if raw is None:
        return unknown_attribute()
    return ExtractedAttributeValue(value=raw, explanation=explanation)


def parse_attribute_response(
    data: Mapping[str, Any], expected: Sequence[str]
) -> dict[str, ExtractedAttributeValue]:
    """Normalize a parsed extraction response.

    Every expected name gets an entry. Nested
    ``{"value": ..., "explanation": ...}`` and flat values are both
    accepted, aliases are resolved, and unexpected keys are kept.
    """
    result: dict[str, ExtractedAttributeValue] = {}
    consumed: set[str] = set()

    for name in expected:
        if data.get(name) is not None:
            result[name] = _to_extracted(
                data[name], "Extracted from conversation"
            )
            consumed.add(name)
            continue
        alias = next(
            (
                a
                for a in ATTRIBUTE_ALIASES.get(name, ())
                if data.get(a) is not None
            ),
            None,
        )
        if alias is not None:
            result[name] = _to_extracted(data[alias], "Extracted via alias")
            consumed.add(alias)
            continue
        logger.debug("event=attribute_missing attribute=%s", name)
        result[name] = unknown_attribute()

    for key, raw in data.items():
        if key in result or key in consumed:
            continue
        result[key] = _to_extracted(raw, "Additional extracted field")
    return result


def conversation_text(
    description: str, history: Sequence[ClarificationQA]
) -> str:
    parts = [description]
    parts.extend(f"{qa.question} {qa.answer}" for qa in history)
    return " ".join(parts).lower()


def _has(text: str, *phrases: str) -> bool:
    return any(re.search(rf"\b{re.escape(p)}\b", text) for p in phrases)


def _first(text: str, table: Sequence[tuple[str, tuple[str, ...]]]) -> str:
    for value, phrases in table:
        if _has(text, *phrases):
            return value
    return UNKNOWN_VALUE


# More specific phrases come first so "low risk" is not read as "risk".
_FREQUENCY = (
    ("hourly", ("hourly", "every hour")),
    ("daily", ("daily", "every day", "each day")),
    ("weekly", ("weekly", "every week")),
    ("monthly", ("monthly", "every month")),
    ("quarterly", ("quarterly", "every quarter")),
    ("annually", ("annually", "yearly", "every year", "once a year")),
    ("ad-hoc", ("ad-hoc", "ad hoc", "occasionally", "rarely")),
)
_BUSINESS_VALUE = (
    ("low", ("low value", "minor", "nice to have")),
    ("critical", ("business critical", "essential", "vital")),
    ("high", ("high value", "important", "significant")),
    ("medium", ("medium value", "moderate value")),
)
_COMPLEXITY = (
    ("very_high", ("very complex", "extremely complex")),
    ("very_low", ("trivial", "very simple")),
    ("medium", ("moderately complex", "some complexity")),
    ("high", ("complex", "complicated")),
    ("low", ("simple", "straightforward")),
)
_RISK = (
    ("low", ("low risk", "safe")),
    ("critical", ("critical risk", "catastrophic")),
    ("high", ("high risk", "risky")),
    ("medium", ("medium risk", "moderate risk")),
)
_SENSITIVITY = (
    ("restricted", ("restricted", "classified")),
    ("confidential", ("confidential", "sensitive", "personal data")),
    ("internal", ("internal",)),
    ("public", ("public",)),
)
_JUDGMENT = (
    ("false", ("no judgment", "no judgement", "rule-based", "rules based")),
    ("true", ("judgment", "judgement", "discretion", "case by case")),
)
_USER_COUNT = re.compile(
    r"(\d[\d,]*)\s*(?:users?|people|employees|staff|members)"
)


def user_count_bucket(count: int) -> str:
    """Map a head count onto the stock ``user_count`` ranges."""
    if count <= 5:
        return "1-5"
    if count <= 20:
        return "6-20"
    if count <= 50:
        return "21-50"
    if count <= 100:
        return "51-100"
    return "100+"


class KeywordAttributeExtractor:
    """Deterministic keyword extractor; no model required."""

    _TABLES: dict[str, Sequence[tuple[str, tuple[str, ...]]]] = {
        "frequency": _FREQUENCY,
        "business_value": _BUSINESS_VALUE,
        "complexity": _COMPLEXITY,
        "risk": _RISK,
        "data_sensitivity": _SENSITIVITY,
        "judgment_required": _JUDGMENT,
    }

    def extract_sync(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]:
        text = conversation_text(description, history)
        result: dict[str, ExtractedAttributeValue] = {}
        for name in attribute_names:
            value = self._resolve(name, text)
            if value is None or value == UNKNOWN_VALUE:
                result[name] = unknown_attribute()
            else:
                result[name] = ExtractedAttributeValue(
                    value=value, explanation="Matched by keyword"
                )
        return result

    async def extract(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]:
        return self.extract_sync(description, history, attribute_names)

    def _resolve(self, name: str, text: str) -> Any:
        if name == "user_count":
            match = _USER_COUNT.search(text)
            if match is None:
                return None
            return user_count_bucket(int(match.group(1).replace(",", "")))
        table = self._TABLES.get(name)
        if table is None:
            return None
        value = _first(text, table)
        if name == "judgment_required" and value != UNKNOWN_VALUE:
            return value == "true"
        return value
