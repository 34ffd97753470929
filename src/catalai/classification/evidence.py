"""Strategic evidence: has the user told us enough to auto-accept?"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import computed_field

from catalai.constants import DEFAULT_EVIDENCE_KEYS
from catalai.value_objects import (
    CamelModel,
    ClarificationQA,
    ExtractedAttributeValue,
)

# Wording for each evidence key, shown to the model when it has to
# generate questions or extract free-text evidence.
STRATEGIC_QUESTIONS: dict[str, str] = {
    "success_criteria": "What would success look like for you?",
    "risks_constraints": "What risks and constraints are you aware of?",
    "value_estimate": "How much time, resource, or money would this save?",
    "sponsorship": "Have you raised this before or do you have sponsorship?",
}

EVIDENCE_INDICATORS: dict[str, re.Pattern[str]] = {
    "success_criteria": re.compile(
        r"\b(success|outcome|goal|achieve|benefit|metric|kpi|target)s?\b",
        re.IGNORECASE,
    ),
    "risks_constraints": re.compile(
        r"\b(risks?|constraints?|blockers?|dependency|dependencies"
        r"|security|compliance|safety)\b",
        re.IGNORECASE,
    ),
    "value_estimate": re.compile(
        r"\b(save|saves|saving|savings|cost|costs|money|revenue|value"
        r"|hours|roi|investment)\b",
        re.IGNORECASE,
    ),
    "sponsorship": re.compile(
        r"\b(sponsors?|sponsorship|owner|stakeholders?|manager|legal"
        r"|budget|approved|buy-in)\b",
        re.IGNORECASE,
    ),
}


class EvidenceState(CamelModel):
    """Which required evidence keys are satisfied."""

    required: tuple[str, ...] = DEFAULT_EVIDENCE_KEYS
    satisfied: frozenset[str] = frozenset()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def missing(self) -> tuple[str, ...]:
        return tuple(k for k in self.required if k not in self.satisfied)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def complete(self) -> bool:
        return not self.missing


def gather_evidence(
    history: Sequence[ClarificationQA],
    attribute_values: Mapping[str, Any] | None = None,
    required_keys: Iterable[str] = DEFAULT_EVIDENCE_KEYS,
) -> EvidenceState:
    """Build the EvidenceState for one conversation.

    A key counts as satisfied when an extracted attribute of that name
    resolved to something other than ``unknown``, or when any answer
    contains one of the key's indicator words. Questions are not
    scanned: asking about risk is not evidence about risk.
    """
    required = tuple(dict.fromkeys(required_keys))
    values = attribute_values or {}
    answers = [qa.answer for qa in history]
    satisfied: set[str] = set()

    for key in required:
        raw = values.get(key)
        if raw is not None:
            extracted = (
                raw
                if isinstance(raw, ExtractedAttributeValue)
                else ExtractedAttributeValue(value=raw)
            )
            if extracted.is_known:
                satisfied.add(key)
                continue
        pattern = EVIDENCE_INDICATORS.get(key)
        if pattern is not None and any(pattern.search(a) for a in answers):
            satisfied.add(key)

    return EvidenceState(required=required, satisfied=frozenset(satisfied))


def evidence_question(key: str) -> str:
    """Direct question for one missing evidence key."""
    return STRATEGIC_QUESTIONS.get(
        key, f"Could you tell us more about {key.replace('_', ' ')}?"
    )
