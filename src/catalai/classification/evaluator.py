"""Apply a decision matrix to an LLM classification.

``evaluate_matrix`` is pure: the same matrix, classification and
attribute values always produce the same ``EvaluationResult``. It never
raises: a condition on an attribute the matrix does not declare simply
does not match, and an unresolved ``"unknown"`` value compares as text.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from catalai.constants import (
    MEMBERSHIP_OPERATORS,
    UNKNOWN_VALUE,
    Operator,
    RuleActionType,
    TransformationCategory,
    clamp_unit,
)
from catalai.matrix.schemas import (
    Condition,
    DecisionMatrix,
    Rule,
    RuleAction,
    as_number,
)
from catalai.value_objects import (
    CamelModel,
    Classification,
    ExtractedAttributeValue,
)

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"true", "yes", "y", "1"})
_FALSY = frozenset({"false", "no", "n", "0"})


class TriggeredRule(CamelModel):
    """A rule whose conditions all matched."""

    rule_id: str
    rule_name: str
    priority: int
    action: RuleAction


class EvaluationResult(CamelModel):
    matrix_version: str
    original_classification: Classification
    extracted_attributes: dict[str, ExtractedAttributeValue]
    triggered_rules: tuple[TriggeredRule, ...] = ()
    final_classification: Classification
    overridden: bool = False
    review_flagged: bool = False
    review_reasons: tuple[str, ...] = ()
    attribute_coverage: float = 0.0

    @property
    def triggered_rule_ids(self) -> list[str]:
        return [t.rule_id for t in self.triggered_rules]


def normalize_attribute_values(
    values: Mapping[str, Any],
) -> dict[str, ExtractedAttributeValue]:
    """Wrap raw values so every entry carries an explanation slot."""
    result: dict[str, ExtractedAttributeValue] = {}
    for name, value in values.items():
        if isinstance(value, ExtractedAttributeValue):
            result[name] = value
        elif value is None:
            result[name] = ExtractedAttributeValue()
        else:
            result[name] = ExtractedAttributeValue(value=value)
    return result


def _runtime_value(extracted: ExtractedAttributeValue | None) -> Any:
    if extracted is None:
        return None
    return extracted.value


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = str(value).strip().casefold()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return None


def _text(value: Any) -> str:
    return str(value).strip().casefold()


def _equals(actual: Any, expected: Any) -> bool:
    """Loose equality: booleans by truthiness, numbers numerically,
    everything else as case-insensitive text."""
    if isinstance(expected, bool) or isinstance(actual, bool):
        a, e = _as_bool(actual), _as_bool(expected)
        return a is not None and a == e
    a_num, e_num = as_number(actual), as_number(expected)
    if a_num is not None and e_num is not None:
        return a_num == e_num
    return _text(actual) == _text(expected)


def condition_matches(condition: Condition, actual: Any) -> bool:
    """Whether a runtime value satisfies one condition.

    ``"unknown"`` is compared as ordinary text, so it can satisfy
    ``!=`` and ``not_in`` but never ``==``, ``in`` or an ordering.
    """
    if actual is None:
        return False

    op = condition.operator
    if op in MEMBERSHIP_OPERATORS:
        found = any(_equals(actual, v) for v in condition.values)
        return found if op == Operator.IN else not found
    if op == Operator.EQ:
        return _equals(actual, condition.value)
    if op == Operator.NE:
        return not _equals(actual, condition.value)

    a, e = as_number(actual), as_number(condition.value)
    if a is None or e is None:
        return False
    match op:
        case Operator.GT:
            return a > e
        case Operator.LT:
            return a < e
        case Operator.GE:
            return a >= e
        case Operator.LE:
            return a <= e
    return False


def rule_matches(
    rule: Rule,
    matrix: DecisionMatrix,
    values: Mapping[str, ExtractedAttributeValue],
) -> bool:
    """All conditions must match; a rule with none always fires."""
    for cond in rule.conditions:
        if matrix.attribute(cond.attribute) is None:
            return False
        actual = _runtime_value(values.get(cond.attribute))
        if not condition_matches(cond, actual):
            return False
    return True


def ordered_rules(matrix: DecisionMatrix) -> list[Rule]:
    """Active rules, highest priority first, ties in declaration order."""
    return sorted(
        (r for r in matrix.rules if r.active),
        key=lambda r: -r.priority,
    )


def attribute_coverage(
    matrix: DecisionMatrix,
    values: Mapping[str, ExtractedAttributeValue],
) -> float:
    """Weight-normalised share of declared attributes with a known value."""
    total = sum(a.weight for a in matrix.attributes)
    if total <= 0:
        return 0.0
    known = sum(
        a.weight
        for a in matrix.attributes
        if (v := values.get(a.name)) is not None and v.is_known
    )
    return round(clamp_unit(known / total), 4)


def _progression_note(
    original: TransformationCategory,
    target: TransformationCategory,
    rule_name: str,
) -> str:
    steps = original.steps_to(target)
    if steps == 0:
        return f"Rule '{rule_name}' confirmed {target.value}."
    direction = "further along" if steps > 0 else "back"
    return (
        f"Rule '{rule_name}' moved the category {direction} the "
        f"progression: {original.value} → {target.value} "
        f"({abs(steps)} step{'s' if abs(steps) != 1 else ''})."
    )


def _join(*parts: str) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def evaluate_matrix(
    matrix: DecisionMatrix,
    classification: Classification,
    attribute_values: Mapping[str, Any],
) -> EvaluationResult:
    """Run every active rule of ``matrix`` against the attribute values.

    - The first (highest-priority) matching override sets the category;
      later overrides are recorded in ``triggered_rules`` but ignored.
    - Confidence adjustments sum, and only the final sum is clamped.
    - Any matching flag_review rule sets ``review_flagged``.
    """
    values = normalize_attribute_values(attribute_values)

    triggered: list[TriggeredRule] = []
    override: tuple[Rule, TransformationCategory] | None = None
    adjustment = 0.0
    review_reasons: list[str] = []
    review_flagged = False

    for rule in ordered_rules(matrix):
        if not rule_matches(rule, matrix, values):
            continue
        triggered.append(
            TriggeredRule(
                rule_id=rule.rule_id,
                rule_name=rule.name,
                priority=rule.priority,
                action=rule.action,
            )
        )
        action = rule.action
        match action.type:
            case RuleActionType.OVERRIDE:
                if override is None and action.target_category is not None:
                    override = (rule, action.target_category)
            case RuleActionType.ADJUST_CONFIDENCE:
                adjustment += action.confidence_adjustment or 0.0
            case RuleActionType.FLAG_REVIEW:
                review_flagged = True
                review_reasons.append(action.rationale or rule.name)

    category = classification.category
    rationale = classification.rationale
    progression = classification.category_progression
    if override is not None:
        rule, category = override
        rationale = _join(rationale, rule.action.rationale)
        progression = _join(
            progression,
            _progression_note(classification.category, category, rule.name),
        )

    final = classification.model_copy(
        update={
            "category": category,
            "confidence": clamp_unit(classification.confidence + adjustment),
            "rationale": rationale,
            "category_progression": progression,
        }
    )

    logger.debug(
        "event=matrix_evaluated version=%s triggered=%d overridden=%s"
        " review=%s confidence=%.3f->%.3f",
        matrix.version,
        len(triggered),
        override is not None,
        review_flagged,
        classification.confidence,
        final.confidence,
    )

    return EvaluationResult(
        matrix_version=matrix.version,
        original_classification=classification,
        extracted_attributes={
            name: values.get(name) or ExtractedAttributeValue(
                value=UNKNOWN_VALUE
            )
            for name in (*matrix.attribute_names, *values)
        },
        triggered_rules=tuple(triggered),
        final_classification=final,
        overridden=override is not None,
        review_flagged=review_flagged,
        review_reasons=tuple(review_reasons),
        attribute_coverage=attribute_coverage(matrix, values),
    )
