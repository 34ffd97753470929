"""Pydantic models for the versioned decision matrix.

Field names (camelCase aliases) match the JSON that admin tooling edits
directly. Validation happens at import time so that a rule with an
operator/value mismatch is rejected before it can be evaluated.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import UTC, datetime
from typing import Any, Self, cast

from pydantic import Field, field_validator, model_validator

from catalai.constants import (
    MEMBERSHIP_OPERATORS,
    NUMERIC_OPERATORS,
    RULE_PRIORITY_DEFAULT,
    AttributeType,
    MatrixAuthor,
    Operator,
    RuleActionType,
    TransformationCategory,
    clamp_unit,
    parse_category,
)
from catalai.value_objects import CamelModel

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^\d+\.\d+$")

# Tagged value variant: exactly one of these shapes per condition.
ConditionValue = bool | int | float | str | tuple[str, ...]


def as_number(value: Any) -> float | None:
    """Numeric reading of a value, or None (booleans are not numbers)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


class Attribute(CamelModel):
    """A weighted business attribute the matrix reasons about."""

    name: str = Field(min_length=1)
    type: AttributeType = AttributeType.CATEGORICAL
    possible_values: tuple[str, ...] | None = None
    weight: float = 0.5
    description: str = ""

    @field_validator("weight", mode="before")
    @classmethod
    def _clamp_weight(cls, v: Any) -> float:
        return clamp_unit(float(v))

    @field_validator("possible_values", mode="before")
    @classmethod
    def _stringify_values(cls, v: Any) -> Any:
        if isinstance(v, list | tuple):
            return tuple(str(x) for x in cast(list[Any], v))
        return v


class Condition(CamelModel):
    """``attribute <operator> value``, one clause of a rule."""

    attribute: str = Field(min_length=1)
    operator: Operator
    value: ConditionValue

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, v: Any) -> Any:
        if isinstance(v, list | tuple):
            return tuple(str(x) for x in cast(list[Any], v))
        if v is None or isinstance(v, dict):
            msg = "condition value must be a string, number, boolean or list"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _check_operator_value(self) -> Self:
        is_list = isinstance(self.value, tuple)
        if self.operator in MEMBERSHIP_OPERATORS and not is_list:
            msg = (
                f"operator '{self.operator}' on '{self.attribute}' "
                "requires a list value"
            )
            raise ValueError(msg)
        if self.operator not in MEMBERSHIP_OPERATORS and is_list:
            msg = (
                f"operator '{self.operator}' on '{self.attribute}' "
                "requires a scalar value"
            )
            raise ValueError(msg)
        if (
            self.operator in NUMERIC_OPERATORS
            and as_number(self.value) is None
        ):
            msg = (
                f"operator '{self.operator}' on '{self.attribute}' "
                f"requires a numeric value, got {self.value!r}"
            )
            raise ValueError(msg)
        return self

    @property
    def values(self) -> tuple[str, ...]:
        """The value as a tuple of strings (for possibleValues checks)."""
        if isinstance(self.value, tuple):
            return self.value
        return (str(self.value),)


class RuleAction(CamelModel):
    """What a rule does when all of its conditions match."""

    type: RuleActionType
    target_category: TransformationCategory | None = None
    confidence_adjustment: float | None = None
    rationale: str = ""

    @field_validator("target_category", mode="before")
    @classmethod
    def _sanitize_target(cls, v: Any) -> Any:
        if isinstance(v, list | tuple):
            items = cast(list[Any], v)
            first = items[0] if items else None
            logger.warning(
                "event=target_category_list_sanitized values=%s using=%s",
                items,
                first,
            )
            v = first
        if v is None or v == "":
            return None
        return parse_category(v)

    @model_validator(mode="after")
    def _check_required_fields(self) -> Self:
        if (
            self.type == RuleActionType.OVERRIDE
            and self.target_category is None
        ):
            raise ValueError("override action requires targetCategory")
        if (
            self.type == RuleActionType.ADJUST_CONFIDENCE
            and self.confidence_adjustment is None
        ):
            raise ValueError(
                "adjust_confidence action requires confidenceAdjustment"
            )
        return self


class Rule(CamelModel):
    """A prioritised conditional statement (conditions are AND-ed)."""

    rule_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    conditions: tuple[Condition, ...] = ()
    action: RuleAction
    priority: int = RULE_PRIORITY_DEFAULT
    active: bool = True


class DecisionMatrix(CamelModel):
    """One immutable version of the attribute/rule bundle."""

    version: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC)
    )
    created_by: str = MatrixAuthor.ADMIN
    description: str = ""
    attributes: tuple[Attribute, ...] = ()
    rules: tuple[Rule, ...] = ()
    active: bool = True

    @field_validator("version", mode="before")
    @classmethod
    def _check_version(cls, v: Any) -> str:
        text = str(v).strip()
        if not VERSION_PATTERN.match(text):
            msg = f"version must be 'major.minor', got {v!r}"
            raise ValueError(msg)
        return text

    @model_validator(mode="after")
    def _check_references(self) -> Self:
        names = [a.name for a in self.attributes]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            msg = f"duplicate attribute names: {dupes}"
            raise ValueError(msg)

        rule_ids = [r.rule_id for r in self.rules]
        dupe_ids = sorted({i for i in rule_ids if rule_ids.count(i) > 1})
        if dupe_ids:
            msg = f"duplicate ruleId values: {dupe_ids}"
            raise ValueError(msg)

        declared = {a.name: a for a in self.attributes}
        for rule in self.rules:
            for cond in rule.conditions:
                attr = declared.get(cond.attribute)
                if attr is None:
                    logger.warning(
                        "event=undeclared_attribute rule=%s attribute=%s"
                        " note=condition_never_matches",
                        rule.name,
                        cond.attribute,
                    )
                    continue
                problem = condition_problem(cond, attr)
                if problem:
                    msg = f"rule '{rule.name}': {problem}"
                    raise ValueError(msg)
        return self

    def attribute(self, name: str) -> Attribute | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    @property
    def attribute_names(self) -> list[str]:
        return [a.name for a in self.attributes]


def condition_problem(cond: Condition, attr: Attribute) -> str | None:
    """Describe why a condition is incompatible with its attribute."""
    if attr.type == AttributeType.BOOLEAN:
        if cond.operator in NUMERIC_OPERATORS:
            return (
                f"boolean attribute '{attr.name}' cannot use "
                f"operator '{cond.operator}'"
            )
        return None

    if attr.type == AttributeType.NUMERIC:
        bad = [v for v in cond.values if as_number(v) is None]
        if bad:
            return (
                f"numeric attribute '{attr.name}' compared with "
                f"non-numeric value(s) {bad}"
            )
        return None

    if cond.operator in NUMERIC_OPERATORS and attr.possible_values:
        return (
            f"categorical attribute '{attr.name}' cannot use "
            f"operator '{cond.operator}'"
        )
    if attr.possible_values:
        allowed = {p.casefold() for p in attr.possible_values}
        invalid = [v for v in cond.values if v.casefold() not in allowed]
        if invalid:
            return (
                f"value(s) {invalid} not in possibleValues of "
                f"'{attr.name}' {list(attr.possible_values)}"
            )
    return None
