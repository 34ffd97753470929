"""Load and validate decision matrix JSON.

Two entry points with different strictness:

- ``load_matrix`` / ``parse_matrix`` are for admin-edited JSON. Any
  invalid rule rejects the whole matrix.
- ``parse_generated_matrix`` is for LLM-generated matrices. Invalid
  conditions and rules are dropped with a warning so a mostly-good
  generation is still usable.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError

from catalai.constants import (
    INITIAL_MATRIX_VERSION,
    RULE_PRIORITY_DEFAULT,
    RULE_PRIORITY_MAX,
    RULE_PRIORITY_MIN,
    MatrixAuthor,
    RuleActionType,
    parse_category,
)
from catalai.matrix.schemas import (
    Attribute,
    Condition,
    DecisionMatrix,
    Rule,
    condition_problem,
)
from catalai.resilience.errors import MatrixValidationError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def parse_matrix(
    data: dict[str, Any], *, source: str = "<data>"
) -> DecisionMatrix:
    """Validate a matrix dict (camelCase or snake_case keys)."""
    try:
        return DecisionMatrix.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid decision matrix in {source}: {exc}"
        raise MatrixValidationError(msg) from exc


def load_matrix(path: Path) -> DecisionMatrix:
    """Load a matrix from a JSON file.

    Raises ``FileNotFoundError`` if the file doesn't exist and
    ``MatrixValidationError`` if it is not a valid matrix.
    """
    if not path.is_file():
        msg = f"Decision matrix not found: {path}"
        raise FileNotFoundError(msg)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Decision matrix {path} is not valid JSON: {exc}"
        raise MatrixValidationError(msg) from exc
    if not isinstance(raw, dict):
        msg = f"Decision matrix {path} must be a JSON object"
        raise MatrixValidationError(msg)
    matrix = parse_matrix(cast(dict[str, Any], raw), source=str(path))
    logger.info(
        "event=matrix_loaded path=%s version=%s rules=%d",
        path,
        matrix.version,
        len(matrix.rules),
    )
    return matrix


def dump_matrix(matrix: DecisionMatrix, path: Path) -> None:
    """Write a matrix as camelCase JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(matrix.to_json_dict(), indent=2) + "\n",
        encoding="utf-8",
    )


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text.strip()).strip()


def parse_generated_matrix(
    content: str,
    *,
    version: str = INITIAL_MATRIX_VERSION,
    created_by: str = MatrixAuthor.AI,
) -> DecisionMatrix:
    """Parse an LLM-generated matrix, salvaging what is valid."""
    try:
        parsed: Any = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse decision matrix from LLM response: {exc}"
        raise MatrixValidationError(msg) from exc
    if not isinstance(parsed, dict):
        msg = "Generated decision matrix must be a JSON object"
        raise MatrixValidationError(msg)
    data = cast(dict[str, Any], parsed)

    attributes = _salvage_attributes(data.get("attributes", []))
    declared = {a.name: a for a in attributes}

    raw_rules: Any = data.get("rules", [])
    rules: list[Rule] = []
    if isinstance(raw_rules, list):
        for raw_rule in cast(list[Any], raw_rules):
            if not isinstance(raw_rule, dict):
                continue
            rule = _salvage_rule(cast(dict[str, Any], raw_rule), declared)
            if rule is not None:
                rules.append(rule)
        dropped = len(cast(list[Any], raw_rules)) - len(rules)
    else:
        dropped = 0

    logger.info(
        "event=generated_matrix_parsed attributes=%d rules=%d dropped=%d",
        len(attributes),
        len(rules),
        dropped,
    )
    return parse_matrix(
        {
            "version": version,
            "created_by": created_by,
            "description": str(
                data.get("description")
                or "AI-generated baseline decision matrix"
            ),
            "attributes": attributes,
            "rules": rules,
        },
        source="generated matrix",
    )


def _salvage_attributes(raw: Any) -> list[Attribute]:
    if not isinstance(raw, list):
        return []
    result: list[Attribute] = []
    seen: set[str] = set()
    for item in cast(list[Any], raw):
        if not isinstance(item, dict):
            continue
        try:
            attr = Attribute.model_validate(item)
        except ValidationError:
            logger.warning("event=generated_attribute_invalid item=%s", item)
            continue
        if attr.name in seen:
            continue
        seen.add(attr.name)
        result.append(attr)
    return result


def _salvage_rule(
    raw: dict[str, Any], declared: dict[str, Attribute]
) -> Rule | None:
    name = str(raw.get("name", "unnamed rule"))

    raw_conditions: Any = raw.get("conditions", [])
    if not isinstance(raw_conditions, list):
        raw_conditions = []
    conditions: list[Condition] = []
    for item in cast(list[Any], raw_conditions):
        cond = _salvage_condition(name, item, declared)
        if cond is not None:
            conditions.append(cond)

    if raw_conditions and not conditions:
        logger.warning(
            "event=generated_rule_dropped rule=%s reason=no_valid_conditions",
            name,
        )
        return None

    raw_action: Any = raw.get("action")
    action: dict[str, Any] = (
        dict(cast(dict[str, Any], raw_action))
        if isinstance(raw_action, dict)
        else {}
    )
    target: Any = action.get("targetCategory")
    if isinstance(target, list) and target:
        target = cast(list[Any], target)[0]
    if target not in (None, ""):
        try:
            action["targetCategory"] = parse_category(target)
        except ValueError:
            logger.warning(
                "event=generated_rule_invalid_target rule=%s target=%s"
                " fallback=adjust_confidence",
                name,
                target,
            )
            action["type"] = RuleActionType.ADJUST_CONFIDENCE
            action["confidenceAdjustment"] = 0.0
            action.pop("targetCategory", None)

    priority = _as_int(raw.get("priority"), RULE_PRIORITY_DEFAULT)
    try:
        return Rule.model_validate({
            "ruleId": str(raw.get("ruleId") or uuid.uuid4()),
            "name": name,
            "description": str(raw.get("description", "")),
            "conditions": conditions,
            "action": action,
            "priority": max(
                RULE_PRIORITY_MIN, min(RULE_PRIORITY_MAX, priority)
            ),
            "active": raw.get("active") is not False,
        })
    except ValidationError as exc:
        logger.warning(
            "event=generated_rule_dropped rule=%s reason=%s",
            name,
            exc.errors()[0]["msg"] if exc.errors() else exc,
        )
        return None


def _salvage_condition(
    rule_name: str, item: Any, declared: dict[str, Attribute]
) -> Condition | None:
    if not isinstance(item, dict):
        return None
    try:
        cond = Condition.model_validate(item)
    except ValidationError:
        logger.warning(
            "event=generated_condition_invalid rule=%s condition=%s",
            rule_name,
            item,
        )
        return None
    attr = declared.get(cond.attribute)
    if attr is None:
        logger.warning(
            "event=generated_condition_dropped rule=%s attribute=%s"
            " reason=undeclared",
            rule_name,
            cond.attribute,
        )
        return None
    problem = condition_problem(cond, attr)
    if problem:
        logger.warning(
            "event=generated_condition_dropped rule=%s reason=%s",
            rule_name,
            problem,
        )
        return None
    return cond


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
