"""Tests for decision matrix import-time validation."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from catalai.constants import RuleActionType, TransformationCategory
from catalai.matrix.schemas import Attribute, Condition, RuleAction
from tests.conftest import make_matrix


def _rule(
    conditions: list[dict[str, object]],
    action: dict[str, object] | None = None,
    **extra: object,
) -> dict[str, object]:
    return {
        "name": "r",
        "conditions": conditions,
        "action": action or {"type": "flag_review", "rationale": "x"},
        **extra,
    }


class TestAttribute:
    def test_weight_clamped(self) -> None:
        assert Attribute(name="a", weight=1.7).weight == 1.0
        assert Attribute(name="a", weight=-3).weight == 0.0

    def test_possible_values_stringified(self) -> None:
        attr = Attribute.model_validate(
            {"name": "tier", "possibleValues": [1, 2, "3"]}
        )
        assert attr.possible_values == ("1", "2", "3")


class TestCondition:
    def test_membership_requires_list(self) -> None:
        with pytest.raises(ValidationError, match="requires a list"):
            Condition(attribute="risk", operator="in", value="low")

    def test_equality_rejects_list(self) -> None:
        with pytest.raises(ValidationError, match="requires a scalar"):
            Condition.model_validate(
                {"attribute": "risk", "operator": "==", "value": ["low"]}
            )

    def test_numeric_operator_requires_number(self) -> None:
        with pytest.raises(ValidationError, match="numeric value"):
            Condition(attribute="volume", operator=">", value="lots")

    def test_numeric_string_accepted(self) -> None:
        cond = Condition(attribute="volume", operator=">=", value="10")
        assert cond.value == "10"

    def test_null_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Condition.model_validate(
                {"attribute": "risk", "operator": "==", "value": None}
            )

    def test_list_value_becomes_tuple(self) -> None:
        cond = Condition.model_validate(
            {"attribute": "risk", "operator": "not_in", "value": ["a"]}
        )
        assert cond.value == ("a",)


class TestRuleAction:
    def test_override_requires_target(self) -> None:
        with pytest.raises(ValidationError, match="targetCategory"):
            RuleAction(type=RuleActionType.OVERRIDE)

    def test_adjust_requires_amount(self) -> None:
        with pytest.raises(ValidationError, match="confidenceAdjustment"):
            RuleAction(type=RuleActionType.ADJUST_CONFIDENCE)

    def test_list_target_sanitized_to_first(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            action = RuleAction.model_validate({
                "type": "override",
                "targetCategory": ["Simplify", "RPA"],
            })
        assert action.target_category is TransformationCategory.SIMPLIFY
        assert "target_category_list_sanitized" in caplog.text

    def test_invalid_target_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid category"):
            RuleAction.model_validate(
                {"type": "override", "targetCategory": "Outsource"}
            )


class TestDecisionMatrix:
    def test_camel_case_round_trip_keys(self) -> None:
        matrix = make_matrix([
            _rule([{"attribute": "risk", "operator": "==", "value": "low"}])
        ])
        data = matrix.to_json_dict()
        assert set(data) >= {"version", "createdAt", "createdBy", "rules"}
        assert "ruleId" in data["rules"][0]
        assert "possibleValues" in data["attributes"][0]

    @pytest.mark.parametrize("version", ["1", "v1.0", "1.0.0", ""])
    def test_bad_version_rejected(self, version: str) -> None:
        with pytest.raises(ValidationError, match="major.minor"):
            make_matrix([], version=version)

    def test_value_outside_possible_values_rejected(self) -> None:
        with pytest.raises(ValidationError, match="possibleValues"):
            make_matrix([
                _rule([
                    {"attribute": "risk", "operator": "==", "value": "extreme"}
                ])
            ])

    def test_possible_values_case_insensitive(self) -> None:
        matrix = make_matrix([
            _rule([{"attribute": "risk", "operator": "==", "value": "HIGH"}])
        ])
        assert matrix.rules[0].conditions[0].value == "HIGH"

    def test_numeric_operator_on_categorical_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cannot use operator"):
            make_matrix([
                _rule([{"attribute": "risk", "operator": ">", "value": 2}])
            ])

    def test_non_numeric_value_on_numeric_attribute_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-numeric"):
            make_matrix([
                _rule([
                    {"attribute": "volume", "operator": "==", "value": "big"}
                ])
            ])

    def test_undeclared_attribute_only_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            matrix = make_matrix([
                _rule([
                    {"attribute": "mystery", "operator": "==", "value": "x"}
                ])
            ])
        assert len(matrix.rules) == 1
        assert "undeclared_attribute" in caplog.text

    def test_duplicate_rule_ids_rejected(self) -> None:
        rule = _rule(
            [{"attribute": "risk", "operator": "==", "value": "low"}],
            ruleId="same",
        )
        with pytest.raises(ValidationError, match="duplicate ruleId"):
            make_matrix([rule, dict(rule)])

    def test_duplicate_attribute_names_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate attribute"):
            make_matrix([], attributes=[{"name": "a"}, {"name": "a"}])

    def test_matrix_is_frozen(self) -> None:
        matrix = make_matrix([])
        with pytest.raises(ValidationError):
            matrix.version = "2.0"  # type: ignore[misc]
