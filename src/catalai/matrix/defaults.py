"""Stock attribute set and starter rule bundle (matrix version 1.0)."""

from __future__ import annotations

from catalai.constants import (
    INITIAL_MATRIX_VERSION,
    AttributeType,
    MatrixAuthor,
    Operator,
    RuleActionType,
    TransformationCategory,
)
from catalai.matrix.schemas import (
    Attribute,
    Condition,
    DecisionMatrix,
    Rule,
    RuleAction,
)

FREQUENCY_VALUES = (
    "hourly",
    "daily",
    "weekly",
    "monthly",
    "quarterly",
    "annually",
    "ad-hoc",
)
LEVEL_VALUES = ("low", "medium", "high", "critical")
COMPLEXITY_VALUES = ("very_low", "low", "medium", "high", "very_high")
USER_COUNT_VALUES = ("1-5", "6-20", "21-50", "51-100", "100+")
SENSITIVITY_VALUES = ("public", "internal", "confidential", "restricted")


def default_attributes() -> tuple[Attribute, ...]:
    return (
        Attribute(
            name="frequency",
            possible_values=FREQUENCY_VALUES,
            weight=0.8,
            description="How often the process is executed",
        ),
        Attribute(
            name="business_value",
            possible_values=LEVEL_VALUES,
            weight=0.9,
            description=(
                "Impact on revenue, customer satisfaction or compliance"
            ),
        ),
        Attribute(
            name="complexity",
            possible_values=COMPLEXITY_VALUES,
            weight=0.7,
            description="Steps, systems, decision points and exceptions",
        ),
        Attribute(
            name="risk",
            possible_values=LEVEL_VALUES,
            weight=0.9,
            description="Impact if the process fails or is changed",
        ),
        Attribute(
            name="user_count",
            possible_values=USER_COUNT_VALUES,
            weight=0.4,
            description="People involved in or affected by the process",
        ),
        Attribute(
            name="data_sensitivity",
            possible_values=SENSITIVITY_VALUES,
            weight=0.6,
            description="Sensitivity of the data handled",
        ),
        Attribute(
            name="judgment_required",
            type=AttributeType.BOOLEAN,
            weight=0.7,
            description="Whether steps need human judgment",
        ),
    )


def _cond(attribute: str, operator: Operator, value: object) -> Condition:
    return Condition.model_validate(
        {"attribute": attribute, "operator": operator, "value": value}
    )


def baseline_rules() -> tuple[Rule, ...]:
    return (
        Rule(
            rule_id="critical-risk-review",
            name="Critical risk needs review",
            description="Critical-risk processes always get a human look",
            conditions=(_cond("risk", Operator.EQ, "critical"),),
            action=RuleAction(
                type=RuleActionType.FLAG_REVIEW,
                rationale="Critical risk if automated",
            ),
            priority=90,
        ),
        Rule(
            rule_id="restricted-data-review",
            name="Restricted data needs review",
            conditions=(
                _cond("data_sensitivity", Operator.EQ, "restricted"),
            ),
            action=RuleAction(
                type=RuleActionType.FLAG_REVIEW,
                rationale="Restricted data handling",
            ),
            priority=85,
        ),
        Rule(
            rule_id="low-value-rare-eliminate",
            name="Low value, rarely run",
            conditions=(
                _cond("business_value", Operator.EQ, "low"),
                _cond(
                    "frequency", Operator.IN, ["annually", "ad-hoc"]
                ),
            ),
            action=RuleAction(
                type=RuleActionType.OVERRIDE,
                target_category=TransformationCategory.ELIMINATE,
                rationale="Low-value process that rarely runs",
            ),
            priority=80,
        ),
        Rule(
            rule_id="repetitive-simple-rpa",
            name="Frequent, simple and low risk",
            conditions=(
                _cond("frequency", Operator.IN, ["hourly", "daily"]),
                _cond("complexity", Operator.IN, ["very_low", "low"]),
                _cond("risk", Operator.EQ, "low"),
                _cond("judgment_required", Operator.EQ, False),
            ),
            action=RuleAction(
                type=RuleActionType.OVERRIDE,
                target_category=TransformationCategory.RPA,
                rationale="Rule-based, repetitive work suits RPA",
            ),
            priority=70,
        ),
        Rule(
            rule_id="high-risk-confidence-penalty",
            name="High risk lowers confidence",
            conditions=(_cond("risk", Operator.EQ, "high"),),
            action=RuleAction(
                type=RuleActionType.ADJUST_CONFIDENCE,
                confidence_adjustment=-0.1,
                rationale="High risk makes automation advice less certain",
            ),
            priority=60,
        ),
        Rule(
            rule_id="complex-high-value-boost",
            name="Complex, high-value work",
            conditions=(
                _cond("complexity", Operator.IN, ["high", "very_high"]),
                _cond("business_value", Operator.IN, ["high", "critical"]),
            ),
            action=RuleAction(
                type=RuleActionType.ADJUST_CONFIDENCE,
                confidence_adjustment=0.05,
                rationale="Strong case for intelligent automation",
            ),
            priority=50,
        ),
        Rule(
            rule_id="daily-frequency-boost",
            name="Runs daily",
            conditions=(_cond("frequency", Operator.EQ, "daily"),),
            action=RuleAction(
                type=RuleActionType.ADJUST_CONFIDENCE,
                confidence_adjustment=0.05,
                rationale="Daily volume confirms the automation case",
            ),
            priority=40,
        ),
    )


def baseline_matrix() -> DecisionMatrix:
    return DecisionMatrix(
        version=INITIAL_MATRIX_VERSION,
        created_by=MatrixAuthor.ADMIN,
        description=(
            "Baseline decision matrix for transformation category "
            "classification"
        ),
        attributes=default_attributes(),
        rules=baseline_rules(),
    )
