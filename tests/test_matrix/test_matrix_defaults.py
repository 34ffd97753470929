"""Tests for the stock attributes and starter rules."""

from __future__ import annotations

import pytest

from catalai.classification.evaluator import evaluate_matrix
from catalai.constants import TransformationCategory
from catalai.matrix.defaults import baseline_matrix, default_attributes
from tests.conftest import make_classification


def test_default_attribute_names() -> None:
    assert [a.name for a in default_attributes()] == [
        "frequency",
        "business_value",
        "complexity",
        "risk",
        "user_count",
        "data_sensitivity",
        "judgment_required",
    ]


def test_baseline_matrix_is_valid_version_one() -> None:
    matrix = baseline_matrix()
    assert matrix.version == "1.0"
    assert len({r.rule_id for r in matrix.rules}) == len(matrix.rules)


def test_repetitive_simple_work_goes_to_rpa() -> None:
    result = evaluate_matrix(
        baseline_matrix(),
        make_classification(TransformationCategory.AI_AGENT, 0.7),
        {
            "frequency": "daily",
            "complexity": "low",
            "risk": "low",
            "judgment_required": "false",
        },
    )
    assert result.final_classification.category is TransformationCategory.RPA
    assert result.overridden is True
    # daily-frequency-boost also fires
    assert result.final_classification.confidence == pytest.approx(0.75)


def test_critical_risk_flags_review() -> None:
    result = evaluate_matrix(
        baseline_matrix(),
        make_classification(confidence=0.9),
        {"risk": "critical"},
    )
    assert result.review_flagged is True
    assert result.triggered_rule_ids == ["critical-risk-review"]
