"""Shared test fixtures: matrices, classifications, scripted LLM."""

import os

# Force demo API keys for all tests, so no real LLM calls.
# These are set unconditionally at import time, so even if you have
# real keys in your shell environment, pytest overwrites them before
# any Settings() is created.
os.environ["ANTHROPIC_API_KEY"] = "for-demo-purposes-only"
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"

from typing import Any

import pytest

from catalai.constants import TransformationCategory
from catalai.llm.fakes import FakeCapabilities
from catalai.llm.protocols import QuestionBatch
from catalai.matrix.defaults import baseline_matrix
from catalai.matrix.schemas import DecisionMatrix
from catalai.value_objects import Classification

STRATEGIC_ANSWER = (
    "Success means the backlog is cleared in a day; the main risk is "
    "compliance with audit rules; it would save about 40 hours a week; "
    "the finance manager is our sponsor."
)


def make_classification(
    category: str = TransformationCategory.RPA,
    confidence: float = 0.8,
    rationale: str = "Repetitive data entry",
) -> Classification:
    return Classification(
        category=category, confidence=confidence, rationale=rationale
    )


def make_matrix(
    rules: list[dict[str, Any]],
    attributes: list[dict[str, Any]] | None = None,
    version: str = "1.0",
) -> DecisionMatrix:
    """Build a matrix from camelCase dicts, the way admins write it."""
    if attributes is None:
        attributes = [
            {
                "name": "frequency",
                "possibleValues": ["hourly", "daily", "weekly", "monthly"],
                "weight": 0.8,
            },
            {
                "name": "risk",
                "possibleValues": ["low", "medium", "high", "critical"],
                "weight": 0.9,
            },
            {"name": "volume", "type": "numeric", "weight": 0.5},
            {"name": "judgment_required", "type": "boolean", "weight": 0.7},
        ]
    return DecisionMatrix.model_validate({
        "version": version,
        "createdBy": "admin",
        "attributes": attributes,
        "rules": rules,
    })


@pytest.fixture
def classification() -> Classification:
    return make_classification()


@pytest.fixture
def matrix() -> DecisionMatrix:
    return baseline_matrix()


@pytest.fixture
def fake_llm() -> FakeCapabilities:
    """Medium-confidence classification plus one question per round."""
    return FakeCapabilities(
        classifications=[make_classification(confidence=0.8)],
        question_batches=[
            QuestionBatch(questions=("How often does this run?",))
        ],
    )
