"""Tests for confidence-based routing."""

from __future__ import annotations

import pytest

from catalai.classification.evidence import EvidenceState
from catalai.classification.router import (
    ClassificationRouter,
    route_classification,
)
from catalai.config import Settings
from catalai.constants import DEFAULT_EVIDENCE_KEYS, RoutingAction
from tests.conftest import make_classification

COMPLETE = EvidenceState(satisfied=frozenset(DEFAULT_EVIDENCE_KEYS))
INCOMPLETE = EvidenceState(satisfied=frozenset({"success_criteria"}))

_RANK = {
    RoutingAction.MANUAL_REVIEW: 0,
    RoutingAction.CLARIFY: 1,
    RoutingAction.AUTO_CLASSIFY: 2,
}


class TestRoute:
    def test_high_confidence_without_evidence_clarifies(self) -> None:
        action = ClassificationRouter().route(
            make_classification(confidence=0.96), INCOMPLETE
        )
        assert action is RoutingAction.CLARIFY

    def test_high_confidence_with_evidence_auto(self) -> None:
        action = ClassificationRouter().route(
            make_classification(confidence=0.96), COMPLETE
        )
        assert action is RoutingAction.AUTO_CLASSIFY

    def test_threshold_is_inclusive(self) -> None:
        action = ClassificationRouter().route(
            make_classification(confidence=0.95), True
        )
        assert action is RoutingAction.AUTO_CLASSIFY

    @pytest.mark.parametrize("evidence", [COMPLETE, INCOMPLETE])
    def test_low_confidence_goes_to_review(
        self, evidence: EvidenceState
    ) -> None:
        action = ClassificationRouter().route(
            make_classification(confidence=0.3), evidence
        )
        assert action is RoutingAction.MANUAL_REVIEW

    def test_middle_band_clarifies(self) -> None:
        action = ClassificationRouter().route(
            make_classification(confidence=0.5), COMPLETE
        )
        assert action is RoutingAction.CLARIFY

    @pytest.mark.parametrize("evidence", [True, False])
    def test_monotonic_in_confidence(self, evidence: bool) -> None:
        router = ClassificationRouter()
        ranks = [
            _RANK[
                router.route(make_classification(confidence=c / 20), evidence)
            ]
            for c in range(21)
        ]
        assert ranks == sorted(ranks)


class TestThresholds:
    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="outside"):
            ClassificationRouter(auto_threshold=1.2)

    def test_inverted_thresholds_rejected(self) -> None:
        with pytest.raises(ValueError, match="exceeds"):
            ClassificationRouter(
                auto_threshold=0.4, manual_review_threshold=0.6
            )

    def test_settings_thresholds_used(self) -> None:
        settings = Settings(
            auto_classify_threshold=0.8, manual_review_threshold=0.2
        )
        classification = make_classification(confidence=0.85)
        assert (
            route_classification(classification, COMPLETE, settings)
            is RoutingAction.AUTO_CLASSIFY
        )
        assert (
            route_classification(classification, COMPLETE)
            is RoutingAction.CLARIFY
        )


def test_evidence_state_missing_in_declared_order() -> None:
    assert INCOMPLETE.missing == DEFAULT_EVIDENCE_KEYS[1:]
    assert INCOMPLETE.complete is False
    assert COMPLETE.complete is True
