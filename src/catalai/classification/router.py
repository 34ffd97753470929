"""Confidence-based routing: auto-classify, clarify, or manual review.

Evaluation order:
  1. confidence ≥ auto threshold AND evidence complete → auto_classify
  2. confidence < manual-review threshold → manual_review
  3. everything else → clarify

Missing evidence always blocks auto_classify, so a 0.99 classification
of a description with no success criteria still gets questions.
"""

from __future__ import annotations

import logging

from catalai.classification.evidence import EvidenceState
from catalai.config import Settings
from catalai.constants import Confidence, RoutingAction
from catalai.value_objects import Classification

logger = logging.getLogger(__name__)


class ClassificationRouter:
    """Routes one classification given the evidence gathered so far."""

    def __init__(
        self,
        auto_threshold: float = Confidence.AUTO_CLASSIFY,
        manual_review_threshold: float = Confidence.MANUAL_REVIEW,
    ) -> None:
        for value in (auto_threshold, manual_review_threshold):
            if not 0.0 <= value <= 1.0:
                msg = f"Routing threshold {value} is outside [0, 1]"
                raise ValueError(msg)
        if manual_review_threshold > auto_threshold:
            msg = (
                f"manual_review threshold {manual_review_threshold} "
                f"exceeds auto threshold {auto_threshold}"
            )
            raise ValueError(msg)
        self.auto_threshold = auto_threshold
        self.manual_review_threshold = manual_review_threshold

    @classmethod
    def from_settings(cls, settings: Settings) -> ClassificationRouter:
        return cls(
            auto_threshold=settings.auto_classify_threshold,
            manual_review_threshold=settings.manual_review_threshold,
        )

    def route(
        self,
        classification: Classification,
        evidence: EvidenceState | bool,
    ) -> RoutingAction:
        complete = (
            evidence.complete
            if isinstance(evidence, EvidenceState)
            else bool(evidence)
        )
        confidence = classification.confidence

        if confidence >= self.auto_threshold and complete:
            action = RoutingAction.AUTO_CLASSIFY
        elif confidence < self.manual_review_threshold:
            action = RoutingAction.MANUAL_REVIEW
        else:
            action = RoutingAction.CLARIFY

        logger.debug(
            "event=routed category=%s confidence=%.3f evidence_complete=%s"
            " action=%s",
            classification.category,
            confidence,
            complete,
            action,
        )
        return action


def route_classification(
    classification: Classification,
    evidence: EvidenceState | bool,
    settings: Settings | None = None,
) -> RoutingAction:
    """Route with thresholds from ``settings`` (defaults when None)."""
    router = (
        ClassificationRouter.from_settings(settings)
        if settings is not None
        else ClassificationRouter()
    )
    return router.route(classification, evidence)
