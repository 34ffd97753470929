"""Rule evaluation, attribute extraction and confidence routing."""

from catalai.classification.evaluator import (
    EvaluationResult,
    TriggeredRule,
    evaluate_matrix,
)
from catalai.classification.evidence import EvidenceState, gather_evidence
from catalai.classification.router import (
    ClassificationRouter,
    route_classification,
)

__all__ = [
    "ClassificationRouter",
    "EvaluationResult",
    "EvidenceState",
    "TriggeredRule",
    "evaluate_matrix",
    "gather_evidence",
    "route_classification",
]
