"""Decision matrix: typed JSON model, loading and version history."""

from catalai.matrix.defaults import baseline_matrix, default_attributes
from catalai.matrix.loader import (
    dump_matrix,
    load_matrix,
    parse_generated_matrix,
    parse_matrix,
)
from catalai.matrix.schemas import (
    Attribute,
    Condition,
    DecisionMatrix,
    Rule,
    RuleAction,
)
from catalai.matrix.versioning import (
    MatrixHistory,
    MatrixVersion,
    next_version,
    revise,
)

__all__ = [
    "Attribute",
    "Condition",
    "DecisionMatrix",
    "MatrixHistory",
    "MatrixVersion",
    "Rule",
    "RuleAction",
    "baseline_matrix",
    "default_attributes",
    "dump_matrix",
    "load_matrix",
    "next_version",
    "parse_generated_matrix",
    "parse_matrix",
    "revise",
]
