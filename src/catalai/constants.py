"""Shared constants, the single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON payloads,
log lines, matrix files) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── Transformation Categories ────────────────────────────


class TransformationCategory(StrEnum):
    """The six transformation categories, in progression order.

    Declaration order IS the progression order: Eliminate is the
    lightest intervention, Agentic AI the most autonomous. Use
    ``rank`` for comparisons; plain ``<`` on members compares the
    underlying strings, not the progression.
    """

    ELIMINATE = "Eliminate"
    SIMPLIFY = "Simplify"
    DIGITISE = "Digitise"
    RPA = "RPA"
    AI_AGENT = "AI Agent"
    AGENTIC_AI = "Agentic AI"

    @property
    def rank(self) -> int:
        return _CATEGORY_ORDER.index(self)

    def steps_to(self, other: TransformationCategory) -> int:
        """Signed distance along the progression (positive = further)."""
        return other.rank - self.rank

    def progression_path(self) -> tuple[TransformationCategory, ...]:
        """Every category up to and including this one."""
        return _CATEGORY_ORDER[: self.rank + 1]

    def describe_progression(self) -> str:
        """Human-readable path, e.g. ``Eliminate → Simplify → Digitise``."""
        return " → ".join(c.value for c in self.progression_path())


_CATEGORY_ORDER: tuple[TransformationCategory, ...] = tuple(
    TransformationCategory
)


def parse_category(value: object) -> TransformationCategory:
    """Resolve a category from its value, member name, or loose casing.

    Raises ValueError for anything that is not one of the six.
    """
    if isinstance(value, TransformationCategory):
        return value
    text = str(value).strip()
    for category in TransformationCategory:
        if text.casefold() in (
            category.value.casefold(),
            category.name.casefold(),
        ):
            return category
    msg = (
        f"Invalid category: {value!r}. Must be one of: "
        f"{[c.value for c in TransformationCategory]}"
    )
    raise ValueError(msg)


# ── Decision Matrix Enums ────────────────────────────────


class AttributeType(StrEnum):
    """Declared type of a matrix attribute."""

    CATEGORICAL = "categorical"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"


class Operator(StrEnum):
    """Condition comparison operators."""

    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    IN = "in"
    NOT_IN = "not_in"


NUMERIC_OPERATORS = frozenset({
    Operator.GT,
    Operator.LT,
    Operator.GE,
    Operator.LE,
})
MEMBERSHIP_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})


class RuleActionType(StrEnum):
    """What a matching rule does to the classification."""

    OVERRIDE = "override"
    ADJUST_CONFIDENCE = "adjust_confidence"
    FLAG_REVIEW = "flag_review"


class MatrixAuthor(StrEnum):
    """Who created a decision matrix version."""

    AI = "ai"
    ADMIN = "admin"


# ── Routing & Interview Enums ────────────────────────────


class RoutingAction(StrEnum):
    """Outcome of confidence-based routing."""

    AUTO_CLASSIFY = "auto_classify"
    CLARIFY = "clarify"
    MANUAL_REVIEW = "manual_review"


class InterviewAction(StrEnum):
    """Whether the interview keeps going."""

    ASK = "ask"
    STOP = "stop"


class DecisionReason(StrEnum):
    """Why the interview controller chose its action."""

    MANUAL_SKIP = "manual_skip"
    HARD_LIMIT = "hard_limit"
    FRUSTRATION = "frustration"
    REPETITIVE_QUESTIONS = "repetitive_questions"
    EXACT_DUPLICATE = "exact_duplicate"
    UNKNOWN_ANSWERS = "unknown_answers"
    GENERATION_LOOP = "generation_loop"
    SOFT_LIMIT_WARNING = "soft_limit_warning"
    NO_QUESTIONS_GENERATED = "no_questions_generated"
    CONTINUE = "continue"


# Stop checks whose relative order is configurable (rules 3-7).
DEFAULT_STOP_ORDER: tuple[DecisionReason, ...] = (
    DecisionReason.FRUSTRATION,
    DecisionReason.REPETITIVE_QUESTIONS,
    DecisionReason.EXACT_DUPLICATE,
    DecisionReason.UNKNOWN_ANSWERS,
    DecisionReason.GENERATION_LOOP,
)


class OutcomeStatus(StrEnum):
    """Where a conversation stands after a pipeline call."""

    CLARIFY = "clarify"
    CLASSIFIED = "classified"
    MANUAL_REVIEW = "manual_review"


# ── Confidence Thresholds ────────────────────────────────


class Confidence:
    """Named confidence thresholds, kept in one place."""

    AUTO_CLASSIFY = 0.95  # auto-accept when evidence is complete
    MANUAL_REVIEW = 0.50  # below this → human adjudication
    FLOOR = 0.0
    CEILING = 1.0


def clamp_unit(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(Confidence.FLOOR, min(Confidence.CEILING, float(value)))


# ── Interview Limits ─────────────────────────────────────

INTERVIEW_HARD_LIMIT = 15
INTERVIEW_SOFT_LIMIT = 8
RECENT_QUESTION_WINDOW = 6
REPETITION_SIMILARITY_THRESHOLD = 0.6
REPETITIVE_ROUND_LIMIT = 3
EXACT_DUPLICATE_LIMIT = 5
UNKNOWN_ANSWER_LIMIT = 5
FRUSTRATION_LIMIT = 2
EMPTY_ROUND_LIMIT = 2

# ── Strategic Evidence ───────────────────────────────────

DEFAULT_EVIDENCE_KEYS: tuple[str, ...] = (
    "success_criteria",
    "risks_constraints",
    "value_estimate",
    "sponsorship",
)

UNKNOWN_VALUE = "unknown"

# ── Matrix Versioning ────────────────────────────────────

INITIAL_MATRIX_VERSION = "1.0"
RULE_PRIORITY_MIN = 0
RULE_PRIORITY_MAX = 100
RULE_PRIORITY_DEFAULT = 50

# ── Circuit Breaker Configuration ────────────────────────

CB_LLM_FAILURE_THRESHOLD = 5
CB_LLM_RECOVERY_TIMEOUT = 30

# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 2
RETRY_MAX_WAIT = 30

# ── LLM Output ───────────────────────────────────────────

LLM_MAX_OUTPUT_TOKENS = 2048
MAX_QUESTIONS_PER_ROUND = 2

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
