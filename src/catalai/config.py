"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Self

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

from catalai.constants import (
    DEFAULT_EVIDENCE_KEYS,
    EMPTY_ROUND_LIMIT,
    EXACT_DUPLICATE_LIMIT,
    FRUSTRATION_LIMIT,
    INTERVIEW_HARD_LIMIT,
    INTERVIEW_SOFT_LIMIT,
    RECENT_QUESTION_WINDOW,
    REPETITION_SIMILARITY_THRESHOLD,
    REPETITIVE_ROUND_LIMIT,
    UNKNOWN_ANSWER_LIMIT,
    Confidence,
)

logger = logging.getLogger(__name__)


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return v


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Provider keys; empty leaves litellm to read its own env vars
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Model chain (first = primary, rest = fallbacks tried in order)
    litellm_model_chain: Annotated[list[str], NoDecode] = [
        "openai/gpt-4.1-mini",
        "openai/gpt-4o-mini",
    ]
    llm_timeout_seconds: int = 60
    question_timeout_seconds: float = 45.0

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    debug_mode: bool = False  # forces DEBUG regardless of log_level

    # Decision matrix (optional JSON file; absent = no rule refinement)
    matrix_path: Path | None = None

    # Routing
    auto_classify_threshold: float = Confidence.AUTO_CLASSIFY
    manual_review_threshold: float = Confidence.MANUAL_REVIEW
    required_evidence_keys: Annotated[list[str], NoDecode] = list(
        DEFAULT_EVIDENCE_KEYS
    )

    # Interview policy
    interview_hard_limit: int = INTERVIEW_HARD_LIMIT
    interview_soft_limit: int = INTERVIEW_SOFT_LIMIT
    recent_question_window: int = RECENT_QUESTION_WINDOW
    repetition_similarity_threshold: float = (
        REPETITION_SIMILARITY_THRESHOLD
    )
    repetitive_round_limit: int = REPETITIVE_ROUND_LIMIT
    exact_duplicate_limit: int = EXACT_DUPLICATE_LIMIT
    unknown_answer_limit: int = UNKNOWN_ANSWER_LIMIT
    frustration_limit: int = FRUSTRATION_LIMIT
    empty_round_limit: int = EMPTY_ROUND_LIMIT

    @field_validator(
        "litellm_model_chain", "required_evidence_keys", mode="before"
    )
    @classmethod
    def _parse_list(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        return _split_csv(v)

    @field_validator("litellm_model_chain")
    @classmethod
    def _validate_chain(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError(
                "litellm_model_chain must contain at least one model"
            )
        seen: set[str] = set()
        dupes: list[str] = []
        for m in v:
            if m in seen:
                dupes.append(m)
            seen.add(m)
        if dupes:
            logger.warning(
                "Duplicate models in LITELLM_MODEL_CHAIN: %s",
                ", ".join(dupes),
            )
        return v

    @field_validator(
        "auto_classify_threshold",
        "manual_review_threshold",
        "repetition_similarity_threshold",
    )
    @classmethod
    def _validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        return v

    @field_validator(
        "interview_hard_limit",
        "interview_soft_limit",
        "recent_question_window",
        "repetitive_round_limit",
        "exact_duplicate_limit",
        "unknown_answer_limit",
        "frustration_limit",
        "empty_round_limit",
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("interview limits must be >= 1")
        return v

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level.upper()

    def api_key_for(self, model: str) -> str | None:
        """Configured key for a ``provider/model`` id, if any."""
        provider = model.split("/", 1)[0].lower()
        key = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }.get(provider, "")
        return key or None

    @model_validator(mode="after")
    def _validate_ordering(self) -> Self:
        if self.manual_review_threshold > self.auto_classify_threshold:
            raise ValueError(
                "manual_review_threshold must not exceed "
                "auto_classify_threshold"
            )
        if self.interview_soft_limit > self.interview_hard_limit:
            raise ValueError(
                "interview_soft_limit must not exceed "
                "interview_hard_limit"
            )
        return self

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
