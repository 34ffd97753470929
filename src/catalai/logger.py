"""Structured JSON decision log keyed by session id."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from catalai.config import Settings
from catalai.constants import ERROR_TRUNCATION_CHARS
from catalai.logging_config import configure_decision_log


class DecisionLogger:
    """Appends one JSON object per pipeline decision to decisions.log."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._logger = configure_decision_log(log_dir, level)

    @classmethod
    def from_settings(cls, settings: Settings) -> DecisionLogger:
        return cls(settings.log_dir, settings.effective_log_level)

    def log_routing(
        self,
        session_id: str,
        category: str,
        confidence: float,
        action: str,
        missing_evidence: list[str],
    ) -> None:
        self._write(
            "routing",
            session_id,
            category=category,
            confidence=round(confidence, 4),
            action=action,
            missing_evidence=missing_evidence,
        )

    def log_interview(
        self,
        session_id: str,
        action: str,
        reason: str,
        questions_asked: int,
        questions: list[str],
    ) -> None:
        self._write(
            "interview",
            session_id,
            action=action,
            reason=reason,
            questions_asked=questions_asked,
            questions=questions,
        )

    def log_evaluation(
        self,
        session_id: str,
        matrix_version: str | None,
        triggered_rules: list[str],
        final_category: str,
        final_confidence: float,
        overridden: bool,
    ) -> None:
        self._write(
            "evaluation",
            session_id,
            matrix_version=matrix_version,
            triggered_rules=triggered_rules,
            final_category=final_category,
            final_confidence=round(final_confidence, 4),
            overridden=overridden,
        )

    def log_error(
        self,
        session_id: str,
        component: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": session_id,
                "component": component,
                "error": error[:ERROR_TRUNCATION_CHARS],
            })
        )

    def _write(
        self, kind: str, session_id: str, **fields: Any
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": kind,
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": session_id,
                **fields,
            })
        )
