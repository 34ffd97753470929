"""Interview state carried between rounds, and the per-round decision."""

from __future__ import annotations

from catalai.constants import DecisionReason, InterviewAction
from catalai.value_objects import CamelModel


class InterviewState(CamelModel):
    """Loop-detection counters for one conversation.

    Immutable: ``InterviewController.decide`` returns an updated copy
    and the caller persists it with the rest of the session.
    """

    questions_asked: int = 0
    answers_received: int = 0
    # Bounded window of the most recently asked questions (raw text).
    recent_questions: tuple[str, ...] = ()
    # Normalized form of every question ever asked.
    asked_questions: tuple[str, ...] = ()
    frustration_hits: int = 0
    empty_question_rounds: int = 0
    repetitive_rounds: int = 0
    duplicate_hits: int = 0
    unknown_answers: int = 0


class InterviewDecision(CamelModel):
    next_state: InterviewState
    action: InterviewAction
    reason: DecisionReason
    questions: tuple[str, ...] = ()
    warning: str | None = None

    @property
    def should_stop(self) -> bool:
        return self.action == InterviewAction.STOP
