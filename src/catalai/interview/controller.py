"""Round-by-round decision: keep interviewing or stop.

``InterviewController.decide`` is pure. It reads an ``InterviewState``
plus this round's answers and candidate questions, and returns the next
state together with the action. Signals are always computed first so the
returned state is complete whichever rule fires.

Rule order:
  1. manual skip
  2. hard question limit
  3-7. frustration, repetitive questions, exact duplicates,
       unknown answers, generation loop (order configurable)
  8. soft limit reached, keep asking with a warning
  9. keep asking
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from catalai.config import Settings
from catalai.constants import (
    DEFAULT_STOP_ORDER,
    EMPTY_ROUND_LIMIT,
    EXACT_DUPLICATE_LIMIT,
    FRUSTRATION_LIMIT,
    INTERVIEW_HARD_LIMIT,
    INTERVIEW_SOFT_LIMIT,
    RECENT_QUESTION_WINDOW,
    REPETITION_SIMILARITY_THRESHOLD,
    REPETITIVE_ROUND_LIMIT,
    UNKNOWN_ANSWER_LIMIT,
    DecisionReason,
    InterviewAction,
)
from catalai.interview.signals import (
    is_frustrated,
    is_unknown_answer,
    max_similarity,
    normalize_question,
)
from catalai.interview.state import InterviewDecision, InterviewState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterviewPolicy:
    """Thresholds for the stop rules."""

    hard_limit: int = INTERVIEW_HARD_LIMIT
    soft_limit: int = INTERVIEW_SOFT_LIMIT
    recent_window: int = RECENT_QUESTION_WINDOW
    similarity_threshold: float = REPETITION_SIMILARITY_THRESHOLD
    repetitive_round_limit: int = REPETITIVE_ROUND_LIMIT
    exact_duplicate_limit: int = EXACT_DUPLICATE_LIMIT
    unknown_answer_limit: int = UNKNOWN_ANSWER_LIMIT
    frustration_limit: int = FRUSTRATION_LIMIT
    empty_round_limit: int = EMPTY_ROUND_LIMIT
    stop_order: tuple[DecisionReason, ...] = DEFAULT_STOP_ORDER

    def __post_init__(self) -> None:
        unknown = set(self.stop_order) - set(DEFAULT_STOP_ORDER)
        if unknown:
            msg = f"stop_order contains non-stop reasons: {sorted(unknown)}"
            raise ValueError(msg)
        if len(set(self.stop_order)) != len(self.stop_order):
            raise ValueError("stop_order must not repeat a reason")

    @classmethod
    def from_settings(cls, settings: Settings) -> InterviewPolicy:
        return cls(
            hard_limit=settings.interview_hard_limit,
            soft_limit=settings.interview_soft_limit,
            recent_window=settings.recent_question_window,
            similarity_threshold=settings.repetition_similarity_threshold,
            repetitive_round_limit=settings.repetitive_round_limit,
            exact_duplicate_limit=settings.exact_duplicate_limit,
            unknown_answer_limit=settings.unknown_answer_limit,
            frustration_limit=settings.frustration_limit,
            empty_round_limit=settings.empty_round_limit,
        )


@dataclass(frozen=True)
class _RoundSignals:
    frustrated: bool
    unknown: bool
    duplicate: bool
    repetitive: bool
    empty_round: bool
    fresh: tuple[str, ...]


class InterviewController:
    def __init__(self, policy: InterviewPolicy | None = None) -> None:
        self.policy = policy or InterviewPolicy()

    def decide(
        self,
        state: InterviewState,
        new_answers: Sequence[str] = (),
        candidate_questions: Sequence[str] = (),
        manual_skip: bool = False,
    ) -> InterviewDecision:
        signals, updated = self._observe(
            state, new_answers, candidate_questions
        )

        if manual_skip:
            return self._stop(updated, DecisionReason.MANUAL_SKIP)
        if state.questions_asked >= self.policy.hard_limit:
            return self._stop(updated, DecisionReason.HARD_LIMIT)

        for reason in self.policy.stop_order:
            if self._triggered(reason, signals, updated):
                return self._stop(updated, reason)

        return self._ask(state, updated, signals.fresh)

    def _observe(
        self,
        state: InterviewState,
        answers: Sequence[str],
        candidates: Sequence[str],
    ) -> tuple[_RoundSignals, InterviewState]:
        policy = self.policy
        frustrated_count = sum(1 for a in answers if is_frustrated(a))
        unknown_count = sum(1 for a in answers if is_unknown_answer(a))

        asked = set(state.asked_questions)
        seen_this_round: set[str] = set()
        fresh: list[str] = []
        duplicates = 0
        for question in candidates:
            key = normalize_question(question)
            if not key or key in seen_this_round:
                continue
            seen_this_round.add(key)
            if key in asked:
                duplicates += 1
            else:
                fresh.append(question.strip())

        window = state.recent_questions[-policy.recent_window :]
        repetitive = bool(candidates) and any(
            max_similarity(q, window) >= policy.similarity_threshold
            for q in candidates
        )
        empty_round = bool(answers) and not fresh
        if empty_round:
            empty_rounds = state.empty_question_rounds + 1
        elif fresh:
            empty_rounds = 0
        else:
            empty_rounds = state.empty_question_rounds

        signals = _RoundSignals(
            frustrated=frustrated_count > 0,
            unknown=unknown_count > 0,
            duplicate=duplicates > 0,
            repetitive=repetitive,
            empty_round=empty_round,
            fresh=tuple(fresh),
        )
        updated = state.model_copy(
            update={
                "answers_received": state.answers_received + len(answers),
                "frustration_hits": state.frustration_hits
                + frustrated_count,
                "unknown_answers": state.unknown_answers + unknown_count,
                "duplicate_hits": state.duplicate_hits + duplicates,
                "repetitive_rounds": (
                    state.repetitive_rounds + 1 if repetitive else 0
                ),
                "empty_question_rounds": empty_rounds,
            }
        )
        return signals, updated

    def _triggered(
        self,
        reason: DecisionReason,
        signals: _RoundSignals,
        state: InterviewState,
    ) -> bool:
        policy = self.policy
        match reason:
            case DecisionReason.FRUSTRATION:
                return (
                    signals.frustrated
                    and state.frustration_hits >= policy.frustration_limit
                )
            case DecisionReason.REPETITIVE_QUESTIONS:
                return (
                    state.repetitive_rounds >= policy.repetitive_round_limit
                )
            case DecisionReason.EXACT_DUPLICATE:
                return (
                    signals.duplicate
                    and state.duplicate_hits >= policy.exact_duplicate_limit
                )
            case DecisionReason.UNKNOWN_ANSWERS:
                return (
                    signals.unknown
                    and state.unknown_answers >= policy.unknown_answer_limit
                )
            case DecisionReason.GENERATION_LOOP:
                return (
                    signals.empty_round
                    and state.empty_question_rounds
                    >= policy.empty_round_limit
                )
        return False

    def _stop(
        self, state: InterviewState, reason: DecisionReason
    ) -> InterviewDecision:
        logger.info(
            "event=interview_stop reason=%s questions_asked=%d",
            reason,
            state.questions_asked,
        )
        return InterviewDecision(
            next_state=state,
            action=InterviewAction.STOP,
            reason=reason,
        )

    def _ask(
        self,
        previous: InterviewState,
        state: InterviewState,
        fresh: tuple[str, ...],
    ) -> InterviewDecision:
        policy = self.policy
        room = max(0, policy.hard_limit - previous.questions_asked)
        emitted = fresh[:room]

        warning: str | None = None
        if previous.questions_asked >= policy.soft_limit:
            remaining = policy.hard_limit - previous.questions_asked
            warning = (
                f"{previous.questions_asked} questions asked so far; "
                f"at most {remaining} more before the interview ends."
            )

        if not emitted:
            reason = DecisionReason.NO_QUESTIONS_GENERATED
        elif warning is not None:
            reason = DecisionReason.SOFT_LIMIT_WARNING
        else:
            reason = DecisionReason.CONTINUE

        recent = (*state.recent_questions, *emitted)
        next_state = state.model_copy(
            update={
                "questions_asked": state.questions_asked + len(emitted),
                "recent_questions": recent[-policy.recent_window :],
                "asked_questions": (
                    *state.asked_questions,
                    *(normalize_question(q) for q in emitted),
                ),
            }
        )
        logger.debug(
            "event=interview_ask reason=%s emitted=%d questions_asked=%d",
            reason,
            len(emitted),
            next_state.questions_asked,
        )
        return InterviewDecision(
            next_state=next_state,
            action=InterviewAction.ASK,
            reason=reason,
            questions=emitted,
            warning=warning,
        )


def decide_interview_continuation(
    state: InterviewState,
    answers: Sequence[str],
    candidate_questions: Sequence[str],
    manual_skip: bool = False,
    policy: InterviewPolicy | None = None,
) -> InterviewDecision:
    """Functional entry point around ``InterviewController.decide``."""
    return InterviewController(policy).decide(
        state, answers, candidate_questions, manual_skip
    )
