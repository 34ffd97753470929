"""Tests for the interview continuation policy."""

from __future__ import annotations

import pytest

from catalai.config import Settings
from catalai.constants import DecisionReason, InterviewAction
from catalai.interview.controller import (
    InterviewController,
    InterviewPolicy,
    decide_interview_continuation,
)
from catalai.interview.signals import normalize_question
from catalai.interview.state import InterviewState

NEUTRAL = "It runs on the ledger system"


def _distinct(i: int) -> list[str]:
    return [f"Topic{i}a details?", f"Describe area{i}b"]


class TestTerminalRules:
    def test_frustration_on_second_hit(self) -> None:
        state = InterviewState(questions_asked=9, frustration_hits=1)
        decision = InterviewController().decide(
            state, ["I already answered this"], ["What is the volume?"]
        )
        assert decision.action is InterviewAction.STOP
        assert decision.reason is DecisionReason.FRUSTRATION
        assert decision.next_state.frustration_hits == 2

    def test_single_frustration_keeps_going(self) -> None:
        decision = InterviewController().decide(
            InterviewState(), ["stop asking"], ["What is the volume?"]
        )
        assert decision.action is InterviewAction.ASK
        assert decision.next_state.frustration_hits == 1

    def test_manual_skip_wins_and_still_counts(self) -> None:
        state = InterviewState(questions_asked=20, frustration_hits=5)
        decision = InterviewController().decide(
            state, ["this is so frustrating"], [], manual_skip=True
        )
        assert decision.reason is DecisionReason.MANUAL_SKIP
        assert decision.next_state.answers_received == 1
        assert decision.next_state.frustration_hits == 6

    def test_hard_limit_checked_before_stop_rules(self) -> None:
        state = InterviewState(questions_asked=15, frustration_hits=1)
        decision = InterviewController().decide(
            state, ["I already told you"], ["Anything else?"]
        )
        assert decision.reason is DecisionReason.HARD_LIMIT


class TestQuestionLimits:
    def test_hard_limit_never_exceeded(self) -> None:
        controller = InterviewController()
        state = InterviewState()
        reasons: list[DecisionReason] = []
        for i in range(20):
            answers = [NEUTRAL] * len(state.recent_questions[-2:])
            decision = controller.decide(state, answers, _distinct(i))
            reasons.append(decision.reason)
            state = decision.next_state
            assert state.questions_asked <= 15
            if decision.should_stop:
                break
        assert reasons[-1] is DecisionReason.HARD_LIMIT
        assert state.questions_asked == 15
        assert DecisionReason.SOFT_LIMIT_WARNING in reasons

    def test_truncates_to_remaining_room(self) -> None:
        decision = InterviewController().decide(
            InterviewState(questions_asked=14), [NEUTRAL], _distinct(1)
        )
        assert decision.questions == (_distinct(1)[0],)
        assert decision.next_state.questions_asked == 15

    def test_soft_limit_warning(self) -> None:
        decision = InterviewController().decide(
            InterviewState(questions_asked=8), [NEUTRAL], _distinct(1)
        )
        assert decision.action is InterviewAction.ASK
        assert decision.reason is DecisionReason.SOFT_LIMIT_WARNING
        assert decision.warning is not None
        assert "at most 7 more" in decision.warning

    def test_no_warning_below_soft_limit(self) -> None:
        decision = InterviewController().decide(
            InterviewState(questions_asked=7), [NEUTRAL], _distinct(1)
        )
        assert decision.reason is DecisionReason.CONTINUE
        assert decision.warning is None


class TestGenerationLoop:
    def test_two_empty_rounds_stop(self) -> None:
        controller = InterviewController()
        first = controller.decide(InterviewState(), [NEUTRAL], [])
        assert first.action is InterviewAction.ASK
        assert first.reason is DecisionReason.NO_QUESTIONS_GENERATED
        assert first.next_state.empty_question_rounds == 1

        second = controller.decide(first.next_state, [NEUTRAL], [])
        assert second.reason is DecisionReason.GENERATION_LOOP

    def test_fresh_questions_reset_counter(self) -> None:
        decision = InterviewController().decide(
            InterviewState(empty_question_rounds=1), [NEUTRAL], _distinct(2)
        )
        assert decision.next_state.empty_question_rounds == 0

    def test_no_answers_is_not_an_empty_round(self) -> None:
        decision = InterviewController().decide(InterviewState(), [], [])
        assert decision.next_state.empty_question_rounds == 0


class TestRepetition:
    WINDOW = ("How often does the process run each week?",)
    SIMILAR = "How often does the process run each month?"

    def test_third_consecutive_repetitive_round_stops(self) -> None:
        state = InterviewState(
            recent_questions=self.WINDOW, repetitive_rounds=2
        )
        decision = InterviewController().decide(
            state, [NEUTRAL], [self.SIMILAR]
        )
        assert decision.reason is DecisionReason.REPETITIVE_QUESTIONS
        assert decision.next_state.repetitive_rounds == 3

    def test_dissimilar_round_resets(self) -> None:
        state = InterviewState(
            recent_questions=self.WINDOW, repetitive_rounds=2
        )
        decision = InterviewController().decide(
            state, [NEUTRAL], ["Who approves the final invoice?"]
        )
        assert decision.action is InterviewAction.ASK
        assert decision.next_state.repetitive_rounds == 0

    def test_recent_window_is_bounded(self) -> None:
        controller = InterviewController(InterviewPolicy(recent_window=2))
        state = InterviewState()
        for i in range(3):
            state = controller.decide(state, [], _distinct(i)).next_state
        assert state.recent_questions == tuple(_distinct(2))
        assert len(state.asked_questions) == 6


class TestDuplicates:
    ASKED = (normalize_question("What system do you use?"),)

    def test_duplicates_removed_and_counted(self) -> None:
        decision = InterviewController().decide(
            InterviewState(asked_questions=self.ASKED),
            [NEUTRAL],
            ["what system do you use", "Who approves invoices?"],
        )
        assert decision.questions == ("Who approves invoices?",)
        assert decision.next_state.duplicate_hits == 1

    def test_duplicate_limit_stops(self) -> None:
        decision = InterviewController().decide(
            InterviewState(asked_questions=self.ASKED, duplicate_hits=4),
            [NEUTRAL],
            ["What system do you use?", "Who approves invoices?"],
        )
        assert decision.reason is DecisionReason.EXACT_DUPLICATE

    def test_same_round_repeats_collapsed(self) -> None:
        decision = InterviewController().decide(
            InterviewState(), [], ["Who owns it?", "who owns it"]
        )
        assert decision.questions == ("Who owns it?",)
        assert decision.next_state.duplicate_hits == 0


class TestUnknownAnswers:
    def test_fifth_unknown_answer_stops(self) -> None:
        decision = InterviewController().decide(
            InterviewState(unknown_answers=4), ["no idea"], _distinct(1)
        )
        assert decision.reason is DecisionReason.UNKNOWN_ANSWERS


class TestStopOrder:
    STATE = InterviewState(frustration_hits=1, unknown_answers=4)
    ANSWER = "I don't know, this is so frustrating"

    def test_default_order_prefers_frustration(self) -> None:
        decision = InterviewController().decide(
            self.STATE, [self.ANSWER], _distinct(1)
        )
        assert decision.reason is DecisionReason.FRUSTRATION

    def test_custom_order(self) -> None:
        policy = InterviewPolicy(
            stop_order=(
                DecisionReason.UNKNOWN_ANSWERS,
                DecisionReason.FRUSTRATION,
            )
        )
        decision = decide_interview_continuation(
            self.STATE, [self.ANSWER], _distinct(1), policy=policy
        )
        assert decision.reason is DecisionReason.UNKNOWN_ANSWERS

    def test_omitted_rule_is_disabled(self) -> None:
        policy = InterviewPolicy(stop_order=(DecisionReason.FRUSTRATION,))
        decision = InterviewController(policy).decide(
            InterviewState(unknown_answers=10), ["no idea"], _distinct(1)
        )
        assert decision.action is InterviewAction.ASK

    @pytest.mark.parametrize(
        "order",
        [
            (DecisionReason.HARD_LIMIT,),
            (DecisionReason.FRUSTRATION, DecisionReason.FRUSTRATION),
        ],
    )
    def test_invalid_order_rejected(
        self, order: tuple[DecisionReason, ...]
    ) -> None:
        with pytest.raises(ValueError):
            InterviewPolicy(stop_order=order)


def test_policy_from_settings() -> None:
    settings = Settings(interview_hard_limit=6, interview_soft_limit=4)
    policy = InterviewPolicy.from_settings(settings)
    assert (policy.hard_limit, policy.soft_limit) == (6, 4)


def test_state_serialises_camel_case() -> None:
    data = InterviewState(questions_asked=3).to_json_dict()
    assert data["questionsAsked"] == 3
    assert InterviewState.model_validate(data).questions_asked == 3
