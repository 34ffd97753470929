"""Tests for lenient LLM response parsing."""

from __future__ import annotations

import json

import pytest

from catalai.constants import TransformationCategory
from catalai.llm.parsing import (
    ResponseParseError,
    extract_json,
    extract_json_object,
    parse_classification,
    parse_questions,
)


class TestExtractJson:
    def test_fenced(self) -> None:
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_wrapped_in_prose(self) -> None:
        content = 'Sure! Here it is: {"a": [1, 2]} Hope that helps.'
        assert extract_json(content) == {"a": [1, 2]}

    def test_bare_array_in_prose(self) -> None:
        assert extract_json('Questions: ["x", "y"]') == ["x", "y"]

    def test_nothing_usable(self) -> None:
        with pytest.raises(ResponseParseError):
            extract_json("no json here")

    def test_object_required(self) -> None:
        with pytest.raises(ResponseParseError, match="JSON object"):
            extract_json_object("[1, 2]")


class TestParseClassification:
    def test_camel_case_fields(self) -> None:
        result = parse_classification(
            json.dumps({
                "category": "ai agent",
                "confidence": "0.82",
                "rationale": "Needs judgment",
                "categoryProgression": "RPA is not enough",
                "futureOpportunities": "Agentic AI later",
            })
        )
        assert result.category is TransformationCategory.AI_AGENT
        assert result.confidence == 0.82
        assert result.category_progression == "RPA is not enough"
        assert result.future_opportunities == "Agentic AI later"

    def test_snake_case_fields(self) -> None:
        result = parse_classification(
            '{"category": "RPA", "confidence": 0.7,'
            ' "category_progression": "p"}'
        )
        assert result.category_progression == "p"

    @pytest.mark.parametrize("echo", ["Clarification 9", " clarification 12 "])
    def test_loop_echo_rejected(self, echo: str) -> None:
        with pytest.raises(ResponseParseError, match="loop echo"):
            parse_classification(echo)

    @pytest.mark.parametrize(
        "payload",
        [
            {"confidence": 0.8},
            {"category": "RPA"},
            {"category": "RPA", "confidence": True},
            {"category": "RPA", "confidence": "high"},
            {"category": "RPA", "confidence": 1.4},
            {"category": "Outsource", "confidence": 0.5},
        ],
    )
    def test_invalid_payloads(self, payload: dict[str, object]) -> None:
        with pytest.raises(ResponseParseError):
            parse_classification(json.dumps(payload))


class TestParseQuestions:
    def test_object_with_hint(self) -> None:
        questions, hint = parse_questions(
            json.dumps({
                "questions": [
                    {"question": "How often?"},
                    "Who owns it?",
                    "  ",
                    {"text": "ignored"},
                ],
                "shouldClarify": True,
            })
        )
        assert questions == ["How often?", "Who owns it?"]
        assert hint is True

    def test_bare_array_limited(self) -> None:
        questions, hint = parse_questions('["a?", "b?", "c?"]')
        assert questions == ["a?", "b?"]
        assert hint is None

    def test_interview_complete_hint(self) -> None:
        questions, hint = parse_questions(
            '{"questions": [], "should_clarify": false}'
        )
        assert questions == []
        assert hint is False

    def test_no_json_raises(self) -> None:
        with pytest.raises(ResponseParseError):
            parse_questions("I have no questions.")

    def test_non_list_questions_yield_nothing(self) -> None:
        assert parse_questions('{"questions": "none"}') == ([], None)
