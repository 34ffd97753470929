"""Tests for Settings validators."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from catalai.config import Settings
from catalai.constants import DEFAULT_EVIDENCE_KEYS, Confidence


class TestModelChainParsing:
    def test_comma_separated_string_parsed_to_list(self) -> None:
        s = Settings(litellm_model_chain="model-a,model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_comma_separated_with_spaces(self) -> None:
        s = Settings(litellm_model_chain="model-a , model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_json_list_passthrough(self) -> None:
        s = Settings(litellm_model_chain=["model-a", "model-b"])
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_chain_read_from_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LITELLM_MODEL_CHAIN", "m1,m2,m3")
        assert Settings().litellm_model_chain == ["m1", "m2", "m3"]


class TestModelChainValidation:
    def test_empty_chain_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain=[])

    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain="")  # type: ignore[arg-type]

    def test_duplicate_models_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="catalai.config"):
            s = Settings(
                litellm_model_chain=["model-a", "model-a", "model-b"]
            )
        assert "Duplicate models in LITELLM_MODEL_CHAIN" in caplog.text
        # Chain is preserved as-is (no dedup)
        assert s.litellm_model_chain == ["model-a", "model-a", "model-b"]


class TestThresholds:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.auto_classify_threshold == Confidence.AUTO_CLASSIFY
        assert s.manual_review_threshold == Confidence.MANUAL_REVIEW
        assert s.required_evidence_keys == list(DEFAULT_EVIDENCE_KEYS)
        assert s.matrix_path is None

    def test_threshold_outside_unit_interval_rejected(self) -> None:
        with pytest.raises(ValueError, match=r"within \[0, 1\]"):
            Settings(auto_classify_threshold=1.5)

    def test_low_above_auto_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not exceed"):
            Settings(
                auto_classify_threshold=0.6, manual_review_threshold=0.7
            )

    def test_evidence_keys_from_csv(self) -> None:
        s = Settings(required_evidence_keys="success_criteria,sponsorship")  # type: ignore[arg-type]
        assert s.required_evidence_keys == [
            "success_criteria",
            "sponsorship",
        ]

    def test_matrix_path_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("MATRIX_PATH", str(tmp_path / "m.json"))
        assert Settings().matrix_path == tmp_path / "m.json"


class TestInterviewLimits:
    def test_soft_above_hard_rejected(self) -> None:
        with pytest.raises(ValueError, match="interview_soft_limit"):
            Settings(interview_hard_limit=5, interview_soft_limit=6)

    def test_zero_limit_rejected(self) -> None:
        with pytest.raises(ValueError, match=">= 1"):
            Settings(frustration_limit=0)


class TestLogLevel:
    def test_log_level_normalised(self) -> None:
        assert Settings(log_level="warning").effective_log_level == "WARNING"

    def test_debug_mode_forces_debug(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBUG_MODE", "true")
        s = Settings(log_level="ERROR")
        assert s.effective_log_level == "DEBUG"


class TestProviderKeys:
    def test_key_selected_by_model_prefix(self) -> None:
        s = Settings(anthropic_api_key="sk-ant", openai_api_key="sk-oai")
        assert s.api_key_for("anthropic/claude-x") == "sk-ant"
        assert s.api_key_for("OpenAI/gpt-x") == "sk-oai"

    def test_unknown_provider_or_empty_key(self) -> None:
        s = Settings(anthropic_api_key="", openai_api_key="sk-oai")
        assert s.api_key_for("anthropic/claude-x") is None
        assert s.api_key_for("ollama/llama3") is None
        assert s.api_key_for("gpt-x") is None
