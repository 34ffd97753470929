"""Tests for immutable matrix versions."""

from __future__ import annotations

import pytest

from catalai.constants import MatrixAuthor
from catalai.matrix.versioning import (
    MatrixHistory,
    MatrixVersion,
    ensure_successor,
    next_version,
    revise,
)
from catalai.resilience.errors import MatrixValidationError, MatrixVersionError
from tests.conftest import make_matrix


class TestMatrixVersion:
    def test_numeric_ordering(self) -> None:
        assert MatrixVersion.parse("1.10") > MatrixVersion.parse("1.9")
        assert MatrixVersion.parse("2.0") > MatrixVersion.parse("1.99")

    def test_invalid_version(self) -> None:
        with pytest.raises(MatrixVersionError):
            MatrixVersion.parse("one.two")

    @pytest.mark.parametrize(
        ("current", "major", "expected"),
        [
            (None, False, "1.0"),
            ("1.0", False, "1.1"),
            ("1.9", False, "1.10"),
            ("1.4", True, "2.0"),
        ],
    )
    def test_next_version(
        self, current: str | None, major: bool, expected: str
    ) -> None:
        assert next_version(current, major=major) == expected

    def test_ensure_successor_rejects_equal(self) -> None:
        with pytest.raises(MatrixVersionError, match="must be greater"):
            ensure_successor("1.2", "1.2")


class TestRevise:
    def test_revise_bumps_minor_and_keeps_base(self) -> None:
        base = make_matrix([])
        revised = revise(base, description="tuned")
        assert revised.version == "1.1"
        assert revised.description == "tuned"
        assert base.version == "1.0"
        assert base.description == ""

    def test_revise_refuses_explicit_version(self) -> None:
        with pytest.raises(MatrixVersionError):
            revise(make_matrix([]), version="9.9")

    def test_invalid_revision_wrapped(self) -> None:
        bad_rule = {
            "name": "bad",
            "conditions": [
                {"attribute": "risk", "operator": "==", "value": "nope"}
            ],
            "action": {"type": "flag_review"},
        }
        with pytest.raises(MatrixValidationError, match="Revision"):
            revise(make_matrix([]), rules=[bad_rule])

    def test_created_by_recorded(self) -> None:
        revised = revise(make_matrix([]), created_by=MatrixAuthor.AI)
        assert revised.created_by == "ai"


class TestMatrixHistory:
    def test_add_in_order(self) -> None:
        history = MatrixHistory()
        history.add(make_matrix([], version="1.0"))
        history.add(make_matrix([], version="1.1"))
        assert history.versions() == ["1.0", "1.1"]
        assert len(history) == 2

    def test_reused_version_rejected(self) -> None:
        history = MatrixHistory([make_matrix([], version="1.0")])
        with pytest.raises(MatrixVersionError, match="immutable"):
            history.add(make_matrix([], version="1.0"))

    def test_non_increasing_version_rejected(self) -> None:
        history = MatrixHistory([make_matrix([], version="1.5")])
        with pytest.raises(MatrixVersionError, match="must be greater"):
            history.add(make_matrix([], version="1.4"))

    def test_constructor_sorts_versions(self) -> None:
        history = MatrixHistory([
            make_matrix([], version="1.10"),
            make_matrix([], version="1.2"),
        ])
        assert history.versions() == ["1.2", "1.10"]

    def test_revise_records_next_version(self) -> None:
        history = MatrixHistory([make_matrix([])])
        revised = history.revise(description="v2")
        assert revised.version == "1.1"
        assert history.latest() is revised
        assert history.get("1.0") is not None

    def test_revise_empty_history_raises(self) -> None:
        with pytest.raises(MatrixVersionError, match="No matrix"):
            MatrixHistory().revise()

    def test_active_skips_inactive(self) -> None:
        history = MatrixHistory([make_matrix([], version="1.0")])
        history.revise(active=False)
        active = history.active()
        assert active is not None
        assert active.version == "1.0"
