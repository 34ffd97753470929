"""Immutable matrix versions with strictly increasing ``major.minor``.

Versions are never edited in place: ``revise`` produces a new matrix
with the next minor version, and ``MatrixHistory.add`` refuses anything
that does not sort strictly after the current latest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from catalai.constants import INITIAL_MATRIX_VERSION, MatrixAuthor
from catalai.matrix.schemas import VERSION_PATTERN, DecisionMatrix
from catalai.resilience.errors import (
    MatrixValidationError,
    MatrixVersionError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class MatrixVersion:
    """Parsed ``major.minor``, compared numerically (1.10 > 1.9)."""

    major: int
    minor: int

    @classmethod
    def parse(cls, text: str) -> MatrixVersion:
        if not VERSION_PATTERN.match(text.strip()):
            msg = f"Invalid matrix version: {text!r}"
            raise MatrixVersionError(msg)
        major, minor = text.strip().split(".")
        return cls(int(major), int(minor))

    def bump_minor(self) -> MatrixVersion:
        return MatrixVersion(self.major, self.minor + 1)

    def bump_major(self) -> MatrixVersion:
        return MatrixVersion(self.major + 1, 0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


def next_version(current: str | None, *, major: bool = False) -> str:
    """Version that follows ``current`` (``1.0`` when there is none)."""
    if current is None:
        return INITIAL_MATRIX_VERSION
    parsed = MatrixVersion.parse(current)
    return str(parsed.bump_major() if major else parsed.bump_minor())


def ensure_successor(previous: str | None, candidate: str) -> None:
    """Raise MatrixVersionError unless candidate > previous."""
    if previous is None:
        MatrixVersion.parse(candidate)
        return
    if MatrixVersion.parse(candidate) <= MatrixVersion.parse(previous):
        msg = (
            f"Matrix version {candidate} must be greater than "
            f"current version {previous}"
        )
        raise MatrixVersionError(msg)


def revise(
    base: DecisionMatrix,
    *,
    created_by: str = MatrixAuthor.ADMIN,
    major: bool = False,
    **changes: Any,
) -> DecisionMatrix:
    """Build the next version of ``base`` with ``changes`` applied.

    ``changes`` use snake_case field names (``rules=...``,
    ``description=...``). The result is fully re-validated.
    """
    if "version" in changes:
        msg = "revise() assigns the version; do not pass one"
        raise MatrixVersionError(msg)
    data = base.model_dump()
    data.update(changes)
    data["version"] = next_version(base.version, major=major)
    data["created_at"] = datetime.now(UTC)
    data["created_by"] = created_by
    try:
        return DecisionMatrix.model_validate(data)
    except ValidationError as exc:
        msg = f"Revision of matrix {base.version} is invalid: {exc}"
        raise MatrixValidationError(msg) from exc


class MatrixHistory:
    """In-memory ordered record of every matrix version.

    Storage of the underlying files belongs to the caller; this class
    only enforces the version invariants.
    """

    def __init__(
        self, matrices: list[DecisionMatrix] | None = None
    ) -> None:
        self._versions: list[DecisionMatrix] = []
        for matrix in sorted(
            matrices or [],
            key=lambda m: MatrixVersion.parse(m.version),
        ):
            self.add(matrix)

    def add(self, matrix: DecisionMatrix) -> DecisionMatrix:
        if any(m.version == matrix.version for m in self._versions):
            msg = (
                f"Matrix version {matrix.version} already exists; "
                "versions are immutable"
            )
            raise MatrixVersionError(msg)
        latest = self.latest()
        ensure_successor(
            latest.version if latest else None, matrix.version
        )
        self._versions.append(matrix)
        logger.info(
            "event=matrix_version_added version=%s rules=%d attributes=%d",
            matrix.version,
            len(matrix.rules),
            len(matrix.attributes),
        )
        return matrix

    def revise(
        self,
        *,
        created_by: str = MatrixAuthor.ADMIN,
        major: bool = False,
        **changes: Any,
    ) -> DecisionMatrix:
        """Create and record the next version from the latest one."""
        latest = self.latest()
        if latest is None:
            msg = "No matrix to revise; add an initial version first"
            raise MatrixVersionError(msg)
        return self.add(
            revise(latest, created_by=created_by, major=major, **changes)
        )

    def latest(self) -> DecisionMatrix | None:
        return self._versions[-1] if self._versions else None

    def active(self) -> DecisionMatrix | None:
        """Newest version flagged active, if any."""
        for matrix in reversed(self._versions):
            if matrix.active:
                return matrix
        return None

    def get(self, version: str) -> DecisionMatrix | None:
        for matrix in self._versions:
            if matrix.version == version:
                return matrix
        return None

    def versions(self) -> list[str]:
        return [m.version for m in self._versions]

    def __len__(self) -> int:
        return len(self._versions)
