"""Contracts for the model-backed capabilities the pipeline consumes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from catalai.value_objects import (
    CamelModel,
    ClarificationQA,
    Classification,
    ExtractedAttributeValue,
)


class QuestionBatch(CamelModel):
    """Output of one question-generation call.

    ``should_clarify=False`` with no questions means the model considers
    the interview complete, which is different from an empty batch
    caused by a failure.
    """

    questions: tuple[str, ...] = ()
    should_clarify: bool = True
    reason: str = ""

    @classmethod
    def empty(cls, reason: str) -> QuestionBatch:
        """A failed or unusable generation."""
        return cls(questions=(), should_clarify=True, reason=reason)

    @property
    def interview_complete(self) -> bool:
        return not self.should_clarify and not self.questions


class ClassificationCapabilities(Protocol):
    async def generate_classification(
        self, description: str, history: Sequence[ClarificationQA]
    ) -> Classification: ...

    async def generate_questions(
        self,
        description: str,
        classification: Classification,
        history: Sequence[ClarificationQA],
    ) -> QuestionBatch: ...

    async def extract_attributes(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]: ...
