"""Scripted ClassificationCapabilities for tests and offline runs."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from catalai.llm.protocols import QuestionBatch
from catalai.value_objects import (
    ClarificationQA,
    Classification,
    ExtractedAttributeValue,
    unknown_attribute,
)


@dataclass
class FakeCapabilities:
    """Replays queued responses in order.

    The last queued classification and question batch repeat once the
    queue runs dry. Queue an ``Exception`` instance to make that call
    raise it. ``question_delay`` makes question generation sleep, which
    lets tests drive the orchestrator's timeout path.
    """

    classifications: list[Classification | Exception] = field(
        default_factory=list
    )
    question_batches: list[QuestionBatch | Exception] = field(
        default_factory=list
    )
    attributes: Mapping[str, Any] | Exception = field(default_factory=dict)
    question_delay: float = 0.0
    calls: list[str] = field(default_factory=list)

    @staticmethod
    def _next(queue: list[Any], name: str) -> Any:
        if not queue:
            raise AssertionError(f"no scripted response for {name}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def generate_classification(
        self, description: str, history: Sequence[ClarificationQA]
    ) -> Classification:
        self.calls.append("generate_classification")
        return self._next(self.classifications, "generate_classification")

    async def generate_questions(
        self,
        description: str,
        classification: Classification,
        history: Sequence[ClarificationQA],
    ) -> QuestionBatch:
        self.calls.append("generate_questions")
        if self.question_delay:
            await asyncio.sleep(self.question_delay)
        return self._next(self.question_batches, "generate_questions")

    async def extract_attributes(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]:
        self.calls.append("extract_attributes")
        if isinstance(self.attributes, Exception):
            raise self.attributes
        result: dict[str, ExtractedAttributeValue] = {}
        for name in attribute_names:
            raw = self.attributes.get(name)
            if raw is None:
                result[name] = unknown_attribute()
            elif isinstance(raw, ExtractedAttributeValue):
                result[name] = raw
            else:
                result[name] = ExtractedAttributeValue(
                    value=raw, explanation="scripted"
                )
        return result
