"""litellm-backed implementation of ClassificationCapabilities.

Every call walks ``Settings.litellm_model_chain`` in order: the first
model whose response parses wins. Open breakers and failures move on to
the next model; what happens when the whole chain fails depends on the
capability (classification raises, question generation degrades to an
empty batch, extraction raises for the orchestrator to absorb).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from circuitbreaker import CircuitBreakerError

from catalai.classification.attributes import parse_attribute_response
from catalai.config import Settings
from catalai.constants import INITIAL_MATRIX_VERSION
from catalai.llm._llm_call import guarded_llm_call
from catalai.llm.parsing import (
    extract_json_object,
    parse_classification,
    parse_questions,
)
from catalai.llm.protocols import QuestionBatch
from catalai.matrix.loader import parse_generated_matrix
from catalai.matrix.schemas import DecisionMatrix
from catalai.prompts import (
    ATTRIBUTE_EXTRACTION_PROMPT,
    CLARIFICATION_PROMPT,
    CLASSIFICATION_PROMPT,
    MATRIX_GENERATION_PROMPT,
    build_clarification_prompt,
    build_classification_prompt,
    build_extraction_prompt,
)
from catalai.resilience.errors import classify_error
from catalai.value_objects import (
    ClarificationQA,
    Classification,
    ExtractedAttributeValue,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ModelChainExhaustedError(RuntimeError):
    """Every model in the chain failed or had an open breaker."""

    def __init__(self, component: str, last_error: Exception | None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"All models failed for {component}{detail}")
        self.component = component
        self.last_error = last_error


class LiteLLMCapabilities:
    def __init__(
        self,
        settings: Settings | None = None,
        matrix: DecisionMatrix | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.matrix = matrix

    async def _first_success(
        self,
        component: str,
        system_prompt: str,
        user_prompt: str,
        parse: Callable[[str], T],
    ) -> T:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        last_error: Exception | None = None
        for model in self.settings.litellm_model_chain:
            try:
                result = await guarded_llm_call(
                    model,
                    messages,
                    self.settings.llm_timeout_seconds,
                    json_mode=True,
                    api_key=self.settings.api_key_for(model),
                )
                return parse(result.content)
            except CircuitBreakerError as exc:
                logger.warning(
                    "event=circuit_open model=%s component=%s",
                    model,
                    component,
                )
                last_error = exc
            except Exception as exc:
                logger.warning(
                    "event=llm_failed model=%s component=%s error_class=%s",
                    model,
                    component,
                    classify_error(exc).value,
                    exc_info=True,
                )
                last_error = exc
        if last_error is not None and not isinstance(
            last_error, CircuitBreakerError
        ):
            raise last_error
        raise ModelChainExhaustedError(component, last_error)

    async def generate_classification(
        self, description: str, history: Sequence[ClarificationQA]
    ) -> Classification:
        return await self._first_success(
            "classification",
            CLASSIFICATION_PROMPT,
            build_classification_prompt(description, history),
            parse_classification,
        )

    async def generate_questions(
        self,
        description: str,
        classification: Classification,
        history: Sequence[ClarificationQA],
    ) -> QuestionBatch:
        def _parse(content: str) -> QuestionBatch:
            questions, should_clarify = parse_questions(content)
            # only an explicit shouldClarify=false ends the interview
            return QuestionBatch(
                questions=tuple(questions),
                should_clarify=should_clarify is not False,
                reason=f"{len(questions)} question(s) generated",
            )

        try:
            return await self._first_success(
                "clarification",
                CLARIFICATION_PROMPT,
                build_clarification_prompt(
                    description, classification, history
                ),
                _parse,
            )
        except Exception as exc:
            logger.warning(
                "event=question_generation_failed error_class=%s",
                classify_error(exc).value,
            )
            return QuestionBatch.empty(f"generation failed: {exc}")

    async def extract_attributes(
        self,
        description: str,
        history: Sequence[ClarificationQA],
        attribute_names: Sequence[str],
    ) -> dict[str, ExtractedAttributeValue]:
        declared = (
            {a.name: a for a in self.matrix.attributes}
            if self.matrix
            else {}
        )
        return await self._first_success(
            "attribute_extraction",
            ATTRIBUTE_EXTRACTION_PROMPT,
            build_extraction_prompt(
                description, history, attribute_names, declared
            ),
            lambda content: parse_attribute_response(
                extract_json_object(content), attribute_names
            ),
        )

    async def generate_matrix(
        self, version: str = INITIAL_MATRIX_VERSION
    ) -> DecisionMatrix:
        """Ask the model for a starter matrix; invalid rules are dropped."""
        return await self._first_success(
            "matrix_generation",
            MATRIX_GENERATION_PROMPT,
            "Generate a baseline decision matrix.",
            lambda content: parse_generated_matrix(content, version=version),
        )
