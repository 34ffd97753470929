"""Classification orchestration: classify, route, interview, evaluate.

One conversation moves through these steps:

    start ─► classify ─► route ─┬─ auto_classify ─► finalize
                                ├─ manual_review ─► finalize
                                └─ clarify ─► questions ─► interview
                                                 ▲            │
                          clarify(answers) ──────┘   stop ─► finalize

``finalize`` extracts attributes and applies the decision matrix. The
conversation state is passed in and returned by value; callers persist
it between calls.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from typing import Any

from pydantic import Field

from catalai.classification.attributes import (
    AttributeExtractor,
    expected_attribute_names,
)
from catalai.classification.evaluator import EvaluationResult, evaluate_matrix
from catalai.classification.evidence import EvidenceState, gather_evidence
from catalai.classification.router import ClassificationRouter
from catalai.config import Settings
from catalai.constants import (
    InterviewAction,
    OutcomeStatus,
    RoutingAction,
)
from catalai.interview.controller import InterviewController, InterviewPolicy
from catalai.interview.state import InterviewState
from catalai.llm.protocols import ClassificationCapabilities, QuestionBatch
from catalai.logger import DecisionLogger
from catalai.matrix.schemas import DecisionMatrix
from catalai.resilience.errors import (
    ClassificationFailedError,
    classify_error,
    describe_error,
)
from catalai.resilience.session_lock import SessionLocks
from catalai.value_objects import CamelModel, ClarificationQA, Classification

logger = logging.getLogger(__name__)

FREE_FORM_QUESTION = "Additional details"


class ConversationState(CamelModel):
    """Everything the pipeline needs to resume a conversation."""

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    description: str
    history: tuple[ClarificationQA, ...] = ()
    interview: InterviewState = Field(default_factory=InterviewState)
    pending_questions: tuple[str, ...] = ()
    classification: Classification | None = None


class PipelineOutcome(CamelModel):
    conversation: ConversationState
    status: OutcomeStatus
    classification: Classification
    routing: RoutingAction
    evidence: EvidenceState
    reason: str
    questions: tuple[str, ...] = ()
    warning: str | None = None
    evaluation: EvaluationResult | None = None

    @property
    def done(self) -> bool:
        return self.status != OutcomeStatus.CLARIFY


class ClassificationOrchestrator:
    """Runs the classification decision pipeline for conversations.

    ``matrix`` is optional: without one the classification passes
    through unrefined. ``extractor`` overrides attribute extraction
    (e.g. ``KeywordAttributeExtractor``); by default the LLM capability
    extracts them.
    """

    def __init__(
        self,
        llm: ClassificationCapabilities,
        settings: Settings | None = None,
        *,
        matrix: DecisionMatrix | None = None,
        extractor: AttributeExtractor | None = None,
        decision_logger: DecisionLogger | None = None,
        locks: SessionLocks | None = None,
    ) -> None:
        self.llm = llm
        self.settings = settings or Settings()
        self.matrix = matrix
        self.extractor = extractor
        self.decision_logger = decision_logger
        self.locks = locks or SessionLocks()
        self.router = ClassificationRouter.from_settings(self.settings)
        self.controller = InterviewController(
            InterviewPolicy.from_settings(self.settings)
        )

    @property
    def evidence_keys(self) -> list[str]:
        return list(self.settings.required_evidence_keys)

    # ── Public API ────────────────────────────────────────────

    async def start(
        self, description: str, session_id: str | None = None
    ) -> PipelineOutcome:
        """Classify a new description and take the first routing step."""
        conversation = ConversationState(description=description)
        if session_id:
            conversation = conversation.model_copy(
                update={"session_id": session_id}
            )
        logger.info(
            "event=conversation_started session=%s",
            conversation.session_id,
        )
        return await self._advance(conversation, answers=())

    async def clarify(
        self,
        conversation: ConversationState,
        answers: Sequence[str],
        manual_skip: bool = False,
    ) -> PipelineOutcome:
        """Record answers to the pending questions and take the next step.

        Calls for the same session run one at a time.
        """
        async with self.locks.hold(conversation.session_id):
            pending = conversation.pending_questions
            added = tuple(
                ClarificationQA(
                    question=(
                        pending[i] if i < len(pending) else FREE_FORM_QUESTION
                    ),
                    answer=answer,
                )
                for i, answer in enumerate(answers)
            )
            conversation = conversation.model_copy(
                update={
                    "history": (*conversation.history, *added),
                    "pending_questions": (),
                }
            )
            return await self._advance(
                conversation, answers=tuple(answers), manual_skip=manual_skip
            )

    async def finalize(
        self,
        conversation: ConversationState,
        *,
        reason: str = "finalized",
        warning: str | None = None,
    ) -> PipelineOutcome:
        """Extract attributes, apply the matrix and settle the status."""
        classification = conversation.classification
        if classification is None:
            classification = await self._classify(conversation)
            conversation = conversation.model_copy(
                update={"classification": classification}
            )

        evidence = gather_evidence(
            conversation.history, None, self.evidence_keys
        )
        evaluation: EvaluationResult | None = None
        final = classification

        if self.matrix is not None:
            values = await self._extract(conversation)
            if values is not None:
                evaluation = evaluate_matrix(
                    self.matrix, classification, values
                )
                final = evaluation.final_classification
                evidence = gather_evidence(
                    conversation.history, values, self.evidence_keys
                )
                self._log_evaluation(conversation.session_id, evaluation)

        flagged = evaluation is not None and evaluation.review_flagged
        low = final.confidence < self.settings.manual_review_threshold
        status = (
            OutcomeStatus.MANUAL_REVIEW
            if flagged or low
            else OutcomeStatus.CLASSIFIED
        )
        routing = self.router.route(final, evidence)
        logger.info(
            "event=conversation_finalized session=%s status=%s category=%s"
            " confidence=%.3f reason=%s",
            conversation.session_id,
            status,
            final.category,
            final.confidence,
            reason,
        )
        return PipelineOutcome(
            conversation=conversation.model_copy(
                update={"classification": final, "pending_questions": ()}
            ),
            status=status,
            classification=final,
            routing=routing,
            evidence=evidence,
            reason=reason,
            warning=warning,
            evaluation=evaluation,
        )

    # ── Steps ─────────────────────────────────────────────────

    async def _advance(
        self,
        conversation: ConversationState,
        answers: Sequence[str],
        manual_skip: bool = False,
    ) -> PipelineOutcome:
        if manual_skip:
            decision = self.controller.decide(
                conversation.interview, answers, (), manual_skip=True
            )
            conversation = conversation.model_copy(
                update={"interview": decision.next_state}
            )
            self._log_interview(conversation, decision.action, decision.reason)
            if conversation.classification is None or answers:
                conversation = await self._reclassify(conversation)
            return await self.finalize(conversation, reason=decision.reason)

        classification = await self._classify(conversation)
        conversation = conversation.model_copy(
            update={"classification": classification}
        )

        evidence = gather_evidence(
            conversation.history, None, self.evidence_keys
        )
        routing = self.router.route(classification, evidence)
        if self.decision_logger:
            self.decision_logger.log_routing(
                conversation.session_id,
                classification.category,
                classification.confidence,
                routing,
                list(evidence.missing),
            )
        if routing != RoutingAction.CLARIFY:
            return await self.finalize(conversation, reason=routing)

        batch = await self._generate_questions(conversation, classification)
        if batch.interview_complete:
            logger.info(
                "event=interview_complete session=%s reason=%s",
                conversation.session_id,
                batch.reason,
            )
            interview = conversation.interview.model_copy(
                update={
                    "answers_received": (
                        conversation.interview.answers_received + len(answers)
                    )
                }
            )
            return await self.finalize(
                conversation.model_copy(update={"interview": interview}),
                reason="interview_complete",
            )

        decision = self.controller.decide(
            conversation.interview, answers, batch.questions
        )
        conversation = conversation.model_copy(
            update={"interview": decision.next_state}
        )
        self._log_interview(
            conversation, decision.action, decision.reason, decision.questions
        )
        if decision.action == InterviewAction.STOP:
            return await self.finalize(
                conversation, reason=decision.reason, warning=decision.warning
            )

        conversation = conversation.model_copy(
            update={"pending_questions": decision.questions}
        )
        return PipelineOutcome(
            conversation=conversation,
            status=OutcomeStatus.CLARIFY,
            classification=classification,
            routing=routing,
            evidence=evidence,
            reason=decision.reason,
            questions=decision.questions,
            warning=decision.warning,
        )

    async def _reclassify(
        self, conversation: ConversationState
    ) -> ConversationState:
        classification = await self._classify(conversation)
        return conversation.model_copy(
            update={"classification": classification}
        )

    async def _classify(
        self, conversation: ConversationState
    ) -> Classification:
        try:
            return await self.llm.generate_classification(
                conversation.description, conversation.history
            )
        except Exception as exc:
            logger.error(
                "event=classification_failed session=%s error_class=%s",
                conversation.session_id,
                classify_error(exc).value,
            )
            if self.decision_logger:
                self.decision_logger.log_error(
                    conversation.session_id, "classification", str(exc)
                )
            raise ClassificationFailedError(
                describe_error(exc), cause=exc
            ) from exc

    async def _generate_questions(
        self,
        conversation: ConversationState,
        classification: Classification,
    ) -> QuestionBatch:
        try:
            return await asyncio.wait_for(
                self.llm.generate_questions(
                    conversation.description,
                    classification,
                    conversation.history,
                ),
                timeout=self.settings.question_timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "event=question_generation_timeout session=%s timeout=%.1f",
                conversation.session_id,
                self.settings.question_timeout_seconds,
            )
            return QuestionBatch.empty("question generation timed out")
        except Exception as exc:
            logger.warning(
                "event=question_generation_failed session=%s error_class=%s",
                conversation.session_id,
                classify_error(exc).value,
            )
            return QuestionBatch.empty(f"question generation failed: {exc}")

    async def _extract(
        self, conversation: ConversationState
    ) -> dict[str, Any] | None:
        names = expected_attribute_names(self.matrix, self.evidence_keys)
        try:
            if self.extractor is not None:
                return dict(
                    await self.extractor.extract(
                        conversation.description, conversation.history, names
                    )
                )
            return dict(
                await self.llm.extract_attributes(
                    conversation.description, conversation.history, names
                )
            )
        except Exception as exc:
            logger.warning(
                "event=attribute_extraction_failed session=%s error_class=%s"
                " fallback=unrefined_classification",
                conversation.session_id,
                classify_error(exc).value,
            )
            if self.decision_logger:
                self.decision_logger.log_error(
                    conversation.session_id, "attribute_extraction", str(exc)
                )
            return None

    # ── Decision log ──────────────────────────────────────────

    def _log_interview(
        self,
        conversation: ConversationState,
        action: str,
        reason: str,
        questions: Sequence[str] = (),
    ) -> None:
        if self.decision_logger:
            self.decision_logger.log_interview(
                conversation.session_id,
                action,
                reason,
                conversation.interview.questions_asked,
                list(questions),
            )

    def _log_evaluation(
        self, session_id: str, evaluation: EvaluationResult
    ) -> None:
        if self.decision_logger:
            final = evaluation.final_classification
            self.decision_logger.log_evaluation(
                session_id,
                evaluation.matrix_version,
                evaluation.triggered_rule_ids,
                final.category,
                final.confidence,
                evaluation.overridden,
            )
