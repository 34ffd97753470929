"""Model-backed capabilities consumed by the pipeline."""

from catalai.llm.protocols import ClassificationCapabilities, QuestionBatch

__all__ = ["ClassificationCapabilities", "QuestionBatch"]
