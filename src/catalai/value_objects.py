"""Frozen, identity-less domain types shared across all layers.

These are the vocabulary of the system. JSON field names are camelCase
because admin tooling and the UI exchange these shapes directly;
Python code uses the snake_case attributes. Both spellings validate.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from catalai.constants import (
    UNKNOWN_VALUE,
    TransformationCategory,
    clamp_unit,
    parse_category,
)


class CamelModel(BaseModel):
    """Immutable model serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Classification(CamelModel):
    """A categorisation of one process description."""

    category: TransformationCategory
    confidence: float
    rationale: str = ""
    category_progression: str = ""
    future_opportunities: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, v: Any) -> TransformationCategory:
        return parse_category(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> float:
        return clamp_unit(float(v))


class ClarificationQA(CamelModel):
    """One question and the user's answer to it."""

    question: str
    answer: str


class ExtractedAttributeValue(CamelModel):
    """Value resolved for one business attribute, with its provenance."""

    value: Any = UNKNOWN_VALUE
    explanation: str = ""

    @property
    def is_known(self) -> bool:
        if self.value is None:
            return False
        return str(self.value).strip().casefold() not in (
            "",
            UNKNOWN_VALUE,
        )


def unknown_attribute(
    explanation: str = "Insufficient information provided",
) -> ExtractedAttributeValue:
    return ExtractedAttributeValue(
        value=UNKNOWN_VALUE, explanation=explanation
    )
