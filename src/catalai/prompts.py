"""Consolidated LLM system prompts for CatalAI.

All LLM prompts live here. Builders assemble the user message from the
conversation; system prompts are constants so prompt caching applies.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from catalai.classification.evidence import (
    STRATEGIC_QUESTIONS,
    evidence_question,
)
from catalai.constants import MAX_QUESTIONS_PER_ROUND
from catalai.matrix.schemas import Attribute
from catalai.value_objects import ClarificationQA, Classification

# ── Classification prompt ─────────────────────────────────────────

_CATEGORY_GUIDE = """\
1. **Eliminate**: Remove the process entirely as it adds no value
2. **Simplify**: Streamline the process by removing unnecessary steps
3. **Digitise**: Convert manual or offline steps to digital
4. **RPA**: Automate repetitive, rule-based tasks with Robotic Process \
Automation
5. **AI Agent**: Deploy AI to handle tasks requiring judgment or pattern \
recognition
6. **Agentic AI**: Implement autonomous AI systems that can make decisions \
and take actions"""


def _strategic_requirements(evidence: Mapping[str, str]) -> str:
    return "\n".join(f"  * {key}: {text}" for key, text in evidence.items())


CLASSIFICATION_PROMPT = f"""\
You are an expert in business transformation and process optimization. \
Classify the business initiative into one of six transformation categories, \
evaluated in order:

{_CATEGORY_GUIDE}

## Guidelines
- Evaluate categories in order (Eliminate → Simplify → Digitise → RPA → \
AI Agent → Agentic AI) and choose the most appropriate one.
- Explain why the process fits the chosen category and not the preceding ones.
- Identify potential for progression to higher categories.

## Confidence Scoring
- 0.95-1.0: ONLY when the description explicitly covers current state, \
frequency and volume, users involved, complexity, business value, pain \
points, and every strategic item below:
{_strategic_requirements(STRATEGIC_QUESTIONS)}
- 0.5-0.90: anything above is missing, vague, or assumed.
- 0.0-0.5: very vague, contradictory, or insufficient information.

Never assume answers the user has not given. Discovery first, \
classification second.

## Output
Return ONLY a JSON object:
{{
  "category": "<one of the six categories>",
  "confidence": <number between 0 and 1>,
  "rationale": "<why this category>",
  "categoryProgression": "<why this category and not the preceding ones>",
  "futureOpportunities": "<potential for progression>"
}}
"""

# ── Clarification prompt ──────────────────────────────────────────

CLARIFICATION_PROMPT = f"""\
You are an expert in business transformation and process analysis. \
Generate clarifying questions that will raise the confidence of a \
business process classification.

## Goal
Ask 1-{MAX_QUESTIONS_PER_ROUND} targeted questions that:
- extract missing business attributes (frequency, business value, \
complexity, risk, user count, data sensitivity, judgment required)
- cover missing strategic information (success criteria, risks and \
constraints, value estimate, sponsorship)
- never repeat or rephrase a question already asked
- ask for details, not yes/no answers

If nothing important is missing, return no questions and set \
shouldClarify to false.

## Output
Return ONLY a JSON object:
{{
  "questions": [{{"question": "<text>", "purpose": "<what it clarifies>"}}],
  "shouldClarify": <true|false>,
  "reason": "<one sentence>"
}}
"""

# ── Attribute extraction prompt ───────────────────────────────────

ATTRIBUTE_EXTRACTION_PROMPT = """\
You extract structured business attributes from a process description \
and the clarification conversation that followed it.

For every attribute listed, return an object with "value" and \
"explanation". Use only the allowed values when they are listed. If the \
conversation does not state the attribute, use "unknown"; do not guess.

Return ONLY a JSON object keyed by attribute name.
"""

# ── Decision matrix generation prompt ─────────────────────────────

MATRIX_GENERATION_PROMPT = """\
You design decision matrices for classifying business processes into \
transformation categories (Eliminate, Simplify, Digitise, RPA, AI Agent, \
Agentic AI).

Return ONLY a JSON object with:
- "description": one sentence
- "attributes": [{"name", "type" (categorical|numeric|boolean), \
"possibleValues", "weight" (0-1), "description"}]
- "rules": [{"name", "description", "conditions": [{"attribute", \
"operator" (==, !=, >, <, >=, <=, in, not_in), "value"}], "action": \
{"type" (override|adjust_confidence|flag_review), "targetCategory", \
"confidenceAdjustment", "rationale"}, "priority" (0-100)}]

Conditions may only reference declared attributes and their \
possibleValues. "in" and "not_in" take a list value.
"""


def format_history(history: Sequence[ClarificationQA]) -> str:
    if not history:
        return ""
    lines = ["Previous Questions and Answers:"]
    for qa in history:
        lines.append(f"Q: {qa.question}\nA: {qa.answer}")
    return "\n".join(lines)


def build_classification_prompt(
    description: str, history: Sequence[ClarificationQA]
) -> str:
    """Assemble the user prompt for classification."""
    parts = [f"Process Description:\n{description}"]
    if history:
        parts.append(format_history(history))
    return "\n\n".join(parts)


def build_clarification_prompt(
    description: str,
    classification: Classification,
    history: Sequence[ClarificationQA],
) -> str:
    parts = [
        f"Process Description:\n{description}",
        (
            "Current Classification:\n"
            f"- Category: {classification.category}\n"
            f"- Confidence: {classification.confidence:.2f}\n"
            f"- Rationale: {classification.rationale}"
        ),
    ]
    if history:
        parts.append(format_history(history))
    parts.append(
        f"Generate at most {MAX_QUESTIONS_PER_ROUND} clarifying questions."
    )
    return "\n\n".join(parts)


def build_extraction_prompt(
    description: str,
    history: Sequence[ClarificationQA],
    attribute_names: Sequence[str],
    attributes: Mapping[str, Attribute] | None = None,
) -> str:
    """List the attributes to extract, with allowed values where known."""
    attributes = attributes or {}
    lines: list[str] = []
    for i, name in enumerate(attribute_names, start=1):
        attr = attributes.get(name)
        if attr is not None:
            allowed = (
                ", ".join(attr.possible_values)
                if attr.possible_values
                else attr.type.value
            )
            lines.append(
                f"{i}. **{name}**: {attr.description}\n"
                f"   - Values: {allowed} or \"unknown\""
            )
        else:
            question = evidence_question(name)
            lines.append(
                f"{i}. **{name}**: {question}\n"
                "   - Values: free text description or \"unknown\""
            )
    parts = [
        f"Process Description:\n{description}",
        "Attributes to extract:\n" + "\n".join(lines),
    ]
    if history:
        parts.append(format_history(history))
    return "\n\n".join(parts)
