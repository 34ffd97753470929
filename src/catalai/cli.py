"""CLI entry point for ``catalai validate|evaluate|route|classify``."""

from __future__ import annotations

# Phase 1: Singleton logging, before any transitive litellm imports
from catalai.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import TYPE_CHECKING, Any  # noqa: E402

from pydantic import ValidationError  # noqa: E402

from catalai import __version__  # noqa: E402
from catalai.classification.evaluator import evaluate_matrix  # noqa: E402
from catalai.classification.evidence import EvidenceState  # noqa: E402
from catalai.classification.router import route_classification  # noqa: E402
from catalai.config import Settings  # noqa: E402
from catalai.constants import (  # noqa: E402
    DEFAULT_EVIDENCE_KEYS,
    TransformationCategory,
)
from catalai.logging_config import (  # noqa: E402
    apply_settings,
    cleanup_third_party_handlers,
)
from catalai.matrix.loader import dump_matrix, load_matrix  # noqa: E402
from catalai.matrix.schemas import DecisionMatrix  # noqa: E402
from catalai.resilience.errors import CatalaiError  # noqa: E402
from catalai.value_objects import Classification  # noqa: E402

if TYPE_CHECKING:
    from catalai.services.orchestrator import (
        ClassificationOrchestrator,
        PipelineOutcome,
    )

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()

SKIP_COMMAND = "skip"


def _load_settings() -> Settings:
    """Settings from env and .env, with their log level applied."""
    settings = Settings()
    apply_settings(settings)
    return settings


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"catalai {__version__}")
        return

    handlers = {
        "validate": _run_validate,
        "evaluate": _run_evaluate,
        "route": _run_route,
        "classify": _run_classify,
        "generate-matrix": _run_generate_matrix,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return
    try:
        handler(args)
    except (
        CatalaiError,
        FileNotFoundError,
        ValidationError,
        json.JSONDecodeError,
    ) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="catalai",
        description=(
            "Classify business processes into transformation categories."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    validate = sub.add_parser(
        "validate",
        help="Validate a decision matrix file",
    )
    validate.add_argument("matrix", type=str, help="Matrix JSON file")

    evaluate = sub.add_parser(
        "evaluate",
        help="Apply a matrix to a classification and attribute values",
    )
    evaluate.add_argument("matrix", type=str, help="Matrix JSON file")
    evaluate.add_argument(
        "classification",
        type=str,
        help="Classification JSON file",
    )
    evaluate.add_argument(
        "attributes",
        type=str,
        help="JSON file mapping attribute name to value",
    )

    route = sub.add_parser(
        "route",
        help="Print the routing action for a confidence score",
    )
    route.add_argument(
        "--confidence",
        "-c",
        type=float,
        required=True,
        help="Classification confidence in [0, 1]",
    )
    route.add_argument(
        "--evidence",
        "-e",
        type=str,
        default="",
        help=(
            "Comma-separated evidence keys already satisfied "
            f"(required: {','.join(DEFAULT_EVIDENCE_KEYS)})"
        ),
    )

    classify = sub.add_parser(
        "classify",
        help="Classify a description with an interactive interview",
    )
    classify.add_argument(
        "description",
        type=str,
        help="Process description text",
    )
    classify.add_argument(
        "--matrix",
        "-m",
        type=str,
        default=None,
        help="Decision matrix JSON file (default: MATRIX_PATH setting)",
    )
    classify.add_argument(
        "--keyword-attributes",
        action="store_true",
        help="Extract attributes by keyword instead of via the LLM",
    )
    classify.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print the full outcome JSON",
    )

    generate = sub.add_parser(
        "generate-matrix",
        help="Ask the LLM for a starter decision matrix",
    )
    generate.add_argument("output", type=str, help="Where to write JSON")
    generate.add_argument(
        "--version-label",
        default="1.0",
        help="Matrix version to assign (default: 1.0)",
    )

    return parser


def _read_json(path: str) -> Any:
    file = Path(path)
    if not file.is_file():
        raise FileNotFoundError(f"{file} does not exist")
    return json.loads(file.read_text(encoding="utf-8"))


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _summarize_matrix(matrix: DecisionMatrix) -> str:
    active = sum(1 for r in matrix.rules if r.active)
    return (
        f"Matrix {matrix.version} ({matrix.created_by}): "
        f"{len(matrix.attributes)} attributes, "
        f"{len(matrix.rules)} rules ({active} active)"
    )


def _run_validate(args: argparse.Namespace) -> None:
    matrix = load_matrix(Path(args.matrix))
    print(f"OK: {_summarize_matrix(matrix)}")


def _run_evaluate(args: argparse.Namespace) -> None:
    matrix = load_matrix(Path(args.matrix))
    classification = Classification.model_validate(
        _read_json(args.classification)
    )
    attributes = _read_json(args.attributes)
    if not isinstance(attributes, dict):
        print("Error: attributes must be a JSON object", file=sys.stderr)
        sys.exit(1)
    result = evaluate_matrix(matrix, classification, attributes)
    _print_json(result.to_json_dict())


def _run_route(args: argparse.Namespace) -> None:
    settings = _load_settings()
    satisfied = {k.strip() for k in args.evidence.split(",") if k.strip()}
    evidence = EvidenceState(
        required=tuple(settings.required_evidence_keys),
        satisfied=frozenset(satisfied),
    )
    if not 0.0 <= args.confidence <= 1.0:
        print("Error: --confidence must be within [0, 1]", file=sys.stderr)
        sys.exit(1)
    classification = Classification(
        category=TransformationCategory.DIGITISE,
        confidence=args.confidence,
    )
    action = route_classification(classification, evidence, settings)
    print(action)
    if evidence.missing:
        print(f"missing evidence: {', '.join(evidence.missing)}")


def _run_classify(args: argparse.Namespace) -> None:
    from catalai.classification.attributes import (
        KeywordAttributeExtractor,
    )
    from catalai.llm.capabilities import LiteLLMCapabilities
    from catalai.logger import DecisionLogger
    from catalai.services.orchestrator import ClassificationOrchestrator

    settings = _load_settings()
    matrix_path = args.matrix or settings.matrix_path
    matrix = load_matrix(Path(matrix_path)) if matrix_path else None

    orchestrator = ClassificationOrchestrator(
        LiteLLMCapabilities(settings, matrix),
        settings,
        matrix=matrix,
        extractor=(
            KeywordAttributeExtractor() if args.keyword_attributes else None
        ),
        decision_logger=DecisionLogger.from_settings(settings),
    )

    outcome = asyncio.run(_interview(orchestrator, args.description))

    final = outcome.classification
    print(f"\nStatus: {outcome.status} ({outcome.reason})")
    print(f"Category: {final.category} (confidence {final.confidence:.2f})")
    print(f"Progression: {final.category.describe_progression()}")
    if final.rationale:
        print(f"Rationale: {final.rationale}")
    if outcome.evaluation and outcome.evaluation.review_reasons:
        print(
            "Review reasons: "
            + "; ".join(outcome.evaluation.review_reasons)
        )
    if args.verbose:
        _print_json(outcome.to_json_dict())


async def _interview(
    orchestrator: ClassificationOrchestrator, description: str
) -> PipelineOutcome:
    outcome = await orchestrator.start(description)
    while not outcome.done:
        if outcome.warning:
            print(f"Note: {outcome.warning}")
        questions = outcome.questions or (
            "Anything else you can tell us about this process?",
        )
        answers: list[str] = []
        skipped = False
        for question in questions:
            answer = input(f"{question}\n> ").strip()
            if answer.lower() == SKIP_COMMAND:
                skipped = True
                break
            answers.append(answer)
        outcome = await orchestrator.clarify(
            outcome.conversation, answers, manual_skip=skipped
        )
    return outcome


def _run_generate_matrix(args: argparse.Namespace) -> None:
    from catalai.llm.capabilities import LiteLLMCapabilities

    settings = _load_settings()
    matrix = asyncio.run(
        LiteLLMCapabilities(settings).generate_matrix(args.version_label)
    )
    output = Path(args.output)
    dump_matrix(matrix, output)
    print(f"Wrote {_summarize_matrix(matrix)} to {output}")
