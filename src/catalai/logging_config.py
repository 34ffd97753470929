"""Process-wide logging for the catalai CLI and pipeline.

Three idempotent steps:

1. ``setup_logging()`` runs when ``catalai.cli`` is imported, before
   ``catalai.llm`` pulls in litellm (litellm reads ``LITELLM_LOG`` and
   attaches its handlers at import time).
2. ``cleanup_third_party_handlers()`` runs once every import is done and
   strips litellm's own StreamHandlers so records reach root only.
3. ``apply_settings(settings)`` runs once ``Settings`` is loaded and
   applies ``LOG_LEVEL`` (``DEBUG_MODE`` forces DEBUG).

The decision audit trail is a separate logger, ``catalai.decisions``,
writing bare JSON lines to ``LOG_DIR/decisions.log``; see
``configure_decision_log``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalai.config import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

DECISION_LOGGER = "catalai.decisions"
DECISION_LOG_FILE = "decisions.log"

# LLM transport chatter; pipeline events come from catalai.* loggers
_SUPPRESSED_LOGGERS = (
    "LiteLLM",
    "LiteLLM Router",
    "LiteLLM Proxy",
    "openai._base_client",
    "httpx",
)

_phase1_done = False
_phase2_done = False


def resolve_level(level: str | int) -> int:
    """Numeric level for a name like ``"info"``; unknown names give INFO."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger before litellm is imported.

    Settings are not loaded yet at this point, so the level is a
    placeholder until ``apply_settings`` runs. Second call is a no-op.
    """
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    _phase1_done = True

    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cleanup_third_party_handlers() -> None:
    """Drop the handlers litellm attached to its loggers at import.

    Without this every litellm record prints twice (its handler plus
    root propagation). Idempotent.
    """
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _SUPPRESSED_LOGGERS[:3]:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True


def apply_settings(settings: Settings) -> int:
    """Apply the configured level to root and the ``catalai`` tree."""
    level = resolve_level(settings.effective_log_level)
    logging.getLogger().setLevel(level)
    logging.getLogger("catalai").setLevel(level)
    return level


def configure_decision_log(
    log_dir: Path, level: str | int = "INFO"
) -> logging.Logger:
    """The ``catalai.decisions`` logger, writing to ``log_dir``.

    Records are pre-serialised JSON, so the handler formats the bare
    message and the logger does not propagate to the console. Pointing
    it at a new directory closes the previous file handler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    path = (log_dir / DECISION_LOG_FILE).resolve()

    lg = logging.getLogger(DECISION_LOGGER)
    lg.setLevel(resolve_level(level))
    lg.propagate = False

    current = None
    for handler in list(lg.handlers):
        if (
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == path
        ):
            current = handler
            continue
        lg.removeHandler(handler)
        handler.close()

    if current is None:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        lg.addHandler(handler)
    return lg
