"""Single entry point for model calls: per-model breaker plus 429 retry."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from litellm.exceptions import RateLimitError as LitellmRateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from catalai.constants import (
    CB_LLM_FAILURE_THRESHOLD,
    CB_LLM_RECOVERY_TIMEOUT,
    LLM_MAX_OUTPUT_TOKENS,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion


@dataclass(frozen=True)
class LLMCallResult:
    content: str
    model: str
    input_tokens: int
    output_tokens: int


def _counts_as_failure(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Rate limits are backpressure, not an outage; keep them out of
    the breaker's failure count."""
    return not issubclass(thrown_type, LitellmRateLimitError)


# One breaker per model so a failing primary never blocks the fallbacks.
_breakers: dict[str, CircuitBreaker] = {}  # pyright: ignore[reportUnknownVariableType]


def breaker_for(model: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
    breaker = _breakers.get(model)
    if breaker is None:
        breaker = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=CB_LLM_FAILURE_THRESHOLD,
            recovery_timeout=CB_LLM_RECOVERY_TIMEOUT,
            expected_exception=_counts_as_failure,
            name=f"catalai_llm_{model}",
        )
        _breakers[model] = breaker
    return breaker


def reset_breakers() -> None:
    """Forget all breaker state (tests, or after a config reload)."""
    _breakers.clear()


@retry(
    stop=stop_after_attempt(RETRY_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(
        initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
    ),
    retry=retry_if_exception_type(LitellmRateLimitError),
    reraise=True,
)
async def guarded_llm_call(
    model: str,
    messages: list[dict[str, str]],
    timeout: float,
    *,
    json_mode: bool = True,
    temperature: float | None = None,
    api_key: str | None = None,
) -> LLMCallResult:
    """One completion through the model's circuit breaker.

    Raises CircuitBreakerError without calling the provider while the
    breaker is open. Rate-limit errors are retried with jittered
    exponential backoff; every other error propagates to the caller,
    which decides whether to try the next model in the chain.
    """
    breaker = breaker_for(model)
    if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
        raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]

    kwargs: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "timeout": timeout,
        "max_tokens": LLM_MAX_OUTPUT_TOKENS,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    if temperature is not None:
        kwargs["temperature"] = temperature
    if api_key:
        kwargs["api_key"] = api_key

    with breaker:  # pyright: ignore[reportUnknownMemberType]
        response: Any = await _acompletion(**kwargs)

    usage: Any = getattr(response, "usage", None)
    result = LLMCallResult(
        content=str(response.choices[0].message.content or ""),
        model=model,
        input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
        output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
    )
    logger.debug(
        "event=llm_call_done model=%s input_tokens=%d output_tokens=%d",
        model,
        result.input_tokens,
        result.output_tokens,
    )
    return result
