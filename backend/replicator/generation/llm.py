"""Async Anthropic client wrapper with retry on transient upstream failures."""
import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import anthropic
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from replicator.config import LLM_INITIAL_RETRY_DELAY, LLM_MAX_ATTEMPTS

logger = logging.getLogger("replicator.llm")

T = TypeVar("T")

OVERLOADED_STATUS = 529
RATE_LIMIT_STATUS = 429


def _error_type(exc: BaseException) -> Optional[str]:
    """The `error.type` field of an API error body, if any."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            return err.get("type")
        return body.get("type")
    return None


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def is_overloaded(exc: BaseException) -> bool:
    return _status_code(exc) == OVERLOADED_STATUS or _error_type(exc) == "overloaded_error"


def is_retryable(exc: BaseException) -> bool:
    """Overload, rate limit and any 5xx are transient; everything else is final."""
    if not isinstance(exc, anthropic.APIStatusError):
        return False
    if is_overloaded(exc):
        return True
    status = _status_code(exc)
    return status is not None and (status == RATE_LIMIT_STATUS or status >= 500)


def describe_error(exc: BaseException) -> str:
    """Human-readable task message for a pipeline failure."""
    status = _status_code(exc) if isinstance(exc, anthropic.APIStatusError) else None
    if status == 401:
        return "Invalid API key. Please check your Anthropic API key."
    if status == 400 and _error_type(exc) == "invalid_request_error":
        return "Invalid request to the model API. Please check your model selection."
    if status == RATE_LIMIT_STATUS:
        return "Rate limit exceeded. Please try again later."
    if status is not None and is_overloaded(exc):
        return "The model API is currently overloaded. Please try again later or use a different model."
    if status is not None and status >= 500:
        return "Model API server error. Please try again later."
    return str(exc) or "An unknown error occurred"


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Model API error (%s): %s. Retrying in %.1fs (attempt %s)",
        _status_code(exc) if exc else "unknown",
        exc,
        delay,
        retry_state.attempt_number,
    )


async def call_with_retry(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = LLM_MAX_ATTEMPTS,
    initial_delay: float = LLM_INITIAL_RETRY_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Await operation(*args, **kwargs), retrying transient failures with doubling delays.

    The delay before retry n is initial_delay * 2 ** (n - 1). Non-retryable errors
    propagate at once; after max_attempts the last error is re-raised unchanged.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(operation, *args, **kwargs)


def text_block(text: str) -> dict:
    return {"type": "text", "text": text}


def image_block(data: bytes, media_type: str) -> dict:
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type,
            "data": base64.b64encode(data).decode("ascii"),
        },
    }


def response_text(response: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = [
        getattr(block, "text", "")
        for block in (getattr(response, "content", None) or [])
        if getattr(block, "type", None) == "text"
    ]
    return "".join(parts)


class ModelClient:
    """One caller's view of the model API: their credential and chosen model."""

    def __init__(
        self,
        api_key: str,
        model: str,
        client: Optional[anthropic.AsyncAnthropic] = None,
        max_attempts: int = LLM_MAX_ATTEMPTS,
        initial_delay: float = LLM_INITIAL_RETRY_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.model = model
        # SDK retries off; call_with_retry owns the policy
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._sleep = sleep

    async def complete(self, messages: list[dict], max_tokens: int = 4000, system: Optional[str] = None) -> str:
        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        response = await call_with_retry(
            self._client.messages.create,
            max_attempts=self._max_attempts,
            initial_delay=self._initial_delay,
            sleep=self._sleep,
            **kwargs,
        )
        return response_text(response)
