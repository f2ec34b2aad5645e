"""Retry middleware for calls to the YtoAI API.

A :class:`RetryPolicy` wraps a coroutine function and re-runs it with
exponential backoff while it fails with a transient error.  Anything else
propagates unchanged on the first failure.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Iterable
from typing import Any, Awaitable, Callable, TypeVar

from openai import APIConnectionError, APIStatusError

from ytoai.errors import (
    NonTransientAiError,
    StreamProtocolError,
    TransientAiError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOO_MANY_REQUESTS = 429


class RetryPolicy:
    """Exponential backoff retry for transient API failures.

    Transient failures are :class:`TransientAiError`, connection errors and
    timeouts, HTTP 429 and HTTP 5xx.  Other 4xx responses are retried only
    when ``on_client_errors`` is set or the code is listed in
    ``on_http_codes``; codes in ``exclude_on_http_codes`` are never retried.

    Args:
        max_attempts: Total number of attempts, the first one included.
        initial_interval: Seconds to wait before the first retry.
        multiplier: Factor applied to the wait after every retry.
        max_interval: Upper bound for a single wait, in seconds.
        on_error: Called with ``(retry_count, exception)`` before each retry.
        on_success: Called with the number of retries that were needed.
    """

    def __init__(
        self,
        max_attempts: int = 10,
        initial_interval: float = 2.0,
        multiplier: float = 5.0,
        max_interval: float = 180.0,
        *,
        on_client_errors: bool = False,
        on_http_codes: Iterable[int] = (),
        exclude_on_http_codes: Iterable[int] = (),
        on_error: Callable[[int, BaseException], None] | None = None,
        on_success: Callable[[int], None] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.on_client_errors = on_client_errors
        self.on_http_codes = frozenset(on_http_codes)
        self.exclude_on_http_codes = frozenset(exclude_on_http_codes)
        self.on_error = on_error
        self.on_success = on_success
        self.sleep = sleep

    @classmethod
    def short(cls, **kwargs) -> RetryPolicy:
        """Ten attempts, 100ms apart.  Meant for tests."""
        return cls(
            max_attempts=10, initial_interval=0.1, multiplier=1.0,
            max_interval=0.1, **kwargs,
        )

    def is_transient(self, exc: BaseException) -> bool:
        if isinstance(exc, (StreamProtocolError, NonTransientAiError)):
            return False
        if isinstance(exc, (TransientAiError, APIConnectionError)):
            return True
        if isinstance(exc, APIStatusError):
            code = exc.status_code
            if code in self.exclude_on_http_codes:
                return False
            if code in self.on_http_codes or code == _TOO_MANY_REQUESTS:
                return True
            if 400 <= code < 500:
                return self.on_client_errors
            return code >= 500
        return False

    def backoff(self, retry_count: int) -> float:
        delay = self.initial_interval * (self.multiplier ** (retry_count - 1))
        return min(delay, self.max_interval)

    async def call(
        self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await fn(*args, **kwargs)
            except Exception as exc:
                if not self.is_transient(exc) or attempt >= self.max_attempts:
                    raise
                if self.on_error is not None:
                    self.on_error(attempt, exc)
                delay = self.backoff(attempt)
                logger.warning(
                    f"Transient error (attempt {attempt}/{self.max_attempts}): "
                    f"{str(exc)[:200]}. Retrying in {delay:.2f}s"
                )
                await self.sleep(delay)
                continue

            if self.on_success is not None:
                self.on_success(attempt - 1)
            return result

    def __call__(
        self, fn: Callable[..., Awaitable[T]]
    ) -> Callable[..., Awaitable[T]]:
        """Use the policy as a decorator on a coroutine function."""
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await self.call(fn, *args, **kwargs)

        return wrapper


DEFAULT_RETRY_POLICY = RetryPolicy()
