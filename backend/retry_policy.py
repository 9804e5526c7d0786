"""
Bounded retry with linear backoff for image generation calls.

A logical request gets max_attempts tries. After a failed attempt that is not
the last one, the policy waits base_delay_seconds * attempt (1s, then 2s with
the defaults). When every attempt fails, TerminalGenerationFailure is raised
carrying the attempt count and the last underlying error.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

from structured_logging import log_generation_attempt

T = TypeVar("T")


class TransientGenerationFailure(Exception):
    """An attempt failed but the request may succeed if tried again."""


class MalformedGenerationResponse(TransientGenerationFailure):
    """The service answered without an image."""

    def __init__(self, explanatory_text: Optional[str] = None):
        self.explanatory_text = explanatory_text
        detail = explanatory_text or "no image and no explanatory text"
        super().__init__(f"Response did not include an image: {detail}")


class TerminalGenerationFailure(Exception):
    """Every attempt of a logical request failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Generation failed after {attempts} attempt(s): {last_error}")


class RetryPolicy:
    """Runs an async operation up to max_attempts times."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_config(cls, config, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay_seconds=config.retry_base_delay_seconds,
            sleep=sleep,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return self.base_delay_seconds * attempt

    async def run(self, operation: Callable[[int], Awaitable[T]], **log_fields) -> T:
        """
        Call operation(attempt) until it returns or attempts run out.

        Any exception raised by the operation counts as a failed attempt.

        Raises:
            TerminalGenerationFailure: After max_attempts failures
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            started = time.perf_counter()
            try:
                result = await operation(attempt)
            except Exception as e:
                last_error = e
                log_generation_attempt(
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    success=False,
                    error=f"{type(e).__name__}: {e}",
                    **log_fields,
                )
                if attempt < self.max_attempts:
                    await self._sleep(self.delay_for(attempt))
                continue

            log_generation_attempt(
                attempt=attempt,
                max_attempts=self.max_attempts,
                duration_ms=(time.perf_counter() - started) * 1000,
                success=True,
                **log_fields,
            )
            return result

        raise TerminalGenerationFailure(self.max_attempts, last_error)
