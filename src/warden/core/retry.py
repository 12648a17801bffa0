"""
Retrying Executor - Runs one capability with a bounded, fixed-delay retry.

Every exception is treated the same way: wait ``delay`` seconds and try
again, up to ``max_retries`` extra attempts. Attempts for one capability are
strictly serial.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

import structlog

from .capability import Capability, CapabilityError
from .errors import ConfigurationError
from .models import Issue, ScanOptions, Target


class RetriesExhaustedError(CapabilityError):
    """Raised when a capability failed on every attempt"""

    def __init__(self, capability_id: str, attempts: int, last_error: BaseException):
        super().__init__(
            f"Capability {capability_id} failed after {attempts} attempts: {last_error}"
        )
        self.capability_id = capability_id
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class RetryPolicy:
    """Retry configuration for capability execution"""
    max_retries: int = 3   # Additional attempts after the first one
    delay: float = 1.0     # Fixed delay between attempts (seconds)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.delay < 0:
            raise ConfigurationError(f"delay must be >= 0, got {self.delay}")

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries


class RetryingExecutor:
    """
    Wraps capability invocations with the configured retry policy.

    Example:
        >>> executor = RetryingExecutor(RetryPolicy(max_retries=2, delay=0.5))
        >>> issues = await executor.execute(capability, Target(url="https://example.com"))
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.logger = structlog.get_logger(__name__)

    async def execute(
        self,
        capability: Capability,
        target: Target,
        options: Optional[ScanOptions] = None,
    ) -> List[Issue]:
        """
        Execute a capability, retrying on failure.

        Returns:
            The issues reported by the first successful attempt

        Raises:
            RetriesExhaustedError: If every attempt failed
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                self.logger.debug(
                    "capability_executing",
                    capability=capability.id,
                    attempt=attempt,
                )
                return list(await capability.execute(target, options))

            except asyncio.CancelledError:
                raise

            except Exception as e:
                remaining = self.policy.max_attempts - attempt
                if remaining <= 0:
                    raise RetriesExhaustedError(capability.id, attempt, e) from e

                self.logger.warning(
                    "capability_retrying",
                    capability=capability.id,
                    attempt=attempt,
                    attempts_left=remaining,
                    error=str(e),
                )
                await self._sleep(self.policy.delay)
