"""
Admission Gate - Token bucket that bounds how many scans start per second.

The gate throttles whole scans, not the capability executions inside a scan.
It never blocks: acquire() either takes a token or raises AdmissionDenied,
and the orchestrator decides how long to back off.

Design Pattern: Token Bucket
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from .errors import ConfigurationError, WardenError


class AdmissionDenied(WardenError):
    """Raised when no admission token is available"""

    def __init__(self, retry_after: float):
        super().__init__(f"No admission token available, retry in {retry_after:.2f}s")
        self.retry_after = retry_after


class AdmissionTimeout(WardenError):
    """Raised when a scan could not be admitted within the attempt limit"""

    def __init__(self, attempts: int):
        super().__init__(f"Scan not admitted after {attempts} attempts")
        self.attempts = attempts


@dataclass
class AdmissionConfig:
    """Configuration for the admission gate"""
    capacity: float = 10.0  # Scans admitted per second (also the burst size)


class AdmissionGate:
    """
    Token bucket admission control.

    The bucket starts full and refills continuously at ``capacity`` tokens
    per second, never holding more than ``capacity`` tokens. Taking a token
    is atomic, so two concurrent callers can never both get the last one.

    Example:
        >>> gate = AdmissionGate(AdmissionConfig(capacity=1))
        >>> gate.acquire()
        >>> gate.acquire()  # raises AdmissionDenied
    """

    def __init__(
        self,
        config: Optional[AdmissionConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the admission gate.

        Args:
            config: Gate configuration (uses defaults if None)
            clock: Monotonic time source in seconds (injectable for tests)

        Raises:
            ConfigurationError: If capacity is below one scan per second
        """
        self.config = config or AdmissionConfig()
        if self.config.capacity < 1:
            raise ConfigurationError(
                f"Admission capacity must be at least 1, got {self.config.capacity}"
            )

        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(self.config.capacity)
        self._last_refill = clock()

        self.granted_count = 0
        self.denied_count = 0

        self.logger = structlog.get_logger(__name__)
        self.logger.info("admission_gate_initialized", capacity=self.config.capacity)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(
            float(self.config.capacity),
            self._tokens + elapsed * self.config.capacity,
        )
        self._last_refill = now

    def acquire(self) -> None:
        """
        Take one admission token.

        Raises:
            AdmissionDenied: If the bucket is empty
        """
        with self._lock:
            self._refill()

            if self._tokens >= 1.0:
                self._tokens -= 1.0
                self.granted_count += 1
                return

            self.denied_count += 1
            retry_after = (1.0 - self._tokens) / self.config.capacity

        self.logger.debug("admission_denied", retry_after=f"{retry_after:.2f}s")
        raise AdmissionDenied(retry_after)

    def available(self) -> float:
        """Tokens currently in the bucket"""
        with self._lock:
            self._refill()
            return self._tokens

    def reset(self):
        """Refill the bucket and clear statistics"""
        with self._lock:
            self._tokens = float(self.config.capacity)
            self._last_refill = self._clock()
            self.granted_count = 0
            self.denied_count = 0

        self.logger.info("admission_gate_reset")

    def get_stats(self) -> dict:
        """
        Get gate statistics.

        Returns:
            Dictionary with current statistics
        """
        return {
            "capacity": self.config.capacity,
            "available": round(self.available(), 2),
            "granted": self.granted_count,
            "denied": self.denied_count,
        }
