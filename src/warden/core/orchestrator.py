"""
Scan Orchestrator - Runs every registered capability against one target.

A scan moves through PENDING -> AWAITING_ADMISSION -> RUNNING -> AGGREGATING
-> COMPLETED. Capabilities run concurrently (fan-out) and the orchestrator
waits for all of them (fan-in) before building the result. A failing
capability is retried, then isolated: it contributes no issues and never
fails the scan.

Design Pattern: Fan-out/Fan-in + Observer
"""

import asyncio
import time
import uuid
from typing import List, Dict, Any, Optional, Callable, Set
from datetime import datetime, timezone
from enum import Enum

import structlog

from .admission import AdmissionConfig, AdmissionDenied, AdmissionGate, AdmissionTimeout
from .aggregator import aggregate
from .capability import Capability
from .errors import ConfigurationError
from .models import Issue, ScanOptions, ScanResult, Target
from .registry import CapabilityRegistry
from .retry import RetryingExecutor, RetryPolicy


class ScanState(Enum):
    """Lifecycle state of a single scan"""
    PENDING = "pending"
    AWAITING_ADMISSION = "awaiting_admission"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanOrchestrator:
    """
    Central coordinator for a vulnerability scan.

    Responsibilities:
    1. Admission control (via the injected or owned AdmissionGate)
    2. Concurrent execution of all registered capabilities
    3. Retry and failure isolation per capability
    4. Aggregation into a ScanResult

    Example:
        >>> orchestrator = ScanOrchestrator(max_scans_per_second=5)
        >>> orchestrator.register_capability(WebConfigCapability())
        >>> result = await orchestrator.scan(Target(url="https://example.com"))
        >>> result.summary.total_issues
    """

    def __init__(
        self,
        registry: Optional[CapabilityRegistry] = None,
        gate: Optional[AdmissionGate] = None,
        max_scans_per_second: float = 10,
        retry_policy: Optional[RetryPolicy] = None,
        admission_retry_delay: float = 1.0,
        max_admission_attempts: int = 30,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: Capability registry (a new empty one if None)
            gate: Shared admission gate; if None the orchestrator owns one
                sized by max_scans_per_second
            max_scans_per_second: Admission capacity for an owned gate
            retry_policy: Retry policy for capability execution
            admission_retry_delay: Back-off after a denied admission (seconds)
            max_admission_attempts: Admission attempts before AdmissionTimeout

        Raises:
            ConfigurationError: If max_admission_attempts is below 1 or
                admission_retry_delay is negative
        """
        if max_admission_attempts < 1:
            raise ConfigurationError(
                f"max_admission_attempts must be >= 1, got {max_admission_attempts}"
            )
        if admission_retry_delay < 0:
            raise ConfigurationError(
                f"admission_retry_delay must be >= 0, got {admission_retry_delay}"
            )

        self.registry = registry if registry is not None else CapabilityRegistry()
        self.gate = gate or AdmissionGate(AdmissionConfig(capacity=max_scans_per_second))
        self.executor = RetryingExecutor(retry_policy)
        self.admission_retry_delay = admission_retry_delay
        self.max_admission_attempts = max_admission_attempts

        # scan_id -> state, for scans currently in progress
        self.active_scans: Dict[str, ScanState] = {}

        self.logger = structlog.get_logger(__name__)

        # Observer pattern - callbacks
        self.observers: List[Callable[[str, Dict[str, Any]], None]] = []

    def register_capability(self, capability: Capability) -> None:
        """Register a capability (duplicate ids raise ConfigurationError)"""
        self.registry.register(capability)

    def subscribe(self, observer: Callable[[str, Dict[str, Any]], None]):
        """
        Subscribe to orchestrator events (Observer pattern).

        Args:
            observer: Callback receiving (event, data)
        """
        self.observers.append(observer)
        self.logger.info("observer_subscribed", observer=getattr(observer, "__name__", repr(observer)))

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        """Notify all observers of an event"""
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error(
                    "observer_error",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e),
                )

    def _transition(self, scan_id: str, target: Target, state: ScanState):
        self.active_scans[scan_id] = state
        self.logger.debug("scan_state_changed", scan_id=scan_id, state=state.value)
        self._notify_observers(
            "scan_state_changed",
            {"scan_id": scan_id, "state": state, "target": target},
        )

    async def scan(self, target: Target, options: Optional[ScanOptions] = None) -> ScanResult:
        """
        Run all registered capabilities against a target.

        Args:
            target: What to scan
            options: Passed unmodified to every capability

        Returns:
            ScanResult with issues in capability registration order

        Raises:
            AdmissionTimeout: If the scan was never admitted
        """
        scan_id = f"scan_{uuid.uuid4().hex[:12]}"
        started = time.monotonic()
        timestamp = datetime.now(timezone.utc)

        self._transition(scan_id, target, ScanState.PENDING)
        self.logger.info("scan_started", scan_id=scan_id, target=target.describe())

        try:
            await self._await_admission(scan_id, target)

            self._transition(scan_id, target, ScanState.RUNNING)
            capabilities = self.registry.list()
            failed: Set[str] = set()

            # One task per capability; results are read back in launch order
            async with asyncio.TaskGroup() as tg:
                tasks = [
                    tg.create_task(self._run_isolated(scan_id, capability, target, options, failed))
                    for capability in capabilities
                ]

            self._transition(scan_id, target, ScanState.AGGREGATING)
            issues, summary = aggregate(task.result() for task in tasks)

            result = ScanResult(
                target=target,
                issues=issues,
                timestamp=timestamp,
                scan_duration=time.monotonic() - started,
                summary=summary,
                scan_id=scan_id,
                failed_capabilities=[c.id for c in capabilities if c.id in failed],
            )

            self._transition(scan_id, target, ScanState.COMPLETED)
            self.logger.info(
                "scan_complete",
                scan_id=scan_id,
                target=target.describe(),
                issues=summary.total_issues,
                failed_capabilities=result.failed_capabilities,
                duration=f"{result.scan_duration:.2f}s",
            )
            self._notify_observers("scan_completed", {"scan_id": scan_id, "result": result})

            return result

        except AdmissionTimeout:
            self._transition(scan_id, target, ScanState.FAILED)
            raise

        finally:
            self.active_scans.pop(scan_id, None)

    async def _await_admission(self, scan_id: str, target: Target):
        """Acquire an admission token, backing off a fixed delay on denial"""
        self._transition(scan_id, target, ScanState.AWAITING_ADMISSION)

        for attempt in range(1, self.max_admission_attempts + 1):
            try:
                self.gate.acquire()
                return
            except AdmissionDenied as e:
                self.logger.warning(
                    "scan_admission_denied",
                    scan_id=scan_id,
                    attempt=attempt,
                    max_attempts=self.max_admission_attempts,
                    retry_after=f"{e.retry_after:.2f}s",
                )
                if attempt < self.max_admission_attempts:
                    await asyncio.sleep(self.admission_retry_delay)

        self.logger.error(
            "scan_admission_timeout",
            scan_id=scan_id,
            attempts=self.max_admission_attempts,
        )
        raise AdmissionTimeout(self.max_admission_attempts)

    async def _run_isolated(
        self,
        scan_id: str,
        capability: Capability,
        target: Target,
        options: Optional[ScanOptions],
        failed: Set[str],
    ) -> List[Issue]:
        """Run one capability with retries; a final failure yields no issues"""
        try:
            issues = await self.executor.execute(capability, target, options)
        except Exception as e:
            failed.add(capability.id)
            self.logger.error(
                "capability_failed",
                scan_id=scan_id,
                capability=capability.id,
                name=capability.name,
                error=str(e),
                exc_info=True,
            )
            return []

        self.logger.debug(
            "capability_complete",
            scan_id=scan_id,
            capability=capability.id,
            issues=len(issues),
        )
        return issues

    def get_status(self) -> Dict[str, Any]:
        """
        Get current orchestrator status.

        Returns:
            Status dictionary
        """
        return {
            "capabilities": self.registry.ids(),
            "active_scans": {scan_id: state.value for scan_id, state in self.active_scans.items()},
            "admission": self.gate.get_stats(),
            "retry_policy": {
                "max_retries": self.executor.policy.max_retries,
                "delay": self.executor.policy.delay,
            },
        }
