"""
Core module - Scan orchestration engine.

This package contains the data model, capability contract, admission control,
retry logic, aggregation and the orchestrator that ties them together.
"""

from .errors import WardenError, ConfigurationError
from .models import (
    Target,
    ScanOptions,
    Severity,
    Issue,
    IssueLocation,
    Summary,
    ScanResult,
    InvalidTargetError,
)
from .capability import Capability, CapabilityError
from .registry import CapabilityRegistry
from .admission import AdmissionGate, AdmissionConfig, AdmissionDenied, AdmissionTimeout
from .retry import RetryingExecutor, RetryPolicy, RetriesExhaustedError
from .aggregator import aggregate, summarize_issues
from .orchestrator import ScanOrchestrator, ScanState


__all__ = [
    # Errors
    "WardenError",
    "ConfigurationError",
    "InvalidTargetError",
    "CapabilityError",
    "RetriesExhaustedError",
    "AdmissionDenied",
    "AdmissionTimeout",
    # Data model
    "Target",
    "ScanOptions",
    "Severity",
    "Issue",
    "IssueLocation",
    "Summary",
    "ScanResult",
    # Capabilities
    "Capability",
    "CapabilityRegistry",
    # Admission and retry
    "AdmissionGate",
    "AdmissionConfig",
    "RetryingExecutor",
    "RetryPolicy",
    # Aggregation
    "aggregate",
    "summarize_issues",
    # Orchestration
    "ScanOrchestrator",
    "ScanState",
]
