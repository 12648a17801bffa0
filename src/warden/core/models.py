"""
Scan data model - Value types shared by every component.

Targets and options are caller-supplied inputs, issues are produced by
capabilities, and ScanResult/Summary are produced once per scan by the
orchestrator.
"""

from typing import List, Optional, Dict, Any, Tuple
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum

from .errors import WardenError


class InvalidTargetError(WardenError, ValueError):
    """Raised when a target does not identify anything to scan"""
    pass


class Severity(Enum):
    """Severity buckets used for summarizing findings"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


@dataclass(frozen=True)
class Target:
    """
    What is being scanned.

    The fields are independent hints rather than alternatives: a capability
    picks whichever it understands (e.g. the web checks need ``url``).
    """
    url: Optional[str] = None
    ip: Optional[str] = None
    domain: Optional[str] = None
    asset_id: Optional[str] = None

    def __post_init__(self):
        if not any((self.url, self.ip, self.domain, self.asset_id)):
            raise InvalidTargetError(
                "At least one of url, ip, domain or asset_id must be provided"
            )

    def describe(self) -> str:
        """Short label for log messages"""
        return self.url or self.domain or self.ip or f"asset:{self.asset_id}"

    def to_dict(self) -> Dict[str, str]:
        return {key: value for key, value in asdict(self).items() if value}


@dataclass
class ScanOptions:
    """Scan-wide settings passed through to every capability"""
    timeout: float = 10.0  # seconds, per network call
    depth: int = 3
    concurrency: int = 5
    user_agent: Optional[str] = None
    follow_redirects: bool = True
    cookies: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    proxy: Optional[str] = None  # host:port or full proxy URL


@dataclass(frozen=True)
class IssueLocation:
    """Where a finding was observed. Every field is optional."""
    url: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    function: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class Issue:
    """
    A single finding reported by a capability.

    Issues are immutable once created; the orchestrator only reorders
    references to them, it never edits one.
    """
    id: str
    title: str
    description: str
    severity: Severity
    location: IssueLocation = field(default_factory=IssueLocation)
    cwe: Optional[str] = None
    remediation: Optional[str] = None
    references: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "cwe": self.cwe,
            "location": self.location.to_dict(),
            "remediation": self.remediation,
            "references": list(self.references),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Summary:
    """Issue counts per severity bucket"""
    total_issues: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    info_count: int = 0

    def count_for(self, severity: Severity) -> int:
        return getattr(self, f"{severity.value}_count")

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class ScanResult:
    """Outcome of one orchestrated scan"""
    target: Target
    issues: List[Issue]
    timestamp: datetime
    scan_duration: float  # seconds
    summary: Summary
    scan_id: Optional[str] = None
    failed_capabilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "scan_id": self.scan_id,
            "target": self.target.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "scan_duration": round(self.scan_duration, 3),
            "summary": self.summary.to_dict(),
            "failed_capabilities": list(self.failed_capabilities),
            "issues": [issue.to_dict() for issue in self.issues],
        }
