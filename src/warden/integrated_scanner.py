"""
Integrated Scanner - Wires settings, capabilities and discovery together.

This is what the CLI and the HTTP API drive:
1. Passive reconnaissance (when a domain is given)
2. Orchestrated vulnerability scan with all built-in capabilities
3. Human-readable summary

Usage:
    scanner = IntegratedScanner(settings)
    report = await scanner.scan(Target(url="https://example.com"))
"""

from typing import Any, Dict, Iterable, Optional

import structlog

from .capabilities import builtin_capabilities
from .config import Settings
from .core import (
    Capability,
    RetryPolicy,
    ScanOptions,
    ScanOrchestrator,
    ScanResult,
    Severity,
    Target,
)
from .discovery import DiscoveryResult, PassiveReconManager


def build_orchestrator(
    settings: Settings,
    capabilities: Optional[Iterable[Capability]] = None,
) -> ScanOrchestrator:
    """
    Create an orchestrator from settings and register capabilities.

    Args:
        settings: Runtime settings
        capabilities: Capabilities to register (built-ins if None)
    """
    orchestrator = ScanOrchestrator(
        max_scans_per_second=settings.max_scans_per_second,
        retry_policy=RetryPolicy(
            max_retries=settings.capability_retries,
            delay=settings.capability_retry_delay,
        ),
        admission_retry_delay=settings.admission_retry_delay,
        max_admission_attempts=settings.max_admission_attempts,
    )

    for capability in builtin_capabilities() if capabilities is None else capabilities:
        orchestrator.register_capability(capability)

    return orchestrator


class IntegratedScanner:
    """
    Main entry point combining discovery and scanning.

    Example:
        >>> scanner = IntegratedScanner()
        >>> report = await scanner.scan(Target(url="https://example.com", domain="example.com"))
        >>> report["scan"].summary.total_issues
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        orchestrator: Optional[ScanOrchestrator] = None,
        recon: Optional[PassiveReconManager] = None,
    ):
        """
        Initialize integrated scanner.

        Args:
            settings: Runtime settings (defaults if None)
            orchestrator: Pre-built orchestrator (built from settings if None)
            recon: Passive recon manager (built from settings if None)
        """
        self.settings = settings or Settings()
        self.orchestrator = orchestrator or build_orchestrator(self.settings)
        self.recon = recon or PassiveReconManager(
            api_keys=self.settings.api_keys.model_dump(),
            timeout=self.settings.discovery_timeout,
            max_results=self.settings.discovery_max_results,
        )

        self.logger = structlog.get_logger(__name__)

    def default_options(self) -> ScanOptions:
        return ScanOptions(user_agent=self.settings.user_agent)

    async def discover(self, domain: str) -> DiscoveryResult:
        """Run passive reconnaissance for a domain"""
        return await self.recon.gather_domain_information(domain)

    async def scan(
        self,
        target: Target,
        options: Optional[ScanOptions] = None,
    ) -> Dict[str, Any]:
        """
        Run discovery (domain targets only) followed by the vulnerability scan.

        Returns:
            {"scan": ScanResult, "discovery": DiscoveryResult or None}
        """
        discovery = None
        if target.domain:
            self.logger.info("passive_recon_requested", domain=target.domain)
            discovery = await self.discover(target.domain)

        result = await self.orchestrator.scan(target, options or self.default_options())

        return {"scan": result, "discovery": discovery}

    @staticmethod
    def to_dict(report: Dict[str, Any]) -> Dict[str, Any]:
        """JSON-ready form of a scan() report"""
        discovery = report.get("discovery")
        return {
            "scan": report["scan"].to_dict(),
            "discovery": discovery.to_dict() if discovery else None,
        }

    @staticmethod
    def get_summary(result: ScanResult) -> str:
        """
        Get human-readable summary of scan results.

        Returns:
            Formatted summary string
        """
        summary = f"""
========================================
WARDEN Scan Results
========================================
Scan ID: {result.scan_id}
Target: {result.target.describe()}
Started: {result.timestamp.isoformat()}
Duration: {result.scan_duration:.2f}s

Issues:
  • Total: {result.summary.total_issues}
"""
        for severity in Severity:
            summary += f"  • {severity.value}: {result.summary.count_for(severity)}\n"

        if result.failed_capabilities:
            summary += "\nFailed capabilities:\n"
            for capability_id in result.failed_capabilities:
                summary += f"  • {capability_id}\n"

        summary += "========================================\n"

        return summary
