"""
Unit tests for IntegratedScanner and build_orchestrator.

Run with: pytest tests/unit/test_integrated_scanner.py -v
"""

import json

import pytest

from warden.config import Settings
from warden.core import ScanOrchestrator, Severity, Target
from warden.discovery import PassiveReconManager
from warden.integrated_scanner import IntegratedScanner, build_orchestrator


class TestBuildOrchestrator:
    """Test suite for build_orchestrator()"""

    def test_builtin_capabilities_registered(self):
        """Test the default orchestrator carries every built-in capability"""
        orchestrator = build_orchestrator(Settings())

        assert orchestrator.registry.ids() == ["web-config-scanner", "telerik-scanner"]

    def test_settings_applied(self, stub_capability):
        """Test admission and retry settings reach the orchestrator"""
        settings = Settings(
            max_scans_per_second=4,
            capability_retries=1,
            capability_retry_delay=0.5,
            admission_retry_delay=0.2,
            max_admission_attempts=7,
        )

        orchestrator = build_orchestrator(settings, [stub_capability("a")])

        assert orchestrator.registry.ids() == ["a"]
        assert orchestrator.gate.config.capacity == 4
        assert orchestrator.executor.policy.max_retries == 1
        assert orchestrator.executor.policy.delay == 0.5
        assert orchestrator.admission_retry_delay == 0.2
        assert orchestrator.max_admission_attempts == 7


class TestIntegratedScanner:
    """Test suite for IntegratedScanner"""

    def make_scanner(self, fake_http_client, capabilities, settings=None):
        settings = settings or Settings()
        return IntegratedScanner(
            settings,
            orchestrator=build_orchestrator(settings, capabilities),
            recon=PassiveReconManager(client_factory=fake_http_client),
        )

    @pytest.mark.asyncio
    async def test_url_target_skips_discovery(self, fake_http_client, stub_capability, issue_factory):
        """Test discovery only runs for domain targets"""
        scanner = self.make_scanner(
            fake_http_client, [stub_capability("a", issues=[issue_factory("1", Severity.LOW)])]
        )

        report = await scanner.scan(Target(url="https://example.com"))

        assert report["discovery"] is None
        assert report["scan"].summary.low_count == 1

    @pytest.mark.asyncio
    async def test_domain_target_runs_discovery(self, fake_http_client, stub_capability):
        """Test a domain target gets a discovery result"""
        scanner = self.make_scanner(fake_http_client, [stub_capability("a")])

        report = await scanner.scan(Target(url="https://example.com", domain="example.com"))

        assert report["discovery"].assets[0].name == "example.com"
        json.dumps(IntegratedScanner.to_dict(report))

    @pytest.mark.asyncio
    async def test_default_options_from_settings(self, fake_http_client, stub_capability):
        """Test scans without options use the configured user agent"""
        capability = stub_capability("a")
        scanner = self.make_scanner(fake_http_client, [capability], Settings(user_agent="Custom/2.0"))

        await scanner.scan(Target(ip="192.0.2.1"))

        assert capability.seen_options[0].user_agent == "Custom/2.0"

    def test_builds_own_components(self):
        """Test settings alone are enough to build a scanner"""
        scanner = IntegratedScanner(Settings(api_keys={"shodan": "k"}, discovery_max_results=5))

        assert isinstance(scanner.orchestrator, ScanOrchestrator)
        assert scanner.recon.api_keys == {"shodan": "k"}
        assert scanner.recon.max_results == 5

    @pytest.mark.asyncio
    async def test_get_summary(self, fake_http_client, stub_capability, issue_factory):
        """Test the text summary lists counts and failed capabilities"""
        scanner = self.make_scanner(
            fake_http_client,
            [
                stub_capability("a", issues=[issue_factory("1", Severity.CRITICAL)]),
                stub_capability("b", error=RuntimeError("boom")),
            ],
            Settings(capability_retries=0),
        )

        report = await scanner.scan(Target(url="https://example.com"))
        summary = IntegratedScanner.get_summary(report["scan"])

        assert "WARDEN Scan Results" in summary
        assert "Total: 1" in summary
        assert "critical: 1" in summary
        assert "Failed capabilities" in summary
        assert "• b" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
