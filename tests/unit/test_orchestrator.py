"""
Unit tests for ScanOrchestrator module.

Run with: pytest tests/unit/test_orchestrator.py -v
"""

import asyncio
import time

import pytest

from warden.core import (
    AdmissionConfig,
    AdmissionGate,
    AdmissionTimeout,
    ConfigurationError,
    RetryPolicy,
    ScanOptions,
    ScanOrchestrator,
    ScanState,
    Severity,
    Summary,
    Target,
)


TARGET = Target(url="https://example.com")
NO_DELAY = RetryPolicy(max_retries=3, delay=0)


class TestScanOrchestrator:
    """Test suite for ScanOrchestrator class"""

    def test_initialization(self):
        """Test orchestrator initializes correctly"""
        orchestrator = ScanOrchestrator(max_scans_per_second=5)

        assert orchestrator.gate.config.capacity == 5
        assert len(orchestrator.registry) == 0
        assert orchestrator.executor.policy.max_retries == 3
        assert orchestrator.executor.policy.delay == 1.0
        assert orchestrator.active_scans == {}

    def test_invalid_admission_settings_are_rejected(self):
        """Test non-positive attempt limits and negative delays raise ConfigurationError"""
        for attempts in (0, -3):
            with pytest.raises(ConfigurationError, match="max_admission_attempts"):
                ScanOrchestrator(max_admission_attempts=attempts)

        with pytest.raises(ConfigurationError, match="admission_retry_delay"):
            ScanOrchestrator(admission_retry_delay=-1.0)

    def test_register_capability(self, stub_capability):
        """Test capability registration"""
        orchestrator = ScanOrchestrator()
        orchestrator.register_capability(stub_capability("a"))

        assert orchestrator.registry.ids() == ["a"]

    @pytest.mark.asyncio
    async def test_no_capabilities_gives_empty_result(self):
        """Test a scan with nothing registered still completes"""
        orchestrator = ScanOrchestrator()

        result = await orchestrator.scan(TARGET)

        assert result.issues == []
        assert result.summary == Summary()
        assert result.failed_capabilities == []
        assert result.target == TARGET

    @pytest.mark.asyncio
    async def test_failing_capability_is_isolated(self, stub_capability, issue_factory):
        """Test one capability failing does not affect the others' findings"""
        orchestrator = ScanOrchestrator(retry_policy=NO_DELAY)
        good = stub_capability("a", issues=[issue_factory("crit", Severity.CRITICAL)])
        bad = stub_capability("b", error=RuntimeError("boom"))
        orchestrator.register_capability(good)
        orchestrator.register_capability(bad)

        result = await orchestrator.scan(TARGET)

        assert [i.id for i in result.issues] == ["crit"]
        assert result.summary == Summary(total_issues=1, critical_count=1)
        assert result.failed_capabilities == ["b"]
        assert bad.calls == 4
        assert good.calls == 1

    @pytest.mark.asyncio
    async def test_issues_follow_registration_order(self, stub_capability, issue_factory):
        """Test result order is registration order, not completion order"""
        orchestrator = ScanOrchestrator()
        orchestrator.register_capability(
            stub_capability("slow", issues=[issue_factory("slow-1"), issue_factory("slow-2")], delay=0.05)
        )
        orchestrator.register_capability(stub_capability("fast", issues=[issue_factory("fast-1")]))

        result = await orchestrator.scan(TARGET)

        assert [i.id for i in result.issues] == ["slow-1", "slow-2", "fast-1"]

    @pytest.mark.asyncio
    async def test_capabilities_run_concurrently(self, stub_capability):
        """Test capabilities overlap instead of running one after another"""
        orchestrator = ScanOrchestrator()
        for name in ("a", "b", "c", "d"):
            orchestrator.register_capability(stub_capability(name, delay=0.2))

        start = time.monotonic()
        await orchestrator.scan(TARGET)
        elapsed = time.monotonic() - start

        assert elapsed < 0.6

    @pytest.mark.asyncio
    async def test_options_passed_through_unchanged(self, stub_capability):
        """Test every capability receives the caller's options object"""
        orchestrator = ScanOrchestrator()
        a = stub_capability("a")
        b = stub_capability("b")
        orchestrator.register_capability(a)
        orchestrator.register_capability(b)
        options = ScanOptions(timeout=2.5, headers={"X-Test": "1"})

        await orchestrator.scan(TARGET, options)

        assert a.seen_options == [options]
        assert b.seen_options == [options]
        assert a.seen_options[0] is options

    @pytest.mark.asyncio
    async def test_state_transitions_are_observed_in_order(self, stub_capability):
        """Test observers see every lifecycle state of a successful scan"""
        orchestrator = ScanOrchestrator()
        orchestrator.register_capability(stub_capability("a"))
        events = []
        orchestrator.subscribe(lambda event, data: events.append((event, data)))

        result = await orchestrator.scan(TARGET)

        states = [data["state"] for event, data in events if event == "scan_state_changed"]
        assert states == [
            ScanState.PENDING,
            ScanState.AWAITING_ADMISSION,
            ScanState.RUNNING,
            ScanState.AGGREGATING,
            ScanState.COMPLETED,
        ]
        assert events[-1][0] == "scan_completed"
        assert events[-1][1]["result"] is result
        assert all(data["scan_id"] == result.scan_id for _, data in events)

    @pytest.mark.asyncio
    async def test_observer_errors_do_not_break_scan(self, stub_capability):
        """Test a raising observer is logged and ignored"""
        orchestrator = ScanOrchestrator()
        orchestrator.register_capability(stub_capability("a"))

        def broken_observer(event, data):
            raise RuntimeError("observer bug")

        orchestrator.subscribe(broken_observer)

        result = await orchestrator.scan(TARGET)

        assert result.summary.total_issues == 0

    @pytest.mark.asyncio
    async def test_admission_backoff_delays_second_scan(self, stub_capability):
        """Test the second of two concurrent scans waits for a token"""
        orchestrator = ScanOrchestrator(max_scans_per_second=1, admission_retry_delay=0.25)
        orchestrator.register_capability(stub_capability("a"))

        async def timed_scan():
            start = time.monotonic()
            await orchestrator.scan(TARGET)
            return time.monotonic() - start

        durations = sorted(await asyncio.gather(timed_scan(), timed_scan()))

        assert durations[0] < 0.25
        assert durations[1] >= 0.25
        assert orchestrator.gate.denied_count >= 1

    @pytest.mark.asyncio
    async def test_admission_timeout_fails_scan(self, stub_capability, fake_clock):
        """Test a scan that is never admitted raises AdmissionTimeout"""
        gate = AdmissionGate(AdmissionConfig(capacity=1), clock=fake_clock)
        gate.acquire()
        orchestrator = ScanOrchestrator(gate=gate, admission_retry_delay=0, max_admission_attempts=3)
        capability = stub_capability("a")
        orchestrator.register_capability(capability)
        states = []
        orchestrator.subscribe(
            lambda event, data: states.append(data["state"]) if event == "scan_state_changed" else None
        )

        with pytest.raises(AdmissionTimeout) as exc_info:
            await orchestrator.scan(TARGET)

        assert exc_info.value.attempts == 3
        assert gate.denied_count == 3
        assert states[-1] == ScanState.FAILED
        assert ScanState.RUNNING not in states
        assert capability.calls == 0
        assert orchestrator.active_scans == {}

    @pytest.mark.asyncio
    async def test_shared_gate_across_orchestrators(self, stub_capability, fake_clock):
        """Test two orchestrators injected with one gate share its budget"""
        gate = AdmissionGate(AdmissionConfig(capacity=1), clock=fake_clock)
        first = ScanOrchestrator(gate=gate, admission_retry_delay=0, max_admission_attempts=1)
        second = ScanOrchestrator(gate=gate, admission_retry_delay=0, max_admission_attempts=1)

        await first.scan(TARGET)
        with pytest.raises(AdmissionTimeout):
            await second.scan(TARGET)

        fake_clock.advance(1.0)
        await second.scan(TARGET)

        assert gate.granted_count == 2

    @pytest.mark.asyncio
    async def test_scan_ids_are_unique(self):
        """Test every scan gets its own id"""
        orchestrator = ScanOrchestrator()

        first = await orchestrator.scan(TARGET)
        second = await orchestrator.scan(TARGET)

        assert first.scan_id != second.scan_id
        assert first.scan_id.startswith("scan_")

    @pytest.mark.asyncio
    async def test_get_status(self, stub_capability):
        """Test get_status() returns correct information"""
        orchestrator = ScanOrchestrator(retry_policy=RetryPolicy(max_retries=2, delay=0.5))
        orchestrator.register_capability(stub_capability("a"))
        await orchestrator.scan(TARGET)

        status = orchestrator.get_status()

        assert status["capabilities"] == ["a"]
        assert status["active_scans"] == {}
        assert status["admission"]["granted"] == 1
        assert status["retry_policy"] == {"max_retries": 2, "delay": 0.5}

    @pytest.mark.asyncio
    async def test_active_scans_tracked_while_running(self, stub_capability):
        """Test in-flight scans appear in active_scans"""
        orchestrator = ScanOrchestrator()
        orchestrator.register_capability(stub_capability("slow", delay=0.1))

        task = asyncio.create_task(orchestrator.scan(TARGET))
        await asyncio.sleep(0.05)

        assert list(orchestrator.active_scans.values()) == [ScanState.RUNNING]

        await task
        assert orchestrator.active_scans == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
