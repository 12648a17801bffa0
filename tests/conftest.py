"""
Shared test fixtures: stub capabilities, a fake HTTP client and a fake clock.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Union

import pytest

from warden.core import Capability, Issue, IssueLocation, Severity
from warden.transport import HttpResponse, TransportError


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests against a local HTTP server")


class StubCapability(Capability):
    """Capability returning canned issues, optionally failing or sleeping first"""

    def __init__(
        self,
        capability_id: str,
        issues: Optional[List[Issue]] = None,
        error: Optional[Exception] = None,
        fail_times: Optional[int] = None,
        delay: float = 0.0,
    ):
        self.id = capability_id
        self.name = f"Stub {capability_id}"
        self.description = "Test capability"
        super().__init__()
        self.issues = list(issues or [])
        self.error = error
        self.fail_times = fail_times
        self.delay = delay
        self.calls = 0
        self.seen_options = []

    async def execute(self, target, options=None):
        self.calls += 1
        self.seen_options.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None and (self.fail_times is None or self.calls <= self.fail_times):
            raise self.error
        return list(self.issues)


Route = Union[HttpResponse, Callable[[str, dict], HttpResponse]]


class FakeHttpClient:
    """
    Stands in for HttpClient.

    ``routes`` maps a URL to a response (or a callable taking url and
    params); unknown URLs answer 404. URLs listed in ``errors`` raise
    TransportError.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None, errors=()):
        self.routes = routes or {}
        self.errors = set(errors)
        self.requests = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get(self, url, params=None, **kwargs):
        self.requests.append((url, dict(params or {})))
        if url in self.errors or "*" in self.errors:
            raise TransportError(f"GET {url} failed: connection refused")
        route = self.routes.get(url)
        if route is None:
            return HttpResponse(status=404, url=url, text="Not Found")
        if callable(route):
            return route(url, dict(params or {}))
        return route

    def requested_urls(self) -> List[str]:
        return [url for url, _ in self.requests]


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_issue(issue_id: str, severity: Severity = Severity.MEDIUM) -> Issue:
    return Issue(
        id=issue_id,
        title=f"Issue {issue_id}",
        description="Test issue",
        severity=severity,
        location=IssueLocation(url="https://example.com"),
    )


@pytest.fixture
def stub_capability():
    """Factory for StubCapability instances"""
    return StubCapability


@pytest.fixture
def issue_factory():
    """Factory for Issue instances"""
    return make_issue


@pytest.fixture
def fake_http_client():
    """Factory for FakeHttpClient instances"""
    return FakeHttpClient


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def ok():
    """Build a 200 response"""
    def _ok(url: str, text: str = "") -> HttpResponse:
        return HttpResponse(status=200, url=url, text=text)
    return _ok
