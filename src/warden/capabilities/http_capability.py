"""
HTTP Capability - Shared plumbing for detectors that probe a web target.
"""

import uuid
from typing import Callable, Optional

from ..core.capability import Capability
from ..core.models import ScanOptions
from ..transport.http_client import HttpClient


ClientFactory = Callable[[Optional[ScanOptions]], HttpClient]


class HttpCapability(Capability):
    """
    Base class for capabilities that issue HTTP requests.

    A fresh client is created per execution from the scan options, so
    concurrent executions never share a session.
    """

    default_timeout: float = 10.0

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        super().__init__()
        self._client_factory = client_factory

    def client(self, options: Optional[ScanOptions]) -> HttpClient:
        if self._client_factory is not None:
            return self._client_factory(options)
        return HttpClient.from_options(options, default_timeout=self.default_timeout)

    @staticmethod
    def new_issue_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"

    @staticmethod
    def join_url(base_url: str, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return base_url.rstrip("/") + path
