"""
HTTP Client - Thin aiohttp wrapper used by capabilities and passive recon.

Every status code is returned to the caller as an HttpResponse; only
transport failures (DNS, connection, timeout) raise.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ..core.errors import WardenError
from ..core.models import ScanOptions


DEFAULT_USER_AGENT = "Warden-Scanner/1.0"
MAX_REDIRECTS = 5


class TransportError(WardenError):
    """Raised when a request could not be completed"""
    pass


@dataclass
class HttpResponse:
    """Fully-read HTTP response"""
    status: int
    url: str
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Decode the body as JSON (None if it is not valid JSON)"""
        try:
            return json.loads(self.text)
        except ValueError:
            return None


def normalize_proxy(proxy: Optional[str]) -> Optional[str]:
    """Accept ``host:port`` as well as a full proxy URL."""
    if not proxy:
        return None
    if "://" not in proxy:
        return f"http://{proxy}"
    return proxy


class HttpClient:
    """
    Async HTTP client for scanning.

    Example:
        >>> async with HttpClient(timeout=5.0) as client:
        ...     response = await client.get("https://example.com/web.config")
        ...     response.status
    """

    def __init__(
        self,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
        proxy: Optional[str] = None,
        follow_redirects: bool = True,
        user_agent: Optional[str] = None,
    ):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT, **(headers or {})}
        self.cookies = dict(cookies or {})
        self.proxy = normalize_proxy(proxy)
        self.follow_redirects = follow_redirects

        self._session: Optional[aiohttp.ClientSession] = None
        self.logger = structlog.get_logger(__name__)

    @classmethod
    def from_options(cls, options: Optional[ScanOptions], default_timeout: float = 10.0) -> "HttpClient":
        """Build a client from scan options"""
        if options is None:
            return cls(timeout=default_timeout)
        return cls(
            timeout=options.timeout or default_timeout,
            headers=options.headers,
            cookies=options.cookies,
            proxy=options.proxy,
            follow_redirects=options.follow_redirects,
            user_agent=options.user_agent,
        )

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Start the HTTP session"""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers=self.headers,
                cookies=self.cookies,
            )

    async def close(self) -> None:
        """Close the HTTP session"""
        if self._session:
            await self._session.close()
            self._session = None

    async def request(self, method: str, url: str, **kwargs) -> HttpResponse:
        """
        Send a request and read the full response body.

        Raises:
            TransportError: If the request could not be completed
        """
        await self.start()

        self.logger.debug("http_request", method=method, url=url)
        try:
            async with self._session.request(
                method,
                url,
                proxy=self.proxy,
                allow_redirects=self.follow_redirects,
                max_redirects=MAX_REDIRECTS,
                **kwargs,
            ) as resp:
                text = await resp.text(errors="replace")
                response = HttpResponse(
                    status=resp.status,
                    url=str(resp.url),
                    text=text,
                    headers=dict(resp.headers),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.debug("http_error", method=method, url=url, error=repr(e))
            raise TransportError(f"{method} {url} failed: {e!r}") from e

        self.logger.debug("http_response", status=response.status, url=url)
        return response

    async def get(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, data: Any = None, **kwargs) -> HttpResponse:
        return await self.request("POST", url, data=data, **kwargs)

    async def head(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("HEAD", url, **kwargs)

    async def put(self, url: str, data: Any = None, **kwargs) -> HttpResponse:
        return await self.request("PUT", url, data=data, **kwargs)
