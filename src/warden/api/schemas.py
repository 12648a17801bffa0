"""Request validation for the HTTP API."""

from typing import Annotated, Dict, Optional

from pydantic import AnyHttpUrl, BaseModel, Field, IPvAnyAddress, StringConstraints, model_validator

from ..core.models import ScanOptions, Target


DomainName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=253)]


class ScanRequestOptions(BaseModel):
    """Scan options accepted over the API (timeout in seconds)"""
    timeout: float = Field(default=10.0, ge=1, le=60)
    depth: int = Field(default=3, ge=1, le=10)
    concurrency: int = Field(default=5, ge=1, le=20)
    user_agent: Optional[str] = None
    follow_redirects: bool = True
    headers: Dict[str, str] = Field(default_factory=dict)
    cookies: Dict[str, str] = Field(default_factory=dict)
    proxy: Optional[str] = None

    def to_scan_options(self) -> ScanOptions:
        return ScanOptions(**self.model_dump())


class ScanRequest(BaseModel):
    """Body of POST /api/scan"""
    url: Optional[AnyHttpUrl] = None
    domain: Optional[DomainName] = None
    ip: Optional[IPvAnyAddress] = None
    options: Optional[ScanRequestOptions] = None

    @model_validator(mode="after")
    def _require_target(self):
        if not (self.url or self.domain or self.ip):
            raise ValueError("At least one target (url, domain, or ip) must be provided")
        return self

    def to_target(self) -> Target:
        return Target(
            url=str(self.url) if self.url else None,
            domain=self.domain,
            ip=str(self.ip) if self.ip else None,
        )

    def to_scan_options(self) -> Optional[ScanOptions]:
        return self.options.to_scan_options() if self.options else None


class DiscoverRequest(BaseModel):
    """Body of POST /api/discover"""
    domain: DomainName
