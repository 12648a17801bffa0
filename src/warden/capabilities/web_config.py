"""
Web.config Capability - Detects exposed ASP.NET configuration files.

Probes a fixed list of locations (plain and URL-encoded) and matches the
response body against markers that only appear in a real web.config.
"""

import re
from typing import List, Optional

from ..core.capability import CapabilityError
from ..core.models import Issue, IssueLocation, ScanOptions, Severity, Target
from ..transport.http_client import HttpClient, TransportError
from .http_capability import HttpCapability


class WebConfigCapability(HttpCapability):
    """
    Web.config exposure detector.

    Findings:
    1. HIGH (CWE-538) - web.config readable at a plain path
    2. CRITICAL (CWE-22) - web.config readable through an encoded path,
       i.e. the server's access rules were bypassed

    Example:
        >>> capability = WebConfigCapability()
        >>> issues = await capability.execute(Target(url="https://example.com"))
    """

    id = "web-config-scanner"
    name = "Web.config Exposure Scanner"
    description = "Scans for exposed web.config files that may contain sensitive configuration data"

    default_timeout = 5.0

    PATHS = [
        "/web.config",
        "/config/web.config",
        "/.././web.config",
        "/app/web.config",
        "/website/web.config",
        "/wwwroot/web.config",
    ]

    ENCODED_PATHS = [
        "/%77%65%62%2e%63%6f%6e%66%69%67",  # /web.config fully encoded
        "/w%65b.config",                     # partial encoding
        "/%2e%2e/%2e%2e/web.config",         # encoded traversal
    ]

    PATTERNS = [
        re.compile(r"<connectionStrings>", re.IGNORECASE),
        re.compile(r"<appSettings>", re.IGNORECASE),
        re.compile(r"<configuration xmlns=", re.IGNORECASE),
        re.compile(r"<system\.webServer>", re.IGNORECASE),
        re.compile(r"<authentication mode=", re.IGNORECASE),
        re.compile(r"<compilation debug=", re.IGNORECASE),
    ]

    EVIDENCE_LENGTH = 200

    async def execute(self, target: Target, options: Optional[ScanOptions] = None) -> List[Issue]:
        if not target.url:
            self.logger.warning("url_target_required", target=target.describe())
            return []

        base_url = target.url
        issues: List[Issue] = []
        probes = 0
        transport_failures = 0

        self.logger.info("web_config_scan_started", url=base_url)

        async with self.client(options) as client:
            for encoded, paths in ((False, self.PATHS), (True, self.ENCODED_PATHS)):
                for path in paths:
                    probes += 1
                    url = self.join_url(base_url, path)
                    try:
                        content = await self._fetch_config(client, url)
                    except TransportError as e:
                        transport_failures += 1
                        self.logger.error("probe_failed", url=url, error=str(e))
                        continue

                    if content is not None:
                        issues.append(self._build_issue(url, path, content, encoded))

        if probes and transport_failures == probes:
            raise CapabilityError(f"Target unreachable: every web.config probe failed for {base_url}")

        self.logger.info("web_config_scan_complete", url=base_url, issues=len(issues))
        return issues

    async def _fetch_config(self, client: HttpClient, url: str) -> Optional[str]:
        """Return the body if the URL serves a web.config, else None"""
        self.logger.debug("probing_web_config", url=url)
        response = await client.get(url)
        if response.status != 200:
            return None

        if self.matches(response.text):
            return response.text
        return None

    @classmethod
    def matches(cls, content: str) -> bool:
        return any(pattern.search(content) for pattern in cls.PATTERNS)

    def _build_issue(self, url: str, path: str, content: str, encoded: bool) -> Issue:
        metadata = {
            "evidence": content[:self.EVIDENCE_LENGTH] + "...",
            "response_size": len(content),
            "status_code": 200,
        }

        if not encoded:
            return Issue(
                id=self.new_issue_id("web-config-exposure"),
                title="Exposed web.config Configuration File",
                description=(
                    "A Microsoft ASP.NET web.config file was found exposed on the web server. "
                    "This file may contain sensitive configuration data including connection "
                    "strings, authentication keys, and application settings."
                ),
                severity=Severity.HIGH,
                cwe="CWE-538",
                location=IssueLocation(url=url),
                remediation=(
                    "Configure the web server to deny access to configuration files, either "
                    "in web.config itself or in the server configuration."
                ),
                references=(
                    "https://owasp.org/www-project-web-security-testing-guide/latest/"
                    "4-Web_Application_Security_Testing/02-Configuration_and_Deployment_Management_Testing/"
                    "03-Test_File_Extensions_Handling_for_Sensitive_Information",
                ),
                metadata=metadata,
            )

        metadata["encoded_path"] = path
        return Issue(
            id=self.new_issue_id("web-config-exposure-encoded"),
            title="Exposed web.config via URL Encoding",
            description=(
                "A Microsoft ASP.NET web.config file was accessible using URL encoding "
                "techniques, potentially bypassing security controls."
            ),
            severity=Severity.CRITICAL,
            cwe="CWE-22",
            location=IssueLocation(url=url),
            remediation=(
                "Configure the web server to normalize URL-encoded paths before applying "
                "access rules, and deny access to configuration files."
            ),
            references=("https://owasp.org/www-community/attacks/Path_Traversal",),
            metadata=metadata,
        )
