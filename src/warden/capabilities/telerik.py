"""
Telerik Capability - Detects vulnerable Telerik UI for ASP.NET AJAX deployments.

Steps:
1. Confirm Telerik is present (page markers or handler URLs)
2. Identify the version and match it against known CVEs
3. Probe the RadAsyncUpload and DialogHandler endpoints
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.capability import CapabilityError
from ..core.models import Issue, IssueLocation, ScanOptions, Severity, Target
from ..transport.http_client import HttpClient, HttpResponse, TransportError
from .http_capability import HttpCapability


@dataclass(frozen=True)
class VulnerableVersion:
    """A CVE and the releases it is known to affect (and everything older)"""
    cve_id: str
    versions: Tuple[str, ...]
    description: str
    severity: Severity


def parse_version(version: str) -> Tuple[int, ...]:
    """'2019.3.1023' -> (2019, 3, 1023). Non-numeric parts are dropped."""
    return tuple(int(part) for part in version.split(".") if part.isdigit())


class TelerikCapability(HttpCapability):
    """
    Telerik UI vulnerability detector.

    Example:
        >>> capability = TelerikCapability()
        >>> issues = await capability.execute(Target(url="https://example.com"))
    """

    id = "telerik-scanner"
    name = "Telerik UI Vulnerability Scanner"
    description = "Scans for vulnerabilities in Telerik UI components"

    VULNERABLE_VERSIONS = [
        VulnerableVersion(
            cve_id="CVE-2019-18935",
            versions=("2019.3.1023", "2019.2.514", "2019.1.115", "2018.3.910", "2018.2.710"),
            description="Remote code execution vulnerability in RadAsyncUpload function",
            severity=Severity.CRITICAL,
        ),
        VulnerableVersion(
            cve_id="CVE-2017-11317",
            versions=("2017.2.621", "2017.1.228", "2016.3.1027"),
            description="Insecure deserialization vulnerability in RadAsyncUpload",
            severity=Severity.HIGH,
        ),
        VulnerableVersion(
            cve_id="CVE-2017-9248",
            versions=("2017.2.621", "2017.1.228", "2016.3.1027"),
            description="Cryptographic weakness in Telerik UI for ASP.NET AJAX",
            severity=Severity.HIGH,
        ),
    ]

    PAGE_MARKERS = ["Telerik.Web.UI", "telerik.web", "RadAjaxPanel", "RadScriptManager"]

    INDICATOR_PATHS = [
        "/Telerik.Web.UI.WebResource.axd",
        "/Telerik.Web.UI.DialogHandler.aspx",
        "/Telerik.Web.UI.SpellCheckHandler.axd",
        "/WebResource.axd?d=",
        "/ScriptResource.axd",
    ]

    RAU_HANDLER_PATHS = [
        "/Telerik.Web.UI.WebResource.axd?type=rau",
        "/aspx/Telerik.Web.UI.WebResource.axd?type=rau",
        "/desktopmodules/telerik/radeditorprovider/Telerik.Web.UI.WebResource.axd?type=rau",
    ]

    DIALOG_HANDLER_PATHS = [
        "/Telerik.Web.UI.DialogHandler.aspx",
        "/aspx/Telerik.Web.UI.DialogHandler.aspx",
    ]

    SCRIPT_VERSION_RE = re.compile(r"Telerik\.Web\.UI,\s*Version=([\d.]+)", re.IGNORECASE)
    PAGE_VERSION_RE = re.compile(r"Telerik\.Web\.UI.*?(\d+\.\d+\.\d+\.\d+)", re.IGNORECASE)

    ADVISORY_URL = "https://www.telerik.com/support/kb/aspnet-ajax/details/security-advisory"

    async def execute(self, target: Target, options: Optional[ScanOptions] = None) -> List[Issue]:
        if not target.url:
            self.logger.warning("url_target_required", target=target.describe())
            return []

        base_url = target.url.rstrip("/")
        issues: List[Issue] = []

        self.logger.info("telerik_scan_started", url=base_url)

        async with self.client(options) as client:
            try:
                homepage = await client.get(base_url)
            except TransportError as e:
                raise CapabilityError(f"Target unreachable: {base_url}") from e

            if not await self._detect_presence(client, base_url, homepage.text):
                self.logger.debug("telerik_not_detected", url=base_url)
                return issues

            self.logger.info("telerik_detected", url=base_url)

            version = await self._detect_version(client, base_url, homepage)
            if version:
                self.logger.info("telerik_version_detected", url=base_url, version=version)
                for vuln in self.check_vulnerable_version(version):
                    issues.append(self._version_issue(base_url, version, vuln))

            rau_issue = await self._probe_rau_handler(client, base_url)
            if rau_issue:
                issues.append(rau_issue)

            dialog_issue = await self._probe_dialog_handler(client, base_url)
            if dialog_issue:
                issues.append(dialog_issue)

        self.logger.info("telerik_scan_complete", url=base_url, issues=len(issues))
        return issues

    async def _detect_presence(self, client: HttpClient, base_url: str, homepage: str) -> bool:
        if any(marker in homepage for marker in self.PAGE_MARKERS):
            return True

        for path in self.INDICATOR_PATHS:
            url = self.join_url(base_url, path)
            try:
                response = await client.get(url)
            except TransportError as e:
                self.logger.debug("indicator_probe_failed", url=url, error=str(e))
                continue
            if response.status in (200, 302):
                return True

        return False

    async def _detect_version(self, client: HttpClient, base_url: str, homepage: HttpResponse) -> Optional[str]:
        url = self.join_url(base_url, "/ScriptResource.axd?d=")
        try:
            response = await client.get(url)
        except TransportError as e:
            self.logger.debug("version_probe_failed", url=url, error=str(e))
        else:
            if response.status == 200:
                match = self.SCRIPT_VERSION_RE.search(response.text)
                if match:
                    return match.group(1)

        if homepage.status == 200:
            match = self.PAGE_VERSION_RE.search(homepage.text)
            if match:
                return match.group(1)

        return None

    @classmethod
    def check_vulnerable_version(cls, version: str) -> List[VulnerableVersion]:
        """
        Known vulnerabilities affecting a version.

        A version is affected when it is at or below any listed release.
        Only the components both versions share are compared, so the
        four-part assembly version 2019.1.115.40 matches release 2019.1.115.
        """
        detected = parse_version(version)
        if not detected:
            return []

        affected = []
        for vuln in cls.VULNERABLE_VERSIONS:
            for listed in vuln.versions:
                listed_parts = parse_version(listed)
                width = min(len(detected), len(listed_parts))
                if detected[:width] <= listed_parts[:width]:
                    affected.append(vuln)
                    break

        return affected

    def _version_issue(self, base_url: str, version: str, vuln: VulnerableVersion) -> Issue:
        return Issue(
            id=self.new_issue_id(f"telerik-{vuln.cve_id}"),
            title=f"Vulnerable Telerik UI Component ({vuln.cve_id})",
            description=vuln.description,
            severity=vuln.severity,
            cwe="CWE-502",
            location=IssueLocation(url=base_url),
            remediation="Update Telerik UI components to the latest version.",
            references=(f"https://nvd.nist.gov/vuln/detail/{vuln.cve_id}", self.ADVISORY_URL),
            metadata={"detected_version": version},
        )

    async def _first_reachable(self, client: HttpClient, base_url: str, paths: List[str]) -> Optional[str]:
        """First handler URL answering 200, if any"""
        for path in paths:
            url = self.join_url(base_url, path)
            try:
                response = await client.get(url)
            except TransportError as e:
                self.logger.debug("handler_probe_failed", url=url, error=str(e))
                continue
            if response.status == 200:
                return url
        return None

    async def _probe_rau_handler(self, client: HttpClient, base_url: str) -> Optional[Issue]:
        url = await self._first_reachable(client, base_url, self.RAU_HANDLER_PATHS)
        if url is None:
            return None

        return Issue(
            id=self.new_issue_id("telerik-rau-handler"),
            title="Exposed RadAsyncUpload Handler",
            description=(
                "The Telerik RadAsyncUpload handler is accessible, which may indicate "
                "vulnerability to CVE-2019-18935 or similar issues if the version is vulnerable."
            ),
            severity=Severity.HIGH,
            cwe="CWE-434",
            location=IssueLocation(url=url),
            remediation=(
                "Update Telerik UI components to the latest version and ensure proper "
                "access controls for handlers."
            ),
            references=(
                "https://nvd.nist.gov/vuln/detail/CVE-2019-18935",
                "https://www.telerik.com/support/kb/aspnet-ajax/upload-(async)/details/unrestricted-file-upload",
            ),
        )

    async def _probe_dialog_handler(self, client: HttpClient, base_url: str) -> Optional[Issue]:
        url = await self._first_reachable(client, base_url, self.DIALOG_HANDLER_PATHS)
        if url is None:
            return None

        return Issue(
            id=self.new_issue_id("telerik-dialog-handler"),
            title="Exposed Telerik DialogHandler",
            description=(
                "The Telerik DialogHandler is accessible, which may indicate vulnerability "
                "to dialog-based attacks in older versions of Telerik UI."
            ),
            severity=Severity.MEDIUM,
            cwe="CWE-20",
            location=IssueLocation(url=url),
            remediation=(
                "Update Telerik UI components to the latest version and ensure proper "
                "access controls for handlers."
            ),
            references=(self.ADVISORY_URL,),
        )
