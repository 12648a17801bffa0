"""
Passive Reconnaissance - Asset discovery from public data sources.

Nothing here touches the target itself; every lookup goes to a third-party
service:
- crt.sh certificate transparency logs (subdomains)
- WHOIS (whoisfreaks, needs an API key)
- Google public DNS (A / AAAA records)
- Shodan host search (needs an API key)

Each source fails independently: an error is logged and the source simply
contributes nothing.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..transport.http_client import HttpClient, TransportError
from .models import Asset, AssetRelationship, AssetType, DiscoveryResult


CRT_SH_URL = "https://crt.sh/"
WHOIS_URL = "https://api.whoisfreaks.com/v1.0/whois"
DNS_URL = "https://dns.google/resolve"
SHODAN_URL = "https://api.shodan.io/shodan/host/search"

DNS_RECORD_TYPES = {1: "A", 28: "AAAA"}


class PassiveReconManager:
    """
    Passive asset discovery for a domain.

    Example:
        >>> recon = PassiveReconManager(api_keys={"shodan": "..."})
        >>> result = await recon.gather_domain_information("example.com")
        >>> len(result.assets)
    """

    provider_name = "passive-recon"

    def __init__(
        self,
        api_keys: Optional[Dict[str, Optional[str]]] = None,
        timeout: float = 30.0,
        max_results: int = 1000,
        client_factory: Optional[Callable[[], HttpClient]] = None,
    ):
        """
        Initialize passive recon.

        Args:
            api_keys: Keys by provider ("shodan", "censys", "security_trails", "whois")
            timeout: Per-request timeout in seconds
            max_results: Maximum number of assets to collect
            client_factory: Builds the HTTP client (defaults to HttpClient)
        """
        self.api_keys = {name: key for name, key in (api_keys or {}).items() if key}
        self.timeout = timeout
        self.max_results = max_results
        self._client_factory = client_factory or (
            lambda: HttpClient(timeout=self.timeout, headers={"Accept": "application/json"})
        )

        self.logger = structlog.get_logger(__name__)

    async def gather_domain_information(self, domain: str) -> DiscoveryResult:
        """
        Collect assets and relationships for a domain.

        Args:
            domain: Root domain (e.g. "example.com")

        Returns:
            DiscoveryResult; the first asset is always the domain itself
        """
        domain = domain.strip().lower().rstrip(".")
        timestamp = datetime.now(timezone.utc)

        self.logger.info("passive_recon_started", domain=domain)

        root = Asset(
            name=domain,
            asset_type=AssetType.WEBSITE,
            discovered_at=timestamp,
            last_updated_at=timestamp,
            metadata={"source": "initial-input"},
        )
        result = DiscoveryResult(
            assets=[root],
            relationships=[],
            provider_name=self.provider_name,
            scan_time=timestamp,
        )

        async with self._client_factory() as client:
            for subdomain in await self._subdomains_from_certificates(client, domain):
                asset = self._add_asset(result, subdomain, AssetType.WEBSITE, {"source": "certificate-transparency"})
                if asset:
                    self._relate(result, root, asset, "parent-domain")

            whois = await self._whois(client, domain)
            if whois:
                root.metadata["whois"] = whois

            for record in await self._dns_records(client, domain):
                asset = self._add_asset(
                    result,
                    record["value"],
                    AssetType.SERVER,
                    {"source": "dns-resolution", "record_type": record["type"]},
                )
                if asset:
                    self._relate(result, root, asset, "resolves-to")

            for host in await self._shodan_hosts(client, domain):
                self._merge_shodan_host(result, root, host)

        self.logger.info(
            "passive_recon_complete",
            domain=domain,
            assets=len(result.assets),
            relationships=len(result.relationships),
        )
        return result

    def _add_asset(
        self,
        result: DiscoveryResult,
        name: str,
        asset_type: AssetType,
        metadata: Dict[str, Any],
    ) -> Optional[Asset]:
        if len(result.assets) >= self.max_results:
            self.logger.debug("max_results_reached", max_results=self.max_results, skipped=name)
            return None

        asset = Asset(
            name=name,
            asset_type=asset_type,
            discovered_at=result.scan_time,
            last_updated_at=result.scan_time,
            metadata=metadata,
        )
        result.assets.append(asset)
        return asset

    @staticmethod
    def _relate(result: DiscoveryResult, source: Asset, target: Asset, relationship_type: str):
        result.relationships.append(
            AssetRelationship(
                source_id=source.id,
                target_id=target.id,
                relationship_type=relationship_type,
                discovered_at=result.scan_time,
            )
        )

    def _dicts(self, value: Any, source: str) -> List[Dict[str, Any]]:
        """The dict elements of a JSON list; anything else is logged and dropped"""
        if value is None:
            return []
        if not isinstance(value, list):
            self.logger.error("recon_source_failed", source=source, error=f"expected a list, got {type(value).__name__}")
            return []

        items = [item for item in value if isinstance(item, dict)]
        if len(items) != len(value):
            self.logger.warning("recon_entries_skipped", source=source, skipped=len(value) - len(items))
        return items

    async def _get_json(self, client: HttpClient, url: str, source: str, **params) -> Any:
        """GET a JSON document; None on any failure"""
        try:
            response = await client.get(url, params=params)
        except TransportError as e:
            self.logger.error("recon_source_failed", source=source, error=str(e))
            return None

        if response.status != 200:
            self.logger.debug("recon_source_no_data", source=source, status=response.status)
            return None

        return response.json()

    async def _subdomains_from_certificates(self, client: HttpClient, domain: str) -> List[str]:
        data = await self._get_json(client, CRT_SH_URL, "crt.sh", q=f"%.{domain}", output="json")
        subdomains = []
        seen = set()
        for cert in self._dicts(data, "crt.sh"):
            # name_value holds one name per line
            for name in str(cert.get("name_value") or "").splitlines():
                name = name.strip().lower()
                if name.startswith("*."):
                    name = name[2:]
                if name and name != domain and name.endswith("." + domain) and name not in seen:
                    seen.add(name)
                    subdomains.append(name)

        self.logger.debug("certificate_subdomains", domain=domain, count=len(subdomains))
        return subdomains

    async def _whois(self, client: HttpClient, domain: str) -> Optional[Dict[str, Any]]:
        api_key = self.api_keys.get("whois")
        if not api_key:
            self.logger.debug("whois_skipped", domain=domain, reason="no_api_key")
            return None

        data = await self._get_json(
            client, WHOIS_URL, "whois", apiKey=api_key, domainName=domain, type="live"
        )
        return data if isinstance(data, dict) else None

    async def _dns_records(self, client: HttpClient, domain: str) -> List[Dict[str, str]]:
        records = []
        for record_type in ("A", "AAAA"):
            data = await self._get_json(client, DNS_URL, "dns", name=domain, type=record_type)
            if not isinstance(data, dict):
                continue
            for answer in self._dicts(data.get("Answer"), "dns"):
                type_name = DNS_RECORD_TYPES.get(answer.get("type"))
                value = answer.get("data")
                if type_name and isinstance(value, str) and value:
                    records.append({"type": type_name, "value": value})

        self.logger.debug("dns_records", domain=domain, count=len(records))
        return records

    async def _shodan_hosts(self, client: HttpClient, domain: str) -> List[Dict[str, Any]]:
        api_key = self.api_keys.get("shodan")
        if not api_key:
            self.logger.debug("shodan_skipped", domain=domain, reason="no_api_key")
            return []

        data = await self._get_json(client, SHODAN_URL, "shodan", key=api_key, query=f"hostname:{domain}")
        if not isinstance(data, dict):
            return []

        # Search results are one banner per (ip, port); fold them per host
        hosts: Dict[str, Dict[str, Any]] = {}
        for match in self._dicts(data.get("matches"), "shodan"):
            ip = match.get("ip_str")
            if not isinstance(ip, str) or not ip:
                continue
            host = hosts.setdefault(ip, {"ip": ip, "ports": [], "services": {}})
            port = match.get("port")
            if not isinstance(port, int):
                port = None
            ports = match.get("ports") or []
            if not isinstance(ports, list):
                self.logger.debug("recon_field_malformed", source="shodan", field="ports", ip=ip)
                ports = []
            for value in ports + ([port] if port is not None else []):
                if isinstance(value, int) and value not in host["ports"]:
                    host["ports"].append(value)
            if port is not None:
                module = match.get("_shodan")
                host["services"][port] = {
                    "name": module.get("module") if isinstance(module, dict) else None,
                    "product": match.get("product"),
                    "version": match.get("version"),
                }

        self.logger.debug("shodan_hosts", domain=domain, count=len(hosts))
        return list(hosts.values())

    def _merge_shodan_host(self, result: DiscoveryResult, root: Asset, host: Dict[str, Any]):
        ip_asset = result.find_asset(host["ip"])
        if ip_asset is None:
            ip_asset = self._add_asset(result, host["ip"], AssetType.SERVER, {"source": "shodan"})
            if ip_asset is None:
                return
            self._relate(result, root, ip_asset, "relates-to")

        for port in host["ports"]:
            service = self._add_asset(
                result,
                f"{host['ip']}:{port}",
                AssetType.API,
                {"source": "shodan", "port": port, "service": host["services"].get(port)},
            )
            if service:
                self._relate(result, ip_asset, service, "hosts")
