"""Asset discovery data structures."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List


class AssetType(Enum):
    """Kinds of assets discovery can report"""
    WEBSITE = "website"
    API = "api"
    SERVER = "server"
    DATABASE = "database"
    CLOUD_SERVICE = "cloudService"
    NETWORK_DEVICE = "networkDevice"
    CONTAINER = "container"
    FUNCTION = "function"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Asset:
    """Something discovered about a target's attack surface"""
    name: str
    asset_type: AssetType
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    discovered_at: datetime = field(default_factory=_now)
    last_updated_at: datetime = field(default_factory=_now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.asset_type.value,
            "discovered_at": self.discovered_at.isoformat(),
            "last_updated_at": self.last_updated_at.isoformat(),
            "metadata": self.metadata,
        }


@dataclass
class AssetRelationship:
    """Directed link between two assets (e.g. domain resolves-to ip)"""
    source_id: str
    target_id: str
    relationship_type: str
    discovered_at: datetime = field(default_factory=_now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": self.relationship_type,
            "discovered_at": self.discovered_at.isoformat(),
            "metadata": self.metadata,
        }


@dataclass
class DiscoveryResult:
    """Everything one discovery provider found for a domain"""
    assets: List[Asset]
    relationships: List[AssetRelationship]
    provider_name: str
    scan_time: datetime

    def find_asset(self, name: str):
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_name": self.provider_name,
            "scan_time": self.scan_time.isoformat(),
            "assets": [asset.to_dict() for asset in self.assets],
            "relationships": [rel.to_dict() for rel in self.relationships],
        }
