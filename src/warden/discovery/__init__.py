"""
Discovery module - Passive attack-surface reconnaissance.
"""

from .models import Asset, AssetRelationship, AssetType, DiscoveryResult
from .passive import PassiveReconManager


__all__ = [
    "Asset",
    "AssetRelationship",
    "AssetType",
    "DiscoveryResult",
    "PassiveReconManager",
]
