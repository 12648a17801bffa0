"""
API module - HTTP surface for scans and discovery.
"""

from .schemas import DiscoverRequest, ScanRequest, ScanRequestOptions
from .server import create_app, run_server


__all__ = [
    "DiscoverRequest",
    "ScanRequest",
    "ScanRequestOptions",
    "create_app",
    "run_server",
]
