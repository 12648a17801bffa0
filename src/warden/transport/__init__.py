"""
Transport module - Outbound HTTP used by capabilities and discovery.
"""

from .http_client import HttpClient, HttpResponse, TransportError, normalize_proxy


__all__ = [
    "HttpClient",
    "HttpResponse",
    "TransportError",
    "normalize_proxy",
]
