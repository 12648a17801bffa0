"""
Detector capabilities module.

Each capability inherits from Capability (via HttpCapability) and implements
execute(). Capabilities are registered explicitly with the orchestrator.

Available capabilities:
- WebConfigCapability: exposed ASP.NET web.config files
- TelerikCapability: vulnerable Telerik UI components
"""

from typing import List

from ..core.capability import Capability
from .http_capability import HttpCapability
from .web_config import WebConfigCapability
from .telerik import TelerikCapability, VulnerableVersion


def builtin_capabilities() -> List[Capability]:
    """Fresh instances of every built-in capability, in registration order"""
    return [WebConfigCapability(), TelerikCapability()]


__all__ = [
    # Base classes
    "HttpCapability",
    # Capabilities
    "WebConfigCapability",
    "TelerikCapability",
    "VulnerableVersion",
    "builtin_capabilities",
]
