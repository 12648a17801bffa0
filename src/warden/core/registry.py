"""
Capability Registry - Ordered set of the capabilities an orchestrator runs.

Registration order is the output order of every scan, so the registry keeps
a list and uses the id index only to reject duplicates.
"""

from typing import Dict, Iterable, Iterator, List

import structlog

from .capability import Capability
from .errors import ConfigurationError


class CapabilityRegistry:
    """
    Holds registered capabilities in registration order.

    Example:
        >>> registry = CapabilityRegistry()
        >>> registry.register(WebConfigCapability())
        >>> [c.id for c in registry.list()]
        ['web-config-scanner']
    """

    def __init__(self):
        self._capabilities: List[Capability] = []
        self._by_id: Dict[str, Capability] = {}
        self.logger = structlog.get_logger(__name__)

    def register(self, capability: Capability) -> None:
        """
        Register a capability.

        Raises:
            ConfigurationError: If the id is empty or already registered
        """
        capability_id = getattr(capability, "id", "")
        if not capability_id:
            raise ConfigurationError(
                f"Capability {type(capability).__name__} has no id"
            )
        if capability_id in self._by_id:
            raise ConfigurationError(f"Duplicate capability id: {capability_id}")

        self._capabilities.append(capability)
        self._by_id[capability_id] = capability

        self.logger.info(
            "capability_registered",
            capability=capability_id,
            name=capability.name,
        )

    def extend(self, capabilities: Iterable[Capability]) -> None:
        for capability in capabilities:
            self.register(capability)

    def list(self) -> List[Capability]:
        """Registered capabilities in registration order"""
        return list(self._capabilities)

    def ids(self) -> List[str]:
        return [capability.id for capability in self._capabilities]

    def get(self, capability_id: str) -> Capability:
        try:
            return self._by_id[capability_id]
        except KeyError:
            raise KeyError(f"Unknown capability: {capability_id}") from None

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._by_id

    def __iter__(self) -> Iterator[Capability]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._capabilities)
