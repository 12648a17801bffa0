"""
Capability - Abstract base class for all pluggable detectors.

Every detector (web.config exposure, Telerik UI, ...) implements this
interface and is registered explicitly with the orchestrator.

Design Pattern: Strategy Pattern
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from .errors import WardenError
from .models import Issue, ScanOptions, Target


class CapabilityError(WardenError):
    """Base exception for errors raised while a capability executes"""
    pass


class Capability(ABC):
    """
    Abstract base class for all detector capabilities.

    Subclasses declare their identity as class attributes and implement
    execute(). Capabilities must not share mutable state with the
    orchestrator: the same instance may run concurrently against
    different targets.

    Example:
        >>> class HeaderCheck(Capability):
        ...     id = "header-check"
        ...     name = "Security Header Check"
        ...     description = "Looks for missing security headers"
        ...
        ...     async def execute(self, target, options=None):
        ...         return []
    """

    id: str = ""
    name: str = ""
    description: str = ""

    def __init__(self):
        self.logger = structlog.get_logger(__name__, capability=self.id)

    @abstractmethod
    async def execute(
        self,
        target: Target,
        options: Optional[ScanOptions] = None,
    ) -> List[Issue]:
        """
        Inspect a target and report findings.

        Args:
            target: What to scan
            options: Scan-wide options (may be None)

        Returns:
            List of issues (empty if nothing was found)

        Raises:
            Exception: Any failure; the orchestrator retries and isolates it
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
