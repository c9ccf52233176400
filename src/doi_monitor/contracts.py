"""
Core interfaces for the DOI monitoring system.

This module defines the abstract base classes that form the foundation of the
monitoring system's architecture. They separate the health-check engine from
the network and from the storage it runs against, so each side can be replaced
(or mocked) independently.
"""

import abc
from typing import List, Optional

from .domain import ProbeResult, StatusRecord


class IdentifierProber(abc.ABC):
    """
    Abstract interface for a component that checks a single identifier.

    Its responsibility is to encapsulate the network I/O needed to decide
    whether an identifier still resolves, and to return a structured result.
    """

    @abc.abstractmethod
    async def probe(self, identifier: str) -> ProbeResult:
        """
        Checks whether the identifier resolves to a live resource.
        Network failures are reported in the returned ProbeResult, not raised.

        Args:
            identifier: The normalized DOI to check.

        Returns:
            ProbeResult: The outcome of the check.
        """
        pass


class StatusStore(abc.ABC):
    """
    Abstract key-value store holding one StatusRecord per identifier.

    There are no transactional guarantees across keys: each identifier is an
    independent read-modify-write.
    """

    @abc.abstractmethod
    async def get(self, identifier: str) -> Optional[StatusRecord]:
        """
        Returns the persisted record, or None if the identifier was never checked.

        Raises:
            MalformedStatusError: If a record exists but cannot be decoded.
        """
        pass

    @abc.abstractmethod
    async def put(self, identifier: str, record: StatusRecord) -> None:
        """Replaces the persisted record of an identifier."""
        pass

    @abc.abstractmethod
    async def delete(self, identifier: str) -> None:
        """Removes the persisted record of an identifier, if any."""
        pass


class MonitoringList(abc.ABC):
    """Abstract source of the ordered, duplicate-free set of monitored identifiers."""

    @abc.abstractmethod
    async def list_identifiers(self) -> List[str]:
        """Returns the monitored identifiers in monitoring order."""
        pass
