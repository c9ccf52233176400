"""
In-process implementations of the storage contracts.

InMemoryStatusStore behaves like a plain key-value namespace: records are kept
in their serialized form, so every read goes through the same decoding path as
a real store. StaticMonitoringList serves a fixed list of identifiers.
"""

import logging
from typing import Dict, Iterable, List, Optional

from doi_monitor.contracts import MonitoringList, StatusStore
from doi_monitor.domain import StatusRecord
from doi_monitor.serialization import decode_status_record, encode_status_record

# Module logger
logger = logging.getLogger(__name__)


class InMemoryStatusStore(StatusStore):
    """A StatusStore backed by a dict of serialized records."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        """
        Args:
            initial: Pre-existing serialized records keyed by identifier.
        """
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, identifier: str) -> Optional[StatusRecord]:
        return decode_status_record(self._data.get(identifier))

    async def put(self, identifier: str, record: StatusRecord) -> None:
        self._data[identifier] = encode_status_record(record)

    async def delete(self, identifier: str) -> None:
        self._data.pop(identifier, None)

    def raw(self, identifier: str) -> Optional[str]:
        """Returns the serialized value stored for an identifier."""
        return self._data.get(identifier)


class StaticMonitoringList(MonitoringList):
    """A MonitoringList over a fixed sequence, with duplicates removed."""

    def __init__(self, identifiers: Iterable[str]) -> None:
        self._identifiers: List[str] = list(dict.fromkeys(identifiers))
        logger.debug(f"Static monitoring list with {len(self._identifiers)} identifiers.")

    async def list_identifiers(self) -> List[str]:
        return list(self._identifiers)
