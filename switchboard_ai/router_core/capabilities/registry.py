from __future__ import annotations

"""Capability registry.

The registry maps capability identifiers to ``CapabilityRecord`` entries in
registration order.

The selector reads ``list()`` once per request and works against that
point-in-time snapshot. Writers publish a fresh immutable tuple under a lock
(read-copy-update), so registration and deregistration never block or disturb
selections that already hold a snapshot.
"""

import logging
import threading
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from ..errors import DuplicateIdentifier
from .base import Capability, CapabilityRecord

logger = logging.getLogger(__name__)

_Snapshot = Tuple[Tuple[CapabilityRecord, ...], Mapping[str, CapabilityRecord]]


class CapabilityRegistry:
    """
    Insertion-ordered store of capability records.

    Notes:
        - ``register`` raises ``DuplicateIdentifier`` for an existing identifier.
        - ``unregister`` is a no-op for an unknown identifier.
        - ``get`` raises ``KeyError`` if the capability is missing.
    """

    def __init__(self) -> None:
        """Initialize an empty capability registry."""
        self._lock = threading.Lock()
        self._snapshot: _Snapshot = ((), MappingProxyType({}))

    def register(self, record: CapabilityRecord) -> None:
        """
        Register a capability record.

        Args:
            record: The record to add at the end of the registration order.

        Raises:
            DuplicateIdentifier: If ``record.id`` is already registered.
        """
        with self._lock:
            records, by_id = self._snapshot
            if record.id in by_id:
                raise DuplicateIdentifier(record.id)
            self._publish(records + (record,))
        logger.info(f"Registered capability '{record.id}'")

    def register_capability(self, capability_id: str, capability: Capability, description: str = "") -> CapabilityRecord:
        """Build a ``CapabilityRecord`` and register it."""
        record = CapabilityRecord(id=capability_id, description=description, capability=capability)
        self.register(record)
        return record

    def register_all(self, records: Iterable[CapabilityRecord]) -> None:
        """
        Register several records at once.

        Either every record is registered or, when any identifier collides with
        the registry or with another record in the batch, none is.

        Raises:
            DuplicateIdentifier: On the first colliding identifier.
        """
        batch = tuple(records)
        with self._lock:
            records, by_id = self._snapshot
            seen = set(by_id)
            for record in batch:
                if record.id in seen:
                    raise DuplicateIdentifier(record.id)
                seen.add(record.id)
            self._publish(records + batch)
        logger.info(f"Registered {len(batch)} capabilities")

    def unregister(self, capability_id: str) -> None:
        """
        Remove a capability if present.

        Args:
            capability_id: The identifier to remove.
        """
        with self._lock:
            records, by_id = self._snapshot
            if capability_id not in by_id:
                return
            self._publish(tuple(r for r in records if r.id != capability_id))
        logger.info(f"Unregistered capability '{capability_id}'")

    def list(self) -> Tuple[CapabilityRecord, ...]:
        """Return an insertion-ordered snapshot of all records."""
        return self._snapshot[0]

    def get(self, capability_id: str) -> CapabilityRecord:
        """
        Retrieve a registered record by identifier.

        Raises:
            KeyError: If no capability is registered with the given identifier.
        """
        try:
            return self._snapshot[1][capability_id]
        except KeyError as e:
            raise KeyError(f"unknown capability: {capability_id}") from e

    def has(self, capability_id: str) -> bool:
        """Check if a capability is registered."""
        return capability_id in self._snapshot[1]

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            self._publish(())

    def __len__(self) -> int:
        return len(self._snapshot[0])

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._snapshot[1]

    def _publish(self, records: Tuple[CapabilityRecord, ...]) -> None:
        # Caller holds the lock. One assignment, so readers see either the old
        # or the new (records, index) pair, never a mix.
        self._snapshot = (records, MappingProxyType({r.id: r for r in records}))


default_registry = CapabilityRegistry()
"""Process-wide registry used when no explicit registry is wired in."""
