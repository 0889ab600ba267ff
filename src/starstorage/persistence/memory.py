"""
StarStorage Persistence Layer - Memory Context

In-process store context for development and testing.
Data is lost when the context is discarded.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from .base import FetchDescriptor, IdentityResolver, ModelContext, SortDirection, resolve_identity

logger = logging.getLogger(__name__)

class MemoryContext(ModelContext):
    """
    In-memory store context.

    Records are kept in insertion order, keyed by their type and identity.
    Every call is appended to ``operations`` as ``(action, payload)`` so
    callers can inspect what reached the store.
    """

    def __init__(self, records: Optional[List[Any]] = None, identity: IdentityResolver = "id"):
        """
        Initialize the memory context.

        Args:
            records: Records to seed the store with (not logged as operations)
            identity: Attribute name or callable giving a record's identity
        """
        self._identity = resolve_identity(identity)
        self._data: Dict[Tuple[type, Any], Any] = {}
        self.operations: List[Tuple[str, Any]] = []
        for record in records or []:
            self._data[self._key(record)] = record

    def _key(self, record: Any) -> Tuple[type, Any]:
        return type(record), self._identity(record)

    def fetch(self, descriptor: FetchDescriptor) -> List[Any]:
        """Fetch records from memory."""
        self.operations.append(("fetch", descriptor))
        records = list(self._data.values())

        if descriptor.model is not None:
            records = [r for r in records if isinstance(r, descriptor.model)]
        if descriptor.predicate is not None:
            records = [r for r in records if descriptor.predicate(r)]

        # Stable sort, applied from the least significant key
        for criteria in reversed(descriptor.sort_by):
            records.sort(
                key=lambda r, name=criteria.field: getattr(r, name),
                reverse=criteria.direction == SortDirection.DESC,
            )

        records = records[descriptor.offset:]
        if descriptor.limit is not None:
            records = records[:descriptor.limit]
        return records

    def insert(self, record: Any) -> None:
        """Insert a record, replacing any stored record with the same key."""
        self.operations.append(("insert", record))
        self._data[self._key(record)] = record

    def delete(self, record: Any) -> None:
        """Delete a record from memory. Unknown records are ignored."""
        self.operations.append(("delete", record))
        if self._data.pop(self._key(record), None) is None:
            logger.debug(f"MemoryContext: delete of unknown record {self._identity(record)!r}")

    def delete_all(
        self,
        model: Type[Any],
        predicate: Optional[Callable[[Any], bool]] = None,
        include_subclasses: bool = True,
    ) -> None:
        """Delete every stored record of ``model`` matching ``predicate``."""
        self.operations.append(("delete_all", model))

        def matches(record: Any) -> bool:
            if include_subclasses:
                if not isinstance(record, model):
                    return False
            elif type(record) is not model:
                return False
            return predicate is None or predicate(record)

        doomed = [key for key, record in self._data.items() if matches(record)]
        for key in doomed:
            del self._data[key]
        logger.debug(f"MemoryContext: deleted {len(doomed)} {model.__name__} records")

    @property
    def records(self) -> List[Any]:
        """Every stored record, in insertion order."""
        return list(self._data.values())

    def count(self, action: str) -> int:
        """Number of recorded calls of ``action`` ("fetch", "insert", "delete", "delete_all")."""
        return sum(1 for name, _ in self.operations if name == action)

    def __len__(self) -> int:
        return len(self._data)
