"""
StarStorage Persistence Layer - Base Classes

This module provides the abstract context interface every store handle must
implement, together with the fetch descriptor passed through to it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar, Union

T = TypeVar('T')

class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"

@dataclass
class SortCriteria:
    """Represents sorting criteria"""
    field: str
    direction: SortDirection = SortDirection.ASC

@dataclass
class FetchDescriptor(Generic[T]):
    """
    Filter and sort specification for a context fetch.

    The descriptor is opaque to the storage controller. How ``predicate`` is
    interpreted belongs to the context: ``MemoryContext`` expects a callable
    taking a record, ``SQLModelContext`` expects a SQLAlchemy boolean
    expression. The default descriptor is unfiltered and unsorted.
    """
    model: Optional[Type[T]] = None
    predicate: Any = None
    sort_by: List[SortCriteria] = field(default_factory=list)
    limit: Optional[int] = None
    offset: int = 0

    def where(self, predicate: Any) -> 'FetchDescriptor[T]':
        """Set the filter predicate"""
        self.predicate = predicate
        return self

    def add_sort(self, field: str, direction: SortDirection = SortDirection.ASC) -> 'FetchDescriptor[T]':
        """Add sorting criteria"""
        self.sort_by.append(SortCriteria(field, direction))
        return self

    def sort_asc(self, field: str) -> 'FetchDescriptor[T]':
        """Convenience method for ascending sort"""
        return self.add_sort(field, SortDirection.ASC)

    def sort_desc(self, field: str) -> 'FetchDescriptor[T]':
        """Convenience method for descending sort"""
        return self.add_sort(field, SortDirection.DESC)


IdentityResolver = Union[str, Callable[[Any], Any]]

def resolve_identity(identity: IdentityResolver) -> Callable[[Any], Any]:
    """Turn an attribute name or a callable into an identity getter."""
    if callable(identity):
        return identity
    return lambda record: getattr(record, identity)


class ModelContext(ABC):
    """
    Abstract base class for store contexts.

    A context is a live session against a persistence store. Storage
    controllers borrow it: they never create or close one.
    """

    @abstractmethod
    def fetch(self, descriptor: FetchDescriptor) -> List[Any]:
        """
        Fetch the records matching a descriptor.

        Args:
            descriptor: Filter, sort and paging specification

        Returns:
            Matching records in store order
        """
        pass

    @abstractmethod
    def insert(self, record: Any) -> None:
        """
        Insert a record into the store.

        Args:
            record: Record instance to persist
        """
        pass

    @abstractmethod
    def delete(self, record: Any) -> None:
        """
        Delete a record from the store. Deleting an unknown record is left
        to the store's own semantics.

        Args:
            record: Record instance to delete
        """
        pass

    @abstractmethod
    def delete_all(
        self,
        model: Type[Any],
        predicate: Any = None,
        include_subclasses: bool = True,
    ) -> None:
        """
        Delete every record of ``model`` matching ``predicate`` in one call.

        Args:
            model: Record type to delete from
            predicate: Optional filter, ``None`` matches every record
            include_subclasses: Whether records of subclasses of ``model`` are included
        """
        pass

    def save(self) -> None:
        """Flush pending changes. Contexts that write through need not override."""
        pass
