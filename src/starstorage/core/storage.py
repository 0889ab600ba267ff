"""
Entity Storage

Keeps an ordered in-memory mirror of the records a store context returned,
and routes every mutation through that context so mirror and store stay in
step.

Threading: a storage instance is single-writer. Call it from one thread or
event loop only; no locking is done here. ``fetch`` may block on the store,
so async callers should offload it (``asyncio.to_thread``) and keep every
other call on their loop.
"""

import logging
from dataclasses import replace as replace_fields
from typing import Any, Generic, Iterable, Iterator, List, Optional, Type, TypeVar, Union

from ..config import get_config
from ..persistence.base import FetchDescriptor, IdentityResolver, ModelContext, resolve_identity
from .errors import ContextNotBoundError, FetchError, RemoveError
from .signals import ChangeAction, ChangeSignal, Listener, StorageChange

logger = logging.getLogger(__name__)

T = TypeVar('T')

def _is_batch(value: Any, model: type) -> bool:
    # pydantic models are iterable themselves, so a record of the model is never a batch
    if isinstance(value, (str, bytes, model)):
        return False
    return isinstance(value, Iterable)


class EntityStorage(Generic[T]):
    """
    Observable mirror of a store's records of one model type.

    Reads go to the local mirror. Writes go to the bound context first and
    to the mirror second. Without a bound context, writes are skipped with a
    warning (or raise ``ContextNotBoundError`` in strict mode).

    Example:
        ```python
        notes = EntityStorage(Note)
        notes.fetch(MemoryContext())
        notes.append(Note(text="hello"))
        notes.replace([n for n in notes if n.text != "hello"])
        ```
    """

    def __init__(
        self,
        model: Type[T],
        identity: IdentityResolver = "id",
        strict: Optional[bool] = None,
    ):
        """
        Initialize an unbound, empty storage.

        Args:
            model: Record type mirrored by this storage
            identity: Attribute name or callable giving a record's identity
            strict: Raise when unbound instead of logging, defaults to
                ``StorageConfig.strict_binding``
        """
        self.model = model
        self.identity_of = resolve_identity(identity)
        self._strict = strict
        self._context: Optional[ModelContext] = None
        self._items: List[T] = []
        self._signal = ChangeSignal()

    @property
    def context(self) -> Optional[ModelContext]:
        """The bound store context, if any."""
        return self._context

    @property
    def is_bound(self) -> bool:
        return self._context is not None

    @property
    def strict(self) -> bool:
        if self._strict is None:
            return get_config().strict_binding
        return self._strict

    # Reads

    def current_items(self) -> List[T]:
        """Return a copy of the mirror."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __getitem__(self, index: Union[int, slice]) -> Union[T, List[T]]:
        return self._items[index]

    def __contains__(self, record: Any) -> bool:
        return self._contains_identity(self.identity_of(record))

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        state = "bound" if self.is_bound else "unbound"
        return f"EntityStorage({self.model.__name__}, {state}, {len(self._items)} items)"

    # Observation

    def subscribe(self, listener: Listener) -> Listener:
        """Call ``listener`` with a StorageChange after every change to the mirror."""
        return self._signal.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._signal.unsubscribe(listener)

    # Writes

    def fetch(self, context: ModelContext, descriptor: Optional[FetchDescriptor] = None) -> None:
        """
        Bind ``context`` and reload the mirror from it.

        The context is bound even when the fetch fails; the mirror is only
        replaced on success.

        Args:
            context: Store context to bind
            descriptor: Filter and sort passed to the store, unfiltered by default

        Raises:
            FetchError: If the store query fails
        """
        self._context = context

        if descriptor is None:
            descriptor = FetchDescriptor(model=self.model)
        elif descriptor.model is None:
            descriptor = replace_fields(descriptor, model=self.model)

        try:
            records = list(context.fetch(descriptor))
        except Exception as e:
            logger.error(f"Fetch of {self.model.__name__} failed: {e}")
            raise FetchError(f"Failed to fetch {self.model.__name__} records: {e}") from e

        previous = self._items
        self._items = records
        logger.debug(f"Fetched {len(records)} {self.model.__name__} records")
        self._emit(ChangeAction.FETCH, inserted=records, removed=previous)

    def append(self, records) -> None:
        """
        Insert one record, or each record of a batch, into store and mirror.

        Records whose identity is already mirrored are skipped individually.

        Args:
            records: A record, or any iterable of records
        """
        if not self._require_context("append"):
            return

        batch = list(records) if _is_batch(records, self.model) else [records]
        inserted: List[T] = []
        try:
            for record in batch:
                if self._append_one(record):
                    inserted.append(record)
        finally:
            # Records stored before a failing insert are already mirrored
            if inserted:
                self._emit(ChangeAction.APPEND, inserted=inserted)

    def remove(self, records) -> None:
        """
        Delete one record, or each record of a batch, from store and mirror.

        Mirror entries are dropped by identity, so a record edited after it
        was appended still removes its entry.

        Args:
            records: A record, or any iterable of records
        """
        if not self._require_context("remove"):
            return

        batch = list(records) if _is_batch(records, self.model) else [records]
        removed: List[T] = []
        try:
            for record in batch:
                removed.extend(self._remove_one(record))
        finally:
            if removed:
                self._emit(ChangeAction.REMOVE, removed=removed)

    def remove_all(self, predicate: Any = None, include_subclasses: bool = True) -> None:
        """
        Bulk delete from the store, then clear the mirror.

        The whole mirror is cleared whatever ``predicate`` matched; call
        ``fetch`` again to resync when deleting with a narrowing predicate.

        Args:
            predicate: Store filter, ``None`` deletes every record of the model
            include_subclasses: Whether subclasses of the model are deleted too

        Raises:
            RemoveError: If the bulk delete fails
        """
        if not self._require_context("remove_all"):
            return

        try:
            self._context.delete_all(self.model, predicate, include_subclasses)
        except Exception as e:
            logger.error(f"Bulk delete of {self.model.__name__} failed: {e}")
            raise RemoveError(f"Failed to delete {self.model.__name__} records: {e}") from e

        removed = self._items
        self._items = []
        logger.debug(f"Cleared {len(removed)} {self.model.__name__} records")
        if removed:
            self._emit(ChangeAction.REMOVE_ALL, removed=removed)

    def replace(self, desired: Iterable[T]) -> None:
        """
        Converge the mirror to ``desired`` with the fewest deletes and inserts.

        Membership is whole-value equality, so an edited copy of a mirrored
        record is a delete of the old value plus an insert of the new one,
        never an update. Deletes run before inserts; inserted records end
        up at the tail of the mirror.

        Args:
            desired: The records the mirror should hold
        """
        if not self._require_context("replace"):
            return

        desired = list(desired)
        current = self._items
        to_remove = [record for record in current if record not in desired]
        to_append = [record for record in desired if record not in current]

        removed: List[T] = []
        inserted: List[T] = []
        try:
            for record in to_remove:
                removed.extend(self._remove_one(record))
            for record in to_append:
                if self._append_one(record):
                    inserted.append(record)
        finally:
            logger.debug(
                f"Replaced {self.model.__name__} mirror: "
                f"{len(inserted)} inserted, {len(removed)} removed"
            )
            if inserted or removed:
                self._emit(ChangeAction.REPLACE, inserted=inserted, removed=removed)

    # Internals

    def _require_context(self, operation: str) -> bool:
        if self._context is not None:
            return True
        message = f"{operation} requires a bound context; call fetch() first"
        if self.strict:
            raise ContextNotBoundError(message)
        logger.warning(message)
        return False

    def _contains_identity(self, identity: Any) -> bool:
        return any(self.identity_of(item) == identity for item in self._items)

    def _append_one(self, record: T) -> bool:
        identity = self.identity_of(record)
        if self._contains_identity(identity):
            logger.warning(f"Duplicate append ignored: {self.model.__name__} {identity!r}")
            return False
        self._context.insert(record)
        self._items.append(record)
        return True

    def _remove_one(self, record: T) -> List[T]:
        identity = self.identity_of(record)
        self._context.delete(record)
        dropped = [item for item in self._items if self.identity_of(item) == identity]
        if dropped:
            self._items = [item for item in self._items if self.identity_of(item) != identity]
        return dropped

    def _emit(self, action: ChangeAction, inserted: Iterable[T] = (), removed: Iterable[T] = ()) -> None:
        self._signal.emit(StorageChange(
            action=action,
            items=tuple(self._items),
            inserted=tuple(inserted),
            removed=tuple(removed),
        ))
