"""
StarStorage Persistence Layer - SQLModel Context

🗃️ SQL Store Context:
Adapts a ``sqlmodel.Session`` to the ModelContext interface so an
EntityStorage can mirror table models from any SQLAlchemy database.

Predicates are SQLAlchemy boolean expressions, e.g. ``Task.done == True``.
Open the session with ``expire_on_commit=False`` so mirrored instances keep
their loaded values across commits.
"""

import logging
from typing import Any, List, Optional, Type

from sqlalchemy import delete as sql_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..config import get_config
from .base import FetchDescriptor, ModelContext, SortDirection

logger = logging.getLogger(__name__)

class SQLModelContext(ModelContext):
    """
    Store context backed by a SQLModel session.

    The session is borrowed: this context never closes it.
    """

    def __init__(
        self,
        session: Session,
        autosave: Optional[bool] = None,
        identity_field: str = "id",
    ):
        """
        Initialize the SQL context.

        Args:
            session: Open SQLModel session
            autosave: Commit after every write, defaults to ``StorageConfig.autosave``
            identity_field: Primary key attribute of the mirrored models
        """
        self.session = session
        self.autosave = get_config().autosave if autosave is None else autosave
        self.identity_field = identity_field

    def fetch(self, descriptor: FetchDescriptor) -> List[SQLModel]:
        """Select the rows matching a descriptor."""
        model = descriptor.model
        if model is None:
            raise ValueError("SQLModelContext.fetch requires a descriptor with a model")

        statement = select(model)
        if descriptor.predicate is not None:
            statement = statement.where(descriptor.predicate)
        for criteria in descriptor.sort_by:
            column = getattr(model, criteria.field)
            statement = statement.order_by(
                column.desc() if criteria.direction == SortDirection.DESC else column.asc()
            )
        if descriptor.offset:
            statement = statement.offset(descriptor.offset)
        if descriptor.limit is not None:
            statement = statement.limit(descriptor.limit)

        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {model.__name__}: {e}")
            raise

    def insert(self, record: SQLModel) -> None:
        """Add a record to the session."""
        self.session.add(record)
        self._commit(f"inserting {type(record).__name__}")

    def delete(self, record: SQLModel) -> None:
        """Delete a record's row. A record with no row is ignored."""
        target = record if record in self.session else self.session.get(
            type(record), getattr(record, self.identity_field)
        )
        if target is None:
            logger.debug(f"SQLModelContext: no row to delete for {type(record).__name__}")
            return
        self.session.delete(target)
        self._commit(f"deleting {type(record).__name__}")

    def delete_all(
        self,
        model: Type[SQLModel],
        predicate: Any = None,
        include_subclasses: bool = True,
    ) -> None:
        """
        Issue one DELETE against the model's table.

        Table models map one class to one table, so ``include_subclasses``
        has nothing further to select.
        """
        if not include_subclasses:
            logger.debug(
                f"SQLModelContext: include_subclasses=False has no effect on {model.__name__}; "
                f"its table holds no subclass rows"
            )
        statement = sql_delete(model)
        if predicate is not None:
            statement = statement.where(predicate)
        try:
            self.session.execute(statement)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error deleting {model.__name__} rows: {e}")
            raise
        self._commit(f"deleting {model.__name__} rows")

    def save(self) -> None:
        """Commit pending changes."""
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error committing session: {e}")
            raise

    def _commit(self, action: str) -> None:
        if not self.autosave:
            return
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise
