from typing import Generic, NoReturn, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.utils.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Base repository holding the session and storage error handling.

    Storage errors are logged with their traceback and re-raised as
    ``DatabaseError`` so callers never see driver internals.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    def _raise_database_error(self, action: str, error: SQLAlchemyError) -> NoReturn:
        """Log a storage failure and raise it as a DatabaseError."""
        self.logger.error(
            f"Error {action}: {str(error)}",
            exc_info=True,
            extra={"model": self.model.__name__},
        )
        raise DatabaseError(f"Database error while {action}", original_error=error)

    async def _rollback_and_raise(self, action: str, error: SQLAlchemyError) -> NoReturn:
        """Roll back the current transaction, then raise as DatabaseError."""
        await self.session.rollback()
        self._raise_database_error(action, error)

    def _insert(self):
        """INSERT construct of the bound dialect, for ``ON CONFLICT`` upserts.

        Both dialects accept the same ``on_conflict_do_update`` arguments.
        """
        if self.session.get_bind().dialect.name == "sqlite":
            return sqlite.insert(self.model)
        return postgresql.insert(self.model)
