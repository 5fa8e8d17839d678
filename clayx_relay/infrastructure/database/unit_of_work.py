"""
SQLAlchemy Unit of Work implementation.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...application.interfaces.unit_of_work import UnitOfWork
from ...domain.exceptions import PersistenceException
from .repositories import (
    SQLAlchemyCommandRepository,
    SQLAlchemyDeviceRepository,
    SQLAlchemyReadingRepository,
)

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work pattern.

    Manages database transactions and provides access to repositories.
    Driver errors escaping the block are re-raised as PersistenceException.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize Unit of Work.

        Args:
            session_factory: Factory for creating async database sessions
        """
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._commands: Optional[SQLAlchemyCommandRepository] = None
        self._devices: Optional[SQLAlchemyDeviceRepository] = None
        self._readings: Optional[SQLAlchemyReadingRepository] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter async context - create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - rollback on error, close session."""
        try:
            if exc_type is not None:
                await self.rollback()
        finally:
            await self.close()

        if isinstance(exc_val, SQLAlchemyError):
            logger.error(f"Database operation failed: {exc_val}")
            raise PersistenceException() from exc_val

    def _require_session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work not started. Use 'async with' context.")
        return self._session

    @property
    def commands(self) -> SQLAlchemyCommandRepository:
        """Get command repository."""
        if self._commands is None:
            self._commands = SQLAlchemyCommandRepository(self._require_session())
        return self._commands

    @property
    def devices(self) -> SQLAlchemyDeviceRepository:
        """Get device repository."""
        if self._devices is None:
            self._devices = SQLAlchemyDeviceRepository(self._require_session())
        return self._devices

    @property
    def readings(self) -> SQLAlchemyReadingRepository:
        """Get reading repository."""
        if self._readings is None:
            self._readings = SQLAlchemyReadingRepository(self._require_session())
        return self._readings

    async def commit(self) -> None:
        """Commit current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        if self._session:
            await self._session.rollback()

    async def close(self) -> None:
        """Close the session."""
        if self._session:
            await self._session.close()
            self._session = None
            # Reset repository references
            self._commands = None
            self._devices = None
            self._readings = None


def unit_of_work_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Build a factory returning a fresh unit of work per call."""
    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)
    return factory
