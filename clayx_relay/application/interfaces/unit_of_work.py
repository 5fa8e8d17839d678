"""
Unit of Work interface for managing transactions.

Every relay operation (one REST request, one inbound socket message) runs
inside its own unit of work so that long-lived socket connections never
hold a database session open.

    async with unit_of_work as uow:
        command = await uow.commands.create(command)
        await uow.commit()
"""
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Optional, Type

from .repositories import CommandRepository, DeviceRepository, ReadingRepository


class UnitOfWork(ABC):
    """
    Abstract Unit of Work.

    Provides access to repositories and manages database transactions.
    """

    commands: CommandRepository
    devices: DeviceRepository
    readings: ReadingRepository

    async def __aenter__(self) -> 'UnitOfWork':
        """Enter the context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType]
    ) -> None:
        """
        Exit the context manager.

        Rolls back if an exception occurred, otherwise just closes.
        """
        if exc_type is not None:
            await self.rollback()
        await self.close()

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Roll back the current transaction."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the unit of work and release resources."""
        pass
