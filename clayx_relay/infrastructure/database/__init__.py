"""
Database infrastructure.
"""
from .connection import Base, DatabaseManager, get_db_session, health_check, init_db
from .unit_of_work import SQLAlchemyUnitOfWork, unit_of_work_factory

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_session",
    "health_check",
    "init_db",
    "SQLAlchemyUnitOfWork",
    "unit_of_work_factory",
]
