"""
Database Package Initialization.

============================================================
ASYNC DATABASE PERSISTENCE LAYER
============================================================

Engine, session factory and transaction scope shared by the
alert store, the strategy registry and the completion log.

ORM models are declared next to the code that owns them
(see strategy_engine.models) on the shared Base.

============================================================
"""

from .engine import (
    Base,
    DatabaseConfig,
    DEFAULT_DATABASE_URL,
    get_database_url,
    create_database_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    dispose_engine,
    transaction_scope,
    verify_database_connection,
    create_all_tables,
    initialize_database,
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)


__all__ = [
    "Base",
    "DatabaseConfig",
    "DEFAULT_DATABASE_URL",
    "get_database_url",
    "create_database_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "dispose_engine",
    "transaction_scope",
    "verify_database_connection",
    "create_all_tables",
    "initialize_database",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
]
