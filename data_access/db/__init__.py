"""
Database Module Initialization
Exportiert die wichtigsten DB-Klassen und Funktionen für einfacheren Zugriff.
"""
from .base import BaseDataAccess
from .connection import (
    build_sql_connection_string,
    build_sqlite_connection_string,
    build_sql_url,
    build_sqlite_url,
    create_call_engine,
)
from .exceptions import (
    DataAccessError,
    InvalidConnectionStringError,
    InvalidProcedureNameError,
    UnsupportedParameterError,
)
from .sql_access import SqlDataAccess, sql_data_access
from .sqlite_access import SqliteDataAccess, sqlite_data_access

__all__ = [
    "BaseDataAccess",
    "SqliteDataAccess",
    "SqlDataAccess",
    "sqlite_data_access",
    "sql_data_access",
    "build_sql_connection_string",
    "build_sqlite_connection_string",
    "build_sql_url",
    "build_sqlite_url",
    "create_call_engine",
    "DataAccessError",
    "InvalidConnectionStringError",
    "InvalidProcedureNameError",
    "UnsupportedParameterError",
]
