"""
data_access/db/sqlite_access.py
Datenbank-Zugriff auf SQLite (Datei) via aiosqlite.

SQLite führt pro execute() nur ein Statement aus; Skripte mit mehreren
Statements werden deshalb aufgeteilt und nacheinander auf derselben
Verbindung ausgeführt.
"""

import sqlite3
from typing import List, Optional

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection

from .base import BaseDataAccess
from .connection import build_sqlite_url


def split_statements(script: str) -> List[str]:
    """
    Teilt ein SQL Skript an ';' in einzelne Statements.

    ';' in String-Literalen, Kommentaren und Trigger-Körpern trennt nicht
    (sqlite3.complete_statement entscheidet). Leere Statements entfallen.
    """
    statements = []
    buffer = ''
    parts = script.split(';')
    for index, part in enumerate(parts):
        buffer += part
        if index < len(parts) - 1:
            buffer += ';'
        if sqlite3.complete_statement(buffer) or index == len(parts) - 1:
            statement = buffer.strip()
            if statement.rstrip(';').strip():
                statements.append(statement)
            buffer = ''
    return statements


class SqliteDataAccess(BaseDataAccess):
    """Zugriff auf eine SQLite Datei: Verbindungstest, Query, Non-Query"""

    backend_name = 'SQLite'

    def build_url(self, connection_string: str) -> URL:
        return build_sqlite_url(connection_string)

    async def _execute(self, conn: AsyncConnection, command: str, params: Optional[dict]):
        """Skript: alle Statements ausführen, Ergebnis des letzten liefern"""
        statements = split_statements(command)
        if len(statements) <= 1:
            return await super()._execute(conn, command, params)

        for statement in statements[:-1]:
            await super()._execute(conn, statement, params)
        return await super()._execute(conn, statements[-1], params)

    async def _execute_affected(self, conn: AsyncConnection, command: str,
                                params: Optional[dict]) -> int:
        """Skript: Summe der betroffenen Zeilen (-1 wenn kein Statement zählt, z.B. DDL)"""
        statements = split_statements(command)
        if len(statements) <= 1:
            return await super()._execute_affected(conn, command, params)

        counts = []
        for statement in statements:
            result = await super()._execute(conn, statement, params)
            counts.append(result.rowcount)
        affected = [count for count in counts if count >= 0]
        return sum(affected) if affected else -1


# Standard-Instanz + Funktionen auf Modulebene
sqlite_data_access = SqliteDataAccess()

has_connection = sqlite_data_access.has_connection
execute_query = sqlite_data_access.execute_query
execute_non_query = sqlite_data_access.execute_non_query
