"""
data_access/db/base.py
Basis-Klasse für alle Datenbank-Zugriffe (DRY Prinzip)

Jeder Aufruf öffnet genau eine Verbindung, führt genau ein Kommando aus und
schließt die Verbindung wieder - auch im Fehlerfall. Fehler von Treiber und
Mapping werden geloggt und unverändert weitergereicht.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Tuple, Type

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from data_access.services.logger import db_logger
from .connection import EngineFactory, create_call_engine, mask_connection_string
from .mapping import bind_named_parameters, map_rows, to_parameters


def _short(command: str, limit: int = 80) -> str:
    """Kommando einzeilig und gekürzt für Logs"""
    flat = ' '.join(command.split())
    return flat if len(flat) <= limit else flat[:limit - 3] + '...'


class BaseDataAccess(ABC):
    """
    Abstrakte Basisklasse für den Datenbank-Zugriff.
    Stellt Verbindungstest, Query und Non-Query bereit; Subklassen liefern nur die URL.
    """

    backend_name = 'DB'

    # Fehler beim Öffnen, die has_connection() als "nicht erreichbar" wertet
    connection_errors: Tuple[Type[BaseException], ...] = (DBAPIError,)

    def __init__(self, engine_factory: Optional[EngineFactory] = None):
        """Optionale injizierte Engine Factory (z.B. für Tests oder andere Treiber)"""
        self._engine_factory = engine_factory or self.create_engine

    @abstractmethod
    def build_url(self, connection_string: str) -> URL:
        """Connection String -> SQLAlchemy URL"""

    def create_engine(self, connection_string: str) -> AsyncEngine:
        return create_call_engine(self.build_url(connection_string))

    @asynccontextmanager
    async def connect(self, connection_string: str) -> AsyncIterator[AsyncConnection]:
        """
        Context Manager: genau eine Verbindung für die Dauer des Blocks.
        Verbindung und Engine werden auf jedem Weg freigegeben.
        """
        engine = self._engine_factory(connection_string)
        try:
            async with engine.connect() as conn:
                yield conn
        finally:
            await engine.dispose()

    @asynccontextmanager
    async def _command(self, connection_string: str, operation: str,
                       command: str) -> AsyncIterator[AsyncConnection]:
        """connect() + Fehler-Logging (Fehler werden weitergereicht)"""
        try:
            async with self.connect(connection_string) as conn:
                yield conn
        except Exception as e:
            db_logger.error(
                f"{self.backend_name} {operation} fehlgeschlagen [{_short(command)}]: {e}",
                exc_info=True
            )
            raise

    async def has_connection(self, connection_string: str) -> bool:
        """
        Prüft ob eine Verbindung zur Datenbank aufgebaut werden kann.

        Returns:
            bool: True wenn Öffnen erfolgreich, False bei Verbindungsfehler.
            Andere Fehler (z.B. ungültige URL) werden weitergereicht.
        """
        try:
            async with self.connect(connection_string):
                pass
        except self.connection_errors as e:
            db_logger.warning(
                f"{self.backend_name} nicht erreichbar "
                f"({mask_connection_string(connection_string)}): {e}"
            )
            return False
        return True

    async def _execute(self, conn: AsyncConnection, command: str, params: Optional[dict]):
        """
        Ohne Parameter: Kommando unverändert an den Treiber (kein Bind-Parsing).
        Mit Parameter: SQLAlchemy text() mit benannten Parametern (@name oder :name).
        """
        if params is None:
            return await conn.exec_driver_sql(command)
        return await conn.execute(text(bind_named_parameters(command, params)), params)

    async def _execute_affected(self, conn: AsyncConnection, command: str,
                                params: Optional[dict]) -> int:
        result = await self._execute(conn, command, params)
        return result.rowcount

    def _prepare_query(self, query: str) -> str:
        """Kommando für Abfragen anpassen (Subklassen, z.B. SET NOCOUNT ON)"""
        return query

    @staticmethod
    def _fetch(result, model: Optional[Any]) -> List[Any]:
        """Ergebnis vollständig lesen und mappen (keine Zeilen -> [])"""
        if not result.returns_rows:
            return []
        return map_rows(result.mappings().all(), model)

    async def execute_query(self, connection_string: str, query: str,
                            data: Any = None, *, model: Optional[Any] = None) -> List[Any]:
        """
        Führt eine Abfrage aus und liefert alle Zeilen als Records.

        Args:
            connection_string: Connection String zur Datenbank
            query: SQL Kommando
            data: Optional - Objekt mit Eingabedaten (Felder -> @parameter / :parameter)
            model: Optional - Zieltyp je Zeile (default: dict)

        Returns:
            list: Records in der Reihenfolge der Datenbank
        """
        params = to_parameters(data) if data is not None else None

        async with self._command(connection_string, 'Query', query) as conn:
            result = await self._execute(conn, self._prepare_query(query), params)
            records = self._fetch(result, model)

        db_logger.debug(f"{self.backend_name} Query [{_short(query)}]: {len(records)} Zeilen")
        return records

    async def execute_non_query(self, connection_string: str, query: str,
                                data: Any = None) -> int:
        """
        Führt ein Kommando ohne Ergebnismenge aus (INSERT/UPDATE/DELETE/DDL).

        Returns:
            int: Anzahl betroffener Zeilen laut Treiber
        """
        params = to_parameters(data) if data is not None else None

        async with self._command(connection_string, 'NonQuery', query) as conn:
            affected = await self._execute_affected(conn, query, params)

        db_logger.debug(f"{self.backend_name} NonQuery [{_short(query)}]: {affected} Zeilen betroffen")
        return affected
