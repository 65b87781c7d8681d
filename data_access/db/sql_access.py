"""
data_access/db/sql_access.py
Datenbank-Zugriff auf SQL Server via aioodbc/pyodbc.

Zusätzlich zu Query/Non-Query: Stored Procedures mit benannten Parametern
oder mit einem Table-Valued Parameter (TVP, default Name 'Values').
"""

import re
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection

from config.settings import TVP_PARAMETER_NAME
from data_access.services.logger import db_logger
from .base import BaseDataAccess
from .connection import EngineFactory, build_sql_url
from .exceptions import InvalidProcedureNameError, UnsupportedParameterError
from .mapping import is_table, to_parameters, to_table_rows

# Bezeichner: [beliebig] oder Name; bis zu 3 Teile (db.schema.name)
_IDENTIFIER = r'(?:\[(?:[^\]]|\]\])+\]|[A-Za-z_#][\w@#$]*)'
_PROCEDURE_PATTERN = re.compile(rf'^{_IDENTIFIER}(?:\.{_IDENTIFIER}){{0,2}}$')
_IDENTIFIER_PATTERN = re.compile(_IDENTIFIER)
_PARAMETER_PATTERN = re.compile(r'^[A-Za-z_]\w*$')

# Zwischenergebnisse (Zeilenzähler von DML) vor der Ergebnismenge unterdrücken
NOCOUNT_PREFIX = 'SET NOCOUNT ON; '


def quote_procedure_name(procedure: str) -> str:
    """
    Validiert den Namen einer Stored Procedure und setzt jeden Teil in [].

    'dbo.spGetOrders' -> '[dbo].[spGetOrders]'

    Raises:
        InvalidProcedureNameError: kein gültiger Bezeichner
    """
    name = procedure.strip() if isinstance(procedure, str) else ''
    if not _PROCEDURE_PATTERN.match(name):
        raise InvalidProcedureNameError(f"Ungültiger Stored Procedure Name: {procedure!r}")

    quoted = []
    for part in _IDENTIFIER_PATTERN.findall(name):
        quoted.append(part if part.startswith('[') else f"[{part}]")
    return '.'.join(quoted)


def _check_parameter_name(name: str) -> str:
    if not _PARAMETER_PATTERN.match(name):
        raise UnsupportedParameterError(f"Ungültiger Parametername: {name!r}")
    return name


def build_procedure_call(procedure: str, params: Dict[str, Any]) -> str:
    """EXEC [schema].[name] @feld = :feld, ... (benannte Parameter)"""
    statement = f"EXEC {quote_procedure_name(procedure)}"
    if params:
        assignments = ', '.join(
            f"@{_check_parameter_name(key)} = :{key}" for key in params
        )
        statement = f"{statement} {assignments}"
    return statement


def build_table_procedure_call(procedure: str, tvp_name: str) -> str:
    """EXEC [schema].[name] @Values = ? (Table-Valued Parameter, pyodbc Platzhalter)"""
    return f"EXEC {quote_procedure_name(procedure)} @{_check_parameter_name(tvp_name)} = ?"


class SqlDataAccess(BaseDataAccess):
    """Zugriff auf SQL Server: Verbindungstest, Query, Non-Query, Stored Procedures"""

    backend_name = 'SQL Server'

    def __init__(self, engine_factory: Optional[EngineFactory] = None,
                 tvp_name: str = TVP_PARAMETER_NAME):
        super().__init__(engine_factory)
        self.tvp_name = tvp_name

    def build_url(self, connection_string: str) -> URL:
        return build_sql_url(connection_string)

    def _prepare_query(self, query: str) -> str:
        """SET NOCOUNT ON: erste Ergebnismenge für pyodbc sind die Zeilen, kein Zähler"""
        return f"{NOCOUNT_PREFIX}{query}"

    def _prepare_procedure(self, procedure: str, params: Any, tvp_name: Optional[str]):
        """Statement + Parameter vorbereiten (Validierung vor dem Öffnen der Verbindung)"""
        if is_table(params):
            statement = build_table_procedure_call(procedure, tvp_name or self.tvp_name)
            # pyodbc: TVP = Liste von Tupeln als einzelner Parameter
            return statement, (to_table_rows(params),), True
        bound = to_parameters(params)
        return build_procedure_call(procedure, bound), bound, False

    @staticmethod
    async def _run_procedure(conn: AsyncConnection, statement: str, params, table_call: bool):
        if table_call:
            return await conn.exec_driver_sql(statement, params)
        return await conn.execute(text(statement), params)

    async def execute_procedure_query(self, connection_string: str, procedure: str,
                                      params: Any = None, *, model: Optional[Any] = None,
                                      tvp_name: Optional[str] = None) -> List[Any]:
        """
        Führt eine Stored Procedure aus und liefert alle Zeilen als Records.

        Args:
            connection_string: ODBC Connection String oder SQLAlchemy URL
            procedure: Name der Stored Procedure (optional mit Schema)
            params: Parameter-Objekt (Felder -> @parameter) oder
                    Tabelle (DataFrame / Liste von Zeilen) -> Table-Valued Parameter
            model: Optional - Zieltyp je Zeile (default: dict)
            tvp_name: Optional - Name des TVP (default: 'Values')

        Returns:
            list: Records in der Reihenfolge der Datenbank
        """
        statement, bound, table_call = self._prepare_procedure(procedure, params, tvp_name)

        async with self._command(connection_string, 'Procedure Query', procedure) as conn:
            result = await self._run_procedure(conn, self._prepare_query(statement), bound, table_call)
            records = self._fetch(result, model)

        db_logger.debug(f"{self.backend_name} Procedure Query [{procedure}]: {len(records)} Zeilen")
        return records

    async def execute_procedure_non_query(self, connection_string: str, procedure: str,
                                          params: Any = None, *,
                                          tvp_name: Optional[str] = None) -> int:
        """
        Führt eine Stored Procedure ohne Ergebnismenge aus.

        Returns:
            int: Anzahl betroffener Zeilen laut Treiber (-1 bei SET NOCOUNT ON)
        """
        call = self._prepare_procedure(procedure, params, tvp_name)

        async with self._command(connection_string, 'Procedure NonQuery', procedure) as conn:
            result = await self._run_procedure(conn, *call)
            affected = result.rowcount

        db_logger.debug(
            f"{self.backend_name} Procedure NonQuery [{procedure}]: {affected} Zeilen betroffen"
        )
        return affected

    async def execute_table_procedure_query(self, connection_string: str, procedure: str,
                                            table: Any, *, model: Optional[Any] = None,
                                            tvp_name: Optional[str] = None) -> List[Any]:
        """Stored Procedure mit Table-Valued Parameter (Query)"""
        if not is_table(table):
            raise UnsupportedParameterError("Table-Valued Parameter erwartet DataFrame oder Liste von Zeilen")
        return await self.execute_procedure_query(
            connection_string, procedure, table, model=model, tvp_name=tvp_name
        )

    async def execute_table_procedure_non_query(self, connection_string: str, procedure: str,
                                                table: Any, *,
                                                tvp_name: Optional[str] = None) -> int:
        """Stored Procedure mit Table-Valued Parameter (Non-Query)"""
        if not is_table(table):
            raise UnsupportedParameterError("Table-Valued Parameter erwartet DataFrame oder Liste von Zeilen")
        return await self.execute_procedure_non_query(
            connection_string, procedure, table, tvp_name=tvp_name
        )


# Standard-Instanz + Funktionen auf Modulebene
sql_data_access = SqlDataAccess()

has_connection = sql_data_access.has_connection
execute_query = sql_data_access.execute_query
execute_non_query = sql_data_access.execute_non_query
execute_procedure_query = sql_data_access.execute_procedure_query
execute_procedure_non_query = sql_data_access.execute_procedure_non_query
execute_table_procedure_query = sql_data_access.execute_table_procedure_query
execute_table_procedure_non_query = sql_data_access.execute_table_procedure_non_query
