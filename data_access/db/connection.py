"""
data_access/db/connection.py
Connection Manager - eine Verbindung pro Aufruf (SQLAlchemy AsyncEngine ohne Pooling).

Unterstützte Connection Strings:
- SQLAlchemy URL ("sqlite+aiosqlite:///pfad.db", "mssql+aioodbc://...")
- SQLite ADO-Stil ("Data Source=pfad.db;Version=3;") oder reiner Dateipfad
- SQL Server ODBC-Stil ("DRIVER=...;SERVER=...;DATABASE=...;UID=...;PWD=...")
"""

import re
from typing import Callable, Dict, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from config.settings import (
    SQL_SERVER,
    SQL_USERNAME,
    SQL_PASSWORD,
    SQL_DRIVER,
    SQL_TRUST_SERVER_CERTIFICATE,
    SQLITE_DB_PATH,
)
from .exceptions import InvalidConnectionStringError

SQLITE_DRIVERNAME = 'sqlite+aiosqlite'
MSSQL_DRIVERNAME = 'mssql+aioodbc'

# Factory: Connection String -> AsyncEngine (injizierbar für Tests / andere Treiber)
EngineFactory = Callable[[str], AsyncEngine]

# Key=Value Paare; Werte dürfen in {...} stehen (ODBC), '}}' maskiert '}'
_PAIR_PATTERN = re.compile(r'\s*([^=;]+?)\s*=\s*(\{(?:[^}]|\}\})*\}|[^;]*)\s*(?:;|$)')
_PASSWORD_PATTERN = re.compile(r'((?:^|;)\s*(?:pwd|password)\s*=\s*)(\{(?:[^}]|\}\})*\}|[^;]*)', re.IGNORECASE)
_TRUE_VALUES = {'true', 'yes', '1', 'on'}


def is_url(connection_string: str) -> bool:
    """True wenn der String eine SQLAlchemy URL ist (dialect+driver://...)"""
    return '://' in connection_string


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """
    Zerlegt 'Key=Value;Key2=Value2' in ein Dict.

    Keys werden normalisiert (lowercase, ohne Leerzeichen), sodass
    'Data Source' und 'DataSource' gleich behandelt werden.
    Geschweifte Klammern um Werte werden entfernt.
    """
    parts: Dict[str, str] = {}
    for key, value in _PAIR_PATTERN.findall(connection_string):
        if value.startswith('{') and value.endswith('}'):
            value = value[1:-1].replace('}}', '}')
        parts[key.replace(' ', '').lower()] = value.strip()
    return parts


def _is_true(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


def _odbc_value(value: str) -> str:
    """Maskiert ODBC Werte mit Sonderzeichen in {...}"""
    if any(c in value for c in ';{}') or value != value.strip():
        return '{' + value.replace('}', '}}') + '}'
    return value


def mask_connection_string(connection_string: str) -> str:
    """Passwort für Logs unkenntlich machen"""
    if is_url(connection_string):
        try:
            return make_url(connection_string).render_as_string(hide_password=True)
        except ArgumentError:
            return '<ungültige URL>'
    return _PASSWORD_PATTERN.sub(r'\1***', connection_string)


# ===== SQLite =====

def build_sqlite_url(connection_string: str) -> URL:
    """
    Baue SQLAlchemy URL für SQLite (aiosqlite).

    ADO-Optionen:
        Data Source / DataSource / Filename: Datenbankdatei
        Read Only=True: nur lesend öffnen
        FailIfMissing=True: Datei nicht neu anlegen

    Raises:
        InvalidConnectionStringError: Key=Value String ohne Datenbankdatei
    """
    connection_string = connection_string.strip()
    if is_url(connection_string):
        return make_url(connection_string)

    read_only = fail_if_missing = False
    if '=' in connection_string:
        parts = parse_connection_string(connection_string)
        path = parts.get('datasource') or parts.get('filename')
        if not path:
            raise InvalidConnectionStringError(
                "SQLite Connection String benötigt 'Data Source'"
            )
        read_only = _is_true(parts.get('readonly'))
        fail_if_missing = _is_true(parts.get('failifmissing'))
    else:
        path = connection_string

    if path == ':memory:':
        return URL.create(SQLITE_DRIVERNAME, database=':memory:')

    mode = 'ro' if read_only else 'rw' if fail_if_missing else None
    if mode:
        # SQLite URI Modus: mode=ro/rw erzeugt keine neue Datei
        return URL.create(
            SQLITE_DRIVERNAME,
            database=f"file:{path}",
            query={'mode': mode, 'uri': 'true'},
        )
    return URL.create(SQLITE_DRIVERNAME, database=path)


def build_sqlite_connection_string(path=None, read_only: bool = False,
                                   fail_if_missing: bool = False) -> str:
    """ADO-Stil Connection String für SQLite (default: SQLITE_DB_PATH)"""
    conn_str = f"Data Source={path or SQLITE_DB_PATH};Version=3;"
    if read_only:
        conn_str += "Read Only=True;"
    if fail_if_missing:
        conn_str += "FailIfMissing=True;"
    return conn_str


# ===== SQL Server =====

def _parse_server(server: str):
    """Split host/port ("192.168.178.2,50000" und "192.168.178.2:50000")"""
    parts = server.replace(':', ',').split(',')
    host = parts[0].strip()
    port = parts[1].strip() if len(parts) > 1 else '1433'
    return host, port


def build_sql_connection_string(database: str,
                                server: Optional[str] = None,
                                username: Optional[str] = None,
                                password: Optional[str] = None,
                                driver: Optional[str] = None) -> str:
    """
    Baue ODBC Connection String für SQL Server aus der Konfiguration.

    Args:
        database: Datenbankname
        server: Host (optional mit Port), default SQL_SERVER aus .env
        username / password: default SQL_USERNAME / SQL_PASSWORD aus .env
        driver: ODBC Treiber, default SQL_DRIVER

    Returns:
        str: ODBC Connection String
    """
    server = server or SQL_SERVER
    if not server:
        raise InvalidConnectionStringError("SQL_SERVER ist nicht konfiguriert")

    host, port = _parse_server(server)
    parts = [
        f"DRIVER={{{driver or SQL_DRIVER}}}",
        f"SERVER={host},{port}",
        f"DATABASE={_odbc_value(database)}",
    ]
    username = username or SQL_USERNAME
    if username:
        parts.append(f"UID={_odbc_value(username)}")
        parts.append(f"PWD={_odbc_value(password or SQL_PASSWORD or '')}")
    else:
        parts.append("Trusted_Connection=yes")
    parts.append(f"TrustServerCertificate={SQL_TRUST_SERVER_CERTIFICATE}")
    return ';'.join(parts) + ';'


def build_sql_url(connection_string: str) -> URL:
    """
    Baue SQLAlchemy URL für SQL Server (aioodbc).

    ODBC Strings ohne DRIVER bekommen den konfigurierten Standard-Treiber.
    """
    connection_string = connection_string.strip()
    if is_url(connection_string):
        return make_url(connection_string)

    if 'driver' not in parse_connection_string(connection_string):
        connection_string = f"DRIVER={{{SQL_DRIVER}}};{connection_string}"
    return URL.create(MSSQL_DRIVERNAME, query={'odbc_connect': connection_string})


def create_call_engine(url: URL) -> AsyncEngine:
    """
    Engine für genau einen Aufruf.

    NullPool: jede connect() öffnet eine neue DB-Verbindung, close() schließt sie.
    AUTOCOMMIT: jedes Statement wird sofort committet (keine Transaktionssteuerung).
    """
    return create_async_engine(
        url,
        poolclass=NullPool,
        isolation_level='AUTOCOMMIT',
    )
