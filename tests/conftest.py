"""Gemeinsame Fixtures: temporäre SQLite Datenbank + Fake Engine für SQL Server"""

import os
import sqlite3
import sys
import tempfile
from pathlib import Path

import pytest

# Füge root zum Path hinzu
root = Path(__file__).parent.parent
sys.path.insert(0, str(root))

# Logs der Tests nicht ins Projekt schreiben (vor dem Import von config.settings!)
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='data_access_logs_'))

SCHEMA = """
CREATE TABLE person (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    age INTEGER,
    city TEXT
);
INSERT INTO person (id, name, age, city) VALUES (1, 'Anna', 34, 'Berlin');
INSERT INTO person (id, name, age, city) VALUES (2, 'Ben', 28, 'Hamburg');
INSERT INTO person (id, name, age, city) VALUES (3, 'Clara', 41, 'Berlin');
INSERT INTO person (id, name, age, city) VALUES (4, 'David', 19, 'Berlin');
INSERT INTO person (id, name, age, city) VALUES (7, 'x', 50, 'Köln');
"""


@pytest.fixture()
def sqlite_path(tmp_path) -> Path:
    """Temporäre SQLite Datei mit Testdaten"""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture()
def sqlite_conn_str(sqlite_path) -> str:
    return f"Data Source={sqlite_path};Version=3;"


# ===== Fake Engine (SQL Server ohne Server) =====

class FakeResult:
    """Minimaler Ersatz für CursorResult"""

    def __init__(self, rows=None, rowcount=-1):
        self._rows = rows
        self.rowcount = rowcount

    @property
    def returns_rows(self):
        return self._rows is not None

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    async def __aenter__(self):
        if self.engine.connect_error is not None:
            raise self.engine.connect_error
        self.engine.opened += 1
        return self

    async def __aexit__(self, *exc_info):
        self.engine.closed += 1
        return False

    async def execute(self, statement, params=None):
        self.engine.calls.append(('text', str(statement), params))
        return self.engine.next_result()

    async def exec_driver_sql(self, statement, params=None):
        self.engine.calls.append(('driver', statement, params))
        return self.engine.next_result()


class FakeEngine:
    """Zählt Öffnen/Schließen und protokolliert ausgeführte Statements"""

    def __init__(self, result=None, execute_error=None, connect_error=None):
        self.result = result if result is not None else FakeResult(rowcount=0)
        self.execute_error = execute_error
        self.connect_error = connect_error
        self.calls = []
        self.opened = 0
        self.closed = 0
        self.disposed = 0

    def next_result(self):
        if self.execute_error is not None:
            raise self.execute_error
        return self.result

    def connect(self):
        return FakeConnection(self)

    async def dispose(self):
        self.disposed += 1


class FakeEngineFactory:
    """Engine Factory die immer dieselbe FakeEngine liefert"""

    def __init__(self, engine):
        self.engine = engine
        self.connection_strings = []

    def __call__(self, connection_string):
        self.connection_strings.append(connection_string)
        return self.engine


@pytest.fixture()
def fake_engine():
    return FakeEngine()


@pytest.fixture()
def fake_factory(fake_engine):
    return FakeEngineFactory(fake_engine)
