"""
data_access/db/mapping.py
Objekt-Mapping: Eingabe-Objekte -> benannte Parameter, Ergebniszeilen -> Records (pydantic).
"""

import re
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

import pandas as pd
from pydantic import BaseModel, TypeAdapter

from .exceptions import UnsupportedParameterError

# Typen, bei denen nur die erste Spalte jeder Zeile gemappt wird
SCALAR_TYPES = (int, float, str, bytes, bool, Decimal, datetime, date, time, timedelta, UUID)

# Bereiche, in denen @name kein Parameter ist; nur Gruppe 1 wird ersetzt
_BIND_SCAN = re.compile(
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
    r'|\[(?:[^\]]|\]\])*\]'
    r'|--[^\n]*'
    r'|/\*.*?\*/'
    r'|@@\w+'
    r'|(?<![\w@])@(\w+)',
    re.DOTALL,
)


def to_parameters(data: Any) -> Dict[str, Any]:
    """
    Wandelt ein Eingabe-Objekt in ein Dict {parameter_name: wert}.

    Unterstützt: Mapping, NamedTuple, pydantic BaseModel, dataclass-Instanz,
    Objekte mit __dict__ (öffentliche Attribute).

    Raises:
        UnsupportedParameterError: Objekt hat keine benannten Felder
    """
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    if _is_named_tuple(data):
        return dict(data._asdict())
    if isinstance(data, BaseModel):
        return data.model_dump()
    if is_dataclass(data) and not isinstance(data, type):
        # Flach: verschachtelte dataclasses bleiben Objekte
        return {f.name: getattr(data, f.name) for f in fields(data)}
    if hasattr(data, '__dict__') and not isinstance(data, type):
        return {k: v for k, v in vars(data).items() if not k.startswith('_')}
    raise UnsupportedParameterError(
        f"Parameter-Objekt vom Typ {type(data).__name__} hat keine benannten Felder"
    )


def _is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(value, '_asdict')


def bind_named_parameters(command: str, params: Mapping[str, Any]) -> str:
    """
    Schreibt @name Platzhalter in SQLAlchemy Binds (:name) um.

    Nur Namen, die in params vorkommen (Groß-/Kleinschreibung egal).
    String-Literale, quotierte Bezeichner, Kommentare und @@Systemvariablen
    bleiben unverändert. :name Platzhalter funktionieren weiterhin.
    """
    lookup = {key.lower(): key for key in params}
    if not lookup:
        return command

    def replace(match):
        name = match.group(1)
        key = lookup.get(name.lower()) if name else None
        return f":{key}" if key is not None else match.group(0)

    return _BIND_SCAN.sub(replace, command)


def is_scalar_type(model: Any) -> bool:
    return isinstance(model, type) and issubclass(model, SCALAR_TYPES)


def map_rows(rows: Sequence[Mapping[str, Any]], model: Optional[Any] = None) -> List[Any]:
    """
    Mappt Ergebniszeilen auf den gewünschten Typ (Reihenfolge bleibt erhalten).

    Args:
        rows: Zeilen als Mapping (Spaltenname -> Wert)
        model: None -> dict, Skalar-Typ -> erste Spalte,
               sonst alles was pydantic aus einem Mapping validieren kann
               (BaseModel, dataclass, TypedDict, ...)

    Raises:
        pydantic.ValidationError: Zeile passt nicht zum Typ
    """
    if model is None:
        return [dict(row) for row in rows]

    adapter = TypeAdapter(model)
    if is_scalar_type(model):
        return [adapter.validate_python(next(iter(row.values()))) for row in rows]
    return [adapter.validate_python(dict(row)) for row in rows]


def is_table(value: Any) -> bool:
    """True für tabellarische Eingaben (DataFrame, Liste/Tupel von Zeilen, kein NamedTuple)"""
    if _is_named_tuple(value):
        return False
    return isinstance(value, (pd.DataFrame, list, tuple))


def to_table_rows(table: Any) -> List[tuple]:
    """
    Wandelt tabellarische Eingaben in eine Liste von Tupeln (pyodbc TVP Format).

    DataFrame: Spaltenreihenfolge bleibt, NaN/NaT werden zu None.
    Liste: Zeilen als Tupel/Listen oder als Objekte (siehe to_parameters).
    """
    if isinstance(table, pd.DataFrame):
        cleaned = table.astype(object).where(table.notna(), None)
        return list(cleaned.itertuples(index=False, name=None))

    rows = []
    for row in table:
        if isinstance(row, (tuple, list)):
            rows.append(tuple(row))
        else:
            rows.append(tuple(to_parameters(row).values()))
    return rows
