"""Fehlerklassen des Datenbank-Zugriffs.

Treiber- und Mapping-Fehler werden NICHT übersetzt, sondern unverändert
weitergereicht. Die Klassen hier decken nur Eingaben ab, die schon vor dem
Öffnen einer Verbindung ungültig sind.
"""


class DataAccessError(Exception):
    """Basisklasse für alle Fehler dieser Bibliothek"""


class UnsupportedParameterError(DataAccessError, TypeError):
    """Eingabe-Objekt kann nicht auf benannte Parameter abgebildet werden"""


class InvalidProcedureNameError(DataAccessError, ValueError):
    """Name der Stored Procedure ist kein gültiger Bezeichner"""


class InvalidConnectionStringError(DataAccessError, ValueError):
    """Connection String fehlt ein Pflicht-Schlüssel (z.B. Data Source)"""
