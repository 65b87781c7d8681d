"""Data Access - asynchroner Datenbank-Zugriff auf SQLite und SQL Server"""

from .db import *  # noqa: F401,F403
from .db import __all__

__version__ = "1.0.0"
