"""Zentrale Konfigurationsverwaltung"""

import os
import platform
from dotenv import load_dotenv
from pathlib import Path

config_dir = Path(__file__).parent
env_file = config_dir / '.env'
load_dotenv(env_file)

PROJECT_ROOT = config_dir.parent

# --- SQL Server (Client/Server) ---
SQL_SERVER = os.getenv('SQL_SERVER')
SQL_USERNAME = os.getenv('SQL_USERNAME')
SQL_PASSWORD = os.getenv('SQL_PASSWORD')

_DEFAULT_DRIVER = 'ODBC Driver 18 for SQL Server' if platform.system() == 'Linux' else 'SQL Server'
SQL_DRIVER = os.getenv('SQL_DRIVER', _DEFAULT_DRIVER)
SQL_TRUST_SERVER_CERTIFICATE = os.getenv('SQL_TRUST_SERVER_CERTIFICATE', 'yes')

# Name des Table-Valued Parameters bei Stored Procedures
TVP_PARAMETER_NAME = os.getenv('TVP_PARAMETER_NAME', 'Values')

# --- SQLite (Datei) ---
DATA_DIR = PROJECT_ROOT / 'data'
SQLITE_DB_PATH = Path(os.getenv('SQLITE_DB_PATH', str(DATA_DIR / 'database.db')))

# --- Logging ---
# Default: logs/ im aktuellen Arbeitsverzeichnis
LOG_DIR = Path(os.getenv('LOG_DIR', str(Path.cwd() / 'logs')))
LOG_CONSOLE_LEVEL = os.getenv('LOG_CONSOLE_LEVEL', 'ERROR').upper()
LOG_FILE_LEVEL = os.getenv('LOG_FILE_LEVEL', 'INFO').upper()
